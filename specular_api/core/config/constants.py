"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the Specular API server.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers
- Type-safe enums for state management
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Request protection stages, attached to log entries as ``stage=...``.

    Format: {PREFIX}.{N}_{DESCRIPTIVE_NAME}
    """

    INITIALIZATION = "0.0_INITIALIZATION"
    ADMISSION = "RL.1_REQUEST_ADMISSION"
    ADMISSION_QUEUE = "RL.2_ADMISSION_QUEUE"
    ADMISSION_RELEASE = "RL.3_ADMISSION_RELEASE"
    MEMORY_SAMPLE = "CB.1_MEMORY_SAMPLE"
    CIRCUIT_TRANSITION = "CB.2_CIRCUIT_TRANSITION"
    CIRCUIT_REJECT = "CB.3_CIRCUIT_REJECT"
    CACHE_LOOKUP = "C.1_CACHE_LOOKUP"
    CACHE_EVICTION = "C.2_CACHE_EVICTION"
    CACHE_SWEEP = "C.3_CACHE_SWEEP"
    UNHANDLED_ERROR = "E.1_UNHANDLED_ERROR"


# ============================================================================
# Circuit Breaker States
# ============================================================================


class CircuitState(str, Enum):
    """
    Memory circuit breaker states.

    CLOSED: Normal operation, requests allowed
    OPEN: Memory pressure detected, requests rejected until cooldown ends
    """

    CLOSED = "closed"
    OPEN = "open"


# ============================================================================
# Cache defaults
# ============================================================================

DEFAULT_CACHE_MAX_SIZE = 100
DEFAULT_CACHE_TTL = 300.0  # 5 minutes
DEFAULT_CACHE_CLEANUP_INTERVAL = 60.0

# ============================================================================
# Circuit breaker defaults
# ============================================================================

DEFAULT_CB_MEMORY_THRESHOLD = 0.85
DEFAULT_CB_CHECK_INTERVAL = 5.0
DEFAULT_CB_COOLDOWN_PERIOD = 30.0

# ============================================================================
# Request limiter defaults
# ============================================================================

DEFAULT_LIMITER_MAX_CONCURRENT = 20
DEFAULT_LIMITER_QUEUE_SIZE = 100
DEFAULT_LIMITER_TIMEOUT = 30.0

# Advisory retry hint sent with queue-full rejections (seconds)
LIMITER_RETRY_AFTER = 5

# ============================================================================
# Units
# ============================================================================

BYTES_PER_MB = 1024 * 1024

# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"
HEADER_NETWORK = "X-Network"
HEADER_RETRY_AFTER = "Retry-After"
