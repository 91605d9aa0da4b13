"""
Core Module

Foundational components: configuration, logging, exceptions and the
request protection layer.
"""

from .exceptions import (
    AdmissionError,
    CircuitBreakerOpenError,
    ConfigurationError,
    QueueFullError,
    QueueTimeoutError,
    SpecularBaseError,
    UnknownNetworkError,
)
from .logging import (
    clear_request_id,
    get_logger,
    get_request_id,
    log_stage,
    set_request_id,
    setup_logging,
)

__all__ = [
    "AdmissionError",
    "CircuitBreakerOpenError",
    "ConfigurationError",
    "QueueFullError",
    "QueueTimeoutError",
    "SpecularBaseError",
    "UnknownNetworkError",
    "clear_request_id",
    "get_logger",
    "get_request_id",
    "log_stage",
    "set_request_id",
    "setup_logging",
]
