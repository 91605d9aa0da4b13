"""
Configuration Module

Centralized, type-safe configuration for the Specular API server.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Defaults, enums and HTTP header names
- **networks.py**: Registry of protocol deployments

Usage:
------
```python
from specular_api.core.config import get_settings

settings = get_settings()
max_size = settings.cache.CACHE_MAX_SIZE
cooldown = settings.circuit_breaker.CB_COOLDOWN_PERIOD
```

Environment Variables:
---------------------
```bash
CACHE_MAX_SIZE=100
CACHE_TTL=300
CB_MEMORY_THRESHOLD=0.85
CB_COOLDOWN_PERIOD=30
LIMITER_MAX_CONCURRENT=20
LIMITER_QUEUE_SIZE=100
LIMITER_TIMEOUT=30
DEFAULT_NETWORK=arc
LOG_LEVEL=INFO
LOG_FORMAT=json
```

NOTE: networks.py is not imported here to avoid a circular import with the
exceptions package. Import it directly when needed.
"""

from specular_api.core.config.constants import (
    BYTES_PER_MB,
    HEADER_NETWORK,
    HEADER_REQUEST_ID,
    HEADER_RETRY_AFTER,
    LIMITER_RETRY_AFTER,
    CircuitState,
    Stage,
)
from specular_api.core.config.settings import get_settings, reload_settings

__all__ = [
    # Settings
    "get_settings",
    "reload_settings",
    # Enums
    "Stage",
    "CircuitState",
    # Constants
    "BYTES_PER_MB",
    "LIMITER_RETRY_AFTER",
    # HTTP headers
    "HEADER_NETWORK",
    "HEADER_REQUEST_ID",
    "HEADER_RETRY_AFTER",
]
