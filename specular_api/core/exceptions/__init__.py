"""
Exception Module

Structured exception hierarchy for the Specular API server, organized by theme.

Module Structure:
-----------------
- **base.py**: SpecularBaseError base class + ConfigurationError
- **circuit_breaker.py**: Memory circuit breaker exceptions
- **admission.py**: Request admission (queue full / queue timeout) exceptions
- **network.py**: Network registry exceptions

A cache miss is not an error and has no exception type.

Usage:
------
```python
from specular_api.core.exceptions import QueueFullError, CircuitBreakerOpenError
```
"""

from specular_api.core.exceptions.admission import AdmissionError, QueueFullError, QueueTimeoutError
from specular_api.core.exceptions.base import ConfigurationError, SpecularBaseError
from specular_api.core.exceptions.circuit_breaker import (
    CircuitBreakerError,
    CircuitBreakerOpenError,
)
from specular_api.core.exceptions.network import NetworkError, UnknownNetworkError

__all__ = [
    # Base
    "SpecularBaseError",
    "ConfigurationError",
    # Circuit Breaker
    "CircuitBreakerError",
    "CircuitBreakerOpenError",
    # Admission
    "AdmissionError",
    "QueueFullError",
    "QueueTimeoutError",
    # Network
    "NetworkError",
    "UnknownNetworkError",
]
