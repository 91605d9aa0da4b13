"""
Circuit Breaker Exceptions

All exceptions related to the memory-pressure circuit breaker
"""

from specular_api.core.exceptions.base import SpecularBaseError


class CircuitBreakerError(SpecularBaseError):
    """Base exception for circuit breaker errors."""
    pass


class CircuitBreakerOpenError(CircuitBreakerError):
    """
    Raised when the memory circuit breaker is open.

    The details carry the memory reading and the remaining cooldown
    (``retry_after`` seconds) so the HTTP layer can build a 503 body
    without consulting the breaker again.

    The circuit closes on its own once the cooldown elapses.
    """
    pass
