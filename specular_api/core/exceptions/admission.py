"""
Request Admission Exceptions

All exceptions raised by the concurrency-limiting request admission controller
"""

from specular_api.core.exceptions.base import SpecularBaseError


class AdmissionError(SpecularBaseError):
    """Base exception for request admission errors."""
    pass


class QueueFullError(AdmissionError):
    """
    Raised when every slot is busy and the wait queue is at capacity.

    Clients should back off for ``retry_after`` seconds.
    """
    pass


class QueueTimeoutError(AdmissionError):
    """
    Raised in a queued request whose deadline passed before a slot freed up.

    ``details["queued_for_ms"]`` holds how long the request waited.
    """
    pass
