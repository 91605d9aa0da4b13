"""
Network Registry Exceptions
"""

from specular_api.core.exceptions.base import SpecularBaseError


class NetworkError(SpecularBaseError):
    """Base exception for network registry errors."""
    pass


class UnknownNetworkError(NetworkError):
    """Raised when a request names a network that is not in the registry."""
    pass
