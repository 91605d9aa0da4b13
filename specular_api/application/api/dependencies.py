"""
FastAPI Dependencies
====================

Providers for the application-level singletons created in ``create_app()``
and stored on ``app.state``. Routes take them through the ``*Dep`` aliases
so tests can swap any of them with ``app.dependency_overrides``.

Example:
    @router.get("/stats")
    async def stats(cache: CacheDep):
        return cache.stats()
"""

from typing import Annotated

from fastapi import Depends, Request

from specular_api.core.config.constants import HEADER_NETWORK
from specular_api.core.config.networks import NetworkConfig, NetworkRegistry
from specular_api.core.config.settings import Settings, get_settings
from specular_api.core.resilience.circuit_breaker import MemoryCircuitBreaker
from specular_api.core.resilience.request_limiter import RequestLimiter
from specular_api.infrastructure.cache.cache_manager import CacheManager


def get_cache(request: Request) -> CacheManager:
    return request.app.state.cache


def get_circuit_breaker(request: Request) -> MemoryCircuitBreaker:
    return request.app.state.circuit_breaker


def get_request_limiter(request: Request) -> RequestLimiter:
    return request.app.state.request_limiter


def get_network_registry(request: Request) -> NetworkRegistry:
    return request.app.state.networks


def get_network(
    request: Request, registry: Annotated[NetworkRegistry, Depends(get_network_registry)]
) -> NetworkConfig:
    """
    Resolve the network a request targets.

    Precedence: ``?network=`` query parameter, then the ``X-Network`` header,
    then the configured default.

    Raises:
        UnknownNetworkError: The requested key is not registered (mapped to 400)
    """
    key = request.query_params.get("network") or request.headers.get(HEADER_NETWORK)
    return registry.get(key)


CacheDep = Annotated[CacheManager, Depends(get_cache)]
CircuitBreakerDep = Annotated[MemoryCircuitBreaker, Depends(get_circuit_breaker)]
RequestLimiterDep = Annotated[RequestLimiter, Depends(get_request_limiter)]
NetworkRegistryDep = Annotated[NetworkRegistry, Depends(get_network_registry)]
NetworkDep = Annotated[NetworkConfig, Depends(get_network)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
