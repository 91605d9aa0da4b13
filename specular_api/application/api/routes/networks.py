"""
Network Discovery Routes
========================

GET /                            Service index
GET /networks                    Registered networks
GET /.well-known/specular.json   Discovery document for one network

Every route here is read-only and derived from static configuration, so the
network list and discovery documents are served from the response cache.
The discovery document embeds the public base URL the request came in on,
so it is cached per network AND host.
"""

from typing import Any

from fastapi import APIRouter, Request

from specular_api.application.api.dependencies import (
    CacheDep,
    NetworkDep,
    NetworkRegistryDep,
    SettingsDep,
)
from specular_api.core.config.constants import Stage
from specular_api.core.logging.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Networks"])

DISCOVERY_PROTOCOL = "Specular"
DISCOVERY_VERSION = "3"

_MISSING = object()


def _public_base_url(request: Request) -> str:
    """Base URL as the client sees it, honoring reverse proxy headers."""
    scheme = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = request.headers.get("x-forwarded-host") or request.headers.get("host") or request.url.netloc
    return f"{scheme}://{host}"


@router.get("/")
async def service_index(settings: SettingsDep, registry: NetworkRegistryDep) -> dict[str, Any]:
    keys = "|".join(registry.keys())
    return {
        "name": settings.app.APP_NAME,
        "version": settings.app.APP_VERSION,
        "defaultNetwork": registry.default,
        "networks": registry.keys(),
        "endpoints": {
            "discovery": f"/.well-known/specular.json?network={{{keys}}}",
            "networks": "/networks",
            "health": "/health",
            "detailedHealth": "/health/detailed",
            "stats": "/admin/stats",
            "metrics": "/admin/metrics",
        },
        "usage": f"Add ?network=<key> or an X-Network header. Default: {registry.default}",
    }


@router.get("/networks")
async def list_networks(cache: CacheDep, registry: NetworkRegistryDep) -> dict[str, Any]:
    cached = cache.get("networks", _MISSING)
    if cached is not _MISSING:
        return cached

    body = {
        "default": registry.default,
        "available": [network.summary() for network in registry.all().values()],
    }
    cache.set("networks", body)
    return body


@router.get("/.well-known/specular.json")
async def discovery_document(
    request: Request, cache: CacheDep, network: NetworkDep
) -> dict[str, Any]:
    """
    Protocol discovery document.

    The network comes from ``?network=``, the ``X-Network`` header or the
    configured default. Unknown networks produce 400.
    """
    api_url = _public_base_url(request)
    cache_key = f"discovery:{network.key}:{api_url}"

    cached = cache.get(cache_key, _MISSING)
    if cached is not _MISSING:
        return cached

    body = {
        "protocol": DISCOVERY_PROTOCOL,
        "version": DISCOVERY_VERSION,
        "network": network.key,
        "networkName": network.name,
        "chainId": network.chain_id,
        "api": api_url,
        "explorer": network.explorer,
        "contracts": network.contracts,
    }
    cache.set(cache_key, body)
    logger.debug("Discovery document built", stage=Stage.CACHE_LOOKUP, network=network.key)
    return body
