#!/usr/bin/env python3
"""
Application Startup Script

Runs the Specular API under uvicorn using the host, port and log level
from settings.

Usage:
    python start_app.py
"""

import sys

import uvicorn

from specular_api.core.config.settings import get_settings


def main():
    """Start the FastAPI application."""
    settings = get_settings()

    print("=" * 60)
    print(f"{settings.app.APP_NAME} v{settings.app.APP_VERSION}")
    print(f"Default network: {settings.networks.DEFAULT_NETWORK}")
    print("=" * 60)

    try:
        uvicorn.run(
            "specular_api.application.app:app",
            host=settings.app.API_HOST,
            port=settings.app.API_PORT,
            reload=settings.app.ENVIRONMENT == "development",
            log_level=settings.logging.LOG_LEVEL.lower(),
        )
    except KeyboardInterrupt:
        print("\n\nShutting down...")
        sys.exit(0)


if __name__ == "__main__":
    main()
