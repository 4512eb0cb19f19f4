"""Logfire observability initialization and instrumentation."""

import logging
from typing import Optional

import logfire
from fastapi import FastAPI

from solspore import __version__
from solspore.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings, app: Optional[FastAPI] = None) -> bool:
    """
    Initialize Logfire and instrument the service.

    Call once per process, before the first request or sweep. Instruments:
    - FastAPI request handling (when ``app`` is given)
    - PyMongo commands (market/bet/settlement store calls)
    - HTTPX clients (Solana JSON-RPC)
    - Python logging (bridged to Logfire)

    Returns:
        True if Logfire was configured.
    """
    if not settings.logfire_token:
        logger.warning("Logfire token not set - observability disabled")
        return False

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="solspore",
            service_version=__version__,
            environment=settings.environment,
        )

        if app is not None:
            logfire.instrument_fastapi(app)

        logfire.instrument_pymongo()
        logfire.instrument_httpx()

        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        logger.info("✓ Logfire tracking initialized")
        return True

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
        # Observability is optional
        return False
