"""
MongoDB connection and Beanie ODM initialization.

This module provides:
- Database: owns the Motor client for one process, initializes Beanie
- Health check and sanitized connection info for logging
"""

import logging
from typing import List, Optional, Type

from beanie import Document, init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


class Database:
    """
    MongoDB connection constructed once at process start and closed at shutdown.

    A pre-built client may be passed in (tests use an in-memory client).
    """

    def __init__(
        self,
        url: str,
        name: str,
        client: Optional[AsyncIOMotorClient] = None,
    ):
        self.url = url
        self.name = name
        self._client = client

    async def connect(self, document_models: Optional[List[Type[Document]]] = None) -> None:
        """Open the client (if needed) and register document models with Beanie."""
        if self._client is None:
            self._client = AsyncIOMotorClient(self.url, tz_aware=True)

        if document_models is None:
            from solspore.models import get_document_models

            document_models = get_document_models()

        await init_beanie(database=self._client[self.name], document_models=document_models)
        logger.info(f"Initialized Beanie on {_sanitize_mongodb_url(self.url)}/{self.name}")

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Closed MongoDB client")

    @property
    def client(self) -> AsyncIOMotorClient:
        if self._client is None:
            raise RuntimeError("Database not initialized. Call connect() first.")
        return self._client

    @property
    def db(self) -> AsyncIOMotorDatabase:
        return self.client[self.name]

    async def ping(self) -> bool:
        """Check if MongoDB connection is healthy."""
        if self._client is None:
            return False

        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    def info(self) -> dict:
        """Get database connection information and status."""
        return {
            "status": "connected" if self._client is not None else "disconnected",
            "url": _sanitize_mongodb_url(self.url),
            "database": self.name,
        }


def _sanitize_mongodb_url(url: str) -> str:
    """
    Hide password in MongoDB URL for safe logging.
    """
    if "@" not in url or "://" not in url:
        return url

    protocol, rest = url.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    if ":" in credentials:
        username = credentials.split(":", 1)[0]
        return f"{protocol}://{username}:***@{host}"
    return url
