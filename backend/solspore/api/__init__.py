"""HTTP API."""

from solspore.api.server import create_app

__all__ = ["create_app"]
