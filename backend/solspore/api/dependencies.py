"""FastAPI dependencies: container access and caller identity."""

from typing import Optional

from fastapi import Depends, Request

from solspore.container import Container
from solspore.services.auth import CallerIdentity, require_admin


def get_container(request: Request) -> Container:
    return request.app.state.container


def _extract_token(request: Request, cookie_name: str) -> Optional[str]:
    token = request.cookies.get(cookie_name)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


async def get_caller_identity(
    request: Request,
    container: Container = Depends(get_container),
) -> Optional[CallerIdentity]:
    """Identity from the auth cookie or a Bearer header; None when absent."""
    token = _extract_token(request, container.settings.auth.cookie_name)
    if token is None:
        return None
    return container.tokens.verify(token)


async def get_admin_identity(
    identity: Optional[CallerIdentity] = Depends(get_caller_identity),
) -> CallerIdentity:
    """401 without an identity, 403 when the caller is not an admin."""
    return require_admin(identity)
