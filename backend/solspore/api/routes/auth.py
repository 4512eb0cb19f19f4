"""Authentication API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Response

from solspore.api.dependencies import get_caller_identity, get_container
from solspore.container import Container
from solspore.exceptions import AuthenticationFailed
from solspore.schemas import AuthResponse, LoginRequest, UserResponse
from solspore.services.auth import CallerIdentity

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    response: Response,
    container: Container = Depends(get_container),
):
    """Check credentials and issue a token in the body and as an http-only cookie."""
    user = await container.users.authenticate(request.login, request.password)
    token = container.tokens.issue(user)

    auth = container.settings.auth
    response.set_cookie(
        key=auth.cookie_name,
        value=token,
        max_age=auth.token_ttl_hours * 3600,
        httponly=True,
        samesite="lax",
        secure=container.settings.is_production,
    )
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def me(
    container: Container = Depends(get_container),
    identity: Optional[CallerIdentity] = Depends(get_caller_identity),
):
    if identity is None:
        raise AuthenticationFailed()
    user = await container.users.get_user(identity.id)
    return UserResponse.model_validate(user)
