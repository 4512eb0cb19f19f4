"""Signed identity tokens and password hashing."""

import hashlib
import hmac
import secrets
from datetime import timedelta
from typing import Any, Optional, Tuple

import jwt
from pydantic import BaseModel

from solspore.config import AuthConfig
from solspore.exceptions import AdminRequired, AuthenticationFailed
from solspore.models import User, UserRole
from solspore.utils.time_utils import utc_now

PBKDF2_ITERATIONS = 1000
PBKDF2_KEY_LENGTH = 64


class CallerIdentity(BaseModel):
    """Who is calling: user id and role, as carried by the token."""

    id: str
    role: UserRole
    username: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def hash_password(password: str, salt: Optional[str] = None) -> Tuple[str, str]:
    """Return (hash, salt) as hex strings using PBKDF2-HMAC-SHA512."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha512",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        PBKDF2_ITERATIONS,
        dklen=PBKDF2_KEY_LENGTH,
    )
    return digest.hex(), salt


def verify_password(password: str, password_hash: Optional[str], salt: Optional[str]) -> bool:
    if not password_hash or not salt:
        return False
    candidate, _ = hash_password(password, salt)
    return hmac.compare_digest(candidate, password_hash)


class TokenService:
    """Issues and verifies HS256 identity tokens."""

    def __init__(self, config: AuthConfig):
        self.config = config

    def issue(self, user: User) -> str:
        now = utc_now()
        payload: dict[str, Any] = {
            "id": str(user.id),
            "role": user.role.value,
            "username": user.username,
            "iat": now,
            "exp": now + timedelta(hours=self.config.token_ttl_hours),
        }
        return jwt.encode(payload, self.config.jwt_secret, algorithm=self.config.jwt_algorithm)

    def verify(self, token: str) -> CallerIdentity:
        """
        Decode a token.

        Raises:
            AuthenticationFailed: bad signature, expired, or malformed payload
        """
        try:
            payload = jwt.decode(
                token,
                self.config.jwt_secret,
                algorithms=[self.config.jwt_algorithm],
            )
        except jwt.InvalidTokenError as e:
            raise AuthenticationFailed("Invalid token") from e

        try:
            return CallerIdentity(
                id=payload["id"],
                role=UserRole(payload["role"]),
                username=payload.get("username"),
            )
        except (KeyError, ValueError) as e:
            raise AuthenticationFailed("Invalid token") from e


def require_admin(identity: Optional[CallerIdentity]) -> CallerIdentity:
    """Gate for administrative operations."""
    if identity is None:
        raise AuthenticationFailed()
    if not identity.is_admin:
        raise AdminRequired()
    return identity
