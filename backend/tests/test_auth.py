"""Password hashing, identity tokens and admin gating."""

import pytest

from solspore.config import AuthConfig
from solspore.exceptions import AdminRequired, AuthenticationFailed, InvalidRequest, UserAlreadyExists
from solspore.models import UserRole
from solspore.services.auth import (
    CallerIdentity,
    TokenService,
    hash_password,
    require_admin,
    verify_password,
)
from solspore.services.user_service import UserService, validate_email, validate_username


def test_password_hash_roundtrip():
    password_hash, salt = hash_password("hunter2-hunter2")
    assert len(password_hash) == 128
    assert verify_password("hunter2-hunter2", password_hash, salt)
    assert not verify_password("hunter3-hunter3", password_hash, salt)
    assert not verify_password("anything", None, None)


def test_same_password_different_salts():
    first, salt_a = hash_password("same-password")
    second, salt_b = hash_password("same-password")
    assert salt_a != salt_b
    assert first != second


def test_require_admin():
    with pytest.raises(AuthenticationFailed):
        require_admin(None)
    with pytest.raises(AdminRequired):
        require_admin(CallerIdentity(id="u1", role=UserRole.USER))
    admin = CallerIdentity(id="u2", role=UserRole.ADMIN)
    assert require_admin(admin) is admin


def test_validators():
    assert validate_username("  caster_01 ") == "caster_01"
    assert validate_email("Ops@SolSpore.com") == "ops@solspore.com"
    with pytest.raises(InvalidRequest):
        validate_username("ab")
    with pytest.raises(InvalidRequest):
        validate_email("not-an-email")


async def test_token_roundtrip(db):
    user = await UserService().create_user("admin01", "admin01@solspore.com", "long-enough-pw", UserRole.ADMIN)
    tokens = TokenService(AuthConfig(jwt_secret="x" * 40))

    identity = tokens.verify(tokens.issue(user))

    assert identity.id == str(user.id)
    assert identity.role == UserRole.ADMIN
    assert identity.is_admin


async def test_tampered_and_expired_tokens_rejected(db):
    user = await UserService().create_user("player1", "player1@solspore.com", "long-enough-pw")
    tokens = TokenService(AuthConfig(jwt_secret="x" * 40))
    other = TokenService(AuthConfig(jwt_secret="y" * 40))
    expired = TokenService(AuthConfig(jwt_secret="x" * 40, token_ttl_hours=-1))

    with pytest.raises(AuthenticationFailed):
        tokens.verify(other.issue(user))
    with pytest.raises(AuthenticationFailed):
        tokens.verify(expired.issue(user))
    with pytest.raises(AuthenticationFailed):
        tokens.verify("garbage")


async def test_authenticate_by_username_or_email(db):
    users = UserService()
    created = await users.create_user("caster", "caster@solspore.com", "long-enough-pw")

    assert (await users.authenticate("caster", "long-enough-pw")).id == created.id
    assert (await users.authenticate("CASTER@solspore.com", "long-enough-pw")).id == created.id
    with pytest.raises(AuthenticationFailed):
        await users.authenticate("caster", "wrong-password")
    with pytest.raises(AuthenticationFailed):
        await users.authenticate("nobody", "long-enough-pw")


async def test_duplicate_users_refused(db):
    users = UserService()
    await users.create_user("caster", "caster@solspore.com", "long-enough-pw")

    with pytest.raises(UserAlreadyExists):
        await users.create_user("caster", "other@solspore.com", "long-enough-pw")
    with pytest.raises(UserAlreadyExists):
        await users.create_user("other", "caster@solspore.com", "long-enough-pw")
