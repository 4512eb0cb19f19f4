"""User resolution, credential checks and admin user management."""

import logging
import re
from typing import Optional

from pymongo.errors import DuplicateKeyError

from solspore.exceptions import (
    AuthenticationFailed,
    InvalidRequest,
    UserAlreadyExists,
    UserNotFound,
)
from solspore.models import User, UserRole
from solspore.services.auth import hash_password, verify_password
from solspore.utils.ids import parse_object_id

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,30}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


def validate_username(username: str) -> str:
    username = (username or "").strip()
    if not USERNAME_PATTERN.match(username):
        raise InvalidRequest("Username must be 3-30 characters: letters, digits, '_', '.', '-'")
    return username


def validate_email(email: str) -> str:
    email = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise InvalidRequest(f"Invalid email address: {email!r}")
    return email


def validate_password(password: str) -> str:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise InvalidRequest(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


class UserService:
    """
    Handles wallet-guest resolution, login and admin user edits.
    """

    async def find_by_wallet(self, wallet_address: str) -> Optional[User]:
        return await User.find_one(User.wallet_address == wallet_address)

    async def resolve_wallet_user(self, wallet_address: str) -> User:
        """
        Find the user owning ``wallet_address``, creating a guest on first bet.

        Safe under concurrent first bets: losing the insert race falls back to
        re-reading the winner's record.
        """
        user = await self.find_by_wallet(wallet_address)
        if user:
            return user

        # Short prefix first; the full address if another wallet shares the prefix
        for handle in (wallet_address[:8], wallet_address):
            guest = User(
                username=f"guest_{handle}",
                email=f"guest_{handle}@solspore.com",
                wallet_address=wallet_address,
                role=UserRole.USER,
            )
            try:
                await guest.insert()
                logger.info(f"Created guest user {guest.username} for wallet {wallet_address}")
                return guest
            except DuplicateKeyError:
                user = await self.find_by_wallet(wallet_address)
                if user:
                    return user

        raise UserAlreadyExists(f"Could not create a user account for wallet {wallet_address}")

    async def authenticate(self, login: str, password: str) -> User:
        """Check credentials by username or email."""
        login = (login or "").strip()
        user = await User.find_one(User.username == login)
        if user is None:
            user = await User.find_one(User.email == login.lower())

        if user is None or not verify_password(password, user.password_hash, user.salt):
            raise AuthenticationFailed("Invalid credentials")
        return user

    async def create_user(
        self,
        username: str,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
    ) -> User:
        username = validate_username(username)
        email = validate_email(email)
        password = validate_password(password)

        if await User.find_one(User.username == username):
            raise UserAlreadyExists(f"Username already taken: {username}")
        if await User.find_one(User.email == email):
            raise UserAlreadyExists(f"Email already registered: {email}")

        password_hash, salt = hash_password(password)
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            salt=salt,
            role=role,
        )
        try:
            await user.insert()
        except DuplicateKeyError as e:
            raise UserAlreadyExists() from e

        logger.info(f"Created {role.value} user {username}")
        return user

    async def get_user(self, user_id: str) -> User:
        user = await User.get(parse_object_id(user_id))
        if user is None:
            raise UserNotFound()
        return user

    async def list_users(self, limit: int = 50, skip: int = 0) -> list[User]:
        return await User.find_all().sort("-created_at").skip(skip).limit(limit).to_list()

    async def update_user(
        self,
        user_id: str,
        role: Optional[UserRole] = None,
        email: Optional[str] = None,
        profile_image: Optional[str] = None,
    ) -> User:
        user = await self.get_user(user_id)

        if role is not None:
            user.role = role
        if email is not None:
            user.email = validate_email(email)
        if profile_image is not None:
            user.profile_image = profile_image

        try:
            await user.save()
        except DuplicateKeyError as e:
            raise UserAlreadyExists(f"Email already registered: {email}") from e

        logger.info(f"Updated user {user.username} (role={user.role.value})")
        return user


user_service = UserService()
