"""
User MongoDB Schema

Either a credentialed account (username/email + password hash) or a wallet-only
guest created on first bet.

Indexes:
- username (unique), email (unique)
- wallet_address (unique, sparse)
"""

from enum import Enum
from typing import Optional

from pymongo import ASCENDING, IndexModel

from solspore.database.base import BaseDocument


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(BaseDocument):
    username: str
    email: str
    password_hash: Optional[str] = None
    salt: Optional[str] = None
    role: UserRole = UserRole.USER
    wallet_address: Optional[str] = None
    profile_image: Optional[str] = None

    class Settings:
        name = "users"
        use_state_management = True
        # Absent wallet_address must stay absent for the sparse index
        keep_nulls = False
        indexes = [
            IndexModel([("username", ASCENDING)], unique=True),
            IndexModel([("email", ASCENDING)], unique=True),
            IndexModel([("wallet_address", ASCENDING)], unique=True, sparse=True),
        ]

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
