"""User, auth and leaderboard Pydantic schemas."""

from typing import Optional

from beanie import PydanticObjectId
from pydantic import BaseModel, Field

from solspore.models import UserRole
from solspore.schemas.common import BaseSchema, TimestampSchema


class LoginRequest(BaseModel):
    """Username or email plus password."""

    login: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserResponse(TimestampSchema):
    """Public user fields (never the credential hash)."""

    id: PydanticObjectId
    username: str
    email: str
    role: UserRole
    wallet_address: Optional[str] = None
    profile_image: Optional[str] = None


class UserUpdate(BaseSchema):
    role: Optional[UserRole] = None
    email: Optional[str] = None
    profile_image: Optional[str] = None


class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: UserResponse


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: PydanticObjectId
    username: str
    wallet_address: Optional[str] = None
    profile_image: Optional[str] = None
    total_winnings: float
    bets_won: int
    bets_total: int
