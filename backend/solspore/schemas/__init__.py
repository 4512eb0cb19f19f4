"""Pydantic request/response schemas."""

from solspore.schemas.bet import BetCreate, BetPlacementResponse, BetResponse, BetWithMarket
from solspore.schemas.common import BaseSchema, MessageResponse, PaginatedResponse, TimestampSchema
from solspore.schemas.market import MarketCreate, MarketOdds, MarketResponse
from solspore.schemas.settlement import (
    AdminStats,
    LedgerIncidentResponse,
    ManualSettleRequest,
    MarketSettlementResult,
    SettlementSummary,
)
from solspore.schemas.tournament import (
    TournamentCreate,
    TournamentDetailResponse,
    TournamentResponse,
    TournamentUpdate,
)
from solspore.schemas.user import (
    AuthResponse,
    LeaderboardEntry,
    LoginRequest,
    UserResponse,
    UserUpdate,
)
from solspore.schemas.wallet import BalanceResponse

__all__ = [
    "AdminStats",
    "AuthResponse",
    "BalanceResponse",
    "BaseSchema",
    "BetCreate",
    "BetPlacementResponse",
    "BetResponse",
    "BetWithMarket",
    "LeaderboardEntry",
    "LedgerIncidentResponse",
    "LoginRequest",
    "ManualSettleRequest",
    "MarketCreate",
    "MarketOdds",
    "MarketResponse",
    "MarketSettlementResult",
    "MessageResponse",
    "PaginatedResponse",
    "SettlementSummary",
    "TimestampSchema",
    "TournamentCreate",
    "TournamentDetailResponse",
    "TournamentResponse",
    "TournamentUpdate",
    "UserResponse",
    "UserUpdate",
]
