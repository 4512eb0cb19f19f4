"""Bet Pydantic schemas."""

from datetime import datetime
from typing import Optional

from beanie import PydanticObjectId
from pydantic import Field

from solspore.models import BetResult, BetStatus, Outcome
from solspore.schemas.common import BaseSchema
from solspore.schemas.market import MarketOdds, MarketResponse


class BetCreate(BaseSchema):
    """
    Bet placement request.

    ``outcome`` and ``amount`` are checked by the ledger so that bad values
    come back as ``invalid_outcome`` / ``invalid_stake``.
    """

    outcome: str
    amount: float
    transaction_signature: str = Field(min_length=1)
    wallet_address: str = Field(min_length=1)
    tournament_id: Optional[str] = None
    odds: Optional[float] = None
    smart_contract_address: Optional[str] = None


class BetResponse(BaseSchema):
    """Bet response schema."""

    id: PydanticObjectId
    user_id: PydanticObjectId
    market_id: PydanticObjectId
    tournament_id: Optional[PydanticObjectId] = None
    outcome: Outcome
    stake: float
    odds: float
    timestamp: datetime
    status: BetStatus
    result: Optional[BetResult] = None
    payout: Optional[float] = None
    transaction_signature: str
    smart_contract_address: Optional[str] = None
    payout_reference: Optional[str] = None
    settled_at: Optional[datetime] = None


class BetPlacementResponse(BaseSchema):
    success: bool = True
    bet: BetResponse
    market: MarketOdds


class BetWithMarket(BetResponse):
    """A wallet's bet with the market it was placed on."""

    market: Optional[MarketResponse] = None
