"""Market Pydantic schemas."""

from datetime import datetime
from typing import Optional

from beanie import PydanticObjectId
from pydantic import Field

from solspore.models import MarketStatus, Outcome
from solspore.schemas.common import BaseSchema, TimestampSchema


class MarketCreate(BaseSchema):
    """Market creation schema (admin)."""

    question: str = Field(min_length=1)
    team_a: str = Field(min_length=1)
    team_b: str = Field(min_length=1)
    close_time: datetime


class MarketOdds(BaseSchema):
    """Odds and stake snapshot returned after a bet."""

    id: PydanticObjectId
    yes_odds: float
    no_odds: float
    yes_stake: float
    no_stake: float
    status: MarketStatus


class MarketResponse(MarketOdds, TimestampSchema):
    """Market response schema."""

    question: str
    team_a: str
    team_b: str
    close_time: datetime
    result: Optional[Outcome] = None
    settlement_tx_signature: Optional[str] = None
    settled_at: Optional[datetime] = None
    tournament_id: Optional[PydanticObjectId] = None
