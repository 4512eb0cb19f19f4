"""
Bet MongoDB Schema

Ledger of every accepted wager. Outcome, stake, odds and the payment reference
are fixed at acceptance; only status/result/payout change, once, at settlement.

Indexes:
- Compound: (user_id, market_id), (user_id, status), (market_id, status)
- transaction_signature (unique): one bet per on-chain payment
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from beanie import PydanticObjectId
from pydantic import Field
from pymongo import ASCENDING, IndexModel

from solspore.database.base import BaseDocument
from solspore.models.market import Outcome
from solspore.utils.time_utils import utc_now


class BetStatus(str, Enum):
    ACTIVE = "active"
    SETTLED = "settled"


class BetResult(str, Enum):
    WIN = "win"
    LOSS = "loss"


class Bet(BaseDocument):
    user_id: PydanticObjectId
    market_id: PydanticObjectId
    tournament_id: Optional[PydanticObjectId] = None
    outcome: Outcome
    stake: float
    odds: float
    timestamp: datetime = Field(default_factory=utc_now)
    status: BetStatus = BetStatus.ACTIVE
    result: Optional[BetResult] = None
    payout: Optional[float] = None
    transaction_signature: str
    smart_contract_address: Optional[str] = None
    payer_address: Optional[str] = None
    payout_reference: Optional[str] = None
    settled_at: Optional[datetime] = None

    class Settings:
        name = "bets"
        use_state_management = True
        indexes = [
            IndexModel([("user_id", ASCENDING), ("market_id", ASCENDING)]),
            IndexModel([("user_id", ASCENDING), ("status", ASCENDING)]),
            IndexModel([("market_id", ASCENDING), ("status", ASCENDING)]),
            IndexModel([("transaction_signature", ASCENDING)], unique=True),
        ]

    def __repr__(self) -> str:
        return f"<Bet {self.outcome.value} {self.stake} @ {self.odds} ({self.status.value})>"
