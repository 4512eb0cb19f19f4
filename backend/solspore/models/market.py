"""
Market MongoDB Schema

A binary (yes/no) wager proposition tied to a match. The market owns its stake
accumulators and the odds published from them.

Lifecycle: open -> closed -> settled. ``settled`` is terminal.

Indexes:
- Compound: (status, close_time) for the expiry sweep
- tournament_id
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from beanie import PydanticObjectId
from pymongo import ASCENDING, IndexModel

from solspore.database.base import BaseDocument
from solspore.utils.time_utils import ensure_utc

DEFAULT_ODDS = 2.00


class Outcome(str, Enum):
    YES = "yes"
    NO = "no"


class MarketStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    SETTLED = "settled"


class Market(BaseDocument):
    question: str
    team_a: str
    team_b: str
    close_time: datetime
    yes_odds: float = DEFAULT_ODDS
    no_odds: float = DEFAULT_ODDS
    yes_stake: float = 0.0
    no_stake: float = 0.0
    status: MarketStatus = MarketStatus.OPEN
    result: Optional[Outcome] = None
    settlement_tx_signature: Optional[str] = None
    settled_at: Optional[datetime] = None
    tournament_id: Optional[PydanticObjectId] = None

    class Settings:
        name = "markets"
        use_state_management = True
        indexes = [
            IndexModel([("status", ASCENDING), ("close_time", ASCENDING)]),
            IndexModel([("tournament_id", ASCENDING)]),
        ]

    def stake_for(self, outcome: Outcome) -> float:
        return self.yes_stake if outcome == Outcome.YES else self.no_stake

    def odds_for(self, outcome: Outcome) -> float:
        return self.yes_odds if outcome == Outcome.YES else self.no_odds

    def has_closed_by(self, now: datetime) -> bool:
        return ensure_utc(self.close_time) <= ensure_utc(now)

    @property
    def total_stake(self) -> float:
        return self.yes_stake + self.no_stake

    def __repr__(self) -> str:
        return f"<Market {self.id} {self.status.value} yes={self.yes_odds} no={self.no_odds}>"
