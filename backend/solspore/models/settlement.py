"""
Settlement and ledger incident records.

Settlement: one per settled market, summarising how many bets were finalised and
which ones need manual reconciliation.

LedgerIncident: a payment that was received on-chain but whose bet could not be
recorded. Nothing is paid or refunded automatically; an operator resolves it.
"""

from datetime import datetime
from typing import List, Optional

from beanie import PydanticObjectId
from pydantic import Field
from pymongo import ASCENDING, IndexModel

from solspore.database.base import BaseDocument
from solspore.models.market import Outcome
from solspore.utils.time_utils import utc_now


class Settlement(BaseDocument):
    market_id: PydanticObjectId
    outcome: Outcome
    reference: str
    bets_total: int = 0
    bets_settled: int = 0
    failed_bet_ids: List[PydanticObjectId] = Field(default_factory=list)
    payout_trigger_failures: List[PydanticObjectId] = Field(default_factory=list)
    total_payout: float = 0.0
    settled_at: datetime = Field(default_factory=utc_now)

    class Settings:
        name = "settlements"
        indexes = [
            IndexModel([("market_id", ASCENDING)]),
            IndexModel([("settled_at", ASCENDING)]),
        ]

    @property
    def bets_failed(self) -> int:
        return len(self.failed_bet_ids)


class LedgerIncident(BaseDocument):
    market_id: PydanticObjectId
    outcome: Outcome
    stake: float
    payer_address: Optional[str] = None
    transaction_signature: str
    stake_compensated: bool
    error: str
    resolved: bool = False

    class Settings:
        name = "ledger_incidents"
        indexes = [
            IndexModel([("resolved", ASCENDING)]),
        ]
