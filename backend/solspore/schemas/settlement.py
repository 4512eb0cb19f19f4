"""Settlement, incident and admin reporting schemas."""

from datetime import datetime
from typing import List, Optional

from beanie import PydanticObjectId
from pydantic import BaseModel, Field

from solspore.models import Outcome
from solspore.schemas.common import BaseSchema


class MarketSettlementResult(BaseModel):
    """Outcome of settling one market."""

    market_id: str
    success: bool = True
    reference: Optional[str] = None
    outcome: Optional[Outcome] = None
    already_settled: bool = False
    bets_total: int = 0
    bets_settled: int = 0
    bets_failed: int = 0
    payout_trigger_failures: int = 0
    total_payout: float = 0.0
    error: Optional[str] = None


class SettlementSummary(BaseModel):
    """
    Result of one settlement sweep. The sweep reports partial failure here
    instead of raising.
    """

    markets_processed: int = 0
    markets_succeeded: int = 0
    markets_failed: int = 0
    bets_settled: int = 0
    bets_failed: int = 0
    payout_trigger_failures: int = 0
    database_unreachable: bool = False
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    results: List[MarketSettlementResult] = Field(default_factory=list)

    def record(self, result: MarketSettlementResult) -> None:
        self.results.append(result)
        self.markets_processed += 1
        if result.success:
            self.markets_succeeded += 1
        else:
            self.markets_failed += 1
        self.bets_settled += result.bets_settled
        self.bets_failed += result.bets_failed
        self.payout_trigger_failures += result.payout_trigger_failures


class ManualSettleRequest(BaseModel):
    outcome: str


class LedgerIncidentResponse(BaseSchema):
    id: PydanticObjectId
    market_id: PydanticObjectId
    outcome: Outcome
    stake: float
    payer_address: Optional[str] = None
    transaction_signature: str
    stake_compensated: bool
    error: str
    resolved: bool
    created_at: datetime


class AdminStats(BaseModel):
    users: int
    tournaments: int
    markets_open: int
    markets_closed: int
    markets_settled: int
    bets_total: int
    bets_active: int
    total_staked: float
    total_paid_out: float
    open_incidents: int
