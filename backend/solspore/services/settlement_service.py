"""Settlement batch processing: expired market discovery and per-market settlement."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import NamedTuple, Optional

from beanie import PydanticObjectId

from solspore.config import SettlementConfig
from solspore.exceptions import MarketNotFound, RetryExhausted
from solspore.models import (
    Bet,
    BetResult,
    BetStatus,
    Market,
    MarketStatus,
    Outcome,
    Settlement,
)
from solspore.schemas.settlement import MarketSettlementResult, SettlementSummary
from solspore.services.outcomes import OutcomeResolver, StakeWeightedOutcomeResolver
from solspore.services.payouts import PayoutTrigger, PayoutTriggerError, SimulatedPayoutTrigger
from solspore.utils.retry import with_retry
from solspore.utils.time_utils import to_naive_utc, utc_now

logger = logging.getLogger(__name__)

PAYOUT_PRECISION = 9


class BetSettlement(NamedTuple):
    bet_id: PydanticObjectId
    result: BetResult
    payout: float
    applied: bool
    payout_trigger_failed: bool = False


@dataclass
class BetTally:
    settled_ids: list[PydanticObjectId] = field(default_factory=list)
    failed_ids: list[PydanticObjectId] = field(default_factory=list)
    trigger_failures: list[PydanticObjectId] = field(default_factory=list)
    total_payout: float = 0.0


def compute_payout(bet: Bet, outcome: Outcome) -> tuple[BetResult, float]:
    """Win pays stake times locked odds; a loss pays nothing."""
    if bet.outcome == outcome:
        return BetResult.WIN, round(bet.stake * bet.odds, PAYOUT_PRECISION)
    return BetResult.LOSS, 0.0


def settlement_reference(settled: int, total: int) -> str:
    return f"settlement_{int(time.time() * 1000)}_{settled}_of_{total}"


def empty_settlement_reference() -> str:
    return f"settlement_no_bets_{int(time.time() * 1000)}"


class SettlementService:
    """
    Drives markets from open to settled.

    Every market and every bet is processed in isolation: one failure is
    recorded and the rest carry on. Store writes are retried with fixed backoff
    before being counted as failed. A market is settled even when some of its
    bets could not be written; those bet ids go on the Settlement record.
    """

    def __init__(
        self,
        config: SettlementConfig | None = None,
        outcome_resolver: OutcomeResolver | None = None,
        payout_trigger: PayoutTrigger | None = None,
    ):
        self.config = config or SettlementConfig()
        self.outcome_resolver = outcome_resolver or StakeWeightedOutcomeResolver()
        self.payout_trigger = payout_trigger or SimulatedPayoutTrigger()

    async def _retry(self, operation, name: str):
        return await with_retry(
            operation,
            name,
            max_attempts=self.config.max_attempts,
            delay_seconds=self.config.retry_delay_seconds,
        )

    async def settle_expired_markets(self, now: Optional[datetime] = None) -> SettlementSummary:
        """
        Close and settle every market whose close time has passed.

        Never raises: the summary says what happened, including
        ``database_unreachable`` when the store could not be reached at all.
        """
        now = now or utc_now()
        summary = SettlementSummary(started_at=utc_now())

        try:
            await with_retry(
                lambda: Market.find_one(),
                "database connectivity check",
                max_attempts=self.config.db_connect_attempts,
                delay_seconds=self.config.db_connect_delay_seconds,
            )
            markets = await self._retry(
                lambda: Market.find(
                    {
                        "status": {"$in": [MarketStatus.OPEN.value, MarketStatus.CLOSED.value]},
                        "close_time": {"$lt": to_naive_utc(now)},
                    }
                )
                .sort("close_time")
                .to_list(),
                "expired market query",
            )
        except RetryExhausted as e:
            logger.error(f"Settlement sweep aborted, database unreachable: {e}")
            summary.database_unreachable = True
            summary.finished_at = utc_now()
            return summary

        if not markets:
            logger.info("No expired markets to settle")
            summary.finished_at = utc_now()
            return summary

        logger.info(f"Settling {len(markets)} expired market(s)")

        outcomes = await asyncio.gather(
            *(self._settle_expired_market(market, now) for market in markets),
            return_exceptions=True,
        )

        for market, outcome in zip(markets, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"Failed to settle market {market.id}: {outcome}")
                outcome = MarketSettlementResult(
                    market_id=str(market.id),
                    success=False,
                    error=str(outcome),
                )
            summary.record(outcome)

        summary.finished_at = utc_now()
        logger.info(
            f"Settlement sweep complete: {summary.markets_succeeded}/{summary.markets_processed} "
            f"markets settled, {summary.bets_settled} bets settled, {summary.bets_failed} failed, "
            f"{summary.payout_trigger_failures} payout trigger failures"
        )
        return summary

    async def _settle_expired_market(self, market: Market, now: datetime) -> MarketSettlementResult:
        if market.status == MarketStatus.OPEN:
            await self._retry(lambda: self._close_market(market.id, now), f"close market {market.id}")
            logger.info(f"Closed market {market.id} ({market.question})")

        # Stakes are frozen once closed; re-read so the resolver sees the final pool
        closed = await self._retry(lambda: Market.get(market.id), f"load market {market.id}")
        if closed is None:
            raise MarketNotFound()

        outcome = await self.outcome_resolver.resolve(closed)
        return await self.settle_market(closed.id, outcome)

    async def close_and_settle(
        self,
        market_id: PydanticObjectId,
        outcome: Outcome,
        now: Optional[datetime] = None,
    ) -> MarketSettlementResult:
        """Manual settlement with a known outcome; closes the market first if still open."""
        now = now or utc_now()
        await self._retry(lambda: self._close_market(market_id, now), f"close market {market_id}")
        return await self.settle_market(market_id, outcome)

    async def _close_market(self, market_id: PydanticObjectId, now: datetime) -> None:
        await Market.get_motor_collection().update_one(
            {"_id": market_id, "status": MarketStatus.OPEN.value},
            {"$set": {"status": MarketStatus.CLOSED.value, "updated_at": now}},
        )

    async def settle_market(
        self,
        market_id: PydanticObjectId,
        outcome: Outcome,
    ) -> MarketSettlementResult:
        """
        Settle one market with a known outcome.

        Idempotent: a market already settled keeps its recorded outcome and
        reference. Only bets still active from an earlier partial failure are
        settled, at the recorded outcome; settled bets are never touched again.
        """
        market = await self._retry(lambda: Market.get(market_id), f"load market {market_id}")
        if market is None:
            raise MarketNotFound()

        bets = await self._retry(
            lambda: Bet.find(Bet.market_id == market.id, Bet.status == BetStatus.ACTIVE).to_list(),
            f"load bets for market {market.id}",
        )

        if market.status == MarketStatus.SETTLED:
            if not bets:
                logger.info(f"Market {market.id} already settled ({market.settlement_tx_signature})")
                return self._already_settled(market)
            return await self._reconcile_settled_market(market, bets)

        if not bets:
            reference = empty_settlement_reference()
            if not await self._finalize_market(market, outcome, reference):
                return self._already_settled(await Market.get(market.id))
            await self._record_settlement(market, outcome, reference, 0, 0, [], [], 0.0)
            logger.info(f"Settled market {market.id} with no bets: {reference}")
            return MarketSettlementResult(
                market_id=str(market.id),
                reference=reference,
                outcome=outcome,
            )

        tally = await self._settle_bets(market, bets, outcome)

        reference = settlement_reference(len(tally.settled_ids), len(bets))
        if not await self._finalize_market(market, outcome, reference):
            return self._already_settled(await Market.get(market.id))

        await self._record_settlement(
            market,
            outcome,
            reference,
            len(bets),
            len(tally.settled_ids),
            tally.failed_ids,
            tally.trigger_failures,
            tally.total_payout,
        )

        if tally.failed_ids:
            logger.warning(
                f"Market {market.id} settled with {len(tally.failed_ids)} unsettled bet(s) "
                f"flagged for reconciliation: {[str(i) for i in tally.failed_ids]}"
            )
        logger.info(
            f"Settled market {market.id}: {outcome.value} ({len(tally.settled_ids)}/{len(bets)} bets, "
            f"{tally.total_payout:.4f} paid out) {reference}"
        )

        return MarketSettlementResult(
            market_id=str(market.id),
            reference=reference,
            outcome=outcome,
            bets_total=len(bets),
            bets_settled=len(tally.settled_ids),
            bets_failed=len(tally.failed_ids),
            payout_trigger_failures=len(tally.trigger_failures),
            total_payout=tally.total_payout,
        )

    async def _reconcile_settled_market(self, market: Market, bets: list[Bet]) -> MarketSettlementResult:
        """
        Settle bets left active by an earlier partial failure.

        The market keeps its recorded outcome and reference; the Settlement
        record is amended with the newly settled bets.
        """
        outcome = market.result
        logger.info(f"Reconciling {len(bets)} active bet(s) on settled market {market.id} ({outcome.value})")

        tally = await self._settle_bets(market, bets, outcome)

        try:
            await self._retry(
                lambda: Settlement.get_motor_collection().update_one(
                    {"market_id": market.id},
                    {
                        "$pullAll": {"failed_bet_ids": tally.settled_ids},
                        "$push": {"payout_trigger_failures": {"$each": tally.trigger_failures}},
                        "$inc": {
                            "bets_settled": len(tally.settled_ids),
                            "total_payout": tally.total_payout,
                        },
                    },
                ),
                f"amend settlement for market {market.id}",
            )
        except RetryExhausted as e:
            logger.error(f"Reconciled bets on market {market.id} but settlement record not amended: {e}")

        if tally.failed_ids:
            logger.warning(
                f"Market {market.id} still has {len(tally.failed_ids)} unsettled bet(s): "
                f"{[str(i) for i in tally.failed_ids]}"
            )

        return self._already_settled(market).model_copy(
            update={
                "bets_total": len(bets),
                "bets_settled": len(tally.settled_ids),
                "bets_failed": len(tally.failed_ids),
                "payout_trigger_failures": len(tally.trigger_failures),
                "total_payout": tally.total_payout,
            }
        )

    async def _settle_bets(self, market: Market, bets: list[Bet], outcome: Outcome) -> BetTally:
        """Settle bets concurrently; each failure is collected, never raised."""
        settled_at = utc_now()
        outcomes = await asyncio.gather(
            *(self._settle_bet(bet, outcome, settled_at) for bet in bets),
            return_exceptions=True,
        )

        tally = BetTally()
        total_payout = 0.0
        for bet, result in zip(bets, outcomes):
            if isinstance(result, BaseException):
                logger.error(f"Failed to settle bet {bet.id} on market {market.id}: {result}")
                tally.failed_ids.append(bet.id)
                continue
            if result.applied:
                tally.settled_ids.append(bet.id)
                total_payout += result.payout
            if result.payout_trigger_failed:
                tally.trigger_failures.append(bet.id)

        tally.total_payout = round(total_payout, PAYOUT_PRECISION)
        return tally

    async def _settle_bet(self, bet: Bet, outcome: Outcome, settled_at: datetime) -> BetSettlement:
        result, payout = compute_payout(bet, outcome)

        applied = await self._retry(
            lambda: self._persist_bet_result(bet, result, payout, settled_at),
            f"settle bet {bet.id}",
        )
        if not applied:
            # Another settlement run got to this bet first
            return BetSettlement(bet.id, result, payout, applied=False)

        bet.status = BetStatus.SETTLED
        bet.result = result
        bet.payout = payout
        bet.settled_at = settled_at

        trigger_failed = False
        if result == BetResult.WIN and bet.smart_contract_address:
            trigger_failed = not await self._trigger_payout(bet, payout)

        return BetSettlement(bet.id, result, payout, applied=True, payout_trigger_failed=trigger_failed)

    async def _persist_bet_result(
        self,
        bet: Bet,
        result: BetResult,
        payout: float,
        settled_at: datetime,
    ) -> bool:
        """Move an active bet to settled. False if it was no longer active."""
        update = await Bet.get_motor_collection().update_one(
            {"_id": bet.id, "status": BetStatus.ACTIVE.value},
            {
                "$set": {
                    "status": BetStatus.SETTLED.value,
                    "result": result.value,
                    "payout": payout,
                    "settled_at": settled_at,
                    "updated_at": settled_at,
                }
            },
        )
        return update.matched_count == 1

    async def _trigger_payout(self, bet: Bet, payout: float) -> bool:
        """Best effort. The bet's result and payout are already on record."""
        try:
            reference = await self.payout_trigger.trigger(bet, payout)
        except PayoutTriggerError as e:
            logger.error(f"Payout trigger failed for bet {bet.id} ({payout}): {e}")
            return False
        except Exception as e:
            logger.exception(f"Payout trigger raised for bet {bet.id} ({payout}): {e}")
            return False

        bet.payout_reference = reference
        try:
            await self._retry(
                lambda: Bet.get_motor_collection().update_one(
                    {"_id": bet.id, "payout_reference": None},
                    {"$set": {"payout_reference": reference}},
                ),
                f"record payout reference for bet {bet.id}",
            )
        except RetryExhausted as e:
            logger.error(f"Payout {reference} for bet {bet.id} sent but not recorded: {e}")
        return True

    async def _finalize_market(self, market: Market, outcome: Outcome, reference: str) -> bool:
        """Mark the market settled. False if a concurrent run already did."""
        settled_at = utc_now()
        update = await self._retry(
            lambda: Market.get_motor_collection().update_one(
                {"_id": market.id, "status": {"$ne": MarketStatus.SETTLED.value}},
                {
                    "$set": {
                        "status": MarketStatus.SETTLED.value,
                        "result": outcome.value,
                        "settlement_tx_signature": reference,
                        "settled_at": settled_at,
                        "updated_at": settled_at,
                    }
                },
            ),
            f"finalize market {market.id}",
        )
        if update.matched_count != 1:
            return False

        market.status = MarketStatus.SETTLED
        market.result = outcome
        market.settlement_tx_signature = reference
        market.settled_at = settled_at
        return True

    async def _record_settlement(
        self,
        market: Market,
        outcome: Outcome,
        reference: str,
        bets_total: int,
        bets_settled: int,
        failed_ids: list[PydanticObjectId],
        trigger_failures: list[PydanticObjectId],
        total_payout: float,
    ) -> None:
        record = Settlement(
            market_id=market.id,
            outcome=outcome,
            reference=reference,
            bets_total=bets_total,
            bets_settled=bets_settled,
            failed_bet_ids=failed_ids,
            payout_trigger_failures=trigger_failures,
            total_payout=total_payout,
        )
        try:
            await self._retry(lambda: record.insert(), f"record settlement for market {market.id}")
        except RetryExhausted as e:
            logger.error(f"Market {market.id} settled as {reference} but no settlement record: {e}")

    def _already_settled(self, market: Optional[Market]) -> MarketSettlementResult:
        if market is None:
            raise MarketNotFound()
        return MarketSettlementResult(
            market_id=str(market.id),
            reference=market.settlement_tx_signature,
            outcome=market.result,
            already_settled=True,
        )

