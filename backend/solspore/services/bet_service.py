"""Bet ledger: acceptance, stake accounting and compensation."""

import logging
import math
from datetime import datetime
from typing import NamedTuple, Optional, Union

from pymongo.errors import DuplicateKeyError, PyMongoError

from solspore.config import LedgerConfig
from solspore.exceptions import (
    BetPersistenceFailed,
    InvalidMarketId,
    InvalidOdds,
    InvalidOutcome,
    InvalidStake,
    MarketClosed,
    MarketNotFound,
    MarketUnavailable,
    MarketUpdateConflict,
    PaymentAlreadyRecorded,
    PaymentNotConfirmed,
    PaymentRailError,
)
from solspore.models import Bet, LedgerIncident, Market, MarketStatus, Outcome
from solspore.services.odds import OddsEngine
from solspore.services.solana import SolanaClient, SolanaRPCError
from solspore.services.user_service import UserService
from solspore.utils.ids import parse_object_id
from solspore.utils.time_utils import utc_now

logger = logging.getLogger(__name__)

# Stakes are SOL amounts; lamport precision
STAKE_PRECISION = 9


class PlacedBet(NamedTuple):
    bet: Bet
    market: Market


def parse_outcome(value: Union[str, Outcome, None]) -> Outcome:
    if isinstance(value, Outcome):
        return value
    try:
        return Outcome(str(value).strip().lower())
    except ValueError as e:
        raise InvalidOutcome() from e


def parse_stake(value) -> float:
    if isinstance(value, bool):
        raise InvalidStake()
    try:
        stake = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidStake() from e
    if not math.isfinite(stake) or stake <= 0:
        raise InvalidStake()
    return stake


class BetService:
    """
    Records wagers against open markets.

    Each bet moves the market's stake and odds in a single conditional write on
    the stake fields, then inserts the bet. If the insert fails the stake is
    taken back out and a ledger incident is opened, since the payment has
    already happened on the rail.
    """

    def __init__(
        self,
        odds_engine: OddsEngine,
        config: LedgerConfig | None = None,
        users: UserService | None = None,
        payment_rail: SolanaClient | None = None,
    ):
        self.odds_engine = odds_engine
        self.config = config or LedgerConfig()
        self.users = users or UserService()
        self.payment_rail = payment_rail

    async def get_market(self, market_id: str) -> Market:
        market = await Market.get(parse_object_id(market_id, InvalidMarketId))
        if market is None:
            raise MarketNotFound()
        return market

    async def place_bet(
        self,
        market_id: str,
        outcome: Union[str, Outcome],
        stake: float,
        wallet_address: str,
        transaction_signature: str,
        tournament_id: Optional[str] = None,
        odds: Optional[float] = None,
        smart_contract_address: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PlacedBet:
        """
        Accept a bet and return it together with the updated market.

        Raises:
            MarketNotFound, MarketClosed, MarketUnavailable, InvalidOutcome,
            InvalidStake: checked in this order, before anything is written
            PaymentAlreadyRecorded: a bet already exists for this signature
            BetPersistenceFailed: stake was applied but the bet record was not
        """
        now = now or utc_now()

        market = await self.get_market(market_id)
        if market.has_closed_by(now):
            raise MarketClosed()
        if market.status != MarketStatus.OPEN:
            raise MarketUnavailable(market.status.value)

        chosen = parse_outcome(outcome)
        amount = parse_stake(stake)

        if odds is not None and not self.odds_engine.in_bounds(odds):
            raise InvalidOdds(
                f"Odds {odds} outside [{self.odds_engine.config.min_odds}, "
                f"{self.odds_engine.config.max_odds}]"
            )

        tournament = parse_object_id(tournament_id) if tournament_id else market.tournament_id

        if await Bet.find_one(Bet.transaction_signature == transaction_signature):
            raise PaymentAlreadyRecorded()

        await self._verify_payment(transaction_signature)

        user = await self.users.resolve_wallet_user(wallet_address)

        market = await self._apply_stake(market, chosen, amount, require_open=True)

        bet = Bet(
            user_id=user.id,
            market_id=market.id,
            tournament_id=tournament,
            outcome=chosen,
            stake=amount,
            odds=odds if odds is not None else market.odds_for(chosen),
            timestamp=now,
            transaction_signature=transaction_signature,
            smart_contract_address=smart_contract_address,
            payer_address=wallet_address,
        )

        try:
            await bet.insert()
        except DuplicateKeyError as e:
            await self._compensate(market, chosen, amount)
            raise PaymentAlreadyRecorded() from e
        except PyMongoError as e:
            logger.error(f"Failed to record bet for payment {transaction_signature}: {e}")
            compensated = await self._compensate(market, chosen, amount)
            incident_id = await self._open_incident(
                market, chosen, amount, wallet_address, transaction_signature, compensated, e
            )
            raise BetPersistenceFailed(transaction_signature, compensated, incident_id) from e

        logger.info(
            f"Placed bet {bet.id}: {chosen.value} {amount} @ {bet.odds} on market {market.id} "
            f"(odds now yes={market.yes_odds} no={market.no_odds})"
        )
        return PlacedBet(bet=bet, market=market)

    async def _verify_payment(self, transaction_signature: str) -> None:
        if not self.config.verify_payments or self.payment_rail is None:
            return
        try:
            confirmed = await self.payment_rail.is_confirmed(transaction_signature)
        except SolanaRPCError as e:
            raise PaymentRailError(str(e)) from e
        if not confirmed:
            raise PaymentNotConfirmed()

    async def _apply_stake(
        self,
        market: Market,
        outcome: Outcome,
        delta: float,
        require_open: bool,
    ) -> Market:
        """
        Add ``delta`` to one side and republish odds, as a compare-and-swap on
        both stake fields. Re-reads and retries when another bet got there first.
        """
        collection = Market.get_motor_collection()
        attempts = max(1, self.config.stake_update_attempts)

        for attempt in range(1, attempts + 1):
            yes_stake = market.yes_stake
            no_stake = market.no_stake
            if outcome == Outcome.YES:
                yes_stake = max(0.0, round(yes_stake + delta, STAKE_PRECISION))
            else:
                no_stake = max(0.0, round(no_stake + delta, STAKE_PRECISION))

            new_odds = self.odds_engine.compute(yes_stake, no_stake)
            updated_at = utc_now()

            query = {
                "_id": market.id,
                "yes_stake": market.yes_stake,
                "no_stake": market.no_stake,
            }
            if require_open:
                query["status"] = MarketStatus.OPEN.value

            result = await collection.update_one(
                query,
                {
                    "$set": {
                        "yes_stake": yes_stake,
                        "no_stake": no_stake,
                        "yes_odds": new_odds.yes,
                        "no_odds": new_odds.no,
                        "updated_at": updated_at,
                    }
                },
            )
            if result.matched_count == 1:
                market.yes_stake = yes_stake
                market.no_stake = no_stake
                market.yes_odds = new_odds.yes
                market.no_odds = new_odds.no
                market.updated_at = updated_at
                return market

            logger.debug(f"Stake update on market {market.id} lost a race (attempt {attempt})")
            market = await Market.get(market.id)
            if market is None:
                raise MarketNotFound()
            if require_open and market.status != MarketStatus.OPEN:
                raise MarketUnavailable(market.status.value)

        raise MarketUpdateConflict()

    async def _compensate(self, market: Market, outcome: Outcome, stake: float) -> bool:
        """Take a stake back out of the market. Returns False if that also failed."""
        try:
            await self._apply_stake(market, outcome, -stake, require_open=False)
        except (PyMongoError, MarketNotFound, MarketUpdateConflict) as e:
            logger.error(f"Stake compensation failed for market {market.id}: {e}")
            return False
        logger.warning(f"Reversed {stake} {outcome.value} stake on market {market.id}")
        return True

    async def _open_incident(
        self,
        market: Market,
        outcome: Outcome,
        stake: float,
        payer_address: str,
        transaction_signature: str,
        compensated: bool,
        error: Exception,
    ) -> Optional[str]:
        incident = LedgerIncident(
            market_id=market.id,
            outcome=outcome,
            stake=stake,
            payer_address=payer_address,
            transaction_signature=transaction_signature,
            stake_compensated=compensated,
            error=str(error),
        )
        try:
            await incident.insert()
        except PyMongoError as e:
            logger.critical(
                f"Could not record ledger incident for payment {transaction_signature}: {e}"
            )
            return None

        logger.error(
            f"Opened ledger incident {incident.id}: payment {transaction_signature} "
            f"received without a bet (stake compensated: {compensated})"
        )
        return str(incident.id)

    async def list_bets_for_wallet(self, wallet_address: str) -> list[tuple[Bet, Optional[Market]]]:
        """A wallet's bets, newest first, each with its market."""
        user = await self.users.find_by_wallet(wallet_address)
        if user is None:
            return []

        bets = await Bet.find(Bet.user_id == user.id).sort("-timestamp").to_list()
        market_ids = list({bet.market_id for bet in bets})
        markets = await Market.find({"_id": {"$in": market_ids}}).to_list() if market_ids else []
        by_id = {market.id: market for market in markets}
        return [(bet, by_id.get(bet.market_id)) for bet in bets]

    async def list_incidents(self, include_resolved: bool = False) -> list[LedgerIncident]:
        query = {} if include_resolved else {"resolved": False}
        return await LedgerIncident.find(query).sort("-created_at").to_list()
