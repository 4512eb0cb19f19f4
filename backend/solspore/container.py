"""
Explicit construction and teardown of every collaborator.

One Container per process: built from Settings, started once, closed at
shutdown. Nothing here is a module-level global.
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient

from solspore.config import Settings
from solspore.database import Database
from solspore.services.auth import TokenService
from solspore.services.bet_service import BetService
from solspore.services.leaderboard_service import LeaderboardService
from solspore.services.odds import OddsEngine
from solspore.services.outcomes import OutcomeResolver, StakeWeightedOutcomeResolver
from solspore.services.payouts import EscrowPayoutTrigger, PayoutTrigger, SimulatedPayoutTrigger
from solspore.services.settlement_service import SettlementService
from solspore.services.solana import SolanaClient
from solspore.services.solana.client import load_keypair
from solspore.services.tournament_service import TournamentService
from solspore.services.user_service import UserService

logger = logging.getLogger(__name__)


def build_payout_trigger(settings: Settings, payment_rail: SolanaClient) -> PayoutTrigger:
    if settings.settlement.payout_mode == "escrow":
        if not settings.solana.escrow_secret_key:
            raise ValueError("settlement.payout_mode=escrow requires solana.escrow_secret_key")
        return EscrowPayoutTrigger(payment_rail, load_keypair(settings.solana.escrow_secret_key))
    return SimulatedPayoutTrigger()


class Container:
    """Holds the database, payment rail and services for one process."""

    def __init__(
        self,
        settings: Settings,
        mongo_client: Optional[AsyncIOMotorClient] = None,
        payment_rail: Optional[SolanaClient] = None,
        outcome_resolver: Optional[OutcomeResolver] = None,
        payout_trigger: Optional[PayoutTrigger] = None,
    ):
        self.settings = settings
        self.database = Database(settings.mongodb_url, settings.mongodb_database, client=mongo_client)
        self.payment_rail = payment_rail or SolanaClient(settings.solana)

        self.odds_engine = OddsEngine(settings.odds)
        self.tokens = TokenService(settings.auth)
        self.users = UserService()
        self.bets = BetService(
            self.odds_engine,
            settings.ledger,
            users=self.users,
            payment_rail=self.payment_rail,
        )
        self.tournaments = TournamentService(self.odds_engine)
        self.leaderboard = LeaderboardService()
        self.settlement = SettlementService(
            settings.settlement,
            outcome_resolver=outcome_resolver or StakeWeightedOutcomeResolver(),
            payout_trigger=payout_trigger or build_payout_trigger(settings, self.payment_rail),
        )

    async def startup(self) -> None:
        await self.database.connect()
        await self.payment_rail.open()
        logger.info(f"✓ Container started ({self.settings.environment})")

    async def shutdown(self) -> None:
        await self.payment_rail.close()
        await self.database.close()
        logger.info("✓ Container stopped")

    async def __aenter__(self) -> "Container":
        await self.startup()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()
