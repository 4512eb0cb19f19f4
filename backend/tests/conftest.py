"""Shared fixtures: in-memory MongoDB under Beanie, services, a fake payment rail."""

from datetime import timedelta
from typing import Optional

import httpx
import pytest
from beanie import PydanticObjectId
from mongomock_motor import AsyncMongoMockClient

from solspore.api import create_app
from solspore.config import LedgerConfig, Settings, SettlementConfig
from solspore.container import Container
from solspore.database import Database
from solspore.models import Bet, Market, MarketStatus, Outcome, UserRole
from solspore.services.bet_service import BetService
from solspore.services.odds import OddsEngine
from solspore.services.settlement_service import SettlementService
from solspore.services.solana import Balance
from solspore.utils.time_utils import to_naive_utc, utc_now


def minutes_from_now(minutes: float):
    """Store-format (naive UTC) timestamp relative to now."""
    return to_naive_utc(utc_now() + timedelta(minutes=minutes))


class FakePaymentRail:
    """Stands in for SolanaClient: fixed balances, configurable confirmation."""

    def __init__(self, confirmed: bool = True, lamports: int = 1_500_000_000):
        self.confirmed = confirmed
        self.lamports = lamports
        self.opened = False

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.opened = False

    async def get_balance(self, address: str) -> Balance:
        return Balance(address=address, lamports=self.lamports)

    async def is_confirmed(self, signature: str) -> bool:
        return self.confirmed


def make_settings(**overrides) -> Settings:
    defaults = dict(
        mongodb_database="solspore_test",
        settlement=SettlementConfig(
            max_attempts=3,
            retry_delay_seconds=0,
            db_connect_attempts=2,
            db_connect_delay_seconds=0,
        ),
    )
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


@pytest.fixture
async def db():
    client = AsyncMongoMockClient()
    database = Database("mongodb://localhost:27017", "solspore_test", client=client)
    await database.connect()
    yield database
    await database.close()


@pytest.fixture
def odds_engine():
    return OddsEngine()


@pytest.fixture
def bet_service(db, odds_engine):
    return BetService(odds_engine, LedgerConfig())


@pytest.fixture
def settlement_service(db):
    return SettlementService(
        SettlementConfig(
            max_attempts=3,
            retry_delay_seconds=0,
            db_connect_attempts=2,
            db_connect_delay_seconds=0,
        )
    )


@pytest.fixture
def make_market(db):
    async def _make(
        close_in_minutes: float = 60,
        status: MarketStatus = MarketStatus.OPEN,
        yes_stake: float = 0.0,
        no_stake: float = 0.0,
        **fields,
    ) -> Market:
        market = Market(
            question=fields.pop("question", "Will Team Liquid win the map?"),
            team_a=fields.pop("team_a", "Team Liquid"),
            team_b=fields.pop("team_b", "Fnatic"),
            close_time=minutes_from_now(close_in_minutes),
            status=status,
            yes_stake=yes_stake,
            no_stake=no_stake,
            **fields,
        )
        await market.insert()
        return market

    return _make


@pytest.fixture
def make_bet(db):
    counter = {"n": 0}

    async def _make(
        market: Market,
        outcome: Outcome,
        stake: float = 50.0,
        odds: float = 2.0,
        smart_contract_address: Optional[str] = None,
    ) -> Bet:
        counter["n"] += 1
        bet = Bet(
            user_id=PydanticObjectId(),
            market_id=market.id,
            outcome=outcome,
            stake=stake,
            odds=odds,
            transaction_signature=f"sig-{market.id}-{counter['n']}",
            smart_contract_address=smart_contract_address,
            payer_address=f"Wallet{counter['n']}",
        )
        await bet.insert()
        return bet

    return _make


@pytest.fixture
async def container():
    settings = make_settings()
    app_container = Container(
        settings,
        mongo_client=AsyncMongoMockClient(),
        payment_rail=FakePaymentRail(),
    )
    await app_container.startup()
    yield app_container
    await app_container.shutdown()


@pytest.fixture
async def api(container):
    app = create_app(container.settings, container)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers(container):
    async def _headers(role: UserRole = UserRole.ADMIN, username: str = "operator") -> dict:
        user = await container.users.create_user(
            username,
            f"{username}@solspore.com",
            "correct-horse-battery",
            role=role,
        )
        return {"Authorization": f"Bearer {container.tokens.issue(user)}"}

    return _headers
