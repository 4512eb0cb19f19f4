"""Bet ledger tests: acceptance order, stake accounting, compensation."""

import asyncio
import math

import pytest
from pymongo.errors import AutoReconnect

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
)
from solspore.models import Bet, BetStatus, LedgerIncident, Market, MarketStatus, Outcome, User
from solspore.services.bet_service import BetService

from conftest import FakePaymentRail

WALLET = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"


async def _reload(market: Market) -> Market:
    return await Market.get(market.id)


async def test_stake_and_odds_follow_each_bet(bet_service, make_market):
    market = await make_market()
    assert (market.yes_odds, market.no_odds) == (2.0, 2.0)

    first = await bet_service.place_bet(str(market.id), "yes", 100, WALLET, "sig-a")
    assert first.market.yes_stake == 100
    assert first.market.no_stake == 0
    assert (first.market.yes_odds, first.market.no_odds) == (1.10, 10.00)
    assert first.bet.odds == 1.10
    assert first.bet.status == BetStatus.ACTIVE

    second = await bet_service.place_bet(str(market.id), "no", 100, "OtherWallet111", "sig-b")
    assert (second.market.yes_odds, second.market.no_odds) == (1.9, 1.9)
    assert second.bet.odds == 1.9

    stored = await _reload(market)
    assert (stored.yes_stake, stored.no_stake) == (100, 100)
    assert (stored.yes_odds, stored.no_odds) == (1.9, 1.9)
    assert await Bet.find(Bet.market_id == market.id).count() == 2


async def test_caller_supplied_odds_are_locked_in(bet_service, make_market):
    market = await make_market()
    placed = await bet_service.place_bet(str(market.id), "yes", 5, WALLET, "sig-odds", odds=2.5)
    assert placed.bet.odds == 2.5
    assert placed.market.yes_odds == 1.10


async def test_first_bet_creates_guest_user_once(bet_service, make_market):
    market = await make_market()
    await bet_service.place_bet(str(market.id), "yes", 1, WALLET, "sig-1")
    await bet_service.place_bet(str(market.id), "no", 2, WALLET, "sig-2")

    users = await User.find(User.wallet_address == WALLET).to_list()
    assert len(users) == 1
    assert users[0].username == f"guest_{WALLET[:8]}"
    assert users[0].email == f"guest_{WALLET[:8]}@solspore.com"


async def test_guest_name_collision_falls_back_to_full_address(bet_service, make_market):
    market = await make_market()
    await bet_service.place_bet(str(market.id), "yes", 1, "AAAAAAAA1111", "sig-1")
    await bet_service.place_bet(str(market.id), "yes", 1, "AAAAAAAA2222", "sig-2")

    second = await User.find_one(User.wallet_address == "AAAAAAAA2222")
    assert second.username == "guest_AAAAAAAA2222"


async def test_closed_market_rejected_without_mutation(bet_service, make_market):
    market = await make_market(close_in_minutes=-5)

    with pytest.raises(MarketClosed):
        await bet_service.place_bet(str(market.id), "yes", 10, WALLET, "sig-late")

    stored = await _reload(market)
    assert (stored.yes_stake, stored.no_stake) == (0, 0)
    assert await Bet.count() == 0


async def test_close_time_checked_before_outcome(bet_service, make_market):
    market = await make_market(close_in_minutes=-5)
    with pytest.raises(MarketClosed):
        await bet_service.place_bet(str(market.id), "draw", -1, WALLET, "sig-x")


async def test_non_open_market_reports_status(bet_service, make_market):
    market = await make_market(status=MarketStatus.CLOSED)

    with pytest.raises(MarketUnavailable) as excinfo:
        await bet_service.place_bet(str(market.id), "yes", 10, WALLET, "sig-x")

    assert excinfo.value.status == "closed"
    assert excinfo.value.to_dict()["status"] == "closed"


async def test_invalid_outcome_rejected_without_mutation(bet_service, make_market):
    market = await make_market()

    with pytest.raises(InvalidOutcome):
        await bet_service.place_bet(str(market.id), "draw", 10, WALLET, "sig-x")

    stored = await _reload(market)
    assert (stored.yes_stake, stored.no_stake) == (0, 0)
    assert await User.count() == 0


@pytest.mark.parametrize("stake", [0, -5, math.nan, math.inf, "ten", None, True])
async def test_invalid_stake_rejected(bet_service, make_market, stake):
    market = await make_market()
    with pytest.raises(InvalidStake):
        await bet_service.place_bet(str(market.id), "yes", stake, WALLET, "sig-x")
    assert (await _reload(market)).yes_stake == 0


async def test_unknown_and_malformed_market_ids(bet_service, db):
    with pytest.raises(MarketNotFound):
        await bet_service.place_bet("65f1c0ffee0000000000abcd", "yes", 1, WALLET, "sig-x")
    with pytest.raises(InvalidMarketId):
        await bet_service.place_bet("not-an-id", "yes", 1, WALLET, "sig-x")


async def test_out_of_bounds_caller_odds_rejected(bet_service, make_market):
    market = await make_market()
    with pytest.raises(InvalidOdds):
        await bet_service.place_bet(str(market.id), "yes", 1, WALLET, "sig-x", odds=25.0)
    assert (await _reload(market)).yes_stake == 0


async def test_payment_recorded_only_once(bet_service, make_market):
    market = await make_market()
    await bet_service.place_bet(str(market.id), "yes", 10, WALLET, "sig-dup")

    with pytest.raises(PaymentAlreadyRecorded):
        await bet_service.place_bet(str(market.id), "yes", 10, WALLET, "sig-dup")

    assert (await _reload(market)).yes_stake == 10


async def test_failed_bet_write_reverses_stake_and_opens_incident(
    bet_service, make_market, monkeypatch
):
    market = await make_market()
    await bet_service.place_bet(str(market.id), "no", 40, "EarlyBird111", "sig-early")

    async def failing_insert(self, *args, **kwargs):
        raise AutoReconnect("connection reset")

    monkeypatch.setattr(Bet, "insert", failing_insert)

    with pytest.raises(BetPersistenceFailed) as excinfo:
        await bet_service.place_bet(str(market.id), "yes", 25, WALLET, "sig-lost")

    error = excinfo.value
    assert error.transaction_signature == "sig-lost"
    assert error.compensated is True
    assert error.incident_id is not None

    stored = await _reload(market)
    assert (stored.yes_stake, stored.no_stake) == (0, 40)
    assert (stored.yes_odds, stored.no_odds) == (10.00, 1.10)

    incident = await LedgerIncident.find_one(LedgerIncident.transaction_signature == "sig-lost")
    assert incident.stake == 25
    assert incident.outcome == Outcome.YES
    assert incident.stake_compensated is True
    assert incident.resolved is False
    assert incident.payer_address == WALLET


async def test_compensation_restores_default_odds_on_empty_market(
    bet_service, make_market, monkeypatch
):
    market = await make_market()

    async def failing_insert(self, *args, **kwargs):
        raise AutoReconnect("connection reset")

    monkeypatch.setattr(Bet, "insert", failing_insert)

    with pytest.raises(BetPersistenceFailed):
        await bet_service.place_bet(str(market.id), "yes", 25, WALLET, "sig-lost")

    stored = await _reload(market)
    assert (stored.yes_stake, stored.no_stake) == (0, 0)
    assert (stored.yes_odds, stored.no_odds) == (2.0, 2.0)


async def test_stale_snapshot_is_reread_before_writing(bet_service, make_market):
    market = await make_market()
    stale = await _reload(market)

    await bet_service.place_bet(str(market.id), "yes", 50, WALLET, "sig-1")
    updated = await bet_service._apply_stake(stale, Outcome.NO, 30, require_open=True)

    assert (updated.yes_stake, updated.no_stake) == (50, 30)
    stored = await _reload(market)
    assert (stored.yes_stake, stored.no_stake) == (50, 30)


async def test_stake_update_gives_up_after_configured_attempts(odds_engine, make_market):
    service = BetService(odds_engine, LedgerConfig(stake_update_attempts=1))
    market = await make_market()
    stale = await _reload(market)

    await service.place_bet(str(market.id), "yes", 50, WALLET, "sig-1")

    with pytest.raises(MarketUpdateConflict):
        await service._apply_stake(stale, Outcome.NO, 30, require_open=True)
    assert (await _reload(market)).no_stake == 0


async def test_concurrent_bets_are_all_counted(bet_service, make_market):
    market = await make_market()

    await asyncio.gather(
        *(
            bet_service.place_bet(str(market.id), "yes", 10, f"{i}Wallet000xx", f"sig-{i}")
            for i in range(5)
        )
    )

    stored = await _reload(market)
    assert stored.yes_stake == 50
    assert await Bet.find(Bet.market_id == market.id).count() == 5


async def test_unconfirmed_payment_rejected_when_verification_enabled(odds_engine, make_market):
    service = BetService(
        odds_engine,
        LedgerConfig(verify_payments=True),
        payment_rail=FakePaymentRail(confirmed=False),
    )
    market = await make_market()

    with pytest.raises(PaymentNotConfirmed):
        await service.place_bet(str(market.id), "yes", 10, WALLET, "sig-unconfirmed")
    assert (await _reload(market)).yes_stake == 0


async def test_wallet_history_includes_market(bet_service, make_market):
    market = await make_market()
    await bet_service.place_bet(str(market.id), "yes", 3, WALLET, "sig-1")

    rows = await bet_service.list_bets_for_wallet(WALLET)
    assert len(rows) == 1
    bet, bet_market = rows[0]
    assert bet.stake == 3
    assert bet_market.id == market.id

    assert await bet_service.list_bets_for_wallet("UnknownWallet") == []
