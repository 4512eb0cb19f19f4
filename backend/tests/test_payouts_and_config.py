"""Payout triggers, payment rail helpers and configuration loading."""

import pytest
from solders.keypair import Keypair

from solspore.config import Settings, SettlementConfig
from solspore.container import build_payout_trigger
from solspore.models import Bet, Outcome
from solspore.services.payouts import EscrowPayoutTrigger, PayoutTriggerError, SimulatedPayoutTrigger
from solspore.services.solana import (
    InvalidAddressError,
    SolanaClient,
    TransferFailedError,
    TransferReceipt,
    lamports_to_sol,
    sol_to_lamports,
)
from solspore.services.solana.client import load_keypair, parse_pubkey


class RecordingRail:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.transfers = []

    async def transfer(self, payer, destination, amount_sol):
        if self.fail:
            raise TransferFailedError("blockhash expired")
        self.transfers.append((str(payer.pubkey()), destination, amount_sol))
        return TransferReceipt(
            signature="5escrowSig",
            source=str(payer.pubkey()),
            destination=destination,
            lamports=sol_to_lamports(amount_sol),
        )


def _bet(payer_address="PayerWallet111") -> Bet:
    return Bet.model_construct(
        outcome=Outcome.YES,
        stake=1.0,
        odds=2.0,
        transaction_signature="sig",
        smart_contract_address="Contract111",
        payer_address=payer_address,
    )


def test_lamport_conversion():
    assert sol_to_lamports(1.5) == 1_500_000_000
    assert sol_to_lamports(0.000000001) == 1
    assert lamports_to_sol(250_000_000) == 0.25


def test_address_parsing():
    keypair = Keypair()
    assert parse_pubkey(str(keypair.pubkey())) == keypair.pubkey()
    assert load_keypair(str(keypair)).pubkey() == keypair.pubkey()
    with pytest.raises(InvalidAddressError):
        parse_pubkey("definitely-not-base58!")


def test_client_must_be_opened():
    with pytest.raises(RuntimeError):
        SolanaClient().client


async def test_simulated_trigger_returns_reference(db):
    reference = await SimulatedPayoutTrigger().trigger(_bet(), 2.0)
    assert reference.startswith("sim_")


async def test_escrow_trigger_pays_the_payer(db):
    escrow = Keypair()
    rail = RecordingRail()

    signature = await EscrowPayoutTrigger(rail, escrow).trigger(_bet(), 2.0)

    assert signature == "5escrowSig"
    assert rail.transfers == [(str(escrow.pubkey()), "PayerWallet111", 2.0)]


async def test_escrow_trigger_failures(db):
    with pytest.raises(PayoutTriggerError):
        await EscrowPayoutTrigger(RecordingRail(fail=True), Keypair()).trigger(_bet(), 2.0)
    with pytest.raises(PayoutTriggerError):
        await EscrowPayoutTrigger(RecordingRail(), Keypair()).trigger(_bet(payer_address=None), 2.0)


def test_payout_mode_selects_trigger():
    simulated = Settings(_env_file=None)
    assert isinstance(build_payout_trigger(simulated, SolanaClient()), SimulatedPayoutTrigger)

    escrow_without_key = Settings(_env_file=None, settlement=SettlementConfig(payout_mode="escrow"))
    with pytest.raises(ValueError):
        build_payout_trigger(escrow_without_key, SolanaClient())


def test_yaml_overlay(tmp_path):
    (tmp_path / "config.yaml").write_text(
        "odds:\n  margin: 0.08\nsettlement:\n  max_attempts: 7\n",
        encoding="utf-8",
    )
    settings = Settings(_env_file=None, data_dir=tmp_path)
    settings.load_yaml_config()

    assert settings.odds.margin == 0.08
    assert settings.odds.max_odds == 10.00
    assert settings.settlement.max_attempts == 7
    assert settings.settlement.retry_delay_seconds == 1.0


def test_cors_origins_parsed():
    settings = Settings(_env_file=None, allowed_origins="http://a.test, http://b.test,")
    assert settings.cors_origins == ["http://a.test", "http://b.test"]
