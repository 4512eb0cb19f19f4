"""
Payout triggers invoked by settlement for winning bets.

Settlement records win/loss/payout regardless of what happens here; a failed
trigger is reported as a soft failure and left for manual reconciliation.
"""

import logging
import secrets
import time
from typing import Protocol

from solders.keypair import Keypair

from solspore.models import Bet
from solspore.services.solana import SolanaClient, SolanaRPCError

logger = logging.getLogger(__name__)


class PayoutTriggerError(Exception):
    """The payout could not be triggered."""

    pass


class PayoutTrigger(Protocol):
    async def trigger(self, bet: Bet, payout: float) -> str:
        """Start fund movement for a winning bet and return its reference."""
        ...


class SimulatedPayoutTrigger:
    """
    Stub trigger: no funds move. Returns a ``sim_`` reference so the ledger
    shows which bets would have been paid.
    """

    async def trigger(self, bet: Bet, payout: float) -> str:
        reference = f"sim_{int(time.time() * 1000)}_{secrets.token_hex(6)}"
        logger.info(
            f"Simulated payout of {payout} for bet {bet.id} "
            f"(contract {bet.smart_contract_address}): {reference}"
        )
        return reference


class EscrowPayoutTrigger:
    """Pays winners directly from the platform escrow wallet."""

    def __init__(self, client: SolanaClient, escrow: Keypair):
        self.client = client
        self.escrow = escrow

    async def trigger(self, bet: Bet, payout: float) -> str:
        if not bet.payer_address:
            raise PayoutTriggerError(f"Bet {bet.id} has no payer address to pay out to")
        try:
            receipt = await self.client.transfer(self.escrow, bet.payer_address, payout)
        except SolanaRPCError as e:
            raise PayoutTriggerError(str(e)) from e
        return receipt.signature
