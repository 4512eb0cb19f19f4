from __future__ import annotations

import logging
from typing import Any

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException, UnconfirmedTxError
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

from .config import SolanaConfig
from .exceptions import InvalidAddressError, SolanaRPCError, TransferFailedError
from .models import Balance, TransferReceipt, sol_to_lamports

logger = logging.getLogger(__name__)


def parse_pubkey(address: str) -> Pubkey:
    try:
        return Pubkey.from_string(address)
    except ValueError as e:
        raise InvalidAddressError(f"Invalid Solana address: {address!r}") from e


def parse_signature(signature: str) -> Signature:
    try:
        return Signature.from_string(signature)
    except ValueError as e:
        raise InvalidAddressError(f"Invalid transaction signature: {signature!r}") from e


def load_keypair(secret: str) -> Keypair:
    """Load a keypair from its base58-encoded 64-byte secret."""
    try:
        return Keypair.from_base58_string(secret)
    except ValueError as e:
        raise InvalidAddressError("Invalid base58 keypair secret") from e


class SolanaClient:
    """
    Payment rail over Solana JSON-RPC: balances, SOL transfers and
    confirmation checks for wallet-initiated payments.
    """

    def __init__(self, config: SolanaConfig | None = None):
        self.config = config or SolanaConfig()
        self._client: AsyncClient | None = None
        logger.info(f"Initialized SolanaClient (rpc={self.config.rpc_url})")

    async def open(self) -> None:
        if self._client is None:
            self._client = AsyncClient(
                self.config.rpc_url,
                commitment=self._commitment,
                timeout=self.config.timeout_seconds,
            )

    async def close(self) -> None:
        if self._client:
            await self._client.close()
            self._client = None
            logger.info("Closed SolanaClient")

    async def __aenter__(self) -> SolanaClient:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        await self.close()

    @property
    def client(self) -> AsyncClient:
        if self._client is None:
            raise RuntimeError("SolanaClient must be opened before use")
        return self._client

    @property
    def _commitment(self) -> Commitment:
        return Commitment(self.config.commitment)

    async def get_balance(self, address: str) -> Balance:
        pubkey = parse_pubkey(address)
        try:
            resp = await self.client.get_balance(pubkey, commitment=self._commitment)
        except (SolanaRpcException, RPCException) as e:
            raise SolanaRPCError(f"get_balance failed for {address}: {e}") from e
        return Balance(address=address, lamports=resp.value)

    async def transfer(
        self,
        payer: Keypair,
        destination: str,
        amount_sol: float,
    ) -> TransferReceipt:
        """Transfer SOL from ``payer`` and wait for confirmation."""
        lamports = sol_to_lamports(amount_sol)
        if lamports <= 0:
            raise TransferFailedError(f"Transfer amount must be positive: {amount_sol}")

        to_pubkey = parse_pubkey(destination)
        instruction = transfer(
            TransferParams(
                from_pubkey=payer.pubkey(),
                to_pubkey=to_pubkey,
                lamports=lamports,
            )
        )

        try:
            blockhash_resp = await self.client.get_latest_blockhash(commitment=self._commitment)
            blockhash = blockhash_resp.value.blockhash
            message = Message.new_with_blockhash([instruction], payer.pubkey(), blockhash)
            tx = Transaction([payer], message, blockhash)

            send_resp = await self.client.send_transaction(tx)
            signature = send_resp.value
            await self.client.confirm_transaction(signature, commitment=self._commitment)
        except UnconfirmedTxError as e:
            raise TransferFailedError(f"Transfer did not confirm: {e}") from e
        except (SolanaRpcException, RPCException) as e:
            raise TransferFailedError(f"Transfer to {destination} failed: {e}") from e

        logger.info(f"Transferred {lamports} lamports {payer.pubkey()} -> {destination}: {signature}")
        return TransferReceipt(
            signature=str(signature),
            source=str(payer.pubkey()),
            destination=destination,
            lamports=lamports,
        )

    async def is_confirmed(self, signature: str) -> bool:
        """True when the transaction landed without error at the configured commitment."""
        sig = parse_signature(signature)
        try:
            resp = await self.client.get_signature_statuses([sig], search_transaction_history=True)
        except (SolanaRpcException, RPCException) as e:
            raise SolanaRPCError(f"Signature status lookup failed: {e}", signature=signature) from e

        status = resp.value[0]
        if status is None or status.err is not None:
            return False
        return status.confirmation_status is not None
