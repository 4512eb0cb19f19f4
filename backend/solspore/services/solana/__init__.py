from .client import SolanaClient
from .config import SolanaConfig
from .exceptions import InvalidAddressError, SolanaRPCError, TransferFailedError
from .models import (
    LAMPORTS_PER_SOL,
    Balance,
    TransferReceipt,
    lamports_to_sol,
    sol_to_lamports,
)

__all__ = [
    "SolanaClient",
    "SolanaConfig",
    "SolanaRPCError",
    "InvalidAddressError",
    "TransferFailedError",
    "Balance",
    "TransferReceipt",
    "LAMPORTS_PER_SOL",
    "lamports_to_sol",
    "sol_to_lamports",
]
