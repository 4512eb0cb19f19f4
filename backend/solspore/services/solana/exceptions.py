"""Custom exceptions for the Solana payment rail."""


class SolanaRPCError(Exception):
    """Base exception for Solana RPC failures."""

    def __init__(self, message: str, signature: str | None = None):
        super().__init__(message)
        self.signature = signature


class InvalidAddressError(SolanaRPCError):
    """Address or signature is not valid base58 of the right length."""

    pass


class TransferFailedError(SolanaRPCError):
    """A transfer was rejected or did not confirm."""

    pass
