from pydantic import BaseModel


class SolanaConfig(BaseModel):
    """Configuration for the Solana payment rail client."""

    rpc_url: str = "https://api.devnet.solana.com"
    commitment: str = "confirmed"
    timeout_seconds: float = 30.0
    escrow_address: str = ""
    escrow_secret_key: str = ""  # base58; only needed for escrow payouts

    @property
    def is_devnet(self) -> bool:
        return "devnet" in self.rpc_url
