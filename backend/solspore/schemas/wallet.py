"""Payment rail schemas."""

from pydantic import BaseModel


class BalanceResponse(BaseModel):
    address: str
    lamports: int
    sol: float
