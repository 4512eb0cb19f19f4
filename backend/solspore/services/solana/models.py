from __future__ import annotations

from pydantic import BaseModel

LAMPORTS_PER_SOL = 1_000_000_000


def sol_to_lamports(amount: float) -> int:
    return int(round(amount * LAMPORTS_PER_SOL))


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL


class Balance(BaseModel):
    address: str
    lamports: int

    @property
    def sol(self) -> float:
        return lamports_to_sol(self.lamports)


class TransferReceipt(BaseModel):
    signature: str
    source: str
    destination: str
    lamports: int

    @property
    def sol(self) -> float:
        return lamports_to_sol(self.lamports)
