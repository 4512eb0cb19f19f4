"""Payment rail API routes."""

from fastapi import APIRouter, Depends

from solspore.api.dependencies import get_container
from solspore.container import Container
from solspore.exceptions import InvalidRequest, PaymentRailError
from solspore.schemas import BalanceResponse
from solspore.services.solana import InvalidAddressError, SolanaRPCError

router = APIRouter(prefix="/wallets", tags=["Wallets"])


@router.get("/{address}/balance", response_model=BalanceResponse)
async def get_balance(address: str, container: Container = Depends(get_container)):
    try:
        balance = await container.payment_rail.get_balance(address)
    except InvalidAddressError as e:
        raise InvalidRequest(str(e)) from e
    except SolanaRPCError as e:
        raise PaymentRailError(str(e)) from e
    return BalanceResponse(address=balance.address, lamports=balance.lamports, sol=balance.sol)
