"""Bet history API routes."""

from fastapi import APIRouter, Depends, Query

from solspore.api.dependencies import get_container
from solspore.container import Container
from solspore.schemas import BetResponse, BetWithMarket, MarketResponse

router = APIRouter(prefix="/bets", tags=["Bets"])


@router.get("", response_model=list[BetWithMarket])
async def list_wallet_bets(
    wallet_address: str = Query(min_length=1),
    container: Container = Depends(get_container),
):
    """A wallet's bets, newest first, with market context."""
    rows = await container.bets.list_bets_for_wallet(wallet_address)
    return [
        BetWithMarket(
            **BetResponse.model_validate(bet).model_dump(),
            market=MarketResponse.model_validate(market) if market else None,
        )
        for bet, market in rows
    ]
