"""Market API routes."""

from fastapi import APIRouter, Depends

from solspore.api.dependencies import get_container
from solspore.container import Container
from solspore.schemas import BetCreate, BetPlacementResponse, BetResponse, MarketOdds, MarketResponse

router = APIRouter(prefix="/markets", tags=["Markets"])


@router.get("/{market_id}", response_model=MarketResponse)
async def get_market(market_id: str, container: Container = Depends(get_container)):
    """Current odds, stakes and status."""
    market = await container.bets.get_market(market_id)
    return MarketResponse.model_validate(market)


@router.post("/{market_id}/bet", response_model=BetPlacementResponse, status_code=201)
async def place_bet(
    market_id: str,
    request: BetCreate,
    container: Container = Depends(get_container),
):
    """
    Record a bet paid by ``transaction_signature``.

    Anonymous: the wallet address identifies the bettor and a guest account is
    created on first use.
    """
    placed = await container.bets.place_bet(
        market_id=market_id,
        outcome=request.outcome,
        stake=request.amount,
        wallet_address=request.wallet_address,
        transaction_signature=request.transaction_signature,
        tournament_id=request.tournament_id,
        odds=request.odds,
        smart_contract_address=request.smart_contract_address,
    )
    return BetPlacementResponse(
        bet=BetResponse.model_validate(placed.bet),
        market=MarketOdds.model_validate(placed.market),
    )
