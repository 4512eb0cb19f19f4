"""Tournament API routes. Reads are public; writes need an admin."""

from typing import Optional

from fastapi import APIRouter, Depends

from solspore.api.dependencies import get_admin_identity, get_container
from solspore.container import Container
from solspore.models import TournamentType
from solspore.schemas import (
    MarketCreate,
    MarketResponse,
    MessageResponse,
    TournamentCreate,
    TournamentDetailResponse,
    TournamentResponse,
    TournamentUpdate,
)
from solspore.services.auth import CallerIdentity

router = APIRouter(prefix="/tournaments", tags=["Tournaments"])


@router.get("", response_model=list[TournamentResponse])
async def list_tournaments(
    type: Optional[TournamentType] = None,
    container: Container = Depends(get_container),
):
    tournaments = await container.tournaments.list_tournaments(type)
    return [TournamentResponse.model_validate(t) for t in tournaments]


@router.get("/{tournament_id}", response_model=TournamentDetailResponse)
async def get_tournament(tournament_id: str, container: Container = Depends(get_container)):
    """Tournament with its markets."""
    tournament = await container.tournaments.get_tournament(tournament_id)
    markets = await container.tournaments.get_tournament_markets(tournament)
    return TournamentDetailResponse(
        **tournament.model_dump(exclude={"markets", "revision_id"}),
        markets=[MarketResponse.model_validate(m) for m in markets],
    )


@router.post("", response_model=TournamentResponse, status_code=201)
async def create_tournament(
    request: TournamentCreate,
    container: Container = Depends(get_container),
    admin: CallerIdentity = Depends(get_admin_identity),
):
    tournament = await container.tournaments.create_tournament(request)
    return TournamentResponse.model_validate(tournament)


@router.put("/{tournament_id}", response_model=TournamentResponse)
async def update_tournament(
    tournament_id: str,
    request: TournamentUpdate,
    container: Container = Depends(get_container),
    admin: CallerIdentity = Depends(get_admin_identity),
):
    tournament = await container.tournaments.update_tournament(tournament_id, request)
    return TournamentResponse.model_validate(tournament)


@router.delete("/{tournament_id}", response_model=MessageResponse)
async def delete_tournament(
    tournament_id: str,
    container: Container = Depends(get_container),
    admin: CallerIdentity = Depends(get_admin_identity),
):
    await container.tournaments.delete_tournament(tournament_id)
    return MessageResponse(message=f"Tournament {tournament_id} deleted")


@router.post("/{tournament_id}/markets", response_model=MarketResponse, status_code=201)
async def add_market(
    tournament_id: str,
    request: MarketCreate,
    container: Container = Depends(get_container),
    admin: CallerIdentity = Depends(get_admin_identity),
):
    """New market with zero stake and default odds."""
    market = await container.tournaments.add_market(tournament_id, request)
    return MarketResponse.model_validate(market)


@router.delete("/{tournament_id}/markets/{market_id}", response_model=MessageResponse)
async def remove_market(
    tournament_id: str,
    market_id: str,
    container: Container = Depends(get_container),
    admin: CallerIdentity = Depends(get_admin_identity),
):
    await container.tournaments.remove_market(tournament_id, market_id)
    return MessageResponse(message=f"Market {market_id} removed")
