"""Leaderboard API routes."""

from fastapi import APIRouter, Depends, Query

from solspore.api.dependencies import get_container
from solspore.container import Container
from solspore.schemas import LeaderboardEntry, PaginatedResponse

router = APIRouter(prefix="/leaderboard", tags=["Leaderboard"])


@router.get("", response_model=PaginatedResponse[LeaderboardEntry])
async def get_leaderboard(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    container: Container = Depends(get_container),
):
    """Wallet users ranked by settled winnings."""
    entries, total = await container.leaderboard.get_leaderboard(page=page, limit=limit)
    return PaginatedResponse[LeaderboardEntry].build(entries, total, page=page, page_size=limit)
