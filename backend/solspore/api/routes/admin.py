"""Admin API routes."""

import logging

from fastapi import APIRouter, Depends, Query

from solspore.api.dependencies import get_admin_identity, get_container
from solspore.container import Container
from solspore.exceptions import InvalidMarketId
from solspore.schemas import (
    AdminStats,
    LedgerIncidentResponse,
    ManualSettleRequest,
    MarketSettlementResult,
    SettlementSummary,
    UserResponse,
    UserUpdate,
)
from solspore.services.auth import CallerIdentity
from solspore.services.bet_service import parse_outcome
from solspore.utils.ids import parse_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/stats", response_model=AdminStats)
async def get_stats(
    container: Container = Depends(get_container),
    admin: CallerIdentity = Depends(get_admin_identity),
):
    return await container.leaderboard.get_admin_stats()


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    limit: int = Query(default=50, ge=1, le=200),
    skip: int = Query(default=0, ge=0),
    container: Container = Depends(get_container),
    admin: CallerIdentity = Depends(get_admin_identity),
):
    users = await container.users.list_users(limit=limit, skip=skip)
    return [UserResponse.model_validate(u) for u in users]


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    request: UserUpdate,
    container: Container = Depends(get_container),
    admin: CallerIdentity = Depends(get_admin_identity),
):
    user = await container.users.update_user(
        user_id,
        role=request.role,
        email=request.email,
        profile_image=request.profile_image,
    )
    logger.info(f"Admin {admin.username or admin.id} updated user {user_id}")
    return UserResponse.model_validate(user)


@router.post("/settlements/run", response_model=SettlementSummary)
async def run_settlement(
    container: Container = Depends(get_container),
    admin: CallerIdentity = Depends(get_admin_identity),
):
    """Run one settlement sweep now. Partial failures are in the summary."""
    logger.info(f"Admin {admin.username or admin.id} triggered a settlement sweep")
    return await container.settlement.settle_expired_markets()


@router.post("/markets/{market_id}/settle", response_model=MarketSettlementResult)
async def settle_market(
    market_id: str,
    request: ManualSettleRequest,
    container: Container = Depends(get_container),
    admin: CallerIdentity = Depends(get_admin_identity),
):
    """Settle one market with an explicit outcome (re-running returns the recorded reference)."""
    market_oid = parse_object_id(market_id, InvalidMarketId)
    outcome = parse_outcome(request.outcome)
    logger.info(f"Admin {admin.username or admin.id} settling market {market_id} as {outcome.value}")
    return await container.settlement.close_and_settle(market_oid, outcome)


@router.get("/incidents", response_model=list[LedgerIncidentResponse])
async def list_incidents(
    include_resolved: bool = False,
    container: Container = Depends(get_container),
    admin: CallerIdentity = Depends(get_admin_identity),
):
    """Payments received without a recorded bet."""
    incidents = await container.bets.list_incidents(include_resolved=include_resolved)
    return [LedgerIncidentResponse.model_validate(i) for i in incidents]
