"""API route modules."""

from solspore.api.routes.admin import router as admin_router
from solspore.api.routes.auth import router as auth_router
from solspore.api.routes.bets import router as bets_router
from solspore.api.routes.leaderboard import router as leaderboard_router
from solspore.api.routes.markets import router as markets_router
from solspore.api.routes.tournaments import router as tournaments_router
from solspore.api.routes.wallets import router as wallets_router

__all__ = [
    "admin_router",
    "auth_router",
    "bets_router",
    "leaderboard_router",
    "markets_router",
    "tournaments_router",
    "wallets_router",
]
