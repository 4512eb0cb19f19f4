"""Leaderboard rankings and admin dashboard statistics."""

import logging

from solspore.models import (
    Bet,
    BetResult,
    BetStatus,
    LedgerIncident,
    Market,
    MarketStatus,
    Tournament,
    User,
)
from solspore.schemas.settlement import AdminStats
from solspore.schemas.user import LeaderboardEntry

logger = logging.getLogger(__name__)


class LeaderboardService:
    """
    Rankings by settled winnings, plus aggregate counts for the admin dashboard.
    """

    async def get_leaderboard(self, page: int = 1, limit: int = 20) -> tuple[list[LeaderboardEntry], int]:
        """
        Wallet users ranked by total payout across their settled bets.

        Returns:
            (entries for the page, total ranked users)
        """
        page = max(1, page)
        limit = max(1, min(limit, 100))

        pipeline = [
            {"$match": {"status": BetStatus.SETTLED.value}},
            {
                "$group": {
                    "_id": "$user_id",
                    "total_winnings": {"$sum": {"$ifNull": ["$payout", 0]}},
                    "bets_won": {
                        "$sum": {"$cond": [{"$eq": ["$result", BetResult.WIN.value]}, 1, 0]}
                    },
                    "bets_total": {"$sum": 1},
                }
            },
            {"$sort": {"total_winnings": -1, "bets_won": -1}},
        ]
        rows = await Bet.aggregate(pipeline).to_list()

        users = await User.find(
            {"_id": {"$in": [row["_id"] for row in rows]}, "wallet_address": {"$ne": None}}
        ).to_list()
        by_id = {user.id: user for user in users}
        ranked = [(row, by_id[row["_id"]]) for row in rows if row["_id"] in by_id]

        start = (page - 1) * limit
        entries = [
            LeaderboardEntry(
                rank=rank,
                user_id=user.id,
                username=user.username,
                wallet_address=user.wallet_address,
                profile_image=user.profile_image,
                total_winnings=round(row["total_winnings"], 9),
                bets_won=row["bets_won"],
                bets_total=row["bets_total"],
            )
            for rank, (row, user) in enumerate(ranked[start : start + limit], start + 1)
        ]
        return entries, len(ranked)

    async def get_admin_stats(self) -> AdminStats:
        markets = await Market.find_all().to_list()
        settled_bets = await Bet.find(Bet.status == BetStatus.SETTLED).to_list()

        return AdminStats(
            users=await User.count(),
            tournaments=await Tournament.count(),
            markets_open=sum(1 for m in markets if m.status == MarketStatus.OPEN),
            markets_closed=sum(1 for m in markets if m.status == MarketStatus.CLOSED),
            markets_settled=sum(1 for m in markets if m.status == MarketStatus.SETTLED),
            bets_total=await Bet.count(),
            bets_active=await Bet.find(Bet.status == BetStatus.ACTIVE).count(),
            total_staked=round(sum(m.total_stake for m in markets), 9),
            total_paid_out=round(sum(b.payout or 0.0 for b in settled_bets), 9),
            open_incidents=await LedgerIncident.find(LedgerIncident.resolved == False).count(),  # noqa: E712
        )


leaderboard_service = LeaderboardService()
