"""Tournament and market administration."""

import logging
from datetime import datetime
from typing import Optional

from solspore.exceptions import (
    InvalidMarketId,
    InvalidRequest,
    MarketNotFound,
    StateConflict,
    TournamentNotFound,
)
from solspore.models import Bet, Market, Tournament, TournamentType
from solspore.schemas.market import MarketCreate
from solspore.schemas.tournament import TournamentCreate, TournamentUpdate
from solspore.services.odds import OddsEngine
from solspore.utils.ids import parse_object_id
from solspore.utils.time_utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class TournamentService:
    """
    CRUD over tournaments and the markets they group.
    """

    def __init__(self, odds_engine: OddsEngine):
        self.odds_engine = odds_engine

    async def list_tournaments(self, type: Optional[TournamentType] = None) -> list[Tournament]:
        query = Tournament.find(Tournament.type == type) if type else Tournament.find_all()
        return await query.sort("start_date").to_list()

    async def get_tournament(self, tournament_id: str) -> Tournament:
        tournament = await Tournament.get(parse_object_id(tournament_id))
        if tournament is None:
            raise TournamentNotFound()
        return tournament

    async def get_tournament_markets(self, tournament: Tournament) -> list[Market]:
        if not tournament.markets:
            return []
        return await Market.find({"_id": {"$in": tournament.markets}}).sort("close_time").to_list()

    async def create_tournament(self, data: TournamentCreate) -> Tournament:
        tournament = Tournament(**data.model_dump())
        await tournament.insert()
        logger.info(f"Created tournament {tournament.id}: {tournament.name}")
        return tournament

    async def update_tournament(self, tournament_id: str, data: TournamentUpdate) -> Tournament:
        tournament = await self.get_tournament(tournament_id)

        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(tournament, field, value)

        if ensure_utc(tournament.end_date) < ensure_utc(tournament.start_date):
            raise InvalidRequest("end_date must not be before start_date")

        await tournament.save()
        logger.info(f"Updated tournament {tournament.id}")
        return tournament

    async def delete_tournament(self, tournament_id: str) -> None:
        """Delete a tournament and its markets. Refused once any bet exists."""
        tournament = await self.get_tournament(tournament_id)

        if tournament.markets and await Bet.find({"market_id": {"$in": tournament.markets}}).count():
            raise StateConflict("Tournament has markets with bets and cannot be deleted")

        if tournament.markets:
            await Market.find({"_id": {"$in": tournament.markets}}).delete()
        await tournament.delete()
        logger.info(f"Deleted tournament {tournament_id} and {len(tournament.markets)} market(s)")

    async def add_market(
        self,
        tournament_id: str,
        data: MarketCreate,
        now: Optional[datetime] = None,
    ) -> Market:
        """New markets start with zero stake and default odds."""
        tournament = await self.get_tournament(tournament_id)
        now = now or utc_now()

        if ensure_utc(data.close_time) <= ensure_utc(now):
            raise InvalidRequest("close_time must be in the future")

        odds = self.odds_engine.default_odds()
        market = Market(
            question=data.question,
            team_a=data.team_a,
            team_b=data.team_b,
            close_time=ensure_utc(data.close_time),
            yes_odds=odds.yes,
            no_odds=odds.no,
            tournament_id=tournament.id,
        )
        await market.insert()

        tournament.markets.append(market.id)
        await tournament.save()

        logger.info(f"Added market {market.id} to tournament {tournament.id}: {market.question}")
        return market

    async def remove_market(self, tournament_id: str, market_id: str) -> None:
        tournament = await self.get_tournament(tournament_id)
        market_oid = parse_object_id(market_id, InvalidMarketId)

        if market_oid not in tournament.markets:
            raise MarketNotFound()
        if await Bet.find(Bet.market_id == market_oid).count():
            raise StateConflict("Market has bets and cannot be deleted")

        market = await Market.get(market_oid)
        if market is not None:
            await market.delete()

        tournament.markets = [m for m in tournament.markets if m != market_oid]
        await tournament.save()
        logger.info(f"Removed market {market_id} from tournament {tournament_id}")
