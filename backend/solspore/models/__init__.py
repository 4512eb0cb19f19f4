"""
MongoDB ODM Models Package

Collections:
- markets: binary wager propositions with stake and odds
- bets: ledger of accepted wagers
- tournaments: groupings of markets
- users: credentialed accounts and wallet-only guests
- settlements: per-market settlement records
- ledger_incidents: payments received without a recorded bet
"""

from typing import List, Type

from beanie import Document

from solspore.models.bet import Bet, BetResult, BetStatus
from solspore.models.market import DEFAULT_ODDS, Market, MarketStatus, Outcome
from solspore.models.settlement import LedgerIncident, Settlement
from solspore.models.tournament import Tournament, TournamentType
from solspore.models.user import User, UserRole


def get_document_models() -> List[Type[Document]]:
    """Document models registered with Beanie at startup."""
    return [Market, Bet, Tournament, User, Settlement, LedgerIncident]


__all__ = [
    "Bet",
    "BetResult",
    "BetStatus",
    "DEFAULT_ODDS",
    "LedgerIncident",
    "Market",
    "MarketStatus",
    "Outcome",
    "Settlement",
    "Tournament",
    "TournamentType",
    "User",
    "UserRole",
    "get_document_models",
]
