"""
Outcome determination for expired markets.

There is no match-result feed yet. The stake-weighted resolver below is a
placeholder: the side with more money wins (ties go to yes), which bettors could
steer by outstaking the other side. Replace it with a result-feed resolver before
real funds are involved.
"""

import logging
from typing import Protocol

from solspore.models import Market, Outcome

logger = logging.getLogger(__name__)


class OutcomeResolver(Protocol):
    async def resolve(self, market: Market) -> Outcome:
        ...


class StakeWeightedOutcomeResolver:
    """Winning side is whichever side holds at least as much stake as the other."""

    async def resolve(self, market: Market) -> Outcome:
        outcome = Outcome.YES if market.yes_stake >= market.no_stake else Outcome.NO
        logger.warning(
            f"Market {market.id} resolved by stake weighting (placeholder policy): "
            f"yes={market.yes_stake} no={market.no_stake} -> {outcome.value}"
        )
        return outcome
