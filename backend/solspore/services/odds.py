"""
Odds Engine

Converts the stake distribution of a binary market into a pair of decimal odds.
Pure and stateless; callers serialize the read-modify-write of stake themselves.

    raw = 1 / (side_stake / total) * (1 - margin)

clamped to [min_odds, max_odds] and rounded half-up to the cent.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple

from solspore.config import OddsConfig

DEFAULT_MARGIN = 0.05
MIN_ODDS = 1.10
MAX_ODDS = 10.00

# A side with no stake counts as one unit when forming the ratio
ZERO_STAKE_FLOOR = 1.0

_CENT = Decimal("0.01")


class OddsPair(NamedTuple):
    yes: float
    no: float


def round_odds(value: float) -> float:
    """Round half-up at the cent level."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def clamp_odds(value: float, min_odds: float = MIN_ODDS, max_odds: float = MAX_ODDS) -> float:
    return max(min_odds, min(max_odds, value))


def compute_odds(
    yes_stake: float,
    no_stake: float,
    margin: float = DEFAULT_MARGIN,
    min_odds: float = MIN_ODDS,
    max_odds: float = MAX_ODDS,
) -> OddsPair:
    """
    Compute (yes_odds, no_odds) from accumulated stake.

    Args:
        yes_stake: Non-negative stake on "yes"
        no_stake: Non-negative stake on "no"
        margin: Platform edge as a fraction, 0 <= margin < 1

    Returns:
        OddsPair with both values inside [min_odds, max_odds], 2 dp
    """
    if yes_stake < 0 or no_stake < 0:
        raise ValueError("Stakes must be non-negative")
    if not 0 <= margin < 1:
        raise ValueError(f"Margin must be in [0, 1): {margin}")

    yes = yes_stake if yes_stake > 0 else ZERO_STAKE_FLOOR
    no = no_stake if no_stake > 0 else ZERO_STAKE_FLOOR
    total = yes + no

    def _side(stake: float) -> float:
        raw = 1.0 / (stake / total) * (1 - margin)
        return round_odds(clamp_odds(raw, min_odds, max_odds))

    return OddsPair(yes=_side(yes), no=_side(no))


class OddsEngine:
    """Odds computation bound to configured margin and bounds."""

    def __init__(self, config: OddsConfig | None = None):
        self.config = config or OddsConfig()

    def compute(self, yes_stake: float, no_stake: float) -> OddsPair:
        """Published odds for the given stakes; defaults when nothing is staked."""
        if yes_stake == 0 and no_stake == 0:
            return self.default_odds()
        return compute_odds(
            yes_stake,
            no_stake,
            margin=self.config.margin,
            min_odds=self.config.min_odds,
            max_odds=self.config.max_odds,
        )

    def default_odds(self) -> OddsPair:
        return OddsPair(yes=self.config.default_odds, no=self.config.default_odds)

    def in_bounds(self, odds: float) -> bool:
        return self.config.min_odds <= odds <= self.config.max_odds
