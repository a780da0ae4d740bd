"""
Parlay simulator for the slipcheck risk engine.

Turns a list of extracted bet-slip legs into a parlay-level probability,
payout, expected value and a "degenerate level" risk tier, plus a few lines
of commentary on the weakest legs.

Legs are treated as independent by default: the displayed probability is
the plain product of market-implied leg probabilities.  The Kelly sizer in
``slipcheck.core.kelly`` discounts that product for correlation; pass the
same ``correlation_factor`` here when the two numbers must agree.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Literal, Optional, Sequence, Tuple

import numpy as np

from slipcheck.core.odds_math import (
    american_to_decimal,
    american_to_implied,
    clamp_probability,
    decimal_to_american,
)

logger = logging.getLogger(__name__)

LegRisk = Literal["low", "medium", "high", "extreme"]
DegenerateLevel = Literal[
    "RESPECTABLE", "NOT_TERRIBLE", "SWEAT_SEASON", "LOTTERY_TICKET", "LOAN_NEEDED"
]

# (minimum combined probability, tier), checked top-down; first match wins.
DEGENERATE_TIERS: Tuple[Tuple[float, DegenerateLevel], ...] = (
    (0.30, "RESPECTABLE"),
    (0.15, "NOT_TERRIBLE"),
    (0.05, "SWEAT_SEASON"),
    (0.02, "LOTTERY_TICKET"),
)
FLOOR_TIER: DegenerateLevel = "LOAN_NEEDED"

# (minimum implied probability, risk bucket) for a single leg.
LEG_RISK_TIERS: Tuple[Tuple[float, LegRisk], ...] = (
    (0.60, "low"),
    (0.40, "medium"),
    (0.25, "high"),
)

MAX_HIGHLIGHTS = 3

# Flavor text for the weakest legs. Purely cosmetic.
HIGHLIGHT_TEMPLATES: Tuple[str, ...] = (
    "{description} is carrying this whole slip on a {prob:.0%} prayer.",
    "At {prob:.0%}, {description} is the leg your group chat will blame.",
    "{description} ({prob:.0%}) is where this parlay goes to die.",
    "Books love {description}. {prob:.0%} implied says why.",
    "{description} needs things to break right: only {prob:.0%} implied.",
)


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Leg:
    """A single bet-slip selection.  Created once at extraction time."""

    description: str
    american_odds: int
    implied_probability: float
    risk_level: LegRisk
    outcome: Optional[str] = None


@dataclass(frozen=True)
class Highlight:
    leg_index: int
    text: str


@dataclass(frozen=True)
class ParlaySimulation:
    """Read-only result of :func:`simulate_parlay`."""

    legs: Tuple[Leg, ...]
    stake: float
    total_odds: int
    potential_payout: float
    combined_probability: float
    expected_value: float
    degenerate_level: DegenerateLevel
    highlights: Tuple[Highlight, ...] = ()


# ---------------------------------------------------------------------------
# Leg construction
# ---------------------------------------------------------------------------

def leg_risk_level(probability: float) -> LegRisk:
    """Bucket a leg by implied probability."""
    for threshold, level in LEG_RISK_TIERS:
        if probability >= threshold:
            return level
    return "extreme"


def create_leg(description: str, odds: int) -> Leg:
    """Build a :class:`Leg` from a description and American odds.

    Fractional prices are truncated to a whole American price first, and
    both the implied probability and the payout use that price.
    """
    american = int(odds)
    implied = american_to_implied(american)
    return Leg(
        description=description,
        american_odds=american,
        implied_probability=implied,
        risk_level=leg_risk_level(implied),
    )


def degenerate_level(combined_probability: float) -> DegenerateLevel:
    """Map a combined parlay probability to its risk tier.

    Boundaries are inclusive on the lower edge: exactly 0.30 is
    ``RESPECTABLE``.
    """
    for threshold, tier in DEGENERATE_TIERS:
        if combined_probability >= threshold:
            return tier
    return FLOOR_TIER


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

def _weakest_leg_highlights(
    legs: Sequence[Leg],
    probabilities: Sequence[float],
    rng: np.random.Generator,
) -> Tuple[Highlight, ...]:
    """Commentary for the 1-3 lowest-probability legs, weakest first."""
    order = sorted(range(len(legs)), key=lambda i: (probabilities[i], i))
    highlights: List[Highlight] = []
    for idx in order[:MAX_HIGHLIGHTS]:
        template = HIGHLIGHT_TEMPLATES[int(rng.integers(len(HIGHLIGHT_TEMPLATES)))]
        highlights.append(Highlight(
            leg_index=idx,
            text=template.format(description=legs[idx].description, prob=probabilities[idx]),
        ))
    return tuple(highlights)


def simulate_parlay(
    legs: Sequence[Leg],
    stake: float,
    provided_total_odds: Optional[int] = None,
    *,
    correlation_factor: float = 1.0,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> ParlaySimulation:
    """
    Simulate a parlay built from ``legs``.

    Args:
        legs: Ordered legs, as produced by :func:`create_leg`.
        stake: Dollars risked.
        provided_total_odds: American total odds printed on the slip.  When
            given (and non-zero) it is used as-is instead of multiplying the
            leg prices, since books sometimes boost or shade parlay prices.
        correlation_factor: Multiplier on the combined probability, in
            ``(0, 1]``.  1.0 (default) means legs are independent.
        rng: Random source for highlight text.  Numeric outputs never depend
            on it.
        seed: Seed for a fresh ``numpy.random.default_rng`` when ``rng`` is
            not supplied.  ``None`` is non-deterministic.

    Returns:
        :class:`ParlaySimulation`.  An empty slip yields zero probability,
        zero payout and ``LOAN_NEEDED``.

    Raises:
        ValueError: If ``correlation_factor`` is outside ``(0, 1]``.
    """
    if not (0.0 < correlation_factor <= 1.0):
        raise ValueError(
            f"correlation_factor must be in (0, 1], got {correlation_factor!r}."
        )
    if not legs:
        logger.debug("simulate_parlay called with no legs")
        return ParlaySimulation(
            legs=(),
            stake=stake,
            total_odds=0,
            potential_payout=0.0,
            combined_probability=0.0,
            expected_value=0.0,
            degenerate_level=FLOOR_TIER,
        )

    if rng is None:
        rng = np.random.default_rng(seed)

    probabilities = [clamp_probability(leg.implied_probability) for leg in legs]
    combined_probability = math.prod(probabilities) * correlation_factor

    if provided_total_odds:
        total_odds = int(provided_total_odds)
        total_decimal = american_to_decimal(total_odds)
    else:
        total_decimal = math.prod(american_to_decimal(leg.american_odds) for leg in legs)
        total_odds = decimal_to_american(total_decimal)

    potential_payout = stake * total_decimal
    profit = potential_payout - stake
    expected_value = combined_probability * profit - (1.0 - combined_probability) * stake

    simulation = ParlaySimulation(
        legs=tuple(legs),
        stake=stake,
        total_odds=total_odds,
        potential_payout=potential_payout,
        combined_probability=combined_probability,
        expected_value=expected_value,
        degenerate_level=degenerate_level(combined_probability),
        highlights=_weakest_leg_highlights(legs, probabilities, rng),
    )

    logger.debug(
        "Simulated %d-leg parlay @ %+d: p=%.4f payout=$%.2f EV=$%.2f (%s)",
        len(legs), total_odds, combined_probability,
        potential_payout, expected_value, simulation.degenerate_level,
    )
    return simulation


def format_parlay_simulation(simulation: ParlaySimulation) -> str:
    """
    Format a simulation for human-readable display.

    Args:
        simulation: Result of simulate_parlay()

    Returns:
        Formatted string for display
    """
    lines = []
    lines.append(f"🎫 {len(simulation.legs)}-Leg Parlay @ {simulation.total_odds:+d}")
    for leg in simulation.legs:
        lines.append(f"   • {leg.description} ({leg.american_odds:+d}, {leg.risk_level})")
    lines.append(f"   Win Prob: {simulation.combined_probability:.2%}")
    lines.append(f"   Payout: ${simulation.potential_payout:.2f} on ${simulation.stake:.2f}")
    lines.append(f"   Expected Value: ${simulation.expected_value:+.2f}")
    lines.append(f"   Degenerate Level: {simulation.degenerate_level}")
    for highlight in simulation.highlights:
        lines.append(f"   💬 {highlight.text}")

    return "\n".join(lines)
