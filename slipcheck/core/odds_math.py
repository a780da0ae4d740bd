"""Fundamental odds mathematics — the single source of truth.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services.

The three pillars exposed are:

1. **Odds conversion** — American ↔ decimal ↔ implied probability.
2. **Normal CDF** — Abramowitz–Stegun approximation used to turn a live
   stat projection into a probability of clearing a line.
3. **Edge scoring** — model probability minus market probability.

Design decisions
----------------
* Nothing here raises.  Degenerate prices resolve to explicit values so a
  malformed bet slip never takes down a whole simulation: American odds of
  ``0`` are treated as pick'em (decimal 2.0, implied 0.5).
* Every probability that leaves this module for downstream math passes
  through :func:`clamp_probability`, which pins it to ``[0.01, 0.99]``.  A
  probability of exactly 0 or 1 turns Kelly and risk-of-ruin into 0/∞.
* ``normal_cdf`` uses formula 7.1.26 rather than ``math.erf`` so the
  documented error bound (≤ 1.5e-7) is a property of this code, not of the
  platform libm.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import math
from typing import Final

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

#: Lower clamp for any probability used in downstream math.
PROB_FLOOR: Final[float] = 0.01

#: Upper clamp for any probability used in downstream math.
PROB_CEILING: Final[float] = 0.99

#: Implied probability returned for American odds of exactly 0.
PICKEM_PROB: Final[float] = 0.5

#: Decimal odds returned for American odds of exactly 0 (consistent with
#: :data:`PICKEM_PROB`).
PICKEM_DECIMAL: Final[float] = 2.0

# Abramowitz & Stegun 7.1.26 coefficients for erf(x), |error| ≤ 1.5e-7.
_AS_P: Final[float] = 0.3275911
_AS_A1: Final[float] = 0.254829592
_AS_A2: Final[float] = -0.284496736
_AS_A3: Final[float] = 1.421413741
_AS_A4: Final[float] = -1.453152027
_AS_A5: Final[float] = 1.061405429


def clamp_probability(p: float) -> float:
    """Pin ``p`` to ``[PROB_FLOOR, PROB_CEILING]``."""
    return max(PROB_FLOOR, min(PROB_CEILING, p))


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def american_to_decimal(american: int | float) -> float:
    """Convert American odds to decimal (European) format.

    Decimal odds represent the total payout per unit staked, **including**
    the return of the stake itself.  Examples::

        american_to_decimal(-110) → 1.9091   (risk 110 to win 100)
        american_to_decimal(+150) → 2.5000   (risk 100 to win 150)
        american_to_decimal(0)    → 2.0000   (pick'em convention)

    Args:
        american: American odds.  Negative = favourite, positive = underdog.

    Returns:
        Decimal odds > 1.0.
    """
    if american > 0:
        return american / 100.0 + 1.0
    if american < 0:
        return 100.0 / abs(american) + 1.0
    return PICKEM_DECIMAL


def american_to_implied(american: int | float) -> float:
    """Raw implied probability from American odds (vig-inclusive).

    ``odds == 0`` has no mathematical meaning in American notation.  The
    convention here is to read it as a pick'em and return ``0.5`` rather than
    rejecting the leg; bet-slip extraction occasionally produces a zero when
    the price is missing, and the rest of the slip is still worth simulating.

    Examples::

        american_to_implied(-110) → 0.5238
        american_to_implied(+150) → 0.4000
        american_to_implied(0)    → 0.5000
    """
    if american > 0:
        return 100.0 / (american + 100.0)
    if american < 0:
        magnitude = abs(american)
        return magnitude / (magnitude + 100.0)
    return PICKEM_PROB


def implied_probability(decimal_odds: float) -> float:
    """Implied probability from decimal odds (``1 / decimal_odds``).

    Returns 0.0 for non-positive decimal odds.
    """
    if decimal_odds <= 0.0:
        return 0.0
    return 1.0 / decimal_odds


def decimal_to_american(decimal_odds: float) -> int:
    """Convert decimal odds to the nearest American integer.

    Inverse of :func:`american_to_decimal`.  Rounds to the nearest integer;
    use the result for display, not for further arithmetic.

    Values ≥ 2.0 come back positive (underdog), values in ``(1, 2)`` come
    back negative (favourite).  ``decimal_odds <= 1`` has no American
    representation and returns 0.
    """
    if decimal_odds <= 1.0:
        return 0
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1.0) * 100)
    return round(-100.0 / (decimal_odds - 1.0))


# ---------------------------------------------------------------------------
# Normal distribution
# ---------------------------------------------------------------------------


def normal_cdf(x: float) -> float:
    """Standard normal CDF Φ(x) via Abramowitz & Stegun formula 7.1.26.

    ``Φ(x) = ½ · (1 + erf(x / √2))`` with erf approximated by a degree-5
    rational polynomial in ``t = 1 / (1 + p·|z|)``.  Absolute error of the
    erf term is ≤ 1.5e-7, so Φ is accurate to well under that.
    """
    z = abs(x) / math.sqrt(2.0)
    t = 1.0 / (1.0 + _AS_P * z)
    poly = t * (_AS_A1 + t * (_AS_A2 + t * (_AS_A3 + t * (_AS_A4 + t * _AS_A5))))
    erf = 1.0 - poly * math.exp(-z * z)
    if x < 0:
        erf = -erf
    return 0.5 * (1.0 + erf)


def calc_p_over(projected: float, line: float, sigma_rem: float) -> float:
    """Probability that a stat finishes over ``line``.

    Models the final value as ``Normal(projected, sigma_rem²)``::

        P(over) = 1 − Φ((line − projected) / sigma_rem)

    clamped to ``[0.01, 0.99]``.

    When ``sigma_rem <= 0`` the remaining uncertainty has collapsed (game
    effectively over, or no minutes left), so the answer is binary:
    ``0.99`` if ``projected >= line`` else ``0.01``.
    """
    if sigma_rem <= 0.0:
        return PROB_CEILING if projected >= line else PROB_FLOOR
    z = (line - projected) / sigma_rem
    return clamp_probability(1.0 - normal_cdf(z))


def calc_edge_score(p_over: float, implied_prob: float) -> float:
    """Edge in percentage points: ``(p_over − implied_prob) × 100``."""
    return (p_over - implied_prob) * 100.0
