"""Kelly criterion sizing — the single source of truth for bet sizing math.

All functions here are **pure**: no I/O, no logging.
Import from this module; never reimplement Kelly locally in services.

The module covers five sizing concerns:

1. :func:`validate_kelly_inputs` — collect *every* problem with a sizing
   request so the caller can show them all at once.
2. :func:`calculate_kelly` — fractional Kelly for a straight win/loss bet,
   with a risk tier and an advisory warning.
3. :func:`calculate_variance` — two-outcome variance, Sharpe, 95% band and a
   single-bet risk-of-ruin approximation.
4. :func:`analyze_tilt` — behavioural heuristics for streak- and
   drawdown-driven oversizing.
5. :func:`calculate_parlay_kelly` / :func:`compare_to_kelly` — parlay sizing
   with a correlation discount, and a check of a user's stake against Kelly.

Design decisions
----------------
* **Nothing raises.**  Validation is a separate step that returns messages;
  the calculators clamp probabilities to ``[0.01, 0.99]`` and fall back to a
  zero stake when the price offers no profit (decimal odds ≤ 1).
* **Warnings are advisory.**  A thin or negative edge still produces a full
  :class:`KellyResult`; the warning text tells the UI what to say.
* **Fractional Kelly** (default half) and a hard bankroll-percentage cap are
  applied *after* the full-Kelly solve, so the cap holds even for
  overconfident probabilities near 0.99.

Run tests with::

    pytest tests/test_kelly.py -v
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence

from dotenv import load_dotenv

from slipcheck.core.engine_config import (
    DEFAULT_CONFIG,
    ENV_BANKROLL,
    ENV_KELLY_MULTIPLIER,
    ENV_MAX_BET_PERCENT,
    EngineConfig,
)
from slipcheck.core.odds_math import american_to_decimal, clamp_probability

RiskLevel = Literal["conservative", "moderate", "aggressive", "reckless"]
Assessment = Literal["under-betting", "optimal", "over-betting", "significantly-over"]

#: Upper bound accepted for ``max_bet_percent`` by validation.
MAX_BET_PERCENT_LIMIT = 0.25

WARNING_NO_EDGE = "No edge detected - Kelly suggests no bet"
WARNING_AGGRESSIVE = "Full Kelly suggests very aggressive sizing - use fractional Kelly"
WARNING_THIN_EDGE = "Thin edge (<2%) - consider passing or reducing stake"


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BankrollConfig:
    """Per-calculation bankroll settings supplied by the caller."""

    bankroll_amount: float
    kelly_multiplier: float = DEFAULT_CONFIG.kelly_multiplier
    max_bet_percent: float = DEFAULT_CONFIG.max_bet_percent

    @classmethod
    def from_env(cls) -> "BankrollConfig":
        """Read ``SLIPCHECK_BANKROLL`` and the Kelly overrides."""
        load_dotenv()
        return cls(
            bankroll_amount=float(os.getenv(ENV_BANKROLL, "1000")),
            kelly_multiplier=float(
                os.getenv(ENV_KELLY_MULTIPLIER, str(DEFAULT_CONFIG.kelly_multiplier))
            ),
            max_bet_percent=float(
                os.getenv(ENV_MAX_BET_PERCENT, str(DEFAULT_CONFIG.max_bet_percent))
            ),
        )


@dataclass(frozen=True)
class KellyValidation:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class KellyResult:
    """Output of :func:`calculate_kelly`.

    Attributes:
        full_kelly_fraction: Unconstrained Kelly fraction (may be negative).
        adjusted_kelly_fraction: After multiplier and cap, in
            ``[0, max_bet_percent]``.
        recommended_stake: ``bankroll × adjusted_kelly_fraction``.
        expected_value: Dollar EV of the recommended stake.
        edge: ``(p × decimal_odds − 1) × 100``, in percent.
        risk_level: Tier of ``adjusted_kelly_fraction``.
        warning: Advisory text, or ``None``.
    """

    full_kelly_fraction: float
    adjusted_kelly_fraction: float
    recommended_stake: float
    expected_value: float
    edge: float
    risk_level: RiskLevel
    warning: Optional[str] = None


@dataclass(frozen=True)
class VarianceMetrics:
    expected_return: float
    standard_deviation: float
    sharpe_ratio: float
    worst_case_95: float
    best_case_95: float
    risk_of_ruin: float
    max_drawdown_risk: float


@dataclass(frozen=True)
class TiltAnalysis:
    """Result of :func:`analyze_tilt`.

    ``tilt_reason``, ``suggested_action`` and ``streak_impact`` describe the
    highest-priority rule that fired.  ``triggers`` lists every rule that
    fired, in evaluation order.
    """

    is_tilting: bool
    suggested_action: str
    streak_impact: float
    drawdown_pct: float
    tilt_reason: Optional[str] = None
    triggers: tuple[str, ...] = ()


@dataclass(frozen=True)
class KellyComparison:
    difference: float
    percent_difference: float
    assessment: Assessment
    advice: str


@dataclass(frozen=True)
class KellyLeg:
    """One leg of a parlay as seen by the sizer."""

    win_probability: float
    decimal_odds: float

    @classmethod
    def from_american(cls, win_probability: float, american: int | float) -> "KellyLeg":
        return cls(win_probability=win_probability, decimal_odds=american_to_decimal(american))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_kelly_inputs(
    win_probability: Optional[float] = None,
    decimal_odds: Optional[float] = None,
    bankroll: Optional[float] = None,
    kelly_multiplier: Optional[float] = None,
    max_bet_percent: Optional[float] = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> KellyValidation:
    """Check a sizing request and return **all** violations.

    Win probability, decimal odds and bankroll are required; the multiplier
    and the cap are optional and only checked when supplied.  Validation
    does not fail fast: a form with three bad fields gets three messages.

    Win probability must lie in the clamp range ``[0.01, 0.99]`` that the
    calculators use.
    """
    errors: list[str] = []

    if win_probability is None:
        errors.append("Win probability is required")
    elif not (0.01 <= win_probability <= 0.99):
        errors.append("Win probability must be between 0.01 and 0.99")

    if decimal_odds is None:
        errors.append("Decimal odds are required")
    elif decimal_odds <= 1.0:
        errors.append("Decimal odds must be greater than 1")

    if bankroll is None:
        errors.append("Bankroll is required")
    elif bankroll < config.min_bankroll:
        errors.append(f"Minimum bankroll is ${config.min_bankroll:.0f}")

    if kelly_multiplier is not None and not (0.0 < kelly_multiplier <= 1.0):
        errors.append("Kelly multiplier must be between 0.01 and 1")

    if max_bet_percent is not None and not (0.0 < max_bet_percent <= MAX_BET_PERCENT_LIMIT):
        errors.append("Max bet percent must be between 0.01 and 0.25")

    return KellyValidation(is_valid=not errors, errors=errors)


# ---------------------------------------------------------------------------
# Standard Kelly
# ---------------------------------------------------------------------------


def _risk_level(adjusted: float, config: EngineConfig) -> RiskLevel:
    if adjusted <= config.conservative_max:
        return "conservative"
    if adjusted <= config.moderate_max:
        return "moderate"
    if adjusted <= config.aggressive_max:
        return "aggressive"
    return "reckless"


def calculate_kelly(
    win_probability: float,
    decimal_odds: float,
    bankroll: float,
    *,
    kelly_multiplier: Optional[float] = None,
    max_bet_percent: Optional[float] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> KellyResult:
    """Compute a fractional Kelly stake for a simple win/loss outcome.

    With ``b = decimal_odds − 1``, ``p`` the win probability and
    ``q = 1 − p``, the Kelly criterion (Kelly 1956) maximises expected
    log-wealth at::

        f*  =  (b·p − q) / b

    The stake fraction actually recommended is::

        f  =  clamp(f* × kelly_multiplier, 0, max_bet_percent)

    ``p`` is clamped to ``[0.01, 0.99]`` first.  When ``b <= 0`` there is no
    profit to be had and ``f*`` is reported as 0.

    Args:
        win_probability: Estimated probability of winning.
        decimal_odds: Decimal odds of the bet.
        bankroll: Current bankroll in dollars.
        kelly_multiplier: Fraction of full Kelly (default from ``config``).
        max_bet_percent: Cap on the adjusted fraction (default from
            ``config``).
        config: Engine constants for tiers and warnings.

    Examples::

        calculate_kelly(0.55, 2.0, 1000).recommended_stake   →  50.0  (capped at 5%)
        calculate_kelly(0.50, 2.0, 1000).warning              →  "No edge detected ..."
    """
    multiplier = config.kelly_multiplier if kelly_multiplier is None else kelly_multiplier
    cap = config.max_bet_percent if max_bet_percent is None else max_bet_percent

    p = clamp_probability(win_probability)
    q = 1.0 - p
    b = decimal_odds - 1.0

    full_kelly = (b * p - q) / b if b > 0.0 else 0.0

    adjusted = min(full_kelly * multiplier, cap)
    adjusted = max(adjusted, 0.0)

    stake = bankroll * adjusted if bankroll > 0.0 else 0.0
    expected_value = p * (stake * b) - q * stake
    edge = (p * decimal_odds - 1.0) * 100.0

    warning: Optional[str] = None
    if full_kelly <= 0.0:
        warning = WARNING_NO_EDGE
    elif full_kelly > config.aggressive_full_kelly:
        warning = WARNING_AGGRESSIVE
    elif edge < config.thin_edge_pct:
        warning = WARNING_THIN_EDGE

    return KellyResult(
        full_kelly_fraction=full_kelly,
        adjusted_kelly_fraction=adjusted,
        recommended_stake=stake,
        expected_value=expected_value,
        edge=edge,
        risk_level=_risk_level(adjusted, config),
        warning=warning,
    )


def calculate_kelly_for(
    bankroll_config: BankrollConfig,
    win_probability: float,
    decimal_odds: float,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> KellyResult:
    """:func:`calculate_kelly` driven by a :class:`BankrollConfig`."""
    return calculate_kelly(
        win_probability,
        decimal_odds,
        bankroll_config.bankroll_amount,
        kelly_multiplier=bankroll_config.kelly_multiplier,
        max_bet_percent=bankroll_config.max_bet_percent,
        config=config,
    )


# ---------------------------------------------------------------------------
# Variance and risk of ruin
# ---------------------------------------------------------------------------


def calculate_variance(
    win_probability: float,
    stake: float,
    decimal_odds: float,
    bankroll: float,
) -> VarianceMetrics:
    """Variance profile of a single bet.

    The payoff is two-point: ``+stake·b`` with probability ``p`` and
    ``−stake`` with probability ``q``::

        Var  =  p·(stake·b − EV)²  +  q·(−stake − EV)²

    Sharpe is ``EV / σ`` with a zero risk-free rate, and the 95% band is
    ``EV ± 1.96σ``.

    Risk of ruin
    ------------
    ``RoR ≈ (q/p)^(1/f) × 100`` with ``f = stake / bankroll``, capped at 100.
    This is the classic gambler's-ruin form for repeatedly betting the same
    fraction at even money.  It is a rough single-bet framing, **not** a
    multi-period ruin model: it ignores the actual payout ratio, bankroll
    evolution and bet sequencing.  Treat it as an ordinal warning signal.
    It is evaluated in log space so extreme exponents saturate at 100
    rather than overflowing.
    """
    p = clamp_probability(win_probability)
    q = 1.0 - p
    b = decimal_odds - 1.0

    expected_return = p * (stake * b) - q * stake
    win_amount = stake * b
    loss_amount = -stake
    variance = (
        p * (win_amount - expected_return) ** 2
        + q * (loss_amount - expected_return) ** 2
    )
    std_dev = math.sqrt(variance)
    sharpe = expected_return / std_dev if std_dev > 0.0 else 0.0

    fraction = stake / bankroll if bankroll > 0.0 else 0.0
    if fraction > 0.0:
        log_ror = math.log(q / p) / fraction + math.log(100.0)
        risk_of_ruin = 100.0 if log_ror >= math.log(100.0) else math.exp(log_ror)
    else:
        risk_of_ruin = 0.0

    return VarianceMetrics(
        expected_return=expected_return,
        standard_deviation=std_dev,
        sharpe_ratio=sharpe,
        worst_case_95=expected_return - 1.96 * std_dev,
        best_case_95=expected_return + 1.96 * std_dev,
        risk_of_ruin=risk_of_ruin,
        max_drawdown_risk=fraction * 100.0,
    )


# ---------------------------------------------------------------------------
# Behavioural tilt
# ---------------------------------------------------------------------------


def analyze_tilt(
    win_streak: int,
    loss_streak: int,
    proposed_stake: float,
    bankroll: float,
    peak_bankroll: float,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> TiltAnalysis:
    """Flag stakes that look emotionally driven.

    Three independent checks run in a fixed order:

    1. **Loss streak** — ≥ 3 straight losses and stake > 3% of bankroll.
    2. **Overconfidence** — ≥ 4 straight wins and stake > 6% of bankroll.
    3. **Chasing a drawdown** — > 20% below peak and stake > 4% of bankroll.

    When several fire, the later check supplies the headline reason, action
    and impact (drawdown beats overconfidence beats loss streak).  All fired
    checks are listed in ``triggers`` so no signal is dropped.
    """
    if bankroll > 0.0:
        stake_pct = proposed_stake / bankroll
    else:
        stake_pct = 1.0 if proposed_stake > 0.0 else 0.0
    drawdown_pct = 0.0
    if peak_bankroll > 0.0:
        drawdown_pct = max(0.0, (peak_bankroll - bankroll) / peak_bankroll * 100.0)

    reason: Optional[str] = None
    action = "Proceed with bet"
    impact = 0.0
    triggers: list[str] = []

    if loss_streak >= config.loss_streak_min and stake_pct > config.loss_streak_stake_pct:
        triggers.append("loss_streak")
        reason = f"{loss_streak} consecutive losses - potential tilt detected"
        action = "Consider taking a break or reducing stake by 50%"
        impact = -loss_streak * 5.0

    if win_streak >= config.win_streak_min and stake_pct > config.win_streak_stake_pct:
        triggers.append("win_streak")
        reason = f"{win_streak} consecutive wins - potential overconfidence"
        action = "Stay disciplined - variance will regress"
        impact = win_streak * 2.0

    if drawdown_pct > config.drawdown_min_pct and stake_pct > config.drawdown_stake_pct:
        triggers.append("drawdown")
        reason = f"{drawdown_pct:.1f}% drawdown from peak - chasing losses"
        action = "Reduce stake to rebuild bankroll gradually"
        impact = -15.0

    return TiltAnalysis(
        is_tilting=bool(triggers),
        suggested_action=action,
        streak_impact=impact,
        drawdown_pct=drawdown_pct,
        tilt_reason=reason,
        triggers=tuple(triggers),
    )


# ---------------------------------------------------------------------------
# Parlay Kelly
# ---------------------------------------------------------------------------


def calculate_parlay_kelly(
    legs: Sequence[KellyLeg],
    bankroll: float,
    kelly_multiplier: Optional[float] = None,
    correlation_factor: Optional[float] = None,
    *,
    config: EngineConfig = DEFAULT_CONFIG,
) -> KellyResult:
    """Size a multi-leg parlay.

    The combined probability is the product of leg probabilities times a
    flat ``correlation_factor`` (default 0.85) to account for legs that are
    rarely as independent as the product assumes.  Combined decimal odds
    are the product of leg odds.  The result is sized by
    :func:`calculate_kelly` under the tighter parlay cap (3%).

    Note:
        :func:`slipcheck.services.parlay_simulator.simulate_parlay` displays
        the *undiscounted* probability by default.  Pass the same factor to
        it when the displayed number must agree with the sized stake.
    """
    multiplier = config.kelly_multiplier if kelly_multiplier is None else kelly_multiplier
    factor = config.parlay_correlation_factor if correlation_factor is None else correlation_factor

    combined_probability = math.prod(leg.win_probability for leg in legs) * factor
    combined_odds = math.prod(leg.decimal_odds for leg in legs)

    return calculate_kelly(
        combined_probability,
        combined_odds,
        bankroll,
        kelly_multiplier=multiplier,
        max_bet_percent=config.parlay_max_bet_percent,
        config=config,
    )


# ---------------------------------------------------------------------------
# Stake comparison
# ---------------------------------------------------------------------------


def compare_to_kelly(user_stake: float, kelly_recommended: float) -> KellyComparison:
    """Bucket a user's stake against the Kelly recommendation.

    ``percent_difference`` is relative to the recommendation and is 0 when
    the recommendation itself is 0 (nothing meaningful to compare against).
    """
    difference = user_stake - kelly_recommended
    percent_difference = (
        difference / kelly_recommended * 100.0 if kelly_recommended > 0.0 else 0.0
    )

    assessment: Assessment
    if percent_difference < -20.0:
        assessment = "under-betting"
        advice = "Your stake is conservative. Consider increasing to capture more expected value."
    elif percent_difference <= 20.0:
        assessment = "optimal"
        advice = "Your stake is within optimal range. Good bankroll management!"
    elif percent_difference <= 100.0:
        assessment = "over-betting"
        advice = "Your stake exceeds Kelly optimal. Consider reducing to manage variance."
    else:
        assessment = "significantly-over"
        advice = "Warning: Your stake is significantly above Kelly optimal. High risk of ruin!"

    return KellyComparison(
        difference=difference,
        percent_difference=percent_difference,
        assessment=assessment,
        advice=advice,
    )
