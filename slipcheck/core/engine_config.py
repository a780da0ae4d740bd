"""Engine configuration — every tunable constant in one place.

This module is the **registry** for constants that a deployment might want
to tune.  Nowhere else in the codebase should Kelly caps, tilt thresholds, or
hedge progress bands be hard-coded.

Architecture
------------
:class:`EngineConfig` is a frozen dataclass carrying all constants.  The
default constructor returns the production values; :meth:`EngineConfig.from_env`
layers environment overrides on top (``.env`` files are honoured via
``python-dotenv``).  Services accept an optional ``config`` argument and fall
back to :data:`DEFAULT_CONFIG`.

Typical usage::

    from slipcheck.core.engine_config import EngineConfig

    cfg = EngineConfig.from_env()

    # Override a single constant for an experiment:
    from dataclasses import replace
    cautious = replace(cfg, max_bet_percent=0.02)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Final

from dotenv import load_dotenv

#: Environment variable names read by :meth:`EngineConfig.from_env`.
ENV_KELLY_MULTIPLIER: Final[str] = "SLIPCHECK_KELLY_MULTIPLIER"
ENV_MAX_BET_PERCENT: Final[str] = "SLIPCHECK_MAX_BET_PERCENT"
ENV_PARLAY_MAX_BET_PERCENT: Final[str] = "SLIPCHECK_PARLAY_MAX_BET_PERCENT"
ENV_CORRELATION_FACTOR: Final[str] = "SLIPCHECK_CORRELATION_FACTOR"
ENV_BANKROLL: Final[str] = "SLIPCHECK_BANKROLL"


@dataclass(frozen=True)
class ProgressBand:
    """Hedge-status thresholds for one slice of game progress.

    Attributes:
        max_progress: Exclusive upper bound on ``game_progress`` (0–100) for
            which this band applies.  The last band uses ``inf``.
        on_track: Minimum buffer for ``on_track``.
        monitor: Minimum buffer for ``monitor``.
        alert: Minimum buffer for ``alert``.  Anything lower is ``urgent``.
    """

    max_progress: float
    on_track: float
    monitor: float
    alert: float


def _default_bands() -> tuple[ProgressBand, ...]:
    # Thresholds tighten as the game runs out: a 2-point cushion in the first
    # quarter is nothing, in the last five minutes it is most of the way home.
    return (
        ProgressBand(max_progress=25.0, on_track=4.0, monitor=1.0, alert=-2.0),
        ProgressBand(max_progress=50.0, on_track=3.0, monitor=0.5, alert=-1.5),
        ProgressBand(max_progress=75.0, on_track=2.0, monitor=0.0, alert=-1.0),
        ProgressBand(max_progress=float("inf"), on_track=1.5, monitor=-0.5, alert=-1.0),
    )


@dataclass(frozen=True)
class EngineConfig:
    """Immutable configuration bundle for the risk engine.

    Attributes:
        --- Kelly sizing ---
        kelly_multiplier: Fraction of full Kelly to stake (0.5 = half Kelly).
        max_bet_percent: Hard cap on a straight bet as a fraction of bankroll.
        parlay_max_bet_percent: Tighter cap for parlays (higher variance).
        parlay_correlation_factor: Flat discount applied to the product of
            leg probabilities when sizing a parlay.
        min_bankroll: Smallest bankroll accepted by input validation.

        --- Risk tiers (on adjusted Kelly fraction) ---
        conservative_max / moderate_max / aggressive_max: Upper bounds for
            the three lower tiers; anything above is ``reckless``.
        aggressive_full_kelly: Full-Kelly fraction above which a warning
            recommends fractional Kelly.
        thin_edge_pct: Edge (in percent) below which a thin-edge warning
            fires.

        --- Tilt heuristics ---
        loss_streak_min / loss_streak_stake_pct: Loss-chasing tilt trigger.
        win_streak_min / win_streak_stake_pct: Overconfidence trigger.
        drawdown_min_pct / drawdown_stake_pct: Chasing-a-drawdown trigger.

        --- Hedge classifier ---
        middle_line_movement: Minimum ``|line_movement|`` for the middle rule.
        middle_line_gap: Minimum favourable gap between the live book line
            and the bettor's line.
        blowout_progress: Game progress above which a blowout is urgent.
        slow_pace_rating: Pace rating below which an OVER is at risk.
        slow_pace_buffer: Buffer below which slow pace triggers a downgrade.
        slow_pace_urgent_confidence / slow_pace_alert_confidence: Confidence
            cut-offs for the slow-pace downgrade.
        progress_bands: Ordered :class:`ProgressBand` thresholds.
    """

    # Kelly sizing
    kelly_multiplier: float = 0.5
    max_bet_percent: float = 0.05
    parlay_max_bet_percent: float = 0.03
    parlay_correlation_factor: float = 0.85
    min_bankroll: float = 10.0

    # Risk tiers
    conservative_max: float = 0.02
    moderate_max: float = 0.04
    aggressive_max: float = 0.08
    aggressive_full_kelly: float = 0.25
    thin_edge_pct: float = 2.0

    # Tilt heuristics
    loss_streak_min: int = 3
    loss_streak_stake_pct: float = 0.03
    win_streak_min: int = 4
    win_streak_stake_pct: float = 0.06
    drawdown_min_pct: float = 20.0
    drawdown_stake_pct: float = 0.04

    # Hedge classifier
    middle_line_movement: float = 2.0
    middle_line_gap: float = 1.5
    blowout_progress: float = 60.0
    slow_pace_rating: float = 95.0
    slow_pace_buffer: float = 2.0
    slow_pace_urgent_confidence: float = 45.0
    slow_pace_alert_confidence: float = 55.0
    progress_bands: tuple[ProgressBand, ...] = field(default_factory=_default_bands)

    def band_for(self, game_progress: float) -> ProgressBand:
        """Return the progress band that covers ``game_progress``."""
        for band in self.progress_bands:
            if game_progress < band.max_progress:
                return band
        return self.progress_bands[-1]

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build a config with overrides from the environment / ``.env``."""
        load_dotenv()
        defaults = cls()
        return cls(
            kelly_multiplier=float(
                os.getenv(ENV_KELLY_MULTIPLIER, str(defaults.kelly_multiplier))
            ),
            max_bet_percent=float(
                os.getenv(ENV_MAX_BET_PERCENT, str(defaults.max_bet_percent))
            ),
            parlay_max_bet_percent=float(
                os.getenv(
                    ENV_PARLAY_MAX_BET_PERCENT, str(defaults.parlay_max_bet_percent)
                )
            ),
            parlay_correlation_factor=float(
                os.getenv(
                    ENV_CORRELATION_FACTOR, str(defaults.parlay_correlation_factor)
                )
            ),
        )


#: Shared default instance for callers that do not pass a config.
DEFAULT_CONFIG: Final[EngineConfig] = EngineConfig()
