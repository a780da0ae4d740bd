"""
Live hedge-status classification for in-game player props.

Public API:
  classify_hedge_status(snapshot)  → HedgeStatus | None
  hedge_action_label(status)       → HedgeAction | None
  quarter_for_progress(progress)   → int

The classifier is memoryless: every refresh tick is judged from the current
snapshot alone.  Callers that want to damp flicker between adjacent bands
pass the previous status and a ``hysteresis`` margin explicitly.

Rules are evaluated in order; the first match wins:
  1. Settled     — OVER already cleared → profit_lock; UNDER already lost → urgent
  2. Middle      — live line has run ≥ 1.5 in the bettor's favour → profit_lock
  3. Hard risk   — blowout late, or blowout + foul trouble → urgent
  4. Slow pace   — thin OVER with pace < 95 → urgent / alert by confidence
  5. Banding     — buffer vs progress-dependent thresholds

``None`` means "not applicable" (no snapshot, game final, or nothing to
project from).  It is a normal outcome; the UI hides the element.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Literal, Optional

from slipcheck.core.engine_config import DEFAULT_CONFIG, EngineConfig, ProgressBand

logger = logging.getLogger(__name__)

HedgeStatus = Literal["profit_lock", "on_track", "monitor", "alert", "urgent"]
Side = Literal["over", "under"]

HEDGE_STATUSES = ("profit_lock", "on_track", "monitor", "alert", "urgent")

# Severity rank of the statuses produced by progress banding.
_BAND_RANK: Dict[str, int] = {"on_track": 0, "monitor": 1, "alert": 2, "urgent": 3}

FINAL_STATUS = "final"


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LiveSnapshot:
    """One refresh tick of a tracked prop.

    ``game_progress`` and ``confidence`` are percentages (0–100).
    ``pace_rating`` is 100 for league-average pace.
    ``line_movement`` is the signed move of the live book line since open.
    """

    line: float
    side: Side
    current_value: Optional[float] = None
    projected_final: Optional[float] = None
    game_progress: float = 0.0
    pace_rating: float = 100.0
    confidence: float = 50.0
    risk_flags: FrozenSet[str] = frozenset()
    live_book_line: Optional[float] = None
    line_movement: Optional[float] = None
    game_status: str = "in_progress"


@dataclass(frozen=True)
class HedgeAction:
    label: str
    urgency: Literal["high", "medium", "low", "none"]


_ACTIONS: Dict[str, HedgeAction] = {
    "profit_lock": HedgeAction(label="LOCK PROFIT", urgency="high"),
    "on_track": HedgeAction(label="HOLD", urgency="none"),
    "monitor": HedgeAction(label="MONITOR", urgency="low"),
    "alert": HedgeAction(label="PREPARE HEDGE", urgency="medium"),
    "urgent": HedgeAction(label="HEDGE NOW", urgency="high"),
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def quarter_for_progress(game_progress: float) -> int:
    """Map 0–100 game progress to a quarter number 1–4."""
    return max(1, min(4, int(game_progress // 25) + 1))


def hedge_action_label(status: Optional[str]) -> Optional[HedgeAction]:
    """Short action label and urgency for a status (``None`` passes through)."""
    if status is None:
        return None
    return _ACTIONS.get(status)


def _band_status(buffer: float, band: ProgressBand) -> HedgeStatus:
    if buffer >= band.on_track:
        return "on_track"
    if buffer >= band.monitor:
        return "monitor"
    if buffer >= band.alert:
        return "alert"
    return "urgent"


def _apply_hysteresis(
    status: HedgeStatus,
    buffer: float,
    band: ProgressBand,
    previous_status: Optional[str],
    hysteresis: float,
) -> HedgeStatus:
    """Keep ``previous_status`` if the buffer is within ``hysteresis`` of it."""
    if hysteresis <= 0.0 or previous_status not in _BAND_RANK or previous_status == status:
        return status
    best = _band_status(buffer + hysteresis, band)
    worst = _band_status(buffer - hysteresis, band)
    if _BAND_RANK[best] <= _BAND_RANK[previous_status] <= _BAND_RANK[worst]:
        return previous_status  # type: ignore[return-value]
    return status


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------

def classify_hedge_status(
    snapshot: Optional[LiveSnapshot],
    *,
    previous_status: Optional[str] = None,
    hysteresis: float = 0.0,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Optional[HedgeStatus]:
    """
    Classify a live snapshot into a hedge action.

    Args:
        snapshot: Current tick, or ``None`` when no live data exists.
        previous_status: Status shown on the previous tick.  Only used when
            ``hysteresis > 0``.
        hysteresis: Buffer margin (in stat units) the banding step must clear
            before leaving ``previous_status``.  0 disables damping.
        config: Engine constants (progress bands, pace and risk thresholds).

    Returns:
        One of :data:`HEDGE_STATUSES`, or ``None`` when classification does
        not apply: no snapshot, ``game_status == "final"``, or neither
        ``projected_final`` nor ``current_value`` is present.  Scheduled,
        live and halftime snapshots are all classified.
    """
    if snapshot is None or snapshot.game_status.lower() == FINAL_STATUS:
        return None
    if snapshot.projected_final is None and snapshot.current_value is None:
        return None

    side = snapshot.side.lower()
    is_over = side == "over"
    line = snapshot.line
    current = snapshot.current_value
    projected = snapshot.projected_final if snapshot.projected_final is not None else current

    # 1. Already settled on the stat line
    if current is not None and current >= line:
        return "profit_lock" if is_over else "urgent"

    # 2. Favourable line movement opens a middle
    if (
        snapshot.line_movement is not None
        and snapshot.live_book_line is not None
        and abs(snapshot.line_movement) >= config.middle_line_movement
    ):
        gap = snapshot.live_book_line - line if is_over else line - snapshot.live_book_line
        if gap >= config.middle_line_gap:
            return "profit_lock"

    # 3. Hard risk overrides
    flags = snapshot.risk_flags
    if "blowout" in flags:
        if snapshot.game_progress > config.blowout_progress or "foul_trouble" in flags:
            return "urgent"

    buffer = projected - line if is_over else line - projected

    # 4. Slow pace threatens a thin OVER
    if is_over and snapshot.pace_rating < config.slow_pace_rating and buffer < config.slow_pace_buffer:
        if snapshot.confidence < config.slow_pace_urgent_confidence:
            return "urgent"
        if snapshot.confidence < config.slow_pace_alert_confidence:
            return "alert"

    # 5. Progress-aware banding
    band = config.band_for(snapshot.game_progress)
    status = _band_status(buffer, band)
    status = _apply_hysteresis(status, buffer, band, previous_status, hysteresis)

    logger.debug(
        "Hedge status %s: side=%s buffer=%.2f progress=%.0f%%",
        status, side, buffer, snapshot.game_progress,
    )
    return status
