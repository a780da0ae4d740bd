"""
Hedge-status accuracy tracking.

Every status shown to a bettor is recorded as ``{timestamp, subject_id,
status}`` (plus the quarter it was shown in and an optional hit
probability).  Once the prop settles, the record is marked hit or miss so we
can check after the fact whether ``on_track`` really hits more often than
``alert``, and whether live hit probabilities are calibrated.

Storage is in-memory; a persistence layer can drain :attr:`records`.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from slipcheck.core.engine_config import DEFAULT_CONFIG, EngineConfig
from slipcheck.services.hedge_status import (
    HEDGE_STATUSES,
    LiveSnapshot,
    classify_hedge_status,
    quarter_for_progress,
)

logger = logging.getLogger(__name__)

# (lower, upper, label) buckets for hit-probability calibration.
CALIBRATION_BINS: Tuple[Tuple[float, float, str], ...] = (
    (0.00, 0.25, "0-25%"),
    (0.25, 0.45, "25-45%"),
    (0.45, 0.55, "45-55%"),
    (0.55, 0.75, "55-75%"),
    (0.75, 1.01, "75%+"),
)


@dataclass
class HedgeStatusRecord:
    """A status shown for one prop at one point in time."""

    timestamp: datetime
    subject_id: str
    status: str
    quarter: int
    hit_probability: Optional[float] = None
    hit: Optional[bool] = None  # None until settled


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def _normalize_probability(value: Optional[float], subject_id: str) -> Optional[float]:
    if value is None:
        return None
    if not (0.0 <= value <= 100.0):
        logger.warning("Dropping hit probability %r for %s: out of range", value, subject_id)
        return None
    # Anything above 1 is a percentage.
    return value / 100.0 if value > 1.0 else value


class HedgeAccuracyTracker:
    """Collects hedge-status records and reports their hit rates."""

    def __init__(self) -> None:
        self._records: List[HedgeStatusRecord] = []

    @property
    def records(self) -> List[HedgeStatusRecord]:
        return list(self._records)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record(
        self,
        subject_id: str,
        status: Optional[str],
        *,
        quarter: Optional[int] = None,
        game_progress: Optional[float] = None,
        hit_probability: Optional[float] = None,
        timestamp: Optional[datetime] = None,
    ) -> Optional[HedgeStatusRecord]:
        """Store one status.  Absent statuses are not tracked.

        ``hit_probability`` may be a fraction (0.7) or a percentage (70, as
        the live feed reports it); it is stored as a fraction.  Values
        outside ``[0, 100]`` are dropped with a warning.
        """
        if status is None:
            return None
        if status not in HEDGE_STATUSES:
            logger.warning("Ignoring unknown hedge status %r for %s", status, subject_id)
            return None

        hit_probability = _normalize_probability(hit_probability, subject_id)
        if quarter is None:
            quarter = quarter_for_progress(game_progress or 0.0)

        rec = HedgeStatusRecord(
            timestamp=timestamp or datetime.now(timezone.utc),
            subject_id=subject_id,
            status=status,
            quarter=quarter,
            hit_probability=hit_probability,
        )
        self._records.append(rec)
        logger.info("Recorded hedge status %s for %s (Q%d)", status, subject_id, quarter)
        return rec

    def record_snapshot(
        self,
        subject_id: str,
        snapshot: Optional[LiveSnapshot],
        *,
        hit_probability: Optional[float] = None,
        timestamp: Optional[datetime] = None,
        previous_status: Optional[str] = None,
        hysteresis: float = 0.0,
        config: EngineConfig = DEFAULT_CONFIG,
    ) -> Optional[HedgeStatusRecord]:
        """Classify ``snapshot`` and record the result.

        ``previous_status``, ``hysteresis`` and ``config`` go straight to
        :func:`classify_hedge_status`, so the recorded status is the one the
        bettor was shown.
        """
        status = classify_hedge_status(
            snapshot,
            previous_status=previous_status,
            hysteresis=hysteresis,
            config=config,
        )
        if status is None:
            return None
        return self.record(
            subject_id,
            status,
            game_progress=snapshot.game_progress,
            hit_probability=hit_probability,
            timestamp=timestamp,
        )

    def settle(self, subject_id: str, hit: bool) -> int:
        """Mark every open record for ``subject_id``; return how many."""
        settled = 0
        for rec in self._records:
            if rec.subject_id == subject_id and rec.hit is None:
                rec.hit = hit
                settled += 1
        if settled == 0:
            logger.warning("No open hedge records to settle for %s", subject_id)
        return settled

    def clear(self) -> None:
        self._records.clear()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def accuracy_by_quarter(self) -> Dict[int, List[Dict]]:
        """
        Hit rate per (quarter, status) over settled records.

        Returns:
            ``{quarter: [{hedge_status, total_picks, hits, misses, hit_rate,
            avg_hit_probability}, ...]}`` with statuses in severity order.
        """
        grouped: Dict[Tuple[int, str], List[HedgeStatusRecord]] = {}
        for rec in self._records:
            if rec.hit is None:
                continue
            grouped.setdefault((rec.quarter, rec.status), []).append(rec)

        report: Dict[int, List[Dict]] = {}
        for quarter in sorted({q for q, _ in grouped}):
            rows = []
            for status in HEDGE_STATUSES:
                recs = grouped.get((quarter, status))
                if not recs:
                    continue
                hits = sum(1 for r in recs if r.hit)
                avg_prob = _mean([r.hit_probability for r in recs if r.hit_probability is not None])
                rows.append({
                    "hedge_status": status,
                    "total_picks": len(recs),
                    "hits": hits,
                    "misses": len(recs) - hits,
                    "hit_rate": round(hits / len(recs), 4),
                    "avg_hit_probability": round(avg_prob, 4) if avg_prob is not None else None,
                })
            report[quarter] = rows
        return report

    def calibration(self) -> Dict:
        """
        Predicted hit probability vs actual hit rate per bucket.
        Also computes mean calibration error and Brier score.
        """
        buckets: Dict[str, List[Tuple[float, int]]] = {label: [] for _, _, label in CALIBRATION_BINS}
        for rec in self._records:
            if rec.hit is None or rec.hit_probability is None:
                continue
            for lo, hi, label in CALIBRATION_BINS:
                if lo <= rec.hit_probability < hi:
                    buckets[label].append((rec.hit_probability, int(rec.hit)))
                    break

        calib_buckets = []
        errors = []
        brier_components = []
        for _, _, label in CALIBRATION_BINS:
            pairs = buckets[label]
            if not pairs:
                continue
            predicted = sum(p for p, _ in pairs) / len(pairs)
            actual = sum(o for _, o in pairs) / len(pairs)
            err = abs(predicted - actual)
            errors.append(err)
            brier_components.extend((p - o) ** 2 for p, o in pairs)
            calib_buckets.append({
                "bin": label,
                "predicted_prob": round(predicted, 4),
                "actual_hit_rate": round(actual, 4),
                "count": len(pairs),
                "error": round(err, 4),
            })

        mean_error = _mean(errors)
        brier = _mean(brier_components)

        logger.info(
            "Hedge calibration over %d settled records", len(brier_components)
        )
        return {
            "calibration_buckets": calib_buckets,
            "mean_calibration_error": round(mean_error, 4) if mean_error is not None else None,
            "brier_score": round(brier, 4) if brier is not None else None,
        }


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_tracker: Optional[HedgeAccuracyTracker] = None


def get_hedge_tracker() -> HedgeAccuracyTracker:
    global _tracker
    if _tracker is None:
        _tracker = HedgeAccuracyTracker()
    return _tracker
