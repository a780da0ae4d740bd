"""
Tests for hedge_status.py

Run with: pytest tests/test_hedge_status.py -v
"""

import pytest

from slipcheck.services.hedge_status import (
    HEDGE_STATUSES,
    LiveSnapshot,
    classify_hedge_status,
    hedge_action_label,
    quarter_for_progress,
)


def snap(**kwargs) -> LiveSnapshot:
    base = dict(line=20.0, side="over", game_progress=50.0)
    base.update(kwargs)
    return LiveSnapshot(**base)


class TestAbsence:
    """Cases where no status is shown."""

    def test_no_snapshot(self):
        assert classify_hedge_status(None) is None

    def test_final_game(self):
        assert classify_hedge_status(snap(projected_final=25.0, game_status="final")) is None

    def test_nothing_to_project_from(self):
        assert classify_hedge_status(snap()) is None

    def test_scheduled_game_is_classified(self):
        s = snap(projected_final=26.0, game_progress=0.0, game_status="scheduled")
        assert classify_hedge_status(s) == "on_track"

    def test_current_value_stands_in_for_projection(self):
        s = snap(current_value=10.0, game_progress=80.0)
        assert classify_hedge_status(s) == "urgent"

    def test_projection_alone(self):
        assert classify_hedge_status(snap(projected_final=25.0)) == "on_track"


class TestSettled:
    """Rule 1: the stat has already reached the line."""

    def test_over_cleared(self):
        s = snap(line=24.5, current_value=25.0, projected_final=30.0)
        assert classify_hedge_status(s) == "profit_lock"

    def test_under_busted(self):
        s = snap(line=24.5, side="under", current_value=25.0, projected_final=30.0)
        assert classify_hedge_status(s) == "urgent"

    def test_exactly_on_line_counts(self):
        s = snap(current_value=20.0, projected_final=20.0)
        assert classify_hedge_status(s) == "profit_lock"

    def test_settled_beats_blowout(self):
        s = snap(current_value=21.0, risk_flags=frozenset({"blowout"}), game_progress=90.0)
        assert classify_hedge_status(s) == "profit_lock"


class TestMiddle:
    """Rule 2: live line has moved past the bettor's line."""

    def test_over_middle(self):
        s = snap(projected_final=18.0, live_book_line=22.0, line_movement=2.0)
        assert classify_hedge_status(s) == "profit_lock"

    def test_under_middle(self):
        s = snap(side="under", projected_final=22.0, live_book_line=18.0, line_movement=-2.0)
        assert classify_hedge_status(s) == "profit_lock"

    def test_small_movement_ignored(self):
        s = snap(projected_final=18.0, live_book_line=22.0, line_movement=1.0)
        assert classify_hedge_status(s) != "profit_lock"

    def test_movement_against_bettor_ignored(self):
        s = snap(projected_final=18.0, live_book_line=18.0, line_movement=-2.0)
        assert classify_hedge_status(s) != "profit_lock"

    def test_needs_live_book_line(self):
        s = snap(projected_final=18.0, line_movement=3.0)
        assert classify_hedge_status(s) != "profit_lock"


class TestHardRisk:
    """Rule 3: blowout and foul trouble."""

    def test_late_blowout(self):
        s = snap(projected_final=30.0, game_progress=70.0, risk_flags=frozenset({"blowout"}))
        assert classify_hedge_status(s) == "urgent"

    def test_early_blowout_falls_through(self):
        s = snap(projected_final=30.0, game_progress=50.0, risk_flags=frozenset({"blowout"}))
        assert classify_hedge_status(s) == "on_track"

    def test_blowout_with_foul_trouble(self):
        flags = frozenset({"blowout", "foul_trouble"})
        s = snap(projected_final=30.0, game_progress=30.0, risk_flags=flags)
        assert classify_hedge_status(s) == "urgent"

    def test_foul_trouble_alone_falls_through(self):
        s = snap(projected_final=30.0, risk_flags=frozenset({"foul_trouble"}))
        assert classify_hedge_status(s) == "on_track"


class TestSlowPace:
    """Rule 4: thin OVER in a slow game."""

    @pytest.mark.parametrize("confidence, expected", [
        (40.0, "urgent"),
        (50.0, "alert"),
        (60.0, "monitor"),
    ])
    def test_confidence_cutoffs(self, confidence, expected):
        s = snap(projected_final=21.0, game_progress=10.0, pace_rating=90.0, confidence=confidence)
        assert classify_hedge_status(s) == expected

    def test_under_unaffected(self):
        s = snap(side="under", projected_final=19.0, game_progress=10.0,
                 pace_rating=90.0, confidence=40.0)
        assert classify_hedge_status(s) == "monitor"

    def test_comfortable_buffer_unaffected(self):
        s = snap(projected_final=25.0, game_progress=10.0, pace_rating=90.0, confidence=40.0)
        assert classify_hedge_status(s) == "on_track"


class TestBanding:
    """Rule 5: progress-dependent thresholds."""

    def test_same_buffer_tightens_with_progress(self):
        early = snap(projected_final=21.7, game_progress=10.0)
        late = snap(projected_final=21.7, game_progress=90.0)
        assert classify_hedge_status(early) == "monitor"
        assert classify_hedge_status(late) == "on_track"

    @pytest.mark.parametrize("projected, expected", [
        (22.0, "on_track"),
        (20.0, "monitor"),
        (19.5, "alert"),
        (18.5, "urgent"),
    ])
    def test_third_quarter_band(self, projected, expected):
        s = snap(projected_final=projected, game_progress=60.0)
        assert classify_hedge_status(s) == expected

    def test_band_edges(self):
        assert classify_hedge_status(snap(projected_final=23.0, game_progress=24.9)) == "monitor"
        assert classify_hedge_status(snap(projected_final=23.0, game_progress=25.0)) == "on_track"

    def test_under_buffer_is_mirrored(self):
        s = snap(side="under", projected_final=17.0, game_progress=60.0)
        assert classify_hedge_status(s) == "on_track"

    def test_side_is_case_insensitive(self):
        s = snap(side="UNDER", projected_final=17.0, game_progress=60.0)
        assert classify_hedge_status(s) == "on_track"

    def test_always_a_known_status(self):
        for progress in (0.0, 30.0, 55.0, 80.0, 100.0):
            for projected in (10.0, 19.0, 20.0, 21.0, 30.0):
                status = classify_hedge_status(snap(projected_final=projected, game_progress=progress))
                assert status in HEDGE_STATUSES


class TestHysteresis:

    def test_holds_previous_band(self):
        s = snap(projected_final=23.8, game_progress=10.0)
        assert classify_hedge_status(s) == "monitor"
        held = classify_hedge_status(s, previous_status="on_track", hysteresis=0.5)
        assert held == "on_track"

    def test_large_move_breaks_through(self):
        s = snap(projected_final=22.0, game_progress=10.0)
        assert classify_hedge_status(s, previous_status="on_track", hysteresis=0.5) == "monitor"

    def test_disabled_by_default(self):
        s = snap(projected_final=23.8, game_progress=10.0)
        assert classify_hedge_status(s, previous_status="on_track") == "monitor"

    def test_never_overrides_rules(self):
        s = snap(current_value=21.0)
        assert classify_hedge_status(s, previous_status="urgent", hysteresis=5.0) == "profit_lock"


class TestLabels:

    @pytest.mark.parametrize("status, label, urgency", [
        ("profit_lock", "LOCK PROFIT", "high"),
        ("on_track", "HOLD", "none"),
        ("monitor", "MONITOR", "low"),
        ("alert", "PREPARE HEDGE", "medium"),
        ("urgent", "HEDGE NOW", "high"),
    ])
    def test_action_labels(self, status, label, urgency):
        action = hedge_action_label(status)
        assert action.label == label
        assert action.urgency == urgency

    def test_none_passes_through(self):
        assert hedge_action_label(None) is None


class TestQuarterForProgress:

    @pytest.mark.parametrize("progress, quarter", [
        (0.0, 1), (24.9, 1), (25.0, 2), (50.0, 3), (74.9, 3), (75.0, 4), (100.0, 4), (-5.0, 1),
    ])
    def test_quarters(self, progress, quarter):
        assert quarter_for_progress(progress) == quarter


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
