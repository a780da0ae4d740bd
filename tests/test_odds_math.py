"""
Tests for core/odds_math.py

Run with: pytest tests/test_odds_math.py -v
"""

import pytest
from scipy.stats import norm

from slipcheck.core.odds_math import (
    american_to_decimal,
    american_to_implied,
    calc_edge_score,
    calc_p_over,
    clamp_probability,
    decimal_to_american,
    implied_probability,
    normal_cdf,
)


class TestAmericanToDecimal:
    """Test odds conversion."""

    def test_positive_odds(self):
        assert american_to_decimal(100) == pytest.approx(2.0)
        assert american_to_decimal(150) == pytest.approx(2.5)
        assert american_to_decimal(200) == pytest.approx(3.0)

    def test_negative_odds(self):
        assert american_to_decimal(-110) == pytest.approx(1.909, abs=0.001)
        assert american_to_decimal(-150) == pytest.approx(1.667, abs=0.001)
        assert american_to_decimal(-200) == pytest.approx(1.5)

    def test_zero_is_pickem(self):
        assert american_to_decimal(0) == 2.0


class TestAmericanToImplied:
    """Implied probability, including the pick'em convention for zero."""

    def test_even_money_both_signs(self):
        assert american_to_implied(100) == pytest.approx(0.5)
        assert american_to_implied(-100) == pytest.approx(0.5)

    def test_zero_returns_half(self):
        assert american_to_implied(0) == 0.5

    def test_common_prices(self):
        assert american_to_implied(-110) == pytest.approx(0.5238, abs=1e-4)
        assert american_to_implied(150) == pytest.approx(0.4)

    @pytest.mark.parametrize("odds", [105, 110, 150, 250, 500, 1000])
    def test_odd_symmetry_around_pickem(self, odds):
        """+X and -X imply probabilities that sum to exactly one."""
        assert american_to_implied(odds) + american_to_implied(-odds) == pytest.approx(1.0)

    @pytest.mark.parametrize("odds", [-500, -200, -110, 100, 120, 350])
    def test_agrees_with_decimal_path(self, odds):
        assert implied_probability(american_to_decimal(odds)) == pytest.approx(
            american_to_implied(odds)
        )


class TestDecimalToAmerican:

    def test_underdog(self):
        assert decimal_to_american(2.5) == 150

    def test_favourite(self):
        assert decimal_to_american(1.5) == -200

    def test_parlay_price_rounds(self):
        assert decimal_to_american(6.9578512) == 596

    def test_no_representable_price(self):
        assert decimal_to_american(1.0) == 0
        assert decimal_to_american(0.5) == 0


class TestImpliedProbability:

    def test_reciprocal(self):
        assert implied_probability(4.0) == pytest.approx(0.25)

    def test_non_positive_is_zero(self):
        assert implied_probability(0.0) == 0.0


class TestClampProbability:

    def test_bounds(self):
        assert clamp_probability(0.0) == 0.01
        assert clamp_probability(1.0) == 0.99
        assert clamp_probability(-3.0) == 0.01
        assert clamp_probability(0.42) == 0.42


class TestNormalCdf:
    """Abramowitz-Stegun approximation accuracy and shape."""

    def test_zero_is_half(self):
        assert normal_cdf(0.0) == pytest.approx(0.5, abs=1e-6)

    def test_matches_reference(self):
        xs = [i / 10.0 for i in range(-60, 61)]
        for x in xs:
            assert abs(normal_cdf(x) - norm.cdf(x)) <= 1.5e-7, x

    def test_monotone_non_decreasing(self):
        xs = [i / 20.0 for i in range(-160, 161)]
        values = [normal_cdf(x) for x in xs]
        assert all(b >= a for a, b in zip(values, values[1:]))

    def test_tails(self):
        assert normal_cdf(-8.0) == pytest.approx(0.0, abs=1e-7)
        assert normal_cdf(8.0) == pytest.approx(1.0, abs=1e-7)


class TestCalcPOver:
    """Probability of a stat finishing over its line."""

    def test_projection_on_line_is_half(self):
        assert calc_p_over(20.5, 20.5, 4.0) == pytest.approx(0.5, abs=1e-6)

    def test_one_sigma_above_line(self):
        assert calc_p_over(25.0, 20.0, 5.0) == pytest.approx(0.8413, abs=1e-4)

    def test_clamped_high(self):
        assert calc_p_over(40.0, 20.0, 1.0) == 0.99

    def test_clamped_low(self):
        assert calc_p_over(0.0, 20.0, 1.0) == 0.01

    def test_collapsed_uncertainty_is_binary(self):
        assert calc_p_over(21.0, 20.5, 0.0) == 0.99
        assert calc_p_over(20.5, 20.5, 0.0) == 0.99
        assert calc_p_over(19.0, 20.5, 0.0) == 0.01
        assert calc_p_over(19.0, 20.5, -1.0) == 0.01


class TestCalcEdgeScore:

    def test_positive_edge(self):
        assert calc_edge_score(0.60, 0.50) == pytest.approx(10.0)

    def test_negative_edge(self):
        assert calc_edge_score(0.45, 0.5238) == pytest.approx(-7.38)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
