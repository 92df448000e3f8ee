"""
Tests for the portfolio fee waterfall.
"""

import pytest

from irrcalc.calculations.exceptions import (
    InvalidFeeRateError,
    InvalidInputError,
    NoSignChangeError,
)
from irrcalc.calculations.irr import calculate_irr, calculate_npv
from irrcalc.calculations.models import (
    CustomValuation,
    FollowOnInvestment,
    InvestmentType,
    RelativeTiming,
    TagAlong,
    TimeUnit,
    ValuationType,
)
from irrcalc.calculations.schedule import build_schedule
from irrcalc.calculations.waterfall import (
    FeeStructure,
    calculate_fee_waterfall,
    calculate_portfolio_irr,
    net_outcome,
    portfolio_units,
    units_for_amount,
)


def batch(amount, unit_price, investment_type=InvestmentType.BUY, years=1):
    """Follow-on batch of units bought (or sold) at unit_price."""
    return FollowOnInvestment(
        amount=amount,
        investment_type=investment_type,
        timing=RelativeTiming(years, TimeUnit.YEARS),
        valuation=CustomValuation(unit_price, ValuationType.COMPUTED),
    )


class TestFeeWaterfall:
    """Stage-by-stage deductions."""

    def test_stages(self):
        breakdown = calculate_fee_waterfall(100, 1000, 0.5, 0.1, 0.4, 0.5)

        assert breakdown["successful_units"] == pytest.approx(50)
        assert breakdown["gross_proceeds"] == pytest.approx(50000)
        assert breakdown["top_line_fee"] == pytest.approx(5000)
        assert breakdown["after_top_line"] == pytest.approx(45000)
        assert breakdown["counsel_share"] == pytest.approx(18000)
        assert breakdown["net_investor_outcome"] == pytest.approx(9000)

    def test_net_outcome_is_last_stage(self):
        assert net_outcome(100, 1000, 0.5, 0.1, 0.4, 0.5) == pytest.approx(9000)

    def test_no_fees_keeps_gross(self):
        assert net_outcome(10, 250, 1.0) == pytest.approx(2500)

    @pytest.mark.parametrize(
        "rates",
        [
            (1.5, 0.0, 1.0, 1.0),
            (0.5, -0.1, 1.0, 1.0),
            (0.5, 0.0, 1.01, 1.0),
            (0.5, 0.0, 1.0, -0.5),
        ],
    )
    def test_rates_outside_unit_interval(self, rates):
        with pytest.raises(InvalidFeeRateError):
            net_outcome(100, 1000, *rates)

    def test_fee_rate_error_is_input_error(self):
        with pytest.raises(InvalidInputError):
            net_outcome(100, 1000, 2.0)

    def test_negative_units_rejected(self):
        with pytest.raises(InvalidInputError):
            net_outcome(-1, 1000, 0.5)

    def test_non_decreasing_in_success_rate(self):
        outcomes = [net_outcome(100, 1000, s, 0.1, 0.4, 0.5) for s in (0, 0.25, 0.5, 1.0)]
        assert outcomes == sorted(outcomes)

    def test_non_decreasing_as_top_line_fee_falls(self):
        outcomes = [net_outcome(100, 1000, 0.5, f, 0.4, 0.5) for f in (1.0, 0.5, 0.1, 0.0)]
        assert outcomes == sorted(outcomes)

    def test_non_decreasing_in_investor_share(self):
        outcomes = [net_outcome(100, 1000, 0.5, 0.1, 0.4, s) for s in (0, 0.3, 0.7, 1.0)]
        assert outcomes == sorted(outcomes)


class TestPortfolioUnits:
    """Units across initial and follow-on batches."""

    def test_units_for_amount(self):
        assert units_for_amount(10000, 100) == 100

    def test_unit_price_must_be_positive(self):
        with pytest.raises(InvalidInputError):
            units_for_amount(10000, 0)

    def test_follow_on_batches_add_units(self):
        assert portfolio_units(10000, 100, [batch(1000, 50)]) == pytest.approx(120)

    def test_sold_batches_remove_units(self):
        sold = batch(1000, 50, InvestmentType.SELL)
        assert portfolio_units(10000, 100, [sold]) == pytest.approx(80)

    def test_tag_along_batch_rejected(self):
        tag_along = FollowOnInvestment(amount=1000, valuation=TagAlong())
        with pytest.raises(InvalidInputError):
            portfolio_units(10000, 100, [tag_along])


class TestPortfolioIRR:
    """Net outcome fed through the rate solver."""

    def test_single_batch_matches_simple_irr(self):
        # 100 units, half succeed at 500 each -> 25,000 back on 10,000
        rate, outcome = calculate_portfolio_irr(10000, 100, 0.5, 500, 3)

        assert outcome == pytest.approx(25000)
        assert rate == pytest.approx(calculate_irr(10000, 25000, 3))

    def test_fees_reduce_rate(self):
        gross_rate, _ = calculate_portfolio_irr(10000, 100, 0.5, 500, 3)
        net_rate, _ = calculate_portfolio_irr(
            10000, 100, 0.5, 500, 3, fees=FeeStructure(0.1, 0.4, 0.5)
        )
        assert net_rate < gross_rate

    def test_follow_on_batches(self, reference_date):
        follow_ons = [batch(5000, 125, years=1)]
        rate, outcome = calculate_portfolio_irr(
            10000, 100, 0.5, 500, 3, follow_ons=follow_ons, reference_date=reference_date
        )

        # 100 + 40 units, 70 succeed
        assert outcome == pytest.approx(35000)
        schedule = build_schedule(10000, outcome, 3, follow_ons, reference_date)
        assert abs(calculate_npv(schedule, rate)) < 1e-4

    def test_total_failure_has_no_rate(self):
        with pytest.raises(NoSignChangeError):
            calculate_portfolio_irr(10000, 100, 0.0, 500, 3)
