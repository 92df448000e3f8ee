"""
Tests for event timing, follow-on valuation and schedule construction.
"""

import pytest
from datetime import date, timedelta

from irrcalc.calculations.exceptions import InvalidInputError, InvalidTimingError
from irrcalc.calculations.models import (
    AbsoluteTiming,
    CustomValuation,
    FollowOnInvestment,
    InvestmentType,
    RelativeTiming,
    TagAlong,
    TimeUnit,
    ValuationType,
)
from irrcalc.calculations.schedule import build_schedule, resolve_follow_ons
from irrcalc.calculations.timing import event_date, to_years, total_months, years_to_months
from irrcalc.calculations.valuation import resolve_amount


def follow_on(amount, investment_type=InvestmentType.BUY, timing=None, valuation=None):
    return FollowOnInvestment(
        amount=amount,
        investment_type=investment_type,
        timing=timing or RelativeTiming(1, TimeUnit.YEARS),
        valuation=valuation or CustomValuation(amount, ValuationType.SPECIFIED),
    )


class TestTiming:
    """Timing to fractional years and calendar dates."""

    def test_relative_days(self, reference_date):
        assert to_years(RelativeTiming(365.25, TimeUnit.DAYS), reference_date) == 1.0

    def test_relative_months(self, reference_date):
        assert to_years(RelativeTiming(18, TimeUnit.MONTHS), reference_date) == 1.5

    def test_relative_years(self, reference_date):
        assert to_years(RelativeTiming(2, TimeUnit.YEARS), reference_date) == 2.0

    def test_absolute_date(self, reference_date):
        years = to_years(AbsoluteTiming(date(2026, 1, 1)), reference_date)
        assert years == pytest.approx(365 / 365.25)

    def test_absolute_date_on_reference_date(self, reference_date):
        with pytest.raises(InvalidTimingError):
            to_years(AbsoluteTiming(reference_date), reference_date)

    def test_absolute_date_before_reference_date(self, reference_date):
        with pytest.raises(InvalidTimingError):
            to_years(AbsoluteTiming(date(2024, 6, 30)), reference_date)

    def test_relative_quantity_must_be_positive(self):
        with pytest.raises(InvalidInputError):
            RelativeTiming(0, TimeUnit.MONTHS)

    def test_event_date_month_end(self):
        """Whole months clamp to the end of shorter months."""
        assert event_date(RelativeTiming(3, TimeUnit.MONTHS), date(2025, 1, 31)) == date(2025, 4, 30)

    def test_event_date_leap_day(self):
        assert event_date(RelativeTiming(1, TimeUnit.YEARS), date(2024, 2, 29)) == date(2025, 2, 28)

    def test_event_date_days(self, reference_date):
        assert event_date(RelativeTiming(10, TimeUnit.DAYS), reference_date) == date(2025, 1, 11)

    def test_event_date_fractional_years(self, reference_date):
        expected = reference_date + timedelta(days=548)
        assert event_date(RelativeTiming(1.5, TimeUnit.YEARS), reference_date) == expected

    def test_event_date_absolute(self, reference_date):
        assert event_date(AbsoluteTiming(date(2025, 7, 1)), reference_date) == date(2025, 7, 1)

    def test_month_index(self):
        assert years_to_months(1.0) == 12
        assert years_to_months(365 / 365.25) == 12
        assert years_to_months(0.5) == 6

    def test_total_months(self):
        assert total_months(5) == 60
        assert total_months(1.55) == 19
        assert total_months(0.1) == 2


class TestFollowOnInvestment:
    """Construction-time validation of follow-ons."""

    def test_amount_must_be_positive(self):
        with pytest.raises(InvalidInputError):
            FollowOnInvestment(amount=0)

    def test_custom_valuation_must_be_positive(self):
        with pytest.raises(InvalidInputError):
            CustomValuation(0)

    def test_units_from_custom_valuation(self):
        investment = follow_on(100, valuation=CustomValuation(25, ValuationType.COMPUTED))
        assert investment.units == 4

    def test_tag_along_has_no_units(self):
        investment = follow_on(100, valuation=TagAlong())
        assert investment.units == 0.0
        assert investment.is_tag_along


class TestValuation:
    """Signed position change of a follow-on."""

    def test_specified_buy(self):
        assert resolve_amount(follow_on(500)) == 500

    def test_specified_sell_is_negative(self):
        assert resolve_amount(follow_on(500, InvestmentType.SELL)) == -500

    def test_buy_sell_adds_capital(self):
        assert resolve_amount(follow_on(500, InvestmentType.BUY_SELL)) == 500

    def test_computed_valuation_uses_amount(self):
        investment = follow_on(500, valuation=CustomValuation(10, ValuationType.COMPUTED))
        assert resolve_amount(investment, trajectory_multiple=3.0) == 500

    def test_tag_along_scales_with_trajectory(self):
        investment = follow_on(500, InvestmentType.SELL, valuation=TagAlong())
        assert resolve_amount(investment, trajectory_multiple=1.5) == pytest.approx(-750)

    def test_tag_along_rejects_non_positive_multiple(self):
        with pytest.raises(InvalidInputError):
            resolve_amount(follow_on(500, valuation=TagAlong()), trajectory_multiple=0)


class TestSchedule:
    """Cash flow schedule ordering and signs."""

    def test_simple_schedule(self):
        schedule = build_schedule(100000, 250000, 5)
        assert [(e.time_years, e.amount) for e in schedule] == [(0.0, -100000), (5.0, 250000)]

    def test_events_sorted_by_time(self, reference_date):
        later = follow_on(10, timing=RelativeTiming(3, TimeUnit.YEARS))
        earlier = follow_on(20, timing=RelativeTiming(1, TimeUnit.YEARS))
        schedule = build_schedule(100, 300, 5, [later, earlier], reference_date)
        assert [e.time_years for e in schedule] == [0.0, 1.0, 3.0, 5.0]
        assert schedule[1].amount == -20

    def test_ties_keep_insertion_order(self, reference_date):
        buy = follow_on(10, InvestmentType.BUY)
        sell = follow_on(20, InvestmentType.SELL)
        schedule = build_schedule(100, 300, 5, [buy, sell], reference_date)
        assert [e.label for e in schedule] == ["initial", "buy", "sell", "outcome"]

    def test_cash_signs(self, reference_date):
        buy = follow_on(10, InvestmentType.BUY)
        sell = follow_on(20, InvestmentType.SELL, timing=RelativeTiming(2, TimeUnit.YEARS))
        schedule = build_schedule(100, 300, 5, [buy, sell], reference_date)
        # Buys are capital out, sells capital returned
        assert schedule[1].amount == -10
        assert schedule[2].amount == 20

    def test_follow_on_at_exit_is_allowed(self, reference_date):
        at_exit = follow_on(10, timing=RelativeTiming(60, TimeUnit.MONTHS))
        schedule = build_schedule(100, 300, 5, [at_exit], reference_date)
        assert len(schedule) == 3

    def test_follow_on_after_exit_rejected(self, reference_date):
        too_late = follow_on(10, timing=RelativeTiming(6, TimeUnit.YEARS))
        with pytest.raises(InvalidTimingError):
            build_schedule(100, 300, 5, [too_late], reference_date)

    def test_follow_ons_need_reference_date(self):
        with pytest.raises(InvalidInputError):
            build_schedule(100, 300, 5, [follow_on(10)])

    def test_absolute_follow_on_before_initial_rejected(self, reference_date):
        early = follow_on(10, timing=AbsoluteTiming(date(2024, 12, 31)))
        with pytest.raises(InvalidTimingError):
            build_schedule(100, 300, 5, [early], reference_date)

    @pytest.mark.parametrize("initial, outcome, years", [(0, 100, 1), (100, -1, 1), (100, 100, 0)])
    def test_invalid_position(self, initial, outcome, years):
        with pytest.raises(InvalidInputError):
            build_schedule(initial, outcome, years)

    def test_tag_along_defaults_to_simple_rate(self, reference_date):
        # 100 -> 121 over 2 years is 10% a year
        tag_along = follow_on(100, valuation=TagAlong())
        schedule = build_schedule(100, 121, 2, [tag_along], reference_date)
        assert schedule[1].amount == pytest.approx(-110)

    def test_tag_along_at_given_rate(self, reference_date):
        tag_along = follow_on(100, valuation=TagAlong(), timing=RelativeTiming(2, TimeUnit.YEARS))
        resolved = resolve_follow_ons([tag_along], reference_date, 5, rate=0.5)
        time_years, delta, original = resolved[0]
        assert time_years == 2.0
        assert delta == pytest.approx(225)
        assert original is tag_along
