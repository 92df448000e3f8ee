"""
Growth Projection

Month-by-month valuation series for charting a position's growth, with
step changes at follow-on months.
"""

from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from irrcalc.calculations.exceptions import InvalidInputError
from irrcalc.calculations.irr import calculate_outcome
from irrcalc.calculations.models import CashFlowEvent, FollowOnInvestment, GrowthPoint
from irrcalc.calculations.schedule import build_schedule, compound, resolve_follow_ons
from irrcalc.calculations.timing import MONTHS_PER_YEAR, total_months, years_to_months


def position_value_at(
    initial: float,
    rate: float,
    deltas: Sequence[Tuple[float, float]],
    years: float,
) -> float:
    """
    Value of the position at a time offset.

    The initial investment and every (time, signed change) that has happened
    by then each compound at rate from their own time.
    """
    value = initial * compound(1 + rate, years)
    for time_years, delta in deltas:
        if time_years <= years:
            value += delta * compound(1 + rate, years - time_years)
    return value


def project(
    schedule: Sequence[CashFlowEvent], rate: float, years: float
) -> List[GrowthPoint]:
    """
    Project a monthly valuation series for a cash flow schedule.

    The first event is the initial investment and the last the terminal
    outcome; anything in between is a follow-on. Between follow-ons the
    value grows as prior * (1 + rate) ** (months / 12); in a follow-on's
    month it steps by the capital moved (up for buys, down for sells).

    Args:
        schedule: Cash flow events sorted by time
        rate: Annual growth rate
        years: Holding period in years

    Returns:
        One point per month from 0 to ceil(years * 12); the first equals the
        initial investment and the last equals the terminal outcome
    """
    if rate <= -1:
        raise InvalidInputError(f"Rate must be greater than -100%, got {rate}")
    if years < 0:
        raise InvalidInputError("Time period cannot be negative")
    if len(schedule) < 2:
        raise InvalidInputError("At least 2 cash flows required")

    months = total_months(years)
    initial = -schedule[0].amount
    terminal = schedule[-1].amount

    if months == 0:
        return [GrowthPoint(0, initial)]

    steps: Dict[int, float] = {}
    for event in schedule[1:-1]:
        # Month 0 is reserved for the initial investment
        month = min(max(years_to_months(event.time_years), 1), months)
        steps[month] = steps.get(month, 0.0) - event.amount

    points = [GrowthPoint(0, initial)]
    base_value, base_month = initial, 0

    for month in range(1, months + 1):
        value = base_value * compound(1 + rate, (month - base_month) / MONTHS_PER_YEAR)
        if month in steps:
            value += steps[month]
            base_value, base_month = value, month
        points.append(GrowthPoint(month, value))

    # Pin the final point to avoid drift from whole-month compounding
    points[-1] = GrowthPoint(months, terminal)

    return points


def growth_points(initial: float, rate: float, years: float) -> List[GrowthPoint]:
    """Monthly growth of a single investment compounding at rate."""
    outcome = calculate_outcome(initial, rate, years)
    schedule = [
        CashFlowEvent(0.0, -initial, "initial"),
        CashFlowEvent(float(years), outcome, "outcome"),
    ]
    return project(schedule, rate, years)


def growth_points_with_follow_on(
    initial: float,
    rate: float,
    years: float,
    follow_ons: Sequence[FollowOnInvestment],
    reference_date: Optional[date],
    outcome: Optional[float] = None,
) -> List[GrowthPoint]:
    """
    Monthly growth of an investment with follow-on buys and sells.

    Tag-along follow-ons are valued on the curve implied by rate. When
    outcome is not given, the terminal value is the position's value at
    years with every follow-on compounded from its own time.
    """
    if not follow_ons:
        if outcome is None:
            return growth_points(initial, rate, years)
        schedule = build_schedule(initial, outcome, years)
        return project(schedule, rate, years)

    if outcome is None:
        resolved = resolve_follow_ons(follow_ons, reference_date, years, rate)
        outcome = position_value_at(
            initial, rate, [(time_years, delta) for time_years, delta, _ in resolved], years
        )
        if outcome < 0:
            raise InvalidInputError(
                "Follow-on sales exceed the projected value of the position"
            )

    schedule = build_schedule(initial, outcome, years, follow_ons, reference_date, rate)
    return project(schedule, rate, years)
