"""
Cash Flow Schedule

Builds the ordered list of signed cash flow events the solver works on:
initial investment out at t=0, follow-ons at their resolved offsets, and
the terminal outcome back at t=years.
"""

import math
from datetime import date
from typing import List, Optional, Sequence, Tuple

from irrcalc.calculations.exceptions import InvalidInputError, InvalidTimingError
from irrcalc.calculations.models import CashFlowEvent, FollowOnInvestment
from irrcalc.calculations.timing import to_years
from irrcalc.calculations.valuation import resolve_amount

# Offsets are compared with a small tolerance so a follow-on timed at the
# exit (e.g. 60 months against 5 years) is not rejected by rounding.
TIME_EPSILON = 1e-9


def compound(multiple: float, years: float) -> float:
    """
    multiple ** years, e.g. compound(1 + rate, years) for a growth factor.

    Raises:
        InvalidInputError: If the result does not fit in a float
    """
    try:
        value = multiple ** years
    except OverflowError:
        value = math.inf
    if not math.isfinite(value):
        raise InvalidInputError("Growth over the time period is too large to calculate")
    return value


def _validate_position(initial: float, outcome: float, years: float) -> None:
    if not initial > 0:
        raise InvalidInputError("Initial investment must be greater than zero")
    if outcome < 0:
        raise InvalidInputError("Outcome cannot be negative")
    if not years > 0:
        raise InvalidInputError("Time period must be greater than zero")


def resolve_follow_ons(
    follow_ons: Sequence[FollowOnInvestment],
    reference_date: Optional[date],
    years: float,
    rate: float,
) -> List[Tuple[float, float, FollowOnInvestment]]:
    """
    Resolve each follow-on to (time in years, signed position change, follow-on).

    Tag-along follow-ons are scaled by (1 + rate) ** time. Input order is kept.
    """
    if not follow_ons:
        return []
    if reference_date is None:
        raise InvalidInputError("A reference date is required for follow-on investments")
    if rate <= -1:
        raise InvalidInputError(f"Rate must be greater than -100%, got {rate}")

    resolved = []
    for follow_on in follow_ons:
        time_years = to_years(follow_on.timing, reference_date)
        if time_years > years + TIME_EPSILON:
            raise InvalidTimingError(
                f"Follow-on at {time_years:.4f} years falls after the "
                f"{years:.4f} year holding period"
            )
        multiple = compound(1 + rate, time_years)
        resolved.append((time_years, resolve_amount(follow_on, multiple), follow_on))
    return resolved


def simple_rate(initial: float, outcome: float, years: float) -> float:
    """Closed-form annual rate turning initial into outcome over years."""
    if outcome <= 0:
        return 0.0
    return compound(outcome / initial, 1.0 / years) - 1.0


def build_schedule(
    initial: float,
    outcome: float,
    years: float,
    follow_ons: Sequence[FollowOnInvestment] = (),
    reference_date: Optional[date] = None,
    rate: Optional[float] = None,
) -> List[CashFlowEvent]:
    """
    Build the cash flow schedule for an investment.

    Args:
        initial: Initial investment (positive magnitude)
        outcome: Terminal proceeds at years (positive magnitude)
        years: Holding period in years
        follow_ons: Follow-on investments/divestments
        reference_date: Date of the initial investment (required with follow-ons)
        rate: Rate used to value tag-along follow-ons. Defaults to the
            closed-form rate of initial -> outcome.

    Returns:
        Events sorted by time, ties kept in insertion order
    """
    _validate_position(initial, outcome, years)

    if rate is None:
        rate = simple_rate(initial, outcome, years)

    events = [CashFlowEvent(0.0, -initial, "initial")]
    for time_years, delta, follow_on in resolve_follow_ons(
        follow_ons, reference_date, years, rate
    ):
        # Money into the position is money out of the investor's pocket
        events.append(
            CashFlowEvent(time_years, -delta, follow_on.investment_type.value)
        )
    events.append(CashFlowEvent(float(years), outcome, "outcome"))

    return sorted(events, key=lambda event: event.time_years)
