"""
Event Timing

Converts follow-on timing (absolute date or relative offset) into fractional
years from the initial investment, the single time unit used by the solver.
"""

import math
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from irrcalc.calculations.exceptions import InvalidInputError, InvalidTimingError
from irrcalc.calculations.models import AbsoluteTiming, RelativeTiming, TimeUnit, Timing

DAYS_PER_YEAR = 365.25
MONTHS_PER_YEAR = 12


def to_years(timing: Timing, reference_date: date) -> float:
    """
    Fractional years between the initial investment and a follow-on.

    Args:
        timing: AbsoluteTiming or RelativeTiming of the follow-on
        reference_date: Date of the initial investment

    Returns:
        Offset in years (DAYS / 365.25, MONTHS / 12, YEARS as-is)

    Raises:
        InvalidTimingError: If an absolute date is on or before reference_date
    """
    if isinstance(timing, RelativeTiming):
        if timing.unit == TimeUnit.DAYS:
            return timing.quantity / DAYS_PER_YEAR
        if timing.unit == TimeUnit.MONTHS:
            return timing.quantity / MONTHS_PER_YEAR
        return float(timing.quantity)

    if isinstance(timing, AbsoluteTiming):
        days = (timing.on - reference_date).days
        if days <= 0:
            raise InvalidTimingError(
                f"Follow-on date {timing.on.isoformat()} must be after "
                f"the initial investment date {reference_date.isoformat()}"
            )
        return days / DAYS_PER_YEAR

    raise InvalidInputError(f"Unsupported timing: {timing!r}")


def event_date(timing: Timing, reference_date: date) -> date:
    """Calendar date of a follow-on."""
    if isinstance(timing, AbsoluteTiming):
        # Same validation as to_years
        to_years(timing, reference_date)
        return timing.on

    quantity = timing.quantity
    if quantity == int(quantity):
        if timing.unit == TimeUnit.MONTHS:
            return reference_date + relativedelta(months=int(quantity))
        if timing.unit == TimeUnit.YEARS:
            return reference_date + relativedelta(years=int(quantity))
        return reference_date + timedelta(days=int(quantity))

    return reference_date + timedelta(days=round(to_years(timing, reference_date) * DAYS_PER_YEAR))


def years_to_months(years: float) -> int:
    """Nearest whole month for a fractional-year offset."""
    return int(math.floor(years * MONTHS_PER_YEAR + 0.5))


def total_months(years: float) -> int:
    """Number of whole months needed to cover the holding period."""
    # Guard against 5 * 12 = 60.000000000000007 style noise
    return int(math.ceil(round(years * MONTHS_PER_YEAR, 9)))
