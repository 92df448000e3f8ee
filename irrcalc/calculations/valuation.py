"""
Follow-on Valuation

Resolves the amount a follow-on actually moves into or out of the position.
"""

from irrcalc.calculations.exceptions import InvalidInputError
from irrcalc.calculations.models import (
    CustomValuation,
    FollowOnInvestment,
    InvestmentType,
    TagAlong,
)


def resolve_amount(follow_on: FollowOnInvestment, trajectory_multiple: float = 1.0) -> float:
    """
    Signed change to the position caused by a follow-on.

    Capital injected is positive, capital withdrawn negative. The cash flow
    seen by the investor is the opposite sign.

    Args:
        follow_on: The follow-on investment
        trajectory_multiple: Growth multiple the existing position has reached
            by the follow-on's time under the current rate estimate, i.e.
            (1 + rate) ** years. Only used for tag-along valuations.

    Returns:
        Signed position change
    """
    valuation = follow_on.valuation

    if isinstance(valuation, TagAlong):
        if trajectory_multiple <= 0:
            raise InvalidInputError(
                f"Trajectory multiple must be positive, got {trajectory_multiple}"
            )
        magnitude = follow_on.amount * trajectory_multiple
    elif isinstance(valuation, CustomValuation):
        # Specified and computed custom valuations both carry the cash value
        # in amount; computed ones were priced as units x value upstream.
        magnitude = follow_on.amount
    else:
        raise InvalidInputError(f"Unsupported valuation: {valuation!r}")

    if follow_on.investment_type == InvestmentType.SELL:
        return -magnitude
    return magnitude
