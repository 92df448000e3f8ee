"""
Calculation Data Model

Value types shared by the return engine: follow-on investments with their
timing and valuation variants, cash flow events, growth points, and the
request/result types for the five calculation modes.
"""

import enum
import math
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple, Union

from irrcalc.calculations.exceptions import InvalidInputError


class InvestmentType(str, enum.Enum):
    """Direction of a follow-on capital movement."""

    BUY = "buy"
    SELL = "sell"
    BUY_SELL = "buy_sell"


class TimeUnit(str, enum.Enum):
    """Unit of a relative follow-on offset."""

    DAYS = "days"
    MONTHS = "months"
    YEARS = "years"


class ValuationType(str, enum.Enum):
    """How a custom valuation was obtained."""

    COMPUTED = "computed"
    SPECIFIED = "specified"


@dataclass(frozen=True)
class AbsoluteTiming:
    """Follow-on occurring on a calendar date."""

    on: date


@dataclass(frozen=True)
class RelativeTiming:
    """Follow-on occurring a number of days/months/years after the initial investment."""

    quantity: float
    unit: TimeUnit = TimeUnit.YEARS

    def __post_init__(self):
        if not self.quantity > 0:
            raise InvalidInputError("Relative timing must be greater than zero")


@dataclass(frozen=True)
class TagAlong:
    """Follow-on valued along the position's own growth curve."""


@dataclass(frozen=True)
class CustomValuation:
    """Follow-on valued at an explicit per-unit valuation."""

    value: float
    kind: ValuationType = ValuationType.SPECIFIED

    def __post_init__(self):
        if not self.value > 0:
            raise InvalidInputError("Custom valuation must be greater than zero")


Timing = Union[AbsoluteTiming, RelativeTiming]
Valuation = Union[TagAlong, CustomValuation]


@dataclass(frozen=True)
class FollowOnInvestment:
    """
    An additional capital movement after the initial investment.

    The amount is always a positive magnitude; the direction comes from
    investment_type.
    """

    amount: float
    investment_type: InvestmentType = InvestmentType.BUY
    timing: Timing = field(default_factory=lambda: RelativeTiming(1.0, TimeUnit.YEARS))
    valuation: Valuation = field(default_factory=TagAlong)

    def __post_init__(self):
        if not self.amount > 0:
            raise InvalidInputError("Follow-on amount must be greater than zero")

    @property
    def is_tag_along(self) -> bool:
        return isinstance(self.valuation, TagAlong)

    @property
    def units(self) -> float:
        """Units acquired at the custom unit valuation (0 for tag-along)."""
        if isinstance(self.valuation, CustomValuation):
            return self.amount / self.valuation.value
        return 0.0


@dataclass(frozen=True)
class CashFlowEvent:
    """A signed amount at a time offset (negative = capital out)."""

    time_years: float
    amount: float
    label: str = ""


@dataclass(frozen=True)
class GrowthPoint:
    """Projected position value at a whole month from the initial investment."""

    month: int
    value: float

    def __post_init__(self):
        if self.month < 0 or not math.isfinite(self.value):
            raise InvalidInputError(
                f"Invalid growth point: month={self.month}, value={self.value}"
            )


# Calculation requests, one per mode


@dataclass(frozen=True)
class ComputeRate:
    initial: float
    outcome: float
    years: float


@dataclass(frozen=True)
class ComputeOutcome:
    initial: float
    rate: float
    years: float


@dataclass(frozen=True)
class ComputeInitial:
    outcome: float
    rate: float
    years: float


@dataclass(frozen=True)
class ComputeBlendedRate:
    initial: float
    outcome: float
    years: float
    follow_ons: Tuple[FollowOnInvestment, ...] = ()
    reference_date: Optional[date] = None


@dataclass(frozen=True)
class ComputePortfolioRate:
    """
    Portfolio unit investment: capital buys units at unit_price, a share of
    units succeed and each success pays unit_outcome, which then runs through
    the fee waterfall.
    """

    investment_amount: float
    unit_price: float
    success_rate: float
    unit_outcome: float
    years: float
    top_line_fee_rate: float = 0.0
    management_fee_rate: float = 1.0
    investor_share_rate: float = 1.0
    follow_ons: Tuple[FollowOnInvestment, ...] = ()
    reference_date: Optional[date] = None


CalculationRequest = Union[
    ComputeRate, ComputeOutcome, ComputeInitial, ComputeBlendedRate, ComputePortfolioRate
]


@dataclass(frozen=True)
class CalculationResult:
    rate: Optional[float] = None
    amount: Optional[float] = None
    growth_series: List[GrowthPoint] = field(default_factory=list)
