"""
Return calculation API endpoints.

These endpoints accept inputs and return calculated results: the solved
rate or amount plus the monthly growth series for charting.
"""

import logging
from datetime import date
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from irrcalc.calculations import engine, irr, schedule, timing, waterfall
from irrcalc.calculations.exceptions import CalculationError, InvalidInputError
from irrcalc.calculations.models import (
    AbsoluteTiming,
    CalculationRequest,
    CalculationResult,
    ComputeBlendedRate,
    ComputeInitial,
    ComputeOutcome,
    ComputePortfolioRate,
    ComputeRate,
    CustomValuation,
    FollowOnInvestment,
    InvestmentType,
    RelativeTiming,
    TagAlong,
    TimeUnit,
    ValuationType,
)
from irrcalc.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


class FollowOnInput(BaseModel):
    """A follow-on investment as entered on the blended/portfolio screens."""

    amount: float
    investment_type: InvestmentType = InvestmentType.BUY

    # Timing
    timing_type: Literal["absolute", "relative"] = "relative"
    absolute_date: Optional[date] = None
    relative_time: float = 1.0
    relative_time_unit: TimeUnit = TimeUnit.YEARS

    # Valuation
    valuation_mode: Literal["tag_along", "custom"] = "tag_along"
    valuation_type: ValuationType = ValuationType.COMPUTED
    custom_valuation: Optional[float] = None

    def to_follow_on(self) -> FollowOnInvestment:
        if self.timing_type == "absolute":
            if self.absolute_date is None:
                raise InvalidInputError("absolute_date is required for absolute timing")
            timing_value = AbsoluteTiming(self.absolute_date)
        else:
            timing_value = RelativeTiming(self.relative_time, self.relative_time_unit)

        if self.valuation_mode == "custom":
            if self.custom_valuation is None:
                raise InvalidInputError("custom_valuation is required for custom valuation")
            valuation = CustomValuation(self.custom_valuation, self.valuation_type)
        else:
            valuation = TagAlong()

        return FollowOnInvestment(
            amount=self.amount,
            investment_type=self.investment_type,
            timing=timing_value,
            valuation=valuation,
        )


class IRRInput(BaseModel):
    """Input for IRR calculation."""

    initial: float
    outcome: float
    years: float


class OutcomeInput(BaseModel):
    """Input for outcome calculation."""

    initial: float
    rate: float
    years: float


class InitialInput(BaseModel):
    """Input for required initial investment calculation."""

    outcome: float
    rate: float
    years: float


class BlendedInput(BaseModel):
    """Input for blended IRR calculation."""

    initial: float
    outcome: float
    years: float
    reference_date: date
    follow_ons: List[FollowOnInput] = []


class PortfolioInput(BaseModel):
    """Input for portfolio unit investment IRR."""

    investment_amount: float
    unit_price: float
    success_rate: float = 1.0
    unit_outcome: float
    years: float

    # Fee structure
    top_line_fee_rate: float = 0.0
    management_fee_rate: float = 1.0
    investor_share_rate: float = 1.0

    reference_date: Optional[date] = None
    follow_ons: List[FollowOnInput] = []


class GrowthPointOutput(BaseModel):
    month: int
    value: float


class CalculationResponse(BaseModel):
    """Response with the calculated rate/amount and growth series."""

    rate: Optional[float] = None
    amount: Optional[float] = None
    growth_points: List[GrowthPointOutput]


class ScheduleEventOutput(BaseModel):
    time_years: float
    amount: float
    label: str


class BlendedResponse(CalculationResponse):
    """Blended IRR with the resolved cash flow schedule."""

    schedule: List[ScheduleEventOutput]
    follow_on_dates: List[date]
    multiple: float


class PortfolioResponse(CalculationResponse):
    """Portfolio IRR with the fee waterfall breakdown."""

    units: float
    waterfall: Dict[str, float]


def _run(request: CalculationRequest) -> CalculationResult:
    settings = get_settings()
    return engine.calculate(
        request,
        guess=settings.irr_guess,
        tolerance=settings.irr_tolerance,
        max_iterations=settings.irr_max_iterations,
        max_outer_iterations=settings.blended_max_iterations,
    )


def _bad_request(error: CalculationError) -> HTTPException:
    logger.warning(f"{type(error).__name__}: {error.message}")
    return HTTPException(status_code=400, detail=error.message)


def _growth_output(result: CalculationResult) -> List[GrowthPointOutput]:
    return [
        GrowthPointOutput(month=point.month, value=point.value)
        for point in result.growth_series
    ]


@router.post("/irr", response_model=CalculationResponse)
async def calculate_irr_endpoint(inputs: IRRInput):
    """Calculate the annual rate turning initial into outcome."""
    try:
        result = _run(ComputeRate(inputs.initial, inputs.outcome, inputs.years))
    except CalculationError as e:
        raise _bad_request(e)

    return CalculationResponse(rate=result.rate, growth_points=_growth_output(result))


@router.post("/outcome", response_model=CalculationResponse)
async def calculate_outcome_endpoint(inputs: OutcomeInput):
    """Project the outcome of an investment at a given rate."""
    try:
        result = _run(ComputeOutcome(inputs.initial, inputs.rate, inputs.years))
    except CalculationError as e:
        raise _bad_request(e)

    return CalculationResponse(amount=result.amount, growth_points=_growth_output(result))


@router.post("/initial", response_model=CalculationResponse)
async def calculate_initial_endpoint(inputs: InitialInput):
    """Calculate the initial investment needed to reach an outcome."""
    try:
        result = _run(ComputeInitial(inputs.outcome, inputs.rate, inputs.years))
    except CalculationError as e:
        raise _bad_request(e)

    return CalculationResponse(amount=result.amount, growth_points=_growth_output(result))


@router.post("/blended", response_model=BlendedResponse)
async def calculate_blended_endpoint(inputs: BlendedInput):
    """Calculate blended IRR with follow-on investments."""
    try:
        follow_ons = tuple(item.to_follow_on() for item in inputs.follow_ons)
        result = _run(
            ComputeBlendedRate(
                inputs.initial,
                inputs.outcome,
                inputs.years,
                follow_ons,
                inputs.reference_date,
            )
        )

        # Tag-along follow-ons valued at the solved rate
        events = schedule.build_schedule(
            inputs.initial,
            inputs.outcome,
            inputs.years,
            follow_ons,
            inputs.reference_date,
            rate=result.rate,
        )
        dates = [timing.event_date(f.timing, inputs.reference_date) for f in follow_ons]
        multiple = irr.calculate_multiple(events)
    except CalculationError as e:
        raise _bad_request(e)

    return BlendedResponse(
        rate=result.rate,
        growth_points=_growth_output(result),
        schedule=[
            ScheduleEventOutput(
                time_years=event.time_years, amount=event.amount, label=event.label
            )
            for event in events
        ],
        follow_on_dates=dates,
        multiple=multiple,
    )


@router.post("/portfolio", response_model=PortfolioResponse)
async def calculate_portfolio_endpoint(inputs: PortfolioInput):
    """Calculate portfolio unit investment IRR after success rate and fees."""
    try:
        follow_ons = tuple(item.to_follow_on() for item in inputs.follow_ons)
        result = _run(
            ComputePortfolioRate(
                investment_amount=inputs.investment_amount,
                unit_price=inputs.unit_price,
                success_rate=inputs.success_rate,
                unit_outcome=inputs.unit_outcome,
                years=inputs.years,
                top_line_fee_rate=inputs.top_line_fee_rate,
                management_fee_rate=inputs.management_fee_rate,
                investor_share_rate=inputs.investor_share_rate,
                follow_ons=follow_ons,
                reference_date=inputs.reference_date,
            )
        )

        units = waterfall.portfolio_units(
            inputs.investment_amount, inputs.unit_price, follow_ons
        )
        breakdown = waterfall.calculate_fee_waterfall(
            units,
            inputs.unit_outcome,
            inputs.success_rate,
            inputs.top_line_fee_rate,
            inputs.management_fee_rate,
            inputs.investor_share_rate,
        )
    except CalculationError as e:
        raise _bad_request(e)

    return PortfolioResponse(
        rate=result.rate,
        amount=result.amount,
        growth_points=_growth_output(result),
        units=units,
        waterfall={key: round(value, 2) for key, value in breakdown.items()},
    )
