"""
Calculation Dispatch

Single entry point for the five calculation modes. Each request produces
one result carrying the solved rate or amount and the growth series to
chart. Stateless; every call depends only on its arguments.
"""

import logging

from irrcalc.calculations.exceptions import InvalidInputError
from irrcalc.calculations.growth import growth_points, growth_points_with_follow_on
from irrcalc.calculations.irr import (
    DEFAULT_GUESS,
    MAX_ITERATIONS,
    MAX_OUTER_ITERATIONS,
    TOLERANCE,
    calculate_blended_irr,
    calculate_initial,
    calculate_irr,
    calculate_outcome,
)
from irrcalc.calculations.models import (
    CalculationRequest,
    CalculationResult,
    ComputeBlendedRate,
    ComputeInitial,
    ComputeOutcome,
    ComputePortfolioRate,
    ComputeRate,
)
from irrcalc.calculations.waterfall import FeeStructure, calculate_portfolio_irr

logger = logging.getLogger(__name__)


def calculate(
    request: CalculationRequest,
    guess: float = DEFAULT_GUESS,
    tolerance: float = TOLERANCE,
    max_iterations: int = MAX_ITERATIONS,
    max_outer_iterations: int = MAX_OUTER_ITERATIONS,
) -> CalculationResult:
    """
    Run one calculation request.

    Args:
        request: ComputeRate, ComputeOutcome, ComputeInitial,
            ComputeBlendedRate or ComputePortfolioRate
        guess, tolerance, max_iterations, max_outer_iterations: Solver options
            for the modes that iterate

    Returns:
        CalculationResult with rate and/or amount and the growth series

    Raises:
        CalculationError subclasses on invalid input or solver failure
    """
    logger.debug(f"Calculating {type(request).__name__}")

    if isinstance(request, ComputeRate):
        rate = calculate_irr(request.initial, request.outcome, request.years)
        return CalculationResult(
            rate=rate,
            growth_series=growth_points(request.initial, rate, request.years),
        )

    if isinstance(request, ComputeOutcome):
        outcome = calculate_outcome(request.initial, request.rate, request.years)
        return CalculationResult(
            amount=outcome,
            growth_series=growth_points(request.initial, request.rate, request.years),
        )

    if isinstance(request, ComputeInitial):
        initial = calculate_initial(request.outcome, request.rate, request.years)
        return CalculationResult(
            amount=initial,
            growth_series=growth_points(initial, request.rate, request.years),
        )

    if isinstance(request, ComputeBlendedRate):
        rate = calculate_blended_irr(
            request.initial,
            request.outcome,
            request.years,
            request.follow_ons,
            request.reference_date,
            guess=guess,
            tolerance=tolerance,
            max_iterations=max_iterations,
            max_outer_iterations=max_outer_iterations,
        )
        return CalculationResult(
            rate=rate,
            growth_series=growth_points_with_follow_on(
                request.initial,
                rate,
                request.years,
                request.follow_ons,
                request.reference_date,
                outcome=request.outcome,
            ),
        )

    if isinstance(request, ComputePortfolioRate):
        rate, outcome = calculate_portfolio_irr(
            request.investment_amount,
            request.unit_price,
            request.success_rate,
            request.unit_outcome,
            request.years,
            fees=FeeStructure(
                top_line_fee_rate=request.top_line_fee_rate,
                management_fee_rate=request.management_fee_rate,
                investor_share_rate=request.investor_share_rate,
            ),
            follow_ons=request.follow_ons,
            reference_date=request.reference_date,
            guess=guess,
            tolerance=tolerance,
            max_iterations=max_iterations,
        )
        return CalculationResult(
            rate=rate,
            amount=outcome,
            growth_series=growth_points_with_follow_on(
                request.investment_amount,
                rate,
                request.years,
                request.follow_ons,
                request.reference_date,
                outcome=outcome,
            ),
        )

    raise InvalidInputError(f"Unsupported calculation request: {type(request).__name__}")
