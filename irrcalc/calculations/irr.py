"""
IRR and NPV Calculations

Solves for the annual rate that zeroes a cash flow schedule's NPV using
Newton-Raphson with a bisection fallback, plus the closed-form inverse
calculations (outcome from rate, initial from rate) and the blended rate
for schedules with tag-along follow-ons.
"""

import logging
import math
from datetime import date
from typing import Optional, Sequence, Tuple

import numpy as np

from irrcalc.calculations.exceptions import (
    ConvergenceError,
    DivisionByZeroError,
    InvalidInputError,
    NoSignChangeError,
)
from irrcalc.calculations.models import CashFlowEvent, FollowOnInvestment
from irrcalc.calculations.schedule import build_schedule, compound, simple_rate

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100
MAX_OUTER_ITERATIONS = 20
TOLERANCE = 1e-6
DEFAULT_GUESS = 0.1

# Bisection bracket: -99% to 1000% per year
RATE_FLOOR = -0.99
RATE_CEILING = 10.0

STEP_TOLERANCE = 1e-12
DERIVATIVE_EPSILON = 1e-12


def _as_arrays(schedule: Sequence[CashFlowEvent]) -> Tuple[np.ndarray, np.ndarray]:
    times = np.array([event.time_years for event in schedule], dtype=float)
    amounts = np.array([event.amount for event in schedule], dtype=float)
    return times, amounts


def _npv(times: np.ndarray, amounts: np.ndarray, rate: float) -> float:
    return float(np.sum(amounts * (1 + rate) ** (-times)))


def _npv_derivative(times: np.ndarray, amounts: np.ndarray, rate: float) -> float:
    """Derivative of NPV with respect to rate (for Newton-Raphson)."""
    return float(np.sum(-times * amounts * (1 + rate) ** (-times - 1)))


def calculate_npv(schedule: Sequence[CashFlowEvent], rate: float) -> float:
    """
    Calculate NPV (Net Present Value) of a cash flow schedule.

    Args:
        schedule: Cash flow events (negative = outflow, positive = inflow)
        rate: Annual discount rate (e.g., 0.10 for 10%)

    Returns:
        NPV value
    """
    if rate <= -1:
        raise InvalidInputError(f"Discount rate must be greater than -100%, got {rate}")
    times, amounts = _as_arrays(schedule)
    return _npv(times, amounts, rate)


def _check_sign_change(amounts: np.ndarray) -> None:
    has_positive = bool(np.any(amounts > 0))
    has_negative = bool(np.any(amounts < 0))

    if not has_positive or not has_negative:
        raise NoSignChangeError()


def _closed_form(schedule: Sequence[CashFlowEvent]) -> Optional[float]:
    """Rate for a single outflow at t=0 followed by a single inflow, else None."""
    if len(schedule) != 2:
        return None
    start, end = schedule
    if start.time_years == 0 and start.amount < 0 and end.time_years > 0 and end.amount > 0:
        return compound(end.amount / -start.amount, 1.0 / end.time_years) - 1.0
    return None


def _bisect(
    times: np.ndarray, amounts: np.ndarray, tolerance: float, max_iterations: int
) -> float:
    low, high = RATE_FLOOR, RATE_CEILING
    npv_low = _npv(times, amounts, low)
    npv_high = _npv(times, amounts, high)

    if abs(npv_low) < tolerance:
        return low
    if abs(npv_high) < tolerance:
        return high
    if npv_low * npv_high > 0:
        raise ConvergenceError(
            f"No rate between {RATE_FLOOR:.0%} and {RATE_CEILING:.0%} zeroes the NPV"
        )

    for _ in range(max_iterations):
        mid = (low + high) / 2
        npv_mid = _npv(times, amounts, mid)

        if abs(npv_mid) < tolerance or (high - low) / 2 < STEP_TOLERANCE:
            return mid

        if (npv_mid < 0) == (npv_low < 0):
            low, npv_low = mid, npv_mid
        else:
            high = mid

    logger.warning(f"Bisection did not converge after {max_iterations} iterations")
    raise ConvergenceError(f"IRR bisection did not converge after {max_iterations} iterations")


def solve_rate(
    schedule: Sequence[CashFlowEvent],
    guess: float = DEFAULT_GUESS,
    tolerance: float = TOLERANCE,
    max_iterations: int = MAX_ITERATIONS,
) -> float:
    """
    Calculate IRR (Internal Rate of Return) of a dated cash flow schedule.

    Finds r such that sum(amount * (1 + r) ** -time_years) == 0 using
    Newton-Raphson, falling back to bisection over [-0.99, 10.0] when the
    derivative vanishes or a step leaves that bracket.

    Args:
        schedule: Cash flow events with time in years
        guess: Initial guess for rate (default 0.1 = 10%)
        tolerance: Converged once |NPV| falls below this
        max_iterations: Iteration cap for each phase

    Returns:
        Annual IRR as decimal (e.g., 0.15 for 15%)

    Raises:
        InvalidInputError: Fewer than 2 cash flows
        NoSignChangeError: Cash flows are all one sign
        ConvergenceError: Tolerance not reached within the cap
    """
    if len(schedule) < 2:
        raise InvalidInputError("At least 2 cash flows required")

    times, amounts = _as_arrays(schedule)
    _check_sign_change(amounts)

    closed = _closed_form(schedule)
    if closed is not None:
        logger.debug(f"Two-event schedule, closed-form rate {closed:.6f}")
        return closed

    rate = guess

    for _ in range(max_iterations):
        npv = _npv(times, amounts, rate)
        if abs(npv) < tolerance:
            return rate

        dnpv = _npv_derivative(times, amounts, rate)

        if abs(dnpv) < DERIVATIVE_EPSILON:
            logger.debug(f"Derivative vanished at rate {rate:.6f}, falling back to bisection")
            return _bisect(times, amounts, tolerance, max_iterations)

        new_rate = rate - npv / dnpv

        if not math.isfinite(new_rate) or not RATE_FLOOR <= new_rate <= RATE_CEILING:
            logger.debug(f"Newton step to {new_rate} left the bracket, falling back to bisection")
            return _bisect(times, amounts, tolerance, max_iterations)

        if abs(new_rate - rate) < STEP_TOLERANCE:
            return new_rate

        rate = new_rate

    logger.warning(f"Newton-Raphson did not converge after {max_iterations} iterations")
    raise ConvergenceError(f"IRR calculation did not converge after {max_iterations} iterations")


def calculate_irr(initial: float, outcome: float, years: float) -> float:
    """
    Annual rate turning initial into outcome over years.

    r = (outcome / initial) ** (1 / years) - 1
    """
    if not initial > 0:
        raise InvalidInputError("Initial investment must be greater than zero")
    if not outcome > 0:
        raise InvalidInputError("Outcome must be greater than zero")
    if not years > 0:
        raise InvalidInputError("Time period must be greater than zero")

    return simple_rate(initial, outcome, years)


def calculate_outcome(initial: float, rate: float, years: float) -> float:
    """Value of initial compounded at rate for years."""
    if not initial > 0:
        raise InvalidInputError("Initial investment must be greater than zero")
    if not rate > -1:
        raise InvalidInputError("Rate must be greater than -100%")
    if years < 0:
        raise InvalidInputError("Time period cannot be negative")

    outcome = initial * compound(1.0 + rate, years)
    if not math.isfinite(outcome):
        raise InvalidInputError("Outcome is too large to calculate")
    return outcome


def calculate_initial(outcome: float, rate: float, years: float) -> float:
    """
    Initial investment required to reach outcome at rate over years.

    Raises:
        DivisionByZeroError: If (1 + rate) ** years is zero (rate <= -100%
            or underflow)
        InvalidInputError: If (1 + rate) ** years overflows
    """
    if not outcome > 0:
        raise InvalidInputError("Outcome must be greater than zero")
    if years < 0:
        raise InvalidInputError("Time period cannot be negative")
    if rate <= -1:
        raise DivisionByZeroError(f"Cannot discount at a rate of {rate:.2%}")

    divisor = compound(1.0 + rate, years)
    if divisor == 0:
        raise DivisionByZeroError(
            f"Growth factor underflowed to zero at rate {rate} over {years} years"
        )

    return outcome / divisor


def solve_blended_rate(
    initial: float,
    outcome: float,
    years: float,
    follow_ons: Sequence[FollowOnInvestment],
    reference_date: Optional[date],
    guess: float = DEFAULT_GUESS,
    tolerance: float = TOLERANCE,
    max_iterations: int = MAX_ITERATIONS,
    max_outer_iterations: int = MAX_OUTER_ITERATIONS,
) -> float:
    """
    Rate of a schedule with follow-on investments.

    Tag-along follow-ons are valued on the growth curve implied by the rate
    being solved, so the rate is found by fixed-point iteration: value the
    tag-alongs at the current rate, re-solve, repeat until the rate moves by
    less than tolerance.

    Raises:
        ConvergenceError: If the rate is still moving after max_outer_iterations
    """
    schedule = build_schedule(initial, outcome, years, follow_ons, reference_date)

    if not any(follow_on.is_tag_along for follow_on in follow_ons):
        return solve_rate(
            schedule, guess=guess, tolerance=tolerance, max_iterations=max_iterations
        )

    rate = simple_rate(initial, outcome, years)

    for iteration in range(max_outer_iterations):
        schedule = build_schedule(initial, outcome, years, follow_ons, reference_date, rate)
        new_rate = solve_rate(
            schedule,
            guess=rate if RATE_FLOOR < rate < RATE_CEILING else guess,
            tolerance=tolerance,
            max_iterations=max_iterations,
        )
        logger.debug(f"Blended iteration {iteration + 1}: {rate:.8f} -> {new_rate:.8f}")

        if abs(new_rate - rate) < tolerance:
            return new_rate

        rate = new_rate

    logger.warning(
        f"Blended rate did not settle after {max_outer_iterations} outer iterations"
    )
    raise ConvergenceError(
        f"Blended IRR did not converge after {max_outer_iterations} outer iterations"
    )


def calculate_blended_irr(
    initial: float,
    outcome: float,
    years: float,
    follow_ons: Sequence[FollowOnInvestment],
    reference_date: Optional[date],
    guess: float = DEFAULT_GUESS,
    tolerance: float = TOLERANCE,
    max_iterations: int = MAX_ITERATIONS,
    max_outer_iterations: int = MAX_OUTER_ITERATIONS,
) -> float:
    """Blended IRR of an initial investment, its follow-ons, and the exit."""
    if not outcome > 0:
        raise InvalidInputError("Outcome must be greater than zero")

    return solve_blended_rate(
        initial,
        outcome,
        years,
        follow_ons,
        reference_date,
        guess=guess,
        tolerance=tolerance,
        max_iterations=max_iterations,
        max_outer_iterations=max_outer_iterations,
    )


def calculate_multiple(schedule: Sequence[CashFlowEvent]) -> float:
    """
    Calculate equity multiple.

    Args:
        schedule: Cash flow events (investments are negative)

    Returns:
        Multiple (e.g., 2.0 = 2.0x return)
    """
    total_inflows = sum(event.amount for event in schedule if event.amount > 0)
    total_outflows = abs(sum(event.amount for event in schedule if event.amount < 0))

    if total_outflows == 0:
        raise InvalidInputError("No investment (outflows) found")

    return total_inflows / total_outflows


def calculate_profit(schedule: Sequence[CashFlowEvent]) -> float:
    """Calculate profit (total inflows minus total outflows)."""
    return sum(event.amount for event in schedule)
