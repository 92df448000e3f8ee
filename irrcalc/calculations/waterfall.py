"""
Fee Waterfall Calculations

Turns the gross expected proceeds of a portfolio unit investment into the
investor's net outcome. Capital buys units (leads, claims, patents, ...), a
share of them succeed, and each success pays a fixed outcome that is then
cut down by a sequence of percentage deductions.

Structure:
1. Success Rate - only successful units pay out
2. Top-Line Fee - taken off gross proceeds first
3. Management/Counsel Share - portion of the remainder paid to counsel
4. Investor Share - investor's cut of the counsel share
"""

from datetime import date
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from irrcalc.calculations.exceptions import InvalidFeeRateError, InvalidInputError
from irrcalc.calculations.irr import DEFAULT_GUESS, MAX_ITERATIONS, TOLERANCE, solve_rate
from irrcalc.calculations.models import FollowOnInvestment, InvestmentType, TagAlong
from irrcalc.calculations.schedule import build_schedule


@dataclass(frozen=True)
class FeeStructure:
    """Deductions applied after success-rate attrition."""

    top_line_fee_rate: float = 0.0  # Off the top of gross proceeds (e.g., 0.05 for 5%)
    management_fee_rate: float = 1.0  # Share of the remainder going to counsel
    investor_share_rate: float = 1.0  # Investor's share of the counsel share


# No fees: the investor keeps every successful unit's outcome
DEFAULT_FEE_STRUCTURE = FeeStructure()


def _check_rate(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise InvalidFeeRateError(f"{name} must be between 0 and 1, got {value}")


def calculate_fee_waterfall(
    gross_units: float,
    unit_outcome: float,
    success_rate: float,
    top_line_fee_rate: float = 0.0,
    management_fee_rate: float = 1.0,
    investor_share_rate: float = 1.0,
) -> Dict:
    """
    Run gross proceeds through the fee waterfall.

    Each stage feeds the next:
        successful_units = gross_units * success_rate
        gross_proceeds = successful_units * unit_outcome
        after_top_line = gross_proceeds * (1 - top_line_fee_rate)
        counsel_share = after_top_line * management_fee_rate
        net_investor_outcome = counsel_share * investor_share_rate

    Args:
        gross_units: Units held before attrition
        unit_outcome: Payout per successful unit
        success_rate: Fraction of units that succeed (0-1)
        top_line_fee_rate: Fee taken off gross proceeds (0-1)
        management_fee_rate: Counsel share of the remainder (0-1)
        investor_share_rate: Investor share of the counsel share (0-1)

    Returns:
        Stage-by-stage breakdown

    Raises:
        InvalidFeeRateError: If any rate lies outside [0, 1]
    """
    if gross_units < 0:
        raise InvalidInputError("Number of units cannot be negative")
    if unit_outcome < 0:
        raise InvalidInputError("Outcome per unit cannot be negative")

    _check_rate("Success rate", success_rate)
    _check_rate("Top-line fee rate", top_line_fee_rate)
    _check_rate("Management fee rate", management_fee_rate)
    _check_rate("Investor share rate", investor_share_rate)

    successful_units = gross_units * success_rate
    gross_proceeds = successful_units * unit_outcome
    after_top_line = gross_proceeds * (1 - top_line_fee_rate)
    counsel_share = after_top_line * management_fee_rate
    net_investor_outcome = counsel_share * investor_share_rate

    return {
        "gross_units": gross_units,
        "successful_units": successful_units,
        "gross_proceeds": gross_proceeds,
        "top_line_fee": gross_proceeds - after_top_line,
        "after_top_line": after_top_line,
        "counsel_share": counsel_share,
        "net_investor_outcome": net_investor_outcome,
    }


def net_outcome(
    gross_units: float,
    unit_outcome: float,
    success_rate: float,
    top_line_fee_rate: float = 0.0,
    management_fee_rate: float = 1.0,
    investor_share_rate: float = 1.0,
) -> float:
    """Net investor outcome after attrition and fees."""
    breakdown = calculate_fee_waterfall(
        gross_units,
        unit_outcome,
        success_rate,
        top_line_fee_rate,
        management_fee_rate,
        investor_share_rate,
    )
    return breakdown["net_investor_outcome"]


def units_for_amount(amount: float, unit_price: float) -> float:
    """Number of units an amount buys at unit_price."""
    if not unit_price > 0:
        raise InvalidInputError("Unit price must be greater than zero")
    if amount < 0:
        raise InvalidInputError("Investment amount cannot be negative")
    return amount / unit_price


def portfolio_units(
    investment_amount: float,
    unit_price: float,
    follow_ons: Sequence[FollowOnInvestment] = (),
) -> float:
    """
    Units held across the initial batch and follow-on batches.

    Follow-on batches are priced by their custom valuation (the batch's unit
    price); sales remove units.
    """
    units = units_for_amount(investment_amount, unit_price)
    for follow_on in follow_ons:
        if isinstance(follow_on.valuation, TagAlong):
            raise InvalidInputError(
                "Portfolio follow-on batches need a unit price (custom valuation)"
            )
        if follow_on.investment_type == InvestmentType.SELL:
            units -= follow_on.units
        else:
            units += follow_on.units

    if units < 0:
        raise InvalidInputError("Follow-on sales exceed the units held")
    return units


def calculate_portfolio_irr(
    investment_amount: float,
    unit_price: float,
    success_rate: float,
    unit_outcome: float,
    years: float,
    fees: FeeStructure = DEFAULT_FEE_STRUCTURE,
    follow_ons: Sequence[FollowOnInvestment] = (),
    reference_date: Optional[date] = None,
    guess: float = DEFAULT_GUESS,
    tolerance: float = TOLERANCE,
    max_iterations: int = MAX_ITERATIONS,
) -> Tuple[float, float]:
    """
    IRR of a portfolio unit investment.

    Returns:
        (annual rate, net investor outcome)
    """
    units = portfolio_units(investment_amount, unit_price, follow_ons)
    outcome = net_outcome(
        units,
        unit_outcome,
        success_rate,
        fees.top_line_fee_rate,
        fees.management_fee_rate,
        fees.investor_share_rate,
    )

    schedule = build_schedule(
        investment_amount, outcome, years, follow_ons, reference_date
    )
    rate = solve_rate(
        schedule, guess=guess, tolerance=tolerance, max_iterations=max_iterations
    )
    return rate, outcome
