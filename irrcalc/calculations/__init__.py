"""
Return Calculation Engine

Core calculation modules for investment return analysis: rate solving,
inverse calculations, growth projection and the portfolio fee waterfall.
All functions are pure; nothing is cached or persisted between calls.
"""

from irrcalc.calculations import engine, growth, irr, schedule, timing, valuation, waterfall
from irrcalc.calculations.engine import calculate
from irrcalc.calculations.growth import growth_points, growth_points_with_follow_on
from irrcalc.calculations.irr import (
    calculate_blended_irr,
    calculate_initial,
    calculate_irr,
    calculate_outcome,
)
from irrcalc.calculations.waterfall import calculate_portfolio_irr, net_outcome

__all__ = [
    "engine",
    "growth",
    "irr",
    "schedule",
    "timing",
    "valuation",
    "waterfall",
    "calculate",
    "calculate_irr",
    "calculate_outcome",
    "calculate_initial",
    "calculate_blended_irr",
    "growth_points",
    "growth_points_with_follow_on",
    "net_outcome",
    "calculate_portfolio_irr",
]
