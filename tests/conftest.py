"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os
from datetime import date

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from irrcalc.calculations.models import (
    CustomValuation,
    FollowOnInvestment,
    InvestmentType,
    RelativeTiming,
    TagAlong,
    TimeUnit,
    ValuationType,
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture
def reference_date():
    """Initial investment date used across follow-on tests."""
    return date(2025, 1, 1)


@pytest.fixture
def specified_buy():
    """$50k follow-on buy one year in at a specified valuation."""
    return FollowOnInvestment(
        amount=50000,
        investment_type=InvestmentType.BUY,
        timing=RelativeTiming(1, TimeUnit.YEARS),
        valuation=CustomValuation(50000, ValuationType.SPECIFIED),
    )


@pytest.fixture
def tag_along_buy():
    """$50 tag-along follow-on buy one year in."""
    return FollowOnInvestment(
        amount=50,
        investment_type=InvestmentType.BUY,
        timing=RelativeTiming(1, TimeUnit.YEARS),
        valuation=TagAlong(),
    )
