"""
API routes for the return calculator.
"""

from fastapi import APIRouter

from irrcalc.api import calculations

router = APIRouter()

# Include sub-routers
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
