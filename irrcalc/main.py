"""
Main FastAPI application entry point.
"""

import logging

from fastapi import FastAPI

from irrcalc.config import get_settings
from irrcalc.api import router as api_router

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Investment return calculator: IRR, outcome, initial, blended and portfolio modes",
    version="0.1.0",
    debug=settings.debug,
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": "0.1.0"}
