"""
Main FastAPI application entry point.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from mortgage_planner.config import get_settings
from mortgage_planner.api import router as api_router
from mortgage_planner.calculations.errors import InternalComputationError, ValidationError
from mortgage_planner.services.properties import PropertyNotFoundError

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Mortgage cost, refinance and rental cash-flow planning for property owners",
    version="0.1.0",
    debug=settings.debug,
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Invalid calculation input: show the message as is."""
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(InternalComputationError)
async def computation_error_handler(request: Request, exc: InternalComputationError):
    """Unexpected engine failure: log it and hide the details."""
    logger.exception("Calculation failed for %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "The calculation could not be completed. Please check your inputs and try again."},
    )


@app.exception_handler(PropertyNotFoundError)
async def property_not_found_handler(request: Request, exc: PropertyNotFoundError):
    return JSONResponse(status_code=404, content={"detail": "Property not found"})


# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": "0.1.0"}
