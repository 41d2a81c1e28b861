"""
Health Check Endpoints
======================
Liveness and readiness checks.
"""

from decimal import Decimal
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from backend import __version__
from backend.core.pricing import get_pricing_engine
from backend.services.ledger import CostLedger, get_cost_ledger

router = APIRouter()
logger = structlog.get_logger()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: str
    ledger: str
    pricing_models: int
    daily_budget_usd: Decimal
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Liveness endpoint.
    Returns OK if the service is running.
    """
    return HealthResponse(status="ok", version=__version__)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(
    ledger: Annotated[CostLedger, Depends(get_cost_ledger)],
) -> ReadinessResponse:
    """
    Readiness endpoint.

    Ready when today's ledger record can be read, since the budget
    guardrail depends on it. Also reports the size of the pricing table.
    """
    try:
        await ledger.get_record()
        ledger_status = "available"
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Cost ledger unavailable", error=str(e))
        ledger_status = "unavailable"

    return ReadinessResponse(
        status="ok" if ledger_status == "available" else "degraded",
        ledger=ledger_status,
        pricing_models=len(get_pricing_engine().get_models()),
        daily_budget_usd=ledger.daily_budget_usd,
        version=__version__,
    )
