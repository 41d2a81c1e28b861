"""
Usage Endpoints
===============
API endpoints reporting the daily cost ledger.
"""

from datetime import date
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError

from backend.schemas.usage import BudgetStatus, DailyUsageResponse, TodayUsageResponse
from backend.services.ledger import CostLedger, get_cost_ledger

router = APIRouter()
logger = structlog.get_logger()


@router.get(
    "/today",
    response_model=TodayUsageResponse,
    summary="Get today's usage",
    description="Get today's model usage, spend and remaining daily budget",
)
async def get_today_usage(
    ledger: Annotated[CostLedger, Depends(get_cost_ledger)],
) -> TodayUsageResponse:
    """
    Get today's ledger record.

    Returns:
    - Request count, token totals and spend for today
    - The daily budget and what is left of it
    """
    try:
        record = await ledger.get_record()
    except SQLAlchemyError as e:
        logger.error("Failed to read today's usage", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve today's usage",
        ) from e

    exceeded = record.total_cost_usd >= ledger.daily_budget_usd
    return TodayUsageResponse(
        record=record,
        daily_budget_usd=ledger.daily_budget_usd,
        remaining_usd=max(ledger.daily_budget_usd - record.total_cost_usd, 0),
        budget_status=BudgetStatus.EXCEEDED if exceeded else BudgetStatus.WITHIN_BUDGET,
    )


@router.get(
    "/daily",
    response_model=DailyUsageResponse,
    summary="Get daily usage history",
    description="Get ledger records for a date range",
)
async def get_daily_usage(
    ledger: Annotated[CostLedger, Depends(get_cost_ledger)],
    start_date: Annotated[date | None, Query(description="Start date (YYYY-MM-DD)")] = None,
    end_date: Annotated[date | None, Query(description="End date (YYYY-MM-DD)")] = None,
) -> DailyUsageResponse:
    """
    Get the ledger history.

    Defaults to the last 30 days if no date range is specified.
    """
    try:
        start_date, end_date, items = await ledger.get_summary_range(start_date, end_date)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except SQLAlchemyError as e:
        logger.error("Failed to read usage history", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve usage history",
        ) from e

    return DailyUsageResponse(
        start_date=start_date,
        end_date=end_date,
        items=items,
        total_cost_usd=sum(item.total_cost_usd for item in items),
        total_tokens=sum(item.total_tokens for item in items),
        total_requests=sum(item.request_count for item in items),
    )
