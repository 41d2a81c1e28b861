"""
Usage Schemas
=============
Pydantic models for the daily cost ledger, completion audit entries
and pricing information.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DailyCostRecord(BaseModel):
    """Snapshot of one date's model usage and spend."""

    model_config = ConfigDict(from_attributes=True)

    date: date
    request_count: int = 0
    total_prompt_tokens: int = 0
    total_completion_tokens: int = 0
    total_tokens: int = 0
    total_cost_usd: Decimal = Decimal("0")

    @classmethod
    def empty(cls, day: date) -> "DailyCostRecord":
        return cls(date=day)


class BudgetStatus(str, Enum):
    """Whether cumulative spend is under the daily ceiling."""

    WITHIN_BUDGET = "within_budget"
    EXCEEDED = "exceeded"
    UNKNOWN = "unknown"


class CompletionAuditEntry(BaseModel):
    """
    Full record of one completion attempt that reached the model.
    Written to the per-date audit log.
    """

    model_config = ConfigDict(protected_namespaces=())

    timestamp: datetime
    query_address: str
    model_id: str
    duration_ms: int = Field(..., ge=0)
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    request_cost_usd: Decimal = Decimal("0")
    cumulative_daily_cost_usd: Decimal | None = None
    daily_request_count: int | None = None
    daily_budget_usd: Decimal = Decimal("0")
    budget_status: BudgetStatus = BudgetStatus.UNKNOWN
    completion_id: str | None = None
    finish_reason: str | None = None
    response_content: str | None = None
    raw_response_payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class TodayUsageResponse(BaseModel):
    """Today's ledger record together with the guardrail state."""

    record: DailyCostRecord
    daily_budget_usd: Decimal
    remaining_usd: Decimal
    budget_status: BudgetStatus


class DailyUsageResponse(BaseModel):
    """Ledger records for a date range."""

    start_date: date
    end_date: date
    items: list[DailyCostRecord]
    total_cost_usd: Decimal
    total_tokens: int
    total_requests: int


class ModelPricing(BaseModel):
    """Pricing information for a model."""

    model: str
    input_price_per_1m: Decimal
    output_price_per_1m: Decimal


class PricingModelsResponse(BaseModel):
    """All priced models and the default tier."""

    default_model: str
    models: list[ModelPricing]
