"""
Pydantic Schemas
================
Request/Response models for API validation.
"""

from backend.schemas.spots import (
    Coordinates,
    GeneratedSpots,
    GenerateSpotsRequest,
    Review,
    SearchResult,
    SpotCategory,
    TouristSpot,
)
from backend.schemas.usage import (
    BudgetStatus,
    CompletionAuditEntry,
    DailyCostRecord,
    DailyUsageResponse,
    ModelPricing,
    PricingModelsResponse,
    TodayUsageResponse,
)

__all__ = [
    "BudgetStatus",
    "CompletionAuditEntry",
    "Coordinates",
    "DailyCostRecord",
    "DailyUsageResponse",
    "GenerateSpotsRequest",
    "GeneratedSpots",
    "ModelPricing",
    "PricingModelsResponse",
    "Review",
    "SearchResult",
    "SpotCategory",
    "TodayUsageResponse",
    "TouristSpot",
]
