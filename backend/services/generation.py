"""
Spot Generation Service
=======================
Sequences one generation request: validation, budget guardrail, model
call, usage accounting, audit logging, parsing and image enrichment.
"""

import json
import time
from datetime import datetime
from functools import lru_cache
from typing import Optional

import openai
import structlog
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from backend.config import settings
from backend.core.errors import (
    BudgetExceededError,
    GenerationFailedError,
    InvalidAddressError,
    MissingCredentialError,
)
from backend.core.metrics import GENERATION_REQUESTS
from backend.core.prompts import build_messages
from backend.schemas.spots import GeneratedSpots, SearchResult, TouristSpot
from backend.schemas.usage import BudgetStatus, CompletionAuditEntry, DailyCostRecord
from backend.services.audit import CompletionAuditLogger, get_audit_logger
from backend.services.completion import ChatCompletionClient, CompletionResult
from backend.services.enrichment import EnrichmentOrchestrator
from backend.services.ledger import CostLedger, get_cost_ledger

logger = structlog.get_logger()

FAILURE_MESSAGE = "Failed to generate travel spots. Please try again."


class GenerationService:
    """
    Produces a ``SearchResult`` for an address.

    Anything that would spend model budget is rejected before the model is
    called. Ledger and audit failures after the call are logged and never
    change the response.
    """

    def __init__(
        self,
        ledger: CostLedger,
        audit_logger: CompletionAuditLogger,
        completion_client: ChatCompletionClient,
        enrichment: EnrichmentOrchestrator,
        spot_count: Optional[int] = None,
    ):
        self.ledger = ledger
        self.audit_logger = audit_logger
        self.completion_client = completion_client
        self.enrichment = enrichment
        self.spot_count = spot_count or settings.spot_count

    async def generate(self, address: Optional[str], api_key: Optional[str]) -> SearchResult:
        """
        Generate enriched tourist spots near an address.

        Raises:
            MissingCredentialError: No model API key
            InvalidAddressError: Blank address
            BudgetExceededError: Daily ceiling already reached
            GenerationFailedError: Model call or payload parsing failed
        """
        if not api_key or not api_key.strip():
            GENERATION_REQUESTS.labels(outcome="missing_credential").inc()
            raise MissingCredentialError(
                "No API key provided. Click 'Set API Key' and enter your OpenAI key."
            )

        address = (address or "").strip()
        if not address:
            GENERATION_REQUESTS.labels(outcome="invalid_address").inc()
            raise InvalidAddressError("Please provide an address or location.")

        if await self.ledger.check_budget_exceeded():
            GENERATION_REQUESTS.labels(outcome="budget_exceeded").inc()
            logger.warning("Daily model budget exceeded, request blocked", address=address)
            raise BudgetExceededError("Daily request limit reached. Please try again tomorrow.")

        completion, duration_ms = await self._call_model(address, api_key.strip())
        await self._account(address, completion, duration_ms)

        generated = self._parse(completion)
        spots = await self.enrichment.enrich(generated.spots)

        GENERATION_REQUESTS.labels(outcome="success").inc()
        return SearchResult(
            location_name=generated.location_name or address,
            spots=spots,
        )

    async def _call_model(self, address: str, api_key: str) -> tuple[CompletionResult, int]:
        start_time = time.monotonic()
        try:
            result = await self.completion_client.complete(
                api_key=api_key,
                messages=build_messages(address, self.spot_count),
            )
        except openai.OpenAIError as e:
            GENERATION_REQUESTS.labels(outcome="model_error").inc()
            logger.error("Model call failed", address=address, error=str(e), error_type=type(e).__name__)
            raise GenerationFailedError(FAILURE_MESSAGE) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            "Model call completed",
            address=address,
            model=result.model,
            duration_ms=duration_ms,
            prompt_tokens=result.prompt_tokens,
            completion_tokens=result.completion_tokens,
        )
        return result, duration_ms

    async def _account(self, address: str, result: CompletionResult, duration_ms: int) -> None:
        """Record usage in the ledger, then write the audit entry."""
        request_cost = self.ledger.pricing.calculate_cost(
            result.model, result.prompt_tokens, result.completion_tokens
        )

        record: DailyCostRecord | None = None
        try:
            record = await self.ledger.record_usage(
                result.model, result.prompt_tokens, result.completion_tokens
            )
        except (SQLAlchemyError, OSError) as e:
            logger.error("Failed to record model usage", model=result.model, error=str(e))

        if record is None:
            budget_status = BudgetStatus.UNKNOWN
        elif record.total_cost_usd >= self.ledger.daily_budget_usd:
            budget_status = BudgetStatus.EXCEEDED
        else:
            budget_status = BudgetStatus.WITHIN_BUDGET

        entry = CompletionAuditEntry(
            timestamp=datetime.now().astimezone(),
            query_address=address,
            model_id=result.model,
            duration_ms=duration_ms,
            prompt_tokens=result.prompt_tokens,
            completion_tokens=result.completion_tokens,
            request_cost_usd=request_cost,
            cumulative_daily_cost_usd=record.total_cost_usd if record else None,
            daily_request_count=record.request_count if record else None,
            daily_budget_usd=self.ledger.daily_budget_usd,
            budget_status=budget_status,
            completion_id=result.completion_id,
            finish_reason=result.finish_reason,
            response_content=result.content,
            raw_response_payload=result.raw,
        )
        await self.audit_logger.log(entry)

    def _parse(self, result: CompletionResult) -> GeneratedSpots:
        """
        Parse the model payload spot by spot.

        A spot that fails validation is dropped with a warning; the request
        only fails when the payload is unusable as a whole.
        """
        try:
            payload = json.loads(result.content or "{}")
            if not isinstance(payload, dict) or not isinstance(payload.get("spots"), list):
                raise ValueError("Model payload has no spots list")

            spots = []
            for index, item in enumerate(payload["spots"]):
                try:
                    spots.append(TouristSpot.model_validate(item))
                except ValidationError as e:
                    logger.warning(
                        "Dropping malformed spot",
                        index=index,
                        completion_id=result.completion_id,
                        error=str(e),
                    )
            if payload["spots"] and not spots:
                raise ValueError("No usable spots in model payload")

            location_name = payload.get("locationName")
            return GeneratedSpots(
                location_name=location_name if isinstance(location_name, str) else None,
                spots=spots,
            )
        except ValueError as e:
            GENERATION_REQUESTS.labels(outcome="parse_error").inc()
            logger.error(
                "Failed to parse model payload",
                model=result.model,
                completion_id=result.completion_id,
                error=str(e),
            )
            raise GenerationFailedError(FAILURE_MESSAGE) from e


@lru_cache
def get_generation_service() -> GenerationService:
    """Get the process-wide generation service."""
    return GenerationService(
        ledger=get_cost_ledger(),
        audit_logger=get_audit_logger(),
        completion_client=ChatCompletionClient(),
        enrichment=EnrichmentOrchestrator(),
    )
