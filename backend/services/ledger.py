"""
Cost Ledger
===========
Persisted daily usage ledger and the budget guardrail built on it.
"""

import asyncio
from collections.abc import Callable
from datetime import date, timedelta
from decimal import Decimal
from functools import lru_cache

import structlog
from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.config import settings
from backend.core.metrics import MODEL_COST_USD, MODEL_TOKENS
from backend.core.pricing import PricingEngine, get_pricing_engine, normalize_model_id
from backend.database import async_session_factory
from backend.models.usage import DailyCost
from backend.schemas.usage import DailyCostRecord

logger = structlog.get_logger()

_CONFLICT_AWARE_INSERTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


def _to_record(row: DailyCost) -> DailyCostRecord:
    return DailyCostRecord(
        date=row.date,
        request_count=row.request_count,
        total_prompt_tokens=row.total_prompt_tokens,
        total_completion_tokens=row.total_completion_tokens,
        total_tokens=row.total_tokens,
        total_cost_usd=Decimal(str(row.total_cost)),
    )


class CostLedger:
    """
    Owns the per-date cost records.

    Every write for a date goes through ``record_usage``, which holds that
    date's lock for the whole read-modify-write, creates the row with a
    conflict-tolerant insert and increments columns on the database side,
    so concurrent requests never lose updates, even across processes.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        pricing: PricingEngine | None = None,
        daily_budget_usd: float | Decimal | None = None,
        clock: Callable[[], date] = date.today,
    ):
        self._session_factory = session_factory
        self.pricing = pricing or get_pricing_engine()
        budget = settings.daily_budget_usd if daily_budget_usd is None else daily_budget_usd
        self.daily_budget_usd = Decimal(str(budget))
        self._clock = clock
        self._locks: dict[date, asyncio.Lock] = {}

    def today(self) -> date:
        return self._clock()

    def _lock_for(self, day: date) -> asyncio.Lock:
        lock = self._locks.get(day)
        if lock is None:
            # Only today's lock is ever needed again
            for stale in [d for d in self._locks if d < day]:
                del self._locks[stale]
            lock = self._locks[day] = asyncio.Lock()
        return lock

    async def _ensure_row(self, session: AsyncSession, day: date) -> None:
        """
        Create the zeroed row for a date unless it already exists.

        Uses INSERT ... ON CONFLICT DO NOTHING where the dialect supports it,
        so workers in separate processes can race on a new date safely.
        """
        values = {
            "date": day,
            "request_count": 0,
            "total_prompt_tokens": 0,
            "total_completion_tokens": 0,
            "total_tokens": 0,
            "total_cost": Decimal("0"),
        }
        insert = _CONFLICT_AWARE_INSERTS.get(session.get_bind().dialect.name)
        if insert is None:
            if await session.get(DailyCost, day) is None:
                session.add(DailyCost(**values))
                await session.flush()
            return
        await session.execute(
            insert(DailyCost).values(**values).on_conflict_do_nothing(index_elements=["date"])
        )

    async def get_record(self, day: date | None = None) -> DailyCostRecord:
        """Read the record for a date; a date with no usage reads as zeros."""
        day = day or self.today()
        async with self._session_factory() as session:
            row = await session.get(DailyCost, day)
            return _to_record(row) if row else DailyCostRecord.empty(day)

    async def list_records(self, start_date: date, end_date: date) -> list[DailyCostRecord]:
        """Read all stored records between two dates, newest first."""
        async with self._session_factory() as session:
            stmt = (
                select(DailyCost)
                .where(DailyCost.date >= start_date, DailyCost.date <= end_date)
                .order_by(DailyCost.date.desc())
            )
            result = await session.execute(stmt)
            return [_to_record(row) for row in result.scalars().all()]

    async def check_budget_exceeded(self) -> bool:
        """
        Return True when today's spend has reached the daily ceiling.

        Must be called before the model is invoked. A storage error fails
        open so a transient outage never blocks traffic.
        """
        try:
            record = await self.get_record()
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Budget check failed, allowing request", error=str(e))
            return False

        exceeded = record.total_cost_usd >= self.daily_budget_usd
        if exceeded:
            logger.warning(
                "Daily budget exceeded",
                date=str(record.date),
                spent=float(record.total_cost_usd),
                budget=float(self.daily_budget_usd),
            )
        return exceeded

    async def record_usage(
        self,
        model_id: str,
        prompt_tokens: int,
        completion_tokens: int,
    ) -> DailyCostRecord:
        """
        Add one completion's usage to today's record.

        Returns:
            The updated record for today
        """
        cost = self.pricing.calculate_cost(model_id, prompt_tokens, completion_tokens)
        day = self.today()

        async with self._lock_for(day):
            async with self._session_factory() as session:
                async with session.begin():
                    await self._ensure_row(session, day)

                    await session.execute(
                        update(DailyCost)
                        .where(DailyCost.date == day)
                        .values(
                            request_count=DailyCost.request_count + 1,
                            total_prompt_tokens=DailyCost.total_prompt_tokens + prompt_tokens,
                            total_completion_tokens=DailyCost.total_completion_tokens + completion_tokens,
                            total_tokens=DailyCost.total_tokens + prompt_tokens + completion_tokens,
                            total_cost=DailyCost.total_cost + cost,
                        )
                        .execution_options(synchronize_session=False)
                    )

                    result = await session.execute(
                        select(DailyCost)
                        .where(DailyCost.date == day)
                        .execution_options(populate_existing=True)
                    )
                    record = _to_record(result.scalar_one())

        model_key = normalize_model_id(model_id)
        MODEL_TOKENS.labels(model=model_key, kind="prompt").inc(prompt_tokens)
        MODEL_TOKENS.labels(model=model_key, kind="completion").inc(completion_tokens)
        MODEL_COST_USD.labels(model=model_key).inc(float(cost))

        logger.info(
            "Recorded model usage",
            date=str(day),
            model=model_id,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            cost=float(cost),
            daily_cost=float(record.total_cost_usd),
            daily_requests=record.request_count,
        )
        return record

    async def get_summary_range(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> tuple[date, date, list[DailyCostRecord]]:
        """Resolve a date range (default: last 30 days) and read its records."""
        if not end_date:
            end_date = self.today()
        if not start_date:
            start_date = end_date - timedelta(days=30)
        if start_date > end_date:
            raise ValueError("start_date must not be after end_date")
        return start_date, end_date, await self.list_records(start_date, end_date)


@lru_cache
def get_cost_ledger() -> CostLedger:
    """Get the process-wide cost ledger."""
    return CostLedger(async_session_factory)
