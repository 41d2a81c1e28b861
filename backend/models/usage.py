"""
Daily Cost Models
=================
Persisted per-date token usage and spend for the cost guardrail.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import BigInteger, Date, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from backend.models.base import Base, TimestampMixin


class DailyCost(Base, TimestampMixin):
    """
    Aggregated model usage for one local calendar date.
    Rows are created lazily on first use of a date and never deleted.
    """

    __tablename__ = "daily_cost"

    date: Mapped[date] = mapped_column(Date, primary_key=True)
    request_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_prompt_tokens: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_completion_tokens: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_tokens: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_cost: Mapped[Decimal] = mapped_column(
        Numeric(20, 10),
        nullable=False,
        default=Decimal("0"),
    )
