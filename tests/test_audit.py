"""
Completion Audit Log Tests
==========================
Tests for the per-date completion audit files.
"""

from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from backend.schemas.usage import BudgetStatus, CompletionAuditEntry
from backend.services.audit import CompletionAuditLogger


@pytest.fixture
def entry() -> CompletionAuditEntry:
    return CompletionAuditEntry(
        timestamp=datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc),
        query_address="Cebu City, Philippines",
        model_id="gpt-4o-mini-2024-07-18",
        duration_ms=1840,
        prompt_tokens=1000,
        completion_tokens=2000,
        request_cost_usd=Decimal("0.00135"),
        cumulative_daily_cost_usd=Decimal("0.5"),
        daily_request_count=3,
        daily_budget_usd=Decimal("5"),
        budget_status=BudgetStatus.WITHIN_BUDGET,
        completion_id="chatcmpl-abc123",
        finish_reason="stop",
        response_content='{"locationName": "Cebu City", "spots": []}',
        raw_response_payload={"id": "chatcmpl-abc123", "usage": {"prompt_tokens": 1000}},
    )


class TestFormatEntry:
    """Tests for rendering audit blocks."""

    def test_block_has_all_sections(self, audit_logger: CompletionAuditLogger, entry: CompletionAuditEntry):
        text = audit_logger.format_entry(entry)

        for heading in ("TOKEN USAGE", "COST GUARDRAIL", "RESPONSE CONTENT", "RAW COMPLETION OBJECT"):
            assert heading in text
        assert "Cebu City, Philippines" in text
        assert "gpt-4o-mini-2024-07-18" in text
        assert "Total tokens      : 3000" in text
        assert "chatcmpl-abc123" in text

    def test_within_budget_shows_percentage(self, audit_logger: CompletionAuditLogger, entry: CompletionAuditEntry):
        text = audit_logger.format_entry(entry)

        assert "Within budget (10.00% used)" in text
        assert "3 requests today" in text

    def test_exceeded_budget_status(self, audit_logger: CompletionAuditLogger, entry: CompletionAuditEntry):
        entry = entry.model_copy(
            update={
                "cumulative_daily_cost_usd": Decimal("5.01"),
                "budget_status": BudgetStatus.EXCEEDED,
            }
        )

        text = audit_logger.format_entry(entry)

        assert "BUDGET EXCEEDED ($5.010000 / $5.000000)" in text

    def test_unknown_ledger_state(self, audit_logger: CompletionAuditLogger, entry: CompletionAuditEntry):
        entry = entry.model_copy(
            update={
                "cumulative_daily_cost_usd": None,
                "daily_request_count": None,
                "budget_status": BudgetStatus.UNKNOWN,
            }
        )

        text = audit_logger.format_entry(entry)

        assert "Daily total       : n/a" in text
        assert f"Status            : {BudgetStatus.UNKNOWN.value}" in text

    def test_json_content_pretty_printed(self, audit_logger: CompletionAuditLogger, entry: CompletionAuditEntry):
        text = audit_logger.format_entry(entry)

        assert '"locationName": "Cebu City"' in text
        assert '    "spots": []' in text

    def test_non_json_content_kept_verbatim(self, audit_logger: CompletionAuditLogger, entry: CompletionAuditEntry):
        entry = entry.model_copy(update={"response_content": "not json at all"})

        assert "    not json at all" in audit_logger.format_entry(entry)


class TestWriteEntry:
    """Tests for appending audit blocks to disk."""

    async def test_writes_dated_file(self, audit_logger: CompletionAuditLogger, entry: CompletionAuditEntry):
        assert await audit_logger.log(entry) is True

        path = audit_logger.log_dir / "completions-2025-01-15.log"
        assert path.exists()
        assert "Cebu City, Philippines" in path.read_text(encoding="utf-8")

    async def test_entries_are_appended(self, audit_logger: CompletionAuditLogger, entry: CompletionAuditEntry):
        await audit_logger.log(entry)
        await audit_logger.log(entry.model_copy(update={"query_address": "Kyoto, Japan"}))

        text = audit_logger.log_path(entry).read_text(encoding="utf-8")
        assert text.count("RAW COMPLETION OBJECT") == 2
        assert text.index("Cebu City, Philippines") < text.index("Kyoto, Japan")

    async def test_write_failure_is_not_raised(self, tmp_path: Path, entry: CompletionAuditEntry):
        """Test that an unwritable log directory only drops the entry."""
        blocker = tmp_path / "not-a-directory"
        blocker.write_text("")
        audit_logger = CompletionAuditLogger(log_dir=str(blocker))

        assert await audit_logger.log(entry) is False
