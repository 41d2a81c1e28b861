"""
Completion Audit Log
====================
Appends a human-readable record of every model completion to a
per-date log file under the configured log directory.
"""

import asyncio
import json
import threading
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Optional

import structlog

from backend.config import settings
from backend.schemas.usage import BudgetStatus, CompletionAuditEntry

logger = structlog.get_logger()

RULE = "=" * 80
SECTION_RULE = "-" * 80


def _usd(amount: Decimal | None) -> str:
    if amount is None:
        return "n/a"
    return f"${amount:.6f}"


def _indent(text: str, pad: str = "    ") -> str:
    return "\n".join(pad + line for line in text.splitlines())


def _pretty_content(content: str | None) -> str:
    """Pretty-print JSON content, falling back to the raw text."""
    if not content:
        return "    (empty)"
    try:
        return _indent(json.dumps(json.loads(content), indent=2, ensure_ascii=False))
    except ValueError:
        return _indent(content)


class CompletionAuditLogger:
    """
    Writes one block per completion to ``completions-YYYY-MM-DD.log``.

    Logging is best effort: failures are reported to the application log
    and the entry is dropped.
    """

    def __init__(self, log_dir: Optional[str] = None):
        self.log_dir = Path(log_dir or settings.log_dir)
        self._write_lock = threading.Lock()

    def log_path(self, entry: CompletionAuditEntry) -> Path:
        return self.log_dir / f"completions-{entry.timestamp.date().isoformat()}.log"

    def format_entry(self, entry: CompletionAuditEntry) -> str:
        """Render an entry as a readable text block."""
        if entry.budget_status == BudgetStatus.EXCEEDED:
            status = (
                f"BUDGET EXCEEDED ({_usd(entry.cumulative_daily_cost_usd)} / "
                f"{_usd(entry.daily_budget_usd)})"
            )
        elif (
            entry.budget_status == BudgetStatus.WITHIN_BUDGET
            and entry.cumulative_daily_cost_usd is not None
            and entry.daily_budget_usd > 0
        ):
            used = entry.cumulative_daily_cost_usd / entry.daily_budget_usd * 100
            status = f"Within budget ({used:.2f}% used)"
        else:
            status = entry.budget_status.value

        requests = entry.daily_request_count
        request_label = "n/a" if requests is None else f"{requests} request{'s' if requests != 1 else ''} today"

        lines = [
            "",
            RULE,
            f"  {entry.timestamp.isoformat()}",
            RULE,
            "",
            f"  ADDRESS        : {entry.query_address}",
            f"  MODEL          : {entry.model_id}",
            f"  DURATION       : {entry.duration_ms} ms",
            f"  FINISH REASON  : {entry.finish_reason}",
            f"  COMPLETION ID  : {entry.completion_id}",
            "",
            f"  {SECTION_RULE}",
            "  TOKEN USAGE",
            f"  {SECTION_RULE}",
            f"  Prompt tokens     : {entry.prompt_tokens}",
            f"  Completion tokens : {entry.completion_tokens}",
            f"  Total tokens      : {entry.total_tokens}",
            "",
            f"  {SECTION_RULE}",
            "  COST GUARDRAIL",
            f"  {SECTION_RULE}",
            f"  This request      : {_usd(entry.request_cost_usd):<14} "
            f"({entry.prompt_tokens} prompt + {entry.completion_tokens} completion tokens)",
            f"  Daily total       : {_usd(entry.cumulative_daily_cost_usd):<14} across {request_label}",
            f"  Daily budget      : {_usd(entry.daily_budget_usd)}",
            f"  Status            : {status}",
            "",
            f"  {SECTION_RULE}",
            "  RESPONSE CONTENT",
            f"  {SECTION_RULE}",
            _pretty_content(entry.response_content),
            "",
            f"  {SECTION_RULE}",
            "  RAW COMPLETION OBJECT",
            f"  {SECTION_RULE}",
            _indent(json.dumps(entry.raw_response_payload, indent=2, default=str), "  "),
            "",
        ]
        return "\n".join(lines) + "\n"

    def _append(self, path: Path, text: str) -> None:
        with self._write_lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(text)

    async def log(self, entry: CompletionAuditEntry) -> bool:
        """
        Append an entry to its date's audit file.

        Returns:
            True if the entry was written. Failures are never raised.
        """
        path = self.log_path(entry)
        try:
            text = self.format_entry(entry)
            await asyncio.to_thread(self._append, path, text)
        except (OSError, TypeError, ValueError, ArithmeticError) as e:
            logger.error("Failed to write completion audit log", path=str(path), error=str(e))
            return False
        return True


@lru_cache
def get_audit_logger() -> CompletionAuditLogger:
    """Get cached audit logger instance."""
    return CompletionAuditLogger()
