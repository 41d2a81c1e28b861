"""
Test Configuration
==================
Pytest fixtures for the travel spots backend tests.
"""

import json
import os
import tempfile
from collections.abc import Callable, Generator
from datetime import date
from pathlib import Path
from typing import Any

# Point the application at throwaway storage before backend modules load
_TEST_ROOT = tempfile.mkdtemp(prefix="latagaw-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/app.db"
os.environ["LOG_DIR"] = f"{_TEST_ROOT}/logs"
os.environ["LOG_FORMAT"] = "console"

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from backend.config import settings  # noqa: E402
from backend.core.pricing import PricingEngine  # noqa: E402
from backend.main import app  # noqa: E402
from backend.models.base import Base  # noqa: E402
from backend.services.audit import CompletionAuditLogger  # noqa: E402
from backend.services.completion import CompletionResult  # noqa: E402
from backend.services.enrichment import EnrichmentOrchestrator  # noqa: E402
from backend.services.generation import GenerationService, get_generation_service  # noqa: E402
from backend.services.ledger import CostLedger, get_cost_ledger  # noqa: E402
from backend.services.proxy import ImageProxy, get_image_proxy  # noqa: E402

PRICING_CONFIG = Path(__file__).resolve().parent.parent / "config" / "pricing.yaml"
TODAY = date(2025, 1, 15)
MEDIA_HOST = "upload.wikimedia.org"


def thumbnail_url(name: str, width: int = 320) -> str:
    """Wikimedia-style thumbnail URL for a page title."""
    return f"https://{MEDIA_HOST}/wikipedia/commons/thumb/a/ab/{name}.jpg/{width}px-{name}.jpg"


def make_spot(index: int) -> dict[str, Any]:
    """One spot as the model would emit it."""
    return {
        "id": f"spot-{index}",
        "name": f"Test Spot {index}",
        "description": "A real place with a long history and plenty to see.",
        "shortDescription": "A place worth visiting.",
        "address": f"{index} Test Street, Cebu City",
        "distance": f"{index}.0 km from city center",
        "rating": 4.5,
        "reviewCount": 100 + index,
        "entranceFee": "Free",
        "category": "Historical",
        "openingHours": "8:00 AM - 5:00 PM, Daily",
        "bestTimeToVisit": "Early morning, before the crowds",
        "highlights": ["Views", "Architecture", "Food"],
        "tags": ["heritage", "photography"],
        "reviews": [
            {"author": "Ana", "rating": 5, "comment": "Lovely.", "date": "2024-11-15"},
            {"author": "Ben", "rating": 4, "comment": "Worth it.", "date": "2024-09-22"},
            {"author": "Cy", "rating": 5, "comment": "Beautiful.", "date": "2024-12-03"},
        ],
        "coordinates": {"lat": 10.29 + index / 100, "lng": 123.90},
        "wikipediaTitle": f"Test_Spot_{index}",
    }


def make_payload(count: int = 8, location_name: str = "Cebu City, Philippines") -> str:
    """Model JSON content naming ``count`` spots."""
    return json.dumps(
        {"locationName": location_name, "spots": [make_spot(i) for i in range(1, count + 1)]}
    )


def make_completion(
    content: str | None = None,
    model: str = "gpt-4o-mini-2024-07-18",
    prompt_tokens: int = 1000,
    completion_tokens: int = 2000,
) -> CompletionResult:
    """A completion result as returned by the chat client."""
    content = make_payload() if content is None else content
    return CompletionResult(
        model=model,
        content=content,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        finish_reason="stop",
        completion_id="chatcmpl-test",
        raw={"id": "chatcmpl-test", "model": model, "choices": [{"message": {"content": content}}]},
    )


class FakeCompletionClient:
    """Stands in for the chat completion client."""

    def __init__(self, result: CompletionResult | None = None, error: Exception | None = None):
        self.result = result or make_completion()
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def complete(self, api_key: str, messages: list[dict[str, str]]) -> CompletionResult:
        self.calls.append({"api_key": api_key, "messages": messages})
        if self.error is not None:
            raise self.error
        return self.result


def wikipedia_handler(
    summaries: dict[str, str | None] | None = None,
    search_hits: dict[str, str] | None = None,
    fail_titles: set[str] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """
    Build a mock Wikipedia API.

    ``summaries`` maps page titles to thumbnail URLs (None: page without a
    thumbnail); unknown titles are 404s. ``search_hits`` maps queries to the
    top result title. ``fail_titles`` raise a transport error.
    """
    summaries = summaries or {}
    search_hits = search_hits or {}
    fail_titles = fail_titles or set()

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/api/rest_v1/page/summary/"):
            title = path.rsplit("/", 1)[-1]
            if title in fail_titles:
                raise httpx.ConnectError("connection refused", request=request)
            if title not in summaries:
                return httpx.Response(404, json={"title": "Not found."})
            source = summaries[title]
            body: dict[str, Any] = {"title": title}
            if source:
                body["thumbnail"] = {"source": source, "width": 320, "height": 240}
            return httpx.Response(200, json=body)

        if path == "/w/api.php":
            query = request.url.params.get("srsearch", "")
            hit = search_hits.get(query)
            hits = [{"title": hit}] if hit else []
            return httpx.Response(200, json={"query": {"search": hits}})

        return httpx.Response(404)

    return handler


def client_factory_for(handler: Callable[[httpx.Request], httpx.Response]) -> Callable[[], httpx.AsyncClient]:
    """Client factory routing all Wikipedia traffic to a mock handler."""
    return lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def session_factory(tmp_path: Path) -> async_sessionmaker[AsyncSession]:
    """
    Session factory over a fresh SQLite file.

    NullPool keeps no connection alive between sessions, so the factory
    works on any event loop.
    """
    db_path = tmp_path / "ledger.db"
    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def pricing() -> PricingEngine:
    """Pricing engine loaded from the shipped pricing table."""
    return PricingEngine(config_path=str(PRICING_CONFIG))


@pytest.fixture
def ledger(session_factory: async_sessionmaker[AsyncSession], pricing: PricingEngine) -> CostLedger:
    """Cost ledger with a $5 budget and a fixed date."""
    return CostLedger(session_factory, pricing=pricing, daily_budget_usd=5.0, clock=lambda: TODAY)


@pytest.fixture
def audit_logger(tmp_path: Path) -> CompletionAuditLogger:
    """Audit logger writing under the test's temp directory."""
    return CompletionAuditLogger(log_dir=str(tmp_path / "logs"))


@pytest.fixture
def completion_client() -> FakeCompletionClient:
    """Fake model returning a well-formed 8-spot payload."""
    return FakeCompletionClient()


@pytest.fixture
def wiki_handler() -> Callable[[httpx.Request], httpx.Response]:
    """Mock Wikipedia where every test spot has a direct thumbnail."""
    return wikipedia_handler(
        summaries={f"Test_Spot_{i}": thumbnail_url(f"Spot{i}") for i in range(1, 9)}
    )


@pytest.fixture
def generation_service(
    ledger: CostLedger,
    audit_logger: CompletionAuditLogger,
    completion_client: FakeCompletionClient,
    wiki_handler: Callable[[httpx.Request], httpx.Response],
) -> GenerationService:
    """Generation service wired to fakes and mock upstreams."""
    return GenerationService(
        ledger=ledger,
        audit_logger=audit_logger,
        completion_client=completion_client,
        enrichment=EnrichmentOrchestrator(client_factory=client_factory_for(wiki_handler)),
    )


@pytest.fixture
def media_handler() -> Callable[[httpx.Request], httpx.Response]:
    """Mock media host serving a small PNG."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("missing.jpg"):
            return httpx.Response(404, text="Not Found")
        return httpx.Response(200, content=b"\x89PNG\r\n", headers={"content-type": "image/png"})

    return handler


@pytest.fixture
def image_proxy(media_handler: Callable[[httpx.Request], httpx.Response]) -> ImageProxy:
    """Image proxy talking to the mock media host."""
    return ImageProxy(allowed_host=MEDIA_HOST, transport=httpx.MockTransport(media_handler))


@pytest.fixture
def client(
    generation_service: GenerationService,
    ledger: CostLedger,
    image_proxy: ImageProxy,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[TestClient, None, None]:
    """Test client with services replaced by test instances."""
    monkeypatch.setattr(settings, "openai_api_key", None)

    app.dependency_overrides[get_generation_service] = lambda: generation_service
    app.dependency_overrides[get_cost_ledger] = lambda: ledger
    app.dependency_overrides[get_image_proxy] = lambda: image_proxy

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
