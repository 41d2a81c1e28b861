"""
Token Cost Engine
=================
Per-model pricing lookups and request cost calculation.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from backend.config import settings

logger = structlog.get_logger()

PER_MILLION = Decimal("1000000")

# OpenAI appends a release date to model ids, e.g. "gpt-4o-mini-2024-07-18"
_DATE_SUFFIX = re.compile(r"-\d{4}-\d{2}-\d{2}$")


def normalize_model_id(model_id: str) -> str:
    """Strip a trailing release-date suffix from a model id."""
    return _DATE_SUFFIX.sub("", model_id.strip())


@dataclass(frozen=True)
class PricingEntry:
    """Per-token pricing for a specific model."""

    model_id: str
    input_price_per_token: Decimal
    output_price_per_token: Decimal

    @property
    def input_price_per_1m(self) -> Decimal:
        return self.input_price_per_token * PER_MILLION

    @property
    def output_price_per_1m(self) -> Decimal:
        return self.output_price_per_token * PER_MILLION


class PricingEngine:
    """
    Token pricing table for chat-completion models.

    Loads prices (USD per 1M tokens) from YAML configuration. Unknown
    models are billed at the default tier.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        default_model: Optional[str] = None,
    ):
        self.config_path = config_path or settings.pricing_config_path
        self._default_model = default_model
        self._entries: dict[str, PricingEntry] = {}
        self.default_model = ""
        self._load_pricing()

    def _load_pricing(self) -> None:
        """Load pricing configuration from YAML file."""
        config_file = Path(self.config_path)

        if not config_file.exists():
            logger.warning("Pricing config not found, using defaults", path=self.config_path)
            data = self._get_default_pricing()
        else:
            try:
                with open(config_file) as f:
                    data = yaml.safe_load(f) or {}
                logger.info("Loaded pricing configuration", path=self.config_path)
            except (OSError, yaml.YAMLError) as e:
                logger.error("Failed to load pricing config", error=str(e))
                data = self._get_default_pricing()

        entries = self._parse_entries(data.get("models", {}))
        if not entries:
            logger.warning("Pricing config has no models, using defaults", path=self.config_path)
            data = self._get_default_pricing()
            entries = self._parse_entries(data["models"])

        default_model = normalize_model_id(
            self._default_model
            or data.get("default_model")
            or settings.default_pricing_model
        )
        if default_model not in entries:
            raise ValueError(f"Default pricing model {default_model!r} is not in the pricing table")

        self._entries = entries
        self.default_model = default_model

    def _parse_entries(self, models: dict[str, Any]) -> dict[str, PricingEntry]:
        entries = {}
        for model_id, pricing in models.items():
            if not isinstance(pricing, dict) or "input_per_1m" not in pricing:
                continue
            key = normalize_model_id(model_id)
            entries[key] = PricingEntry(
                model_id=key,
                input_price_per_token=Decimal(str(pricing["input_per_1m"])) / PER_MILLION,
                output_price_per_token=Decimal(str(pricing.get("output_per_1m", 0))) / PER_MILLION,
            )
        return entries

    def _get_default_pricing(self) -> dict[str, Any]:
        """Return default pricing if config file is missing."""
        return {
            "default_model": "gpt-4o-mini",
            "models": {
                "gpt-4o-mini": {"input_per_1m": 0.15, "output_per_1m": 0.60},
                "gpt-4o": {"input_per_1m": 2.50, "output_per_1m": 10.00},
                "gpt-4-turbo": {"input_per_1m": 10.00, "output_per_1m": 30.00},
                "gpt-4": {"input_per_1m": 30.00, "output_per_1m": 60.00},
                "gpt-3.5-turbo": {"input_per_1m": 0.50, "output_per_1m": 1.50},
            },
        }

    def reload(self) -> None:
        """Reload pricing configuration from file."""
        self._load_pricing()

    def get_model_pricing(self, model_id: str) -> PricingEntry:
        """
        Get pricing for a model.

        The lookup key is the normalized model id; unknown models fall back
        to the default tier.
        """
        key = normalize_model_id(model_id)
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("Unknown model, using default pricing", model=model_id, default=self.default_model)
            return self._entries[self.default_model]
        return entry

    def calculate_cost(
        self,
        model_id: str,
        prompt_tokens: int,
        completion_tokens: int,
    ) -> Decimal:
        """
        Calculate the cost of one completion.

        Args:
            model_id: Model identifier, dated or not
            prompt_tokens: Number of input tokens
            completion_tokens: Number of output tokens

        Returns:
            Calculated cost in USD
        """
        if prompt_tokens < 0 or completion_tokens < 0:
            raise ValueError("Token counts cannot be negative")

        pricing = self.get_model_pricing(model_id)
        total_cost = (
            Decimal(prompt_tokens) * pricing.input_price_per_token
            + Decimal(completion_tokens) * pricing.output_price_per_token
        )
        return total_cost.quantize(Decimal("0.0000000001"))

    def get_models(self) -> list[PricingEntry]:
        """Get all priced models."""
        return sorted(self._entries.values(), key=lambda entry: entry.model_id)


@lru_cache
def get_pricing_engine() -> PricingEngine:
    """Get cached pricing engine instance."""
    return PricingEngine()
