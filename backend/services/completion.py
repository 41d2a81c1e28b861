"""
Chat Completion Client
======================
Thin wrapper over the OpenAI async client for JSON-mode completions.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
import openai
import structlog

from backend.config import settings

logger = structlog.get_logger()


@dataclass
class CompletionResult:
    """The parts of a chat completion the pipeline needs."""

    model: str
    content: Optional[str]
    prompt_tokens: int = 0
    completion_tokens: int = 0
    finish_reason: Optional[str] = None
    completion_id: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)


class ChatCompletionClient:
    """
    Calls the chat completions API with a caller-supplied key.

    A client is created per call and closed afterwards. Automatic retries
    are disabled: a failed call surfaces immediately.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.model = model or settings.openai_model
        self.temperature = settings.openai_temperature if temperature is None else temperature
        self.max_tokens = max_tokens or settings.openai_max_tokens
        self.base_url = base_url or settings.openai_base_url
        self.timeout = timeout or settings.openai_timeout_seconds
        self._transport = transport

    async def complete(
        self,
        api_key: str,
        messages: list[dict[str, str]],
    ) -> CompletionResult:
        """
        Request a JSON-object completion.

        Raises:
            openai.OpenAIError: On any API or transport failure
        """
        async with openai.AsyncOpenAI(
            api_key=api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
            http_client=httpx.AsyncClient(transport=self._transport) if self._transport else None,
        ) as client:
            completion = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                response_format={"type": "json_object"},
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )

        choice = completion.choices[0] if completion.choices else None
        usage = completion.usage

        return CompletionResult(
            model=completion.model or self.model,
            content=choice.message.content if choice else None,
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            finish_reason=choice.finish_reason if choice else None,
            completion_id=completion.id,
            raw=completion.model_dump(mode="json"),
        )
