"""Gemini LLM client for chat with function calling.

This module provides an async client for the Gemini ``generateContent`` REST
endpoint. History is sent as role-tagged ``contents``; the reply is returned
as an ordered list of parts, each holding either free text or a function
call request.
"""

import logging
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import httpx
from pydantic import BaseModel, Field
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from aida_bot.config import Settings, get_settings
from aida_bot.core.prompts import get_system_prompt
from aida_bot.schemas.conversation import Turn

logger = logging.getLogger(__name__)


# Safety thresholds sent with every request
SAFETY_SETTINGS: list[dict[str, str]] = [
    {"category": "HARM_CATEGORY_HARASSMENT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_HATE_SPEECH", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_SEXUALLY_EXPLICIT", "threshold": "BLOCK_NONE"},
    {"category": "HARM_CATEGORY_DANGEROUS_CONTENT", "threshold": "BLOCK_NONE"},
]


class LLMError(Exception):
    """Base exception for LLM-related errors."""
    pass


class LLMConnectionError(LLMError):
    """Raised when connection to LLM API fails."""
    pass


class LLMRateLimitError(LLMError):
    """Raised when rate limit is exceeded."""
    pass


class LLMResponseError(LLMError):
    """Raised when LLM returns an invalid or unexpected response."""
    pass


class FunctionCall(BaseModel):
    """A tool invocation requested by the model."""

    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ResponsePart(BaseModel):
    """One element of a model reply: free text, a function call, or both empty."""

    text: str | None = None
    function_call: FunctionCall | None = None


def to_contents(history: list[Turn], message: str) -> list[dict[str, Any]]:
    """Render seeded history plus the new user message as Gemini ``contents``."""
    contents = [
        {"role": turn.role.value, "parts": [{"text": turn.text}]}
        for turn in history
    ]
    contents.append({"role": "user", "parts": [{"text": message}]})
    return contents


def parse_parts(data: dict[str, Any]) -> list[ResponsePart]:
    """Extract ordered response parts from a ``generateContent`` response body.

    Raises:
        LLMResponseError: If the body has no candidates (e.g. the prompt was blocked).
    """
    candidates = data.get("candidates") or []
    if not candidates:
        feedback = data.get("promptFeedback", {})
        raise LLMResponseError(f"Gemini returned no candidates: {feedback}")

    content = candidates[0].get("content") or {}
    parts: list[ResponsePart] = []
    for raw in content.get("parts") or []:
        call = raw.get("functionCall")
        parts.append(
            ResponsePart(
                text=raw.get("text"),
                function_call=FunctionCall(name=call["name"], args=call.get("args") or {}) if call else None,
            )
        )
    return parts


class GeminiClient:
    """Async client for the Gemini API.

    Usage:
        client = GeminiClient(settings)
        parts = await client.generate(history, "Hello", tools=declarations)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            settings: Application settings. Defaults to the cached settings.
            http_client: Pre-built HTTP client, mainly for tests.
        """
        settings = settings or get_settings()

        if not settings.gemini_api_key:
            raise ValueError("GEMINI_API_KEY is not configured")

        self._api_key = settings.gemini_api_key
        self._model = settings.gemini_model
        self._base_url = settings.gemini_base_url.rstrip("/")
        self._temperature = settings.llm_temperature
        self._max_output_tokens = settings.llm_max_output_tokens
        self._tz = ZoneInfo(settings.reference_timezone)
        self._client = http_client or httpx.AsyncClient(timeout=settings.llm_timeout_seconds)

    @property
    def model(self) -> str:
        """Get the configured model name."""
        return self._model

    def build_request(
        self,
        history: list[Turn],
        message: str,
        tools: list[dict[str, Any]] | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Build the ``generateContent`` request body."""
        body: dict[str, Any] = {
            "systemInstruction": {
                "parts": [{"text": get_system_prompt(now or datetime.now(self._tz))}],
            },
            "contents": to_contents(history, message),
            "safetySettings": SAFETY_SETTINGS,
            "generationConfig": {
                "temperature": self._temperature,
                "maxOutputTokens": self._max_output_tokens,
            },
        }
        if tools:
            body["tools"] = [{"functionDeclarations": tools}]
        return body

    @retry(
        retry=retry_if_exception_type((LLMConnectionError, LLMRateLimitError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def generate(
        self,
        history: list[Turn],
        message: str,
        tools: list[dict[str, Any]] | None = None,
    ) -> list[ResponsePart]:
        """Send one conversational turn to Gemini.

        Args:
            history: Prior turns, already filtered to strict user/model alternation.
            message: The new user utterance.
            tools: Optional function declarations.

        Returns:
            Response parts in the order the model produced them.

        Raises:
            LLMConnectionError: If connection to API fails after retries.
            LLMRateLimitError: If rate limit is exceeded after retries.
            LLMResponseError: If API returns an unexpected response.
            LLMError: For other API errors.
        """
        try:
            url = f"{self._base_url}/models/{self._model}:generateContent"

            headers = {
                "x-goog-api-key": self._api_key,
                "Content-Type": "application/json",
            }

            request_body = self.build_request(history, message, tools)

            logger.debug(
                f"Sending generateContent request: model={self._model}, "
                f"history={len(history)}, tools={len(tools or [])}"
            )

            response = await self._client.post(url, headers=headers, json=request_body)

            if response.status_code == 429:
                raise LLMRateLimitError("Gemini API rate limit exceeded")

            if response.status_code != 200:
                error_text = response.text
                logger.error(f"Gemini API error: {response.status_code} - {error_text}")
                raise LLMError(f"Gemini API error: {response.status_code} - {error_text}")

            parts = parse_parts(response.json())

            logger.debug(
                f"generateContent successful: parts={len(parts)}, "
                f"function_calls={sum(1 for p in parts if p.function_call)}"
            )

            return parts

        except httpx.ConnectError as e:
            logger.error(f"Connection error to Gemini API: {e}")
            raise LLMConnectionError(f"Failed to connect to Gemini API: {e}") from e
        except httpx.TimeoutException as e:
            logger.error(f"Timeout connecting to Gemini API: {e}")
            raise LLMConnectionError(f"Timeout connecting to Gemini API: {e}") from e
        except LLMError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error in generateContent: {e}")
            raise LLMResponseError(f"Unexpected error: {e}") from e

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> "GeminiClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
