"""Text-generation client used by quiz sessions."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from openai import OpenAIError

from .core.ai import load_client as load_openai_client
from .prompts import SYSTEM_PROMPT

__all__ = [
    "RequestError",
    "TextGenerator",
    "OpenAITextClient",
]


class RequestError(RuntimeError):
    """Raised when a text-generation request fails."""


class TextGenerator(Protocol):
    """Anything that turns a prompt into response text."""

    async def request(self, prompt: str) -> str:
        """Return the model response for ``prompt`` or raise RequestError."""


class OpenAITextClient:
    """Adapter for OpenAI chat completions.

    The OpenAI client is synchronous; each call runs in a worker thread so
    the UI event loop keeps ticking while a request is in flight.
    """

    def __init__(
        self,
        *,
        model: str,
        temperature: float,
        max_output_tokens: int,
        request_timeout: int,
        api_base: str | None = None,
        client: Any | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._timeout = request_timeout
        if client is not None:
            self._client = client
        else:
            self._client = load_openai_client(api_base=api_base)
        self._logger = logger or logging.getLogger(__name__)

    async def request(self, prompt: str) -> str:
        return await asyncio.to_thread(self._complete, prompt)

    def _complete(self, prompt: str) -> str:
        self._logger.debug(
            "Sending completion request",
            extra={"model": self._model, "prompt_chars": len(prompt)},
        )
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._temperature,
                max_tokens=self._max_output_tokens,
                timeout=self._timeout,
            )
        except OpenAIError as exc:
            raise RequestError(f"Completion request failed: {exc}") from exc
        if not response.choices:
            raise RequestError("Completion response contained no choices.")
        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise RequestError("Completion response was empty.")
        return content
