"""OpenAI-compatible chat completion client used as the advisory text generator."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

import requests

from stockanalysis.advisory.synthesizer import SYSTEM_PROMPT
from stockanalysis.errors import TextGenerationError
from stockanalysis.ratelimit import RateLimiter

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class TextGenerator(Protocol):
    """Interface for advisory text generation."""

    def generate(self, prompt: str) -> str:
        """Return free-form advisory text for the prompt."""


@dataclass(frozen=True)
class ChatCompletionResponse:
    """Typed view of the first choice in a chat completion envelope."""

    content: str
    model: str = ""
    finish_reason: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> ChatCompletionResponse:
        if not isinstance(payload, dict) or "choices" not in payload:
            raise TextGenerationError("Invalid response from chat completion API")
        choices = payload["choices"]
        if not isinstance(choices, list) or not choices:
            raise TextGenerationError("No choices in chat completion API response")
        choice = choices[0]
        message = choice.get("message") if isinstance(choice, dict) else None
        if not isinstance(message, dict):
            raise TextGenerationError("No message in chat completion API response")
        content = message.get("content")
        if not isinstance(content, str):
            raise TextGenerationError("No content in chat completion API response message")
        return cls(
            content=content,
            model=str(payload.get("model", "")),
            finish_reason=choice.get("finish_reason"),
        )


class ChatCompletionClient:
    """POST prompts to ``{base_url}/chat/completions`` and return the reply text."""

    def __init__(
        self,
        api_key: str,
        rate_limiter: RateLimiter,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4",
        temperature: float = 0.5,
        max_tokens: int = 1000,
        timeout: int = 30,
        max_retries: int = 2,
        system_prompt: str = SYSTEM_PROMPT,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not api_key:
            raise TextGenerationError("Chat completion API key is required")
        self.rate_limiter = rate_limiter
        self.url = f"{base_url.rstrip('/')}/chat/completions"
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.system_prompt = system_prompt
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )
        self._sleep = sleep
        self.logger = logging.getLogger("stockanalysis.advisory.chat_client")

    def generate(self, prompt: str) -> str:
        self.logger.debug("Requesting advisory text from %s", self.model)
        payload = self._post_with_retry(self._request_body(prompt))
        return ChatCompletionResponse.from_payload(payload).content

    def _request_body(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
        }

    def _post_with_retry(self, body: dict[str, Any]) -> Any:
        for attempt in range(1, self.max_retries + 1):
            self.rate_limiter.acquire()
            try:
                response = self.session.post(self.url, json=body, timeout=self.timeout)
            except requests.RequestException as exc:
                if attempt == self.max_retries:
                    raise TextGenerationError(f"Error calling chat completion API: {exc}") from exc
                sleep_seconds = attempt * 2
                self.logger.warning(
                    "Chat completion request failed (attempt %s/%s). Retrying in %ss.",
                    attempt,
                    self.max_retries,
                    sleep_seconds,
                )
                self._sleep(sleep_seconds)
                continue

            if response.status_code in RETRYABLE_STATUS_CODES and attempt < self.max_retries:
                sleep_seconds = attempt * 2
                self.logger.warning(
                    "Chat completion returned HTTP %s (attempt %s/%s). Retrying in %ss.",
                    response.status_code,
                    attempt,
                    self.max_retries,
                    sleep_seconds,
                )
                self._sleep(sleep_seconds)
                continue

            try:
                response.raise_for_status()
                return response.json()
            except (requests.RequestException, ValueError) as exc:
                raise TextGenerationError(f"Error calling chat completion API: {exc}") from exc
        raise TextGenerationError("Exhausted retries for chat completion request.")
