"""Text generator backed by the OpenAI chat completions API."""

import logging
import time

import openai
from openai import AsyncOpenAI

from memoryscape.adapters.api_rate_limiter import ApiRateLimiter
from memoryscape.adapters.api_request_logger import log_api_request, log_api_response

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 20.0


class TextGenerationError(Exception):
    """The completion request failed or returned an unusable body."""


def retry_after_seconds(error: openai.RateLimitError) -> float:
    """Read the ``Retry-After`` header of a 429 response, in seconds."""
    value = error.response.headers.get("retry-after", "")
    try:
        return float(value)
    except ValueError:
        return DEFAULT_RETRY_AFTER_SECONDS


class OpenAiTextGenerator:
    """Calls ``chat.completions.create`` through a shared ``AsyncOpenAI`` client."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "gpt-3.5-turbo",
        rate_limiter: ApiRateLimiter | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._rate_limiter = rate_limiter or ApiRateLimiter("openai")
        self._endpoint = f"{str(client.base_url).rstrip('/')}/chat/completions"

    async def complete(
        self, system: str, prompt: str, max_tokens: int, temperature: float
    ) -> str:
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ]

        await self._rate_limiter.acquire()
        log_api_request(
            "POST",
            self._endpoint,
            payload={"model": self._model, "messages": messages, "max_tokens": max_tokens},
        )
        started = time.monotonic()
        try:
            completion = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except openai.RateLimitError as e:
            log_api_response("POST", self._endpoint, 429, time.monotonic() - started)
            self._rate_limiter.back_off(retry_after_seconds(e))
            raise TextGenerationError("OpenAI rate limit reached") from e
        except openai.APIStatusError as e:
            log_api_response("POST", self._endpoint, e.status_code, time.monotonic() - started)
            raise TextGenerationError(f"OpenAI returned status {e.status_code}: {e.message}") from e
        except openai.APIError as e:
            raise TextGenerationError(f"OpenAI request failed: {e}") from e
        log_api_response("POST", self._endpoint, 200, time.monotonic() - started)

        if not completion.choices:
            raise TextGenerationError("Unexpected completion body: no choices")
        return completion.choices[0].message.content or ""

    async def close(self) -> None:
        await self._client.close()
