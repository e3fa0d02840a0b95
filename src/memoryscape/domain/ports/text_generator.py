"""Text generation port for the AI helpers."""

from typing import Protocol


class TextGenerator(Protocol):
    """Stateless request/response wrapper around a hosted text-generation API."""

    async def complete(
        self, system: str, prompt: str, max_tokens: int, temperature: float
    ) -> str:
        """Return the generated text for a system instruction and user prompt."""
        ...
