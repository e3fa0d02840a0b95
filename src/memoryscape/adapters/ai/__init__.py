"""AI text generation adapters."""

from memoryscape.adapters.ai.openai_text_generator import OpenAiTextGenerator, TextGenerationError

__all__ = ["OpenAiTextGenerator", "TextGenerationError"]
