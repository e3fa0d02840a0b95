"""AI-assisted helpers for memories and capsules.

Every helper degrades gracefully: failures of the text generator are logged and
turned into a neutral result (``None``, the original text, a default emoji or
an empty list) instead of being raised.
"""

import logging
import math
import re
from collections import Counter
from datetime import UTC, datetime
from typing import Any

from memoryscape.domain.ports.text_generator import TextGenerator

logger = logging.getLogger(__name__)

DEFAULT_MOOD = "\U0001f60a"
MAX_TITLE_LENGTH = 60
MAX_SUMMARY_INPUT = 2000

_EMOJI_PATTERN = re.compile(
    "[\U0001f600-\U0001f64f\U0001f300-\U0001f5ff\U0001f680-\U0001f6ff"
    "\U0001f1e0-\U0001f1ff\u2600-\u26ff\u2700-\u27bf]"
)

_TITLE_SYSTEM = (
    "You are a creative assistant that generates meaningful, personal titles for memories. "
    "Keep titles concise, emotional, and engaging."
)
_SUMMARY_SYSTEM = (
    "You are a thoughtful assistant that creates beautiful, emotional summaries of personal "
    "memories. Focus on themes, emotions, and meaningful connections."
)
_MOOD_SYSTEM = (
    "You are an emotion analysis assistant. Respond with only a single emoji that represents "
    "the dominant emotion in the text."
)
_ENHANCE_SYSTEM = (
    "You are a writing assistant that enhances personal memories. Make them more vivid and "
    "engaging while preserving the original voice and meaning."
)
_TAGS_SYSTEM = (
    "You are a tagging assistant. Generate relevant, concise tags for personal memories. "
    "Focus on emotions, activities, people, places, and themes."
)
_INSIGHTS_SYSTEM = (
    "You are an insightful assistant that creates meaningful observations about collections "
    "of personal memories."
)


def calculate_time_span(timestamps: list[datetime]) -> str:
    """Human-readable span between the earliest and latest timestamp."""
    if not timestamps:
        return "no time"
    ordered = sorted(timestamps)
    seconds = abs((ordered[-1] - ordered[0]).total_seconds())
    days = math.ceil(seconds / 86400)
    if days < 7:
        return f"{days} days"
    if days < 30:
        return f"{math.ceil(days / 7)} weeks"
    if days < 365:
        return f"{math.ceil(days / 30)} months"
    return f"{math.ceil(days / 365)} years"


def extract_themes(tag_lists: list[list[str]], limit: int = 5) -> list[str]:
    """Most frequent tags across memories, most common first."""
    counts = Counter(tag for tags in tag_lists for tag in tags)
    return [tag for tag, _ in counts.most_common(limit)]


class AiService:
    """Titles, summaries, moods, enhancements, tags and insights for memories."""

    def __init__(self, generator: TextGenerator | None) -> None:
        """Initialize the service.

        Args:
            generator: Text generator, or None when AI is not configured.
        """
        self._generator = generator

    @property
    def enabled(self) -> bool:
        return self._generator is not None

    async def generate_title(self, text: str, memory_type: str = "text") -> str | None:
        prompt = (
            f"Generate a creative, engaging title for this {memory_type} memory. "
            f"Keep it under {MAX_TITLE_LENGTH} characters and make it personal and meaningful:\n\n"
            f'"{text[:500]}"\n\nTitle:'
        )
        title = await self._complete("title generation", _TITLE_SYSTEM, prompt, 20, 0.7)
        if title is None:
            return None
        return title.strip().strip("\"'")[:MAX_TITLE_LENGTH]

    async def generate_summary(self, memories: list[dict[str, Any]]) -> str | None:
        memory_texts = "\n".join(
            f"{memory.get('title') or ''}: {memory.get('text') or ''}" for memory in memories
        )
        prompt = (
            "Create a beautiful, nostalgic summary of these memories. Focus on the emotions, "
            f"themes, and meaningful moments:\n\n{memory_texts[:MAX_SUMMARY_INPUT]}\n\nSummary:"
        )
        return await self._complete("summary generation", _SUMMARY_SYSTEM, prompt, 200, 0.8)

    async def analyze_mood(self, text: str) -> str:
        prompt = (
            "Analyze the emotional mood of this text and return a single emoji that best "
            f'represents the overall feeling:\n\n"{text[:1000]}"\n\nEmoji:'
        )
        mood = await self._complete("mood analysis", _MOOD_SYSTEM, prompt, 5, 0.3)
        if mood and _EMOJI_PATTERN.search(mood):
            return mood
        return DEFAULT_MOOD

    async def enhance_text(self, text: str) -> str:
        prompt = (
            "Enhance this personal memory text to be more vivid and engaging while keeping the "
            "original meaning and personal tone. Don't change the core message, just make it more "
            f'descriptive and emotionally resonant:\n\n"{text}"\n\nEnhanced version:'
        )
        max_tokens = max(1, min(len(text) * 2, 500))
        enhanced = await self._complete("text enhancement", _ENHANCE_SYSTEM, prompt, max_tokens, 0.7)
        return enhanced or text

    async def generate_tags(self, text: str, existing_tags: list[str] | None = None) -> list[str]:
        existing = [tag.lower() for tag in existing_tags or []]
        prompt = (
            "Generate 3-5 relevant tags for this memory. Focus on themes, emotions, activities, "
            f'and locations. Return as comma-separated values:\n\n"{text[:1000]}"\n\n'
            f"Existing tags: {', '.join(existing)}\n\nTags:"
        )
        raw = await self._complete("tag generation", _TAGS_SYSTEM, prompt, 50, 0.5)
        if raw is None:
            return []
        tags = [tag.strip().lower() for tag in raw.split(",")]
        return [tag for tag in tags if tag and tag not in existing][:5]

    async def generate_capsule_insights(
        self, capsule: dict[str, Any], memories: list[dict[str, Any]]
    ) -> str | None:
        timestamps = [
            _parse_timestamp(memory["createdAt"]) for memory in memories if memory.get("createdAt")
        ]
        time_span = calculate_time_span([ts for ts in timestamps if ts is not None])
        themes = extract_themes([memory.get("tags") or [] for memory in memories])
        prompt = (
            f'Generate insights for a memory capsule called "{capsule.get("title", "")}" with '
            f"{len(memories)} memories spanning {time_span}. Key themes: {', '.join(themes)}.\n\n"
            "Create a warm, personal insight about this collection of memories:"
        )
        return await self._complete("insights generation", _INSIGHTS_SYSTEM, prompt, 150, 0.8)

    async def _complete(
        self, label: str, system: str, prompt: str, max_tokens: int, temperature: float
    ) -> str | None:
        if self._generator is None:
            logger.warning(f"AI {label} skipped: no text generator configured")
            return None
        try:
            result = await self._generator.complete(system, prompt, max_tokens, temperature)
        except Exception as e:
            logger.error(f"AI {label} failed: {e}", exc_info=True)
            return None
        result = result.strip()
        return result or None


def _parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Ignoring unparseable memory timestamp {value!r}")
            return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
