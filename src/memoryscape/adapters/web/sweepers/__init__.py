"""Background maintenance tasks for the realtime layer."""

from memoryscape.adapters.web.sweepers.presence_sweeper import PresenceSweeper

__all__ = ["PresenceSweeper"]
