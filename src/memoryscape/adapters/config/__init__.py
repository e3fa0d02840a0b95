"""Configuration adapters."""

from memoryscape.adapters.config.app_config import AppConfig

__all__ = ["AppConfig"]
