"""Domain layer - core models, realtime contracts and ports."""
