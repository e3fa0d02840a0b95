"""Adapters layer - external system integrations."""
