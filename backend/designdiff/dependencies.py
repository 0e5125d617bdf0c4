"""FastAPI dependency injection."""

from __future__ import annotations

from designdiff.config import Settings, settings
from designdiff.engine.config import DiffConfig


def get_settings() -> Settings:
    return settings


def base_config(current: Settings) -> DiffConfig:
    """DiffConfig seeded from process settings, before per-request overrides."""
    return DiffConfig(
        threshold=current.default_threshold,
        scale_factor=current.default_scale_factor,
    ).validate()
