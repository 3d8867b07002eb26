"""
Application settings.

Builds a frozen Settings object from environment variables (see config.env)
and exposes the derived grouping, layout and reconnect configuration used by
the session, ingestion and API layers.
"""

from __future__ import annotations

import functools
import random
from dataclasses import dataclass

from backend_celestia.config import env
from backend_celestia.core.exceptions import ConfigError
from backend_celestia.universe.grouping import (
    DEFAULT_MAX_GALAXY_AMOUNT,
    DEFAULT_TARGET_GALAXY_AMOUNT,
    GroupingConfig,
)
from backend_celestia.universe.layout import (
    DEFAULT_MAX_RADIUS,
    DEFAULT_MIN_RADIUS,
    DEFAULT_SPIRAL_FACTOR,
    DEFAULT_VERTICAL_SPREAD,
    LayoutConfig,
)


@dataclass(frozen=True)
class Settings:
    api_url: str
    ws_url: str
    page_size: int
    request_timeout_sec: float
    max_galaxy_amount: float
    target_galaxy_amount: float | None
    layout_min_radius: float
    layout_max_radius: float
    layout_vertical_spread: float
    layout_spiral_factor: float
    layout_seed: int | None
    reconnect_delay_sec: float
    reconnect_backoff: float
    reconnect_max_sec: float
    max_reconnect_attempts: int
    batch_window_sec: float
    ingestion_enabled: bool
    api_host: str
    api_port: int

    def grouping_config(self) -> GroupingConfig:
        try:
            return GroupingConfig(
                max_capacity=self.max_galaxy_amount,
                target_capacity=self.target_galaxy_amount,
            )
        except ValueError as e:
            raise ConfigError(f"invalid galaxy capacity: {e}") from e

    def layout_config(self) -> LayoutConfig:
        try:
            return LayoutConfig(
                min_radius=self.layout_min_radius,
                max_radius=self.layout_max_radius,
                vertical_spread=self.layout_vertical_spread,
                spiral_factor=self.layout_spiral_factor,
            )
        except ValueError as e:
            raise ConfigError(f"invalid layout: {e}") from e

    def layout_rng(self) -> random.Random:
        """Seeded when CELESTIA_LAYOUT_SEED is set, otherwise from process entropy."""
        return random.Random(self.layout_seed)


def _load_settings() -> Settings:
    target = env.get_float("CELESTIA_TARGET_GALAXY_AMOUNT", DEFAULT_TARGET_GALAXY_AMOUNT)
    settings = Settings(
        api_url=env.get_api_url(),
        ws_url=env.get_ws_url(),
        page_size=env.get_int("CELESTIA_PAGE_SIZE", 1000),
        request_timeout_sec=env.get_float("CELESTIA_REQUEST_TIMEOUT_SEC", 15.0),
        max_galaxy_amount=env.get_float("CELESTIA_MAX_GALAXY_AMOUNT", DEFAULT_MAX_GALAXY_AMOUNT),
        target_galaxy_amount=target if target > 0 else None,
        layout_min_radius=env.get_float("CELESTIA_LAYOUT_MIN_RADIUS", DEFAULT_MIN_RADIUS),
        layout_max_radius=env.get_float("CELESTIA_LAYOUT_MAX_RADIUS", DEFAULT_MAX_RADIUS),
        layout_vertical_spread=env.get_float("CELESTIA_LAYOUT_VERTICAL_SPREAD", DEFAULT_VERTICAL_SPREAD),
        layout_spiral_factor=env.get_float("CELESTIA_LAYOUT_SPIRAL_FACTOR", DEFAULT_SPIRAL_FACTOR),
        layout_seed=env.get_optional_int("CELESTIA_LAYOUT_SEED"),
        reconnect_delay_sec=env.get_float("CELESTIA_RECONNECT_DELAY_SEC", 2.0),
        reconnect_backoff=env.get_float("CELESTIA_RECONNECT_BACKOFF", 1.0),
        reconnect_max_sec=env.get_float("CELESTIA_RECONNECT_MAX_SEC", 60.0),
        max_reconnect_attempts=env.get_int("CELESTIA_MAX_RECONNECT_ATTEMPTS", 5),
        batch_window_sec=env.get_float("CELESTIA_BATCH_WINDOW_SEC", 0.25),
        ingestion_enabled=env.ingestion_enabled(),
        api_host=env.get_str("API_HOST", "0.0.0.0"),
        api_port=env.get_int("API_PORT", 8000),
    )
    if settings.page_size < 1:
        raise ConfigError("CELESTIA_PAGE_SIZE must be >= 1")
    if settings.max_reconnect_attempts < 0:
        raise ConfigError("CELESTIA_MAX_RECONNECT_ATTEMPTS must be >= 0")
    if settings.reconnect_backoff < 1.0:
        raise ConfigError("CELESTIA_RECONNECT_BACKOFF must be >= 1.0")
    return settings


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once from the environment."""
    return _load_settings()


def reset_settings_cache() -> None:
    """Forget cached settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
