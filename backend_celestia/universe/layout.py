"""
Spatial layout: memoized layered-spiral positions for galaxies and planets.

Indices are organised into concentric layers of ceil(sqrt(total)) slots. The
radius grows with the layer, the angle winds several turns per layer with a
per-layer offset, and bounded random jitter keeps the result from looking
mechanical. Once an index has a position it never moves, even as ``total``
grows; new indices get new positions.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

from backend_celestia.universe.models import Position

DEFAULT_MIN_RADIUS = 200.0
DEFAULT_MAX_RADIUS = 800.0
DEFAULT_VERTICAL_SPREAD = 300.0
DEFAULT_SPIRAL_FACTOR = 6.0
DEFAULT_RADIUS_JITTER = 0.3


@dataclass(frozen=True)
class LayoutConfig:
    """Geometry of the spiral layout."""

    min_radius: float = DEFAULT_MIN_RADIUS
    max_radius: float = DEFAULT_MAX_RADIUS
    vertical_spread: float = DEFAULT_VERTICAL_SPREAD
    spiral_factor: float = DEFAULT_SPIRAL_FACTOR
    radius_jitter: float = DEFAULT_RADIUS_JITTER
    layer_angle_step: float = math.pi * 0.5
    angle_jitter: float = math.pi * 0.25

    def __post_init__(self) -> None:
        if self.min_radius < 0:
            raise ValueError("min_radius must be non-negative")
        if self.max_radius < self.min_radius:
            raise ValueError("max_radius must be >= min_radius")
        if self.vertical_spread < 0:
            raise ValueError("vertical_spread must be non-negative")
        if not 0 <= self.radius_jitter <= 1:
            raise ValueError("radius_jitter must be between 0 and 1")


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class SpiralLayout:
    """
    Position cache plus spiral placement for one session.

    The cache is append-only: entries are added, never removed or changed.
    Pass a seeded ``random.Random`` for reproducible layouts.
    """

    def __init__(
        self,
        config: LayoutConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config or LayoutConfig()
        self._rng = rng or random.Random()
        self._positions: dict[int, Position] = {}

    @property
    def config(self) -> LayoutConfig:
        return self._config

    @property
    def cached_count(self) -> int:
        return len(self._positions)

    def __contains__(self, index: object) -> bool:
        return index in self._positions

    def cached_positions(self) -> dict[int, Position]:
        """Snapshot copy of the cache."""
        return dict(self._positions)

    def position_for(self, index: int, total: int) -> Position:
        """Return the cached position for index, computing it on first use."""
        cached = self._positions.get(index)
        if cached is not None:
            return cached
        if index < 0:
            raise ValueError("index must be non-negative")
        position = self._compute(index, max(total, index + 1, 1))
        self._positions[index] = position
        return position

    def _compute(self, index: int, total: int) -> Position:
        cfg = self._config
        rng = self._rng

        layer_size = math.ceil(math.sqrt(total))
        layer = index // layer_size
        position_in_layer = index % layer_size
        layers = math.ceil(total / layer_size)

        base_radius = cfg.min_radius + (cfg.max_radius - cfg.min_radius) * (layer + 1) / layers
        angle_offset = layer * cfg.layer_angle_step + rng.random() * cfg.angle_jitter
        angle = (position_in_layer / layer_size) * math.pi * 2 * cfg.spiral_factor + angle_offset

        # Each layer owns a ring of the radial band ending at base_radius, and a
        # slice of the vertical band. Jitter stays inside both.
        ring_width = (cfg.max_radius - cfg.min_radius) / layers
        radius_offset = rng.random() * ring_width * cfg.radius_jitter
        radius = _clamp(base_radius - radius_offset, cfg.min_radius, cfg.max_radius)

        half_spread = cfg.vertical_spread / 2
        slice_height = cfg.vertical_spread / layers
        layer_height = -half_spread + slice_height * (layer + 0.5)
        height = layer_height + (rng.random() - 0.5) * slice_height
        y = _clamp(height, -half_spread, half_spread)

        return (math.cos(angle) * radius, y, math.sin(angle) * radius)
