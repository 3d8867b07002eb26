"""
Tests for the spiral layout: stability under growth, bounds, and seeded reproducibility.
"""

from __future__ import annotations

import math
import random

import pytest

from backend_celestia.universe.layout import LayoutConfig, SpiralLayout


def test_position_is_stable_across_totals():
    layout = SpiralLayout(rng=random.Random(1))
    first = layout.position_for(3, 10)
    assert layout.position_for(3, 10) == first
    assert layout.position_for(3, 500) == first
    assert layout.position_for(3, 1) == first


def test_growth_never_moves_existing_positions():
    layout = SpiralLayout(rng=random.Random(2))
    before = {i: layout.position_for(i, 5) for i in range(5)}
    for i in range(5, 40):
        layout.position_for(i, 40)
    for i, pos in before.items():
        assert layout.position_for(i, 40) == pos
    assert layout.cached_count == 40


def test_positions_stay_within_bounds():
    cfg = LayoutConfig(min_radius=200, max_radius=800, vertical_spread=300)
    layout = SpiralLayout(cfg, rng=random.Random(3))
    for total in (1, 2, 7, 50, 400):
        for i in range(total):
            x, y, z = layout.position_for(i, total)
            assert all(math.isfinite(v) for v in (x, y, z))
            radius = math.hypot(x, z)
            assert 200 - 1e-9 <= radius <= 800 + 1e-9
            assert -150 - 1e-9 <= y <= 150 + 1e-9


def test_seeded_layouts_are_reproducible():
    a = SpiralLayout(rng=random.Random(99))
    b = SpiralLayout(rng=random.Random(99))
    assert [a.position_for(i, 20) for i in range(20)] == [b.position_for(i, 20) for i in range(20)]


def test_independent_layouts_do_not_share_cache():
    a = SpiralLayout(rng=random.Random(5))
    b = SpiralLayout(rng=random.Random(6))
    a.position_for(0, 1)
    assert 0 in a
    assert 0 not in b
    assert b.cached_count == 0


def test_index_beyond_total_is_accepted():
    layout = SpiralLayout(rng=random.Random(4))
    x, y, z = layout.position_for(10, 0)
    assert all(math.isfinite(v) for v in (x, y, z))


def test_negative_index_rejected():
    with pytest.raises(ValueError):
        SpiralLayout().position_for(-1, 5)


def test_zero_jitter_places_on_spiral():
    """Without jitter the first slot of layer 0 sits on the +x axis at the layer radius."""
    cfg = LayoutConfig(
        min_radius=100,
        max_radius=500,
        vertical_spread=0,
        radius_jitter=0,
        angle_jitter=0,
    )
    layout = SpiralLayout(cfg, rng=random.Random(0))
    x, y, z = layout.position_for(0, 4)
    # total 4 -> layer_size 2, 2 layers; layer 0 radius = 100 + 400 * 1/2
    assert x == pytest.approx(300)
    assert y == pytest.approx(0)
    assert z == pytest.approx(0)


def test_cached_positions_is_a_copy():
    layout = SpiralLayout(rng=random.Random(8))
    layout.position_for(0, 1)
    snapshot = layout.cached_positions()
    original = snapshot[0]
    snapshot[0] = (0.0, 0.0, 0.0)
    assert layout.position_for(0, 1) == original


def test_config_validation():
    with pytest.raises(ValueError):
        LayoutConfig(min_radius=500, max_radius=100)
    with pytest.raises(ValueError):
        LayoutConfig(vertical_spread=-1)
    with pytest.raises(ValueError):
        LayoutConfig(min_radius=-5)
    with pytest.raises(ValueError):
        LayoutConfig(radius_jitter=1.5)


def test_heights_spread_through_the_band():
    layout = SpiralLayout(rng=random.Random(3))
    ys = [layout.position_for(i, 100)[1] for i in range(100)]
    assert sum(1 for y in ys if abs(y) >= 150 - 1e-9) == 0
    assert min(ys) < -100
    assert max(ys) > 100
    # 10 layers of 10, each in its own 30-unit slice
    for layer in range(10):
        low = -150 + 30 * layer
        assert all(low <= y <= low + 30 for y in ys[layer * 10 : layer * 10 + 10])


def test_radius_jitter_stays_inside_the_layer_ring():
    layout = SpiralLayout(rng=random.Random(3))
    radii = [math.hypot(x, z) for x, _, z in (layout.position_for(i, 100) for i in range(100))]
    assert sum(1 for r in radii if r >= 800 - 1e-9) < 5
    assert len({round(r, 6) for r in radii}) > 90
    # ring of layer k: (200 + 60k, 200 + 60(k+1)], jitter is at most 30% of it
    for layer in range(10):
        outer = 200 + 60 * (layer + 1)
        assert all(outer - 18 - 1e-9 <= r <= outer + 1e-9 for r in radii[layer * 10 : layer * 10 + 10])
