"""
Pytest fixtures for Celestia tests. Seeded sessions, environment overrides, and an API client with ingestion disabled.
"""

from __future__ import annotations

import random

import pytest

from backend_celestia.universe.grouping import GroupingConfig
from backend_celestia.universe.layout import SpiralLayout
from backend_celestia.universe.session import UniverseSession


@pytest.fixture
def session():
    """Session with MAX=100 / TARGET=80 and a seeded layout."""
    return UniverseSession(
        grouping=GroupingConfig(max_capacity=100, target_capacity=80),
        layout=SpiralLayout(rng=random.Random(7)),
        session_id="test",
    )


@pytest.fixture
def celestia_env(monkeypatch):
    """Ingestion off, small capacity, fixed layout seed. Resets the settings cache around the test."""
    from backend_celestia.config.settings import reset_settings_cache

    monkeypatch.setenv("CELESTIA_INGESTION_ENABLED", "0")
    monkeypatch.setenv("CELESTIA_MAX_GALAXY_AMOUNT", "100")
    monkeypatch.setenv("CELESTIA_TARGET_GALAXY_AMOUNT", "80")
    monkeypatch.setenv("CELESTIA_LAYOUT_SEED", "11")
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def client(celestia_env):
    """FastAPI TestClient with the lifespan running (session created, no ingestion)."""
    from fastapi.testclient import TestClient

    from backend_celestia.api_server.server import app

    with TestClient(app) as c:
        yield c
