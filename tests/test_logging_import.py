"""
Test that celestia_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from celestia_logging and use the logger."""
    from backend_celestia.celestia_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    logger.info("test_message", key="value")


def test_bind_session():
    from backend_celestia.celestia_logging import bind_session

    logger = bind_session("abc123")
    logger.info("session_test_message", galaxies=3)
