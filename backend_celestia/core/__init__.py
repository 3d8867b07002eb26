"""
Core utilities shared by the universe, ingestion, and API layers.
"""

from backend_celestia.core.exceptions import (
    CelestiaError,
    ChannelDisconnected,
    ConfigError,
    DuplicateRecord,
    InvalidRecord,
    UpstreamFetchFailed,
)

__all__ = [
    "CelestiaError",
    "ChannelDisconnected",
    "ConfigError",
    "DuplicateRecord",
    "InvalidRecord",
    "UpstreamFetchFailed",
]
