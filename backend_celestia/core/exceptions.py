"""
Application-level exceptions.

The grouper and layout never raise on well-formed input; everything here is
raised at the ingestion boundary (records, REST load, push channel) or by the
configuration layer. Each exception carries a stable ``code`` for API
responses and log aggregation.
"""

from __future__ import annotations

from typing import Any


class CelestiaError(Exception):
    """Base class for Celestia errors."""

    code = "celestia_error"


class InvalidRecord(CelestiaError):
    """A transaction record is malformed (missing hash, bad amount, ...). Skipped, never fatal to a batch."""

    code = "invalid_record"

    def __init__(self, reason: str, record: Any = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.record = record


class DuplicateRecord(CelestiaError):
    """A transaction hash was already processed."""

    code = "duplicate_record"

    def __init__(self, tx_hash: str) -> None:
        super().__init__(f"transaction {tx_hash} already processed")
        self.tx_hash = tx_hash


class ChannelDisconnected(CelestiaError):
    """The push channel closed or could not be opened."""

    code = "channel_disconnected"

    def __init__(self, message: str, *, close_code: int | None = None, reason: str | None = None) -> None:
        super().__init__(message)
        self.close_code = close_code
        self.reason = reason


class UpstreamFetchFailed(CelestiaError):
    """Initial REST load from the data service failed."""

    code = "upstream_fetch_failed"

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ConfigError(CelestiaError):
    """A configuration value is missing or invalid."""

    code = "config_error"
