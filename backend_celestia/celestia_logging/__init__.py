"""
Structured logging for Celestia.

JSON logs with timestamp, session_id and event_type. Use get_logger() in all
modules for aggregation-friendly output.
"""

from backend_celestia.celestia_logging.logger import bind_session, get_logger

__all__ = ["bind_session", "get_logger"]
