"""
Structured logging for Sifa.

JSON logs with timestamp, target_id, event_type.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_sifa.sifa_logging.logger import bind_target, get_logger

__all__ = ["bind_target", "get_logger"]
