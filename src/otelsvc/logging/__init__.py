"""Structured logging for otelsvc."""

from otelsvc.logging.logger import add_trace_id, get_logger, setup_logging

__all__ = ["add_trace_id", "get_logger", "setup_logging"]
