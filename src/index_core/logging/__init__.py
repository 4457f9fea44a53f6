"""Structured logging."""

from index_core.logging.setup import bind_run_context, get_logger, setup_logging

__all__ = ["bind_run_context", "get_logger", "setup_logging"]
