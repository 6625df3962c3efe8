"""Logging infrastructure.

Structured logging with:
- JSONL format for Loki/Elasticsearch ingestion
- Automatic context injection (user_id, reminder tag, ...)
- QueueHandler + QueueListener for non-blocking I/O
- Lazy evaluation for expensive debug messages

Basic usage:
    from revia_service.infra.logging import get_lazy_logger, set_log_context
    import logging

    logger = logging.getLogger(__name__)

    set_log_context(user_id="u-42")
    logger.info("Scheduling reminder")  # Includes user_id

    lazy_logger = get_lazy_logger(__name__)
    lazy_logger.debug(lambda: f"Pending: {describe_pending()}")
"""

from revia_service.infra.logging.config import configure_logging, setup_logging, shutdown
from revia_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    remove_from_log_context,
    set_log_context,
)
from revia_service.infra.logging.formatters import JSONFormatter
from revia_service.infra.logging.lazy import (
    LazyLoggerAdapter,
    LazyString,
    get_lazy_logger,
    lazy,
)

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "LazyLoggerAdapter",
    "LazyString",
    "clear_log_context",
    "configure_logging",
    "get_lazy_logger",
    "get_log_context",
    "lazy",
    "remove_from_log_context",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
