"""Context management for structured logging.

Provides automatic context injection into log records using contextvars,
so user IDs, reminder tags and other contextual fields end up in every log
line without being passed explicitly.

This approach is:
- Async-safe: works across await boundaries and timer callbacks
- Implicit: no need to modify existing logging calls
- Compatible: works with standard Python logging
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

# Each async task gets its own copy automatically
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Set logging context for the current async task.

    All subsequent log calls in this context automatically include
    these fields on the log record.

    Args:
        **kwargs: Key-value pairs to add to logging context.
            Common examples: user_id, reminder_tag, request_id

    Example:
        ```python
        set_log_context(user_id="u-42")
        logger.info("Scheduling reminder")  # Includes user_id
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Get a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Clear all logging context for the current async task.

    Useful in tests or in long-running background sweeps that process
    one user after another.
    """
    _log_context.set({})


def remove_from_log_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    current = _log_context.get().copy()
    for key in keys:
        current.pop(key, None)
    _log_context.set(current)


class ContextInjectingFilter(logging.Filter):
    """Logging filter that injects the contextvars log context into records.

    Applied to the root logger so every logger benefits from it. Existing
    record attributes are never overwritten.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject context into log record.

        Args:
            record: The log record to enhance with context.

        Returns:
            True (always allow the record to be logged).
        """
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
