"""Base service class for business logic."""

from __future__ import annotations

import logging

from revia_service.infra.logging import get_lazy_logger


class BaseService:
    """Base class for all service classes.

    Loggers:
        - self.logger: Standard logger for INFO/WARNING/ERROR (always evaluated)
        - self._lazy: Lazy logger for DEBUG (zero overhead when DEBUG disabled)

    Example:
        class ReminderScheduler(BaseService):
            def __init__(self, timers: TimerBackend):
                super().__init__()
                self._timers = timers

            async def schedule(self, title, options, fire_at):
                self.logger.info("Reminder scheduled", extra={"tag": options.tag})
                self._lazy.debug(lambda: f"pending={self.describe()}")
    """

    def __init__(self) -> None:
        """Initialize base service with loggers."""
        class_name = self.__class__.__name__
        self.logger = logging.getLogger(class_name)
        self._lazy = get_lazy_logger(class_name)
