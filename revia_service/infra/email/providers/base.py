"""Base email provider protocol and abstract class.

Defines the contract that all email providers must implement.

Usage:
    class MyProvider(BaseEmailProvider):
        @property
        def provider_name(self) -> str:
            return "myprovider"

        async def _do_send(self, message: EmailMessage) -> EmailDeliveryResult:
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
import logging
import time
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from revia_service.core.settings import EmailSettings
    from revia_service.infra.email.schemas import EmailMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailDeliveryResult:
    """Result of an email delivery attempt.

    Attributes:
        success: Whether delivery succeeded
        message_id: Provider-assigned message ID (for tracking)
        provider: Provider name (smtp, console)
        recipients_accepted: List of accepted recipients
        recipients_rejected: List of rejected recipients
        error: Error message if failed
        error_code: Error category for programmatic handling
        duration_ms: Time taken to send in milliseconds
        metadata: Provider-specific metadata
    """

    success: bool
    message_id: str | None
    provider: str
    recipients_accepted: list[str] = field(default_factory=list)
    recipients_rejected: list[str] = field(default_factory=list)
    error: str | None = None
    error_code: str | None = None
    duration_ms: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.success and not self.error:
            object.__setattr__(self, "error", "Unknown error")

    @classmethod
    def success_result(
        cls,
        message_id: str,
        provider: str,
        recipients: list[str] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> EmailDeliveryResult:
        """Create a successful delivery result."""
        return cls(
            success=True,
            message_id=message_id,
            provider=provider,
            recipients_accepted=recipients or [],
            metadata=metadata or {},
        )

    @classmethod
    def failure_result(
        cls,
        provider: str,
        error: str,
        error_code: str | None = None,
        recipients_rejected: list[str] | None = None,
    ) -> EmailDeliveryResult:
        """Create a failed delivery result."""
        return cls(
            success=False,
            message_id=None,
            provider=provider,
            recipients_rejected=recipients_rejected or [],
            error=error,
            error_code=error_code,
        )


@runtime_checkable
class EmailProvider(Protocol):
    """Protocol defining the email provider interface.

    Example:
        async def notify(provider: EmailProvider, msg: EmailMessage) -> None:
            result = await provider.send(msg)
            if result.success:
                print(f"Sent: {result.message_id}")
    """

    async def send(self, message: EmailMessage) -> EmailDeliveryResult:
        """Send an email message."""
        ...

    @property
    def provider_name(self) -> str:
        """Get the provider name (e.g., 'smtp', 'console')."""
        ...


class BaseEmailProvider(ABC):
    """Abstract base class for email providers.

    Wraps ``_do_send`` with timing, logging and a catch-all that turns
    unexpected exceptions into failure results.
    """

    def __init__(self, settings: EmailSettings) -> None:
        self._settings = settings
        logger.info(f"{self.provider_name} email provider initialized")

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name."""
        ...

    @abstractmethod
    async def _do_send(self, message: EmailMessage) -> EmailDeliveryResult:
        """Implement the actual sending logic."""
        ...

    async def send(self, message: EmailMessage) -> EmailDeliveryResult:
        """Send an email with timing and error handling.

        Args:
            message: The email message to send

        Returns:
            EmailDeliveryResult with delivery status
        """
        start_time = time.perf_counter()

        try:
            result = await self._do_send(message)
        except Exception as e:
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            logger.exception(
                f"Unexpected error in {self.provider_name} provider",
                extra={"provider": self.provider_name, "error": str(e), "duration_ms": duration_ms},
            )
            return replace(
                EmailDeliveryResult.failure_result(
                    provider=self.provider_name,
                    error=str(e),
                    error_code="UNEXPECTED_ERROR",
                ),
                duration_ms=duration_ms,
            )

        if result.duration_ms is None:
            result = replace(result, duration_ms=int((time.perf_counter() - start_time) * 1000))

        if result.success:
            logger.info(
                f"Email sent via {self.provider_name}",
                extra={
                    "message_id": result.message_id,
                    "provider": self.provider_name,
                    "recipients": len(result.recipients_accepted),
                    "duration_ms": result.duration_ms,
                },
            )
        else:
            logger.warning(
                f"Email send failed via {self.provider_name}",
                extra={
                    "provider": self.provider_name,
                    "error": result.error,
                    "error_code": result.error_code,
                    "duration_ms": result.duration_ms,
                },
            )
        return result

    def _sender(self, message: EmailMessage) -> tuple[str, str | None]:
        return (
            message.from_email or self._settings.from_email,
            message.from_name or self._settings.from_name,
        )
