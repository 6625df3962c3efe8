"""Email infrastructure: message schema and delivery providers."""

from .providers import (
    BaseEmailProvider,
    ConsoleProvider,
    EmailDeliveryResult,
    EmailProvider,
    SMTPProvider,
    create_email_provider,
)
from .schemas import EmailMessage

__all__ = [
    "BaseEmailProvider",
    "ConsoleProvider",
    "EmailDeliveryResult",
    "EmailMessage",
    "EmailProvider",
    "SMTPProvider",
    "create_email_provider",
]
