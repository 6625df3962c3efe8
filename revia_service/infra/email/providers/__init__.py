"""Email providers."""

from .base import BaseEmailProvider, EmailDeliveryResult, EmailProvider
from .console import ConsoleProvider
from .factory import create_email_provider
from .smtp import SMTPProvider

__all__ = [
    "BaseEmailProvider",
    "ConsoleProvider",
    "EmailDeliveryResult",
    "EmailProvider",
    "SMTPProvider",
    "create_email_provider",
]
