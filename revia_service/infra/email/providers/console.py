"""Console email provider for development.

Logs emails instead of sending them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
import uuid

from .base import BaseEmailProvider, EmailDeliveryResult

if TYPE_CHECKING:
    from revia_service.infra.email.schemas import EmailMessage

logger = logging.getLogger(__name__)


class ConsoleProvider(BaseEmailProvider):
    """Console email provider for development.

    Always succeeds (no real delivery).

    Example:
        provider = ConsoleProvider(EmailSettings())
        result = await provider.send(message)
        assert result.success
    """

    @property
    def provider_name(self) -> str:
        return "console"

    async def _do_send(self, message: EmailMessage) -> EmailDeliveryResult:
        message_id = f"console-{uuid.uuid4()}"
        from_email, from_name = self._sender(message)

        logger.info(
            "EMAIL (console backend)",
            extra={
                "message_id": message_id,
                "from": f"{from_name} <{from_email}>" if from_name else from_email,
                "to": list(message.to),
                "subject": message.subject,
                "body": (message.body_text or message.body_html or "")[:500],
                "tags": message.tags,
            },
        )

        return EmailDeliveryResult.success_result(
            message_id=message_id,
            provider=self.provider_name,
            recipients=message.all_recipients,
            metadata={"mode": "development"},
        )


__all__ = ["ConsoleProvider"]
