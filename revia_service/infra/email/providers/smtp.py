"""SMTP email provider using aiosmtplib.

Supports STARTTLS (port 587), implicit TLS (port 465) and plain SMTP,
with optional authentication.
"""

from __future__ import annotations

from datetime import UTC, datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import logging
import ssl
from typing import TYPE_CHECKING
import uuid

import aiosmtplib

from .base import BaseEmailProvider, EmailDeliveryResult

if TYPE_CHECKING:
    from revia_service.core.settings import EmailSettings
    from revia_service.infra.email.schemas import EmailMessage

logger = logging.getLogger(__name__)


class SMTPProvider(BaseEmailProvider):
    """SMTP email provider using native async aiosmtplib.

    Example:
        provider = SMTPProvider(EmailSettings(backend="smtp", smtp_host="smtp.example.com"))
        result = await provider.send(message)
    """

    def __init__(self, settings: EmailSettings) -> None:
        super().__init__(settings)
        self._host = settings.smtp_host
        self._port = settings.smtp_port
        self._username = settings.smtp_username
        self._password = (
            settings.smtp_password.get_secret_value() if settings.smtp_password else None
        )
        self._use_tls = settings.use_tls
        self._use_ssl = settings.use_ssl
        self._timeout = settings.timeout

    @property
    def provider_name(self) -> str:
        return "smtp"

    def _create_ssl_context(self) -> ssl.SSLContext | None:
        if not (self._use_tls or self._use_ssl):
            return None
        return ssl.create_default_context()

    async def _do_send(self, message: EmailMessage) -> EmailDeliveryResult:
        mime_message = self._build_mime_message(message)
        message_id = mime_message["Message-ID"]

        smtp = aiosmtplib.SMTP(
            hostname=self._host,
            port=self._port,
            use_tls=self._use_ssl,  # Implicit TLS
            start_tls=self._use_tls,  # STARTTLS
            tls_context=self._create_ssl_context(),
            timeout=self._timeout,
        )

        try:
            async with smtp:
                if self._username and self._password:
                    await smtp.login(self._username, self._password)
                errors, _response = await smtp.send_message(mime_message)
        except aiosmtplib.SMTPAuthenticationError as e:
            return EmailDeliveryResult.failure_result(
                provider=self.provider_name,
                error=f"SMTP authentication failed: {e}",
                error_code="AUTH_FAILED",
                recipients_rejected=message.all_recipients,
            )
        except aiosmtplib.SMTPRecipientsRefused as e:
            return EmailDeliveryResult.failure_result(
                provider=self.provider_name,
                error=f"All recipients refused: {e}",
                error_code="RECIPIENTS_REFUSED",
                recipients_rejected=message.all_recipients,
            )
        except aiosmtplib.SMTPConnectError as e:
            return EmailDeliveryResult.failure_result(
                provider=self.provider_name,
                error=f"SMTP connection failed: {e}",
                error_code="CONNECTION_ERROR",
            )
        except aiosmtplib.SMTPException as e:
            return EmailDeliveryResult.failure_result(
                provider=self.provider_name,
                error=f"SMTP error: {e}",
                error_code="SMTP_ERROR",
            )

        recipients_rejected = list(errors.keys()) if errors else []
        recipients_accepted = [r for r in message.all_recipients if r not in recipients_rejected]

        if recipients_rejected:
            logger.warning(
                "Some SMTP recipients rejected",
                extra={"message_id": message_id, "rejected": recipients_rejected},
            )

        return EmailDeliveryResult(
            success=len(recipients_accepted) > 0,
            message_id=message_id,
            provider=self.provider_name,
            recipients_accepted=recipients_accepted,
            recipients_rejected=recipients_rejected,
            metadata={"host": self._host, "port": self._port},
        )

    def _build_mime_message(self, message: EmailMessage) -> MIMEMultipart:
        """Build a MIME message from an EmailMessage."""
        mime_msg = MIMEMultipart("mixed")

        from_email, from_name = self._sender(message)
        mime_msg["From"] = f"{from_name} <{from_email}>" if from_name else from_email
        mime_msg["To"] = ", ".join(message.to)
        mime_msg["Subject"] = message.subject
        mime_msg["Message-ID"] = f"<{uuid.uuid4()}@{self._host}>"
        mime_msg["Date"] = datetime.now(UTC).strftime("%a, %d %b %Y %H:%M:%S +0000")
        if message.reply_to:
            mime_msg["Reply-To"] = message.reply_to

        for key, value in message.headers.items():
            mime_msg[key] = value

        if message.body_text and message.body_html:
            alt_part = MIMEMultipart("alternative")
            alt_part.attach(MIMEText(message.body_text, "plain", "utf-8"))
            alt_part.attach(MIMEText(message.body_html, "html", "utf-8"))
            mime_msg.attach(alt_part)
        elif message.body_html:
            mime_msg.attach(MIMEText(message.body_html, "html", "utf-8"))
        elif message.body_text:
            mime_msg.attach(MIMEText(message.body_text, "plain", "utf-8"))

        return mime_msg


__all__ = ["SMTPProvider"]
