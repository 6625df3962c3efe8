"""Email settings for reminder emails.

Environment variables use EMAIL_ prefix.
Example: EMAIL_BACKEND=smtp, EMAIL_SMTP_HOST=smtp.example.com
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmailSettings(BaseSettings):
    """Email delivery configuration.

    Supports two backends:
    - smtp: Standard SMTP/SMTPS delivery via aiosmtplib
    - console: Log emails instead of sending them (development)
    """

    backend: Literal["smtp", "console"] = Field(
        default="console",
        description="Email backend: smtp (production) or console (dev)",
    )

    smtp_host: str = Field(
        default="localhost",
        min_length=1,
        max_length=255,
        description="SMTP server hostname",
    )
    smtp_port: int = Field(
        default=587,
        ge=1,
        le=65535,
        description="SMTP server port (587 for TLS, 465 for SSL, 25 for plain)",
    )
    smtp_username: str | None = Field(default=None, max_length=255)
    smtp_password: SecretStr | None = Field(default=None)
    use_tls: bool = Field(default=True, description="Use STARTTLS")
    use_ssl: bool = Field(default=False, description="Use implicit TLS")
    timeout: float = Field(default=30.0, gt=0, le=300)

    from_email: str = Field(
        default="reminders@revia.local",
        min_length=3,
        description="Sender address for reminder emails",
    )
    from_name: str | None = Field(default="Revia", max_length=100)

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
