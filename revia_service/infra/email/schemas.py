"""Email schemas and data models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, EmailStr, Field, model_validator


class EmailMessage(BaseModel):
    """Email message model.

    Represents a complete email message ready for sending.

    Example:
        message = EmailMessage(
            to=["user@example.com"],
            subject="Time to train",
            body_text="Your session starts soon.",
        )
    """

    to: list[EmailStr] = Field(min_length=1, description="Primary recipients")
    reply_to: EmailStr | None = Field(default=None, description="Reply-to address")

    # Sender (optional, uses settings default if not provided)
    from_email: EmailStr | None = Field(default=None, description="Sender email address")
    from_name: str | None = Field(default=None, max_length=100, description="Sender display name")

    subject: str = Field(min_length=1, max_length=500, description="Email subject line")
    body_text: str | None = Field(default=None, description="Plain text body")
    body_html: str | None = Field(default=None, description="HTML body")

    headers: dict[str, str] = Field(default_factory=dict, description="Additional email headers")
    tags: list[str] = Field(default_factory=list, description="Tags for tracking/filtering")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Custom metadata")

    @model_validator(mode="after")
    def require_body(self) -> EmailMessage:
        """Validate that at least one body type is provided."""
        if self.body_text is None and self.body_html is None:
            msg = "Either body_text or body_html must be provided"
            raise ValueError(msg)
        return self

    @property
    def all_recipients(self) -> list[str]:
        """Get all recipients."""
        return list(self.to)
