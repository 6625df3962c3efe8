"""RFC 7807 Problem Details schema for error responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FieldError(BaseModel):
    """One failed field in a validation problem."""

    field: str
    message: str
    type: str
    value: Any | None = None


class ProblemDetails(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    See: https://datatracker.ietf.org/doc/html/rfc7807

    Example:
        return JSONResponse(
            status_code=409,
            content=ProblemDetails(
                type="push-notifications-disabled",
                title="Push Notifications Disabled",
                status=409,
                detail="Push notifications are disabled in your preferences",
            ).model_dump(exclude_none=True),
        )
    """

    type: str = Field(
        default="about:blank",
        min_length=1,
        max_length=200,
        description="URI reference identifying the problem type",
    )
    title: str = Field(
        min_length=1, max_length=200, description="Short, human-readable summary of the problem"
    )
    status: int = Field(ge=100, le=599, description="HTTP status code")
    detail: str | None = Field(
        default=None,
        max_length=2000,
        description="Human-readable explanation specific to this occurrence",
    )
    instance: str | None = Field(
        default=None,
        max_length=500,
        description="URI reference identifying the specific occurrence",
    )
    errors: list[FieldError] | None = Field(
        default=None,
        description="Field-level details for validation problems",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "reminder-in-past",
                "title": "Reminder In The Past",
                "status": 422,
                "detail": "A reminder cannot be scheduled in the past",
                "instance": "/api/v1/notifications/preferences",
            }
        },
        str_strip_whitespace=True,
    )
