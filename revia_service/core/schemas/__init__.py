"""Shared API schemas."""

from .problem_details import FieldError, ProblemDetails

__all__ = ["FieldError", "ProblemDetails"]
