"""Core database package: declarative base, mixins and repository."""

from .base import (
    Base,
    TimestampMixin,
    UTCDateTime,
    UUIDBase,
    UUIDPKMixin,
    UUIDTimestampedBase,
)
from .repository import BaseRepository

__all__ = [
    "Base",
    "BaseRepository",
    "TimestampMixin",
    "UTCDateTime",
    "UUIDBase",
    "UUIDPKMixin",
    "UUIDTimestampedBase",
]
