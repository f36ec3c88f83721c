"""Shared type definitions for the application."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import TypeAlias
from uuid import UUID

# Callable type aliases for dependency injection
Clock: TypeAlias = Callable[[], datetime]
IdGenerator: TypeAlias = Callable[[], UUID]


def utc_now() -> datetime:
    """Default clock: timezone-aware current time in UTC."""
    return datetime.now(UTC)
