"""Test fixtures and configuration for vinyl-tracker tests.

This module provides shared fixtures organized into:
- Time and id utilities: deterministic clock and UUID generator
- Repository fixtures: repositories backed by a temp library file
- Image fixtures: small encoded cover images
"""

from __future__ import annotations

import io
from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import UUID

import pytest
from PIL import Image
from vinyl_tracker.services.repository import AlbumRepository

# =============================================================================
# Time Utilities
# =============================================================================


class MockClock:
    """Mock clock for deterministic time-based testing.

    Usage:
        clock = MockClock()
        clock.advance(60)  # Advance by 60 seconds
        clock.set(datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC))
    """

    def __init__(self, initial: datetime | None = None) -> None:
        self._time = initial or datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self._time

    def advance(self, seconds: int) -> None:
        """Advance the clock by the specified seconds."""
        self._time += timedelta(seconds=seconds)

    def set(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._time = time


class MockIdGenerator:
    """Mock UUID generator for deterministic ids.

    Usage:
        gen = MockIdGenerator()
        gen()  # Returns UUID(int=1)
        gen()  # Returns UUID(int=2)
    """

    def __init__(self, start: int = 0) -> None:
        self._counter = start

    def __call__(self) -> UUID:
        self._counter += 1
        return UUID(int=self._counter)

    def reset(self) -> None:
        """Reset the counter."""
        self._counter = 0


@pytest.fixture
def clock() -> MockClock:
    """Provide a mock clock."""
    return MockClock()


@pytest.fixture
def id_generator() -> MockIdGenerator:
    """Provide a mock id generator (starts high to avoid album uuid4 overlap)."""
    return MockIdGenerator(start=1000)


# =============================================================================
# Repository Fixtures
# =============================================================================


@pytest.fixture
def library_path(tmp_path: Path) -> Path:
    """Location of the library file for a test."""
    return tmp_path / "library.json"


@pytest.fixture
def repository(
    library_path: Path, clock: MockClock, id_generator: MockIdGenerator
) -> Generator[AlbumRepository, None, None]:
    """Repository with a deterministic clock, closed after the test."""
    repo = AlbumRepository(library_path, clock=clock, id_generator=id_generator)
    yield repo
    repo.close()


@pytest.fixture
def reopen(
    library_path: Path, clock: MockClock, id_generator: MockIdGenerator
) -> Generator[Callable[[], AlbumRepository], None, None]:
    """Factory that opens a fresh repository on the same library file."""
    opened: list[AlbumRepository] = []

    def _reopen() -> AlbumRepository:
        repo = AlbumRepository(library_path, clock=clock, id_generator=id_generator)
        opened.append(repo)
        return repo

    yield _reopen
    for repo in opened:
        repo.close()


# =============================================================================
# Image Fixtures
# =============================================================================


def make_image_bytes(
    fmt: str = "PNG", mode: str = "RGB", size: tuple[int, int] = (8, 8)
) -> bytes:
    """Encode a tiny solid-colour image."""
    color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
    if mode == "L":
        color = 128
    img = Image.new(mode, size, color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    """A small valid PNG."""
    return make_image_bytes()
