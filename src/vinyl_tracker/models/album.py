"""Album entity and its duplicate identity."""

from __future__ import annotations

from datetime import datetime
from typing import Any, NamedTuple
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vinyl_tracker.types import utc_now
from vinyl_tracker.utils.text import clean, fold

# Marks an optional argument that was not supplied, so that None can mean
# "clear this field".
_UNSET: Any = object()


class DuplicateKey(NamedTuple):
    """Folded (title, artist) pair identifying the same real-world record."""

    title: str
    artist: str


class Album(BaseModel):
    """One vinyl record in the library.

    Albums are immutable values: updates produce a new instance via
    :meth:`updating_metadata` and are stored by replacement. All text fields
    are trimmed on construction.

    Attributes:
        id: Unique identity, fixed for the record's lifetime.
        title: Album title. Required for a valid album.
        artist: Album artist. Required for a valid album.
        year: Release year, if known.
        genre: Free-text genre.
        notes: Free-text notes.
        label: Record label.
        cover_image: Raw cover art bytes, if any.
        created_at: When the album was added to the library.
        updated_at: When the album was last modified.
    """

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    title: str
    artist: str
    year: int | None = None
    genre: str = ""
    notes: str = ""
    label: str = ""
    cover_image: bytes | None = Field(default=None, repr=False)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("title", "artist", "genre", "notes", "label", mode="before")
    @classmethod
    def _trim_text(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return clean(v)
        return v

    @property
    def is_valid(self) -> bool:
        """Title and artist are both non-empty."""
        return bool(self.title) and bool(self.artist)

    @property
    def duplicate_key(self) -> DuplicateKey:
        """Case- and diacritic-insensitive identity of the record."""
        return DuplicateKey(title=fold(self.title), artist=fold(self.artist))

    @property
    def has_artwork(self) -> bool:
        return bool(self.cover_image)

    @property
    def year_text(self) -> str:
        """Year for display, empty when unknown."""
        return "" if self.year is None else str(self.year)

    def matches(self, query: str) -> bool:
        """Check whether the album matches a free-text search query.

        Matching is a case- and diacritic-insensitive substring test against
        title, artist, genre and label. A blank query matches everything.

        Args:
            query: Search text as typed by the user.

        Returns:
            True if the query is blank or found in any searchable field.
        """
        needle = fold(query)
        if not needle:
            return True
        haystacks = (self.title, self.artist, self.genre, self.label)
        return any(needle in fold(field) for field in haystacks)

    def updating_metadata(
        self,
        *,
        title: str | None = None,
        artist: str | None = None,
        year: int | None = _UNSET,
        genre: str | None = None,
        notes: str | None = None,
        label: str | None = None,
        cover_image: bytes | None = _UNSET,
        now: datetime | None = None,
    ) -> Album:
        """Return a copy with the given fields replaced.

        Text fields left as None keep their current value. ``year`` and
        ``cover_image`` keep their value when omitted and are cleared when
        passed as None. ``id`` and ``created_at`` are always preserved;
        ``updated_at`` is refreshed.

        Args:
            title: New title.
            artist: New artist.
            year: New year, or None to clear.
            genre: New genre.
            notes: New notes.
            label: New label.
            cover_image: New cover bytes, or None to clear.
            now: Timestamp to record as ``updated_at`` (defaults to now).

        Returns:
            The updated album.
        """
        data = self.model_dump()
        text_changes = {
            "title": title,
            "artist": artist,
            "genre": genre,
            "notes": notes,
            "label": label,
        }
        data.update({k: v for k, v in text_changes.items() if v is not None})
        if year is not _UNSET:
            data["year"] = year
        if cover_image is not _UNSET:
            data["cover_image"] = cover_image
        data["updated_at"] = now or utc_now()
        return Album(**data)

    @classmethod
    def placeholder(cls, index: int) -> Album:
        """Build a sample album, used for seeding demo libraries."""
        return cls(
            title=f"Album {index}",
            artist=f"Artist {index}",
            year=1970 + index,
            genre="Genre",
            label=f"Label {index}",
        )
