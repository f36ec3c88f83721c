"""User-defined album collections."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vinyl_tracker.types import utc_now
from vinyl_tracker.utils.text import clean


class AlbumCollection(BaseModel):
    """A named group of albums, referenced by id.

    Collections only hold album ids; the repository owns the albums
    themselves. Deleting a collection never deletes its albums.

    Attributes:
        id: Unique identity.
        name: Display name. Required for a valid collection.
        detail: Optional description.
        album_ids: Member album ids (unique, unordered).
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4)
    name: str
    detail: str = ""
    album_ids: set[UUID] = Field(default_factory=set)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("name", "detail", mode="before")
    @classmethod
    def _trim_text(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return clean(v)
        return v

    @property
    def is_valid(self) -> bool:
        """The collection has a non-empty name."""
        return bool(self.name)

    @property
    def album_count(self) -> int:
        return len(self.album_ids)

    def add_album(self, album_id: UUID, now: datetime | None = None) -> bool:
        """Add an album id to the collection.

        Args:
            album_id: Album to add.
            now: Timestamp for ``updated_at`` (defaults to now).

        Returns:
            True if the id was newly inserted. ``updated_at`` only changes
            in that case.
        """
        if album_id in self.album_ids:
            return False
        self.album_ids.add(album_id)
        self.updated_at = now or utc_now()
        return True

    def remove_album(self, album_id: UUID, now: datetime | None = None) -> bool:
        """Remove an album id, touching ``updated_at`` only if it was present."""
        if album_id not in self.album_ids:
            return False
        self.album_ids.discard(album_id)
        self.updated_at = now or utc_now()
        return True

    def update(self, name: str, detail: str, now: datetime | None = None) -> None:
        """Rename and re-describe the collection. Always touches ``updated_at``."""
        self.name = name
        self.detail = detail
        self.updated_at = now or utc_now()
