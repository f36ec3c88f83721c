"""Versioned on-disk format of a library.

A library file is one JSON document holding every album and collection::

    {
      "version": 1,
      "albums": [{"id": ..., "title": ..., "imageData": "<base64>", ...}],
      "collections": [{"id": ..., "name": ..., "albumIDs": [...], ...}]
    }

Key names are fixed and match the files written by the mobile app, so
existing ``library.json`` files load unchanged. Timestamps are written as
whole-second UTC (``2024-03-01T10:00:00Z``), the only form the app's
ISO-8601 decoder accepts, so files written here load back into the app.
Unknown keys are ignored and missing optional keys take their defaults, so
newer files stay readable.

A record that fails validation (bad id, undecodable ``imageData``, bad
date) is skipped with a warning; the rest of the document still loads.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
)

from vinyl_tracker.exceptions import SnapshotDecodeError
from vinyl_tracker.models.album import Album
from vinyl_tracker.models.collection import AlbumCollection
from vinyl_tracker.types import utc_now

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def _as_utc(v: datetime) -> datetime:
    return v.replace(tzinfo=UTC) if v.tzinfo is None else v


def _format_timestamp(v: datetime) -> str:
    return _as_utc(v).astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


def _valid_records(model: type[_Record], items: list[Any], kind: str) -> list[Any]:
    records = []
    for index, item in enumerate(items):
        try:
            records.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed %s record at index %d (%d error(s))",
                kind,
                index,
                e.error_count(),
            )
    return records


class AlbumRecord(_Record):
    """Persisted form of an :class:`Album`."""

    id: UUID
    title: str
    artist: str
    year: int | None = None
    genre: str = ""
    notes: str = ""
    label: str = ""
    image_data: bytes | None = Field(default=None, alias="imageData")
    date_added: datetime = Field(default_factory=utc_now, alias="dateAdded")
    last_updated: datetime = Field(default_factory=utc_now, alias="lastUpdated")

    @field_validator("image_data", mode="before")
    @classmethod
    def _decode_image(cls, v: Any) -> Any:
        if isinstance(v, str):
            return base64.b64decode(v, validate=True)
        return v

    @field_validator("date_added", "last_updated")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @field_serializer("image_data")
    def _encode_image(self, v: bytes | None) -> str | None:
        return base64.b64encode(v).decode("ascii") if v is not None else None

    @field_serializer("date_added", "last_updated")
    def _encode_timestamp(self, v: datetime) -> str:
        return _format_timestamp(v)

    @classmethod
    def from_album(cls, album: Album) -> AlbumRecord:
        return cls(
            id=album.id,
            title=album.title,
            artist=album.artist,
            year=album.year,
            genre=album.genre,
            notes=album.notes,
            label=album.label,
            image_data=album.cover_image,
            date_added=album.created_at,
            last_updated=album.updated_at,
        )

    def to_album(self) -> Album:
        return Album(
            id=self.id,
            title=self.title,
            artist=self.artist,
            year=self.year,
            genre=self.genre,
            notes=self.notes,
            label=self.label,
            cover_image=self.image_data,
            created_at=self.date_added,
            updated_at=self.last_updated,
        )


class CollectionRecord(_Record):
    """Persisted form of an :class:`AlbumCollection`."""

    id: UUID
    name: str
    detail: str = ""
    album_ids: list[UUID] = Field(default_factory=list, alias="albumIDs")
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @field_serializer("created_at", "updated_at")
    def _encode_timestamp(self, v: datetime) -> str:
        return _format_timestamp(v)

    @classmethod
    def from_collection(cls, collection: AlbumCollection) -> CollectionRecord:
        return cls(
            id=collection.id,
            name=collection.name,
            detail=collection.detail,
            album_ids=sorted(collection.album_ids, key=str),
            created_at=collection.created_at,
            updated_at=collection.updated_at,
        )

    def to_collection(self) -> AlbumCollection:
        return AlbumCollection(
            id=self.id,
            name=self.name,
            detail=self.detail,
            album_ids=set(self.album_ids),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class LibrarySnapshot(_Record):
    """Full state of a library at one point in time.

    Snapshots are immutable, so one captured under the repository lock can
    be encoded later on the persistence worker.

    Attributes:
        version: Format version of the document.
        albums: All album records.
        collections: All collection records.
    """

    version: int = FORMAT_VERSION
    albums: list[AlbumRecord] = Field(default_factory=list)
    collections: list[CollectionRecord] = Field(default_factory=list)

    @classmethod
    def capture(
        cls,
        albums: Iterable[Album],
        collections: Iterable[AlbumCollection],
    ) -> LibrarySnapshot:
        """Build a snapshot from live domain objects."""
        return cls(
            version=FORMAT_VERSION,
            albums=[AlbumRecord.from_album(a) for a in albums],
            collections=[CollectionRecord.from_collection(c) for c in collections],
        )

    def encode(self) -> bytes:
        """Serialize to pretty-printed UTF-8 JSON."""
        return self.model_dump_json(by_alias=True, indent=2).encode("utf-8")

    @classmethod
    def decode(cls, data: bytes) -> LibrarySnapshot:
        """Parse a library document.

        Args:
            data: Raw file contents.

        Returns:
            The parsed snapshot.

        Raises:
            SnapshotDecodeError: If the content is not a library document at
                all (not JSON, wrong root, ``albums`` not a list). Individual
                malformed records are skipped instead.
        """
        try:
            document = _Document.model_validate_json(data)
        except ValidationError as e:
            raise SnapshotDecodeError(f"Malformed library document: {e}") from e

        if document.version > FORMAT_VERSION:
            logger.warning(
                "Library format version %d is newer than supported version %d; "
                "unknown fields will be ignored",
                document.version,
                FORMAT_VERSION,
            )
        return cls(
            version=document.version,
            albums=_valid_records(AlbumRecord, document.albums, "album"),
            collections=_valid_records(
                CollectionRecord, document.collections, "collection"
            ),
        )


class _Document(_Record):
    """Top-level shape of a library file, records still unvalidated."""

    version: int = FORMAT_VERSION
    albums: list[Any] = Field(default_factory=list)
    collections: list[Any] = Field(default_factory=list)
