"""Result models returned by repository write operations."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from vinyl_tracker.models.album import Album
from vinyl_tracker.models.enums import InsertStatus


class InsertResult(BaseModel):
    """Outcome of :meth:`AlbumRepository.add_album`.

    Attributes:
        status: What happened to the submitted album.
        album: The stored album for INSERTED, the pre-existing album for
            DUPLICATE, and None for REJECTED.

    Example:
        >>> result = repository.add_album(album)
        >>> if result.is_duplicate:
        ...     print(f"Already have {result.album.title}")
    """

    model_config = ConfigDict(frozen=True)

    status: InsertStatus
    album: Album | None = None

    @classmethod
    def inserted(cls, album: Album) -> InsertResult:
        return cls(status=InsertStatus.INSERTED, album=album)

    @classmethod
    def duplicate(cls, existing: Album) -> InsertResult:
        return cls(status=InsertStatus.DUPLICATE, album=existing)

    @classmethod
    def rejected(cls) -> InsertResult:
        return cls(status=InsertStatus.REJECTED)

    @property
    def is_inserted(self) -> bool:
        return self.status == InsertStatus.INSERTED

    @property
    def is_duplicate(self) -> bool:
        return self.status == InsertStatus.DUPLICATE

    @property
    def is_rejected(self) -> bool:
        return self.status == InsertStatus.REJECTED
