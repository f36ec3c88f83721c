"""Library browser: presentation state over the album repository."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from uuid import UUID

from vinyl_tracker.models.album import Album
from vinyl_tracker.models.collection import AlbumCollection
from vinyl_tracker.models.results import InsertResult
from vinyl_tracker.services.recognition import RecognitionService
from vinyl_tracker.services.repository import AlbumRepository
from vinyl_tracker.services.scanner import ScanSession
from vinyl_tracker.utils.cover import DEFAULT_JPEG_QUALITY

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Album title and artist are required."


class LibraryBrowser:
    """Search text, collection selection and derived album lists.

    Every write goes through the repository and is followed by a refresh,
    so ``albums``, ``collections`` and ``filtered_albums`` always reflect
    the repository after the last call.

    Attributes:
        duplicate_match: Existing album found by the last add, if any.
        last_error: User-facing message from the last rejected add.
    """

    def __init__(self, repository: AlbumRepository) -> None:
        self._repository = repository
        self._search_query = ""
        self._selected_collection_id: UUID | None = None
        self._albums: list[Album] = []
        self._collections: list[AlbumCollection] = []
        self._filtered_albums: list[Album] = []
        self.duplicate_match: Album | None = None
        self.last_error: str | None = None
        self.refresh()

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    @property
    def albums(self) -> list[Album]:
        return list(self._albums)

    @property
    def collections(self) -> list[AlbumCollection]:
        return list(self._collections)

    @property
    def filtered_albums(self) -> list[Album]:
        return list(self._filtered_albums)

    @property
    def search_query(self) -> str:
        return self._search_query

    @search_query.setter
    def search_query(self, value: str) -> None:
        self._search_query = value
        self._apply_filters()

    @property
    def selected_collection_id(self) -> UUID | None:
        return self._selected_collection_id

    @selected_collection_id.setter
    def selected_collection_id(self, value: UUID | None) -> None:
        self._selected_collection_id = value
        self._apply_filters()

    def refresh(self) -> None:
        """Re-read albums and collections from the repository."""
        self._albums = self._repository.list_albums()
        self._collections = self._repository.list_collections()
        self._apply_filters()

    def albums_in(self, collection: AlbumCollection | None) -> list[Album]:
        if collection is None:
            return self._repository.list_albums()
        return self._repository.albums_in(collection.id)

    def collections_containing(self, album: Album) -> list[AlbumCollection]:
        return self._repository.collections_containing(album.id)

    # -------------------------------------------------------------------------
    # Albums
    # -------------------------------------------------------------------------

    def add_album(
        self,
        title: str,
        artist: str,
        year: int | None = None,
        genre: str = "",
        notes: str = "",
        label: str = "",
        cover_image: bytes | None = None,
        collection_ids: Iterable[UUID] = (),
        *,
        allow_duplicate: bool = False,
    ) -> InsertResult:
        """Build an album from form fields and add it to the library.

        Sets :attr:`duplicate_match` when the album already exists and
        :attr:`last_error` when title or artist is missing.
        """
        self.last_error = None
        album = Album(
            title=title,
            artist=artist,
            year=year,
            genre=genre,
            notes=notes,
            label=label,
            cover_image=cover_image,
        )
        result = self._repository.add_album(
            album, collection_ids, allow_duplicate=allow_duplicate
        )

        if result.is_inserted:
            self.duplicate_match = None
        elif result.is_duplicate:
            self.duplicate_match = result.album
        else:
            self.last_error = MISSING_FIELDS_MESSAGE

        self.refresh()
        return result

    def link_existing_album(
        self, album_id: UUID, collection_ids: Iterable[UUID]
    ) -> None:
        self._repository.link_album(album_id, collection_ids)
        self.refresh()

    def remove_album(self, album: Album) -> None:
        self._repository.remove_album(album.id)
        self.refresh()

    def remove_album_from(self, album: Album, collection: AlbumCollection) -> None:
        self._repository.unlink_album(album.id, collection.id)
        self.refresh()

    def clear_duplicate_notice(self) -> None:
        self.duplicate_match = None

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    def create_collection(self, name: str, detail: str = "") -> AlbumCollection:
        """Create a collection and select it if it was stored."""
        collection = self._repository.create_collection(name, detail)
        if collection.is_valid:
            self.refresh()
            self.selected_collection_id = collection.id
        return collection

    def update_collection(self, collection: AlbumCollection) -> None:
        self._repository.update_collection(collection)
        self.refresh()

    def delete_collection(self, collection: AlbumCollection) -> None:
        """Delete a collection, clearing the selection if it was selected."""
        self._repository.delete_collection(collection.id)
        if self._selected_collection_id == collection.id:
            self._selected_collection_id = None
        self.refresh()

    # -------------------------------------------------------------------------
    # Scanning
    # -------------------------------------------------------------------------

    def make_scan_session(
        self,
        recognition_service: RecognitionService,
        *,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    ) -> ScanSession:
        return ScanSession(
            self._repository, recognition_service, jpeg_quality=jpeg_quality
        )

    def _apply_filters(self) -> None:
        base = self._repository.albums_in(self._selected_collection_id)
        if not self._search_query:
            self._filtered_albums = base
            return
        self._filtered_albums = [a for a in base if a.matches(self._search_query)]
