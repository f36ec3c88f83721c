"""Album repository: the single owner of albums, collections and membership."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from types import TracebackType
from uuid import UUID, uuid4

from vinyl_tracker.exceptions import StorageError
from vinyl_tracker.models.album import Album
from vinyl_tracker.models.collection import AlbumCollection
from vinyl_tracker.models.results import InsertResult
from vinyl_tracker.models.snapshot import LibrarySnapshot
from vinyl_tracker.services.persistence import SnapshotFile, SnapshotWriter
from vinyl_tracker.types import Clock, IdGenerator, utc_now
from vinyl_tracker.utils.text import sort_key

logger = logging.getLogger(__name__)


def _album_order(album: Album) -> tuple[str, str]:
    return sort_key(album.artist), sort_key(album.title)


def _collection_order(collection: AlbumCollection) -> str:
    return sort_key(collection.name)


class AlbumRepository:
    """Stores albums and collections and keeps their relationship consistent.

    Thread-Safety:
        All public methods hold a single re-entrant lock, so every operation
        is atomic relative to the others. Reads return copies; mutating a
        returned collection has no effect until passed to
        :meth:`update_collection`.

    Responsibilities:
        - Duplicate detection on insert (folded title + artist)
        - Many-to-many album/collection membership, including cascade on
          album removal
        - Queuing a full snapshot write after every mutation

    Non-Responsibilities:
        - Disk I/O timing (handled by SnapshotWriter on its own thread)
        - Presentation state such as search text or selection

    Failure signalling:
        Invalid input and unknown ids never raise. Inserts report REJECTED,
        invalid collections come back unstored, and operations on unknown ids
        return False without touching state.
    """

    def __init__(
        self,
        path: Path,
        *,
        clock: Clock = utc_now,
        id_generator: IdGenerator = uuid4,
    ) -> None:
        """Initialize the repository and load any existing library file.

        Args:
            path: Location of the library JSON document.
            clock: Function returning current datetime (enables testing).
            id_generator: Function generating ids for new collections.
        """
        self._clock = clock
        self._id_generator = id_generator
        self._file = SnapshotFile(path)
        self._writer = SnapshotWriter(self._file)
        self._albums: dict[UUID, Album] = {}
        self._collections: list[AlbumCollection] = []
        self._lock = threading.RLock()
        self._load()

    @property
    def path(self) -> Path:
        return self._file.path

    # -------------------------------------------------------------------------
    # Public API: Album reads
    # -------------------------------------------------------------------------

    @property
    def album_count(self) -> int:
        with self._locked():
            return len(self._albums)

    def list_albums(self) -> list[Album]:
        """All albums ordered by artist, then title (case-insensitive)."""
        with self._locked():
            return sorted(self._albums.values(), key=_album_order)

    def get_album(self, album_id: UUID) -> Album | None:
        with self._locked():
            return self._albums.get(album_id)

    def find_duplicate(self, album: Album) -> Album | None:
        """Find a stored album representing the same record.

        Args:
            album: Probe album. Its id is ignored; only the duplicate key
                (folded title and artist) is compared.

        Returns:
            The first stored album with an equal duplicate key, or None.
        """
        with self._locked():
            return self._find_duplicate(album)

    def find_duplicate_for(self, title: str, artist: str) -> Album | None:
        """Find a stored album matching a title and artist."""
        return self.find_duplicate(Album(title=title, artist=artist))

    def search(self, query: str) -> list[Album]:
        """Albums matching ``query``, in :meth:`list_albums` order."""
        return [album for album in self.list_albums() if album.matches(query)]

    def albums_in(self, collection_id: UUID | None) -> list[Album]:
        """Albums belonging to a collection.

        Args:
            collection_id: Collection to list, or None for the whole library.

        Returns:
            For None, every album in artist/title order. For a known
            collection, its members ordered by title. For an unknown id, an
            empty list.
        """
        with self._locked():
            if collection_id is None:
                return self.list_albums()
            if not (collection := self._find_collection(collection_id)):
                return []
            members = [
                self._albums[i] for i in collection.album_ids if i in self._albums
            ]
            return sorted(members, key=lambda a: sort_key(a.title))

    # -------------------------------------------------------------------------
    # Public API: Album writes
    # -------------------------------------------------------------------------

    def add_album(
        self,
        album: Album,
        collection_ids: Iterable[UUID] = (),
        *,
        allow_duplicate: bool = False,
    ) -> InsertResult:
        """Insert an album, suppressing duplicates by default.

        A duplicate submission still links the existing album to the
        requested collections, so the caller's organisational intent is
        honoured even when nothing new is stored.

        Args:
            album: Album to insert.
            collection_ids: Collections to add the album to. Unknown ids are
                ignored.
            allow_duplicate: Store the album even if an equal one exists.

        Returns:
            REJECTED if the album is invalid (nothing changes), DUPLICATE
            carrying the existing album, or INSERTED carrying the stored one.
        """
        targets = set(collection_ids)
        with self._locked():
            if not album.is_valid:
                logger.debug(
                    "Rejected invalid album: %r / %r", album.title, album.artist
                )
                return InsertResult.rejected()

            if not allow_duplicate and (existing := self._find_duplicate(album)):
                self._link(existing.id, targets)
                self._persist()
                logger.info(
                    "Duplicate of '%s' by %s; linked existing album",
                    existing.title,
                    existing.artist,
                )
                return InsertResult.duplicate(existing)

            now = self._clock()
            update: dict[str, object] = {"created_at": now, "updated_at": now}
            if album.id in self._albums:
                # Same value submitted twice with allow_duplicate; give the copy
                # its own identity.
                update["id"] = self._id_generator()
            stored = album.model_copy(update=update)
            self._albums[stored.id] = stored
            self._link(stored.id, targets)
            self._persist()
            logger.info("Added album '%s' by %s", stored.title, stored.artist)
            return InsertResult.inserted(stored)

    def update_album(self, album: Album) -> bool:
        """Replace a stored album, refreshing ``updated_at``.

        Returns:
            True if replaced; False if the id is unknown or the album is
            invalid (nothing changes).
        """
        with self._locked():
            if album.id not in self._albums:
                return False
            if not album.is_valid:
                logger.debug("Ignored invalid update for album %s", album.id)
                return False
            self._albums[album.id] = album.model_copy(
                update={"updated_at": self._clock()}
            )
            self._persist()
            return True

    def remove_album(self, album_id: UUID) -> bool:
        """Delete an album and drop it from every collection.

        Persists unconditionally once the album existed, whether or not any
        collection referenced it.

        Returns:
            True if removed, False if the id is unknown.
        """
        with self._locked():
            if self._albums.pop(album_id, None) is None:
                return False
            now = self._clock()
            for collection in self._collections:
                collection.remove_album(album_id, now)
            self._persist()
            logger.info("Removed album %s", album_id)
            return True

    # -------------------------------------------------------------------------
    # Public API: Collections
    # -------------------------------------------------------------------------

    @property
    def collection_count(self) -> int:
        with self._locked():
            return len(self._collections)

    def list_collections(self) -> list[AlbumCollection]:
        """All collections ordered by name (case-insensitive)."""
        with self._locked():
            return [c.model_copy(deep=True) for c in self._collections]

    def get_collection(self, collection_id: UUID) -> AlbumCollection | None:
        with self._locked():
            if collection := self._find_collection(collection_id):
                return collection.model_copy(deep=True)
            return None

    def collections_containing(self, album_id: UUID) -> list[AlbumCollection]:
        """Collections whose members include ``album_id``, ordered by name."""
        with self._locked():
            return [
                c.model_copy(deep=True)
                for c in self._collections
                if album_id in c.album_ids
            ]

    def create_collection(self, name: str, detail: str = "") -> AlbumCollection:
        """Create and store a collection.

        Args:
            name: Collection name (trimmed).
            detail: Optional description (trimmed).

        Returns:
            The stored collection. If the trimmed name is empty the returned
            collection is NOT stored; check ``is_valid``.
        """
        now = self._clock()
        collection = AlbumCollection(
            id=self._id_generator(),
            name=name,
            detail=detail,
            created_at=now,
            updated_at=now,
        )
        if not collection.is_valid:
            return collection

        with self._locked():
            self._collections.append(collection)
            self._sort_collections()
            self._persist()
            logger.info("Created collection '%s'", collection.name)
            return collection.model_copy(deep=True)

    def update_collection(self, collection: AlbumCollection) -> bool:
        """Replace a stored collection, refreshing ``updated_at``.

        Returns:
            True if replaced; False if the id is unknown or the name is empty.
        """
        with self._locked():
            index = self._index_of(collection.id)
            if index is None or not collection.is_valid:
                return False
            updated = collection.model_copy(deep=True)
            updated.updated_at = self._clock()
            self._collections[index] = updated
            self._sort_collections()
            self._persist()
            return True

    def delete_collection(self, collection_id: UUID) -> bool:
        """Delete a collection. Its member albums are untouched."""
        with self._locked():
            index = self._index_of(collection_id)
            if index is None:
                return False
            removed = self._collections.pop(index)
            self._persist()
            logger.info("Deleted collection '%s'", removed.name)
            return True

    def link_album(self, album_id: UUID, collection_ids: Iterable[UUID]) -> bool:
        """Add an existing album to collections.

        Unknown collection ids are ignored.

        Returns:
            False (no-op) if the album is unknown or no collection ids were
            given; True otherwise.
        """
        targets = set(collection_ids)
        with self._locked():
            if album_id not in self._albums or not targets:
                return False
            self._link(album_id, targets)
            self._persist()
            return True

    def unlink_album(self, album_id: UUID, collection_id: UUID) -> bool:
        """Remove an album from one collection.

        Returns:
            False (no-op) if the collection is unknown; True otherwise.
        """
        with self._locked():
            if not (collection := self._find_collection(collection_id)):
                return False
            collection.remove_album(album_id, self._clock())
            self._persist()
            return True

    # -------------------------------------------------------------------------
    # Public API: Lifecycle
    # -------------------------------------------------------------------------

    def flush(self) -> None:
        """Block until every queued snapshot has been written."""
        self._writer.flush()

    def close(self) -> None:
        """Flush pending writes and stop the persistence worker."""
        self._writer.close()

    def __enter__(self) -> AlbumRepository:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Private: Lock management
    # -------------------------------------------------------------------------

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Context manager for thread-safe operations."""
        with self._lock:
            yield

    # -------------------------------------------------------------------------
    # Private: State helpers (require lock held)
    # -------------------------------------------------------------------------

    def _find_duplicate(self, album: Album) -> Album | None:
        key = album.duplicate_key
        return next((a for a in self._albums.values() if a.duplicate_key == key), None)

    def _find_collection(self, collection_id: UUID) -> AlbumCollection | None:
        return next((c for c in self._collections if c.id == collection_id), None)

    def _index_of(self, collection_id: UUID) -> int | None:
        return next(
            (i for i, c in enumerate(self._collections) if c.id == collection_id),
            None,
        )

    def _link(self, album_id: UUID, collection_ids: set[UUID]) -> None:
        if not collection_ids:
            return
        now = self._clock()
        for collection in self._collections:
            if collection.id in collection_ids:
                collection.add_album(album_id, now)

    def _sort_collections(self) -> None:
        self._collections.sort(key=_collection_order)

    def _persist(self) -> None:
        """Queue a full snapshot of the current state.

        Captured while the lock is held so queued snapshots follow mutation
        order exactly.
        """
        snapshot = LibrarySnapshot.capture(self._albums.values(), self._collections)
        self._writer.submit(snapshot)

    # -------------------------------------------------------------------------
    # Private: Loading
    # -------------------------------------------------------------------------

    def _load(self) -> None:
        """Populate state from the library file.

        A missing file means an empty library. An unreadable or malformed
        file is logged and also treated as empty. Collection members that
        reference unknown albums are dropped.
        """
        try:
            snapshot = self._file.load()
        except StorageError as e:
            logger.warning(
                "Ignoring unreadable library at %s: %s", self.path, e.message
            )
            return

        if snapshot is None:
            logger.debug("No library file at %s; starting empty", self.path)
            return

        albums: dict[UUID, Album] = {}
        for record in snapshot.albums:
            album = record.to_album()
            if not album.is_valid:
                logger.warning("Skipping invalid album record %s", album.id)
                continue
            albums[album.id] = album

        collections: list[AlbumCollection] = []
        dangling = 0
        for record in snapshot.collections:
            collection = record.to_collection()
            if not collection.is_valid:
                logger.warning("Skipping unnamed collection record %s", collection.id)
                continue
            known = collection.album_ids & albums.keys()
            dangling += len(collection.album_ids) - len(known)
            collection.album_ids = known
            collections.append(collection)

        if dangling:
            logger.info("Dropped %d dangling collection member(s) on load", dangling)

        with self._locked():
            self._albums = albums
            self._collections = sorted(collections, key=_collection_order)

        logger.debug(
            "Loaded %d album(s) and %d collection(s) from %s",
            len(albums),
            len(collections),
            self.path,
        )
