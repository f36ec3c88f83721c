"""vinyl-tracker - Catalogue a personal vinyl collection.

Albums are stored in a single local JSON document, grouped into
user-defined collections and checked for duplicates on entry. An optional
recognition step suggests title and artist from a cover photo.

Designed for use as a library behind a UI, with a CLI for debugging and
development.

Examples:
    Add an album and file it in a collection:
    ```python
    from vinyl_tracker import Album, create_repository

    with create_repository() as repository:
        jazz = repository.create_collection("Jazz")
        result = repository.add_album(
            Album(title="Blue Train", artist="John Coltrane"), [jazz.id]
        )
        print(result.status)
    ```
"""

from pathlib import Path

from vinyl_tracker.exceptions import (
    InvalidImageError,
    NoTextDetectedError,
    RecognitionCancelledError,
    RecognitionError,
    RecognitionFailedError,
    SnapshotDecodeError,
    SnapshotWriteError,
    StorageError,
    VinylTrackerError,
)
from vinyl_tracker.models import (
    Album,
    AlbumCollection,
    CancelToken,
    DuplicateKey,
    InsertResult,
    InsertStatus,
    RecognitionFailure,
    RecognitionSuggestion,
    ScanStatus,
    TextObservation,
)
from vinyl_tracker.services import (
    AlbumRepository,
    LibraryBrowser,
    RecognitionService,
    ScanSession,
    ScanState,
    TextRecognitionService,
    infer_title_and_artist,
)
from vinyl_tracker.settings import Settings, get_settings


def create_repository(path: Path | None = None) -> AlbumRepository:
    """Create a repository for the configured (or given) library file.

    Args:
        path: Library file location. Defaults to ``Settings.library_path``
            (``VINYL_TRACKER_DATA_DIR`` / ``VINYL_TRACKER_LIBRARY_FILENAME``).

    Returns:
        A loaded AlbumRepository. Close it (or use it as a context manager)
        to flush pending writes.
    """
    return AlbumRepository(path or get_settings().library_path)


__all__ = [
    "Album",
    "AlbumCollection",
    "AlbumRepository",
    "CancelToken",
    "DuplicateKey",
    "InsertResult",
    "InsertStatus",
    "InvalidImageError",
    "LibraryBrowser",
    "NoTextDetectedError",
    "RecognitionCancelledError",
    "RecognitionError",
    "RecognitionFailedError",
    "RecognitionFailure",
    "RecognitionService",
    "RecognitionSuggestion",
    "ScanSession",
    "ScanState",
    "ScanStatus",
    "Settings",
    "SnapshotDecodeError",
    "SnapshotWriteError",
    "StorageError",
    "TextObservation",
    "TextRecognitionService",
    "VinylTrackerError",
    "create_repository",
    "get_settings",
    "infer_title_and_artist",
]
