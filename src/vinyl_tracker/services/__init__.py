"""Business logic services for vinyl-tracker.

Public API:
    AlbumRepository - Albums, collections, duplicates and persistence
    LibraryBrowser - Search/selection state over a repository
    ScanSession - Recognition-assisted album entry
    TextRecognitionService - Suggestion builder over an injected text detector

Protocols (for dependency injection):
    RecognitionService - Cover recognition abstraction

Internal (not exported):
    SnapshotFile, SnapshotWriter - Library file I/O
"""

from vinyl_tracker.services.library import LibraryBrowser
from vinyl_tracker.services.recognition import (
    RecognitionService,
    TextRecognitionService,
    infer_title_and_artist,
)
from vinyl_tracker.services.repository import AlbumRepository
from vinyl_tracker.services.scanner import ScanSession, ScanState

__all__ = [
    "AlbumRepository",
    "LibraryBrowser",
    "RecognitionService",
    "ScanSession",
    "ScanState",
    "TextRecognitionService",
    "infer_title_and_artist",
]
