"""Data models for vinyl-tracker.

Public API:
    Album - One vinyl record (immutable value)
    AlbumCollection - Named group of album ids
    InsertResult - Outcome of adding an album
    RecognitionSuggestion - Title/artist guess from a cover photo

Internal (not exported):
    snapshot.py - On-disk library document (import it directly)
"""

from vinyl_tracker.models.album import Album, DuplicateKey
from vinyl_tracker.models.cancel import CancelToken
from vinyl_tracker.models.collection import AlbumCollection
from vinyl_tracker.models.enums import InsertStatus, RecognitionFailure, ScanStatus
from vinyl_tracker.models.recognition import RecognitionSuggestion, TextObservation
from vinyl_tracker.models.results import InsertResult

__all__ = [
    "Album",
    "AlbumCollection",
    "CancelToken",
    "DuplicateKey",
    "InsertResult",
    "InsertStatus",
    "RecognitionFailure",
    "RecognitionSuggestion",
    "ScanStatus",
    "TextObservation",
]
