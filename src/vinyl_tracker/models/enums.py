"""Enumerations for vinyl-tracker domain models."""

from enum import StrEnum


class InsertStatus(StrEnum):
    """Outcome of adding an album to the repository."""

    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"


class RecognitionFailure(StrEnum):
    """Why a cover recognition request produced no suggestion."""

    INVALID_IMAGE = "invalid_image"
    NO_TEXT_DETECTED = "no_text_detected"
    CANCELLED = "cancelled"
    UNDERLYING_ERROR = "underlying_error"


class ScanStatus(StrEnum):
    """State of a scan session.

    - IDLE: nothing captured yet (or reset)
    - PROCESSING: a recognition request is in flight
    - SUGGESTION: recognition produced a title/artist guess
    - FAILURE: recognition failed; a user-facing message is available
    """

    IDLE = "idle"
    PROCESSING = "processing"
    SUGGESTION = "suggestion"
    FAILURE = "failure"

    @property
    def is_busy(self) -> bool:
        """Whether a request is currently outstanding."""
        return self == ScanStatus.PROCESSING
