"""Custom exceptions for vinyl-tracker.

Repository operations never raise for validation or not-found cases; those
are signalled through return values. Exceptions here cover storage and
recognition failures.
"""

from vinyl_tracker.models.enums import RecognitionFailure


class VinylTrackerError(Exception):
    """Base exception for vinyl-tracker.

    Attributes:
        message: Human-readable description of the failure.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# -----------------------------------------------------------------------------
# Storage
# -----------------------------------------------------------------------------


class StorageError(VinylTrackerError):
    """Base class for library file errors."""


class SnapshotDecodeError(StorageError):
    """The library file exists but could not be parsed.

    Raised by the snapshot file loader. The repository treats it as an
    empty library.
    """


class SnapshotWriteError(StorageError):
    """Writing the library file failed.

    Raised inside the persistence worker, which logs it. Never reaches the
    code that triggered the write.
    """


# -----------------------------------------------------------------------------
# Recognition
# -----------------------------------------------------------------------------


class RecognitionError(VinylTrackerError):
    """Base class for cover text recognition failures.

    Attributes:
        failure: Tag identifying the failure kind.
        message: User-facing description, suitable for display as-is.
    """

    failure: RecognitionFailure = RecognitionFailure.UNDERLYING_ERROR
    default_message: str = "Text recognition failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InvalidImageError(RecognitionError):
    """The captured image could not be decoded."""

    failure = RecognitionFailure.INVALID_IMAGE
    default_message = "The captured image could not be processed."


class NoTextDetectedError(RecognitionError):
    """The detector found no usable text lines."""

    failure = RecognitionFailure.NO_TEXT_DETECTED
    default_message = "No readable text was detected on the album cover."


class RecognitionCancelledError(RecognitionError):
    """The request was cancelled via its CancelToken."""

    failure = RecognitionFailure.CANCELLED
    default_message = "The recognition request was cancelled."


class RecognitionFailedError(RecognitionError):
    """The text detector itself raised.

    The original exception is chained as ``__cause__``.
    """

    failure = RecognitionFailure.UNDERLYING_ERROR
