"""Cover text recognition.

The text detector itself (an OCR engine) is an external collaborator: any
callable taking a Pillow image and returning :class:`TextObservation` lines.
This module turns those raw lines into a :class:`RecognitionSuggestion`.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from statistics import fmean
from typing import Protocol, TypeAlias

from PIL import Image

from vinyl_tracker.exceptions import (
    InvalidImageError,
    NoTextDetectedError,
    RecognitionCancelledError,
    RecognitionError,
    RecognitionFailedError,
)
from vinyl_tracker.models.cancel import CancelToken
from vinyl_tracker.models.recognition import RecognitionSuggestion, TextObservation
from vinyl_tracker.utils.cover import open_cover
from vinyl_tracker.utils.text import clean

logger = logging.getLogger(__name__)

TextDetector: TypeAlias = Callable[[Image.Image], list[TextObservation]]

# Lines shorter than this (after trimming) are treated as noise
_MIN_LINE_LENGTH = 2

# Words that usually appear in artist credits rather than album titles
_ARTIST_KEYWORDS = re.compile(
    r"\b(feat|featuring|and|with|band|orchestra)\b", re.IGNORECASE
)


class RecognitionService(Protocol):
    """Interface consumed by the scan session.

    Implementations block while recognising and are run in a worker thread.
    """

    def analyse(
        self, image: bytes, cancel_token: CancelToken | None = None
    ) -> RecognitionSuggestion:
        """Extract a title/artist suggestion from cover image bytes.

        Raises:
            RecognitionError: One of the tagged recognition failures.
        """
        ...


def infer_title_and_artist(lines: list[str]) -> tuple[str, str]:
    """Guess which recognized lines are the title and the artist.

    Rules, in order:
        - no lines: ("", "")
        - one line: that line is the title, artist unknown
        - a line containing an artist keyword (feat, featuring, and, with,
          band, orchestra) is the artist; the longest remaining line is the
          title
        - otherwise the longest line is the title and the first line that
          differs from it is the artist

    Args:
        lines: Candidate lines, top to bottom.

    Returns:
        Tuple of (title, artist); either may be empty.
    """
    if not lines:
        return "", ""
    if len(lines) == 1:
        return lines[0], ""

    artist_index = next(
        (i for i, line in enumerate(lines) if _ARTIST_KEYWORDS.search(line)), None
    )
    if artist_index is not None:
        remaining = lines[:artist_index] + lines[artist_index + 1 :]
        return max(remaining, key=len), lines[artist_index]

    title = max(lines, key=len)
    artist = next((line for line in lines if line != title), "")
    return title, artist


class TextRecognitionService:
    """Recognition service built on an injected text detector.

    Example:
        >>> service = TextRecognitionService(detector=my_ocr_adapter)
        >>> suggestion = service.analyse(photo_bytes)
        >>> suggestion.suggested_title, suggestion.suggested_artist
    """

    def __init__(self, detector: TextDetector) -> None:
        self._detector = detector

    def analyse(
        self, image: bytes, cancel_token: CancelToken | None = None
    ) -> RecognitionSuggestion:
        """Run the detector over a cover photo and infer title and artist.

        Args:
            image: Encoded image bytes.
            cancel_token: Checked before and after detection.

        Returns:
            The suggestion.

        Raises:
            InvalidImageError: The bytes are not a decodable image.
            RecognitionCancelledError: The token was cancelled.
            RecognitionFailedError: The detector raised.
            NoTextDetectedError: No usable lines were found.
        """
        decoded = open_cover(image)
        if decoded is None:
            raise InvalidImageError()

        self._check_cancelled(cancel_token)
        try:
            observations = self._detector(decoded)
        except RecognitionError:
            raise
        except Exception as e:
            raise RecognitionFailedError(str(e) or type(e).__name__) from e
        self._check_cancelled(cancel_token)

        ordered = sorted(observations, key=lambda o: o.top)
        usable = [
            (text, o.confidence)
            for o in ordered
            if len(text := clean(o.text)) >= _MIN_LINE_LENGTH
        ]
        if not usable:
            raise NoTextDetectedError()

        lines = [text for text, _ in usable]
        title, artist = infer_title_and_artist(lines)
        suggestion = RecognitionSuggestion(
            suggested_title=title,
            suggested_artist=artist,
            candidate_lines=lines,
            confidence=fmean(conf for _, conf in usable),
        )
        logger.debug(
            "Recognized %d line(s); suggesting '%s' by '%s' (%.2f)",
            len(lines),
            title,
            artist,
            suggestion.confidence,
        )
        return suggestion

    @staticmethod
    def _check_cancelled(token: CancelToken | None) -> None:
        if token is not None and token.is_cancelled:
            raise RecognitionCancelledError()
