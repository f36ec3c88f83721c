"""Scan session: recognition-assisted album entry."""

from __future__ import annotations

import asyncio
import logging
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict

from vinyl_tracker.exceptions import RecognitionCancelledError, RecognitionError
from vinyl_tracker.models.album import Album
from vinyl_tracker.models.cancel import CancelToken
from vinyl_tracker.models.enums import ScanStatus
from vinyl_tracker.models.recognition import RecognitionSuggestion
from vinyl_tracker.services.recognition import RecognitionService
from vinyl_tracker.services.repository import AlbumRepository
from vinyl_tracker.utils.cover import DEFAULT_JPEG_QUALITY, encode_jpeg

logger = logging.getLogger(__name__)


class ScanState(BaseModel):
    """Snapshot of a scan session's progress.

    Attributes:
        status: Current phase.
        suggestion: Recognition result (SUGGESTION only).
        duplicate: Stored album matching the suggestion, if any.
        message: User-facing failure message (FAILURE only).
    """

    model_config = ConfigDict(frozen=True)

    status: ScanStatus = ScanStatus.IDLE
    suggestion: RecognitionSuggestion | None = None
    duplicate: Album | None = None
    message: str | None = None

    @classmethod
    def idle(cls) -> ScanState:
        return cls()

    @classmethod
    def processing(cls) -> ScanState:
        return cls(status=ScanStatus.PROCESSING)

    @classmethod
    def suggested(
        cls, suggestion: RecognitionSuggestion, duplicate: Album | None
    ) -> ScanState:
        return cls(
            status=ScanStatus.SUGGESTION, suggestion=suggestion, duplicate=duplicate
        )

    @classmethod
    def failed(cls, message: str) -> ScanState:
        return cls(status=ScanStatus.FAILURE, message=message)


class ScanSession:
    """One scanning flow: capture a cover, get a suggestion, build a draft.

    At most one recognition request is outstanding per session. Submitting a
    new image cancels the previous request; a cancelled request never
    updates the session state.

    Must be driven from a running event loop. Recognition runs in a worker
    thread via ``asyncio.to_thread`` so the loop stays responsive.
    """

    def __init__(
        self,
        repository: AlbumRepository,
        recognition_service: RecognitionService,
        *,
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    ) -> None:
        self.id: UUID = uuid4()
        self._repository = repository
        self._service = recognition_service
        self._jpeg_quality = jpeg_quality
        self._state = ScanState.idle()
        self._captured_image: bytes | None = None
        self._task: asyncio.Task[None] | None = None
        self._cancel_token: CancelToken | None = None

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def captured_image(self) -> bytes | None:
        return self._captured_image

    def process_image(self, image: bytes) -> asyncio.Task[None]:
        """Start recognising a captured cover, superseding any prior request.

        Args:
            image: Encoded image bytes from the camera or picker.

        Returns:
            The background task; await it (or :meth:`wait`) to observe the
            terminal state.
        """
        self._cancel_current()
        self._captured_image = image
        self._state = ScanState.processing()

        token = CancelToken()
        self._cancel_token = token
        self._task = asyncio.create_task(
            self._recognize(image, token),
            name=f"scan-{str(self.id)[:8]}",
        )
        return self._task

    def reset(self) -> None:
        """Cancel any request, drop the captured image and return to IDLE."""
        self._cancel_current()
        self._task = None
        self._cancel_token = None
        self._captured_image = None
        self._state = ScanState.idle()

    async def wait(self) -> None:
        """Wait for the current request to finish (or be cancelled)."""
        if self._task is not None:
            await asyncio.wait({self._task})

    def duplicate_if_exists(self, title: str, artist: str) -> Album | None:
        return self._repository.find_duplicate_for(title, artist)

    def make_draft(
        self,
        title: str,
        artist: str,
        year: int | None = None,
        genre: str = "",
        notes: str = "",
        label: str = "",
    ) -> Album:
        """Build an unsaved album using the captured image as cover art.

        The captured image is re-encoded as JPEG. An undecodable capture is
        dropped rather than stored.
        """
        cover = None
        if self._captured_image:
            cover = encode_jpeg(self._captured_image, self._jpeg_quality)
        return Album(
            title=title,
            artist=artist,
            year=year,
            genre=genre,
            notes=notes,
            label=label,
            cover_image=cover,
        )

    def _cancel_current(self) -> None:
        if self._cancel_token is not None and self._cancel_token.cancel():
            logger.debug("Cancelled pending recognition request")
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _recognize(self, image: bytes, token: CancelToken) -> None:
        """Run one recognition request and publish its terminal state."""
        try:
            suggestion = await asyncio.to_thread(self._service.analyse, image, token)
        except RecognitionCancelledError:
            return
        except RecognitionError as e:
            if not token.is_cancelled:
                logger.info("Recognition failed (%s): %s", e.failure, e.message)
                self._state = ScanState.failed(e.message)
            return
        except Exception as e:
            if not token.is_cancelled:
                logger.exception("Recognition service raised unexpectedly")
                self._state = ScanState.failed(str(e) or "Text recognition failed.")
            return

        if token.is_cancelled:
            return

        duplicate = self._repository.find_duplicate_for(
            suggestion.suggested_title, suggestion.suggested_artist
        )
        self._state = ScanState.suggested(suggestion, duplicate)
