"""Cancellation token for recognition requests."""

import threading


class CancelToken:
    """Marks one recognition request as superseded.

    A scan session creates a token per captured image and hands it to the
    recognition service, which checks it around the blocking detector call.
    When a newer image arrives (or the session resets) the session cancels
    the old token; a result computed under a cancelled token is discarded.

    Tokens are single-use. Cancelling is thread-safe and sticky.

    Example:
        >>> token = CancelToken()
        >>> token.cancel()
        True
        >>> token.cancel()
        False
        >>> token.is_cancelled
        True
    """

    __slots__ = ("_event", "_lock")

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()

    def cancel(self) -> bool:
        """Abandon the request.

        Returns:
            True if this call cancelled the token, False if it was already
            cancelled.
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            return True

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()
