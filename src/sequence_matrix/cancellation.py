"""Cooperative cancellation for long-running loads."""

import threading

from .errors import LoadCancelled


class CancellationToken:
    """Set from any thread; checked by the load at safe points."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, task: str = "Load") -> None:
        if self._event.is_set():
            raise LoadCancelled(
                f"{task} was cancelled midway. The task might be incomplete."
            )
