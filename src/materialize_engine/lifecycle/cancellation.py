"""Cooperative cancellation checked between statements."""

from __future__ import annotations

import threading


class CancellationToken:
    """Thread-safe flag a caller sets to stop a lifecycle before its next statement."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
