from __future__ import annotations

import threading


class CancellationToken:
    # Set from another thread or a signal handler; the engine checks it between steps.
    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = "Run cancelled"

    def cancel(self, reason: str | None = None) -> None:
        if reason:
            self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason
