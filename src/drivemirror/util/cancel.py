from __future__ import annotations

import threading


class CancellationToken:
    """
    Cooperative "stop after current item" flag shared by the components of one run.

    Components check `cancelled` before starting a new per-item operation; an
    operation already in flight (including its cleanup) always runs to the end.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
