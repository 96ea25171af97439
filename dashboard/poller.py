from __future__ import annotations

import logging
from threading import Event, Thread
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Poller:
    """Runs ``task`` immediately and then every ``interval`` seconds.

    A single worker thread executes the task, so runs never overlap; the next
    run is scheduled only after the previous one returns. ``cancel`` stops the
    loop without waiting out the current interval.
    """

    def __init__(
        self,
        task: Callable[[], object],
        interval: float,
        max_runs: Optional[int] = None,
        name: str = "dashboard-poller",
    ) -> None:
        if interval <= 0:
            raise ValueError("Poll interval must be positive.")
        self._task = task
        self.interval = interval
        self.max_runs = max_runs
        self.runs = 0
        self.error: Optional[BaseException] = None
        self._stopped = Event()
        self._thread = Thread(target=self._run, name=name, daemon=True)

    def __enter__(self) -> "Poller":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()
        self.join()

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        self._stopped.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread.ident is not None:
            self._thread.join(timeout)

    def wait(self) -> None:
        """Block until the poller finishes; short joins keep Ctrl-C responsive."""
        while self.running:
            self._thread.join(0.2)

    def _run(self) -> None:
        while not self._stopped.is_set():
            try:
                self._task()
            except Exception as exc:
                logger.exception("Polling task failed; stopping poller")
                self.error = exc
                self._stopped.set()
                return
            self.runs += 1
            if self.max_runs is not None and self.runs >= self.max_runs:
                self._stopped.set()
                return
            if self._stopped.wait(self.interval):
                return
