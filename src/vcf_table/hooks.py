"""Progress reporting and cooperative cancellation for streaming passes.

Every reader and writer accepts an optional ``progress`` observer and an
optional ``cancel`` token. Both are driven through a :class:`LineMonitor`,
which is created per pass and ticked once per line (or row).
"""

import logging
import threading
from typing import Protocol

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from .errors import CancellationError

logger = logging.getLogger(__name__)

DEFAULT_REPORT_INTERVAL = 1000


class ProgressObserver(Protocol):
    """Receives line counts from a streaming pass."""

    def start(self, task: str, total: int | None = None) -> None: ...

    def advance(self, processed: int) -> None: ...

    def finish(self, processed: int) -> None: ...


class CancellationToken:
    """Thread-safe flag polled by streaming passes.

    ``cancel()`` may be called from another thread or a signal handler; the
    running pass raises :class:`CancellationError` at its next line.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class NullProgress:
    """Observer that discards all updates."""

    def start(self, task: str, total: int | None = None) -> None:
        pass

    def advance(self, processed: int) -> None:
        pass

    def finish(self, processed: int) -> None:
        pass


class LoggingProgress:
    """Report progress through the ``vcf_table`` logger every ``interval`` lines."""

    def __init__(self, interval: int = DEFAULT_REPORT_INTERVAL, level: int = logging.INFO):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self.level = level
        self._task = ""

    def start(self, task: str, total: int | None = None) -> None:
        self._task = task
        if total is not None:
            logger.log(self.level, "%s: %d lines to process", task, total)

    def advance(self, processed: int) -> None:
        if processed % self.interval == 0:
            logger.log(self.level, "%s: processed %d lines", self._task, processed)

    def finish(self, processed: int) -> None:
        logger.log(self.level, "%s: all %d lines processed", self._task, processed)


class RichProgress:
    """Interactive progress bar backed by :mod:`rich`.

    Use as a context manager so the live display is torn down cleanly::

        with RichProgress() as progress:
            stats = scan_file(path, progress=progress)
    """

    def __init__(self, console: Console | None = None, refresh_every: int = DEFAULT_REPORT_INTERVAL):
        self.refresh_every = refresh_every
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console or Console(stderr=True),
        )
        self._task_id = None
        self._label = ""

    def __enter__(self) -> "RichProgress":
        self._progress.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._progress.stop()

    def start(self, task: str, total: int | None = None) -> None:
        self._label = task
        self._task_id = self._progress.add_task(task, total=total)

    def advance(self, processed: int) -> None:
        if self._task_id is not None and processed % self.refresh_every == 0:
            self._progress.update(
                self._task_id, completed=processed, description=f"{self._label}: {processed:,}"
            )

    def finish(self, processed: int) -> None:
        if self._task_id is not None:
            self._progress.update(
                self._task_id, completed=processed, description=f"{self._label}: {processed:,}"
            )


class LineMonitor:
    """Per-pass driver for an observer/token pair."""

    def __init__(
        self,
        operation: str,
        progress: ProgressObserver | None = None,
        cancel: CancellationToken | None = None,
        total: int | None = None,
    ):
        self.operation = operation
        self.progress = progress or NullProgress()
        self.cancel = cancel
        self.processed = 0
        self.progress.start(operation, total)

    def check(self) -> None:
        """Raise :class:`CancellationError` if cancellation was requested."""
        if self.cancel is not None and self.cancel.cancelled:
            logger.info("%s cancelled after %d lines", self.operation, self.processed)
            raise CancellationError(self.processed, self.operation)

    def tick(self) -> None:
        """Record one completed line."""
        self.processed += 1
        self.progress.advance(self.processed)

    def done(self) -> int:
        self.progress.finish(self.processed)
        return self.processed
