"""Request status storage and the periodic expiry sweep.

The generation endpoint remembers every request id it has seen so that a
client can poll for the outcome of a long-running generation.  Storage is
hidden behind :class:`StatusStore` so the in-process dictionary used here can
be swapped for a shared cache without touching the endpoint.

Lifecycle of a record
---------------------
1. :meth:`StatusStore.create_pending` when a request id is first seen.
2. Exactly one of :meth:`StatusStore.mark_completed` /
   :meth:`StatusStore.mark_failed` when the provider call resolves.  Later
   transitions are ignored and logged.
3. Removal by :meth:`StatusStore.sweep` once the record is older than the
   retention window, or implicitly on process restart.

The :class:`ExpirySweeper` owns one asyncio task that runs the sweep on a
fixed interval for the lifetime of the application.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timezone

from .errors import GenerationError
from .models import GenerationResult, GenerationStatus, RequestState

logger = logging.getLogger(__name__)


class StatusStore(ABC):
    """Abstract mapping from request id to :class:`GenerationStatus`."""

    @abstractmethod
    def get(self, request_id: str) -> GenerationStatus | None:
        """Return the status for *request_id*, or ``None`` if untracked."""

    @abstractmethod
    def create_pending(self, request_id: str) -> GenerationStatus:
        """Start tracking *request_id* in the pending state."""

    @abstractmethod
    def mark_completed(self, request_id: str, result: GenerationResult) -> GenerationStatus:
        """Move a pending record to completed."""

    @abstractmethod
    def mark_failed(self, request_id: str, error: GenerationError) -> GenerationStatus:
        """Move a pending record to failed."""

    @abstractmethod
    def sweep(self) -> int:
        """Remove expired records and return how many were removed."""

    @abstractmethod
    def __len__(self) -> int: ...

    def __contains__(self, request_id: object) -> bool:
        return isinstance(request_id, str) and self.get(request_id) is not None


class InMemoryStatusStore(StatusStore):
    """Dictionary-backed status store with a fixed retention window.

    Records are not persisted; a restart forgets every request, which is
    acceptable because requests are short-lived.

    Attributes:
        retention: Age in seconds after which a record is swept.
    """

    def __init__(self, retention: float, clock: Callable[[], float] | None = None) -> None:
        """Initialise an empty store.

        Args:
            retention: Seconds a record is kept after creation.
            clock: Monotonic time source, injectable for tests.  Defaults to
                :func:`time.monotonic`.
        """
        self.retention = retention
        self._clock = clock or time.monotonic
        self._records: dict[str, GenerationStatus] = {}

    def get(self, request_id: str) -> GenerationStatus | None:
        return self._records.get(request_id)

    def create_pending(self, request_id: str) -> GenerationStatus:
        record = GenerationStatus(request_id=request_id, created_at=self._clock())
        self._records[request_id] = record
        logger.debug("Tracking request %s (pending).", request_id)
        return record

    def mark_completed(self, request_id: str, result: GenerationResult) -> GenerationStatus:
        record = self._pending_record(request_id)
        if record.is_terminal:
            return record
        record.state = RequestState.COMPLETED
        record.result = result
        record.finished_at = datetime.now(timezone.utc)
        return record

    def mark_failed(self, request_id: str, error: GenerationError) -> GenerationStatus:
        record = self._pending_record(request_id)
        if record.is_terminal:
            return record
        record.state = RequestState.FAILED
        record.error = error.message
        record.error_kind = error.kind
        record.error_details = error.details()
        record.finished_at = datetime.now(timezone.utc)
        return record

    def sweep(self) -> int:
        """Drop every record older than the retention window.

        Records are removed whether or not they were ever queried, and
        regardless of state.

        Returns:
            Number of records removed.
        """
        now = self._clock()
        expired = [
            request_id
            for request_id, record in self._records.items()
            if now - record.created_at > self.retention
        ]
        for request_id in expired:
            del self._records[request_id]

        if expired:
            logger.info("Expired %d request status record(s).", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)

    def _pending_record(self, request_id: str) -> GenerationStatus:
        """Fetch the record to transition, recreating it if it was swept.

        A terminal record is returned unchanged (with a warning) so callers
        cannot overwrite an outcome that was already reported.
        """
        record = self._records.get(request_id)
        if record is None:
            # Swept while the provider call was still running.
            record = self.create_pending(request_id)
        elif record.is_terminal:
            logger.warning(
                "Ignoring transition for request %s: already %s.",
                request_id,
                record.state.value,
            )
        return record


class ExpirySweeper:
    """Runs :meth:`StatusStore.sweep` on a fixed interval.

    The sweeper owns a single asyncio task.  :meth:`start` is idempotent and
    :meth:`stop` cancels the task and waits for it to finish, so no periodic
    work outlives the application.
    """

    def __init__(self, store: StatusStore, interval: float) -> None:
        self._store = store
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="status-sweeper")
        logger.info("Status sweeper started (interval=%ss).", self._interval)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to exit."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Status sweeper stopped.")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                self._store.sweep()
            except Exception:
                logger.exception("Status sweep failed; retrying next interval.")
