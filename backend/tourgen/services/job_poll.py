"""Job poller: constant-interval status polling until done, timeout or cancel."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from tourgen.errors import Cancelled, GenerationFailed, GenerationTimedOut
from tourgen.schemas.job import JobHandle, JobStatus
from tourgen.services.providers.worldlabs import WorldLabsClient
from tourgen.services.result_resolve import parse_operation

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class JobPoller:
    """Polls GET /operations/{id} every ``interval`` seconds.

    No backoff and no jitter. ``progress`` holds the last reported
    percentage for UI feedback.
    """

    def __init__(
        self,
        client: WorldLabsClient,
        *,
        interval: float = 5.0,
        timeout: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.interval = interval
        self.timeout = timeout
        self.progress = 0
        self.requests_made = 0
        self._clock = clock

    async def fetch_status(self, handle: JobHandle) -> JobStatus | None:
        """One status query. Returns None for a transient, unusable response."""
        self.requests_made += 1
        resp = await self.client.get_operation(handle.operation_id)

        if not resp.ok:
            if resp.status == 429 or resp.status >= 500:
                logger.warning(
                    "Operation %s poll returned %d, will retry next tick",
                    handle.operation_id, resp.status,
                )
                return None
            raise GenerationFailed({"status": resp.status, "body": resp.data}, handle.operation_id)

        if not isinstance(resp.data, dict):
            logger.warning("Operation %s poll returned non-JSON body", handle.operation_id)
            return None
        return parse_operation(resp.data, handle.operation_id)

    async def _wait(self, delay: float, cancel: asyncio.Event | None) -> None:
        if cancel is None:
            await asyncio.sleep(delay)
            return
        try:
            await asyncio.wait_for(cancel.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def poll(
        self,
        handle: JobHandle,
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> JobStatus:
        """Block until the operation is done; return the terminal status.

        Raises GenerationFailed, GenerationTimedOut or Cancelled.
        """
        deadline = self._clock() + self.timeout
        self.progress = 0

        while True:
            if cancel is not None and cancel.is_set():
                raise Cancelled(handle.operation_id)

            status = await self.fetch_status(handle)
            if status is not None:
                if status.done:
                    if not status.succeeded:
                        logger.error(
                            "Operation %s failed: %s", handle.operation_id, status.error
                        )
                        raise GenerationFailed(status.error, handle.operation_id)
                    self._report(100, on_progress)
                    return status

                if status.progress_pct is not None:
                    self._report(status.progress_pct, on_progress)
                logger.debug("Operation %s: %d%%", handle.operation_id, self.progress)

            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            await self._wait(min(self.interval, remaining), cancel)
            if cancel is not None and cancel.is_set():
                raise Cancelled(handle.operation_id)
            if self._clock() >= deadline:
                break

        logger.error("Operation %s timed out after %gs", handle.operation_id, self.timeout)
        raise GenerationTimedOut(handle.operation_id, self.timeout)

    def _report(self, pct: int, on_progress: ProgressCallback | None) -> None:
        self.progress = pct
        if on_progress is not None:
            on_progress(pct)
