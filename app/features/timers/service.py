"""
Timer Registry

Owns the live set of countdown timers, drives their once-per-tick
countdown on the asyncio event loop, publishes lifecycle events through the
BroadcastHub and mirrors state into an optional Duration Store.
"""

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional, Set, Tuple

from app.features.timers.domain import Timer, TimerEvent
from app.features.timers.hub import BroadcastHub
from app.features.timers.repository import DurationStore

logger = logging.getLogger(__name__)


def normalize_duration(value: Any) -> int:
    """
    Validate a requested duration and convert it to whole seconds.

    Fractional durations are rounded up so a timer always ticks at least once.

    Raises:
        ValueError: If the value is not a positive, finite number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("seconds must be a number")
    if not math.isfinite(value) or value <= 0:
        raise ValueError("seconds must be positive")
    return int(math.ceil(value))


class TimerRegistry:
    """Single source of truth for which timers exist and how much time is left"""

    def __init__(
        self,
        hub: BroadcastHub,
        store: Optional[DurationStore] = None,
        tick_interval: float = 1.0,
        store_timeout: float = 3.0,
    ):
        self.hub = hub
        self.store = store
        self.tick_interval = tick_interval
        self.store_timeout = store_timeout

        self._timers: Dict[int, Timer] = {}
        self._tasks: Dict[int, asyncio.Task] = {}
        self._counter = 0

        # Latest desired store state per id; None means delete
        self._pending_writes: Dict[int, Optional[int]] = {}
        self._writer_task: Optional[asyncio.Task] = None
        # Store calls that outlived store_timeout and may still land
        self._late_writes: Set[asyncio.Future] = set()
        self._closed = False

    @property
    def persistence_enabled(self) -> bool:
        return self.store is not None

    def start(self, duration_seconds: Any) -> Timer:
        """
        Start a new countdown and return it.

        Publishes `started` before the first tick and records the initial
        state in the Duration Store if one is configured.

        Raises:
            ValueError: If the duration is not a positive, finite number
        """
        seconds = normalize_duration(duration_seconds)

        self._counter += 1
        timer = Timer(id=self._counter, seconds_left=seconds, original_seconds=seconds)
        self._install(timer)

        self.hub.publish(TimerEvent.started(timer))
        self._schedule_write(timer.id, timer.seconds_left)

        logger.info(f"Timer {timer.id} started: {seconds}s")
        return timer.model_copy()

    def stop(self, timer_id: int) -> bool:
        """
        Cancel a live countdown.

        Stopping an unknown or already finished timer is a no-op.
        Returns True only when a live timer was stopped.
        """
        timer = self._timers.pop(timer_id, None)
        if timer is None:
            logger.debug(f"Stop ignored: timer {timer_id} is not live")
            return False

        task = self._tasks.pop(timer_id, None)
        if task is not None:
            task.cancel()

        self._schedule_write(timer_id, None)
        self.hub.publish(TimerEvent.stopped(timer_id))

        logger.info(f"Timer {timer_id} stopped with {timer.seconds_left}s left")
        return True

    def list(self) -> List[Timer]:
        """Snapshot of every live timer, ordered by id"""
        return [self._timers[timer_id].model_copy() for timer_id in sorted(self._timers)]

    def get(self, timer_id: int) -> Optional[Timer]:
        timer = self._timers.get(timer_id)
        return timer.model_copy() if timer else None

    async def restore(self) -> int:
        """
        Resume timers recorded in the Duration Store.

        Timers resume from their last persisted value; no `started` event is
        published. Malformed or expired records are deleted. Never raises.

        Returns:
            Number of timers resumed
        """
        if self.store is None:
            return 0

        try:
            rows = await asyncio.wait_for(self.store.list_all(), self.store_timeout)
        except Exception as e:
            logger.error(f"Timer restore failed, starting with no timers: {e}")
            return 0

        restored = 0
        for row in rows:
            timer_id, seconds_left = self._parse_record(row)

            if timer_id is None:
                logger.warning(f"Skipping unreadable timer record: {row!r}")
                continue

            if seconds_left is None or seconds_left <= 0:
                logger.warning(f"Discarding orphaned timer record {timer_id}: {row!r}")
                self._schedule_write(timer_id, None)
                continue

            self._counter = max(self._counter, timer_id)
            self._install(Timer(id=timer_id, seconds_left=seconds_left))
            restored += 1

        logger.info(f"Restored {restored} timer(s) from duration store")
        return restored

    async def flush(self) -> None:
        """Wait until every pending store write has been attempted"""
        while self._writer_task is not None and not self._writer_task.done():
            await asyncio.shield(self._writer_task)

    async def shutdown(self) -> None:
        """
        Cancel every countdown and close the Duration Store.

        Persisted records are kept so the next process can restore them.
        """
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        self._tasks.clear()
        await asyncio.gather(*tasks, return_exceptions=True)

        await self.flush()
        if self._late_writes:
            # Give overdue writes one more timeout to land so stale puts get compensated
            await asyncio.wait(set(self._late_writes), timeout=self.store_timeout)
            await self.flush()

        self._closed = True
        self._timers.clear()
        for operation in list(self._late_writes):
            operation.cancel()

        if self.store is not None:
            try:
                await asyncio.wait_for(self.store.close(), self.store_timeout)
            except Exception as e:
                logger.warning(f"Error closing duration store: {e}")

        logger.info(f"Timer registry shut down ({len(tasks)} countdown(s) cancelled)")

    def _install(self, timer: Timer) -> None:
        existing = self._tasks.pop(timer.id, None)
        if existing is not None:
            existing.cancel()

        self._timers[timer.id] = timer
        self._tasks[timer.id] = asyncio.create_task(
            self._countdown(timer.id), name=f"timer-{timer.id}"
        )

    async def _countdown(self, timer_id: int) -> None:
        loop = asyncio.get_running_loop()
        me = asyncio.current_task()
        deadline = loop.time()

        while True:
            deadline += self.tick_interval
            await asyncio.sleep(max(0.0, deadline - loop.time()))

            # A stop() or a replacement countdown may have won the race
            if self._tasks.get(timer_id) is not me:
                return

            if self._tick(self._timers[timer_id]):
                return

    def _tick(self, timer: Timer) -> bool:
        """Apply one tick. Returns True when the timer reached its terminal state."""
        timer.seconds_left = max(timer.seconds_left - 1, 0)
        self.hub.publish(TimerEvent.update(timer))

        if timer.seconds_left > 0:
            self._schedule_write(timer.id, timer.seconds_left)
            return False

        self._timers.pop(timer.id, None)
        self._tasks.pop(timer.id, None)
        self.hub.publish(TimerEvent.done(timer.id))
        self._schedule_write(timer.id, None)

        logger.info(f"Timer {timer.id} done")
        return True

    @staticmethod
    def _parse_record(row: Any) -> Tuple[Optional[int], Optional[int]]:
        if not isinstance(row, dict):
            return None, None

        try:
            timer_id = int(row["id"])
        except (KeyError, TypeError, ValueError):
            return None, None

        raw_seconds = row.get("seconds_left", row.get("secondsLeft"))
        try:
            seconds_left = int(raw_seconds)
        except (TypeError, ValueError):
            return timer_id, None
        return timer_id, seconds_left

    def _schedule_write(self, timer_id: int, seconds_left: Optional[int]) -> None:
        if self.store is None or self._closed:
            return

        self._pending_writes[timer_id] = seconds_left
        if self._writer_task is None or self._writer_task.done():
            self._writer_task = asyncio.create_task(
                self._drain_writes(), name="timer-store-writer"
            )

    async def _drain_writes(self) -> None:
        while self._pending_writes:
            batch, self._pending_writes = self._pending_writes, {}
            for timer_id, seconds_left in batch.items():
                await self._apply_write(timer_id, seconds_left)

    async def _apply_write(self, timer_id: int, seconds_left: Optional[int]) -> None:
        action = "delete" if seconds_left is None else "write"
        if seconds_left is None:
            operation = asyncio.ensure_future(self.store.delete(timer_id))
        else:
            operation = asyncio.ensure_future(self.store.put(timer_id, seconds_left))

        try:
            # Timing out must not cancel the call: a worker thread would still finish it
            await asyncio.wait_for(asyncio.shield(operation), self.store_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Duration store {action} timed out for timer {timer_id}")
            self._late_writes.add(operation)
            operation.add_done_callback(
                lambda op: self._settle_late_write(timer_id, op, is_put=seconds_left is not None)
            )
        except Exception as e:
            logger.warning(f"Duration store {action} failed for timer {timer_id}: {e}")

    def _settle_late_write(self, timer_id: int, operation: asyncio.Future, is_put: bool) -> None:
        """
        Called when a store call that timed out finally finishes.

        A put landing after its timer was stopped or finished would bring the
        record back, so the delete is issued again.
        """
        self._late_writes.discard(operation)
        if operation.cancelled():
            return

        error = operation.exception()
        if error is not None:
            logger.warning(f"Late duration store call failed for timer {timer_id}: {error}")
            return

        if is_put and timer_id not in self._timers:
            logger.info(f"Late write landed for removed timer {timer_id}; deleting record again")
            self._schedule_write(timer_id, None)
