"""
Inspection queue: pulls specialization data for members whose role inputs are stale.

Each member moves unknown → pending → resolved (and back to pending when its
specialization is invalidated). Requests go out immediately on enqueue; a repeating
timer re-issues them for everything still pending, pruning members that are no longer
reachable. The timer only runs while something is pending and the queue is not
suspended (combat lockdown).
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from role_layout.core.config import settings
from role_layout.core.logging import get_logger
from role_layout.models import InspectState

logger = get_logger(__name__)


# ---------- Timer handle ----------


class RepeatingTimer(Protocol):
    """Cancellable periodic work owned by the queue."""

    @property
    def running(self) -> bool: ...

    def start(self, interval: float, callback: Callable[[], None]) -> None: ...

    def cancel(self) -> None: ...


class AsyncioRepeatingTimer:
    """
    Repeating timer on an asyncio loop (loop.call_later chain).

    The loop is the one passed in, else the loop running when start() is called. With
    neither, start() leaves the timer idle; the owner tries again on its next transition.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._active_loop: asyncio.AbstractEventLoop | None = None
        self._handle: asyncio.TimerHandle | None = None
        self._interval = 0.0
        self._callback: Callable[[], None] | None = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self, interval: float, callback: Callable[[], None]) -> None:
        if self._handle is not None:
            return
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("no event loop; retry timer not started", extra={"event": "timer_idle"})
                return
        self._active_loop = loop
        self._interval = interval
        self._callback = callback
        self._handle = loop.call_later(interval, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._callback = None

    def _fire(self) -> None:
        handle = self._handle
        callback = self._callback
        if handle is None or callback is None:
            return
        try:
            callback()
        finally:
            # The callback may have cancelled (or restarted) the timer.
            if self._handle is handle and self._active_loop is not None:
                self._handle = self._active_loop.call_later(self._interval, self._fire)


# ---------- Queue ----------


@dataclass
class PendingInspection:
    guid: str
    attempts: int = 0
    last_requested_at: float | None = None


class InspectionQueue:
    def __init__(
        self,
        request: Callable[[str], None],
        is_reachable: Callable[[str], bool],
        timer: RepeatingTimer | None = None,
        interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._request = request
        self._is_reachable = is_reachable
        self._timer: RepeatingTimer = timer if timer is not None else AsyncioRepeatingTimer()
        self._interval = interval if interval is not None else settings.INSPECT_RETRY_INTERVAL
        self._clock = clock
        self._pending: dict[str, PendingInspection] = {}
        self._resolved: set[str] = set()
        self._suspended = False

    # ---------- Queries ----------

    @property
    def pending(self) -> frozenset[str]:
        return frozenset(self._pending)

    @property
    def suspended(self) -> bool:
        return self._suspended

    @property
    def is_timer_running(self) -> bool:
        return self._timer.running

    def entry(self, guid: str) -> PendingInspection | None:
        return self._pending.get(guid)

    def state(self, guid: str) -> InspectState:
        if guid in self._pending:
            return InspectState.PENDING
        if guid in self._resolved:
            return InspectState.RESOLVED
        return InspectState.UNKNOWN

    # ---------- Transitions ----------

    def enqueue(self, guid: str) -> None:
        """Mark guid pending (also from resolved) and request its data now unless suspended."""
        self._resolved.discard(guid)
        if guid not in self._pending:
            self._pending[guid] = PendingInspection(guid)
        if not self._suspended:
            self._issue(guid)
        self._ensure_timer()

    def complete(self, guid: str) -> bool:
        """Data arrived for guid. False when it was not pending (stale response)."""
        if self._pending.pop(guid, None) is None:
            return False
        self._resolved.add(guid)
        self._stop_if_idle()
        return True

    def mark_resolved(self, guid: str) -> None:
        """Data was already cached when the member appeared; nothing to request."""
        self._pending.pop(guid, None)
        self._resolved.add(guid)
        self._stop_if_idle()

    def cancel(self, guid: str) -> None:
        """Member left: drop every trace of it."""
        self._pending.pop(guid, None)
        self._resolved.discard(guid)
        self._stop_if_idle()

    def retry_pass(self) -> int:
        """Timer tick: prune unreachable members, re-request the rest. Returns the number pruned."""
        if self._suspended:
            return 0
        pruned = 0
        for guid in list(self._pending):
            if not self._is_reachable(guid):
                logger.debug("pruning unreachable inspection", extra={"guid": guid})
                del self._pending[guid]
                pruned += 1
                continue
            self._issue(guid)
        if pruned:
            logger.info(
                "pruned unreachable members from inspection",
                extra={"event": "inspect_pruned", "pruned": pruned},
            )
        self._stop_if_idle()
        return pruned

    def suspend(self) -> None:
        if self._suspended:
            return
        self._suspended = True
        self._timer.cancel()
        logger.debug("inspection suspended", extra={"event": "suspend"})

    def resume(self) -> None:
        if not self._suspended:
            return
        self._suspended = False
        logger.debug("inspection resumed", extra={"event": "resume"})
        for guid in list(self._pending):
            self._issue(guid)
        self._ensure_timer()

    def clear(self) -> None:
        self._pending.clear()
        self._resolved.clear()
        self._timer.cancel()

    # ---------- Internals ----------

    def _issue(self, guid: str) -> None:
        entry = self._pending[guid]
        entry.attempts += 1
        entry.last_requested_at = self._clock()
        try:
            self._request(guid)
        except Exception:
            # A failed request leaves the member pending; the next pass retries it.
            logger.warning("inspection request failed", extra={"guid": guid}, exc_info=True)

    def _ensure_timer(self) -> None:
        if self._pending and not self._suspended and not self._timer.running:
            self._timer.start(self._interval, self.retry_pass)

    def _stop_if_idle(self) -> None:
        if not self._pending and self._timer.running:
            self._timer.cancel()
