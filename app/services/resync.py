"""
Resync scheduler: fetch -> extract -> aggregate -> publish.

State machine:
    IDLE -> SYNCING -> (SUCCESS | ERROR) -> IDLE

At most one cycle runs at a time. A trigger that arrives while a cycle is in
flight is dropped, not queued: aggregation always runs over the whole log,
so the next cycle sees every write anyway.

The published view is replaced as a single object. A failed cycle leaves the
last good view untouched.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional

from app.errors import LedgerError
from app.models.person import PersonAggregate
from app.models.record import AttendanceRecord
from app.services.aggregator import aggregate


class SyncState(str, Enum):
    IDLE = 'idle'
    SYNCING = 'syncing'
    SUCCESS = 'success'
    ERROR = 'error'


@dataclass(frozen=True)
class LedgerView:
    """One published snapshot of the per-person view."""
    people: Mapping[str, PersonAggregate] = field(default_factory=lambda: MappingProxyType({}))
    total_records: int = 0
    synced_at: Optional[datetime] = None


EMPTY_VIEW = LedgerView()


class ResyncScheduler:
    """Runs resync cycles and holds the current published view."""

    def __init__(
        self,
        fetch: Callable[[], str],
        extract: Callable[[str], List[AttendanceRecord]],
        logger=None,
        on_success: Callable[[List[AttendanceRecord]], None] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.fetch = fetch
        self.extract = extract
        self.logger = logger or logging.getLogger(__name__)
        self.on_success = on_success
        self.clock = clock

        self._cycle_lock = threading.Lock()
        self._view = EMPTY_VIEW
        self._timers = []

        self.state = SyncState.IDLE
        self.last_outcome = SyncState.IDLE
        self.last_error = None

    @property
    def view(self) -> LedgerView:
        return self._view

    def trigger(self) -> bool:
        """
        Run one cycle now, unless one is already running.

        Returns:
            True if a cycle ran (whatever its outcome), False if coalesced
        """
        if not self._cycle_lock.acquire(blocking=False):
            self.logger.info("Resync already in progress, trigger dropped")
            return False

        try:
            self.state = SyncState.SYNCING
            self._run_cycle()
        finally:
            self.state = SyncState.IDLE
            self._cycle_lock.release()
        return True

    def _run_cycle(self):
        try:
            raw = self.fetch()
            records = self.extract(raw)
            people = aggregate(records)
        except LedgerError as e:
            self._fail(e.message)
            return
        except Exception as e:
            self.logger.exception(f"Unexpected resync failure: {e}")
            self._fail(str(e))
            return

        self._view = LedgerView(
            people=MappingProxyType(dict(people)),
            total_records=len(records),
            synced_at=self.clock(),
        )
        self.state = SyncState.SUCCESS
        self.last_outcome = SyncState.SUCCESS
        self.last_error = None
        self.logger.info(f"Resync complete: {len(people)} people from {len(records)} records")

        if self.on_success:
            self.on_success(records)

    def _fail(self, message: str):
        self.state = SyncState.ERROR
        self.last_outcome = SyncState.ERROR
        self.last_error = message
        self.logger.error(f"Resync failed, keeping previous view: {message}")

    def schedule(self, delay: float) -> threading.Timer:
        """Run one cycle after `delay` seconds on a background thread."""
        timer = threading.Timer(delay, self.trigger)
        timer.daemon = True
        self._timers = [t for t in self._timers if t.is_alive()] + [timer]
        timer.start()
        self.logger.debug(f"Resync scheduled in {delay}s")
        return timer

    def cancel_scheduled(self):
        for timer in self._timers:
            timer.cancel()
        self._timers = []

    def status(self) -> dict:
        view = self._view
        return {
            'state': self.state.value,
            'last_outcome': self.last_outcome.value,
            'last_error': self.last_error,
            'last_sync': view.synced_at.isoformat() if view.synced_at else None,
            'member_count': len(view.people),
            'total_records': view.total_records,
        }
