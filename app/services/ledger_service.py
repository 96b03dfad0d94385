"""
Ledger service: ties the record source, extractor, resync scheduler and
write-back client together for the web app.

Reads go through the published view only. Writes go through the write-back
client and then schedule one delayed resync; the view is never patched
directly, so a new row shows up once the sheet makes it visible to reads.
"""

import threading
from typing import List, Optional, Sequence

from app.config import DEFAULT_RECENT_CAPACITY, LedgerConfig
from app.errors import ValidationError
from app.models import Setting
from app.models.person import PersonAggregate, person_key
from app.models.record import AttendanceRecord
from app.services.extractor import CsvExtractor
from app.services.record_source import RecordSource
from app.services.resync import ResyncScheduler, LedgerView
from app.services.write_back import RecentActivity, WriteBackClient


def pending_key(record: AttendanceRecord) -> tuple:
    """Identity used to spot a submitted row once it shows up in the log."""
    return (
        person_key(record.person_name),
        record.session_round,
        ' '.join((record.notes or '').split()),
        (record.author or '').strip(),
    )


class LedgerService:
    """Per-app ledger state (published view, recent activity, pending writes)."""

    def __init__(self, app=None, session=None):
        self.app = None
        self.logger = None
        self.session = session
        self.extractor = CsvExtractor()
        self.recent = None
        self.scheduler = None
        self._pending = []
        self._pending_lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize with Flask app."""
        self.app = app
        self.logger = app.logger
        self.recent = RecentActivity(app.config.get('RECENT_CAPACITY', DEFAULT_RECENT_CAPACITY))
        self._pending = []
        self.scheduler = ResyncScheduler(
            fetch=self._fetch,
            extract=self.extractor.extract,
            logger=app.logger,
            on_success=self._confirm_pending,
        )
        app.extensions['ledger'] = self

        if app.config.get('LEDGER_SYNC_ON_STARTUP'):
            self.scheduler.schedule(0)

    # ============== CONFIG ==============

    def config(self) -> LedgerConfig:
        """Current config. Needs an app context (saved settings live in the DB)."""
        return LedgerConfig.from_app(self.app)

    def _fetch(self) -> str:
        # Runs on resync threads, which have no app context of their own
        with self.app.app_context():
            config = self.config()
        return RecordSource(config, session=self.session, logger=self.logger).fetch()

    # ============== READS ==============

    @property
    def view(self) -> LedgerView:
        return self.scheduler.view

    def find(self, name: str) -> Optional[PersonAggregate]:
        return self.view.people.get(person_key(name))

    def get(self, name: str) -> PersonAggregate:
        person = self.find(name)
        if person is None:
            raise ValidationError(f"'{name}'님을 명단에서 찾을 수 없습니다.")
        return person

    def search(self, term: str) -> List[PersonAggregate]:
        """People whose name, spouse name or region contains the term."""
        people = list(self.view.people.values())
        term = (term or '').strip().casefold()
        if not term:
            return people
        return [
            p for p in people
            if term in p.name.casefold()
            or term in (p.spouse_name or '').casefold()
            or term in (p.region or '').casefold()
        ]

    def status(self) -> dict:
        status = self.scheduler.status()
        status['pending_writes'] = len(self.pending())
        return status

    # ============== WRITES ==============

    def submit(
        self,
        records: Sequence[AttendanceRecord],
        config: LedgerConfig = None,
        remember_author: bool = True,
    ):
        """
        Append rows and schedule one resync.

        Errors from the write-back client propagate unchanged; no resync is
        scheduled for a failed append. With remember_author, the rows' author
        becomes the default for later entries; system rows pass False.
        """
        config = config or self.config()
        client = WriteBackClient(config, recent=self.recent, session=self.session, logger=self.logger)
        client.append(records)

        author = records[-1].author
        if remember_author and author:
            Setting.set(Setting.LAST_AUTHOR, author)

        with self._pending_lock:
            self._pending.extend(records)

        self.scheduler.schedule(config.resync_delay)

    def pending(self) -> List[AttendanceRecord]:
        with self._pending_lock:
            return list(self._pending)

    def _confirm_pending(self, records: List[AttendanceRecord]):
        seen = {pending_key(r) for r in records}
        with self._pending_lock:
            confirmed = [r for r in self._pending if pending_key(r) in seen]
            self._pending = [r for r in self._pending if pending_key(r) not in seen]
        if confirmed:
            self.logger.info(f"Confirmed {len(confirmed)} pending write(s) in the log")

    def recent_activity(self) -> List[AttendanceRecord]:
        return self.recent.items()


def get_ledger() -> LedgerService:
    """Ledger service bound to the current app."""
    from flask import current_app
    return current_app.extensions['ledger']
