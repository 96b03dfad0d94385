"""
Write-back client: appends rows to the attendance log through the sheet's
Apps Script web app.

The endpoint gives no usable response body, so delivery is unconfirmed: a
call that completes without a transport fault is assumed to have landed, and
the next resync is what actually shows the row.
"""

import json
import logging
import threading
from collections import deque
from typing import List, Sequence

import requests

from app.config import LedgerConfig, DEFAULT_RECENT_CAPACITY
from app.errors import AppendTimeoutError, TransportError, ValidationError
from app.models.record import AttendanceRecord


class RecentActivity:
    """Bounded, most-recent-first list of submitted rows, for display only."""

    def __init__(self, capacity: int = DEFAULT_RECENT_CAPACITY):
        self._items = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def push(self, record: AttendanceRecord):
        with self._lock:
            self._items.appendleft(record)

    def items(self) -> List[AttendanceRecord]:
        with self._lock:
            return list(self._items)

    def __len__(self):
        return len(self._items)


class WriteBackClient:
    """Appends new rows to the log."""

    # text/plain keeps the request "simple" so no CORS preflight is triggered
    HEADERS = {'Content-Type': 'text/plain;charset=utf-8'}

    def __init__(self, config: LedgerConfig, recent: RecentActivity = None, session=None, logger=None):
        self.config = config
        self.recent = recent if recent is not None else RecentActivity(config.recent_capacity)
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(__name__)

    def append(self, records: Sequence[AttendanceRecord]) -> None:
        """
        Append rows, in order, to the log.

        Rows are echoed into the recent-activity buffer as soon as the call is
        submitted, before the endpoint answers.

        append_timeout bounds the connect and each read (per redirect hop),
        not the total duration of the call.

        Raises:
            ConfigurationError: append endpoint missing or malformed
            ValidationError: nothing to append
            AppendTimeoutError: no answer within the append timeout
            TransportError: network failure or non-success response
        """
        url = self.config.require_append_endpoint()
        if not records:
            raise ValidationError("저장할 기록이 없습니다.")

        body = json.dumps([r.to_payload() for r in records], ensure_ascii=False).encode('utf-8')

        for record in records:
            self.recent.push(record)

        self.logger.info(f"Appending {len(records)} row(s) for {', '.join(r.person_name for r in records)}")

        try:
            response = self.session.post(
                url,
                data=body,
                headers=self.HEADERS,
                timeout=self.config.append_timeout,
            )
        except requests.exceptions.Timeout:
            self.logger.error(f"Append timeout after {self.config.append_timeout}s")
            raise AppendTimeoutError("전송 시간이 초과되었습니다. 네트워크 상태나 Apps Script URL을 확인해주세요.")
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Append request failed: {e}")
            raise TransportError(f"시트 업데이트 중 오류가 발생했습니다: {e}")

        if response.status_code >= 400:
            self.logger.error(f"Append endpoint error: {response.status_code}")
            raise TransportError(f"시트 업데이트 중 오류가 발생했습니다: HTTP {response.status_code}")
