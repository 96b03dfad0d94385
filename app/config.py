"""
Explicit configuration for the ledger clients.

A LedgerConfig is built from the app config (environment) with any values
saved on the admin settings page layered on top, and is handed to the record
source, write-back client and resync scheduler when they are constructed.
"""

import re
import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode, urlsplit, urlunsplit, parse_qsl

from app.errors import ConfigurationError

SHEET_ID_PATTERN = re.compile(r'/d/([a-zA-Z0-9-_]+)')
SHEET_EXPORT_URL = 'https://docs.google.com/spreadsheets/d/{sheet_id}/export'

DEFAULT_APPEND_TIMEOUT = 15.0
DEFAULT_FETCH_TIMEOUT = 20.0
DEFAULT_RESYNC_DELAY = 2.5
DEFAULT_RECENT_CAPACITY = 10


def _is_http(url: Optional[str]) -> bool:
    return bool(url) and url.startswith(('http://', 'https://'))


@dataclass(frozen=True)
class LedgerConfig:
    record_source_url: str = ''
    append_endpoint_url: str = ''
    append_timeout: float = DEFAULT_APPEND_TIMEOUT
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    resync_delay: float = DEFAULT_RESYNC_DELAY
    recent_capacity: int = DEFAULT_RECENT_CAPACITY

    @classmethod
    def from_app(cls, app) -> 'LedgerConfig':
        """
        Build config for an app. Must run inside an app context because saved
        endpoint locations live in the Setting table.
        """
        from app.models import Setting

        return cls(
            record_source_url=Setting.get(Setting.RECORD_SOURCE_URL) or app.config.get('RECORD_SOURCE_URL', ''),
            append_endpoint_url=Setting.get(Setting.APPEND_ENDPOINT_URL) or app.config.get('APPEND_ENDPOINT_URL', ''),
            append_timeout=app.config.get('APPEND_TIMEOUT', DEFAULT_APPEND_TIMEOUT),
            fetch_timeout=app.config.get('FETCH_TIMEOUT', DEFAULT_FETCH_TIMEOUT),
            resync_delay=app.config.get('RESYNC_DELAY', DEFAULT_RESYNC_DELAY),
            recent_capacity=app.config.get('RECENT_CAPACITY', DEFAULT_RECENT_CAPACITY),
        )

    def record_source_export_url(self, now: Optional[float] = None) -> str:
        """
        URL to download the whole log as CSV, with a cache-busting parameter.

        A Google Sheets sharing link is turned into its CSV export link; any
        other http(s) URL is fetched as-is.
        """
        url = (self.record_source_url or '').strip()
        if not _is_http(url):
            raise ConfigurationError("기록 시트 URL이 설정되지 않았거나 올바르지 않습니다.")

        cachebust = str(int((now if now is not None else time.time()) * 1000))

        matches = SHEET_ID_PATTERN.search(url)
        if 'docs.google.com/spreadsheets' in url:
            if not matches:
                raise ConfigurationError("유효한 구글 시트 URL이 아닙니다.")
            base = SHEET_EXPORT_URL.format(sheet_id=matches.group(1))
            return f"{base}?{urlencode({'format': 'csv', 'cachebust': cachebust})}"

        parts = urlsplit(url)
        query = parse_qsl(parts.query, keep_blank_values=True)
        query = [(k, v) for k, v in query if k != 'cachebust'] + [('cachebust', cachebust)]
        return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))

    def require_append_endpoint(self) -> str:
        url = (self.append_endpoint_url or '').strip()
        if not _is_http(url):
            raise ConfigurationError("유효한 Apps Script URL이 설정되지 않았습니다. 관리자 설정에서 URL을 입력해주세요.")
        return url
