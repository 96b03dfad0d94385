"""
Record source: downloads the full attendance log as CSV text.

The sheet is published as "anyone with the link can view", so no credentials
are needed. Each request carries a cache-busting parameter because the export
endpoint caches aggressively.
"""

import logging
import requests

from app.config import LedgerConfig
from app.errors import RecordSourceError


class RecordSource:
    """Reads the attendance log from the configured sheet."""

    def __init__(self, config: LedgerConfig, session=None, logger=None):
        self.config = config
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(__name__)

    def fetch(self) -> str:
        """
        Download the whole log.

        Returns:
            raw CSV text

        Raises:
            ConfigurationError: no usable record source URL
            RecordSourceError: timeout, network failure or non-success response
        """
        url = self.config.record_source_export_url()

        try:
            response = self.session.get(url, timeout=self.config.fetch_timeout)
        except requests.exceptions.Timeout:
            self.logger.error(f"Record source timeout after {self.config.fetch_timeout}s")
            raise RecordSourceError("시트 데이터를 가져오는 중 시간이 초과되었습니다.")
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Record source request failed: {e}")
            raise RecordSourceError(f"시트 데이터를 가져오지 못했습니다: {e}")

        if response.status_code != 200:
            self.logger.error(f"Record source error: {response.status_code}")
            raise RecordSourceError(
                "시트 데이터를 가져오지 못했습니다. 시트가 '링크가 있는 모든 사용자에게 공개' 상태인지 확인해주세요."
            )

        # Sheets exports are UTF-8 but often arrive without a charset header
        response.encoding = 'utf-8'
        return response.text
