"""Fixtures and helpers for ledger tests."""
import csv
import io
import threading
from typing import Iterable, List, Optional, Sequence

import requests

from app.models.record import AttendanceRecord

SHEET_HEADER: Sequence[str] = (
    "이름",
    "배우자",
    "날짜",
    "반",
    "회차",
    "거주지",
    "선호",
    "비고",
    "입력시간",
    "작성자",
)

SHEET_URL = "https://docs.google.com/spreadsheets/d/abc123-XYZ_9/edit?usp=sharing"
APPEND_URL = "https://script.google.com/macros/s/deploy-id/exec"


def record(name: str, session_round: int = 1, **fields) -> AttendanceRecord:
    """Build an AttendanceRecord with sensible defaults."""
    return AttendanceRecord(person_name=name, session_round=session_round, **fields)


def attendance(name: str, rounds: Iterable[int], **fields) -> List[AttendanceRecord]:
    return [record(name, r, **fields) for r in rounds]


def sheet_row(
    name: str,
    session_round="1",
    *,
    spouse: str = "",
    date: str = "2026-09-06",
    class_type: str = "2부 A반",
    residence: str = "",
    preference: str = "",
    notes: str = "",
    timestamp: str = "",
    author: str = "",
) -> List[str]:
    return [name, spouse, date, class_type, str(session_round), residence, preference, notes, timestamp, author]


def sheet_csv(rows: Iterable[Sequence[str]], header: bool = True) -> str:
    handle = io.StringIO()
    writer = csv.writer(handle)
    if header:
        writer.writerow(SHEET_HEADER)
    for row in rows:
        writer.writerow(list(row))
    return handle.getvalue()


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = ""):
        self.status_code = status_code
        self.text = text
        self.encoding = None


class FakeSession:
    """Stands in for requests.Session; records calls and replays canned results."""

    def __init__(self, get_result=None, post_result=None, on_post=None):
        self.get_result = get_result if get_result is not None else FakeResponse(200, sheet_csv([]))
        self.post_result = post_result if post_result is not None else FakeResponse(200, "")
        self.on_post = on_post
        self.gets = []
        self.posts = []

    @staticmethod
    def _play(result):
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url, timeout=None):
        self.gets.append({"url": url, "timeout": timeout})
        return self._play(self.get_result)

    def post(self, url, data=None, headers=None, timeout=None):
        self.posts.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        if self.on_post:
            self.on_post()
        return self._play(self.post_result)


class BlockingFetch:
    """Fetch callable that waits until released, to hold a cycle in flight."""

    def __init__(self, text: str):
        self.text = text
        self.started = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        self.started.set()
        self.release.wait(timeout=5)
        return self.text


def timeout_error() -> Exception:
    return requests.exceptions.ReadTimeout("timed out")


def connection_error() -> Exception:
    return requests.exceptions.ConnectionError("connection refused")


def placement_note(group: str, rest: Optional[str] = "") -> str:
    return f"[배치완료: {group}] {rest}"
