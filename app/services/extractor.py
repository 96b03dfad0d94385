"""
Rule-based extraction of attendance rows from the exported sheet.

Column layout (A..J):
    name, spouseName, date, classType, round, residence, preference, notes,
    timestamp, author

Also renders the analysis payload (people grouped by category) that the
dashboard consumes.
"""

import csv
import io
import re
from typing import List, Mapping

from app.errors import ExtractionError
from app.models.person import Category, PersonAggregate, person_key
from app.models.record import ADMIN_ROUND, CONNECTION_TEST_NAME, AttendanceRecord

COLUMNS = (
    'person_name',
    'spouse_name',
    'session_date',
    'class_type',
    'session_round',
    'residence',
    'preference',
    'notes',
    'submitted_at',
    'author',
)
ROUND_COLUMN = COLUMNS.index('session_round')

ROUND_PATTERN = re.compile(r'^\s*(\d+)')


def parse_round(value: str):
    """
    Round number from a cell. Blank means an administrative row; leading
    digits are accepted so "3회" reads as 3. Returns None when unreadable.
    """
    value = (value or '').strip()
    if not value:
        return ADMIN_ROUND
    match = ROUND_PATTERN.match(value)
    return int(match.group(1)) if match else None


class CsvExtractor:
    """Turns raw CSV text into AttendanceRecords."""

    def extract(self, text: str) -> List[AttendanceRecord]:
        try:
            rows = list(csv.reader(io.StringIO(text or '')))
        except csv.Error as e:
            raise ExtractionError(f"CSV 형식을 읽을 수 없습니다: {e}")

        records = []
        first_row = True
        for index, row in enumerate(rows):
            cells = [cell.strip() for cell in row]
            if not any(cells):
                continue
            is_first, first_row = first_row, False
            cells += [''] * (len(COLUMNS) - len(cells))

            session_round = parse_round(cells[ROUND_COLUMN])
            if session_round is None:
                # First row with a label in the round column is the header
                if is_first:
                    continue
                raise ExtractionError(f"{index + 1}번째 줄의 회차 값을 읽을 수 없습니다: '{cells[ROUND_COLUMN]}'")

            values = dict(zip(COLUMNS, cells))
            values['session_round'] = session_round
            records.append(AttendanceRecord(**values))

        return records


def build_analysis(people: Mapping[str, PersonAggregate], total_records: int) -> dict:
    """
    Render the view in the analysis schema.

    placementTargets / placedMembers / ongoingMembers partition everyone by
    category. completedMembers lists graduates (all 8 rounds) and overlaps
    with the other lists. Connection-test rows are not people and are left
    out.
    """
    test_key = person_key(CONNECTION_TEST_NAME)
    members = [p for p in people.values() if p.key != test_key]
    return {
        'placementTargets': [p.to_dict() for p in members if p.category == Category.TARGET],
        'placedMembers': [p.to_dict() for p in members if p.category == Category.PLACED],
        'ongoingMembers': [p.to_dict() for p in members if p.category == Category.ONGOING],
        'completedMembers': [p.to_dict() for p in members if p.completed],
        'totalAttendanceRecords': total_records,
    }
