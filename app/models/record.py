"""
Attendance log rows.

The log is append-only: a row is never edited or removed, corrections and
placements are written as new administrative rows (round 0).
"""

from dataclasses import dataclass

# Real sessions are numbered 1..8; round 0 marks an administrative row
ADMIN_ROUND = 0
MAX_ROUND = 8
ATTENDANCE_ROUNDS = frozenset(range(1, MAX_ROUND + 1))

# Class type labels written by the administrative workflows
PLACEMENT_CLASS = '순배치'
EDIT_CLASS = '정보수정'
DEFAULT_CLASS = '2부 A반'

# Row name the admin connection test appends
CONNECTION_TEST_NAME = '연동테스트'


@dataclass(frozen=True)
class AttendanceRecord:
    """One row of the attendance log (sheet columns A..J)."""
    person_name: str
    session_round: int = ADMIN_ROUND
    spouse_name: str = ''
    session_date: str = ''
    class_type: str = ''
    residence: str = ''
    preference: str = ''
    notes: str = ''
    author: str = ''
    submitted_at: str = ''

    @property
    def is_attendance(self) -> bool:
        return self.session_round in ATTENDANCE_ROUNDS

    @property
    def is_administrative(self) -> bool:
        return self.session_round == ADMIN_ROUND

    def to_payload(self) -> dict:
        """Row object in the shape the append endpoint expects."""
        return {
            'author': self.author,
            'name': self.person_name,
            'spouseName': self.spouse_name,
            'date': self.session_date,
            'classType': self.class_type,
            'round': str(self.session_round),
            'residence': self.residence,
            'preference': self.preference,
            'notes': self.notes,
            'timestamp': self.submitted_at,
        }

    def __repr__(self):
        return f'<AttendanceRecord {self.person_name} round={self.session_round}>'
