"""
Per-person view derived from the attendance log.

A PersonAggregate is rebuilt from the full log on every resync and never
patched in place.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional

from app.models.record import ATTENDANCE_ROUNDS, MAX_ROUND

# Placeholder used in display text for an empty part
EMPTY_DETAIL = '없음'

PREFERENCE_LABEL = '선호'
NOTES_LABEL = '가족/기타'

ALPHA_MARKER = '알파'
SIERRA_MARKER = '시에라'


class Category(str, Enum):
    TARGET = 'TARGET'        # 4+ rounds, not yet placed
    PLACED = 'PLACED'        # 4+ rounds, placed into a small group
    ONGOING = 'ONGOING'      # fewer than 4 rounds
    COMPLETED = 'COMPLETED'  # schema label only, see PersonAggregate.completed


class Zone(str, Enum):
    ALPHA = 'ALPHA'
    SIERRA = 'SIERRA'
    OTHER = 'OTHER'


def person_key(name: str) -> str:
    """Canonical identity: trimmed, inner whitespace collapsed, case-folded."""
    if not name:
        return ''
    return ' '.join(name.split()).casefold()


def zone_for_region(region: str) -> Zone:
    if ALPHA_MARKER in (region or ''):
        return Zone.ALPHA
    if SIERRA_MARKER in (region or ''):
        return Zone.SIERRA
    return Zone.OTHER


def format_details(preference: str, notes: str) -> str:
    """Display text shown under a person's card."""
    return f"{PREFERENCE_LABEL}: {preference or EMPTY_DETAIL}, {NOTES_LABEL}: {notes or EMPTY_DETAIL}"


@dataclass(frozen=True)
class PersonAggregate:
    """Derived summary for one newcomer."""
    key: str
    name: str
    attended_rounds: FrozenSet[int] = field(default_factory=frozenset)
    region: str = ''
    spouse_name: str = ''
    placement_tag: Optional[str] = None
    notes: str = ''
    preference: str = ''
    last_author: str = ''
    category: Category = Category.ONGOING

    @property
    def attendance_count(self) -> int:
        return len(self.attended_rounds)

    @property
    def completed(self) -> bool:
        """Graduation flag, orthogonal to category."""
        return self.attendance_count >= MAX_ROUND

    @property
    def details(self) -> str:
        return format_details(self.preference, self.notes)

    @property
    def zone(self) -> Zone:
        return zone_for_region(self.region)

    def next_round(self) -> Optional[int]:
        """First round not yet attended, or None once every round is done."""
        for round_number in sorted(ATTENDANCE_ROUNDS):
            if round_number not in self.attended_rounds:
                return round_number
        return None

    def to_dict(self) -> dict:
        """Member object of the analysis schema."""
        return {
            'name': self.name,
            'spouseName': self.spouse_name or None,
            'attendanceCount': self.attendance_count,
            'attendedRounds': sorted(self.attended_rounds),
            'region': self.region,
            'details': self.details,
            'status': self.category.value,
            'lastAuthor': self.last_author or None,
        }

    def __repr__(self):
        return f'<PersonAggregate {self.name} {self.category.value} {self.attendance_count}>'
