"""
Ledger aggregation: attendance log rows -> per-person view.

aggregate() is pure. It is called with the complete log on every resync and
its output replaces the previous view wholesale.

Category rules (first match wins):
- 4+ rounds, no placement tag -> TARGET
- 4+ rounds, placement tag    -> PLACED
- otherwise                   -> ONGOING

COMPLETED is never assigned as a category. Anyone with all 8 rounds is
already TARGET or PLACED, so graduation is tracked by the separate
PersonAggregate.completed flag instead.
"""

import re
from collections import OrderedDict
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from app.models.person import Category, PersonAggregate, person_key
from app.models.record import ATTENDANCE_ROUNDS, AttendanceRecord

PLACEMENT_THRESHOLD = 4

PLACEMENT_TAG_PATTERN = re.compile(r'\[배치완료:\s*([^\]]+)\]')


def find_placement_tag(notes: str) -> Optional[str]:
    """Return the last group name tagged in a notes text, if any."""
    matches = PLACEMENT_TAG_PATTERN.findall(notes or '')
    if not matches:
        return None
    tag = matches[-1].strip()
    return tag or None


def categorize(attendance_count: int, placement_tag: Optional[str]) -> Category:
    if attendance_count >= PLACEMENT_THRESHOLD and placement_tag is None:
        return Category.TARGET
    if attendance_count >= PLACEMENT_THRESHOLD:
        return Category.PLACED
    return Category.ONGOING


def _latest(records: List[AttendanceRecord], attr: str) -> str:
    """Most recently appended non-blank value of a field."""
    for record in reversed(records):
        value = (getattr(record, attr) or '').strip()
        if value:
            return value
    return ''


def _summarize(key: str, records: List[AttendanceRecord]) -> PersonAggregate:
    rounds = frozenset(r.session_round for r in records if r.session_round in ATTENDANCE_ROUNDS)

    # Rows outside 1..8 still count for tag scanning
    placement_tag = None
    for record in records:
        tag = find_placement_tag(record.notes)
        if tag:
            placement_tag = tag

    return PersonAggregate(
        key=key,
        name=' '.join(records[0].person_name.split()),
        attended_rounds=rounds,
        region=_latest(records, 'residence'),
        spouse_name=_latest(records, 'spouse_name'),
        placement_tag=placement_tag,
        notes=_latest(records, 'notes'),
        preference=_latest(records, 'preference'),
        last_author=_latest(records, 'author'),
        category=categorize(len(rounds), placement_tag),
    )


def _link_couples(people: Dict[str, PersonAggregate]) -> Dict[str, PersonAggregate]:
    """
    Share region and spouse name between partners.

    Only empty fields are filled, so each side keeps whatever it recorded
    itself. Values are always taken from the partner's own records, never
    from a field another couple back-filled. Notes are never shared.
    """
    linked = dict(people)
    for key in sorted(people):
        person = people[key]
        partner_key = person_key(person.spouse_name)
        if not partner_key or partner_key == key or partner_key not in people:
            continue
        partner = people[partner_key]

        linked[key] = replace(
            linked[key],
            region=linked[key].region or partner.region,
        )
        linked[partner_key] = replace(
            linked[partner_key],
            region=linked[partner_key].region or person.region,
            spouse_name=linked[partner_key].spouse_name or person.name,
        )
    return linked


def aggregate(records: Iterable[AttendanceRecord]) -> Dict[str, PersonAggregate]:
    """
    Build the per-person view from the full attendance log.

    Args:
        records: every row of the log, in append order

    Returns:
        dict of person key -> PersonAggregate, ordered by first appearance
    """
    groups: Dict[str, List[AttendanceRecord]] = OrderedDict()
    for record in records:
        key = person_key(record.person_name)
        if not key:
            continue
        groups.setdefault(key, []).append(record)

    people = OrderedDict((key, _summarize(key, rows)) for key, rows in groups.items())
    linked = _link_couples(people)
    return OrderedDict((key, linked[key]) for key in people)
