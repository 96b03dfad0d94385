"""
Operator workflows that produce new log rows.

Every function here validates locally and returns an AttendanceRecord; none
of them touch the network. Submitting the row is the ledger service's job.

- build_entry: manual attendance entry from the input form
- request_placement: mark a TARGET person as placed into a small group
- request_edit: correct a person's spouse / residence / preference / notes
"""

from datetime import date, datetime
from typing import Optional

from app.errors import ValidationError
from app.models.person import Category, PersonAggregate
from app.models.record import (
    ADMIN_ROUND, MAX_ROUND, CONNECTION_TEST_NAME, DEFAULT_CLASS, EDIT_CLASS, PLACEMENT_CLASS,
    AttendanceRecord,
)

EDITABLE_FIELDS = ('spouse_name', 'residence', 'preference', 'notes')


def submission_time(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime('%Y-%m-%d %H:%M:%S')


def clean_text(value) -> str:
    """Form or JSON value as stripped text (numbers are accepted)."""
    return str(value).strip() if value is not None else ''


def _text(form: dict, key: str) -> str:
    return clean_text(form.get(key))


def _require_author(author: str) -> str:
    author = clean_text(author)
    if not author:
        raise ValidationError("작성자 성함 입력은 필수입니다.")
    return author


def build_entry(form: dict, author: str, now: Optional[datetime] = None) -> AttendanceRecord:
    """
    Build an attendance row from the input form.

    Form keys follow the append payload: name, spouseName, date, classType,
    round, residence, preference, notes.
    """
    name = _text(form, 'name')
    if not name:
        raise ValidationError("성함 입력은 필수입니다.")
    author = _require_author(author)

    raw_round = _text(form, 'round') or '1'
    try:
        session_round = int(raw_round)
    except ValueError:
        raise ValidationError(f"회차는 숫자여야 합니다: '{raw_round}'")
    if not ADMIN_ROUND <= session_round <= MAX_ROUND:
        raise ValidationError(f"회차는 {ADMIN_ROUND}에서 {MAX_ROUND} 사이여야 합니다.")

    now = now or datetime.now()
    return AttendanceRecord(
        person_name=name,
        session_round=session_round,
        spouse_name=_text(form, 'spouseName'),
        session_date=_text(form, 'date') or now.date().isoformat(),
        class_type=_text(form, 'classType') or DEFAULT_CLASS,
        residence=_text(form, 'residence'),
        preference=_text(form, 'preference'),
        notes=_text(form, 'notes'),
        author=author,
        submitted_at=submission_time(now),
    )


def request_placement(
    person: PersonAggregate,
    group_name: str,
    author: str,
    now: Optional[datetime] = None,
) -> AttendanceRecord:
    """
    Build the row that places a person into a small group.

    Only TARGET people (4+ rounds, not yet placed) can be placed. The tag is
    written in front of the person's existing notes so the notes survive.
    """
    if person.category != Category.TARGET:
        raise ValidationError(
            f"{person.name}님은 순 배치 대상이 아닙니다 (현재 상태: {person.category.value})."
        )
    group_name = clean_text(group_name)
    if not group_name:
        raise ValidationError("배치할 순 이름을 입력해주세요.")
    author = _require_author(author)

    now = now or datetime.now()
    return AttendanceRecord(
        person_name=person.name,
        session_round=ADMIN_ROUND,
        spouse_name=person.spouse_name,
        session_date=now.date().isoformat(),
        class_type=PLACEMENT_CLASS,
        residence=person.region,
        preference=person.preference,
        notes=f"[배치완료: {group_name}] {person.notes}",
        author=author,
        submitted_at=submission_time(now),
    )


def request_edit(
    person: PersonAggregate,
    changes: dict,
    author: str,
    now: Optional[datetime] = None,
) -> AttendanceRecord:
    """
    Build an information-correction row.

    Fields missing from `changes` keep the person's current value. The row is
    administrative, so attendance and placement are unaffected.
    """
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"수정할 수 없는 항목입니다: {', '.join(sorted(unknown))}")
    author = _require_author(author)

    current = {
        'spouse_name': person.spouse_name,
        'residence': person.region,
        'preference': person.preference,
        'notes': person.notes,
    }
    for key, value in changes.items():
        current[key] = clean_text(value)

    now = now or datetime.now()
    return AttendanceRecord(
        person_name=person.name,
        session_round=ADMIN_ROUND,
        session_date=now.date().isoformat(),
        class_type=EDIT_CLASS,
        author=author,
        submitted_at=submission_time(now),
        **current,
    )


def connection_test_record(author: str = '', today: Optional[date] = None) -> AttendanceRecord:
    """Harmless row used by the admin page to check the append endpoint."""
    return AttendanceRecord(
        person_name=CONNECTION_TEST_NAME,
        session_round=ADMIN_ROUND,
        session_date=(today or date.today()).isoformat(),
        notes='연동 테스트 데이터입니다.',
        author=clean_text(author) or '시스템',
        submitted_at=submission_time(),
    )
