"""
API routes for the attendance dashboard (JSON endpoints).

Includes:
- The categorized member view and single-member lookup
- Adding attendance entries, placements and information corrections
- Manual resync and sync status
- Recent submissions and the saved entry-form draft
"""

import json

from flask import Blueprint, request, jsonify, current_app

from app.errors import LedgerError, ValidationError
from app.models import Setting
from app.services.extractor import build_analysis
from app.services.ledger_service import get_ledger
from app.services.workflow import build_entry, clean_text, request_placement, request_edit

api_bp = Blueprint('api', __name__, url_prefix='/api')


@api_bp.app_errorhandler(LedgerError)
def handle_ledger_error(error):
    """Every ledger error ends the action; report it and let the operator retry."""
    current_app.logger.warning(f"{type(error).__name__}: {error.message}")
    return jsonify({
        'success': False,
        'error': error.message,
        'type': type(error).__name__,
    }), error.status_code


def _payload() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    if not isinstance(data, dict):
        raise ValidationError("요청 형식이 올바르지 않습니다.")
    return data


def _author(data: dict) -> str:
    """Author from the request, falling back to the last one used."""
    return clean_text(data.get('author')) or Setting.get(Setting.LAST_AUTHOR, '')


@api_bp.route('/members')
def list_members():
    """
    Current member view grouped by category.

    Query params:
        q: Optional filter on name, spouse name or region

    Returns:
        JSON analysis payload plus sync status
    """
    ledger = get_ledger()
    view = ledger.view
    people = {p.key: p for p in ledger.search(request.args.get('q', ''))}

    result = build_analysis(people, view.total_records)
    result['sync'] = ledger.status()
    return jsonify(result)


@api_bp.route('/members/<name>')
def get_member(name):
    """Single member, with the suggested next round for the entry form."""
    person = get_ledger().get(name)
    member = person.to_dict()
    member.update({
        'placementTag': person.placement_tag,
        'preference': person.preference,
        'notes': person.notes,
        'zone': person.zone.value,
        'completed': person.completed,
        'nextRound': person.next_round(),
    })
    return jsonify({'success': True, 'member': member})


@api_bp.route('/entries', methods=['POST'])
def add_entry():
    """Append one attendance entry from the input form."""
    data = _payload()
    record = build_entry(data, _author(data))

    get_ledger().submit([record])
    Setting.clear(Setting.ENTRY_DRAFT)

    return jsonify({
        'success': True,
        'message': "기록이 시트에 저장되었습니다. 잠시 후 명단에 반영됩니다.",
        'entry': record.to_payload(),
    })


@api_bp.route('/members/<name>/placement', methods=['POST'])
def place_member(name):
    """Place a TARGET member into a small group."""
    data = _payload()
    ledger = get_ledger()
    person = ledger.get(name)

    record = request_placement(person, data.get('groupName', ''), _author(data))
    ledger.submit([record])

    current_app.logger.info(f"Placement submitted: {person.name} -> {data.get('groupName')}")
    return jsonify({
        'success': True,
        'message': f"{person.name}님의 순 배치가 저장되었습니다.",
        'entry': record.to_payload(),
    })


@api_bp.route('/members/<name>/edit', methods=['POST'])
def edit_member(name):
    """Append an information-correction row for a member."""
    data = _payload()
    ledger = get_ledger()
    person = ledger.get(name)

    field_map = {
        'spouseName': 'spouse_name',
        'residence': 'residence',
        'preference': 'preference',
        'notes': 'notes',
    }
    changes = {field_map[k]: v for k, v in data.items() if k in field_map}

    record = request_edit(person, changes, _author(data))
    ledger.submit([record])

    return jsonify({
        'success': True,
        'message': f"{person.name}님의 정보 수정이 저장되었습니다.",
        'entry': record.to_payload(),
    })


@api_bp.route('/sync', methods=['POST'])
def sync_now():
    """Run a resync now. Returns 409 if one is already running."""
    ledger = get_ledger()
    ran = ledger.scheduler.trigger()
    status = ledger.status()

    if not ran:
        return jsonify({'success': False, 'error': '이미 동기화 중입니다.', 'sync': status}), 409

    return jsonify({
        'success': status['last_outcome'] == 'success',
        'error': status['last_error'],
        'sync': status,
    })


@api_bp.route('/sync/status')
def sync_status():
    return jsonify(get_ledger().status())


@api_bp.route('/recent')
def recent_entries():
    """Rows submitted from this app, most recent first (display only)."""
    return jsonify({
        'entries': [r.to_payload() for r in get_ledger().recent_activity()],
    })


@api_bp.route('/draft', methods=['GET', 'PUT'])
def entry_draft():
    """Saved in-progress entry form and the last author used."""
    if request.method == 'PUT':
        data = _payload()
        Setting.set(Setting.ENTRY_DRAFT, json.dumps(data, ensure_ascii=False))
        return jsonify({'success': True})

    raw = Setting.get(Setting.ENTRY_DRAFT)
    try:
        draft = json.loads(raw) if raw else None
    except ValueError:
        current_app.logger.warning("Discarding unreadable entry draft")
        draft = None

    return jsonify({
        'draft': draft,
        'author': Setting.get(Setting.LAST_AUTHOR, ''),
    })
