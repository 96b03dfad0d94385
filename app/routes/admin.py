"""
Admin routes - shared-passcode gate and ledger endpoint settings.

The unlock flag lives in the session only, so it ends with the browser
session.
"""

from functools import wraps
from flask import Blueprint, request, session, current_app, jsonify

from app.errors import ConfigurationError
from app.models import Setting
from app.services.ledger_service import get_ledger
from app.services.workflow import clean_text, connection_test_record

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')

URL_SETTINGS = {
    'recordSourceUrl': Setting.RECORD_SOURCE_URL,
    'appendEndpointUrl': Setting.APPEND_ENDPOINT_URL,
}


def admin_required(f):
    """Decorator to require admin authentication."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not session.get('admin_authenticated'):
            return jsonify({'success': False, 'error': '관리자 인증이 필요합니다.'}), 401
        return f(*args, **kwargs)
    return decorated_function


@admin_bp.route('/login', methods=['POST'])
def login():
    """Unlock the admin settings with the shared passcode."""
    data = request.get_json(silent=True) or request.form
    password = data.get('password', '')
    if password == current_app.config['ADMIN_PASSWORD']:
        session['admin_authenticated'] = True
        current_app.logger.info("Admin unlocked")
        return jsonify({'success': True})
    return jsonify({'success': False, 'error': '비밀번호가 틀렸습니다.'}), 401


@admin_bp.route('/logout', methods=['POST'])
def logout():
    """Lock the admin settings again."""
    session.pop('admin_authenticated', None)
    return jsonify({'success': True})


def _settings_payload():
    config = get_ledger().config()
    return {
        'recordSourceUrl': config.record_source_url,
        'appendEndpointUrl': config.append_endpoint_url,
        'saved': {field: Setting.get(key) for field, key in URL_SETTINGS.items()},
    }


@admin_bp.route('/settings', methods=['GET', 'POST'])
@admin_required
def settings():
    """
    View or change the record source and append endpoint locations.

    A blank value removes the saved override and falls back to the
    environment.
    """
    if request.method == 'POST':
        data = request.get_json(silent=True) or request.form.to_dict()

        for field, key in URL_SETTINGS.items():
            if field not in data:
                continue
            value = clean_text(data.get(field))
            if not value:
                Setting.clear(key)
            elif not value.startswith(('http://', 'https://')):
                raise ConfigurationError(f"URL 형식이 올바르지 않습니다: {value}")
            else:
                Setting.set(key, value)
                current_app.logger.info(f"Saved setting {key}")

    return jsonify({'success': True, 'settings': _settings_payload()})


@admin_bp.route('/test-connection', methods=['POST'])
@admin_required
def test_connection():
    """Append a single test row to check the append endpoint."""
    data = request.get_json(silent=True) or {}
    record = connection_test_record(author=data.get('author', ''))

    get_ledger().submit([record], remember_author=False)

    return jsonify({
        'success': True,
        'message': "연동 테스트 성공! 구글 시트 마지막 줄을 확인해보세요.",
    })
