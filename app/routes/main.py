from flask import Blueprint

from app.services.ledger_service import get_ledger

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """Health check endpoint for Railway."""
    return {
        'status': 'healthy',
        'app': 'Newcomer Attendance Ledger',
        'sync': get_ledger().status()['last_outcome'],
    }
