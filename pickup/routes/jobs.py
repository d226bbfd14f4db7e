"""
Job trigger endpoints, called by an external cron service.

A caller is authorized by either:
- Authorization: Bearer <SERVICE_ROLE_KEY>
- X-Cron-Secret: <CRON_SECRET>
"""

import secrets
from functools import wraps
from flask import Blueprint, request, jsonify, current_app

from pickup.config import ReminderConfig
from pickup.services.reminder_jobs import SessionReminderJob

jobs_bp = Blueprint('jobs', __name__, url_prefix='/jobs')


def _matches(provided, expected) -> bool:
    # An unset secret never authorizes anyone
    if not provided or not expected:
        return False
    return secrets.compare_digest(provided.encode(), expected.encode())


def is_authorized_job_request(config: ReminderConfig) -> bool:
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        auth_header = auth_header[len('Bearer '):]
    return (
        _matches(auth_header.strip(), config.service_key)
        or _matches(request.headers.get('X-Cron-Secret'), config.auth_secret)
    )


def job_auth_required(f):
    """Decorator to require the service key or the cron secret."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            config = ReminderConfig.from_app(current_app)
        except ValueError as e:
            current_app.logger.error(f"Invalid reminder configuration: {e}")
            return jsonify({
                'success': False,
                'error': {'message': f'Invalid reminder configuration: {e}'}
            }), 500
        if not is_authorized_job_request(config):
            current_app.logger.warning(f"Unauthorized job trigger from {request.remote_addr}")
            return jsonify({'error': 'Unauthorized'}), 401
        return f(config, *args, **kwargs)
    return decorated_function


@jobs_bp.route('/send-session-reminders', methods=['GET', 'POST'])
@job_auth_required
def send_session_reminders(config):
    """Run the 24-48h session reminder job."""
    result = SessionReminderJob(config).run()

    if not result['success']:
        return jsonify({
            'success': False,
            'error': {'message': result['error']}
        }), 500

    return jsonify({
        'success': True,
        'results': result['results']
    })
