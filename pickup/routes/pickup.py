"""
Pickup session API routes (JSON).

Includes:
- Listing and hosting sessions (recurring sessions fan out to weekly copies)
- Joining a session
- Host edits of location/time, pushed to the rest of the roster
- Reading and updating a player's attendance confirmation
- The session deep link used by reminder emails (?confirm=yes|no)
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from functools import wraps
from flask import Blueprint, request, jsonify, session, current_app

from pickup import db
from pickup.models import PickupSession, Profile, SessionPlayer
from pickup.config import PushCredentials
from pickup.models.confirmation import STATUS_CONFIRMED, STATUS_DECLINED
from pickup.services.confirmations import confirmation_repository, InvalidStatusError
from pickup.services.sessions import (
    create_session,
    join_session,
    list_upcoming_sessions,
    notify_players_of_update,
    resolve_sport_id,
    update_session_details,
    NotHostError,
    SessionFullError,
)
from pickup.services.notifications import PushChannel
from pickup.services.push_service import PushService

pickup_bp = Blueprint('pickup', __name__)

STATUS_MESSAGES = {
    STATUS_CONFIRMED: "Great! You're confirmed for this session.",
    STATUS_DECLINED: "No worries! We'll miss you this time.",
}

EMAIL_LINK_STATUSES = {
    'yes': STATUS_CONFIRMED,
    'no': STATUS_DECLINED,
}


# ============== AUTHENTICATION ==============

def get_current_profile():
    """Get the currently logged-in profile."""
    profile_id = session.get('profile_id')
    if profile_id:
        return db.session.get(Profile, profile_id)
    return None


def profile_required(f):
    """Decorator to require a logged-in profile (JSON 401 otherwise)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        profile = get_current_profile()
        if not profile:
            return jsonify({'error': 'Authentication required'}), 401
        return f(profile, *args, **kwargs)
    return decorated_function


def is_on_roster(session_id, profile_id) -> bool:
    return SessionPlayer.query.filter_by(session_id=session_id, profile_id=profile_id).first() is not None


def confirmation_payload(state: dict) -> dict:
    return {
        'status': state['status'],
        'confirmedAt': state['confirmed_at'].isoformat() if state['confirmed_at'] else None,
        'reminderSentAt': state['reminder_sent_at'].isoformat() if state['reminder_sent_at'] else None,
    }


def parse_start_time(value) -> datetime:
    """ISO 8601 string to naive UTC. Raises TypeError/ValueError on bad input."""
    if not isinstance(value, str):
        raise TypeError("startTime must be a string")
    start_time = datetime.fromisoformat(value)
    if start_time.tzinfo is not None:
        # Stored as naive UTC
        start_time = (start_time - start_time.utcoffset()).replace(tzinfo=None)
    return start_time


# ============== SESSIONS ==============

@pickup_bp.route('/api/pickup')
def list_sessions():
    """Upcoming sessions; each recurring series shows only its nearest occurrence."""
    return jsonify([s.to_dict() for s in list_upcoming_sessions()])


@pickup_bp.route('/api/pickup', methods=['POST'])
@profile_required
def host_session(profile):
    """
    Host a new session.

    JSON body:
        title, startTime (ISO 8601, UTC), sportId (id or name), location,
        playerLimit, fee, description, latitude, longitude, isRecurring

    Returns:
        The first created session
    """
    data = request.get_json(silent=True) or {}

    title = data.get('title')
    title = title.strip() if isinstance(title, str) else ''
    if not title:
        return jsonify({'error': 'Title is required'}), 400

    try:
        start_time = parse_start_time(data.get('startTime'))
    except (ValueError, TypeError):
        return jsonify({'error': 'startTime must be an ISO 8601 timestamp'}), 400

    try:
        player_limit = int(data['playerLimit']) if data.get('playerLimit') not in (None, '') else None
        fee = Decimal(str(data.get('fee') or 0))
    except (ValueError, TypeError, InvalidOperation):
        return jsonify({'error': 'playerLimit and fee must be numbers'}), 400

    template = {
        'title': title,
        'sport_id': resolve_sport_id(data.get('sportId')),
        'start_time': start_time,
        'location': data.get('location'),
        'latitude': data.get('latitude'),
        'longitude': data.get('longitude'),
        'player_limit': player_limit,
        'fee': fee,
        'description': data.get('description'),
    }

    try:
        sessions = create_session(template, host_id=profile.id, is_recurring=bool(data.get('isRecurring')))
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to create session: {e}")
        return jsonify({'error': f'Failed to create session: {str(e)}'}), 500

    current_app.logger.info(f"Profile {profile.id} created {len(sessions)} session(s) starting {start_time}")
    return jsonify(sessions[0].to_dict()), 201


@pickup_bp.route('/api/pickup/join', methods=['POST'])
@profile_required
def join(profile):
    """Join a session, respecting its player limit."""
    data = request.get_json(silent=True) or {}
    session_id = data.get('sessionId')
    if not session_id:
        return jsonify({'error': 'Session ID is required'}), 400

    pickup_session = db.session.get(PickupSession, session_id)
    if not pickup_session:
        return jsonify({'error': 'Session not found'}), 404

    try:
        added = join_session(pickup_session, profile.id)
    except SessionFullError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to join session {session_id} for profile {profile.id}: {e}")
        return jsonify({'error': f'Failed to join session: {str(e)}'}), 500

    if not added:
        return jsonify({'message': 'Already joined'})
    return jsonify({'success': True})


@pickup_bp.route('/api/pickup/<int:session_id>', methods=['PATCH'])
@profile_required
def edit_session(profile, session_id):
    """
    Host-only edit of a session's location and/or start time.

    JSON body:
        location, latitude, longitude, startTime (ISO 8601)

    Every other player on the roster gets a push notification about the change.
    """
    pickup_session = db.session.get(PickupSession, session_id)
    if not pickup_session:
        return jsonify({'error': 'Session not found'}), 404

    if pickup_session.host_id != profile.id:
        return jsonify({'error': 'Unauthorized'}), 403

    data = request.get_json(silent=True) or {}
    location = data.get('location')
    if location is not None and not isinstance(location, str):
        return jsonify({'error': 'location must be a string'}), 400

    start_time = None
    if data.get('startTime'):
        try:
            start_time = parse_start_time(data['startTime'])
        except (ValueError, TypeError):
            return jsonify({'error': 'startTime must be an ISO 8601 timestamp'}), 400

    try:
        message = update_session_details(
            pickup_session,
            profile.id,
            location=location,
            latitude=data.get('latitude'),
            longitude=data.get('longitude'),
            start_time=start_time,
        )
        if message is None:
            return jsonify({'message': 'No changes provided'})

        push_channel = PushChannel(
            PushService(PushCredentials.from_app(current_app)),
            timeout=current_app.config.get('DELIVERY_TIMEOUT_SECONDS'),
        )
        results = notify_players_of_update(pickup_session, message, push_channel)
    except NotHostError as e:
        return jsonify({'error': str(e)}), 403
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to update session {session_id}: {e}")
        return jsonify({'error': str(e)}), 500

    for error in results['errors']:
        current_app.logger.warning(error)
    current_app.logger.info(
        f"Session {session_id} updated by host {profile.id}; "
        f"{results['push_notifications_sent']} push notifications sent"
    )
    return jsonify({'success': True, 'session': pickup_session.to_dict()})


# ============== CONFIRMATIONS ==============

@pickup_bp.route('/api/pickup/confirm')
@profile_required
def get_confirmation(profile):
    """Current player's confirmation status for a session."""
    session_id = request.args.get('sessionId', type=int)
    if not session_id:
        return jsonify({'error': 'Session ID is required'}), 400

    state = confirmation_repository.get_state(session_id, profile.id)
    return jsonify(confirmation_payload(state))


@pickup_bp.route('/api/pickup/confirm', methods=['POST'])
@profile_required
def update_confirmation(profile):
    """Set the current player's status: confirmed, declined, maybe, or pending."""
    data = request.get_json(silent=True) or {}
    session_id = data.get('sessionId')
    status = data.get('status')

    if not session_id:
        return jsonify({'error': 'Session ID is required'}), 400

    if not is_on_roster(session_id, profile.id):
        return jsonify({'error': 'You must join this session before confirming'}), 403

    try:
        confirmation_repository.set_status(session_id, profile.id, status)
    except InvalidStatusError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to update confirmation for profile {profile.id}: {e}")
        return jsonify({'error': f'Failed to update confirmation: {str(e)}'}), 500

    return jsonify({
        'success': True,
        'status': status,
        'message': STATUS_MESSAGES.get(status, "Your attendance status has been updated."),
    })


@pickup_bp.route('/pickup/<int:session_id>')
def session_detail(session_id):
    """
    Session details. Reminder emails link here with ?confirm=yes or ?confirm=no,
    which records the logged-in player's answer before returning the session.
    """
    pickup_session = db.session.get(PickupSession, session_id)
    if not pickup_session:
        return jsonify({'error': 'Session not found'}), 404

    payload = {'session': pickup_session.to_dict(), 'confirmation': None}

    profile = get_current_profile()
    answer = request.args.get('confirm')
    if answer is not None:
        if not profile:
            return jsonify({'error': 'Authentication required'}), 401
        if answer not in EMAIL_LINK_STATUSES:
            return jsonify({'error': 'confirm must be yes or no'}), 400
        if not is_on_roster(session_id, profile.id):
            return jsonify({'error': 'You must join this session before confirming'}), 403
        try:
            confirmation_repository.set_status(session_id, profile.id, EMAIL_LINK_STATUSES[answer])
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to record confirm link for profile {profile.id}: {e}")
            return jsonify({'error': f'Failed to update confirmation: {str(e)}'}), 500

    if profile:
        payload['confirmation'] = confirmation_payload(
            confirmation_repository.get_state(session_id, profile.id)
        )

    return jsonify(payload)
