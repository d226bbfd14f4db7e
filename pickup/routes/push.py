from flask import Blueprint, request, jsonify, current_app

from pickup import db
from pickup.models import PushSubscription
from pickup.routes.pickup import profile_required

push_bp = Blueprint('push', __name__, url_prefix='/api/push')


@push_bp.route('/subscribe', methods=['POST'])
@profile_required
def subscribe(profile):
    """
    Save a browser push subscription for the logged-in profile.

    JSON body: {"subscription": {"endpoint": ..., "keys": {"p256dh": ..., "auth": ...}}}
    Re-subscribing the same endpoint updates the existing row.
    """
    data = request.get_json(silent=True) or {}
    subscription = data.get('subscription') or {}
    keys = subscription.get('keys') or {}

    if not subscription.get('endpoint') or not keys.get('p256dh') or not keys.get('auth'):
        return jsonify({'error': 'Invalid data'}), 400

    try:
        PushSubscription.upsert(
            profile_id=profile.id,
            endpoint=subscription['endpoint'],
            p256dh=keys['p256dh'],
            auth=keys['auth'],
        )
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Subscription save error for profile {profile.id}: {e}")
        return jsonify({'error': str(e)}), 500

    return jsonify({'success': True})
