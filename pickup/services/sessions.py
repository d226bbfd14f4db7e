"""
Hosting, editing and joining pickup sessions.

A recurring session is stored as one row per week, all sharing a series_id.
"""

import uuid
from datetime import datetime, timedelta

from pickup import db
from pickup.models import PickupSession, SessionPlayer, Sport
from pickup.models.session_player import ROLE_OWNER, ROLE_PLAYER
from pickup.services.notifications import NotificationMessage

RECURRING_OCCURRENCES = 4
RECURRING_INTERVAL_DAYS = 7


class SessionFullError(ValueError):
    """Raised when a session already has player_limit players."""


def expand_series(template: dict, occurrence_count: int, interval_days: int = RECURRING_INTERVAL_DAYS) -> list:
    """
    Build one PickupSession per occurrence from a template.

    Args:
        template: PickupSession column values; 'start_time' is the first occurrence
        occurrence_count: Number of sessions to build (1 for a one-off)
        interval_days: Days between consecutive occurrences

    Returns:
        List of unsaved PickupSession objects. When occurrence_count > 1 they
        share a fresh series_id and are marked recurring.
    """
    if occurrence_count < 1:
        raise ValueError("occurrence_count must be at least 1")

    recurring = occurrence_count > 1
    series_id = str(uuid.uuid4()) if recurring else None
    first_start = template['start_time']

    sessions = []
    for i in range(occurrence_count):
        values = dict(template)
        values['start_time'] = first_start + timedelta(days=i * interval_days)
        values['is_recurring'] = recurring
        values['series_id'] = series_id
        sessions.append(PickupSession(**values))
    return sessions


def resolve_sport_id(sport):
    """Accept a sport id or a sport name (case-insensitive)."""
    if sport is None or sport == '':
        return None
    if isinstance(sport, int) or str(sport).isdigit():
        return int(sport)
    match = Sport.query.filter(db.func.lower(Sport.name) == str(sport).lower()).first()
    return match.id if match else None


def create_session(template: dict, host_id=None, is_recurring: bool = False) -> list:
    """
    Create a session, or four weekly sessions when recurring.

    The host is added to every occurrence's roster as OWNER.

    Returns:
        The created sessions, first occurrence first.
    """
    occurrences = RECURRING_OCCURRENCES if is_recurring else 1
    template = dict(template, host_id=host_id)
    sessions = expand_series(template, occurrences)

    for session in sessions:
        db.session.add(session)
    db.session.flush()  # Get the IDs

    if host_id:
        for session in sessions:
            db.session.add(SessionPlayer(session_id=session.id, profile_id=host_id, role=ROLE_OWNER))

    db.session.commit()
    return sessions


def join_session(session: PickupSession, profile_id) -> bool:
    """
    Add a player to a session's roster.

    Returns:
        True if the player was added, False if they were already on the roster.

    Raises:
        SessionFullError: if the session has reached its player limit
    """
    existing = SessionPlayer.query.filter_by(session_id=session.id, profile_id=profile_id).first()
    if existing:
        return False

    if session.player_limit and session.players.count() >= session.player_limit:
        raise SessionFullError("Session is full")

    db.session.add(SessionPlayer(session_id=session.id, profile_id=profile_id, role=ROLE_PLAYER))
    db.session.commit()
    return True


def list_upcoming_sessions(now: datetime = None) -> list:
    """Future sessions by start time, with each recurring series collapsed to its nearest occurrence."""
    now = now or datetime.utcnow()
    sessions = PickupSession.query.filter(
        PickupSession.start_time >= now
    ).order_by(PickupSession.start_time.asc()).all()

    seen_series = set()
    upcoming = []
    for session in sessions:
        if session.is_recurring and session.series_id:
            if session.series_id in seen_series:
                continue
            seen_series.add(session.series_id)
        upcoming.append(session)
    return upcoming


class NotHostError(PermissionError):
    """Raised when someone other than the host edits a session."""


def format_update_time(start_time: datetime) -> str:
    """e.g. 'Oct 24, 06:30 PM'"""
    return f"{start_time.strftime('%b')} {start_time.day}, {start_time.strftime('%I:%M %p')}"


def build_update_message(session: PickupSession, location_changed: bool, time_changed: bool) -> NotificationMessage:
    """Push message telling players what the host changed."""
    if location_changed and time_changed:
        kind, body = 'GAME_UPDATE', f"New Location & Time for {session.title}"
    elif location_changed:
        kind, body = 'LOCATION_UPDATE', f"New Location for {session.title}: {session.location}"
    elif time_changed:
        kind, body = 'TIME_UPDATE', f"New Time for {session.title}: {format_update_time(session.start_time)}"
    else:
        kind, body = 'GAME_UPDATE', f"Details updated for {session.title}"

    return NotificationMessage(
        title=kind.replace('_', ' '),
        body=body,
        url=f"/pickup/{session.id}",
        session_id=session.id,
        action=kind.lower(),
    )


def update_session_details(session: PickupSession, editor_id, location=None, latitude=None, longitude=None,
                           start_time: datetime = None):
    """
    Apply a host's location and/or start time edit.

    Location, latitude and longitude change together. Returns the update
    message for the roster, or None when nothing was changed.

    Raises:
        NotHostError: if editor_id is not the session's host
    """
    if session.host_id != editor_id:
        raise NotHostError("Only the host can edit this session")

    if not location and start_time is None:
        return None

    if location:
        session.location = location
        session.latitude = latitude
        session.longitude = longitude
    if start_time is not None:
        session.start_time = start_time
    db.session.commit()

    return build_update_message(session, bool(location), start_time is not None)


def notify_players_of_update(session: PickupSession, message: NotificationMessage, push_channel) -> dict:
    """Push an update to every player on the roster except the host."""
    results = {'push_notifications_sent': 0, 'subscriptions_removed': 0, 'errors': []}

    entries = session.players.filter(SessionPlayer.profile_id != session.host_id).order_by(SessionPlayer.id).all()
    for entry in entries:
        report = push_channel.deliver(message, entry.profile)
        results['push_notifications_sent'] += report.sent
        results['subscriptions_removed'] += report.removed
        results['errors'].extend(report.errors)

    return results
