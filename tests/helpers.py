"""Factories for building test data."""

from datetime import datetime, timedelta

from pickup import db
from pickup.models import Profile, PickupSession, SessionPlayer, PushSubscription

NOW = datetime(2026, 10, 19, 12, 0)


def make_profile(first_name='Alex', email=None):
    profile = Profile(first_name=first_name, email=email or f'{first_name.lower()}@example.com')
    db.session.add(profile)
    db.session.commit()
    return profile


def make_session(hours_from_now=30, title='5v5 Turf', sport=None, now=NOW, player_limit=None):
    session = PickupSession(
        title=title,
        sport_id=sport.id if sport else None,
        start_time=now + timedelta(hours=hours_from_now),
        location='Silver Lake Meadow',
        player_limit=player_limit,
    )
    db.session.add(session)
    db.session.commit()
    return session


def add_player(session, profile, role='PLAYER'):
    entry = SessionPlayer(session_id=session.id, profile_id=profile.id, role=role)
    db.session.add(entry)
    db.session.commit()
    return entry


def add_subscription(profile, endpoint=None):
    subscription = PushSubscription(
        profile_id=profile.id,
        endpoint=endpoint or f'https://push.example.com/{profile.id}',
        p256dh='p256dh-key',
        auth='auth-key',
    )
    db.session.add(subscription)
    db.session.commit()
    return subscription


def login(client, profile):
    with client.session_transaction() as sess:
        sess['profile_id'] = profile.id
