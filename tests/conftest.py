"""Shared fixtures: an app on in-memory SQLite and a reminder config with push enabled."""

import pytest

from pickup import create_app, db
from pickup.config import ReminderConfig, PushCredentials
from pickup.models import Sport


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def reminder_config():
    return ReminderConfig(
        push_credentials=PushCredentials(public_key='test-public', private_key='test-private'),
        email_credentials=None,
        auth_secret='test-cron-secret',
        service_key='test-service-key',
        app_url='https://pickup.test',
        delivery_timeout=5,
    )


@pytest.fixture
def sport(app):
    soccer = Sport(name='Soccer')
    db.session.add(soccer)
    db.session.commit()
    return soccer
