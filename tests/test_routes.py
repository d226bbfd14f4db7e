"""Tests for the HTTP endpoints."""

import json
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

from pywebpush import WebPushException
from sqlalchemy.exc import SQLAlchemyError

from pickup import db
from pickup.models import PickupSession, PushSubscription, SessionConfirmation
from tests.helpers import make_profile, make_session, add_player, add_subscription, login


class TestHealth:
    def test_health(self, client):
        assert client.get('/health').get_json()['status'] == 'healthy'


class TestReminderTrigger:
    URL = '/jobs/send-session-reminders'

    def test_rejects_anonymous_caller(self, client):
        response = client.post(self.URL)
        assert response.status_code == 401
        assert response.get_json() == {'error': 'Unauthorized'}

    def test_rejects_wrong_secret(self, client):
        response = client.post(self.URL, headers={'X-Cron-Secret': 'guess'})
        assert response.status_code == 401

    def test_unset_secret_never_authorizes(self, app, client):
        app.config['CRON_SECRET'] = None
        app.config['SERVICE_ROLE_KEY'] = None
        response = client.post(self.URL, headers={'X-Cron-Secret': '', 'Authorization': 'Bearer '})
        assert response.status_code == 401

    def test_accepts_cron_secret(self, app, client):
        session = make_session(hours_from_now=30, now=datetime.utcnow())
        add_player(session, make_profile('Pat'))

        response = client.post(self.URL, headers={'X-Cron-Secret': 'test-cron-secret'})

        body = response.get_json()
        assert response.status_code == 200
        assert body['success'] is True
        assert body['results']['sessions_processed'] == 1
        assert body['results']['confirmations_created'] == 1
        assert SessionConfirmation.query.count() == 1

    def test_accepts_service_key(self, client):
        response = client.post(self.URL, headers={'Authorization': 'Bearer test-service-key'})
        assert response.status_code == 200
        assert response.get_json()['results']['sessions_processed'] == 0

    def test_query_failure_returns_500(self, client):
        with patch(
            'pickup.routes.jobs.SessionReminderJob.run',
            return_value={'success': False, 'error': 'database unavailable'},
        ):
            response = client.post(self.URL, headers={'X-Cron-Secret': 'test-cron-secret'})

        assert response.status_code == 500
        assert response.get_json() == {'success': False, 'error': {'message': 'database unavailable'}}


class TestConfirmApi:
    def test_requires_login(self, client):
        assert client.get('/api/pickup/confirm?sessionId=1').status_code == 401
        assert client.post('/api/pickup/confirm', json={'sessionId': 1, 'status': 'confirmed'}).status_code == 401

    def test_get_defaults_to_pending(self, app, client):
        session = make_session()
        player = make_profile('Pat')
        login(client, player)

        response = client.get(f'/api/pickup/confirm?sessionId={session.id}')

        assert response.get_json() == {'status': 'pending', 'confirmedAt': None, 'reminderSentAt': None}

    def test_update_requires_roster_entry(self, app, client):
        session = make_session()
        login(client, make_profile('Pat'))

        response = client.post('/api/pickup/confirm', json={'sessionId': session.id, 'status': 'confirmed'})

        assert response.status_code == 403

    def test_update_rejects_invalid_status(self, app, client):
        session = make_session()
        player = make_profile('Pat')
        add_player(session, player)
        login(client, player)

        response = client.post('/api/pickup/confirm', json={'sessionId': session.id, 'status': 'yes'})

        assert response.status_code == 400

    def test_confirm_then_read_back(self, app, client):
        session = make_session()
        player = make_profile('Pat')
        add_player(session, player)
        login(client, player)

        response = client.post('/api/pickup/confirm', json={'sessionId': session.id, 'status': 'confirmed'})
        assert response.get_json()['message'] == "Great! You're confirmed for this session."

        state = client.get(f'/api/pickup/confirm?sessionId={session.id}').get_json()
        assert state['status'] == 'confirmed'
        assert state['confirmedAt'] is not None


class TestEmailDeepLink:
    def test_confirm_yes_and_no(self, app, client):
        session = make_session()
        player = make_profile('Pat')
        add_player(session, player)
        login(client, player)

        body = client.get(f'/pickup/{session.id}?confirm=yes').get_json()
        assert body['confirmation']['status'] == 'confirmed'

        body = client.get(f'/pickup/{session.id}?confirm=no').get_json()
        assert body['confirmation']['status'] == 'declined'
        assert body['confirmation']['confirmedAt'] is None

    def test_anonymous_view_has_no_confirmation(self, app, client):
        session = make_session()
        body = client.get(f'/pickup/{session.id}').get_json()
        assert body['session']['title'] == '5v5 Turf'
        assert body['confirmation'] is None

    def test_confirm_link_requires_login(self, app, client):
        session = make_session()
        assert client.get(f'/pickup/{session.id}?confirm=yes').status_code == 401

    def test_unknown_session(self, client):
        assert client.get('/pickup/999').status_code == 404


class TestPushSubscribe:
    def subscription(self, endpoint='https://push.example.com/abc', auth='auth-1'):
        return {'subscription': {'endpoint': endpoint, 'keys': {'p256dh': 'key-1', 'auth': auth}}}

    def test_upserts_by_endpoint(self, app, client):
        player = make_profile('Pat')
        login(client, player)

        assert client.post('/api/push/subscribe', json=self.subscription()).get_json() == {'success': True}
        client.post('/api/push/subscribe', json=self.subscription(auth='auth-2'))

        subscriptions = PushSubscription.query.all()
        assert len(subscriptions) == 1
        assert subscriptions[0].auth == 'auth-2'
        assert subscriptions[0].profile_id == player.id

    def test_multiple_devices(self, app, client):
        login(client, make_profile('Pat'))
        client.post('/api/push/subscribe', json=self.subscription(endpoint='https://push.example.com/phone'))
        client.post('/api/push/subscribe', json=self.subscription(endpoint='https://push.example.com/laptop'))
        assert PushSubscription.query.count() == 2

    def test_rejects_incomplete_subscription(self, app, client):
        login(client, make_profile('Pat'))
        response = client.post('/api/push/subscribe', json={'subscription': {'endpoint': 'https://x'}})
        assert response.status_code == 400


class TestSessionsApi:
    def test_host_recurring_session(self, app, client, sport):
        host = make_profile('Hana')
        login(client, host)
        start = (datetime.utcnow() + timedelta(days=3)).replace(microsecond=0)

        response = client.post('/api/pickup', json={
            'title': 'Thursday Hoops',
            'sportId': 'Soccer',
            'startTime': start.isoformat(),
            'location': 'Court 3',
            'playerLimit': '10',
            'fee': '5.00',
            'isRecurring': True,
        })

        body = response.get_json()
        assert response.status_code == 201
        assert body['isRecurring'] is True
        assert body['sport']['name'] == 'Soccer'
        assert body['_count']['players'] == 1
        assert PickupSession.query.count() == 4

        listed = client.get('/api/pickup').get_json()
        assert [s['id'] for s in listed] == [body['id']]

    def test_host_requires_title_and_time(self, app, client):
        login(client, make_profile('Hana'))
        assert client.post('/api/pickup', json={'startTime': '2030-01-01T10:00:00'}).status_code == 400
        assert client.post('/api/pickup', json={'title': 'x', 'startTime': 'soon'}).status_code == 400

    def test_timezone_aware_start_is_stored_as_utc(self, app, client):
        login(client, make_profile('Hana'))
        response = client.post('/api/pickup', json={'title': 'x', 'startTime': '2030-01-01T10:00:00+02:00'})
        session = db.session.get(PickupSession, response.get_json()['id'])
        assert session.start_time == datetime(2030, 1, 1, 8, 0)

    def test_join_full_session(self, app, client):
        session = make_session(player_limit=1)
        add_player(session, make_profile('Pat'))
        login(client, make_profile('Lee'))

        response = client.post('/api/pickup/join', json={'sessionId': session.id})

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Session is full'}

    def test_join_twice(self, app, client):
        session = make_session(player_limit=5)
        login(client, make_profile('Lee'))

        assert client.post('/api/pickup/join', json={'sessionId': session.id}).get_json() == {'success': True}
        assert client.post('/api/pickup/join', json={'sessionId': session.id}).get_json() == {'message': 'Already joined'}

    def test_join_unknown_session(self, app, client):
        login(client, make_profile('Lee'))
        assert client.post('/api/pickup/join', json={'sessionId': 999}).status_code == 404

    def test_host_rejects_wrongly_typed_fields(self, app, client):
        login(client, make_profile('Hana'))

        numeric_start = client.post('/api/pickup', json={'title': 'x', 'startTime': 1234})
        assert numeric_start.status_code == 400
        assert numeric_start.get_json() == {'error': 'startTime must be an ISO 8601 timestamp'}

        list_limit = client.post('/api/pickup', json={
            'title': 'x', 'startTime': '2030-01-01T10:00:00', 'playerLimit': [1],
        })
        assert list_limit.status_code == 400
        assert list_limit.get_json() == {'error': 'playerLimit and fee must be numbers'}

        numeric_title = client.post('/api/pickup', json={'title': 42, 'startTime': '2030-01-01T10:00:00'})
        assert numeric_title.status_code == 400
        assert PickupSession.query.count() == 0

    def test_join_database_failure_returns_json_500(self, app, client):
        session = make_session(player_limit=5)
        login(client, make_profile('Lee'))

        with patch('pickup.routes.pickup.join_session', side_effect=SQLAlchemyError('connection lost')):
            response = client.post('/api/pickup/join', json={'sessionId': session.id})

        assert response.status_code == 500
        assert 'connection lost' in response.get_json()['error']


class TestUnexpectedFailures:
    def test_confirm_update_failure_returns_json_500(self, app, client):
        session = make_session()
        player = make_profile('Pat')
        add_player(session, player)
        login(client, player)

        with patch(
            'pickup.routes.pickup.confirmation_repository.set_status',
            side_effect=SQLAlchemyError('connection lost'),
        ):
            response = client.post('/api/pickup/confirm', json={'sessionId': session.id, 'status': 'confirmed'})

        assert response.status_code == 500
        assert 'connection lost' in response.get_json()['error']

    def test_confirm_link_failure_returns_json_500(self, app, client):
        session = make_session()
        player = make_profile('Pat')
        add_player(session, player)
        login(client, player)

        with patch(
            'pickup.routes.pickup.confirmation_repository.set_status',
            side_effect=SQLAlchemyError('connection lost'),
        ):
            response = client.get(f'/pickup/{session.id}?confirm=yes')

        assert response.status_code == 500
        assert 'connection lost' in response.get_json()['error']

    def test_inverted_lead_time_window_returns_failure_json(self, app, client):
        app.config['REMINDER_MIN_LEAD_HOURS'] = 50

        response = client.post('/jobs/send-session-reminders', headers={'X-Cron-Secret': 'test-cron-secret'})

        body = response.get_json()
        assert response.status_code == 500
        assert body['success'] is False
        assert 'minimum must not exceed maximum' in body['error']['message']


class TestEditSession:
    def hosted_session(self, host, hours_from_now=72):
        session = make_session(hours_from_now=hours_from_now, now=datetime.utcnow())
        session.host_id = host.id
        db.session.commit()
        add_player(session, host, role='OWNER')
        return session

    def test_requires_login(self, app, client):
        session = make_session()
        assert client.patch(f'/api/pickup/{session.id}', json={'location': 'Gym'}).status_code == 401

    def test_unknown_session(self, app, client):
        login(client, make_profile('Hana'))
        assert client.patch('/api/pickup/999', json={'location': 'Gym'}).status_code == 404

    def test_only_host_can_edit(self, app, client):
        host = make_profile('Hana')
        player = make_profile('Pat')
        session = self.hosted_session(host)
        add_player(session, player)
        login(client, player)

        response = client.patch(f'/api/pickup/{session.id}', json={'location': 'Gym'})

        assert response.status_code == 403
        assert db.session.get(PickupSession, session.id).location == 'Silver Lake Meadow'

    def test_no_changes(self, app, client):
        host = make_profile('Hana')
        session = self.hosted_session(host)
        login(client, host)

        response = client.patch(f'/api/pickup/{session.id}', json={})

        assert response.get_json() == {'message': 'No changes provided'}

    def test_rejects_bad_start_time(self, app, client):
        host = make_profile('Hana')
        session = self.hosted_session(host)
        login(client, host)

        assert client.patch(f'/api/pickup/{session.id}', json={'startTime': 1234}).status_code == 400
        assert client.patch(f'/api/pickup/{session.id}', json={'startTime': 'later'}).status_code == 400

    @patch("pickup.services.push_service.webpush")
    def test_location_change_notifies_other_players(self, mock_webpush, app, client):
        app.config['VAPID_PUBLIC_KEY'] = 'test-public'
        app.config['VAPID_PRIVATE_KEY'] = 'test-private'
        host = make_profile('Hana')
        pat = make_profile('Pat')
        lee = make_profile('Lee')
        session = self.hosted_session(host)
        add_player(session, pat)
        add_player(session, lee)
        for profile in (host, pat, lee):
            add_subscription(profile)
        login(client, host)

        response = client.patch(f'/api/pickup/{session.id}', json={
            'location': 'Court 3', 'latitude': 34.1, 'longitude': -118.2,
        })

        assert response.status_code == 200
        assert response.get_json()['session']['location'] == 'Court 3'
        endpoints = sorted(c.kwargs['subscription_info']['endpoint'] for c in mock_webpush.call_args_list)
        assert endpoints == sorted([f'https://push.example.com/{pat.id}', f'https://push.example.com/{lee.id}'])
        payload = json.loads(mock_webpush.call_args.kwargs['data'])
        assert payload['title'] == 'LOCATION UPDATE'
        assert payload['body'] == 'New Location for 5v5 Turf: Court 3'
        assert payload['data']['url'] == f'/pickup/{session.id}'

    @patch("pickup.services.push_service.webpush")
    def test_gone_subscription_is_removed_after_edit(self, mock_webpush, app, client):
        app.config['VAPID_PUBLIC_KEY'] = 'test-public'
        app.config['VAPID_PRIVATE_KEY'] = 'test-private'
        response_410 = MagicMock()
        response_410.status_code = 410
        mock_webpush.side_effect = WebPushException("Push failed: 410", response=response_410)
        host = make_profile('Hana')
        pat = make_profile('Pat')
        session = self.hosted_session(host)
        add_player(session, pat)
        add_subscription(pat)
        login(client, host)

        response = client.patch(f'/api/pickup/{session.id}', json={'startTime': '2030-01-01T10:00:00+02:00'})

        assert response.status_code == 200
        assert db.session.get(PickupSession, session.id).start_time == datetime(2030, 1, 1, 8, 0)
        assert PushSubscription.query.filter_by(profile_id=pat.id).count() == 0
