"""Tests for the /api/notifications and /api/push endpoints."""
import pytest

from wedding_app import db
from wedding_app.models import User
from wedding_app.modules.notification.models import Notification, PushSubscription
from wedding_app.modules.notification.services import NotificationDispatcher


@pytest.fixture
def user(make_user):
    return make_user('민지', couple_id=1)


@pytest.fixture
def client(app, user):
    return app.test_client(user=user)


def _seed(user_id, n):
    return [NotificationDispatcher.create(user_id, 'announcement', f'공지 {i}', '내용') for i in range(n)]


class TestAuth:

    def test_requires_login(self, app):
        response = app.test_client().get('/api/notifications/')
        assert response.status_code == 401
        assert response.get_json()['code'] == 'UNAUTHENTICATED'

    def test_public_key_does_not_require_login(self, app):
        response = app.test_client().get('/api/push/vapid-public-key')
        assert response.status_code == 503


class TestFeed:

    def test_list_and_pagination(self, client, user):
        _seed(user.user_id, 3)

        response = client.get('/api/notifications/?page=1&limit=2')
        body = response.get_json()

        assert response.status_code == 200
        assert body['success'] is True
        assert len(body['data']['notifications']) == 2
        assert body['data']['pagination'] == {'page': 1, 'limit': 2, 'total': 3, 'totalPages': 2}

    def test_only_own_notifications(self, client, user, make_user):
        other = make_user('준호', couple_id=1)
        _seed(other.user_id, 2)
        _seed(user.user_id, 1)

        body = client.get('/api/notifications/').get_json()
        assert body['data']['pagination']['total'] == 1

    def test_unread_count_and_mark_read(self, client, user):
        first, _ = _seed(user.user_id, 2)

        assert client.get('/api/notifications/unread-count').get_json()['data'] == {'count': 2}

        response = client.put(f'/api/notifications/{first.id}/read')
        assert response.status_code == 200
        assert response.get_json()['data']['is_read'] is True
        assert response.get_json()['data']['read_at'] is not None
        assert client.get('/api/notifications/unread-count').get_json()['data'] == {'count': 1}

    def test_mark_read_twice_keeps_read_at(self, client, user):
        notif, = _seed(user.user_id, 1)
        first = client.put(f'/api/notifications/{notif.id}/read').get_json()['data']['read_at']
        second = client.put(f'/api/notifications/{notif.id}/read').get_json()['data']['read_at']
        assert first == second

    def test_mark_read_of_someone_else(self, client, make_user):
        other = make_user('준호', couple_id=1)
        notif, = _seed(other.user_id, 1)

        response = client.put(f'/api/notifications/{notif.id}/read')
        assert response.status_code == 404
        assert response.get_json()['code'] == 'NOT_FOUND'

    def test_read_all(self, client, user):
        _seed(user.user_id, 3)
        response = client.put('/api/notifications/read-all')
        assert response.get_json()['data'] == {'updated': 3}
        assert client.get('/api/notifications/unread-count').get_json()['data'] == {'count': 0}

    def test_delete_one_and_all(self, client, user):
        notification_id = _seed(user.user_id, 3)[0].id

        assert client.delete(f'/api/notifications/{notification_id}').status_code == 200
        assert client.delete(f'/api/notifications/{notification_id}').status_code == 404

        response = client.delete('/api/notifications/')
        assert response.get_json()['data'] == {'deleted': 2}
        assert Notification.query.count() == 0

    def test_test_notification(self, client, user):
        response = client.post('/api/notifications/test', json={'type': 'announcement'})
        assert response.status_code == 201
        assert response.get_json()['data']['data']['test'] is True

    def test_test_notification_unknown_type(self, client):
        response = client.post('/api/notifications/test', json={'type': 'birthday'})
        assert response.status_code == 400


class TestPreferences:

    def test_get_defaults(self, client):
        data = client.get('/api/notifications/preferences').get_json()['data']
        assert data['budget_enabled'] is True
        assert data['preferred_time'] == '09:00'

    def test_partial_update(self, client):
        response = client.put('/api/notifications/preferences', json={'budget_enabled': False})
        data = response.get_json()['data']
        assert data['budget_enabled'] is False
        assert data['dday_enabled'] is True

    def test_invalid_update(self, client):
        response = client.put('/api/notifications/preferences', json={'budget_enabled': 'nope'})
        body = response.get_json()
        assert response.status_code == 400
        assert body['success'] is False
        assert body['code'] == 'VALIDATION_ERROR'
        assert 'budget_enabled' in body['details']['errors']

    def test_body_must_be_object(self, client):
        response = client.put('/api/notifications/preferences', json=['budget_enabled'])
        assert response.status_code == 400

    def test_suppressed_test_notification(self, client):
        client.put('/api/notifications/preferences', json={'announcement_enabled': False})
        response = client.post('/api/notifications/test', json={})
        assert response.status_code == 200
        assert 'data' not in response.get_json()
        assert Notification.query.count() == 0


class TestPushEndpoints:

    SUBSCRIPTION = {
        'endpoint': 'https://fcm.googleapis.com/fcm/send/abc',
        'keys': {'p256dh': 'BNcRd', 'auth': 'tBHI'},
    }

    def test_public_key_unconfigured(self, client):
        response = client.get('/api/push/vapid-public-key')
        body = response.get_json()
        assert response.status_code == 503
        assert body['success'] is False
        assert body['details'] == {'publicKey': None}

    def test_public_key_configured(self, client, vapid_configured):
        response = client.get('/api/push/vapid-public-key')
        assert response.get_json()['data'] == {'publicKey': 'BPublicKeyForTests'}

    def test_subscribe_and_unsubscribe(self, client, user):
        response = client.post('/api/push/subscribe', json={'subscription': self.SUBSCRIPTION},
                               headers={'User-Agent': 'pytest-browser'})
        assert response.status_code == 200
        sub, = PushSubscription.query.all()
        assert sub.user_id == user.user_id
        assert sub.user_agent == 'pytest-browser'

        for _ in range(2):
            response = client.delete('/api/push/unsubscribe', json={'endpoint': self.SUBSCRIPTION['endpoint']})
            assert response.status_code == 200
        assert PushSubscription.query.count() == 0

    @pytest.mark.parametrize('payload', [
        {},
        {'subscription': {'endpoint': 'https://push.example/x'}},
        {'subscription': {'endpoint': 'https://push.example/x', 'keys': {'p256dh': 'p'}}},
    ])
    def test_subscribe_validation(self, client, payload):
        assert client.post('/api/push/subscribe', json=payload).status_code == 400

    def test_unsubscribe_requires_endpoint(self, client):
        assert client.delete('/api/push/unsubscribe', json={}).status_code == 400


class TestWithCsrfEnabled:

    @pytest.fixture
    def csrf_client(self, csrf_app):
        member = User(name='민지', email='minji@example.com', couple_id=1)
        db.session.add(member)
        db.session.commit()
        return csrf_app.test_client(user=member), member

    def test_mutating_endpoints_accept_json_without_token(self, csrf_client):
        client, member = csrf_client
        notification_id = _seed(member.user_id, 1)[0].id

        assert client.put(f'/api/notifications/{notification_id}/read').status_code == 200
        assert client.put('/api/notifications/read-all').status_code == 200
        assert client.put('/api/notifications/preferences', json={'budget_enabled': False}).status_code == 200
        assert client.post('/api/notifications/test', json={}).status_code == 201
        assert client.post('/api/push/subscribe',
                           json={'subscription': TestPushEndpoints.SUBSCRIPTION}).status_code == 200
        assert client.delete('/api/push/unsubscribe',
                             json={'endpoint': TestPushEndpoints.SUBSCRIPTION['endpoint']}).status_code == 200
        assert client.delete(f'/api/notifications/{notification_id}').status_code == 200
        assert client.delete('/api/notifications/').status_code == 200

    def test_csrf_rejection_uses_json_envelope(self, csrf_app):
        csrf_app.add_url_rule('/account/rename', 'rename_account', lambda: 'ok', methods=['POST'])

        response = csrf_app.test_client().post('/account/rename', data={'name': '민지'})
        body = response.get_json()

        assert response.status_code == 400
        assert body['success'] is False
        assert body['code'] == 'CSRF_ERROR'
