"""Tests for push subscriptions and delivery."""
import json
from types import SimpleNamespace

import pytest
import requests
from pywebpush import WebPushException
from sqlalchemy import insert

from wedding_app import db
from wedding_app.models import User
from wedding_app.modules.notification.models import PushSubscription
from wedding_app.modules.notification.schemas import PushPayload, PushResult
from wedding_app.modules.notification.services import NotificationDispatcher, PushService
from wedding_app.modules.notification.services import push_service
from wedding_app.modules.notification.services.push_queue import push_queue


def _subscribe(user_id, n):
    for i in range(n):
        PushService.subscribe(user_id, {
            'endpoint': f'https://push.example/{user_id}/{i}',
            'keys': {'p256dh': f'p256dh-{i}', 'auth': f'auth-{i}'},
        })


def _fake_webpush(gone=(), timeouts=(), errors=()):
    """Answers per endpoint suffix: 410 for ``gone``, timeout for ``timeouts``, 500 for ``errors``."""
    calls = []

    def fake(subscription_info, data, **kwargs):
        calls.append({'subscription_info': subscription_info, 'data': data, **kwargs})
        index = int(subscription_info['endpoint'].rsplit('/', 1)[1])
        if index in gone:
            raise WebPushException('Push failed: 410 Gone', response=SimpleNamespace(status_code=410, text='gone'))
        if index in timeouts:
            raise requests.Timeout('read timed out')
        if index in errors:
            raise WebPushException('Push failed: 500', response=SimpleNamespace(status_code=500, text='oops'))
        return SimpleNamespace(status_code=201)

    fake.calls = calls
    return fake


class TestSubscriptions:

    def test_subscribe_is_upsert(self, make_user):
        user = make_user()
        PushService.subscribe(user.user_id, {'endpoint': 'https://push.example/a', 'keys': {'p256dh': 'old', 'auth': 'x'}})
        PushService.subscribe(user.user_id, {'endpoint': 'https://push.example/a', 'keys': {'p256dh': 'new', 'auth': 'y'}},
                              user_agent='Mozilla/5.0')

        subs = PushService.get_subscriptions(user.user_id)
        assert len(subs) == 1
        assert subs[0].to_subscription_info() == {
            'endpoint': 'https://push.example/a',
            'keys': {'p256dh': 'new', 'auth': 'y'},
        }
        assert subs[0].user_agent == 'Mozilla/5.0'

    def test_same_endpoint_for_two_users(self, make_user):
        first, second = make_user(), make_user()
        for user in (first, second):
            PushService.subscribe(user.user_id, {'endpoint': 'https://push.example/shared',
                                                 'keys': {'p256dh': 'p', 'auth': 'a'}})
        assert PushSubscription.query.count() == 2

    def test_unsubscribe_is_idempotent(self, make_user):
        user = make_user()
        _subscribe(user.user_id, 1)

        assert PushService.unsubscribe(user.user_id, f'https://push.example/{user.user_id}/0') is True
        assert PushService.unsubscribe(user.user_id, f'https://push.example/{user.user_id}/0') is False
        assert PushService.get_subscriptions(user.user_id) == []


class TestPublicKey:

    def test_unconfigured(self, app):
        assert PushService.is_configured() is False
        assert PushService.get_public_key() is None

    def test_configured(self, vapid_configured):
        assert PushService.get_public_key() == 'BPublicKeyForTests'


class TestSend:

    def test_unconfigured_is_noop(self, make_user, monkeypatch):
        user = make_user()
        _subscribe(user.user_id, 2)
        fake = _fake_webpush()
        monkeypatch.setattr(push_service, 'webpush', fake)

        result = PushService.send(user.user_id, PushPayload(title='t', body='b'))

        assert result == PushResult()
        assert result.to_dict() == {'success': 0, 'failed': 0, 'removed': 0}
        assert fake.calls == []

    def test_no_subscriptions(self, make_user, vapid_configured, monkeypatch):
        user = make_user()
        monkeypatch.setattr(push_service, 'webpush', _fake_webpush())
        assert PushService.send(user.user_id, PushPayload(title='t', body='b')) == PushResult()

    def test_gone_subscriptions_are_pruned(self, make_user, vapid_configured, monkeypatch):
        user = make_user()
        _subscribe(user.user_id, 5)
        monkeypatch.setattr(push_service, 'webpush', _fake_webpush(gone={1, 3}))

        result = PushService.send(user.user_id, PushPayload(title='t', body='b'))

        assert result.success_count == 3
        assert result.failed_count == 2
        assert result.removed_count == 2
        remaining = {sub.endpoint for sub in PushService.get_subscriptions(user.user_id)}
        assert remaining == {f'https://push.example/{user.user_id}/{i}' for i in (0, 2, 4)}

    def test_timeouts_and_server_errors_keep_subscription(self, make_user, vapid_configured, monkeypatch):
        user = make_user()
        _subscribe(user.user_id, 3)
        monkeypatch.setattr(push_service, 'webpush', _fake_webpush(timeouts={0}, errors={2}))

        result = PushService.send(user.user_id, PushPayload(title='t', body='b'))

        assert (result.success_count, result.failed_count, result.removed_count) == (1, 2, 0)
        assert len(PushService.get_subscriptions(user.user_id)) == 3

    def test_vapid_options_passed_to_transport(self, make_user, vapid_configured, monkeypatch):
        user = make_user()
        _subscribe(user.user_id, 1)
        fake = _fake_webpush()
        monkeypatch.setattr(push_service, 'webpush', fake)

        PushService.send(user.user_id, PushPayload(title='D-7', body='일주일', tag='dday_milestone'))

        call, = fake.calls
        assert call['vapid_private_key'] == 'private-key-for-tests'
        assert call['vapid_claims'] == {'sub': 'mailto:support@weddingplanner.com'}
        assert call['ttl'] == 86400
        body = json.loads(call['data'])
        assert body['body'] == '일주일'
        assert body['data'] == {'url': '/'}
        assert body['badge'] == '/icons/icon-96x96.png'

    def test_send_bulk_sums_results(self, make_user, vapid_configured, monkeypatch):
        first, second = make_user(), make_user()
        _subscribe(first.user_id, 2)
        _subscribe(second.user_id, 1)
        monkeypatch.setattr(push_service, 'webpush', _fake_webpush(gone={1}))

        total = PushService.send_bulk([first.user_id, second.user_id], PushPayload(title='t', body='b'))

        assert total == PushResult(success_count=2, failed_count=1, removed_count=1)


@pytest.mark.parametrize('status_code,removed', [(404, 1), (410, 1), (429, 0)])
def test_gone_status_codes(make_user, vapid_configured, monkeypatch, status_code, removed):
    user = make_user()
    _subscribe(user.user_id, 1)

    def fake(**kwargs):
        raise WebPushException('failed', response=SimpleNamespace(status_code=status_code, text=''))

    monkeypatch.setattr(push_service, 'webpush', fake)
    result = PushService.send(user.user_id, PushPayload(title='t', body='b'))

    assert result.failed_count == 1
    assert result.removed_count == removed


def test_resubscribe_over_row_written_elsewhere(make_user):
    user = make_user()
    db.session.execute(insert(PushSubscription).values(
        user_id=user.user_id, endpoint='https://push.example/tab', p256dh_key='old', auth_key='old',
    ))
    db.session.commit()

    sub = PushService.subscribe(user.user_id, {'endpoint': 'https://push.example/tab',
                                               'keys': {'p256dh': 'new', 'auth': 'new'}})

    assert sub.p256dh_key == 'new'
    assert PushSubscription.query.filter_by(user_id=user.user_id).count() == 1


class TestBackgroundDelivery:

    def test_submit_returns_future_with_counts(self, async_push_app, monkeypatch):
        async_push_app.config['VAPID_PUBLIC_KEY'] = 'BPublicKeyForTests'
        async_push_app.config['VAPID_PRIVATE_KEY'] = 'private-key-for-tests'
        member = User(name='민지', email='minji@example.com', couple_id=1)
        db.session.add(member)
        db.session.commit()
        _subscribe(member.user_id, 2)
        fake = _fake_webpush(errors={1})
        monkeypatch.setattr(push_service, 'webpush', fake)

        future = push_queue.submit(member.user_id, PushPayload(title='D-7', body='일주일'))

        assert future is not None
        result = future.result(timeout=10)
        assert result == PushResult(success_count=1, failed_count=1, removed_count=0)
        assert len(fake.calls) == 2

    def test_dispatcher_does_not_wait_for_delivery(self, async_push_app, monkeypatch):
        member = User(name='준호', email='junho@example.com')
        db.session.add(member)
        db.session.commit()
        submitted = []
        original_submit = push_queue.submit

        def recording_submit(user_id, payload):
            future = original_submit(user_id, payload)
            submitted.append(future)
            return future

        monkeypatch.setattr(push_queue, 'submit', recording_submit)

        notif = NotificationDispatcher.create(member.user_id, 'announcement', '공지', '내용')

        assert notif is not None
        future, = submitted
        # Push is not configured here, so the background job is a no-op
        assert future.result(timeout=10) == PushResult()
