import pytest
from flask_login import FlaskLoginClient

from wedding_app import create_app, db
from wedding_app.config import Config
from wedding_app.models import User
from wedding_app.modules.notification.services.push_queue import push_queue


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'connect_args': {'check_same_thread': False}
    }
    WTF_CSRF_ENABLED = False
    SCHEDULER_ENABLED = False
    PUSH_DELIVERY_MODE = 'sync'
    VAPID_PUBLIC_KEY = ''
    VAPID_PRIVATE_KEY = ''
    VAPID_SUBJECT = 'mailto:support@weddingplanner.com'
    SYSTEM_TIMEZONE = 'Asia/Seoul'
    LOG_LEVEL = 'WARNING'
    LOG_DIR = None


class CsrfTestConfig(TestConfig):
    """Production CSRF setting."""
    WTF_CSRF_ENABLED = True


class AsyncPushTestConfig(TestConfig):
    """Production push handoff: background executor."""
    PUSH_DELIVERY_MODE = 'async'
    PUSH_QUEUE_WORKERS = 1


def _running_app(config_class):
    app = create_app(config_class)
    app.test_client_class = FlaskLoginClient
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app():
    yield from _running_app(TestConfig)


@pytest.fixture
def csrf_app():
    yield from _running_app(CsrfTestConfig)


@pytest.fixture
def async_push_app():
    app = create_app(AsyncPushTestConfig)
    with app.app_context():
        yield app
        push_queue.shutdown()
        db.session.remove()
        db.drop_all()


@pytest.fixture
def make_user(app):
    counter = {'n': 0}

    def _make_user(name='사용자', couple_id=None, is_admin=False):
        counter['n'] += 1
        user = User(
            name=name,
            email=f'user{counter["n"]}@example.com',
            couple_id=couple_id,
            is_admin=is_admin,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def couple(make_user):
    """Two partners sharing couple_id 1."""
    bride = make_user('민지', couple_id=1)
    groom = make_user('준호', couple_id=1)
    return bride, groom


@pytest.fixture
def vapid_configured(app):
    app.config['VAPID_PUBLIC_KEY'] = 'BPublicKeyForTests'
    app.config['VAPID_PRIVATE_KEY'] = 'private-key-for-tests'
    return app
