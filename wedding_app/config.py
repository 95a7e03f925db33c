# File: wedding_app/config.py
# Application configuration, read from the environment (.env supported).

import os

from dotenv import load_dotenv

load_dotenv()

# Project root: wedding_app/ sits directly under it.
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))

# Default SQLite database under database/ at the project root
DATABASE_PATH = os.path.join(BASE_DIR, "database", "wedding_planner.db")


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Configuration for the wedding planner notification service."""

    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY:
        # Fallback for development, though env is preferred
        SECRET_KEY = 'dev-secret-key-replace-in-production'

    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI') or f'sqlite:///{DATABASE_PATH}'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
    }
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Calendar day boundaries for "today" (dedup, D-day, sweeps)
    SYSTEM_TIMEZONE = os.environ.get('SYSTEM_TIMEZONE', 'Asia/Seoul')

    # Notification feed paging
    NOTIFICATIONS_PER_PAGE = 20
    NOTIFICATIONS_MAX_PER_PAGE = 100

    # VAPID keys for Web Push. Push is disabled unless both keys are set.
    VAPID_PUBLIC_KEY = os.environ.get('VAPID_PUBLIC_KEY', '')
    VAPID_PRIVATE_KEY = os.environ.get('VAPID_PRIVATE_KEY', '')
    VAPID_SUBJECT = os.environ.get('VAPID_SUBJECT', 'mailto:support@weddingplanner.com')

    PUSH_TTL_SECONDS = int(os.environ.get('PUSH_TTL_SECONDS', 86400))
    PUSH_TIMEOUT_SECONDS = float(os.environ.get('PUSH_TIMEOUT_SECONDS', 10))
    PUSH_FANOUT_WORKERS = int(os.environ.get('PUSH_FANOUT_WORKERS', 4))
    # 'async' hands delivery to a background executor, 'sync' sends inline
    PUSH_DELIVERY_MODE = os.environ.get('PUSH_DELIVERY_MODE', 'async')
    PUSH_QUEUE_WORKERS = int(os.environ.get('PUSH_QUEUE_WORKERS', 2))
    PUSH_DEFAULT_ICON = '/icons/icon-192x192.png'
    PUSH_DEFAULT_BADGE = '/icons/icon-96x96.png'

    # Scheduled sweeps (D-day milestones, daily D-day, budget status)
    SCHEDULER_ENABLED = _env_bool('SCHEDULER_ENABLED', True)
    SCHEDULER_API_ENABLED = False
    NOTIFICATION_SWEEP_HOUR = int(os.environ.get('NOTIFICATION_SWEEP_HOUR', 9))

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR')
    LOG_JSON = _env_bool('LOG_JSON', False)

    @classmethod
    def init_app(cls, app):
        """Create the directories the app writes to."""
        if app.config['SQLALCHEMY_DATABASE_URI'].startswith(f'sqlite:///{BASE_DIR}'):
            os.makedirs(os.path.dirname(DATABASE_PATH), exist_ok=True)
        if app.config.get('LOG_DIR'):
            os.makedirs(app.config['LOG_DIR'], exist_ok=True)
