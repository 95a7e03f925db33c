from .dispatcher import NotificationDispatcher
from .notification_service import NotificationService
from .notification_store import NotificationStore
from .preference_service import PreferenceService
from .push_service import PushService

__all__ = [
    'NotificationDispatcher',
    'NotificationService',
    'NotificationStore',
    'PreferenceService',
    'PushService',
]
