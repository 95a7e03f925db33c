import uuid
from datetime import time

from sqlalchemy.orm import validates
from sqlalchemy.sql import func

from ...extensions import db
from ...utils.time_utils import utcnow
from .schemas import NotificationCategory, NotificationType


def _new_id():
    return str(uuid.uuid4())


def _isoformat(value):
    return value.isoformat() if value else None


class Notification(db.Model):
    """One entry in a user's notification feed."""
    __tablename__ = 'notifications'
    __table_args__ = (
        # Rows without a dedup_key are never constrained (NULLs are distinct)
        db.UniqueConstraint('user_id', 'dedup_key', 'dedup_date', name='uq_notifications_dedup'),
        db.Index('ix_notifications_user_created', 'user_id', 'created_at'),
        db.Index('ix_notifications_user_unread', 'user_id', 'is_read'),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.Integer, db.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False)

    type = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    # e.g. {'daysLeft': 7, 'weddingDate': '2026-10-25'} or {'percentage': 85.0, ...}
    data = db.Column(db.JSON, nullable=False, default=dict)
    link = db.Column(db.String(255), nullable=True)

    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    read_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Discriminant for dedup-by-day, e.g. 'dday_milestone:7'; dedup_date is the local day
    dedup_key = db.Column(db.String(100), nullable=True)
    dedup_date = db.Column(db.Date, nullable=True)

    @validates('type')
    def _validate_type(self, _key, value):
        return NotificationType(value).value

    def mark_read(self):
        if not self.is_read:
            self.is_read = True
            self.read_at = utcnow()

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'data': self.data or {},
            'link': self.link,
            'is_read': self.is_read,
            'created_at': _isoformat(self.created_at),
            'read_at': _isoformat(self.read_at),
        }


class NotificationPreference(db.Model):
    """Per-user notification switches. Created with defaults on first read."""
    __tablename__ = 'notification_preferences'

    user_id = db.Column(db.Integer, db.ForeignKey('users.user_id', ondelete='CASCADE'), primary_key=True)

    dday_enabled = db.Column(db.Boolean, nullable=False, default=True)
    dday_daily = db.Column(db.Boolean, nullable=False, default=True)
    schedule_enabled = db.Column(db.Boolean, nullable=False, default=True)
    checklist_enabled = db.Column(db.Boolean, nullable=False, default=True)
    budget_enabled = db.Column(db.Boolean, nullable=False, default=True)
    couple_enabled = db.Column(db.Boolean, nullable=False, default=True)
    announcement_enabled = db.Column(db.Boolean, nullable=False, default=True)
    push_enabled = db.Column(db.Boolean, nullable=False, default=True)
    preferred_time = db.Column(db.Time, nullable=False, default=time(9, 0))

    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=utcnow, onupdate=func.now())

    FLAG_FIELDS = tuple(category.value for category in NotificationCategory) + ('push_enabled',)

    def is_enabled(self, category: NotificationCategory) -> bool:
        return getattr(self, category.value) is not False

    def to_dict(self):
        result = {name: getattr(self, name) for name in self.FLAG_FIELDS}
        result['user_id'] = self.user_id
        result['preferred_time'] = self.preferred_time.strftime('%H:%M') if self.preferred_time else None
        result['updated_at'] = _isoformat(self.updated_at)
        return result


class PushSubscription(db.Model):
    """Stores Web Push API subscriptions, one row per (user, endpoint)."""
    __tablename__ = 'push_subscriptions'
    __table_args__ = (
        db.UniqueConstraint('user_id', 'endpoint', name='uq_push_subscriptions_user_endpoint'),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False, index=True)
    endpoint = db.Column(db.String(1024), nullable=False)
    p256dh_key = db.Column(db.String(255), nullable=False)
    auth_key = db.Column(db.String(255), nullable=False)
    user_agent = db.Column(db.String(512), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def to_subscription_info(self):
        """Shape expected by pywebpush."""
        return {
            'endpoint': self.endpoint,
            'keys': {
                'p256dh': self.p256dh_key,
                'auth': self.auth_key,
            }
        }
