"""
Notification Store.

Durable per-user feed: newest first, read/unread state, bulk operations and
the "already sent today" lookups the sweeps use for dedup-by-day.
"""
from datetime import date
from typing import Iterable, List, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ....extensions import db
from ....utils.time_utils import day_bounds_utc, local_today, utcnow
from ..models import Notification


def _commit(action: str, user_id) -> None:
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(f"[Notification] {action} failed for user {user_id}")
        raise


class NotificationStore:

    @staticmethod
    def get_user_notifications(user_id: int, page: int = 1, limit: int = 20) -> Tuple[List[Notification], int]:
        """One page of the feed (newest first) and the total row count."""
        query = Notification.query.filter_by(user_id=user_id)
        total = query.count()
        items = query.order_by(Notification.created_at.desc()) \
            .limit(limit).offset((page - 1) * limit).all()
        return items, total

    @staticmethod
    def get_unread_count(user_id: int) -> int:
        return Notification.query.filter_by(user_id=user_id, is_read=False).count()

    @staticmethod
    def get(notification_id: str, user_id: int) -> Optional[Notification]:
        return Notification.query.filter_by(id=notification_id, user_id=user_id).first()

    @staticmethod
    def mark_as_read(notification_id: str, user_id: int) -> Optional[Notification]:
        notif = NotificationStore.get(notification_id, user_id)
        if notif is None:
            return None
        notif.mark_read()
        _commit('Mark as read', user_id)
        return notif

    @staticmethod
    def mark_all_as_read(user_id: int) -> int:
        updated = Notification.query.filter_by(user_id=user_id, is_read=False) \
            .update({'is_read': True, 'read_at': utcnow()})
        _commit('Mark all as read', user_id)
        return updated

    @staticmethod
    def delete(notification_id: str, user_id: int) -> bool:
        deleted = Notification.query.filter_by(id=notification_id, user_id=user_id) \
            .delete(synchronize_session=False)
        _commit('Delete', user_id)
        return bool(deleted)

    @staticmethod
    def delete_all(user_id: int) -> int:
        deleted = Notification.query.filter_by(user_id=user_id).delete(synchronize_session=False)
        _commit('Delete all', user_id)
        return deleted

    @staticmethod
    def exists_today(user_ids, types: Iterable, dedup_key: str = None, day: date = None) -> bool:
        """
        True when any of ``user_ids`` already has a notification of one of
        ``types`` for the local day ``day``.

        With a dedup_key the match is on the recorded (dedup_key, dedup_date);
        without one it is on created_at falling inside that day.
        """
        if isinstance(user_ids, int):
            user_ids = [user_ids]
        day = day or local_today()
        query = Notification.query.filter(
            Notification.user_id.in_(list(user_ids)),
            Notification.type.in_([getattr(t, 'value', t) for t in types]),
        )
        if dedup_key is not None:
            query = query.filter(Notification.dedup_key == dedup_key, Notification.dedup_date == day)
        else:
            start, end = day_bounds_utc(day)
            query = query.filter(Notification.created_at >= start, Notification.created_at < end)
        return db.session.query(query.exists()).scalar()
