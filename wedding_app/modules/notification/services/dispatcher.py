"""
Notification Gate / Dispatcher.

The only writer of notifications: preference gate, persist, then hand push
delivery to the background queue. Push problems never reach the caller;
storage problems always do.
"""
from datetime import date
from typing import Any, Dict, Iterable, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ....extensions import db
from ....utils.time_utils import local_today
from ..logics.preference_map import category_for
from ..models import Notification
from ..schemas import NotificationContent, NotificationType, PushPayload
from .preference_service import PreferenceService
from .push_queue import push_queue


class NotificationDispatcher:

    @staticmethod
    def create(
        user_id: int,
        type,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        link: Optional[str] = None,
        dedup_key: Optional[str] = None,
        dedup_date: Optional[date] = None,
    ) -> Optional[Notification]:
        """
        Create one notification for ``user_id``.

        Returns None when the user's preference for this type is off (nothing
        is written, no push is attempted) or when ``dedup_key`` was already
        used for this user today.
        """
        notification_type = NotificationType(type)
        pref = PreferenceService.get_or_create(user_id)

        category = category_for(notification_type)
        if not pref.is_enabled(category):
            current_app.logger.debug(
                f"[Notification] {notification_type.value} suppressed for user {user_id} ({category.value} off)"
            )
            return None

        notif = Notification(
            user_id=user_id,
            type=notification_type.value,
            title=title,
            message=message,
            data=data or {},
            link=link,
            dedup_key=dedup_key,
            dedup_date=(dedup_date or local_today()) if dedup_key else None,
        )
        db.session.add(notif)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            if dedup_key is None:
                current_app.logger.exception(f"[Notification] Could not store notification for user {user_id}")
                raise
            # Lost the race against a concurrent sweep for the same key/day
            current_app.logger.info(f"[Notification] Duplicate '{dedup_key}' for user {user_id} skipped")
            return None
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(f"[Notification] Could not store notification for user {user_id}")
            raise

        if pref.push_enabled is not False:
            NotificationDispatcher._hand_off_push(notif)

        return notif

    @staticmethod
    def create_from_content(user_id: int, content: NotificationContent,
                            dedup_key: str = None, dedup_date: date = None) -> Optional[Notification]:
        return NotificationDispatcher.create(
            user_id=user_id,
            type=content.type,
            title=content.title,
            message=content.message,
            data=content.data,
            link=content.link,
            dedup_key=dedup_key,
            dedup_date=dedup_date,
        )

    @staticmethod
    def create_bulk(
        user_ids: Iterable[int],
        type,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        link: Optional[str] = None,
    ) -> int:
        """Fan-out to many users; returns how many were actually created."""
        created_count = 0
        for user_id in user_ids:
            if NotificationDispatcher.create(user_id, type, title, message, data, link) is not None:
                created_count += 1
        return created_count

    @staticmethod
    def _hand_off_push(notif: Notification) -> None:
        payload = PushPayload(
            title=notif.title,
            body=notif.message,
            tag=notif.type,
            data={
                'url': notif.link or '/',
                'notificationId': notif.id,
                'type': notif.type,
            },
        )
        try:
            push_queue.submit(notif.user_id, payload)
        except Exception as exc:
            current_app.logger.error(f"[Notification] Push handoff failed for user {notif.user_id}: {exc}")
