"""
Preference Store.

One NotificationPreference row per user, created lazily with defaults.
"""
from datetime import datetime, time
from typing import Any, Dict

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ....core.error_handlers import ValidationError
from ....extensions import db
from ....utils.db_utils import dialect_insert
from ..models import NotificationPreference


class PreferenceService:

    @staticmethod
    def get_or_create(user_id: int) -> NotificationPreference:
        """
        Return the user's preferences, inserting the defaults if absent.

        The insert is an ON CONFLICT DO NOTHING upsert so two concurrent first
        reads cannot create two rows or fail on the primary key.
        """
        pref = db.session.get(NotificationPreference, user_id)
        if pref is not None:
            return pref

        try:
            insert = dialect_insert(NotificationPreference)
            if insert is not None:
                stmt = insert.values(user_id=user_id).on_conflict_do_nothing(
                    index_elements=[NotificationPreference.user_id]
                )
                db.session.execute(stmt)
            else:
                db.session.add(NotificationPreference(user_id=user_id))
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(f"[Preference] Could not create defaults for user {user_id}")
            raise

        return db.session.get(NotificationPreference, user_id, populate_existing=True)

    @staticmethod
    def update(user_id: int, changes: Dict[str, Any]) -> NotificationPreference:
        """
        Partial update: keys that are absent or None keep their stored value.
        Unknown keys are ignored.
        """
        values = PreferenceService._clean(changes or {})
        pref = PreferenceService.get_or_create(user_id)
        if not values:
            return pref

        for name, value in values.items():
            setattr(pref, name, value)

        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception(f"[Preference] Update failed for user {user_id}")
            raise

        current_app.logger.debug(f"[Preference] User {user_id} updated {sorted(values)}")
        return pref

    @staticmethod
    def _clean(changes: Dict[str, Any]) -> Dict[str, Any]:
        values = {}
        errors = {}
        for name in NotificationPreference.FLAG_FIELDS:
            value = changes.get(name)
            if value is None:
                continue
            if not isinstance(value, bool):
                errors[name] = 'must be a boolean'
                continue
            values[name] = value

        preferred_time = changes.get('preferred_time')
        if preferred_time is not None:
            try:
                values['preferred_time'] = parse_preferred_time(preferred_time)
            except ValueError:
                errors['preferred_time'] = 'must be HH:MM or HH:MM:SS'

        if errors:
            raise ValidationError('Invalid notification preferences', errors=errors)
        return values


def parse_preferred_time(value) -> time:
    if isinstance(value, time):
        return value
    text = str(value).strip()
    for fmt in ('%H:%M:%S', '%H:%M'):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time: {value!r}")
