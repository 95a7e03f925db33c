"""
Typed notification helpers.

Each helper builds the content with the factory and hands it to the
dispatcher. Helpers that are invoked repeatedly for the same thing (checklist
item, schedule event) apply dedup-by-day before creating anything.
"""
from dataclasses import replace
from typing import List, Optional

from flask import current_app
from sqlalchemy import func

from ....extensions import db
from ....models import BudgetSetting, Expense, User
from ..logics import content_factory
from ..logics.detectors import (
    calculate_budget_percentage,
    detect_threshold_crossing,
    should_send_checklist_reminder,
)
from ..models import Notification
from ..schemas import BudgetCrossing, NotificationType
from .dispatcher import NotificationDispatcher
from .notification_store import NotificationStore

DEFAULT_PARTNER_NAME = '파트너'


class NotificationService:

    # -- budget ---------------------------------------------------------

    @staticmethod
    def notify_budget(user_id: int, percentage: float, total_budget, total_expenses) -> Optional[Notification]:
        content = content_factory.build_budget_notification(percentage, total_budget, total_expenses)
        return NotificationDispatcher.create_from_content(user_id, content)

    @staticmethod
    def check_budget_after_expense(couple_id: int, previous_total, current_total, total_budget) -> BudgetCrossing:
        """
        Write path: notify every user of the couple when this change crossed
        the 80% or 100% line. Staying above a line is silent.
        """
        previous_pct = calculate_budget_percentage(total_budget, previous_total)
        current_pct = calculate_budget_percentage(total_budget, current_total)
        crossing = detect_threshold_crossing(previous_pct, current_pct)
        if crossing is BudgetCrossing.NONE:
            return crossing

        for user_id in get_couple_member_ids(couple_id):
            NotificationService.notify_budget(user_id, current_pct, total_budget, current_total)

        current_app.logger.info(
            f"[Notification] Budget {crossing.value} for couple {couple_id} "
            f"({previous_pct:.1f}% -> {current_pct:.1f}%)"
        )
        return crossing

    @staticmethod
    def check_and_send_budget_notification(couple_id: int, new_expense_amount) -> BudgetCrossing:
        """
        Same as check_budget_after_expense, reading the totals from the budget
        tables. Call after the new expense has been stored.
        """
        budget = db.session.get(BudgetSetting, couple_id)
        if budget is None or not budget.total_budget:
            return BudgetCrossing.NONE

        current_total = db.session.query(func.coalesce(func.sum(Expense.amount), 0)) \
            .filter(Expense.couple_id == couple_id).scalar()
        previous_total = current_total - new_expense_amount

        return NotificationService.check_budget_after_expense(
            couple_id, previous_total, current_total, budget.total_budget
        )

    # -- D-day ----------------------------------------------------------

    @staticmethod
    def notify_dday_milestone(user_id: int, days_left: int, wedding_date, day=None) -> Optional[Notification]:
        content = content_factory.build_dday_milestone(days_left, wedding_date)
        if content is None:
            return None
        return NotificationDispatcher.create_from_content(
            user_id, content, dedup_key=f'dday_milestone:{days_left}', dedup_date=day
        )

    @staticmethod
    def notify_dday_daily(user_id: int, days_left: int, wedding_date, day=None) -> Optional[Notification]:
        content = content_factory.build_dday_daily(days_left, wedding_date)
        return NotificationDispatcher.create_from_content(
            user_id, content, dedup_key='dday_daily', dedup_date=day
        )

    # -- partner activity -------------------------------------------------

    @staticmethod
    def notify_couple_activity(partner_id: int, actor_name: str, activity_type, action,
                               item_name: str = None) -> Optional[Notification]:
        content = content_factory.build_couple_activity(actor_name, activity_type, action, item_name)
        return NotificationDispatcher.create_from_content(partner_id, content)

    @staticmethod
    def notify_partner_of_activity(actor_user_id: int, couple_id: int, activity_type, action,
                                   item_name: str = None) -> bool:
        """Tell the actor's partner(s) about a change. False when nobody was notified."""
        partners = User.query.filter(User.couple_id == couple_id, User.user_id != actor_user_id).all()
        if not partners:
            return False

        actor = db.session.get(User, actor_user_id)
        actor_name = actor.name if actor is not None and actor.name else DEFAULT_PARTNER_NAME

        notified = False
        for partner in partners:
            notif = NotificationService.notify_couple_activity(
                partner.user_id, actor_name, activity_type, action, item_name
            )
            notified = notified or notif is not None
        return notified

    @staticmethod
    def notify_venue_change(user_id: int, couple_id: int, action, venue_name: str = None) -> bool:
        return NotificationService.notify_partner_of_activity(user_id, couple_id, 'venue', action, venue_name)

    @staticmethod
    def notify_expense_change(user_id: int, couple_id: int, action, expense_title: str = None) -> bool:
        return NotificationService.notify_partner_of_activity(user_id, couple_id, 'expense', action, expense_title)

    @staticmethod
    def notify_checklist_change(user_id: int, couple_id: int, action, item_title: str = None) -> bool:
        return NotificationService.notify_partner_of_activity(user_id, couple_id, 'checklist', action, item_title)

    @staticmethod
    def notify_schedule_change(user_id: int, couple_id: int, action, event_title: str = None) -> bool:
        return NotificationService.notify_partner_of_activity(user_id, couple_id, 'schedule', action, event_title)

    # -- checklist / schedule reminders ------------------------------------

    @staticmethod
    def notify_checklist_due(user_id: int, item_id, item_title: str, due_date,
                             is_overdue: bool = False) -> Optional[Notification]:
        """At most one due (or overdue) reminder per item per day."""
        content = content_factory.build_checklist_due(item_title, due_date, is_overdue)
        dedup_key = f'{content.type.value}:{item_id}'
        already_sent = NotificationStore.exists_today(user_id, [content.type], dedup_key=dedup_key)
        if not should_send_checklist_reminder(already_sent):
            return None
        content = replace(content, data={**content.data, 'itemId': item_id})
        return NotificationDispatcher.create_from_content(user_id, content, dedup_key=dedup_key)

    @staticmethod
    def notify_schedule_reminder(user_id: int, event_id, event_title: str, event_date) -> Optional[Notification]:
        content = content_factory.build_schedule_reminder(event_title, event_date)
        dedup_key = f'schedule_reminder:{event_id}'
        if NotificationStore.exists_today(user_id, [NotificationType.SCHEDULE_REMINDER], dedup_key=dedup_key):
            return None
        content = replace(content, data={**content.data, 'eventId': event_id})
        return NotificationDispatcher.create_from_content(user_id, content, dedup_key=dedup_key)

    # -- announcements ----------------------------------------------------

    @staticmethod
    def send_announcement_to_all_users(announcement_id, title: str, content: str,
                                       is_important: bool = False) -> int:
        built = content_factory.build_announcement(title, content, announcement_id, is_important)
        user_ids = [row.user_id for row in User.query.filter(User.is_admin.is_(False)).all()]
        created = NotificationDispatcher.create_bulk(
            user_ids, built.type, built.title, built.message, built.data, built.link
        )
        current_app.logger.info(
            f"[Notification] Announcement {announcement_id} sent to {created}/{len(user_ids)} users"
        )
        return created


def get_couple_member_ids(couple_id: int) -> List[int]:
    rows = User.query.with_entities(User.user_id).filter(User.couple_id == couple_id).all()
    return [row.user_id for row in rows]
