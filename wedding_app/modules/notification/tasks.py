"""
Scheduled notification sweeps.

Each sweep walks every eligible user, asks the pure detectors whether a
notification is due and relies on the store's per-day lookup, so running a
sweep twice on the same day creates nothing the second time.
The scheduler calls the ``scheduled_*`` wrappers, which supply the app context.
"""
from datetime import date, datetime, time
from typing import Optional

from flask import current_app
from sqlalchemy import func, or_

from ...extensions import db, scheduler
from ...models import BudgetSetting, CoupleProfile, Expense, User
from ...utils.time_utils import local_now, local_today
from .logics.detectors import (
    calculate_budget_percentage,
    calculate_days_left,
    check_budget_threshold,
    should_send_daily,
    should_send_milestone,
)
from .models import NotificationPreference
from .schemas import BudgetCrossing, NotificationType
from .services import NotificationService, NotificationStore
from .services.notification_service import get_couple_member_ids

BUDGET_TYPES = (NotificationType.BUDGET_WARNING, NotificationType.BUDGET_EXCEEDED)
DEFAULT_PREFERRED_TIME = time(9, 0)


def _upcoming_weddings(today: date):
    """(user_id, wedding_date) for every user whose wedding is today or later."""
    return db.session.query(User.user_id, CoupleProfile.wedding_date) \
        .join(CoupleProfile, CoupleProfile.couple_id == User.couple_id) \
        .filter(CoupleProfile.wedding_date.isnot(None), CoupleProfile.wedding_date >= today) \
        .all()


def run_dday_milestone_sweep(today: Optional[date] = None) -> int:
    """D-100/30/7/1/Day notifications; returns how many were created."""
    today = today or local_today()
    sent_count = 0

    for user_id, wedding_date in _upcoming_weddings(today):
        days_left = calculate_days_left(wedding_date, today)
        dedup_key = f'dday_milestone:{days_left}'
        already_sent = NotificationStore.exists_today(
            user_id, [NotificationType.DDAY_MILESTONE], dedup_key=dedup_key, day=today
        )
        if not should_send_milestone(days_left, already_sent):
            continue
        if NotificationService.notify_dday_milestone(user_id, days_left, wedding_date, day=today):
            sent_count += 1

    current_app.logger.info(f"[Sweep] D-day milestone sweep for {today}: {sent_count} sent")
    return sent_count


def run_dday_daily_sweep(now: Optional[datetime] = None) -> int:
    """
    Daily "D-n" line for users with the daily preference on (users without a
    preference row count as on), from their preferred hour onward.
    """
    now = now or local_now()
    today = now.date()
    sent_count = 0

    rows = db.session.query(User.user_id, CoupleProfile.wedding_date, NotificationPreference.preferred_time) \
        .join(CoupleProfile, CoupleProfile.couple_id == User.couple_id) \
        .outerjoin(NotificationPreference, NotificationPreference.user_id == User.user_id) \
        .filter(
            CoupleProfile.wedding_date.isnot(None),
            CoupleProfile.wedding_date >= today,
            or_(NotificationPreference.user_id.is_(None), NotificationPreference.dday_daily.is_(True)),
        ) \
        .all()

    for user_id, wedding_date, preferred_time in rows:
        days_left = calculate_days_left(wedding_date, today)
        already_sent = NotificationStore.exists_today(
            user_id, [NotificationType.DDAY_DAILY], dedup_key='dday_daily', day=today
        )
        if not should_send_daily(
            days_left,
            digest_enabled=True,
            already_sent_today=already_sent,
            current_hour=now.hour,
            preferred_hour=(preferred_time or DEFAULT_PREFERRED_TIME).hour,
        ):
            continue
        if NotificationService.notify_dday_daily(user_id, days_left, wedding_date, day=today):
            sent_count += 1

    current_app.logger.info(f"[Sweep] Daily D-day sweep at {now:%Y-%m-%d %H:%M}: {sent_count} sent")
    return sent_count


def run_budget_sweep(today: Optional[date] = None) -> int:
    """
    Level check of every couple with a budget. A couple that already got any
    budget notification today (sweep or write path) is skipped.
    """
    today = today or local_today()
    sent_count = 0

    spent = func.coalesce(func.sum(Expense.amount), 0)
    couples = db.session.query(BudgetSetting.couple_id, BudgetSetting.total_budget, spent) \
        .outerjoin(Expense, Expense.couple_id == BudgetSetting.couple_id) \
        .filter(BudgetSetting.total_budget > 0) \
        .group_by(BudgetSetting.couple_id, BudgetSetting.total_budget) \
        .all()

    for couple_id, total_budget, total_expenses in couples:
        percentage = calculate_budget_percentage(total_budget, total_expenses)
        if check_budget_threshold(percentage) is BudgetCrossing.NONE:
            continue

        member_ids = get_couple_member_ids(couple_id)
        if not member_ids or NotificationStore.exists_today(member_ids, BUDGET_TYPES, day=today):
            continue

        for user_id in member_ids:
            if NotificationService.notify_budget(user_id, percentage, total_budget, total_expenses):
                sent_count += 1

    current_app.logger.info(f"[Sweep] Budget sweep for {today}: {sent_count} sent")
    return sent_count


def run_all_sweeps() -> dict:
    return {
        'dday_milestone': run_dday_milestone_sweep(),
        'dday_daily': run_dday_daily_sweep(),
        'budget': run_budget_sweep(),
    }


def _run_scheduled(sweep):
    with scheduler.app.app_context():
        try:
            sweep()
        except Exception as exc:
            current_app.logger.error(f"[Sweep] {sweep.__name__} failed: {exc}", exc_info=True)
            db.session.rollback()


def scheduled_dday_milestone_sweep():
    _run_scheduled(run_dday_milestone_sweep)


def scheduled_dday_daily_sweep():
    _run_scheduled(run_dday_daily_sweep)


def scheduled_budget_sweep():
    _run_scheduled(run_budget_sweep)
