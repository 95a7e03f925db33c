"""
Event Handlers for Notification Module.

Listens to domain signals and creates notifications accordingly, so the
expense/venue/checklist/schedule/admin modules never import notification
code. A failing handler is logged; it does not undo the mutation that
published the signal.
"""
from flask import current_app

from ...core.signals import (
    announcement_published,
    checklist_item_due,
    couple_activity_recorded,
    expense_recorded,
)


@expense_recorded.connect
def on_expense_recorded(sender, **kwargs):
    """
    Realtime budget crossing check.

    Expected kwargs:
        - couple_id: int
        - previous_total: int (spent before the change)
        - current_total: int (spent after the change)
        - total_budget: int
    """
    from .services import NotificationService

    couple_id = kwargs.get('couple_id')
    if not couple_id:
        return

    try:
        NotificationService.check_budget_after_expense(
            couple_id,
            kwargs.get('previous_total', 0),
            kwargs.get('current_total', 0),
            kwargs.get('total_budget', 0),
        )
    except Exception as e:
        current_app.logger.error(f"[Notification] Budget check failed for couple {couple_id}: {e}", exc_info=True)


@couple_activity_recorded.connect
def on_couple_activity(sender, **kwargs):
    """
    Tell the partner about a change.

    Expected kwargs:
        - user_id: int (actor)
        - couple_id: int
        - activity_type: 'venue' | 'expense' | 'checklist' | 'schedule'
        - action: 'add' | 'update' | 'delete'
        - item_name: str (optional)
    """
    from .services import NotificationService

    user_id = kwargs.get('user_id')
    couple_id = kwargs.get('couple_id')
    if not user_id or not couple_id:
        return

    try:
        NotificationService.notify_partner_of_activity(
            user_id,
            couple_id,
            kwargs.get('activity_type'),
            kwargs.get('action'),
            kwargs.get('item_name'),
        )
    except Exception as e:
        current_app.logger.error(f"[Notification] Partner activity notification failed: {e}", exc_info=True)


@checklist_item_due.connect
def on_checklist_item_due(sender, **kwargs):
    from .services import NotificationService

    user_id = kwargs.get('user_id')
    if not user_id:
        return

    try:
        NotificationService.notify_checklist_due(
            user_id,
            kwargs.get('item_id'),
            kwargs.get('item_title', ''),
            kwargs.get('due_date'),
            bool(kwargs.get('is_overdue', False)),
        )
    except Exception as e:
        current_app.logger.error(f"[Notification] Checklist reminder failed for user {user_id}: {e}", exc_info=True)


@announcement_published.connect
def on_announcement_published(sender, **kwargs):
    from .services import NotificationService

    try:
        NotificationService.send_announcement_to_all_users(
            kwargs.get('announcement_id'),
            kwargs.get('title', ''),
            kwargs.get('content', ''),
            bool(kwargs.get('is_important', False)),
        )
    except Exception as e:
        current_app.logger.error(f"[Notification] Announcement fan-out failed: {e}", exc_info=True)
