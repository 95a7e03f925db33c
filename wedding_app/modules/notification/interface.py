"""
Public API of the notification module for other modules.

Prefer publishing a signal from ``wedding_app.core.signals``; call these
directly when the caller needs the result (e.g. an admin action reporting how
many users were notified).
"""
from typing import Any, Dict, Optional

from .schemas import BudgetCrossing, NotificationDTO, PushPayload, PushResult
from .services import NotificationDispatcher, NotificationService, PushService


def send_notification(
    user_id: int,
    type: str,
    title: str,
    message: str,
    data: Optional[Dict[str, Any]] = None,
    link: Optional[str] = None,
) -> Optional[NotificationDTO]:
    """Create a notification (feed + push). None when the user's preferences suppress it."""
    notif = NotificationDispatcher.create(user_id, type, title, message, data, link)
    if notif is None:
        return None
    return NotificationDTO(
        id=notif.id,
        user_id=notif.user_id,
        type=notif.type,
        title=notif.title,
        message=notif.message,
        data=notif.data or {},
        link=notif.link,
        is_read=notif.is_read,
        created_at=notif.created_at,
        read_at=notif.read_at,
    )


def check_budget_after_expense(couple_id: int, previous_total, current_total, total_budget) -> BudgetCrossing:
    return NotificationService.check_budget_after_expense(couple_id, previous_total, current_total, total_budget)


def notify_partner_of_activity(actor_user_id: int, couple_id: int, activity_type: str, action: str,
                               item_name: str = None) -> bool:
    return NotificationService.notify_partner_of_activity(actor_user_id, couple_id, activity_type, action, item_name)


def send_announcement(announcement_id, title: str, content: str, is_important: bool = False) -> int:
    """Notify every non-admin user; returns how many notifications were created."""
    return NotificationService.send_announcement_to_all_users(announcement_id, title, content, is_important)


def send_push(user_id: int, title: str, body: str, url: str = '/') -> PushResult:
    """Push only, no feed entry."""
    return PushService.send(user_id, PushPayload(title=title, body=body, data={'url': url}))
