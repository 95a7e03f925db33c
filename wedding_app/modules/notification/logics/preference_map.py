"""
Notification type → preference switch.

Every NotificationType must appear in TYPE_CATEGORY; a missing entry fails at
import so a new type cannot silently bypass the user's preferences.
"""
from typing import Dict

from ..schemas import NotificationCategory, NotificationType

TYPE_CATEGORY: Dict[NotificationType, NotificationCategory] = {
    NotificationType.DDAY_MILESTONE: NotificationCategory.DDAY,
    NotificationType.DDAY_DAILY: NotificationCategory.DDAY_DAILY,
    NotificationType.SCHEDULE_REMINDER: NotificationCategory.SCHEDULE,
    NotificationType.CHECKLIST_DUE: NotificationCategory.CHECKLIST,
    NotificationType.CHECKLIST_OVERDUE: NotificationCategory.CHECKLIST,
    NotificationType.BUDGET_WARNING: NotificationCategory.BUDGET,
    NotificationType.BUDGET_EXCEEDED: NotificationCategory.BUDGET,
    NotificationType.COUPLE_ACTIVITY: NotificationCategory.COUPLE,
    NotificationType.ANNOUNCEMENT: NotificationCategory.ANNOUNCEMENT,
}

_unmapped = set(NotificationType) - set(TYPE_CATEGORY)
if _unmapped:
    raise RuntimeError(
        "Notification types without a preference category: "
        + ", ".join(sorted(t.value for t in _unmapped))
    )


def category_for(notification_type) -> NotificationCategory:
    """Preference category gating ``notification_type`` (enum or its string value)."""
    return TYPE_CATEGORY[NotificationType(notification_type)]
