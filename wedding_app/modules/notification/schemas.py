from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class NotificationType(str, Enum):
    """Closed set of notification kinds stored in ``notifications.type``."""

    DDAY_MILESTONE = 'dday_milestone'
    DDAY_DAILY = 'dday_daily'
    SCHEDULE_REMINDER = 'schedule_reminder'
    CHECKLIST_DUE = 'checklist_due'
    CHECKLIST_OVERDUE = 'checklist_overdue'
    BUDGET_WARNING = 'budget_warning'
    BUDGET_EXCEEDED = 'budget_exceeded'
    COUPLE_ACTIVITY = 'couple_activity'
    ANNOUNCEMENT = 'announcement'


class NotificationCategory(str, Enum):
    """Preference switches; the value is the column on NotificationPreference."""

    DDAY = 'dday_enabled'
    DDAY_DAILY = 'dday_daily'
    SCHEDULE = 'schedule_enabled'
    CHECKLIST = 'checklist_enabled'
    BUDGET = 'budget_enabled'
    COUPLE = 'couple_enabled'
    ANNOUNCEMENT = 'announcement_enabled'


class BudgetCrossing(str, Enum):
    NONE = 'none'
    WARNING = 'warning'
    EXCEEDED = 'exceeded'


class ActivityType(str, Enum):
    VENUE = 'venue'
    EXPENSE = 'expense'
    CHECKLIST = 'checklist'
    SCHEDULE = 'schedule'


class ActivityAction(str, Enum):
    ADD = 'add'
    UPDATE = 'update'
    DELETE = 'delete'


@dataclass(frozen=True)
class NotificationContent:
    """Title/message/payload built for one event, ready for the dispatcher."""
    type: NotificationType
    title: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    link: Optional[str] = None


@dataclass
class NotificationDTO:
    """Represents a notification sent to a user."""
    id: str
    user_id: int
    type: str
    title: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    link: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None


@dataclass
class PushPayload:
    """
    Payload delivered to the client service worker.

    The serialized shape ``{title, body, icon, badge, tag, data: {url, ...}}``
    is read by deployed service workers; keep it stable.
    """
    title: str
    body: str
    icon: Optional[str] = None
    badge: Optional[str] = None
    tag: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self, default_icon: str = None, default_badge: str = None) -> Dict[str, Any]:
        data = dict(self.data or {})
        data.setdefault('url', '/')
        return {
            'title': self.title,
            'body': self.body,
            'icon': self.icon or default_icon,
            'badge': self.badge or default_badge,
            'tag': self.tag,
            'data': data,
        }


@dataclass
class PushResult:
    success_count: int = 0
    failed_count: int = 0
    removed_count: int = 0

    def __add__(self, other: 'PushResult') -> 'PushResult':
        return PushResult(
            success_count=self.success_count + other.success_count,
            failed_count=self.failed_count + other.failed_count,
            removed_count=self.removed_count + other.removed_count,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            'success': self.success_count,
            'failed': self.failed_count,
            'removed': self.removed_count,
        }
