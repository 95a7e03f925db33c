"""
Notification content builders.

Pure functions: each turns one typed event into a NotificationContent
(type, title, message, data, link). Copy is Korean, as shown in the app.
"""
from datetime import date, datetime
from typing import Optional, Union

from ..schemas import ActivityAction, ActivityType, NotificationContent, NotificationType
from .detectors import BUDGET_EXCEEDED_THRESHOLD

ANNOUNCEMENT_PREVIEW_LENGTH = 200

MILESTONE_MESSAGES = {
    100: '결혼식까지 100일 남았어요! 💕',
    30: '결혼식까지 한 달 남았어요! 준비 잘 되고 있나요?',
    7: '결혼식까지 일주일! 마지막 점검을 해보세요.',
    1: '내일이 결혼식이에요! 오늘 푹 쉬세요. 💐',
    0: '오늘이 결혼식 날이에요! 축하합니다! 🎊',
}

# (activity, action) -> sentence template; {actor} is the acting partner's name
ACTIVITY_MESSAGES = {
    ActivityType.VENUE: {
        ActivityAction.ADD: '{actor}님이 새 식장을 추가했어요',
        ActivityAction.UPDATE: '{actor}님이 식장 정보를 수정했어요',
        ActivityAction.DELETE: '{actor}님이 식장을 삭제했어요',
    },
    ActivityType.EXPENSE: {
        ActivityAction.ADD: '{actor}님이 새 지출을 추가했어요',
        ActivityAction.UPDATE: '{actor}님이 지출 정보를 수정했어요',
        ActivityAction.DELETE: '{actor}님이 지출을 삭제했어요',
    },
    ActivityType.CHECKLIST: {
        ActivityAction.ADD: '{actor}님이 체크리스트 항목을 추가했어요',
        ActivityAction.UPDATE: '{actor}님이 체크리스트를 완료했어요',
        ActivityAction.DELETE: '{actor}님이 체크리스트 항목을 삭제했어요',
    },
    ActivityType.SCHEDULE: {
        ActivityAction.ADD: '{actor}님이 새 일정을 추가했어요',
        ActivityAction.UPDATE: '{actor}님이 일정을 수정했어요',
        ActivityAction.DELETE: '{actor}님이 일정을 삭제했어요',
    },
}

ACTIVITY_LINKS = {
    ActivityType.VENUE: '/venues',
    ActivityType.EXPENSE: '/budget',
    ActivityType.CHECKLIST: '/checklist',
    ActivityType.SCHEDULE: '/schedule',
}


def dday_title(days_left: int) -> str:
    return 'D-Day' if days_left == 0 else f'D-{days_left}'


def build_budget_notification(percentage: float, total_budget, total_expenses) -> NotificationContent:
    """Exceeded above 100%, warning otherwise; the detector decides whether to call this."""
    is_exceeded = percentage > BUDGET_EXCEEDED_THRESHOLD
    if is_exceeded:
        notification_type = NotificationType.BUDGET_EXCEEDED
        title = '예산 초과! 💸'
        message = f'예산을 {percentage - 100:.1f}% 초과했어요. 지출을 점검해보세요.'
    else:
        notification_type = NotificationType.BUDGET_WARNING
        title = '예산 경고 ⚠️'
        message = f'예산의 {percentage:.1f}%를 사용했어요. 남은 예산을 확인해보세요.'

    return NotificationContent(
        type=notification_type,
        title=title,
        message=message,
        data={
            'percentage': percentage,
            'totalBudget': total_budget,
            'totalExpenses': total_expenses,
        },
        link='/budget',
    )


def build_dday_milestone(days_left: int, wedding_date: Union[date, datetime, str]) -> Optional[NotificationContent]:
    """None for any day outside the milestone set."""
    message = MILESTONE_MESSAGES.get(days_left)
    if message is None:
        return None
    return NotificationContent(
        type=NotificationType.DDAY_MILESTONE,
        title=dday_title(days_left),
        message=message,
        data={'daysLeft': days_left, 'weddingDate': _date_str(wedding_date)},
        link='/',
    )


def build_dday_daily(days_left: int, wedding_date: Union[date, datetime, str]) -> NotificationContent:
    if days_left == 0:
        message = '오늘이 결혼식 날이에요! 🎊'
    else:
        message = f'결혼식까지 {days_left}일 남았어요 💕'
    return NotificationContent(
        type=NotificationType.DDAY_DAILY,
        title=dday_title(days_left),
        message=message,
        data={'daysLeft': days_left, 'weddingDate': _date_str(wedding_date)},
        link='/',
    )


def build_couple_activity(actor_name: str, activity_type, action, item_name: str = None) -> NotificationContent:
    """
    Partner activity line, e.g. "민지님이 새 식장을 추가했어요: 그랜드홀".

    Raises ValueError for an unknown activity type or action.
    """
    activity_type = ActivityType(activity_type)
    action = ActivityAction(action)

    message = ACTIVITY_MESSAGES[activity_type][action].format(actor=actor_name)
    if item_name:
        message = f'{message}: {item_name}'

    return NotificationContent(
        type=NotificationType.COUPLE_ACTIVITY,
        title='파트너 활동',
        message=message,
        data={
            'actorName': actor_name,
            'activityType': activity_type.value,
            'action': action.value,
            'itemName': item_name,
        },
        link=ACTIVITY_LINKS[activity_type],
    )


def build_checklist_due(item_title: str, due_date, is_overdue: bool = False) -> NotificationContent:
    if is_overdue:
        notification_type = NotificationType.CHECKLIST_OVERDUE
        title = '마감일 초과! ⏰'
        message = f'"{item_title}" 항목의 마감일이 지났어요.'
    else:
        notification_type = NotificationType.CHECKLIST_DUE
        title = '마감일 임박 📋'
        message = f'"{item_title}" 항목의 마감일이 내일이에요.'

    return NotificationContent(
        type=notification_type,
        title=title,
        message=message,
        data={'itemTitle': item_title, 'dueDate': _date_str(due_date), 'isOverdue': is_overdue},
        link='/checklist',
    )


def build_schedule_reminder(event_title: str, event_date) -> NotificationContent:
    return NotificationContent(
        type=NotificationType.SCHEDULE_REMINDER,
        title='일정 알림 📅',
        message=f'내일 "{event_title}" 일정이 있어요.',
        data={'eventTitle': event_title, 'eventDate': _date_str(event_date)},
        link='/schedule',
    )


def build_announcement(title: str, content: str, announcement_id=None, is_important: bool = False) -> NotificationContent:
    content = content or ''
    if len(content) > ANNOUNCEMENT_PREVIEW_LENGTH:
        message = content[:ANNOUNCEMENT_PREVIEW_LENGTH] + '...'
    else:
        message = content

    return NotificationContent(
        type=NotificationType.ANNOUNCEMENT,
        title=title,
        message=message,
        data={'announcementId': announcement_id, 'isImportant': is_important},
        link='/announcements',
    )


def _date_str(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()[:10]
    return str(value)
