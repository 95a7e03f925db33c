"""
Event detectors - pure decision functions.

This module contains ONLY pure Python logic.
NO database, NO Flask, NO model dependencies allowed.
Callers pass the previous state (totals, today's already-sent flag) explicitly.
"""
import math
from datetime import date, datetime
from typing import Union

from ..schemas import BudgetCrossing

BUDGET_WARNING_THRESHOLD = 80.0
BUDGET_EXCEEDED_THRESHOLD = 100.0

# Days-until-wedding that get a dedicated milestone notification
MILESTONES = (100, 30, 7, 1, 0)


def calculate_budget_percentage(total_budget, total_spent) -> float:
    """Spent as a percentage of budget; 0 when no budget is set."""
    if not total_budget or total_budget <= 0:
        return 0.0
    return float(total_spent) * 100 / float(total_budget)


def check_budget_threshold(percentage: float) -> BudgetCrossing:
    """
    Level check used by the periodic sweep: where the couple is now,
    regardless of where they were before.
    """
    if percentage > BUDGET_EXCEEDED_THRESHOLD:
        return BudgetCrossing.EXCEEDED
    if percentage > BUDGET_WARNING_THRESHOLD:
        return BudgetCrossing.WARNING
    return BudgetCrossing.NONE


def detect_threshold_crossing(previous_percentage: float, current_percentage: float) -> BudgetCrossing:
    """
    Crossing check used on the write path.

    Fires only on the transition across a line, so adding expenses while
    already above 80% (or 100%) stays silent until the next line is crossed.
    When one change crosses both lines, EXCEEDED wins.

        >>> detect_threshold_crossing(75, 85)
        <BudgetCrossing.WARNING: 'warning'>
        >>> detect_threshold_crossing(85, 90)
        <BudgetCrossing.NONE: 'none'>
    """
    if previous_percentage <= BUDGET_EXCEEDED_THRESHOLD < current_percentage:
        return BudgetCrossing.EXCEEDED
    if previous_percentage <= BUDGET_WARNING_THRESHOLD < current_percentage:
        return BudgetCrossing.WARNING
    return BudgetCrossing.NONE


def detect_budget_crossing(previous_total_spent, current_total_spent, total_budget) -> BudgetCrossing:
    """Crossing check from raw totals."""
    return detect_threshold_crossing(
        calculate_budget_percentage(total_budget, previous_total_spent),
        calculate_budget_percentage(total_budget, current_total_spent),
    )


def calculate_days_left(wedding_date: Union[date, datetime, str], today: date) -> int:
    """
    Whole days from ``today`` to the wedding, both taken at midnight.

    0 on the wedding day, negative once it has passed.
    """
    wedding_day = _normalize_to_date(wedding_date)
    seconds = (datetime.combine(wedding_day, datetime.min.time())
               - datetime.combine(today, datetime.min.time())).total_seconds()
    return math.ceil(seconds / 86400)


def is_milestone(days_left: int) -> bool:
    return days_left in MILESTONES


def should_send_milestone(days_left: int, already_sent_today: bool) -> bool:
    return is_milestone(days_left) and not already_sent_today


def should_send_daily(days_left: int, digest_enabled: bool, already_sent_today: bool,
                      current_hour: int = None, preferred_hour: int = None) -> bool:
    """
    Daily D-day line: once per day for users who opted in, from their
    preferred hour onward.
    """
    if not digest_enabled or already_sent_today or days_left < 0:
        return False
    if current_hour is not None and preferred_hour is not None and current_hour < preferred_hour:
        return False
    return True


def should_send_checklist_reminder(already_sent_today: bool) -> bool:
    """Due/overdue is decided by the checklist owner; only same-day repeats are dropped."""
    return not already_sent_today


def _normalize_to_date(value: Union[date, datetime, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])
