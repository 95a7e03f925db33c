"""Database models shared with the rest of the wedding planner.

These tables belong to the couple/expense subsystems; only the columns the
notification engine reads are mapped here.
"""

from ..extensions import db

from .user import User
from .couple import BudgetSetting, CoupleProfile, Expense

__all__ = [
    'db',
    'User',
    'CoupleProfile',
    'BudgetSetting',
    'Expense',
]
