"""Couple profile and budget tables (owned by the couple/expense subsystems)."""

from sqlalchemy.sql import func

from ..extensions import db


class CoupleProfile(db.Model):
    __tablename__ = 'couple_profiles'

    couple_id = db.Column(db.Integer, primary_key=True)
    wedding_date = db.Column(db.Date, nullable=True)


class BudgetSetting(db.Model):
    __tablename__ = 'budget_settings'

    couple_id = db.Column(db.Integer, primary_key=True)
    # Amounts are whole won
    total_budget = db.Column(db.BigInteger, nullable=False, default=0)


class Expense(db.Model):
    __tablename__ = 'expenses'

    id = db.Column(db.Integer, primary_key=True)
    couple_id = db.Column(db.Integer, nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.BigInteger, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())
