"""User model (owned by the authentication subsystem)."""

from __future__ import annotations

from flask_login import UserMixin
from sqlalchemy.sql import func

from ..extensions import db


class User(UserMixin, db.Model):
    """Application user. Users sharing a ``couple_id`` are partners."""

    __tablename__ = 'users'

    user_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    couple_id = db.Column(db.Integer, nullable=True, index=True)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())

    def get_id(self):
        return str(self.user_id)

    def __repr__(self) -> str:
        return f"<User {self.user_id} couple={self.couple_id}>"
