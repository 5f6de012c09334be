"""
User action history.

Written in the same transaction as the attribute update it describes, so the
history never shows an action whose effect was rolled back.
"""
from datetime import datetime
from ..extensions import db


class UserAction(db.Model):
    """One applied action (or external tier change) for a user."""
    __tablename__ = 'user_actions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(100), nullable=False, index=True)

    action_type = db.Column(db.String(50), nullable=False)  # flight_booking, bank_transaction, tier_update...
    details = db.Column(db.JSON, default=dict)
    points_earned = db.Column(db.Integer, nullable=False, default=0)

    previous_level = db.Column(db.Integer)
    new_level = db.Column(db.Integer)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f'<UserAction {self.id}: {self.action_type} +{self.points_earned} for {self.user_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'action_type': self.action_type,
            'details': self.details,
            'points_earned': self.points_earned,
            'previous_level': self.previous_level,
            'new_level': self.new_level,
            'level_changed': self.previous_level != self.new_level,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
