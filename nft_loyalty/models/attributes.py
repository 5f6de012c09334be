"""
Loyalty attribute vector model.

One row per user. derived_level is written only by the atomic update path in
AttributeStore, always from evaluate_level() over the other fields.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any

from ..extensions import db
from ..services.level_rules import CategoricalTier, MIN_LEVEL, MAX_LEVEL


@dataclass(frozen=True)
class AttributeVector:
    """Immutable snapshot of a user's attribute vector."""
    user_id: str
    points: int = 0
    activity_count: int = 0
    cumulative_spend: Decimal = Decimal('0')
    categorical_tier: CategoricalTier = CategoricalTier.STANDARD
    derived_level: int = MIN_LEVEL
    last_updated: Optional[datetime] = None

    def evolve(self, **changes) -> 'AttributeVector':
        """Copy with some fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'points': self.points,
            'activity_count': self.activity_count,
            'cumulative_spend': str(self.cumulative_spend),
            'categorical_tier': self.categorical_tier.value,
            'derived_level': self.derived_level,
            'last_updated': self.last_updated.isoformat() if self.last_updated else None,
        }


class LoyaltyAttributes(db.Model):
    """
    Persisted attribute vector.

    version is a SQLAlchemy version counter: every UPDATE is issued as
    ``... WHERE version = <read version>`` so a write based on a stale read
    fails with StaleDataError instead of silently overwriting.
    """
    __tablename__ = 'loyalty_attributes'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(100), nullable=False, unique=True, index=True)

    points = db.Column(db.Integer, nullable=False, default=0)
    activity_count = db.Column(db.Integer, nullable=False, default=0)  # flights taken
    cumulative_spend = db.Column(db.Numeric(20, 2), nullable=False, default=Decimal('0'))
    categorical_tier = db.Column(db.String(20), nullable=False, default=CategoricalTier.STANDARD.value)
    derived_level = db.Column(db.Integer, nullable=False, default=MIN_LEVEL)

    version = db.Column(db.Integer, nullable=False)

    last_updated = db.Column(db.DateTime, default=datetime.utcnow)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __mapper_args__ = {'version_id_col': version}

    __table_args__ = (
        db.CheckConstraint('points >= 0', name='non_negative_points'),
        db.CheckConstraint('activity_count >= 0', name='non_negative_activity'),
        db.CheckConstraint('cumulative_spend >= 0', name='non_negative_spend'),
        db.CheckConstraint(
            f'derived_level >= {MIN_LEVEL} AND derived_level <= {MAX_LEVEL}',
            name='valid_derived_level'
        ),
    )

    def __repr__(self):
        return f'<LoyaltyAttributes {self.user_id} L{self.derived_level}>'

    def snapshot(self) -> AttributeVector:
        return AttributeVector(
            user_id=self.user_id,
            points=self.points or 0,
            activity_count=self.activity_count or 0,
            cumulative_spend=Decimal(str(self.cumulative_spend or 0)),
            categorical_tier=CategoricalTier.parse(self.categorical_tier or CategoricalTier.STANDARD.value),
            derived_level=self.derived_level or MIN_LEVEL,
            last_updated=self.last_updated,
        )

    def apply(self, vector: AttributeVector) -> None:
        """Copy every mutable field from a snapshot onto the row."""
        self.points = vector.points
        self.activity_count = vector.activity_count
        self.cumulative_spend = vector.cumulative_spend
        self.categorical_tier = vector.categorical_tier.value
        self.derived_level = vector.derived_level
        self.last_updated = vector.last_updated

    def to_dict(self):
        data = self.snapshot().to_dict()
        data['created_at'] = self.created_at.isoformat() if self.created_at else None
        return data
