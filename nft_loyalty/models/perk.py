"""
Brand partner and Perk models.

Perks are maintained by an administrative process; the engine only reads
them. unlock_condition is stored as JSON and parsed by
services.perk_eligibility at evaluation time.
"""
from datetime import datetime
from ..extensions import db


class BrandPartner(db.Model):
    """Partner brand that offers perks (airline, bank, resort...)."""
    __tablename__ = 'brand_partners'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, unique=True)
    brand_type = db.Column(db.String(50))  # airline, banking, finance, hospitality, real_estate
    description = db.Column(db.Text)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    perks = db.relationship('Perk', backref='brand', lazy='dynamic')

    def __repr__(self):
        return f'<BrandPartner {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'brand_type': self.brand_type,
            'description': self.description,
            'is_active': self.is_active,
        }


class Perk(db.Model):
    """
    Reward whose availability is a pure function of the attribute vector.

    A perk without brand_id is a cross-brand perk.
    """
    __tablename__ = 'perks'

    id = db.Column(db.Integer, primary_key=True)
    brand_id = db.Column(db.Integer, db.ForeignKey('brand_partners.id'), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)

    # Structured predicate, e.g. {"type": "min_points", "threshold": 500}
    unlock_condition = db.Column(db.JSON)

    category = db.Column(db.String(100))
    value_type = db.Column(db.String(50), default='discount')  # discount, cashback, upgrade, free_service, priority_access
    value_amount = db.Column(db.Numeric(10, 2))

    is_active = db.Column(db.Boolean, default=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Perk {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'brand_id': self.brand_id,
            'brand_name': self.brand.name if self.brand else None,
            'unlock_condition': self.unlock_condition,
            'category': self.category,
            'value_type': self.value_type,
            'value_amount': float(self.value_amount) if self.value_amount is not None else None,
            'is_active': self.is_active,
        }
