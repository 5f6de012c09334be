"""
Issued loyalty token record.

The token itself lives on-chain; this row only records what the issuer
reported back. token_uri points at the dynamic metadata endpoint so the
token's appearance follows the user's level without re-minting.
"""
from datetime import datetime
from ..extensions import db


class LoyaltyToken(db.Model):
    __tablename__ = 'loyalty_tokens'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(100), nullable=False, unique=True)

    token_id = db.Column(db.String(100), nullable=False, unique=True)
    transaction_hash = db.Column(db.String(100))
    token_uri = db.Column(db.String(500), nullable=False)

    minted_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<LoyaltyToken {self.token_id} -> {self.user_id}>'

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'token_id': self.token_id,
            'transaction_hash': self.transaction_hash,
            'token_uri': self.token_uri,
            'minted_at': self.minted_at.isoformat() if self.minted_at else None,
        }
