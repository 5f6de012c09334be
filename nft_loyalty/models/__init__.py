"""
Database models for the loyalty engine.
Attribute vectors, perk catalog, action history and issued tokens.
"""
from .attributes import AttributeVector, LoyaltyAttributes
from .perk import BrandPartner, Perk
from .user_action import UserAction
from .loyalty_token import LoyaltyToken

__all__ = [
    'AttributeVector',
    'LoyaltyAttributes',
    'BrandPartner',
    'Perk',
    'UserAction',
    'LoyaltyToken',
]
