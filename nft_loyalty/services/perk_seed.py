"""
Demo perk catalog.

Partner brands and their perks, used by `flask loyalty seed-perks` to
populate a fresh database. Seeding is idempotent: brands and perks are
matched by name and existing rows are left alone.
"""
from decimal import Decimal
from typing import Dict

from flask import current_app

from ..extensions import db
from ..models.perk import BrandPartner, Perk
from ..utils.cache import invalidate_perk_catalog
from .perk_eligibility import parse_condition


SEED_BRANDS = [
    ('HDBank', 'banking', 'Leading Vietnamese bank offering comprehensive financial services'),
    ('HD Saison', 'finance', 'Consumer finance company providing credit and payment solutions'),
    ('Vietjet Air', 'airline', "Vietnam's leading low-cost airline with extensive domestic and international routes"),
    ('Dragon City', 'real_estate', 'Premium real estate development company specializing in luxury properties'),
    ('Ha Long Star', 'hospitality', 'Luxury resort and hospitality group in the scenic Ha Long Bay area'),
]

# (brand, name, description, condition, category, value_type, value_amount)
SEED_PERKS = [
    ('HDBank', 'HDBank VIP Banking',
     'Access to VIP banking services with dedicated relationship manager',
     {'type': 'min_categorical_tier', 'tier': 'Gold'}, 'banking', 'free_service', 0),
    ('HDBank', 'HDBank Credit Card Fee Waiver',
     'Annual fee waiver for HDBank premium credit cards',
     {'type': 'min_points', 'threshold': 5000}, 'banking', 'discount', 100),
    ('HDBank', 'HDBank Investment Advisory',
     'Free consultation with investment experts',
     {'type': 'min_categorical_tier', 'tier': 'Platinum'}, 'banking', 'free_service', 0),

    ('HD Saison', 'HD Saison Interest Rate Discount',
     '0.5% interest rate reduction on personal loans',
     {'type': 'min_level', 'level': 3}, 'finance', 'discount', '0.5'),
    ('HD Saison', 'HD Saison Fast Loan Approval',
     'Priority processing for loan applications',
     {'type': 'min_cumulative_spend', 'threshold': '50000000'}, 'finance', 'priority_access', 0),

    ('Vietjet Air', 'Vietjet Priority Check-in',
     'Skip the lines with priority check-in counter access',
     {'type': 'min_activity_count', 'threshold': 5}, 'travel', 'priority_access', 0),
    ('Vietjet Air', 'Vietjet Baggage Allowance Upgrade',
     'Free 10kg additional baggage allowance',
     {'type': 'min_activity_count', 'threshold': 10}, 'travel', 'upgrade', 0),
    ('Vietjet Air', 'Vietjet Lounge Access',
     'Access to VietJet Sky Lounge at major airports',
     {'type': 'min_level', 'level': 4}, 'travel', 'free_service', 0),

    ('Dragon City', 'Dragon City VIP Property Tour',
     'Exclusive guided tours of premium properties with refreshments',
     {'type': 'min_cumulative_spend', 'threshold': '100000000'}, 'real_estate', 'free_service', 0),
    ('Dragon City', 'Dragon City Investment Consultation',
     'Free consultation with real estate investment experts',
     {'type': 'min_level', 'level': 3}, 'real_estate', 'free_service', 0),
    ('Dragon City', 'Dragon City Purchase Discount',
     '2% discount on property purchase price',
     {'type': 'min_points', 'threshold': 15000}, 'real_estate', 'discount', 2),

    ('Ha Long Star', 'Ha Long Star Spa Discount',
     '20% discount on all spa and wellness services',
     {'type': 'min_level', 'level': 2}, 'hospitality', 'discount', 20),
    ('Ha Long Star', 'Ha Long Star VIP Concierge',
     'Access to dedicated concierge services for tour planning and reservations',
     {'type': 'min_categorical_tier', 'tier': 'Platinum'}, 'hospitality', 'free_service', 0),

    (None, 'Multi-Brand Elite Status',
     'Accelerated tier progression across all partner brands',
     {'type': 'min_points', 'threshold': 20000}, 'loyalty', 'upgrade', 0),
    (None, 'Partner Network Cashback',
     '1.5x cashback when using services across different partner brands',
     {'type': 'min_level', 'level': 5}, 'loyalty', 'cashback', '1.5'),
    (None, 'Exclusive Partner Events',
     'Invitations to exclusive networking events with all partner brands',
     {'type': 'min_categorical_tier', 'tier': 'Diamond'}, 'loyalty', 'free_service', 0),
    (None, 'Frequent Flyer Gold Bundle',
     'Lounge and fast-track bundle for Gold bank customers who fly often',
     {'type': 'combined', 'conditions': [
         {'type': 'min_categorical_tier', 'tier': 'Gold'},
         {'type': 'min_activity_count', 'threshold': 10},
     ]}, 'loyalty', 'upgrade', 0),
]


def seed_perk_catalog(session=None) -> Dict[str, int]:
    """
    Insert missing demo brands and perks.

    Every condition is validated with parse_condition() before insert, so a
    typo in the seed data fails the command instead of producing a perk that
    is silently locked for everyone.

    Returns:
        {'brands_created': n, 'perks_created': m}
    """
    session = session if session is not None else db.session

    for _, name, _, condition, *_ in SEED_PERKS:
        parse_condition(condition)

    brands = {brand.name: brand for brand in session.query(BrandPartner).all()}
    brands_created = 0
    for name, brand_type, description in SEED_BRANDS:
        if name in brands:
            continue
        brand = BrandPartner(name=name, brand_type=brand_type, description=description)
        session.add(brand)
        brands[name] = brand
        brands_created += 1
    session.flush()

    existing = {name for (name,) in session.query(Perk.name).all()}
    perks_created = 0
    for brand_name, name, description, condition, category, value_type, value_amount in SEED_PERKS:
        if name in existing:
            continue
        session.add(Perk(
            brand_id=brands[brand_name].id if brand_name else None,
            name=name,
            description=description,
            unlock_condition=condition,
            category=category,
            value_type=value_type,
            value_amount=Decimal(str(value_amount)),
        ))
        perks_created += 1

    session.commit()
    invalidate_perk_catalog()

    current_app.logger.info(f'Perk catalog seeded: {brands_created} brands, {perks_created} perks')
    return {'brands_created': brands_created, 'perks_created': perks_created}
