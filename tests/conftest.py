"""
Shared pytest fixtures for the loyalty engine tests.
"""
from decimal import Decimal

import pytest

from nft_loyalty import create_app
from nft_loyalty.extensions import db as _db
from nft_loyalty.models import AttributeVector, BrandPartner, Perk
from nft_loyalty.services.level_rules import CategoricalTier
from nft_loyalty.services.loyalty_engine import get_engine


@pytest.fixture
def app():
    """Create test application on an in-memory database."""
    app = create_app('testing')
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Test client for API requests."""
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def engine(app):
    """The app's LoyaltyEngine."""
    return get_engine()


@pytest.fixture
def registered_user(engine):
    """A freshly registered user (zeroed vector)."""
    engine.register_user('0xAbC123')
    return '0xabc123'


@pytest.fixture
def brand(app):
    brand = BrandPartner(name='Vietjet Air', brand_type='airline', description='Airline partner')
    _db.session.add(brand)
    _db.session.commit()
    return brand


@pytest.fixture
def sample_perks(app, brand):
    """Three active perks (one malformed) and one inactive perk."""
    perks = [
        Perk(
            brand_id=brand.id,
            name='Priority Check-in',
            unlock_condition={'type': 'min_activity_count', 'threshold': 5},
            category='travel',
            value_type='priority_access',
        ),
        Perk(
            brand_id=None,
            name='Elite Status',
            unlock_condition={'type': 'min_points', 'threshold': 500},
            category='loyalty',
            value_type='upgrade',
        ),
        Perk(
            brand_id=None,
            name='Broken Perk',
            unlock_condition={'type': 'min_points'},
            category='loyalty',
        ),
        Perk(
            brand_id=brand.id,
            name='Retired Perk',
            unlock_condition={'type': 'min_points', 'threshold': 0},
            is_active=False,
        ),
    ]
    _db.session.add_all(perks)
    _db.session.commit()
    return perks


def make_vector(points=0, activity_count=0, cumulative_spend='0', tier='Standard', level=0, user_id='0xtest'):
    """Build an AttributeVector for pure-function tests."""
    return AttributeVector(
        user_id=user_id,
        points=points,
        activity_count=activity_count,
        cumulative_spend=Decimal(str(cumulative_spend)),
        categorical_tier=CategoricalTier.parse(tier),
        derived_level=level,
    )


@pytest.fixture(name='make_vector')
def make_vector_fixture():
    return make_vector
