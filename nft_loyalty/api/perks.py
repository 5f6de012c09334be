"""
Perks API.

Catalog listing and per-user unlock status. The catalog itself is managed
outside this service (seeded with `flask loyalty seed-perks`).
"""
from flask import Blueprint, jsonify

from ..services.loyalty_engine import get_engine


perks_bp = Blueprint('perks', __name__)


@perks_bp.route('', methods=['GET'])
def list_perks():
    perks = get_engine().catalog.list_active_perks()
    return jsonify({
        'perks': [perk.to_dict() for perk in perks],
        'count': len(perks),
    })


@perks_bp.route('/brands', methods=['GET'])
def list_brands():
    return jsonify({'brands': get_engine().catalog.list_brands()})


@perks_bp.route('/brand/<int:brand_id>', methods=['GET'])
def list_brand_perks(brand_id):
    perks = get_engine().catalog.list_perks_by_brand(brand_id)
    return jsonify({
        'brand_id': brand_id,
        'perks': [perk.to_dict() for perk in perks],
        'count': len(perks),
    })


@perks_bp.route('/user/<user_id>', methods=['GET'])
def get_user_perks(user_id):
    """Unlock status of every active perk for one user."""
    engine = get_engine()
    vector = engine.get_vector(user_id)
    results = engine.get_perk_eligibility(vector.user_id)

    return jsonify({
        'user_id': vector.user_id,
        'level': vector.derived_level,
        'perks': [result.to_dict() for result in results],
        'unlocked_count': sum(1 for result in results if result.unlocked),
    })
