"""
Users API.

Registration and attribute vector lookup:
- POST /api/users                 register a user (zeroed vector)
- GET  /api/users/<user_id>       current vector with level details
- PUT  /api/users/<user_id>/tier  set the externally assigned categorical tier
"""
from flask import Blueprint, jsonify

from ..services.level_rules import get_level_definition, get_next_level_definition
from ..services.loyalty_engine import get_engine
from ..services.metadata_service import progress_to_next
from ..utils.exceptions import InvalidInputError
from . import get_json_body, first_of


users_bp = Blueprint('users', __name__)


def _vector_payload(vector):
    definition = get_level_definition(vector.derived_level)
    next_definition = get_next_level_definition(vector.derived_level)
    return {
        'attributes': vector.to_dict(),
        'level': definition.to_dict(),
        'next_level': next_definition.to_dict() if next_definition else None,
        'progress_to_next': progress_to_next(vector),
    }


@users_bp.route('', methods=['POST'])
def register_user():
    """
    Register a user.

    Request body:
    {
        "user_id": "0xabc..."   # or "userAddress"
    }
    """
    data = get_json_body()
    user_id = first_of(data, 'user_id', 'userAddress')
    if not user_id:
        raise InvalidInputError('user_id is required', 'user_id')

    vector = get_engine().register_user(user_id)
    return jsonify({'success': True, 'user': _vector_payload(vector)}), 201


@users_bp.route('/<user_id>', methods=['GET'])
def get_user(user_id):
    vector = get_engine().get_vector(user_id)
    return jsonify({'user': _vector_payload(vector)})


@users_bp.route('/<user_id>/tier', methods=['PUT'])
def set_tier(user_id):
    """
    Apply a categorical tier change from the partner bank.

    Request body:
    {
        "tier": "Gold"
    }
    """
    data = get_json_body()
    tier = first_of(data, 'tier', 'bankTier', 'bank_tier')
    if tier is None:
        raise InvalidInputError('tier is required', 'tier')

    result = get_engine().set_categorical_tier(user_id, tier)
    return jsonify({'success': True, 'result': result.to_dict()})
