"""
Tokens API.

- POST /api/tokens/mint       mint the loyalty token for a registered user
- GET  /api/tokens/<user_id>  recorded token for a user
"""
from flask import Blueprint, jsonify

from ..services.loyalty_engine import get_engine
from ..utils.exceptions import InvalidInputError
from . import get_json_body, first_of


tokens_bp = Blueprint('tokens', __name__)


@tokens_bp.route('/mint', methods=['POST'])
def mint_token():
    """
    Request body:
    {
        "user_id": "0xabc..."   # or "userAddress"
    }
    """
    data = get_json_body()
    user_id = first_of(data, 'user_id', 'userAddress')
    if not user_id:
        raise InvalidInputError('user_id is required', 'user_id')

    engine = get_engine()
    # Only registered users can hold a token
    engine.get_vector(user_id)
    token = engine.tokens.mint(user_id)
    return jsonify({'success': True, 'token': token.to_dict()}), 201


@tokens_bp.route('/<user_id>', methods=['GET'])
def get_token(user_id):
    token = get_engine().tokens.get_token(user_id)
    return jsonify({'token': token.to_dict()})
