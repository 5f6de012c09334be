"""
Actions API.

Partner systems report user actions here. Each accepted action updates the
user's attribute vector atomically and may change their level.
"""
from flask import Blueprint, request, jsonify

from ..services.loyalty_engine import get_engine
from ..utils.exceptions import InvalidInputError
from . import get_json_body, first_of


actions_bp = Blueprint('actions', __name__)

DEFAULT_HISTORY_LIMIT = 50
MAX_HISTORY_LIMIT = 200


@actions_bp.route('', methods=['POST'])
def process_action():
    """
    Process a partner action.

    Request body:
    {
        "user_id": "0xabc...",            # or "userAddress"
        "action_type": "bank_transaction", # or "actionType"
        "details": {"amount": 2500000}     # or "actionDetails"
    }

    Returns 200 with points earned and the level transition, 400 for an
    unknown action type or invalid payload, 404 for an unregistered user and
    503 when the update could not be committed.
    """
    data = get_json_body()

    user_id = first_of(data, 'user_id', 'userAddress')
    if not user_id:
        raise InvalidInputError('user_id is required', 'user_id')

    action_type = first_of(data, 'action_type', 'actionType')
    if not action_type:
        raise InvalidInputError('action_type is required', 'action_type')

    payload = first_of(data, 'details', 'actionDetails', 'payload')

    result = get_engine().process_action(user_id, action_type, payload)
    return jsonify({'success': True, 'result': result.to_dict()})


@actions_bp.route('/history/<user_id>', methods=['GET'])
def get_history(user_id):
    """Most recent actions first. ?limit= caps the list (default 50, max 200)."""
    limit = request.args.get('limit', DEFAULT_HISTORY_LIMIT, type=int)
    limit = max(1, min(limit, MAX_HISTORY_LIMIT))

    actions = get_engine().action_history(user_id, limit=limit)
    return jsonify({
        'user_id': user_id.strip().lower(),
        'actions': [action.to_dict() for action in actions],
        'count': len(actions),
    })
