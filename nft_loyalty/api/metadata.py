"""
Token Metadata API.

Serves the dynamic ERC-721 metadata documents the minted tokens point at.
Every request regenerates the document from the stored vector, so the token
image and traits follow the user's current level.
"""
from flask import Blueprint, current_app, jsonify

from ..services.level_rules import LEVEL_DEFINITIONS, MAX_LEVEL, validate_level_table
from ..services.loyalty_engine import get_engine


metadata_bp = Blueprint('metadata', __name__)


@metadata_bp.route('/levels', methods=['GET'])
def list_levels():
    """Level table with resolved image URLs."""
    resolver = get_engine().resolver
    levels = []
    for definition in LEVEL_DEFINITIONS:
        level = definition.to_dict()
        level['image'] = resolver.resolve(definition.image_locator)
        levels.append(level)
    return jsonify({'levels': levels, 'max_level': MAX_LEVEL})


@metadata_bp.route('/health', methods=['GET'])
def metadata_health():
    problems = validate_level_table()
    status = 'healthy' if not problems else 'degraded'
    return jsonify({
        'status': status,
        'levels_configured': len(LEVEL_DEFINITIONS),
        'gateway': current_app.config['BLOB_GATEWAY_URL'],
        'problems': problems,
    }), 200 if not problems else 500


@metadata_bp.route('/<user_id>', methods=['GET'])
def get_token_metadata(user_id):
    engine = get_engine()
    descriptor = engine.get_metadata(user_id)
    token_id = engine.token_id_for(user_id)

    document = descriptor.to_token_metadata(
        engine.resolver,
        current_app.config['TOKEN_EXTERNAL_URL_BASE'],
        name_prefix=current_app.config['TOKEN_NAME_PREFIX'],
        token_id=token_id,
    )

    response = jsonify(document)
    response.headers['Cache-Control'] = 'public, max-age=300'
    return response
