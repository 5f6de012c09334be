"""REST API blueprints."""
from flask import request

from ..utils.exceptions import InvalidInputError


def get_json_body() -> dict:
    """
    Parse the request body as a JSON object.

    Raises:
        InvalidInputError: Body is missing or not an object
    """
    data = request.get_json(silent=True)
    if data is None:
        raise InvalidInputError('Request body must be JSON', 'body')
    if not isinstance(data, dict):
        raise InvalidInputError('Request body must be a JSON object', 'body')
    return data


def first_of(data: dict, *keys):
    """Value of the first key present (accepts camelCase and snake_case)."""
    for key in keys:
        if data.get(key) not in (None, ''):
            return data[key]
    return None
