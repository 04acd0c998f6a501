import logging
from functools import wraps
from typing import Callable, Type

from flask import g, jsonify, request
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


def validate_with(schema: Type[BaseModel]) -> Callable:
    """
    Decorator for Flask routes that validates JSON request data against a Pydantic schema.

    Usage:
        @bp.route('/endpoint', methods=['POST'])
        @validate_with(MySchema)
        def endpoint():
            validated_data = g.validated_data
            ...

    Args:
        schema: A Pydantic BaseModel class to validate against.

    Returns:
        A decorated function that injects validated data or returns JSON error on failure.
    """
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            json_data = request.get_json(silent=True)
            if json_data is None:
                json_data = {}
            try:
                g.validated_data = schema.model_validate(json_data)
            except ValidationError as e:
                logger.warning(f"Request validation error: {e.errors()}")
                return jsonify({
                    "status": "error",
                    "error": "VALIDATION_ERROR",
                    "errors": e.errors(include_url=False, include_context=False),
                }), 400

            return f(*args, **kwargs)
        return wrapped
    return decorator
