import logging
import uuid
from typing import Optional
from functools import wraps

from flask import g, jsonify, request

logger = logging.getLogger(__name__)

ACTOR_HEADER = "X-Person-Id"


def require_actor(f):
    """
    Resolves the acting person from the ``X-Person-Id`` header into ``g.actor_id``.

    Authentication happens upstream; this only makes the caller's identity an
    explicit value that routes pass on to the services.
    """
    @wraps(f)
    def wrapped(*args, **kwargs):
        raw = request.headers.get(ACTOR_HEADER)
        if not raw:
            return jsonify({"status": "error", "error": "UNAUTHENTICATED",
                            "message": f"Missing {ACTOR_HEADER} header."}), 401
        try:
            g.actor_id = uuid.UUID(raw)
        except ValueError:
            logger.warning(f"Rejected malformed {ACTOR_HEADER} header: {raw!r}")
            return jsonify({"status": "error", "error": "UNAUTHENTICATED",
                            "message": f"Malformed {ACTOR_HEADER} header."}), 401
        return f(*args, **kwargs)
    return wrapped


def optional_actor() -> Optional[uuid.UUID]:
    """Actor id for read-only routes that personalise their answer when one is given."""
    raw = request.headers.get(ACTOR_HEADER)
    if not raw:
        return None
    try:
        return uuid.UUID(raw)
    except ValueError:
        return None
