"""
ui.csrf - Per-session CSRF token for every mutating form.
"""

from __future__ import annotations

import hmac
import secrets
from functools import wraps

from flask import request, session, abort

FIELD = "csrf_token"


def generate_csrf_token() -> str:
    if not session.get(FIELD):
        session[FIELD] = secrets.token_hex(32)
    return session[FIELD]


def validate_csrf_token(token: str | None) -> bool:
    expected = session.get(FIELD)
    if not token or not expected:
        return False
    return hmac.compare_digest(expected, token)


def csrf_protect(f):
    """Reject POSTs whose form token does not match the session's."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        if request.method == "POST" and not validate_csrf_token(request.form.get(FIELD)):
            abort(400, description="Invalid or missing CSRF token")
        return f(*args, **kwargs)
    return wrapper
