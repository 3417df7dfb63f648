"""
api.errors - JSON error bodies for the API blueprint.
"""

from flask import jsonify
from api import api_bp

_MESSAGES = {
    401: "login required",
    403: "admin role required",
    404: "no staged import",
    500: "internal server error",
}


def _json_error(code: int):
    def handler(_e):
        return jsonify({"error": _MESSAGES[code], "status": code}), code
    handler.__name__ = f"api_error_{code}"
    return handler


for _code in _MESSAGES:
    api_bp.register_error_handler(_code, _json_error(_code))
