"""
api.routes_import - /api/v1/import endpoints.

Read-only view of the caller's staged import, for the review page's
scripts and for tooling.
"""

from flask import jsonify, session, abort

from api import api_bp
from import_engine import load_staged_plan


@api_bp.route("/import/plan")
def api_staged_plan():
    """
    GET /api/v1/import/plan

    The staged plan for the current session, or 404 when nothing is staged.
    """
    if "user_id" not in session:
        abort(401)
    if session.get("role") != "admin":
        abort(403)

    plan = load_staged_plan(session.get("import_key", ""))
    if plan is None:
        abort(404)
    data = plan.to_dict()
    data["counts"] = {
        "new": len(plan.new),
        "update": len(plan.update),
        "skipped": len(plan.skipped),
        "warnings": len(plan.warnings),
    }
    return jsonify(data)
