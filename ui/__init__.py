"""
ui - Server-rendered HTML layer.

All route modules register on a single Flask Blueprint.
"""

from flask import Blueprint

ui_bp = Blueprint("ui", __name__)

from ui.csrf import generate_csrf_token      # noqa: E402


@ui_bp.app_context_processor
def _inject_csrf():
    return {"csrf_token": generate_csrf_token}


# Import route modules so their @ui_bp decorators execute
from ui import auth               # noqa: F401, E402
from ui import routes_import      # noqa: F401, E402
