"""
ui.auth - Session login and role gate.

The logged-in identity lives in the Flask session as
``user_id`` / ``username`` / ``role``.
"""

from __future__ import annotations

import logging
from functools import wraps

from flask import (
    request, render_template, redirect, url_for, flash, session, abort,
)
from werkzeug.security import check_password_hash

from ui import ui_bp
from ui.csrf import csrf_protect
from db import get_session
from db.models import User

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"


def login_user(user: User) -> None:
    session.clear()
    session["user_id"] = user.id
    session["username"] = user.username
    session["role"] = user.role


def current_user_id() -> int | None:
    return session.get("user_id")


def role_required(*roles: str):
    """Redirect anonymous users to the login page, 403 for the wrong role."""
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return redirect(url_for("ui.login", next=request.path))
            if roles and session.get("role") not in roles:
                abort(403)
            return f(*args, **kwargs)
        return wrapper
    return decorator


@ui_bp.route("/login", methods=["GET", "POST"])
@csrf_protect
def login():
    if request.method == "GET":
        return render_template("login.html")

    username = request.form.get("username", "").strip()
    password = request.form.get("password", "")

    db = get_session()
    try:
        user = db.query(User).filter_by(username=username, active=True).first()
    finally:
        db.close()

    if user is None or not check_password_hash(user.password_hash, password):
        logger.warning(f"Failed login for {username!r}")
        flash("Invalid username or password", "danger")
        return render_template("login.html"), 401

    login_user(user)
    logger.info(f"User {user.username} logged in")
    target = request.args.get("next", "")
    if not target.startswith("/") or target.startswith("//"):
        target = url_for("ui.import_page")
    return redirect(target)


@ui_bp.route("/logout", methods=["POST"])
@csrf_protect
def logout():
    session.clear()
    flash("You have been logged out", "info")
    return redirect(url_for("ui.login"))
