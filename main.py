#!/usr/bin/env python3
"""
CRM back office - Web Application
=================================

Single-command run:  python main.py

See config.py for all environment-variable tunables.
"""

import logging

import click
from flask import Flask, render_template, redirect, url_for
from werkzeug.security import generate_password_hash

import config
from db import init_db, session_scope, User
from api import api_bp
from ui import ui_bp
from ui.auth import ROLE_ADMIN


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def create_app(db_url: str | None = None) -> Flask:
    """Flask application factory."""
    _configure_logging()

    app = Flask(
        __name__,
        template_folder=str(config.TEMPLATES_DIR),
    )
    app.secret_key = config.SECRET
    # Room for the form fields around a maximum-size CSV
    app.config["MAX_CONTENT_LENGTH"] = config.IMPORT_MAX_BYTES + 64 * 1024

    # ── Initialise database ─────────────────────────────────────────
    init_db(db_url or config.DB_URL)

    # ── Register blueprints ─────────────────────────────────────────
    app.register_blueprint(api_bp)
    app.register_blueprint(ui_bp)

    @app.route("/")
    def home():
        return redirect(url_for("ui.import_page"))

    # ── Error handlers ──────────────────────────────────────────────
    @app.errorhandler(400)
    def _400(e):
        return render_template("error.html", code=400,
                               message=e.description or "Bad request"), 400

    @app.errorhandler(403)
    def _403(e):
        return render_template("error.html", code=403,
                               message="You do not have access to this page"), 403

    @app.errorhandler(404)
    def _404(e):
        return render_template("error.html", code=404,
                               message="Page not found"), 404

    @app.errorhandler(413)
    def _413(e):
        limit_mb = config.IMPORT_MAX_BYTES // (1024 * 1024)
        return render_template("error.html", code=413,
                               message=f"Uploads are limited to {limit_mb}MB"), 413

    @app.errorhandler(500)
    def _500(e):
        return render_template("error.html", code=500,
                               message="Internal server error"), 500

    # ── CLI ─────────────────────────────────────────────────────────
    @app.cli.command("create-admin")
    @click.argument("username")
    @click.password_option()
    def create_admin(username, password):
        """Create (or reset) an administrator account."""
        with session_scope() as session:
            user = session.query(User).filter_by(username=username).first()
            if user is None:
                user = User(username=username)
                session.add(user)
            user.password_hash = generate_password_hash(password)
            user.role = ROLE_ADMIN
            user.active = True
        click.echo(f"Administrator {username} ready.")

    return app


def main():
    print("=" * 56)
    print("  CRM back office")
    print("=" * 56)

    app = create_app()
    print(f"  Database: {config.DB_URL}")

    print(f"\n  http://{config.HOST}:{config.PORT}")
    print(f"  Product import: http://{config.HOST}:{config.PORT}/products/import")
    print("=" * 56)

    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)


if __name__ == "__main__":
    main()
