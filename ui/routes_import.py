"""
ui.routes_import - CSV product import: upload, review, confirm, discard.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from flask import (
    request, render_template, redirect, url_for, flash, session, Response,
)

import config
from ui import ui_bp
from ui.auth import ROLE_ADMIN, role_required, current_user_id
from ui.csrf import csrf_protect
from db import get_session
from services.catalog_service import CatalogService
from import_engine import (
    ImportFailure, ImportOptions, run_import, confirm_import,
    load_staged_plan, discard_import,
)
from import_engine.errors import ImportFileError
from import_engine.field_map import TEMPLATE_COLUMNS

POLICY_LABELS = {
    "skip": "Skip existing products",
    "update": "Update existing products",
    "create": "Create with a numbered name",
}


def _plan_key() -> str:
    """Holding-area key for this browser session."""
    if "import_key" not in session:
        session["import_key"] = uuid.uuid4().hex
    return session["import_key"]


def _read_upload() -> bytes:
    f = request.files.get("csv_file")
    if f is None or not f.filename:
        raise ImportFileError("Error uploading the CSV file")
    if not f.filename.lower().endswith(config.IMPORT_ALLOWED_EXTENSIONS):
        raise ImportFileError("The file must have a .csv extension")
    content = f.read(config.IMPORT_MAX_BYTES + 1)
    if len(content) > config.IMPORT_MAX_BYTES:
        limit_mb = config.IMPORT_MAX_BYTES // (1024 * 1024)
        raise ImportFileError(f"The file cannot be larger than {limit_mb}MB")
    return content


def describe_changes(product, values) -> list[str]:
    """Human-readable differences between a stored product and a plan row."""
    changes = []
    if Decimal(str(product.sale_price)) != values.sale_price:
        changes.append(f"price {product.sale_price} → {values.sale_price}")
    if product.stock != values.stock:
        changes.append(f"stock {product.stock} → {values.stock}")
    if product.category_id != values.category_id:
        changes.append("category")
    if (product.description or None) != values.description:
        changes.append("description")
    if product.unit != values.unit:
        changes.append(f"unit {product.unit} → {values.unit}")
    return changes


# ── Upload ─────────────────────────────────────────────────────────────

@ui_bp.route("/products/import", methods=["GET", "POST"])
@role_required(ROLE_ADMIN)
@csrf_protect
def import_page():
    if request.method == "GET":
        db = get_session()
        try:
            categories = CatalogService.get_categories(db)
        finally:
            db.close()
        if not categories:
            flash("No categories available. Create at least one category "
                  "before importing products.", "warning")
        return render_template("import.html", categories=categories,
                               policies=POLICY_LABELS,
                               max_mb=config.IMPORT_MAX_BYTES // (1024 * 1024))

    options = ImportOptions.from_form(request.form)
    try:
        content = _read_upload()
        outcome = run_import(
            content, options,
            plan_key=_plan_key(),
            user_id=current_user_id(),
            username=session.get("username", ""),
        )
    except ImportFailure as exc:
        flash(str(exc), "danger")
        return redirect(url_for("ui.import_page"))

    if outcome.staged:
        return redirect(url_for("ui.import_preview"))

    report = outcome.report
    flash(report.summary(), "warning" if report.errors else "success")
    return redirect(url_for("ui.import_page"))


@ui_bp.route("/products/import/template.csv")
@role_required(ROLE_ADMIN)
def import_template():
    body = ",".join(TEMPLATE_COLUMNS) + "\n" + \
        "Wireless mouse,2.4GHz optical mouse,Peripherals,,6.50,9.99,10,2,50,unit\n"
    return Response(
        body, mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=products_template.csv"},
    )


# ── Review ─────────────────────────────────────────────────────────────

@ui_bp.route("/products/import/preview")
@role_required(ROLE_ADMIN)
def import_preview():
    plan = load_staged_plan(session.get("import_key", ""))
    if plan is None:
        flash("There is no staged import to review", "warning")
        return redirect(url_for("ui.import_page"))

    db = get_session()
    try:
        category_names = {c.id: c.name for c in CatalogService.get_categories(db, active_only=False)}
        updates = []
        for row in plan.update:
            product = CatalogService.get_product(db, row.product_id)
            updates.append({
                "row": row,
                "product": product,
                "changes": describe_changes(product, row.values) if product else ["product no longer exists"],
            })
    finally:
        db.close()

    return render_template(
        "import_preview.html",
        plan=plan,
        new_rows=plan.new[:config.PREVIEW_ROW_LIMIT],
        updates=updates,
        warnings=plan.warnings[:config.PREVIEW_WARNING_LIMIT],
        hidden_warnings=max(len(plan.warnings) - config.PREVIEW_WARNING_LIMIT, 0),
        category_names=category_names,
        policy_label=POLICY_LABELS[plan.options.duplicate_policy.value],
    )


@ui_bp.route("/products/import/confirm", methods=["POST"])
@role_required(ROLE_ADMIN)
@csrf_protect
def import_confirm():
    try:
        report = confirm_import(
            session.get("import_key", ""),
            user_id=current_user_id(),
            username=session.get("username", ""),
        )
    except ImportFailure as exc:
        flash(str(exc), "danger")
        return redirect(url_for("ui.import_page"))

    flash(report.summary(), "warning" if report.errors else "success")
    return redirect(url_for("ui.import_page"))


@ui_bp.route("/products/import/discard", methods=["POST"])
@role_required(ROLE_ADMIN)
@csrf_protect
def import_discard():
    if discard_import(session.get("import_key", "")):
        flash("Staged import discarded", "info")
    return redirect(url_for("ui.import_page"))
