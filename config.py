"""
CRM back office - Centralised configuration.

All tunables live here.  Every other module imports from config
instead of reading os.environ directly.
"""

from __future__ import annotations
import os
from pathlib import Path


# ── Paths ──────────────────────────────────────────────────────────────
BASE_DIR       = Path(__file__).resolve().parent
TEMPLATES_DIR  = Path(os.environ.get("CRM_TEMPLATES", BASE_DIR / "templates"))

# ── Database ───────────────────────────────────────────────────────────
DB_URL = os.environ.get("CRM_DB", f"sqlite:///{BASE_DIR / 'crm.sqlite'}")

# ── Server ─────────────────────────────────────────────────────────────
HOST   = os.environ.get("CRM_HOST", "0.0.0.0")
PORT   = int(os.environ.get("CRM_PORT", "5000"))
DEBUG  = os.environ.get("CRM_DEBUG", "0") == "1"
SECRET = os.environ.get("CRM_SECRET", "crm-dev-key-change-in-prod")

# ── Logging ────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("CRM_LOG_LEVEL", "INFO").upper()

# ── CSV import ─────────────────────────────────────────────────────────
IMPORT_MAX_BYTES       = int(os.environ.get("CRM_IMPORT_MAX_BYTES", 10 * 1024 * 1024))
IMPORT_MAX_LINE_LENGTH = int(os.environ.get("CRM_IMPORT_MAX_LINE_LENGTH", "1000"))
IMPORT_ALLOWED_EXTENSIONS = (".csv",)

# Staged plans not confirmed within this window are discarded
STAGED_PLAN_MAX_AGE_HOURS = float(os.environ.get("CRM_STAGED_PLAN_MAX_AGE_HOURS", "2"))

# ── Review page ────────────────────────────────────────────────────────
PREVIEW_ROW_LIMIT     = 50
PREVIEW_WARNING_LIMIT = 10
SUMMARY_ERROR_LIMIT   = 5
