"""
db - Database layer.

Public API:
    init_db()       → create engine + tables
    get_session()   → new Session
    session_scope() → commit-or-rollback context manager
    models          → User, Category, Product, InventoryMovement, AuditLog, StagedImport
"""

from db.engine import init_db, get_session, session_scope   # noqa: F401
from db.models import (                             # noqa: F401
    Base, User, Category, Product, InventoryMovement, AuditLog, StagedImport,
)
