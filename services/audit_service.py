"""
services.audit_service - Audit trail entries.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from db.models import AuditLog


def record(session: Session, user_id: Optional[int], action: str,
           description: str = "") -> AuditLog:
    entry = AuditLog(user_id=user_id, action=action, description=description)
    session.add(entry)
    session.flush()
    return entry
