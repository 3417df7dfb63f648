"""
import_engine.plan_store - Session-keyed holding area for staged plans.

One plan per session key: ``put`` replaces whatever was staged before.
Plans older than config.STAGED_PLAN_MAX_AGE_HOURS are treated as absent
and purged on the next write.

The store works inside the caller's session so that deleting a plan can
be part of the commit transaction that consumes it.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

import config
from db.models import StagedImport
from import_engine.plan import StagedPlan

logger = logging.getLogger(__name__)


def _as_utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


class StagedPlanStore:

    def __init__(self, session: Session, max_age: Optional[timedelta] = None):
        self._session = session
        self._max_age = max_age or timedelta(hours=config.STAGED_PLAN_MAX_AGE_HOURS)

    def put(self, key: str, plan: StagedPlan, user_id: Optional[int] = None) -> None:
        """Stage ``plan`` under ``key``, replacing any previous plan."""
        self.purge_expired()
        payload = json.dumps(plan.to_dict(), ensure_ascii=False)
        row = self._row(key)
        if row is None:
            row = StagedImport(session_key=key)
            self._session.add(row)
        row.user_id = user_id
        row.payload = payload
        row.created_at = datetime.now(timezone.utc)
        self._session.flush()

    def get(self, key: str) -> Optional[StagedPlan]:
        row = self._row(key)
        if row is None or self._expired(row):
            return None
        return StagedPlan.from_dict(json.loads(row.payload))

    def delete(self, key: str) -> bool:
        row = self._row(key)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True

    def purge_expired(self) -> int:
        cutoff = datetime.now(timezone.utc) - self._max_age
        n = self._session.query(StagedImport).filter(
            StagedImport.created_at < cutoff,
        ).delete(synchronize_session=False)
        if n:
            logger.info(f"Purged {n} expired staged import(s)")
        return n

    # ── Private helpers ────────────────────────────────────────────────

    def _row(self, key: str) -> Optional[StagedImport]:
        if not key:
            return None
        return self._session.query(StagedImport).filter_by(session_key=key).first()

    def _expired(self, row: StagedImport) -> bool:
        created = _as_utc(row.created_at)
        return datetime.now(timezone.utc) - created > self._max_age
