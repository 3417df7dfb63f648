"""
import_engine.importer - Top-level orchestrator.

Coordinates stager → (plan store | committer) and owns the DB session
for each request-level operation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from db.engine import get_session
from import_engine.committer import ImportCommitter
from import_engine.errors import TransactionFailure
from import_engine.plan import ImportOptions, StagedPlan
from import_engine.plan_store import StagedPlanStore
from import_engine.report import CommitReport
from import_engine.stager import ImportStager

logger = logging.getLogger(__name__)


@dataclass
class ImportOutcome:
    plan: StagedPlan
    report: Optional[CommitReport] = None       # None while awaiting review

    @property
    def staged(self) -> bool:
        return self.report is None


def run_import(
    file_content: str | bytes,
    options: ImportOptions,
    *,
    plan_key: Optional[str] = None,
    user_id: Optional[int] = None,
    username: str = "",
) -> ImportOutcome:
    """
    Stage a CSV blob and either keep it for review or commit it.

    Parameters
    ----------
    file_content : raw CSV (bytes or str)
    options : import options; ``preview_only`` selects the flow
    plan_key : holding-area key, required for previews

    Raises ImportFailure subclasses for anything that aborts the import.
    """
    if options.preview_only and not plan_key:
        raise ValueError("plan_key is required for a preview import")

    session = get_session()
    try:
        plan = ImportStager(session, options).stage(file_content)

        if options.preview_only:
            try:
                StagedPlanStore(session).put(plan_key, plan, user_id=user_id)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Could not stage CSV import")
                raise TransactionFailure(f"Could not stage the import: {exc}") from exc
            return ImportOutcome(plan)

        session.rollback()          # close the read-only transaction
        report = ImportCommitter(session).commit(plan, user_id=user_id, username=username)
        return ImportOutcome(plan, report)
    finally:
        session.close()


def confirm_import(plan_key: str, *, user_id: Optional[int] = None,
                   username: str = "") -> CommitReport:
    """Commit the plan staged under ``plan_key``.  Raises NoStagedPlan if absent."""
    session = get_session()
    try:
        return ImportCommitter(session).commit_staged(
            plan_key, user_id=user_id, username=username)
    finally:
        session.close()


def load_staged_plan(plan_key: str) -> Optional[StagedPlan]:
    session = get_session()
    try:
        return StagedPlanStore(session).get(plan_key)
    finally:
        session.close()


def discard_import(plan_key: str) -> bool:
    """Drop a staged plan without writing anything else."""
    session = get_session()
    try:
        removed = StagedPlanStore(session).delete(plan_key)
        session.commit()
        if removed:
            logger.info("Staged CSV import discarded")
        return removed
    finally:
        session.close()
