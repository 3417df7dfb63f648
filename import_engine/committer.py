"""
import_engine.committer - Execute a StagedPlan in one transaction.

Each plan row runs inside its own SAVEPOINT.  A constraint or data error
on a row rolls back that row only and is recorded in the report; the
surrounding transaction still commits.  Any other exception rolls back
everything and surfaces as TransactionFailure.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import Session

from db.models import InventoryMovement, Product
from import_engine.errors import NoStagedPlan, RowCommitError, TransactionFailure
from import_engine.plan import NewProductRow, ProductValues, StagedPlan, UpdateProductRow
from import_engine.plan_store import StagedPlanStore
from import_engine.report import CommitReport
from import_engine.resolvers import NEW, SKIP, UPDATE, DuplicateResolver
from services import audit_service
from services.catalog_service import CatalogService
from services.inventory_service import record_movement
from services.sequence_service import generate_unique_sku, sku_in_use

logger = logging.getLogger(__name__)

# Errors that cost one row, not the whole import
ROW_ERRORS = (IntegrityError, DataError, OverflowError, RowCommitError)

ENTRY_REASON = "initial imported stock"
ADJUSTMENT_REASON = "stock adjusted by CSV import"


class ImportCommitter:

    def __init__(self, session: Session):
        self._session = session

    def commit(self, plan: StagedPlan, *, user_id: Optional[int] = None,
               username: str = "") -> CommitReport:
        """Commit an in-memory plan (direct import, nothing staged)."""
        return self._execute(plan, user_id, username)

    def commit_staged(self, plan_key: str, *, user_id: Optional[int] = None,
                      username: str = "") -> CommitReport:
        """
        Commit the plan staged under ``plan_key`` and delete it.

        The deletion is part of the same transaction, so a rollback
        leaves the staged plan in place for another attempt.
        """
        store = StagedPlanStore(self._session)
        plan = store.get(plan_key)
        if plan is None:
            self._session.rollback()
            raise NoStagedPlan()
        return self._execute(plan, user_id, username,
                             consume=lambda: store.delete(plan_key))

    # ── Transaction ────────────────────────────────────────────────────

    def _execute(self, plan: StagedPlan, user_id: Optional[int], username: str,
                 consume: Optional[Callable[[], object]] = None) -> CommitReport:
        report = CommitReport(skipped=len(plan.skipped))
        try:
            duplicates = DuplicateResolver(self._session, plan.options.duplicate_policy)
            for row in plan.new:
                self._run_row(row.line, report, self._commit_new, row, duplicates, user_id, report)
            for row in plan.update:
                self._run_row(row.line, report, self._commit_update, row, user_id)

            if consume is not None:
                consume()
            audit_service.record(
                self._session, user_id, "product_import",
                f"CSV import: {report.created} created, {report.updated} updated, "
                f"{report.skipped} skipped, {report.error_count} errors",
            )
            self._session.commit()
        except Exception as exc:
            self._session.rollback()
            logger.exception("CSV import rolled back")
            raise TransactionFailure(f"Critical error during import: {exc}") from exc

        for err in report.errors:
            logger.warning(f"CSV import row error, line {err['line']}: {err['reason']}")
        logger.info(
            f"CSV import committed: {report.created} created, {report.updated} updated, "
            f"{report.skipped} skipped, {report.error_count} errors, "
            f"user: {username or 'unknown'}"
        )
        return report

    def _run_row(self, line: int, report: CommitReport, fn, *args) -> None:
        try:
            with self._session.begin_nested():
                outcome = fn(*args)
        except ROW_ERRORS as exc:
            report.add_error(line, _describe(exc))
            return

        if outcome == NEW:
            report.created += 1
        elif outcome == UPDATE:
            report.updated += 1
        else:
            report.skipped += 1

    # ── Rows ───────────────────────────────────────────────────────────

    def _commit_new(self, row: NewProductRow, duplicates: DuplicateResolver,
                    user_id: Optional[int], report: CommitReport) -> str:
        res = duplicates.resolve(row.name, row.line)
        if res.action == SKIP:
            return SKIP
        if res.action == UPDATE:
            product = CatalogService.get_product(self._session, res.product_id)
            self._apply_update(product, row.values, user_id)
            return UPDATE

        values = row.values
        sku = None if row.sku_is_placeholder else row.sku
        if sku is not None and sku_in_use(self._session, sku):
            report.warnings.append(
                f"Line {row.line}: SKU '{sku}' already in use, generated a new one")
            sku = None
        if sku is None:
            sku = generate_unique_sku(self._session, res.name, values.category_id)

        product = CatalogService.insert_product(self._session, res.name, sku, values)
        if values.stock > 0:
            record_movement(self._session, product.id, InventoryMovement.ENTRY,
                            values.stock, ENTRY_REASON, user_id)
        return NEW

    def _commit_update(self, row: UpdateProductRow, user_id: Optional[int]) -> str:
        product = CatalogService.get_product(self._session, row.product_id)
        if product is None:
            raise RowCommitError(f"product {row.product_id} no longer exists")
        self._apply_update(product, row.values, user_id)
        return UPDATE

    def _apply_update(self, product: Product, values: ProductValues,
                      user_id: Optional[int]) -> None:
        previous_stock = product.stock
        CatalogService.update_product(self._session, product, values)
        if values.stock != previous_stock:
            record_movement(self._session, product.id, InventoryMovement.ADJUSTMENT,
                            values.stock, ADJUSTMENT_REASON, user_id)


def _describe(exc: Exception) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig if orig is not None else exc)
