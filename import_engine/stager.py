"""
import_engine.stager - Build a StagedPlan from a CSV upload.

parse → validate (all rows, abort on any rejection) → per row:
category → duplicate policy → unit → bucket.  Read-only against the
database; nothing here writes a product.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from import_engine.csv_parser import CsvParser
from import_engine.errors import (
    ImportFileError, ImportValidationFailed, RowValidationError,
)
from import_engine.plan import (
    ImportOptions, ImportRow, NewProductRow, ProductValues, RowStatus,
    StagedPlan, UpdateProductRow,
)
from import_engine.resolvers import (
    SKIP, UPDATE, CategoryResolver, DuplicateResolver, normalize_unit,
)
from import_engine.row_processor import RowValidator
from services.sequence_service import sku_in_use

logger = logging.getLogger(__name__)


class ImportStager:

    def __init__(self, session: Session, options: ImportOptions):
        self._session = session
        self.options = options

    def stage(self, file_content: str | bytes) -> StagedPlan:
        """
        Run the whole pipeline short of writing.

        Raises MissingRequiredColumn / ImportFileError / ImportValidationFailed.
        """
        parser = CsvParser(file_content)
        validator = RowValidator()

        accepted: list[tuple[ImportRow, list[str]]] = []
        errors: list[str] = []
        for row in parser:
            try:
                accepted.append((row, validator.validate(row)))
            except RowValidationError as exc:
                errors.append(str(exc))

        if errors:
            logger.warning(f"CSV import rejected: {len(errors)} invalid row(s)")
            raise ImportValidationFailed(errors)
        if not accepted:
            raise ImportFileError("The CSV file contains no data rows")

        categories = CategoryResolver(self._session, self.options.default_category_id)
        duplicates = DuplicateResolver(self._session, self.options.duplicate_policy)
        plan = StagedPlan(options=self.options)
        seen_skus: set[str] = set()

        for row, row_warnings in accepted:
            plan.warnings.extend(row_warnings)
            self._stage_row(row, plan, categories, duplicates, seen_skus)

        logger.info(
            f"Staged CSV import: {len(plan.new)} new, {len(plan.update)} to update, "
            f"{len(plan.skipped)} skipped, {len(plan.warnings)} warning(s)"
        )
        return plan

    # ── Private helpers ────────────────────────────────────────────────

    def _stage_row(self, row: ImportRow, plan: StagedPlan,
                   categories: CategoryResolver, duplicates: DuplicateResolver,
                   seen_skus: set[str]) -> None:
        category_id = categories.resolve(row.category)
        if category_id is None:
            plan.warnings.append(
                f"Line {row.line}: category '{row.category}' not found, product skipped")
            return

        res = duplicates.resolve(row.name, row.line)
        if res.warning:
            plan.warnings.append(res.warning)
        if res.action == SKIP:
            plan.skipped.append(row.name)
            row.status = RowStatus.STAGED
            return

        unit, unit_warning = normalize_unit(row.unit, row.line)
        if unit_warning:
            plan.warnings.append(unit_warning)

        values = ProductValues(
            category_id=category_id,
            sale_price=row.sale_price,
            description=row.description,
            purchase_price=row.purchase_price,
            stock=row.stock,
            stock_min=row.stock_min,
            stock_max=row.stock_max,
            unit=unit,
            active=self.options.initial_active_state,
        )

        if res.action == UPDATE:
            plan.update.append(UpdateProductRow(
                line=row.line, product_id=res.product_id, name=res.name, values=values))
        else:
            if row.sku and (row.sku in seen_skus or sku_in_use(self._session, row.sku)):
                plan.warnings.append(
                    f"Line {row.line}: SKU '{row.sku}' is already in use, "
                    f"a new one will be generated")
            if row.sku:
                seen_skus.add(row.sku)
            plan.new.append(NewProductRow(
                line=row.line, name=res.name, values=values, sku=row.sku))
        row.status = RowStatus.STAGED
