"""
import_engine.row_processor - Validate and type one CSV row.

Single-responsibility: given an ImportRow fresh from the parser, either
fill in its typed fields or raise RowValidationError.  No database access.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional

from import_engine.errors import RowValidationError
from import_engine.plan import ImportRow

_CENTS = Decimal("0.01")

# Numeric(12, 2) price columns and 64-bit integer stock columns
MAX_PRICE = Decimal("9999999999.99")
MAX_INT = 2 ** 63 - 1


def parse_decimal(value: str) -> Optional[Decimal]:
    """Return a finite Decimal, or None when the text is not a number."""
    try:
        d = Decimal(value.strip())
    except (InvalidOperation, AttributeError):
        return None
    return d if d.is_finite() else None


class RowValidator:
    """
    Required-field and type checks.

    ``validate`` returns a list of non-fatal warnings (lenient coercions
    of optional columns) and raises RowValidationError when the row
    cannot be imported at all.
    """

    def validate(self, row: ImportRow) -> list[str]:
        raw = row.raw
        reasons: list[str] = []

        if row.problem:
            reasons.append(row.problem)

        name = raw.get("name", "")
        if not name:
            reasons.append("name is required")

        sale_price = parse_decimal(raw.get("sale_price", ""))
        if sale_price is None or sale_price <= 0:
            reasons.append("sale price must be a number greater than 0")
        elif sale_price > MAX_PRICE:
            reasons.append("sale price out of range")
        elif sale_price.quantize(_CENTS) <= 0:
            reasons.append("sale price must be a number greater than 0")

        if reasons:
            row.reject(reasons)
            raise RowValidationError(row.line, reasons)

        warnings: list[str] = []
        row.name = name
        row.sale_price = sale_price.quantize(_CENTS)
        row.description = raw.get("description") or None
        row.category = raw.get("category", "")
        row.sku = raw.get("sku") or None
        row.unit = raw.get("unit", "")

        purchase = self._optional_decimal(row, "purchase_price", warnings)
        row.purchase_price = (purchase if purchase is not None
                              else Decimal("0")).quantize(_CENTS)
        row.stock = self._optional_int(row, "stock", warnings) or 0
        row.stock_min = self._optional_int(row, "stock_min", warnings) or 0
        row.stock_max = self._optional_int(row, "stock_max", warnings)
        return warnings

    # ── Private helpers ────────────────────────────────────────────────

    @staticmethod
    def _optional_decimal(row: ImportRow, column: str,
                          warnings: list[str]) -> Optional[Decimal]:
        text = row.raw.get(column, "")
        if not text:
            return None
        value = parse_decimal(text)
        if value is None or abs(value) > MAX_PRICE:
            warnings.append(f"Line {row.line}: invalid {column} '{text}', using default")
            return None
        return value

    @staticmethod
    def _optional_int(row: ImportRow, column: str,
                      warnings: list[str]) -> Optional[int]:
        text = row.raw.get(column, "")
        if not text:
            return None
        value = parse_decimal(text)
        if value is None or abs(value) > MAX_INT:
            warnings.append(f"Line {row.line}: invalid {column} '{text}', using default")
            return None
        return int(value)       # truncates toward zero
