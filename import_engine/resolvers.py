"""
import_engine.resolvers - Per-row lookups against existing data.

CategoryResolver   free-text category → category id (with default fallback)
DuplicateResolver  product name → new / update / skip, per duplicate policy
normalize_unit     unit of measure → one of VALID_UNITS

DuplicateResolver is used both when staging and again when committing,
so the two phases cannot disagree about what a duplicate is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from import_engine.errors import ImportFileError
from import_engine.field_map import DEFAULT_UNIT, VALID_UNITS
from import_engine.plan import DuplicatePolicy
from services.catalog_service import CatalogService


class CategoryResolver:
    """Case-insensitive exact match over active categories."""

    def __init__(self, session: Session, default_category_id: Optional[int] = None):
        self._by_name: dict[str, int] = {}
        for cat in sorted(CatalogService.get_categories(session), key=lambda c: c.id):
            self._by_name.setdefault(cat.name.strip().lower(), cat.id)

        if default_category_id is not None:
            category = CatalogService.get_category(session, default_category_id)
            if category is None or not category.active:
                raise ImportFileError(
                    f"Default category {default_category_id} does not exist or is inactive")
        self.default_category_id = default_category_id

    def resolve(self, category_name: str) -> Optional[int]:
        """Return the category id, the default, or None (row must be dropped)."""
        key = (category_name or "").strip().lower()
        if key and key in self._by_name:
            return self._by_name[key]
        return self.default_category_id


# ── Duplicates ─────────────────────────────────────────────────────────

NEW = "new"
UPDATE = "update"
SKIP = "skip"


@dataclass
class Resolution:
    action: str                         # NEW | UPDATE | SKIP
    name: str
    product_id: Optional[int] = None
    warning: Optional[str] = None


class DuplicateResolver:
    """
    Decide what to do with a product name.

    Names are matched exactly (case-sensitive) against live products and
    against names already claimed by earlier rows of the same run.
    """

    def __init__(self, session: Session, policy: DuplicatePolicy):
        self._session = session
        self.policy = policy
        self._claimed: dict[str, int] = {}      # name → line that claimed it

    def resolve(self, name: str, line: int) -> Resolution:
        existing = CatalogService.find_product_by_name(self._session, name)
        claimed_by = self._claimed.get(name)

        if existing is None and claimed_by is None:
            self._claimed[name] = line
            return Resolution(NEW, name)

        if self.policy is DuplicatePolicy.UPDATE and existing is not None:
            return Resolution(UPDATE, name, product_id=existing.id)

        if self.policy is DuplicatePolicy.CREATE:
            return Resolution(NEW, self._unique_name(name, line))

        warning = None
        if existing is None:
            warning = (f"Line {line}: '{name}' repeats line {claimed_by} "
                       f"of this file, product skipped")
        return Resolution(SKIP, name, warning=warning)

    def _unique_name(self, name: str, line: int) -> str:
        n = 1
        while True:
            candidate = f"{name} ({n})"
            if (candidate not in self._claimed
                    and CatalogService.find_product_by_name(self._session, candidate) is None):
                self._claimed[candidate] = line
                return candidate
            n += 1


# ── Units ──────────────────────────────────────────────────────────────

def normalize_unit(value: str, line: int) -> tuple[str, Optional[str]]:
    """Return (unit, warning).  Anything outside VALID_UNITS becomes 'unit'."""
    unit = (value or "").strip().lower()
    if unit in VALID_UNITS:
        return unit, None
    return DEFAULT_UNIT, (f"Line {line}: invalid unit of measure '{value}', "
                         f"using '{DEFAULT_UNIT}'")
