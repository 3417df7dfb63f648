"""
services.sequence_service - SKU allocation.

Isolated so both the product form flow and the import engine
can share the same logic.

Format:  CAT-NAM-NNNN
         CAT/NAM = first three letters/digits of category and product name,
         NNNN    = per-prefix sequence (0001-9999, widening beyond).
"""

from __future__ import annotations

import re
import unicodedata

from sqlalchemy.orm import Session

from db.models import Category, Product
from services.catalog_service import CatalogService


def _segment(text: str, fallback: str) -> str:
    ascii_text = unicodedata.normalize("NFKD", text or "").encode("ascii", "ignore").decode()
    letters = re.sub(r"[^A-Za-z0-9]", "", ascii_text).upper()
    return letters[:3] or fallback


def sku_prefix(session: Session, name: str, category_id: int) -> str:
    category = session.get(Category, category_id)
    cat = _segment(category.name if category else "", "GEN")
    return f"{cat}-{_segment(name, 'PRD')}-"


def _next_number(session: Session, prefix: str) -> int:
    rows = session.query(Product.sku).filter(Product.sku.like(f"{prefix}%")).all()
    highest = 0
    for (sku,) in rows:
        tail = sku[len(prefix):]
        if re.fullmatch(r"[0-9]+", tail):
            highest = max(highest, int(tail))
    return highest + 1


def sku_in_use(session: Session, sku: str) -> bool:
    """True when a live (non-deleted) product already carries ``sku``."""
    return CatalogService.find_product_by_sku(session, sku) is not None


def generate_unique_sku(session: Session, name: str, category_id: int) -> str:
    """
    Return a SKU not used by any live product.

    Collision-checked against the store (including rows flushed earlier in
    the current transaction); regenerated with the next number on collision.
    """
    prefix = sku_prefix(session, name, category_id)
    n = _next_number(session, prefix)
    while True:
        sku = f"{prefix}{n:04d}"
        if not sku_in_use(session, sku):
            return sku
        n += 1
