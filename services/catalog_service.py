"""
services.catalog_service - Category and product lookups and writes.

All session management is the caller's responsibility (open before,
close/commit after).  This keeps the service testable and allows
the caller to batch multiple operations in one transaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from db.models import Category, Product

if TYPE_CHECKING:
    from import_engine.plan import ProductValues


class CatalogService:

    # ── Categories ─────────────────────────────────────────────────────

    @staticmethod
    def get_categories(session: Session, active_only: bool = True) -> list[Category]:
        q = session.query(Category)
        if active_only:
            q = q.filter(Category.active.is_(True))
        return q.order_by(Category.name).all()

    @staticmethod
    def get_category(session: Session, category_id: int) -> Category | None:
        return session.get(Category, category_id)

    # ── Product lookups ────────────────────────────────────────────────

    @staticmethod
    def find_product_by_name(session: Session, name: str) -> Product | None:
        """Exact, case-sensitive match among live products."""
        return session.query(Product).filter(
            Product.name == name, Product.deleted_at.is_(None),
        ).order_by(Product.id).first()

    @staticmethod
    def find_product_by_sku(session: Session, sku: str) -> Product | None:
        return session.query(Product).filter(
            Product.sku == sku, Product.deleted_at.is_(None),
        ).first()

    @staticmethod
    def get_product(session: Session, product_id: int) -> Product | None:
        product = session.get(Product, product_id)
        if product is None or product.deleted_at is not None:
            return None
        return product

    # ── Product writes ─────────────────────────────────────────────────

    @staticmethod
    def insert_product(session: Session, name: str, sku: str,
                       values: ProductValues) -> Product:
        product = Product(name=name, sku=sku)
        _apply_values(product, values)
        session.add(product)
        session.flush()
        return product

    @staticmethod
    def update_product(session: Session, product: Product,
                       values: ProductValues) -> Product:
        """Overwrite the mutable fields; name and SKU are left alone."""
        _apply_values(product, values)
        session.flush()
        return product


def _apply_values(product: Product, values: ProductValues) -> None:
    product.description = values.description
    product.category_id = values.category_id
    product.purchase_price = values.purchase_price
    product.sale_price = values.sale_price
    product.stock = values.stock
    product.stock_min = values.stock_min
    product.stock_max = values.stock_max
    product.unit = values.unit
    product.active = values.active
