"""
db.models - SQLAlchemy ORM declarations.

Tables
------
users                - back-office accounts (role gates the import pages).
categories           - product categories, matched by name during import.
products             - catalogue rows.  ``sku`` is unique among live
                       (non-deleted) products.
inventory_movements  - append-only stock ledger.
audit_log            - who did what, one row per significant action.
staged_imports       - reviewable import plans, one per browser session.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, DateTime, Text, Boolean, Numeric,
    ForeignKey, Index, CheckConstraint, text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id            = Column(Integer, primary_key=True, autoincrement=True)
    username      = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role          = Column(String(20), nullable=False, default="seller")   # admin | seller
    active        = Column(Boolean, nullable=False, default=True)
    created_at    = Column(DateTime, default=_utcnow)


class Category(Base):
    __tablename__ = "categories"

    id     = Column(Integer, primary_key=True, autoincrement=True)
    name   = Column(String(100), nullable=False, unique=True)
    active = Column(Boolean, nullable=False, default=True)

    products = relationship("Product", back_populates="category")

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "active": bool(self.active)}


class Product(Base):
    __tablename__ = "products"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    name        = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    sku         = Column(String(50), nullable=False)

    # ── Pricing ────────────────────────────────────────────────────────
    purchase_price = Column(Numeric(12, 2), nullable=False, default=0)
    sale_price     = Column(Numeric(12, 2), nullable=False)

    # ── Stock ──────────────────────────────────────────────────────────
    stock     = Column(Integer, nullable=False, default=0)
    stock_min = Column(Integer, nullable=False, default=0)
    stock_max = Column(Integer, nullable=True)
    unit      = Column(String(20), nullable=False, default="unit")

    active     = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime, nullable=True)

    # ── Timestamps ─────────────────────────────────────────────────────
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    category  = relationship("Category", back_populates="products")
    movements = relationship(
        "InventoryMovement", back_populates="product",
        order_by="InventoryMovement.id",
    )

    __table_args__ = (
        Index(
            "uq_products_sku_live", "sku", unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
        CheckConstraint(
            "stock_max IS NULL OR stock_max >= stock_min",
            name="ck_products_stock_range",
        ),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
            "category_id": self.category_id,
            "sku": self.sku,
            "purchase_price": str(self.purchase_price),
            "sale_price": str(self.sale_price),
            "stock": self.stock,
            "stock_min": self.stock_min,
            "stock_max": self.stock_max,
            "unit": self.unit,
            "active": bool(self.active),
        }


class InventoryMovement(Base):
    """Append-only: rows are inserted, never updated or deleted."""
    __tablename__ = "inventory_movements"

    ENTRY = "entry"
    ADJUSTMENT = "adjustment"

    id            = Column(Integer, primary_key=True, autoincrement=True)
    product_id    = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    movement_type = Column(String(20), nullable=False)
    quantity      = Column(Integer, nullable=False)
    reason        = Column(String(255), nullable=False, default="")
    user_id       = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at    = Column(DateTime, default=_utcnow)

    product = relationship("Product", back_populates="movements")

    __table_args__ = (
        CheckConstraint(
            "movement_type IN ('entry', 'adjustment')",
            name="ck_movements_type",
        ),
    )


class AuditLog(Base):
    __tablename__ = "audit_log"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    user_id     = Column(Integer, ForeignKey("users.id"), nullable=True)
    action      = Column(String(50), nullable=False)
    description = Column(Text, default="")
    created_at  = Column(DateTime, default=_utcnow)


class StagedImport(Base):
    """
    Holding area for import plans awaiting review.

    Keyed by the browser session's import key; a new preview replaces
    the previous row for the same key.
    """
    __tablename__ = "staged_imports"

    id          = Column(Integer, primary_key=True, autoincrement=True)
    session_key = Column(String(64), unique=True, nullable=False, index=True)
    user_id     = Column(Integer, ForeignKey("users.id"), nullable=True)
    payload     = Column(Text, nullable=False)              # StagedPlan JSON
    created_at  = Column(DateTime, default=_utcnow)
