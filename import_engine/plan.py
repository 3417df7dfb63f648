"""
import_engine.plan - Data contracts passed between pipeline stages.

ImportRow      - one CSV data line, typed by RowValidator
ImportOptions  - per-request configuration, immutable
StagedPlan     - the reviewable result of staging; JSON round-trips
                 through the plan store between preview and confirm
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Mapping, Optional


class DuplicatePolicy(str, Enum):
    SKIP = "skip"
    UPDATE = "update"
    CREATE = "create"

    @classmethod
    def parse(cls, value: Optional[str]) -> "DuplicatePolicy":
        """Unknown or missing values fall back to SKIP."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.SKIP


class RowStatus(str, Enum):
    PENDING = "pending"
    REJECTED = "rejected"
    STAGED = "staged"


_TRUE = frozenset({"1", "true", "on", "yes"})
_FALSE = frozenset({"0", "false", "off", "no", ""})


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return default


def _parse_int(value: Optional[str]) -> Optional[int]:
    try:
        return int((value or "").strip())
    except ValueError:
        return None


# ── Rows ───────────────────────────────────────────────────────────────

@dataclass
class ImportRow:
    """
    One CSV data line.

    ``raw`` is the header-keyed map produced by the parser; the typed
    attributes are filled once by RowValidator and are the only thing
    later stages read.
    """
    line: int
    raw: dict[str, str]
    problem: Optional[str] = None           # parse-level issue, rejected by the validator

    name: str = ""
    description: Optional[str] = None
    category: str = ""
    sku: Optional[str] = None
    purchase_price: Decimal = Decimal("0.00")
    sale_price: Decimal = Decimal("0.00")
    stock: int = 0
    stock_min: int = 0
    stock_max: Optional[int] = None
    unit: str = ""

    status: RowStatus = RowStatus.PENDING
    reasons: list[str] = field(default_factory=list)

    def reject(self, reasons: list[str]) -> None:
        self.status = RowStatus.REJECTED
        self.reasons = list(reasons)


@dataclass(frozen=True)
class ImportOptions:
    default_category_id: Optional[int] = None
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.SKIP
    initial_active_state: bool = True
    preview_only: bool = False

    @classmethod
    def from_form(cls, form: Mapping[str, str]) -> "ImportOptions":
        """Build options from submitted form fields, applying defaults."""
        return cls(
            default_category_id=_parse_int(form.get("default_category_id")),
            duplicate_policy=DuplicatePolicy.parse(form.get("duplicate_policy")),
            initial_active_state=_parse_bool(form.get("initial_active_state"), True),
            preview_only=_parse_bool(form.get("preview_only"), False),
        )

    def to_dict(self) -> dict:
        return {
            "default_category_id": self.default_category_id,
            "duplicate_policy": self.duplicate_policy.value,
            "initial_active_state": self.initial_active_state,
            "preview_only": self.preview_only,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ImportOptions":
        return cls(
            default_category_id=d.get("default_category_id"),
            duplicate_policy=DuplicatePolicy.parse(d.get("duplicate_policy")),
            initial_active_state=bool(d.get("initial_active_state", True)),
            preview_only=bool(d.get("preview_only", False)),
        )


# ── Plan entries ───────────────────────────────────────────────────────

@dataclass
class ProductValues:
    """Mutable product fields written by both inserts and updates."""
    category_id: int
    sale_price: Decimal
    description: Optional[str] = None
    purchase_price: Decimal = Decimal("0.00")
    stock: int = 0
    stock_min: int = 0
    stock_max: Optional[int] = None
    unit: str = "unit"
    active: bool = True

    def to_dict(self) -> dict:
        d = asdict(self)
        d["sale_price"] = str(self.sale_price)
        d["purchase_price"] = str(self.purchase_price)
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "ProductValues":
        return cls(
            category_id=int(d["category_id"]),
            sale_price=Decimal(d["sale_price"]),
            description=d.get("description"),
            purchase_price=Decimal(d.get("purchase_price", "0.00")),
            stock=int(d.get("stock", 0)),
            stock_min=int(d.get("stock_min", 0)),
            stock_max=d.get("stock_max"),
            unit=d.get("unit", "unit"),
            active=bool(d.get("active", True)),
        )


@dataclass
class NewProductRow:
    line: int
    name: str
    values: ProductValues
    sku: Optional[str] = None               # None → generate at commit time

    @property
    def sku_is_placeholder(self) -> bool:
        return not self.sku

    def to_dict(self) -> dict:
        return {"line": self.line, "name": self.name, "sku": self.sku,
                "values": self.values.to_dict()}

    @classmethod
    def from_dict(cls, d: dict) -> "NewProductRow":
        return cls(line=int(d["line"]), name=d["name"], sku=d.get("sku"),
                   values=ProductValues.from_dict(d["values"]))


@dataclass
class UpdateProductRow:
    line: int
    product_id: int
    name: str
    values: ProductValues

    def to_dict(self) -> dict:
        return {"line": self.line, "product_id": self.product_id,
                "name": self.name, "values": self.values.to_dict()}

    @classmethod
    def from_dict(cls, d: dict) -> "UpdateProductRow":
        return cls(line=int(d["line"]), product_id=int(d["product_id"]),
                   name=d["name"], values=ProductValues.from_dict(d["values"]))


# ── Plan ───────────────────────────────────────────────────────────────

@dataclass
class StagedPlan:
    options: ImportOptions
    new: list[NewProductRow] = field(default_factory=list)
    update: list[UpdateProductRow] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total(self) -> int:
        return len(self.new) + len(self.update) + len(self.skipped)

    @property
    def is_empty(self) -> bool:
        return not self.new and not self.update

    def to_dict(self) -> dict:
        return {
            "options": self.options.to_dict(),
            "new": [r.to_dict() for r in self.new],
            "update": [r.to_dict() for r in self.update],
            "skipped": list(self.skipped),
            "warnings": list(self.warnings),
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "StagedPlan":
        return cls(
            options=ImportOptions.from_dict(d.get("options", {})),
            new=[NewProductRow.from_dict(r) for r in d.get("new", [])],
            update=[UpdateProductRow.from_dict(r) for r in d.get("update", [])],
            skipped=list(d.get("skipped", [])),
            warnings=list(d.get("warnings", [])),
            created_at=datetime.fromisoformat(d["created_at"]),
        )
