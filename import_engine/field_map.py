"""
import_engine.field_map - CSV column names and accepted values.

Header names are compared after lower-casing and trimming.
"""

REQUIRED_COLUMNS: tuple[str, ...] = ("name", "sale_price")

OPTIONAL_COLUMNS: tuple[str, ...] = (
    "description",
    "category",
    "sku",
    "purchase_price",
    "stock",
    "stock_min",
    "stock_max",
    "unit",
)

# Column order of the downloadable template
TEMPLATE_COLUMNS: tuple[str, ...] = (
    "name", "description", "category", "sku", "purchase_price",
    "sale_price", "stock", "stock_min", "stock_max", "unit",
)

DEFAULT_UNIT = "unit"
VALID_UNITS = frozenset({"unit", "kg", "gram", "liter", "meter", "box", "package"})
