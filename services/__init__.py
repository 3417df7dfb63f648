"""
services - Business-logic layer sitting between UI/import engine and DB.
"""

from services.catalog_service import CatalogService                  # noqa: F401
from services.sequence_service import generate_unique_sku, sku_in_use  # noqa: F401
from services.inventory_service import record_movement               # noqa: F401
from services import audit_service                                   # noqa: F401
