"""
services.inventory_service - Append-only stock ledger.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from db.models import InventoryMovement


def record_movement(
    session: Session,
    product_id: int,
    movement_type: str,
    quantity: int,
    reason: str,
    user_id: Optional[int],
) -> InventoryMovement:
    """Insert one movement row.  ``movement_type`` is 'entry' or 'adjustment'."""
    if movement_type not in (InventoryMovement.ENTRY, InventoryMovement.ADJUSTMENT):
        raise ValueError(f"Unknown movement type {movement_type!r}")
    movement = InventoryMovement(
        product_id=product_id,
        movement_type=movement_type,
        quantity=quantity,
        reason=reason,
        user_id=user_id,
    )
    session.add(movement)
    session.flush()
    return movement
