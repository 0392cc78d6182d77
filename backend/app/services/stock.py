"""Stock movements. Every quantity change leaves an InventoryAdjustment row."""

import logging
from uuid import UUID

from app.core.errors import InsufficientStockError
from app.models.inventory import AdjustmentReason, Inventory, InventoryAdjustment

logger = logging.getLogger(__name__)


def apply_stock_change(
    inventory: Inventory,
    delta: int,
    reason: AdjustmentReason,
    actor_id: UUID | None = None,
    note: str | None = None,
    order_id: UUID | None = None,
) -> InventoryAdjustment:
    """Move stock by ``delta`` and return the history row (caller adds it to the session)."""
    new_quantity = inventory.quantity + delta
    if new_quantity < 0:
        raise InsufficientStockError(
            f"Không đủ hàng tồn kho. Hiện có: {inventory.quantity}, yêu cầu: {abs(delta)}"
        )

    inventory.quantity = new_quantity
    logger.info(
        "Stock %s product=%s delta=%+d now=%d reason=%s",
        inventory.store_id, inventory.product_id, delta, new_quantity, reason.value,
    )
    return InventoryAdjustment(
        inventory_id=inventory.id,
        store_id=inventory.store_id,
        product_id=inventory.product_id,
        quantity_delta=delta,
        quantity_after=new_quantity,
        reason=reason,
        note=note,
        adjusted_by=actor_id,
        order_id=order_id,
    )
