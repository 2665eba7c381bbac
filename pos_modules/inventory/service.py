"""
SQL inventory mutator (``pos_modules.inventory.service``).

Responsibility
--------------
Implements the ``InventoryMutator`` protocol: apply a signed delta to a
product's ``quantity_in_stock`` and log the change, inside the caller's
transaction.

Invariants enforced
-------------------
* The product row is locked (``SELECT ... FOR UPDATE``) before it is read,
  so concurrent deltas serialize instead of overwriting each other.
* Stock never goes below zero; ``NegativeInventoryError`` is raised before
  anything is written.
* Flush only.  The calling service owns commit and rollback, which is what
  ties a receiving batch and its stock changes into one unit.
"""

from uuid import UUID

from sqlalchemy import select

from pos_kernel.db.conflicts import translate_conflicts
from pos_kernel.domain.clock import Clock, SystemClock
from pos_kernel.domain.collaborators import SYSTEM_ACTOR_ID
from pos_kernel.exceptions import NegativeInventoryError, ProductNotFoundError, ValidationError
from pos_kernel.logging_config import get_logger
from pos_kernel.services.base import BaseService
from pos_modules.catalog.orm import ProductModel
from pos_modules.inventory.orm import InventoryAdjustmentModel

logger = get_logger("modules.inventory.service")


class SqlInventoryMutator(BaseService[ProductModel]):
    """Row-locked stock updates with an adjustment log."""

    def __init__(self, session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def apply_inventory_delta(
        self,
        product_id: UUID,
        delta: int,
        *,
        reason: str = "",
        reference_id: UUID | None = None,
        actor_id: UUID | None = None,
    ) -> int:
        """
        Apply ``delta`` to the product's stock and return the new quantity.

        Raises:
            ValidationError: delta is zero or not an integer.
            ProductNotFoundError: no such product.
            NegativeInventoryError: the result would be below zero.
        """
        if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
            raise ValidationError(
                f"Inventory delta must be a non-zero integer, got {delta!r}",
                field="delta",
            )

        product = self.session.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if product is None:
            raise ProductNotFoundError(str(product_id))

        before = product.quantity_in_stock
        after = before + delta
        if after < 0:
            logger.warning(
                "inventory_negative_rejected",
                extra={
                    "product_id": str(product_id),
                    "quantity_in_stock": before,
                    "delta": delta,
                },
            )
            raise NegativeInventoryError(str(product_id), before, delta)

        actor = actor_id or SYSTEM_ACTOR_ID
        product.quantity_in_stock = after
        product.updated_by_id = actor
        self.session.add(
            InventoryAdjustmentModel(
                product_id=product_id,
                quantity_change=delta,
                quantity_before=before,
                quantity_after=after,
                reason=reason,
                reference_id=reference_id,
                adjusted_at=self._clock.now(),
                created_by_id=actor,
            )
        )
        with translate_conflicts("product", product_id):
            self.session.flush()

        logger.info(
            "inventory_delta_applied",
            extra={
                "product_id": str(product_id),
                "sku": product.sku,
                "delta": delta,
                "quantity_before": before,
                "quantity_after": after,
                "reason": reason,
            },
        )
        return after
