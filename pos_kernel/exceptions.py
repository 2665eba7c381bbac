"""
Typed Exception Hierarchy for the purchasing kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (an HTTP layer, a CLI, a batch job) must map failures to a precise
outcome: a 400 for bad input, a 409 for a state conflict, a retry for a
concurrency conflict.  Parsing message strings for that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example - RIGHT way:
    try:
        receiving.receive(po_id, lines)
    except OverReceiptError as e:
        api_response(code=e.code, item=e.item_id, ordered=e.quantity_ordered)
    except ConcurrencyConflict:
        retry_later()

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PosKernelError (base)
    |
    +-- ValidationError
    |   +-- EmptyItemListError
    |   +-- InvalidQuantityError
    |   +-- InvalidAmountError
    |   +-- OverReceiptError
    |   +-- InactiveReferenceError
    |
    +-- StateError
    |
    +-- NotFoundError
    |   +-- PurchaseOrderNotFoundError
    |   +-- PurchaseOrderItemNotFoundError
    |   +-- VendorNotFoundError
    |   +-- ProductNotFoundError
    |
    +-- ConcurrencyConflict
    |
    +-- NegativeInventoryError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                      | When Raised
-------------|---------------------------|-----------------------------------
Validation   | VALIDATION_ERROR          | Malformed or out-of-range input
             | EMPTY_ITEM_LIST           | PO created/submitted with no items
             | INVALID_QUANTITY          | Quantity or receive delta <= 0
             | INVALID_AMOUNT            | Negative cost/override/total
             | OVER_RECEIPT              | received + delta > ordered
             | INACTIVE_REFERENCE        | Vendor is inactive
-------------|---------------------------|-----------------------------------
State        | INVALID_STATE_TRANSITION  | Operation not allowed in status
-------------|---------------------------|-----------------------------------
Not found    | NOT_FOUND                 | Generic missing reference
             | PURCHASE_ORDER_NOT_FOUND  | PO id does not exist
             | PO_ITEM_NOT_FOUND         | Item id not on this PO
             | VENDOR_NOT_FOUND          | Vendor id does not exist
             | PRODUCT_NOT_FOUND         | Product id does not exist
-------------|---------------------------|-----------------------------------
Concurrency  | CONCURRENCY_CONFLICT      | Competing transaction won the row
-------------|---------------------------|-----------------------------------
Inventory    | NEGATIVE_INVENTORY        | Stock would drop below zero

===============================================================================
PROPAGATION
===============================================================================

Every mutating service method owns its transaction.  Any exception rolls
the transaction back and is re-raised unchanged, so no partial state is
ever committed.  ConcurrencyConflict is the only error a caller may retry
blindly; everything else needs different input or a different PO state.
"""

from __future__ import annotations


class PosKernelError(Exception):
    """
    Base exception for all purchasing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "POS_KERNEL_ERROR"


# Validation exceptions


class ValidationError(PosKernelError):
    """Malformed or out-of-range input.  Raised before any mutation."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class EmptyItemListError(ValidationError):
    """A purchase order must carry at least one line item."""

    code: str = "EMPTY_ITEM_LIST"

    def __init__(self, po_id: str | None = None):
        self.po_id = po_id
        if po_id:
            message = f"Purchase order {po_id} has no line items"
        else:
            message = "At least one line item is required"
        super().__init__(message, field="items")


class InvalidQuantityError(ValidationError):
    """Quantity (ordered or received delta) must be a positive integer."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, field: str, value: object):
        self.value = value
        super().__init__(f"{field} must be a positive integer, got {value!r}", field=field)


class InvalidAmountError(ValidationError):
    """Monetary amount is negative or otherwise unusable."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: object, reason: str = "must not be negative"):
        self.value = str(value)
        self.reason = reason
        super().__init__(f"{field} {reason} (got {value})", field=field)


class OverReceiptError(ValidationError):
    """Receiving would push quantity_received above quantity_ordered."""

    code: str = "OVER_RECEIPT"

    def __init__(
        self,
        item_id: str,
        quantity_ordered: int,
        quantity_received: int,
        quantity_delta: int,
    ):
        self.item_id = item_id
        self.quantity_ordered = quantity_ordered
        self.quantity_received = quantity_received
        self.quantity_delta = quantity_delta
        super().__init__(
            f"Cannot receive {quantity_delta} more of item {item_id}: "
            f"{quantity_received} already received of {quantity_ordered} ordered",
            field="quantity_delta",
        )


class InactiveReferenceError(ValidationError):
    """A referenced vendor is inactive and cannot be ordered from."""

    code: str = "INACTIVE_REFERENCE"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} is inactive", field=f"{entity_type}_id")


# State exceptions


class StateError(PosKernelError):
    """Operation is not permitted in the purchase order's current status."""

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, po_id: str, current_status: str, action: str, allowed: tuple[str, ...] = ()):
        self.po_id = po_id
        self.current_status = current_status
        self.action = action
        self.allowed = allowed
        detail = f" (allowed from: {', '.join(allowed)})" if allowed else ""
        super().__init__(
            f"Cannot {action} purchase order {po_id} in status '{current_status}'{detail}"
        )


# Not-found exceptions


class NotFoundError(PosKernelError):
    """Referenced entity does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str, message: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message or f"{entity_type} not found: {entity_id}")


class PurchaseOrderNotFoundError(NotFoundError):
    code: str = "PURCHASE_ORDER_NOT_FOUND"

    def __init__(self, po_id: str):
        super().__init__("Purchase order", po_id)


class PurchaseOrderItemNotFoundError(NotFoundError):
    """Item id does not exist or belongs to a different purchase order."""

    code: str = "PO_ITEM_NOT_FOUND"

    def __init__(self, item_id: str, po_id: str):
        self.po_id = po_id
        super().__init__(
            "Purchase order item",
            item_id,
            f"Item {item_id} not found in purchase order {po_id}",
        )


class VendorNotFoundError(NotFoundError):
    code: str = "VENDOR_NOT_FOUND"

    def __init__(self, vendor_id: str):
        super().__init__("Vendor", vendor_id)


class ProductNotFoundError(NotFoundError):
    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        super().__init__("Product", product_id)


# Concurrency exceptions


class ConcurrencyConflict(PosKernelError):
    """
    A competing transaction changed the purchase order between read and write.

    Surfaced to the caller for retry; never merged silently.
    """

    code: str = "CONCURRENCY_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str, reason: str = ""):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Concurrent modification of {entity_type} {entity_id}{detail}"
        )


# Inventory exceptions


class NegativeInventoryError(PosKernelError):
    """Applying an inventory delta would leave stock below zero."""

    code: str = "NEGATIVE_INVENTORY"

    def __init__(self, product_id: str, current_quantity: int, delta: int):
        self.product_id = product_id
        self.current_quantity = current_quantity
        self.delta = delta
        super().__init__(
            f"Adjustment would result in negative inventory for product {product_id} "
            f"(current: {current_quantity}, change: {delta}, "
            f"result: {current_quantity + delta})"
        )
