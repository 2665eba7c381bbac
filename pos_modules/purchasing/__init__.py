"""
Purchasing Module.

Purchase order lifecycle (draft through close), receiving against approved
orders with atomic stock updates, the PO read path, and vendor-grouped
reorder suggestions.
"""

from pos_modules.purchasing.models import (
    LineItemInput,
    OrderType,
    POStatus,
    PurchaseOrder,
    PurchaseOrderDetail,
    PurchaseOrderFilters,
    PurchaseOrderItem,
    PurchaseOrderPage,
    PurchaseOrderSummary,
    ReceiptRecord,
    ReceiveLine,
    ReceivingResult,
    ReorderSuggestion,
    ReorderSuggestionsByVendor,
)
from pos_modules.purchasing.receiving import ReceivingProcessor
from pos_modules.purchasing.reorder import ReorderSuggestionService
from pos_modules.purchasing.selectors import PurchaseOrderSelector
from pos_modules.purchasing.service import PurchaseOrderService
from pos_modules.purchasing.workflows import PURCHASE_ORDER_WORKFLOW

__all__ = [
    "LineItemInput",
    "OrderType",
    "POStatus",
    "PURCHASE_ORDER_WORKFLOW",
    "PurchaseOrder",
    "PurchaseOrderDetail",
    "PurchaseOrderFilters",
    "PurchaseOrderItem",
    "PurchaseOrderPage",
    "PurchaseOrderSelector",
    "PurchaseOrderService",
    "PurchaseOrderSummary",
    "ReceiptRecord",
    "ReceiveLine",
    "ReceivingProcessor",
    "ReceivingResult",
    "ReorderSuggestion",
    "ReorderSuggestionService",
    "ReorderSuggestionsByVendor",
]
