"""
Module: pos_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines used by
    the purchasing module.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import pos_kernel.db.types (and sibling engine modules).
    MUST NOT import pos_services or pos_modules.

Invariants enforced:
    - Purity: engines never read the clock; dates are passed in by callers.
    - Decimal-only arithmetic for money.
    - Determinism: identical inputs always produce identical outputs.

Every engine invocation is traced via ``@traced_engine``
(see ``pos_engines.tracer``).
"""

from pos_engines.receipt_status import (
    ReceiptStatus,
    ReceiptTotals,
    derive_receipt_status,
    sum_quantities,
)
from pos_engines.reorder import (
    ReorderCandidate,
    ReorderSuggestion,
    ReorderSuggestionsByVendor,
    group_reorder_suggestions,
)
from pos_engines.totals import LineAmounts, OrderTotals, calculate_order_totals
from pos_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "LineAmounts",
    "OrderTotals",
    "ReceiptStatus",
    "ReceiptTotals",
    "ReorderCandidate",
    "ReorderSuggestion",
    "ReorderSuggestionsByVendor",
    "calculate_order_totals",
    "compute_input_fingerprint",
    "derive_receipt_status",
    "group_reorder_suggestions",
    "sum_quantities",
    "traced_engine",
]
