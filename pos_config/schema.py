"""
Purchasing settings schema (``pos_config.schema``).

Frozen dataclass holding every tunable the purchasing engine reads.
Defaults match ``sets/default.yaml``; ``validate()`` is run by the loader
so a malformed file fails loudly instead of falling back.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any


@dataclass(frozen=True)
class PurchasingSettings:
    """Runtime settings for purchase order numbering, paging and reorder."""

    po_number_prefix: str = "PO"
    po_sequence_width: int = 4
    money_decimal_places: int = 2
    reorder_require_active_vendor: bool = True
    cancel_note_prefix: str = "CANCELLED"
    default_page_size: int = 20
    max_page_size: int = 100
    conflict_retry_attempts: int = 3

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    def validate(self) -> None:
        """Raise ValueError describing the first invalid setting."""
        errors: list[str] = []

        if not self.po_number_prefix or not self.po_number_prefix.strip():
            errors.append("po_number_prefix must be a non-empty string")
        if self.po_sequence_width < 1:
            errors.append("po_sequence_width must be >= 1")
        if not 0 <= self.money_decimal_places <= 4:
            errors.append("money_decimal_places must be between 0 and 4")
        if not self.cancel_note_prefix or not self.cancel_note_prefix.strip():
            errors.append("cancel_note_prefix must be a non-empty string")
        if self.default_page_size < 1:
            errors.append("default_page_size must be >= 1")
        if self.max_page_size < self.default_page_size:
            errors.append("max_page_size must be >= default_page_size")
        if self.conflict_retry_attempts < 1:
            errors.append("conflict_retry_attempts must be >= 1")

        if errors:
            raise ValueError("Invalid purchasing settings: " + "; ".join(errors))

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
