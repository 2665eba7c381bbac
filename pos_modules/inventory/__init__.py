"""Inventory module: stock counter writes with an adjustment log."""

from pos_modules.inventory.orm import InventoryAdjustmentModel
from pos_modules.inventory.service import SqlInventoryMutator

__all__ = ["InventoryAdjustmentModel", "SqlInventoryMutator"]
