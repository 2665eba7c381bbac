"""
Pure domain layer.

Value objects and interfaces with no dependency on the ORM, the database
or I/O (SystemClock aside).
"""

from pos_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from pos_kernel.domain.collaborators import (
    InventoryMutator,
    ProductCatalog,
    SYSTEM_ACTOR_ID,
    ProductRecord,
    VendorDirectory,
    VendorRecord,
)
from pos_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "Guard",
    "InventoryMutator",
    "ProductCatalog",
    "ProductRecord",
    "SYSTEM_ACTOR_ID",
    "SystemClock",
    "Transition",
    "VendorDirectory",
    "VendorRecord",
    "Workflow",
]
