"""Kernel services (write side, flush-only)."""

from pos_kernel.services.base import BaseService
from pos_kernel.services.sequence_service import SequenceCounter, SequenceService

__all__ = ["BaseService", "SequenceCounter", "SequenceService"]
