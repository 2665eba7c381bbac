"""Read-only selectors (query side)."""

from pos_kernel.selectors.base import BaseSelector

__all__ = ["BaseSelector"]
