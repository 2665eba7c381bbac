"""
pos_services -- Orchestration over the purchasing modules.

Dependency direction:
    pos_services -> pos_modules, pos_engines, pos_kernel, pos_config
    Nothing below this layer imports from it.
"""

from pos_services.orchestrator import PurchasingOrchestrator, build_purchasing_services
from pos_services.retry import retry_on_conflict

__all__ = ["PurchasingOrchestrator", "build_purchasing_services", "retry_on_conflict"]
