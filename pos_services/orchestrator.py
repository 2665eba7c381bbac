"""
pos_services.orchestrator -- Wiring for the purchasing services.

Responsibility:
    Constructs every purchasing collaborator exactly once for a session and
    wires them together.  No purchasing service builds its own
    collaborators; this is the one place the SQL-backed vendor directory,
    product catalog and inventory mutator are chosen.

Invariants enforced:
    - All services share one Session, one Clock and one PurchasingSettings.
    - The receiving processor and the inventory mutator write through the
      same session, so stock changes commit with the receipt.

Non-goals:
    - Does NOT open or close sessions.  Transaction boundaries belong to
      the individual service methods.

Usage:
    with session_scope() as session:
        services = build_purchasing_services(session)
        po = services.lifecycle.create(vendor_id, items, created_by=user_id)
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from pos_config import get_active_config
from pos_config.schema import PurchasingSettings
from pos_kernel.domain.clock import Clock, SystemClock
from pos_kernel.logging_config import get_logger
from pos_modules.catalog.service import SqlProductCatalog, SqlVendorDirectory
from pos_modules.inventory.service import SqlInventoryMutator
from pos_modules.purchasing.receiving import ReceivingProcessor
from pos_modules.purchasing.reorder import ReorderSuggestionService
from pos_modules.purchasing.selectors import PurchaseOrderSelector
from pos_modules.purchasing.service import PurchaseOrderService

logger = get_logger("services.orchestrator")


class PurchasingOrchestrator:
    """Holds one instance of each purchasing service for a session.

    Attributes:
        vendors / products / inventory: SQL-backed collaborators.
        lifecycle: create, update, delete, submit, approve, cancel, close.
        receiving: receive goods against approved orders.
        orders: read path (get, list, last unit cost).
        reorder: vendor-grouped reorder suggestions.
    """

    def __init__(
        self,
        session: Session,
        settings: PurchasingSettings,
        clock: Clock | None = None,
    ) -> None:
        self._session = session
        self.clock = clock or SystemClock()
        self.settings = settings

        # Collaborators first; purchasing services depend on them.
        self.vendors = SqlVendorDirectory(session)
        self.products = SqlProductCatalog(session)
        self.inventory = SqlInventoryMutator(session, self.clock)

        self.lifecycle = PurchaseOrderService(
            session,
            vendors=self.vendors,
            products=self.products,
            clock=self.clock,
            settings=settings,
        )
        self.receiving = ReceivingProcessor(session, self.inventory, clock=self.clock)
        self.orders = PurchaseOrderSelector(session, settings)
        self.reorder = ReorderSuggestionService(session, settings)

    @property
    def session(self) -> Session:
        return self._session


def build_purchasing_services(
    session: Session,
    clock: Clock | None = None,
    settings: PurchasingSettings | None = None,
) -> PurchasingOrchestrator:
    """Build the purchasing services, loading the active config if none is given."""
    if settings is None:
        settings = get_active_config()
    orchestrator = PurchasingOrchestrator(session, settings, clock)
    logger.debug(
        "purchasing_services_built",
        extra={"clock": type(orchestrator.clock).__name__},
    )
    return orchestrator
