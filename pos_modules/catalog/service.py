"""
SQL-backed catalog lookups (``pos_modules.catalog.service``).

Implements the ``VendorDirectory`` and ``ProductCatalog`` protocols over
the catalog tables.  Read-only; no locks are taken.
"""

from uuid import UUID

from pos_kernel.domain.collaborators import ProductRecord, VendorRecord
from pos_kernel.logging_config import get_logger
from pos_kernel.selectors.base import BaseSelector
from pos_modules.catalog.orm import ProductModel, VendorModel

logger = get_logger("modules.catalog.service")


class SqlVendorDirectory(BaseSelector[VendorModel]):
    """Vendor lookups against the ``vendors`` table."""

    def get_vendor(self, vendor_id: UUID) -> VendorRecord | None:
        vendor = self.session.get(VendorModel, vendor_id)
        if vendor is None:
            logger.debug("vendor_lookup_miss", extra={"vendor_id": str(vendor_id)})
            return None
        return vendor.to_record()


class SqlProductCatalog(BaseSelector[ProductModel]):
    """Product lookups against the ``products`` table."""

    def get_product(self, product_id: UUID) -> ProductRecord | None:
        product = self.session.get(ProductModel, product_id)
        if product is None:
            logger.debug("product_lookup_miss", extra={"product_id": str(product_id)})
            return None
        return product.to_record()
