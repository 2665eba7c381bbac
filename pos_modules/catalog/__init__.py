"""Catalog module: vendor and product tables and their lookups."""

from pos_modules.catalog.orm import ProductModel, VendorModel
from pos_modules.catalog.service import SqlProductCatalog, SqlVendorDirectory

__all__ = ["ProductModel", "SqlProductCatalog", "SqlVendorDirectory", "VendorModel"]
