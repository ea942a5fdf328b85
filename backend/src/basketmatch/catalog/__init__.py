"""Catalog snapshot types and import service.

The catalog is owned by an external component; this package only holds the
read-only snapshot the matcher consumes and the loaders that build one.
"""

from .models import CatalogProduct, CatalogSnapshot
from .schemas import CatalogProductSchema, CatalogImportError, CatalogImportResult
from .import_service import CatalogImportService, CatalogFileError

__all__ = [
    "CatalogProduct",
    "CatalogSnapshot",
    "CatalogProductSchema",
    "CatalogImportError",
    "CatalogImportResult",
    "CatalogImportService",
    "CatalogFileError",
]
