"""Catalog snapshot import service (records, JSON, CSV)"""

import csv
import json
import logging
from io import StringIO
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple, Union

import chardet
from pydantic import ValidationError

from .models import CatalogProduct, CatalogSnapshot
from .schemas import CatalogProductSchema, CatalogImportError, CatalogImportResult

logger = logging.getLogger(__name__)


class CatalogFileError(Exception):
    """Raised when a catalog file cannot be read or parsed at all."""
    pass


class CatalogImportService:
    """Build CatalogSnapshots from external catalog exports.

    Invalid rows are collected in the CatalogImportResult and skipped; only an
    unreadable payload raises CatalogFileError.
    """

    def from_records(
        self,
        records: Iterable[Dict[str, Any]],
        first_row: int = 1
    ) -> Tuple[CatalogSnapshot, CatalogImportResult]:
        """Import products from already-parsed records.

        Args:
            records: Dicts with id, name, category, synonyms, brands, unit
            first_row: Row number reported for the first record

        Returns:
            Tuple of (snapshot, import result)
        """
        result = CatalogImportResult()
        products: Dict[str, CatalogProduct] = {}

        for row_num, record in enumerate(records, start=first_row):
            result.total_rows += 1
            product_id = record.get("id") if isinstance(record, dict) else None

            try:
                if not isinstance(record, dict):
                    raise ValueError("record must be an object")
                product = CatalogProductSchema(**record).to_product()
            except (ValidationError, ValueError, TypeError) as e:
                result.error_count += 1
                result.errors.append(CatalogImportError(
                    row=row_num,
                    product_id=str(product_id) if product_id is not None else None,
                    error=str(e)
                ))
                continue

            if product.id in products:
                result.errors.append(CatalogImportError(
                    row=row_num,
                    product_id=product.id,
                    error="duplicate id, later row replaces earlier one"
                ))
                result.error_count += 1
            else:
                result.imported_count += 1
            products[product.id] = product

        logger.info(
            "Catalog import finished: %d rows, %d products, %d errors",
            result.total_rows, len(products), result.error_count
        )

        return CatalogSnapshot.build(products.values()), result

    def from_json(self, payload: Union[str, bytes]) -> Tuple[CatalogSnapshot, CatalogImportResult]:
        """Import products from a JSON export.

        Accepts either a list of records or a {"products": {key: {...}}}
        mapping where each value carries displayName/category/synonyms and
        optional per-store prices with units.

        Args:
            payload: JSON text or bytes

        Returns:
            Tuple of (snapshot, import result)

        Raises:
            CatalogFileError: If the payload is not valid JSON of either shape
        """
        try:
            data = json.loads(payload)
        except (ValueError, TypeError) as e:
            raise CatalogFileError(f"Invalid catalog JSON: {e}") from e

        if isinstance(data, list):
            return self.from_records(data)

        if isinstance(data, dict) and isinstance(data.get("products"), dict):
            return self.from_records(
                self._keyed_product_to_record(key, value)
                for key, value in data["products"].items()
            )

        raise CatalogFileError("Catalog JSON must be a list of products or a {'products': {...}} mapping")

    def from_csv(self, file_bytes: bytes) -> Tuple[CatalogSnapshot, CatalogImportResult]:
        """Import products from CSV file bytes.

        Columns: id, name, category, unit, synonyms, brands. List columns are
        "|"-separated.

        Args:
            file_bytes: Raw CSV file bytes

        Returns:
            Tuple of (snapshot, import result)
        """
        # Detect encoding
        detected = chardet.detect(file_bytes)
        encoding = detected['encoding'] or 'utf-8'

        try:
            text = file_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            text = file_bytes.decode('utf-8', errors='replace')

        reader = csv.DictReader(StringIO(text))
        if not reader.fieldnames or "id" not in reader.fieldnames or "name" not in reader.fieldnames:
            raise CatalogFileError("Catalog CSV needs at least 'id' and 'name' columns")

        # Row 1 is the header
        return self.from_records((dict(row) for row in reader), first_row=2)

    def from_file(self, path: Union[str, Path]) -> Tuple[CatalogSnapshot, CatalogImportResult]:
        """Import a .json or .csv catalog file.

        Raises:
            CatalogFileError: If the file is missing, unreadable or of unknown type
        """
        path = Path(path)
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise CatalogFileError(f"Cannot read catalog file {path}: {e}") from e

        suffix = path.suffix.lower()
        if suffix == ".json":
            return self.from_json(raw)
        if suffix == ".csv":
            return self.from_csv(raw)

        raise CatalogFileError(f"Unsupported catalog file type: {suffix or path.name}")

    @staticmethod
    def _keyed_product_to_record(key: str, value: Any) -> Dict[str, Any]:
        if not isinstance(value, dict):
            return {"id": key}

        unit = value.get("unit")
        if not unit:
            prices = value.get("prices") or {}
            units: List[str] = [
                p.get("unit") for p in prices.values() if isinstance(p, dict) and p.get("unit")
            ]
            unit = units[0] if units else None

        brands = value.get("brands") or ([value["brand"]] if value.get("brand") else [])

        return {
            "id": key,
            "name": value.get("displayName") or value.get("name") or key,
            "category": value.get("category"),
            "synonyms": value.get("synonyms") or [],
            "brands": brands,
            "unit": unit,
        }
