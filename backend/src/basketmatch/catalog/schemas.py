"""Pydantic schemas for catalog records and catalog imports"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .models import CatalogProduct


class CatalogProductSchema(BaseModel):
    """Validated catalog product record"""
    id: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=500)
    category: Optional[str] = None
    synonyms: List[str] = Field(default_factory=list)
    brands: List[str] = Field(default_factory=list)
    unit: Optional[str] = None

    @field_validator('id', 'name')
    @classmethod
    def strip_required(cls, v: str) -> str:
        """Reject whitespace-only ids and names"""
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator('synonyms', 'brands', mode='before')
    @classmethod
    def split_list(cls, v):
        """Accept "a|b|c" strings as well as lists"""
        if v is None:
            return []
        if isinstance(v, str):
            return [part.strip() for part in v.split("|") if part.strip()]
        return v

    @field_validator('category', 'unit', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_product(self) -> CatalogProduct:
        """Convert to the immutable engine-side product"""
        return CatalogProduct(
            id=self.id,
            name=self.name,
            category=self.category,
            synonyms=tuple(s for s in self.synonyms if s.strip()),
            brands=tuple(b for b in self.brands if b.strip()),
            unit=self.unit,
        )


class CatalogImportError(BaseModel):
    """Single row error during catalog import"""
    row: int
    product_id: Optional[str] = None
    error: str


class CatalogImportResult(BaseModel):
    """Counts and errors of a catalog import"""
    total_rows: int = 0
    imported_count: int = 0
    error_count: int = 0
    errors: List[CatalogImportError] = Field(default_factory=list)
