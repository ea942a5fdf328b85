"""Catalog snapshot consumed by the matching engine.

A CatalogSnapshot is built once per catalog refresh and never mutated
afterwards; the engine swaps whole snapshots instead of editing products.
All indexes are keyed on normalized text. The curated synonym lexicon is
only consulted for whole-phrase synonym lookups; it never feeds the
typo-correction vocabulary or the fuzzy stage.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..matching.lexicon import SYNONYM_LEXICON
from ..matching.normalizer import normalize


@dataclass(frozen=True)
class CatalogProduct:
    """Single catalog product.

    Attributes:
        id: Stable product identifier (e.g. "chicken_breast")
        name: Canonical display name
        category: Catalog category (dairy, meat, ...)
        synonyms: Alternative strings entered by catalogers
        brands: Brands the product is known to be sold under
        unit: Selling unit (each, kg, litre, pint, ...)
    """
    id: str
    name: str
    category: Optional[str] = None
    synonyms: Tuple[str, ...] = ()
    brands: Tuple[str, ...] = ()
    unit: Optional[str] = None

    def to_dict(self):
        """Convert product to dictionary representation"""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "synonyms": list(self.synonyms),
            "brands": list(self.brands),
            "unit": self.unit,
        }


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable catalog view with precomputed matching indexes."""

    products: Tuple[CatalogProduct, ...] = ()
    _by_id: Dict[str, CatalogProduct] = field(default_factory=dict, repr=False, compare=False)
    _names: Dict[str, Tuple[str, ...]] = field(default_factory=dict, repr=False, compare=False)
    _synonyms: Dict[str, Tuple[str, ...]] = field(default_factory=dict, repr=False, compare=False)
    _brands: Dict[str, FrozenSet[str]] = field(default_factory=dict, repr=False, compare=False)
    _lexicon: Dict[str, Tuple[str, ...]] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def build(
        cls,
        products: Iterable[CatalogProduct],
        synonym_lexicon: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> "CatalogSnapshot":
        """Build a snapshot and its indexes.

        Later products with an already-seen id replace earlier ones.

        Args:
            products: Catalog products
            synonym_lexicon: {canonical name: synonyms}; defaults to
                SYNONYM_LEXICON, pass {} to disable

        Returns:
            CatalogSnapshot ready for matching
        """
        by_id: Dict[str, CatalogProduct] = {}
        for product in products:
            by_id[product.id] = product

        names: Dict[str, List[str]] = {}
        synonyms: Dict[str, List[str]] = {}
        brands: Dict[str, set] = {}

        for product_id in sorted(by_id):
            product = by_id[product_id]
            name_key = normalize(product.name)
            if name_key:
                names.setdefault(name_key, []).append(product_id)
            for synonym in product.synonyms:
                key = normalize(synonym)
                if key and product_id not in synonyms.get(key, []):
                    synonyms.setdefault(key, []).append(product_id)
            brands[product_id] = frozenset(
                b for b in (normalize(brand) for brand in product.brands) if b
            )

        return cls(
            products=tuple(by_id[pid] for pid in sorted(by_id)),
            _by_id=by_id,
            _names={k: tuple(v) for k, v in names.items()},
            _synonyms={k: tuple(v) for k, v in synonyms.items()},
            _brands=brands,
            _lexicon=_lexicon_index(
                names,
                SYNONYM_LEXICON if synonym_lexicon is None else synonym_lexicon,
            ),
        )

    @classmethod
    def empty(cls) -> "CatalogSnapshot":
        return cls.build([])

    def __len__(self) -> int:
        return len(self.products)

    @property
    def is_empty(self) -> bool:
        return not self.products

    def get(self, product_id: Optional[str]) -> Optional[CatalogProduct]:
        if product_id is None:
            return None
        return self._by_id.get(product_id)

    def ids_for_name(self, normalized_name: str) -> Tuple[str, ...]:
        """Product ids whose canonical name normalizes to the given text (sorted)."""
        return self._names.get(normalized_name, ())

    def ids_for_synonym(self, normalized_synonym: str) -> Tuple[str, ...]:
        """Product ids listing the given normalized synonym (sorted).

        Catalog synonyms shadow the curated lexicon.
        """
        return self._synonyms.get(normalized_synonym) or self._lexicon.get(normalized_synonym, ())

    def product_brands(self, product_id: str) -> FrozenSet[str]:
        """Normalized known brands of a product."""
        return self._brands.get(product_id, frozenset())

    def name_entries(self) -> List[Tuple[str, str]]:
        """(normalized canonical name, product id) pairs, sorted by id."""
        return [
            (name, product_id)
            for name, ids in self._names.items()
            for product_id in ids
        ]

    def synonym_entries(self) -> List[Tuple[str, str]]:
        """(normalized synonym, product id) pairs."""
        return [
            (synonym, product_id)
            for synonym, ids in self._synonyms.items()
            for product_id in ids
        ]

    def name_vocabulary(self) -> FrozenSet[str]:
        """Tokens appearing in canonical names."""
        return frozenset(token for name in self._names for token in name.split())

    def vocabulary(self) -> FrozenSet[str]:
        """Tokens appearing in canonical names and synonyms."""
        synonym_tokens = {token for synonym in self._synonyms for token in synonym.split()}
        return self.name_vocabulary() | synonym_tokens

    def brand_lexicon(self) -> FrozenSet[str]:
        """Every normalized brand known to the catalog."""
        lexicon = set()
        for product_brands in self._brands.values():
            lexicon.update(product_brands)
        return frozenset(lexicon)


def _lexicon_index(
    names: Mapping[str, List[str]],
    lexicon: Mapping[str, Sequence[str]],
) -> Dict[str, Tuple[str, ...]]:
    """Resolve a {canonical name: synonyms} lexicon against catalog names.

    Entries whose key names no product, and synonyms that are themselves a
    canonical name, are dropped.
    """
    index: Dict[str, List[str]] = {}
    for canonical, synonyms in lexicon.items():
        ids = names.get(normalize(canonical))
        if not ids:
            continue
        for synonym in synonyms:
            key = normalize(synonym)
            if not key or key in names:
                continue
            bucket = index.setdefault(key, [])
            for product_id in ids:
                if product_id not in bucket:
                    bucket.append(product_id)
    return {key: tuple(sorted(ids)) for key, ids in index.items()}
