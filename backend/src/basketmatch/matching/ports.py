"""Matching value types, ports and errors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class MatchMethod(str, Enum):
    """Pipeline stage that produced a match."""
    EXACT = "exact"
    LEARNED = "learned"
    ALIAS = "alias"
    PARTIAL = "partial"
    FUZZY = "fuzzy"
    NONE = "none"


# Strength order: exact > learned > alias > partial > fuzzy > none
METHOD_STRENGTH = {
    MatchMethod.EXACT: 5,
    MatchMethod.LEARNED: 4,
    MatchMethod.ALIAS: 3,
    MatchMethod.PARTIAL: 2,
    MatchMethod.FUZZY: 1,
    MatchMethod.NONE: 0,
}


@dataclass(frozen=True)
class Quantity:
    """Quantity or size extracted from a query.

    Attributes:
        text: Token(s) as found in the normalized query ("2l", "dozen")
        amount: Numeric amount, if any
        unit: Canonical unit code (L, KG, DOZEN, ...), if any
    """
    text: str
    amount: Optional[float] = None
    unit: Optional[str] = None


@dataclass(frozen=True)
class ExtractedAttributes:
    """Output of attribute extraction."""
    core_phrase: str
    brand: Optional[str] = None
    quantity: Optional[Quantity] = None


@dataclass
class MatchQuery:
    """A query as it moves through the pipeline.

    Attributes:
        raw_text: Text as typed by the shopper
        normalized_text: normalize(raw_text)
        core_phrase: Normalized text without brand and quantity tokens
        brand: Extracted brand, if any
        quantity: Extracted quantity, if any
        corrected_phrase: core_phrase after typo correction (None until corrected)
    """
    raw_text: str
    normalized_text: str
    core_phrase: str
    brand: Optional[str] = None
    quantity: Optional[Quantity] = None
    corrected_phrase: Optional[str] = None


@dataclass(frozen=True)
class MatchCandidate:
    """Candidate produced by one resolver stage before final scoring.

    Attributes:
        product_id: Catalog product id
        stage_confidence: Base confidence assigned by the stage
        method: Stage that produced the candidate
        matched_text: Catalog/alias string the phrase was compared with
        phrase: Query phrase used by the stage
        score: Stage-internal ranking score (similarity, length ratio, weight)
    """
    product_id: str
    stage_confidence: float
    method: MatchMethod
    matched_text: str
    phrase: str
    score: float = 1.0


@dataclass
class MatchResult:
    """Result of resolving a single grocery-list entry.

    Attributes:
        query: Originating query text
        product_id: Matched product id (None if no match)
        confidence: Final confidence (0.0 if no match)
        method: Stage that produced the match (NONE if no match)
        brand: Extracted brand echoed back
        quantity: Extracted quantity text echoed back
        category: Category of the matched product
        product_name: Canonical name of the matched product
        features: Scoring breakdown for debugging
    """
    query: str
    product_id: Optional[str] = None
    confidence: float = 0.0
    method: MatchMethod = MatchMethod.NONE
    brand: Optional[str] = None
    quantity: Optional[str] = None
    category: Optional[str] = None
    product_name: Optional[str] = None
    features: Dict[str, Any] = field(default_factory=dict)

    @property
    def matched(self) -> bool:
        return self.product_id is not None

    @classmethod
    def no_match(cls, query: str, brand: Optional[str] = None,
                 quantity: Optional[str] = None) -> "MatchResult":
        return cls(query=query, brand=brand, quantity=quantity)

    def to_dict(self) -> Dict[str, Any]:
        """Convert match result to dictionary representation"""
        return {
            "query": self.query,
            "product_id": self.product_id,
            "confidence": self.confidence,
            "method": self.method.value,
            "brand": self.brand,
            "quantity": self.quantity,
            "category": self.category,
            "product_name": self.product_name,
            "features": dict(self.features),
        }


@dataclass
class BatchStats:
    """Aggregate statistics of one grocery-list call."""
    total_items: int = 0
    matched_items: int = 0
    unmatched_items: int = 0
    match_rate: float = 0.0
    method_breakdown: Dict[str, int] = field(default_factory=dict)
    average_confidence: float = 0.0


@dataclass
class GroceryListMatch:
    """Partitioned result of a grocery-list call."""
    matched: List[MatchResult] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)
    stats: BatchStats = field(default_factory=BatchStats)


class MatcherPort(ABC):
    """Port interface for grocery-list matching."""

    @abstractmethod
    def find_best_match(self, query: str) -> MatchResult:
        """Resolve one grocery-list entry.

        Args:
            query: Free-text entry

        Returns:
            MatchResult (method NONE when nothing matched)
        """
        pass

    @abstractmethod
    def match_grocery_list(self, items: List[str]) -> GroceryListMatch:
        """Resolve a list of entries.

        Args:
            items: Free-text entries

        Returns:
            GroceryListMatch partitioned into matched/unmatched

        Raises:
            InvalidInputError: If items is not a list or is too long
        """
        pass


class MatcherError(Exception):
    """Exception raised for matching errors."""
    pass


class InvalidInputError(MatcherError):
    """Raised when a grocery-list argument is malformed or too large."""
    pass
