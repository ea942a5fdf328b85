"""Matching module for basketmatch.

This module implements staged grocery-item matching combining:
- Text normalization and quantity/brand extraction
- Vocabulary-bounded typo correction
- Exact, learned, synonym, partial and fuzzy resolution stages
- Brand/unit agreement scoring
"""

# normalizer first: catalog.models depends on it
from .normalizer import normalize, singularize, EMPTY
from .ports import (
    MatcherPort,
    MatchMethod,
    MatchQuery,
    MatchResult,
    MatchCandidate,
    Quantity,
    ExtractedAttributes,
    BatchStats,
    GroceryListMatch,
    MatcherError,
    InvalidInputError,
)
from .schemas import MatchingConfig
from .extractor import AttributeExtractor
from .typo_corrector import TypoCorrector
from .resolver import CandidateResolver
from .scorer import ConfidenceScorer
from .batch import BatchOrchestrator

__all__ = [
    "normalize",
    "singularize",
    "EMPTY",
    "MatcherPort",
    "MatchMethod",
    "MatchQuery",
    "MatchResult",
    "MatchCandidate",
    "Quantity",
    "ExtractedAttributes",
    "BatchStats",
    "GroceryListMatch",
    "MatcherError",
    "InvalidInputError",
    "MatchingConfig",
    "AttributeExtractor",
    "TypoCorrector",
    "CandidateResolver",
    "ConfidenceScorer",
    "BatchOrchestrator",
]
