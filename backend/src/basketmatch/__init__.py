"""basketmatch: resolve free-text grocery-list entries to catalog products."""

__version__ = "0.1.0"

# matching before catalog: catalog.models imports the normalizer
from .matching import (
    MatchingConfig,
    MatchMethod,
    MatchResult,
    GroceryListMatch,
    BatchStats,
    MatcherError,
    InvalidInputError,
    normalize,
)
from .catalog import CatalogProduct, CatalogSnapshot, CatalogImportService, CatalogFileError
from .feedback import FeedbackStore, FeedbackRecord, LearnedAlias, FeedbackPersistenceError
from .engine import MatchingEngine

__all__ = [
    "__version__",
    "MatchingConfig",
    "MatchMethod",
    "MatchResult",
    "GroceryListMatch",
    "BatchStats",
    "MatcherError",
    "InvalidInputError",
    "normalize",
    "CatalogProduct",
    "CatalogSnapshot",
    "CatalogImportService",
    "CatalogFileError",
    "FeedbackStore",
    "FeedbackRecord",
    "LearnedAlias",
    "FeedbackPersistenceError",
    "MatchingEngine",
]
