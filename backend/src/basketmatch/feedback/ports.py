"""Feedback value types and errors."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class FeedbackRecord:
    """One appended feedback event.

    Attributes:
        id: Storage id
        original_query: Query text as the shopper typed it
        normalized_query: normalize(original_query)
        suggested_match: Product id the engine proposed (None if nothing matched)
        correction: Product id the user picked instead, if any
        accepted: True when the user accepted the suggestion
        timestamp: When the record was written (UTC)
    """
    id: int
    original_query: str
    normalized_query: str
    suggested_match: Optional[str]
    correction: Optional[str]
    accepted: bool
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert feedback record to dictionary representation"""
        return {
            "id": self.id,
            "original_query": self.original_query,
            "normalized_query": self.normalized_query,
            "suggested_match": self.suggested_match,
            "correction": self.correction,
            "accepted": self.accepted,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class LearnedAlias:
    """Promoted (normalized query → product) association."""
    term: str
    product_id: str
    weight: float
    support_count: int
    updated_at: datetime


class FeedbackPersistenceError(Exception):
    """Raised when feedback cannot be written to or read from storage.

    Distinct from matching errors: a match result already returned to the
    caller stays valid and the feedback call can be retried.
    """
    pass
