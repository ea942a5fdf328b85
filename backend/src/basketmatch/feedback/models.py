"""Feedback log and learned alias SQLAlchemy models"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, Text, UniqueConstraint

from ..models.base import Base
from .status import AliasStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FeedbackEvent(Base):
    """Append-only log of shopper feedback on match suggestions.

    Rows are never updated; the learned_alias table is derived from them.
    """
    __tablename__ = "feedback_event"

    id = Column(Integer, primary_key=True, autoincrement=True)

    original_query = Column(Text, nullable=False)
    normalized_query = Column(Text, nullable=False)

    # Product ids
    suggested_match = Column(Text, nullable=True)
    user_correction = Column(Text, nullable=True)

    accepted = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self):
        """Convert feedback event to dictionary representation"""
        return {
            "id": self.id,
            "original_query": self.original_query,
            "normalized_query": self.normalized_query,
            "suggested_match": self.suggested_match,
            "user_correction": self.user_correction,
            "accepted": self.accepted,
            "created_at": self.created_at.isoformat(),
        }


Index("idx_feedback_event_normalized_query", FeedbackEvent.normalized_query)
Index("idx_feedback_event_created", FeedbackEvent.created_at.desc())


class AliasMapping(Base):
    """Per-(normalized query, product) correction tally and learned alias.

    Status values (see feedback.status):
    - UNCONFIRMED: corrections counted, not yet used for matching
    - LEARNED: used by the resolver when weight >= learned accept threshold
    - RETIRED: decayed below the retire weight by contradicting feedback
    """
    __tablename__ = "learned_alias"

    id = Column(Integer, primary_key=True, autoincrement=True)

    term = Column(Text, nullable=False)  # Normalized query
    product_id = Column(Text, nullable=False)

    status = Column(Text, nullable=False, default=AliasStatus.UNCONFIRMED.value)
    weight = Column(Float, nullable=False, default=0.0)

    # Learning metrics
    support_count = Column(Integer, nullable=False, default=0)  # Corrections towards this product
    contradict_count = Column(Integer, nullable=False, default=0)  # Decays applied

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("term", "product_id", name="uq_learned_alias_term_product"),
    )

    def to_dict(self):
        """Convert alias mapping to dictionary representation."""
        return {
            "id": self.id,
            "term": self.term,
            "product_id": self.product_id,
            "status": self.status,
            "weight": self.weight,
            "support_count": self.support_count,
            "contradict_count": self.contradict_count,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


Index("idx_learned_alias_status_term", AliasMapping.status, AliasMapping.term)
