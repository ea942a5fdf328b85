"""Learning analytics over the feedback log and learned alias table."""

from typing import List

from pydantic import BaseModel
from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from .models import AliasMapping, FeedbackEvent
from .status import AliasStatus


class CorrectedQueryStat(BaseModel):
    """Normalized query with its number of corrections"""
    query: str
    count: int


class LearningSummary(BaseModel):
    """Aggregated learning metrics"""
    total_feedback: int = 0
    accepted_feedback: int = 0
    rejected_feedback: int = 0
    learned_aliases: int = 0
    pending_aliases: int = 0
    retired_aliases: int = 0
    top_corrected_queries: List[CorrectedQueryStat] = []


def build_learning_summary(db: Session, top_n: int = 5) -> LearningSummary:
    """Aggregate feedback counts and alias status distribution.

    Args:
        db: Database session
        top_n: Number of most-corrected queries to include

    Returns:
        LearningSummary
    """
    total = db.query(func.count(FeedbackEvent.id)).scalar() or 0
    accepted = db.query(func.count(FeedbackEvent.id)).filter(
        FeedbackEvent.accepted.is_(True)
    ).scalar() or 0

    status_counts = dict(
        db.query(AliasMapping.status, func.count(AliasMapping.id))
        .group_by(AliasMapping.status)
        .all()
    )

    # Corrections only: rejected events that name a replacement product
    count_col = func.count(FeedbackEvent.id).label("corrections")
    corrected = db.query(
        FeedbackEvent.normalized_query,
        count_col,
    ).filter(
        FeedbackEvent.accepted.is_(False),
        FeedbackEvent.user_correction.isnot(None),
    ).group_by(
        FeedbackEvent.normalized_query
    ).order_by(
        desc(count_col), FeedbackEvent.normalized_query
    ).limit(top_n).all()

    return LearningSummary(
        total_feedback=total,
        accepted_feedback=accepted,
        rejected_feedback=total - accepted,
        learned_aliases=status_counts.get(AliasStatus.LEARNED.value, 0),
        pending_aliases=status_counts.get(AliasStatus.UNCONFIRMED.value, 0),
        retired_aliases=status_counts.get(AliasStatus.RETIRED.value, 0),
        top_corrected_queries=[
            CorrectedQueryStat(query=query, count=corrections)
            for query, corrections in corrected
        ],
    )
