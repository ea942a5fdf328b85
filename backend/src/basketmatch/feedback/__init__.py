"""Feedback module for the learning loop

This module handles:
- Feedback capture (append-only log of accepted/rejected suggestions)
- Promotion of repeated corrections into learned aliases
- Learning analytics aggregation
"""

from .models import FeedbackEvent, AliasMapping
from .ports import FeedbackRecord, LearnedAlias, FeedbackPersistenceError
from .status import AliasStatus, StateTransitionError
from .analytics import LearningSummary, CorrectedQueryStat
from .services import FeedbackStore

__all__ = [
    "FeedbackEvent",
    "AliasMapping",
    "FeedbackRecord",
    "LearnedAlias",
    "FeedbackPersistenceError",
    "AliasStatus",
    "StateTransitionError",
    "LearningSummary",
    "CorrectedQueryStat",
    "FeedbackStore",
]
