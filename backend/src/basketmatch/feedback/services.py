"""Feedback store: append-only feedback log plus learned alias promotion.

Learning rules per (normalized query, product id) pair:
- a rejection with a correction counts towards the corrected product;
  reaching promotion_threshold promotes the pair to LEARNED
- repeated corrections and accepted suggestions reinforce a LEARNED alias
- a correction decays the query's other LEARNED aliases; a rejection
  without one decays only the rejected suggestion. Aliases retire once
  the weight drops below the retire weight
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..database import build_session_factory, session_scope
from ..matching.normalizer import normalize
from .analytics import LearningSummary, build_learning_summary
from .models import AliasMapping, FeedbackEvent, utcnow
from .ports import FeedbackPersistenceError, FeedbackRecord, LearnedAlias
from .status import (
    AliasStatus,
    INITIAL_WEIGHT,
    decayed_weight,
    reinforced_weight,
    should_retire,
    validate_transition,
)

logger = logging.getLogger(__name__)

DEFAULT_PROMOTION_THRESHOLD = 3


class FeedbackStore:
    """Persist feedback and derive learned aliases.

    All access goes through one lock so promotion counting never sees a
    half-written tally. Every write is committed before the call returns.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        promotion_threshold: int = DEFAULT_PROMOTION_THRESHOLD,
    ):
        if promotion_threshold < 1:
            raise ValueError("promotion_threshold must be >= 1")
        self._session_factory = session_factory
        self.promotion_threshold = promotion_threshold
        self._lock = threading.Lock()

    @classmethod
    def from_url(
        cls,
        database_url: str,
        promotion_threshold: int = DEFAULT_PROMOTION_THRESHOLD,
    ) -> "FeedbackStore":
        """Create a store on a database URL, creating tables if needed."""
        return cls(build_session_factory(database_url), promotion_threshold)

    def record_feedback(
        self,
        original_query: str,
        suggested_match: Optional[str] = None,
        correction: Optional[str] = None,
        accepted: bool = False,
    ) -> FeedbackRecord:
        """Append a feedback record and update learned aliases.

        Args:
            original_query: Query text the suggestion was made for
            suggested_match: Product id the engine proposed
            correction: Product id the user chose instead
            accepted: Whether the suggestion was accepted

        Returns:
            The stored FeedbackRecord

        Raises:
            FeedbackPersistenceError: If the record could not be committed
        """
        original_query = "" if original_query is None else str(original_query)
        normalized = normalize(original_query)
        correction = correction or None
        suggested_match = suggested_match or None

        with self._lock:
            try:
                with session_scope(self._session_factory) as session:
                    event = FeedbackEvent(
                        original_query=original_query,
                        normalized_query=normalized,
                        suggested_match=suggested_match,
                        user_correction=correction,
                        accepted=bool(accepted),
                        created_at=utcnow(),
                    )
                    session.add(event)

                    if normalized:
                        self._learn(session, normalized, suggested_match, correction, bool(accepted))

                    session.flush()
                    record = self._to_record(event)
            except SQLAlchemyError as e:
                logger.error(
                    f"Failed to persist feedback: {e}",
                    extra={"query": original_query}
                )
                raise FeedbackPersistenceError(f"Failed to persist feedback: {e}") from e

        logger.debug(
            "Recorded feedback",
            extra={"query": normalized, "product_id": correction or suggested_match}
        )
        return record

    def learned_aliases(self, min_weight: float = 0.0) -> List[LearnedAlias]:
        """LEARNED aliases with weight >= min_weight, ordered by term then product id."""
        with self._read() as session:
            mappings = session.query(AliasMapping).filter(
                AliasMapping.status == AliasStatus.LEARNED.value,
                AliasMapping.weight >= min_weight
            ).order_by(AliasMapping.term, AliasMapping.product_id).all()

            return [
                LearnedAlias(
                    term=m.term,
                    product_id=m.product_id,
                    weight=m.weight,
                    support_count=m.support_count,
                    updated_at=m.updated_at,
                )
                for m in mappings
            ]

    def alias_index(self, min_weight: float = 0.0) -> Dict[str, List[Tuple[str, float]]]:
        """Learned aliases grouped by term: {term: [(product_id, weight), ...]}."""
        index: Dict[str, List[Tuple[str, float]]] = {}
        for alias in self.learned_aliases(min_weight):
            index.setdefault(alias.term, []).append((alias.product_id, alias.weight))
        return index

    def get_alias(self, query: str, product_id: str) -> Optional[Dict[str, Any]]:
        """Tally/alias row for a query and product in any status, or None."""
        with self._read() as session:
            mapping = session.query(AliasMapping).filter(
                AliasMapping.term == normalize(query),
                AliasMapping.product_id == product_id
            ).first()
            return mapping.to_dict() if mapping else None

    def list_feedback(self, limit: int = 100) -> List[FeedbackRecord]:
        """Most recent feedback records first."""
        with self._read() as session:
            events = session.query(FeedbackEvent).order_by(
                FeedbackEvent.created_at.desc(),
                FeedbackEvent.id.desc()
            ).limit(limit).all()
            return [self._to_record(event) for event in events]

    def learning_summary(self, top_n: int = 5) -> LearningSummary:
        with self._read() as session:
            return build_learning_summary(session, top_n=top_n)

    # Internals

    @contextmanager
    def _read(self) -> Iterator[Session]:
        with self._lock:
            try:
                with session_scope(self._session_factory) as session:
                    yield session
            except SQLAlchemyError as e:
                raise FeedbackPersistenceError(f"Failed to read feedback store: {e}") from e

    def _learn(
        self,
        session: Session,
        term: str,
        suggested_match: Optional[str],
        correction: Optional[str],
        accepted: bool,
    ) -> None:
        if accepted:
            if suggested_match:
                mapping = self._get_mapping(session, term, suggested_match)
                if mapping is not None and mapping.status == AliasStatus.LEARNED.value:
                    mapping.weight = reinforced_weight(mapping.weight)
                    mapping.updated_at = utcnow()
            return

        # A correction contradicts every other learned product of the query;
        # a bare rejection contradicts only the suggestion that was rejected
        if correction:
            contradicts = AliasMapping.product_id != correction
        elif suggested_match:
            contradicts = AliasMapping.product_id == suggested_match
        else:
            return

        contradicted = session.query(AliasMapping).filter(
            AliasMapping.term == term,
            AliasMapping.status == AliasStatus.LEARNED.value,
            contradicts
        )
        for mapping in contradicted.all():
            self._decay(mapping)

        if correction:
            self._tally(session, term, correction)

    def _tally(self, session: Session, term: str, product_id: str) -> None:
        now = utcnow()
        mapping = self._get_mapping(session, term, product_id)
        if mapping is None:
            mapping = AliasMapping(
                term=term,
                product_id=product_id,
                status=AliasStatus.UNCONFIRMED.value,
                weight=0.0,
                support_count=0,
                contradict_count=0,
                created_at=now,
                updated_at=now,
            )
            session.add(mapping)

        if mapping.status == AliasStatus.RETIRED.value:
            self._transition(mapping, AliasStatus.UNCONFIRMED)
            mapping.support_count = 0
            mapping.weight = 0.0

        mapping.support_count += 1
        mapping.updated_at = now

        if mapping.status == AliasStatus.LEARNED.value:
            mapping.weight = reinforced_weight(mapping.weight)
        elif mapping.support_count >= self.promotion_threshold:
            self._transition(mapping, AliasStatus.LEARNED)
            mapping.weight = INITIAL_WEIGHT
            logger.info(
                f"Learned alias {term!r} -> {product_id} after {mapping.support_count} corrections",
                extra={"term": term, "product_id": product_id, "status": mapping.status}
            )

    def _decay(self, mapping: AliasMapping) -> None:
        mapping.weight = decayed_weight(mapping.weight)
        mapping.contradict_count += 1
        mapping.updated_at = utcnow()

        if should_retire(mapping.weight):
            self._transition(mapping, AliasStatus.RETIRED)

        logger.warning(
            f"Learned alias {mapping.term!r} -> {mapping.product_id} contradicted, "
            f"weight now {mapping.weight:.2f}",
            extra={"term": mapping.term, "product_id": mapping.product_id, "status": mapping.status}
        )

    @staticmethod
    def _get_mapping(session: Session, term: str, product_id: str) -> Optional[AliasMapping]:
        return session.query(AliasMapping).filter(
            AliasMapping.term == term,
            AliasMapping.product_id == product_id
        ).first()

    @staticmethod
    def _transition(mapping: AliasMapping, new_status: AliasStatus) -> None:
        validate_transition(AliasStatus(mapping.status), new_status)
        mapping.status = new_status.value

    @staticmethod
    def _to_record(event: FeedbackEvent) -> FeedbackRecord:
        return FeedbackRecord(
            id=event.id,
            original_query=event.original_query,
            normalized_query=event.normalized_query,
            suggested_match=event.suggested_match,
            correction=event.user_correction,
            accepted=event.accepted,
            timestamp=event.created_at,
        )

