"""Staged candidate resolution against a catalog snapshot.

Stages run in order and the first one producing a candidate wins:

1. exact    normalized query or core phrase == canonical name       -> 1.0
   learned  normalized query or core phrase == learned alias term   -> alias weight
2. alias    core phrase == catalog synonym                           -> 0.9
3. typo     corrected phrase == canonical name or synonym            -> fuzzy, rescaled similarity
            (a correction less similar than fuzzy_threshold is discarded)
4. partial  corrected phrase inside a canonical name or vice versa   -> 0.75
5. fuzzy    best token-sort similarity over names and synonyms       -> rescaled into [0.5, 0.85]

Within a stage, equal scores resolve to the smaller product id.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from rapidfuzz import fuzz

from ..catalog.models import CatalogSnapshot
from .ports import MatchCandidate, MatchMethod, MatchQuery
from .schemas import MatchingConfig
from .typo_corrector import TypoCorrector

logger = logging.getLogger(__name__)

EXACT_CONFIDENCE = 1.0
ALIAS_CONFIDENCE = 0.9
PARTIAL_CONFIDENCE = 0.75
FUZZY_MIN_CONFIDENCE = 0.5
FUZZY_MAX_CONFIDENCE = 0.85
PARTIAL_MIN_LENGTH_RATIO = 0.4

# term -> [(product_id, weight), ...]
LearnedAliasIndex = Mapping[str, Sequence[Tuple[str, float]]]


def rescale_similarity(similarity: float, threshold: float) -> float:
    """Map a similarity in [threshold, 1] onto [0.5, 0.85].

    Similarities below the threshold map to 0.5.
    """
    if threshold >= 1.0:
        return FUZZY_MAX_CONFIDENCE
    position = (similarity - threshold) / (1.0 - threshold)
    position = max(0.0, min(1.0, position))
    return FUZZY_MIN_CONFIDENCE + (FUZZY_MAX_CONFIDENCE - FUZZY_MIN_CONFIDENCE) * position


def similarity(a: str, b: str) -> float:
    """Token-order-insensitive similarity in [0, 1]."""
    return fuzz.token_sort_ratio(a, b) / 100.0


def _best(candidates: Iterable[MatchCandidate]) -> Optional[MatchCandidate]:
    """Highest score wins; ties go to the smaller product id."""
    best = None
    for candidate in candidates:
        if best is None:
            best = candidate
            continue
        if candidate.score > best.score or (
            candidate.score == best.score and candidate.product_id < best.product_id
        ):
            best = candidate
    return best


class CandidateResolver:
    """Resolve one prepared query against an immutable catalog snapshot.

    Built once per snapshot; safe to share across threads.
    """

    def __init__(self, snapshot: CatalogSnapshot, config: MatchingConfig):
        self.snapshot = snapshot
        self.config = config
        self.corrector = TypoCorrector(snapshot.vocabulary())
        self._entries: List[Tuple[str, str]] = snapshot.name_entries() + snapshot.synonym_entries()

    def resolve(
        self,
        query: MatchQuery,
        learned_aliases: Optional[LearnedAliasIndex] = None,
    ) -> Optional[MatchCandidate]:
        """Run the stages in order.

        Args:
            query: Normalized and extracted query; corrected_phrase is filled in
            learned_aliases: Learned alias index read for this call

        Returns:
            Winning MatchCandidate, or None when no stage matched
        """
        if not query.core_phrase or self.snapshot.is_empty:
            return None

        candidate = (
            self._exact(query)
            or self._learned(query, learned_aliases or {})
            or self._alias(query.core_phrase)
        )
        if candidate:
            return candidate

        phrase = self.corrector.correct(query.core_phrase)
        if phrase != query.core_phrase and similarity(query.core_phrase, phrase) < self.config.fuzzy_threshold:
            logger.debug("Discarded correction %r of %r", phrase, query.core_phrase)
            phrase = query.core_phrase
        query.corrected_phrase = phrase
        if phrase != query.core_phrase:
            logger.debug("Corrected %r to %r", query.core_phrase, phrase)
            candidate = self._corrected_hit(query.core_phrase, phrase)
            if candidate:
                return candidate

        return self._partial(phrase) or self._fuzzy(phrase)

    def _exact(self, query: MatchQuery) -> Optional[MatchCandidate]:
        for phrase in (query.normalized_text, query.core_phrase):
            ids = self.snapshot.ids_for_name(phrase)
            if ids:
                return MatchCandidate(
                    product_id=ids[0],
                    stage_confidence=EXACT_CONFIDENCE,
                    method=MatchMethod.EXACT,
                    matched_text=phrase,
                    phrase=phrase,
                )
        return None

    def _learned(self, query: MatchQuery, index: LearnedAliasIndex) -> Optional[MatchCandidate]:
        threshold = self.config.learned_accept_threshold
        for term in (query.normalized_text, query.core_phrase):
            candidate = _best(
                MatchCandidate(
                    product_id=product_id,
                    stage_confidence=weight,
                    method=MatchMethod.LEARNED,
                    matched_text=term,
                    phrase=term,
                    score=weight,
                )
                for product_id, weight in index.get(term, ())
                if weight >= threshold and self.snapshot.get(product_id) is not None
            )
            if candidate:
                return candidate
        return None

    def _alias(self, phrase: str) -> Optional[MatchCandidate]:
        ids = self.snapshot.ids_for_synonym(phrase)
        if not ids:
            return None
        return MatchCandidate(
            product_id=ids[0],
            stage_confidence=ALIAS_CONFIDENCE,
            method=MatchMethod.ALIAS,
            matched_text=phrase,
            phrase=phrase,
        )

    def _corrected_hit(self, original: str, corrected: str) -> Optional[MatchCandidate]:
        ids = self.snapshot.ids_for_name(corrected) or self.snapshot.ids_for_synonym(corrected)
        if not ids:
            return None
        score = similarity(original, corrected)
        return MatchCandidate(
            product_id=ids[0],
            stage_confidence=rescale_similarity(score, self.config.fuzzy_threshold),
            method=MatchMethod.FUZZY,
            matched_text=corrected,
            phrase=corrected,
            score=score,
        )

    def _partial(self, phrase: str) -> Optional[MatchCandidate]:
        padded = f" {phrase} "
        candidates = []
        for name, product_id in self.snapshot.name_entries():
            padded_name = f" {name} "
            # whole words only: "egg" must not hit "eggplant"
            if padded not in padded_name and padded_name not in padded:
                continue
            ratio = min(len(phrase), len(name)) / max(len(phrase), len(name))
            if ratio < PARTIAL_MIN_LENGTH_RATIO:
                continue
            candidates.append(MatchCandidate(
                product_id=product_id,
                stage_confidence=PARTIAL_CONFIDENCE,
                method=MatchMethod.PARTIAL,
                matched_text=name,
                phrase=phrase,
                score=ratio,
            ))
        return _best(candidates)

    def _fuzzy(self, phrase: str) -> Optional[MatchCandidate]:
        threshold = self.config.fuzzy_threshold
        scored: Dict[str, MatchCandidate] = {}

        for text, product_id in self._entries:
            score = similarity(phrase, text)
            if score < threshold:
                continue
            current = scored.get(product_id)
            if current is None or score > current.score:
                scored[product_id] = MatchCandidate(
                    product_id=product_id,
                    stage_confidence=rescale_similarity(score, threshold),
                    method=MatchMethod.FUZZY,
                    matched_text=text,
                    phrase=phrase,
                    score=score,
                )

        return _best(scored.values())
