"""Matching engine: single-item pipeline, grocery lists and feedback.

Pipeline per item:
    normalize → extract brand/quantity → resolve (exact, learned, alias,
    typo, partial, fuzzy) → score

The engine owns an immutable catalog snapshot reference and an optional
feedback store. Replacing the catalog swaps the whole snapshot at once;
in-flight calls keep the snapshot they started with.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Union

from .catalog.models import CatalogProduct, CatalogSnapshot
from .config import Settings, get_settings
from .feedback.ports import FeedbackPersistenceError, FeedbackRecord
from .feedback.services import FeedbackStore
from .matching.batch import BatchOrchestrator
from .matching.extractor import AttributeExtractor
from .matching.normalizer import normalize
from .matching.ports import GroceryListMatch, MatcherPort, MatchQuery, MatchResult
from .matching.resolver import CandidateResolver, LearnedAliasIndex
from .matching.schemas import MatchingConfig
from .matching.scorer import ConfidenceScorer

logger = logging.getLogger(__name__)

CatalogInput = Union[CatalogSnapshot, Iterable[CatalogProduct], None]


@dataclass(frozen=True)
class _CatalogState:
    """Snapshot plus the components derived from it."""
    snapshot: CatalogSnapshot
    extractor: AttributeExtractor
    resolver: CandidateResolver


class MatchingEngine(MatcherPort):
    """Grocery-list matcher over a catalog snapshot.

    Args:
        catalog: CatalogSnapshot, iterable of CatalogProduct, or None (empty)
        feedback_store: Store for feedback and learned aliases (optional)
        config: Matching options (defaults to MatchingConfig())
        brand_lexicon: Extra brands recognized on top of the built-in lexicon
    """

    def __init__(
        self,
        catalog: CatalogInput = None,
        feedback_store: Optional[FeedbackStore] = None,
        config: Optional[MatchingConfig] = None,
        brand_lexicon: Iterable[str] = (),
    ):
        self.config = config or MatchingConfig()
        self.feedback_store = feedback_store
        self._extra_brands = frozenset(b for b in (normalize(x) for x in brand_lexicon) if b)
        self._scorer = ConfidenceScorer()
        self._batch = BatchOrchestrator(self.config)
        self._warned_empty = False
        self._state = self._build_state(catalog)

    @classmethod
    def from_settings(
        cls,
        catalog: CatalogInput = None,
        settings: Optional[Settings] = None,
    ) -> "MatchingEngine":
        """Engine with config and a feedback store taken from Settings."""
        settings = settings or get_settings()
        store = FeedbackStore.from_url(
            settings.DATABASE_URL,
            promotion_threshold=settings.PROMOTION_THRESHOLD,
        )
        return cls(catalog, feedback_store=store, config=MatchingConfig.from_settings(settings))

    @property
    def snapshot(self) -> CatalogSnapshot:
        return self._state.snapshot

    def replace_catalog(self, catalog: CatalogInput) -> None:
        """Swap in a new catalog snapshot."""
        self._state = self._build_state(catalog)
        self._warned_empty = False
        logger.info(f"Catalog replaced: {len(self._state.snapshot)} products")

    def find_best_match(self, query: Any) -> MatchResult:
        """Resolve one grocery-list entry.

        Never raises for bad text: empty or non-string input yields a
        result with method "none".
        """
        raw = query if isinstance(query, str) else ("" if query is None else str(query))
        return self._resolve(self._state, self._load_aliases(), raw, normalize(raw))

    def match_grocery_list(self, items: List[Any]) -> GroceryListMatch:
        """Resolve a grocery list.

        Raises:
            InvalidInputError: If items is not a list or exceeds max_batch_size
        """
        self._batch.validate(items)

        state = self._state
        aliases = self._load_aliases()

        def resolve(raw: str, normalized: str) -> MatchResult:
            return self._resolve(state, aliases, raw, normalized)

        return self._batch.match_grocery_list(items, resolve)

    def record_user_feedback(
        self,
        original_query: str,
        suggested_match: Optional[str],
        correction: Optional[str] = None,
        accepted: bool = False,
    ) -> FeedbackRecord:
        """Record feedback on a suggestion.

        suggested_match and correction may be product ids or canonical names.

        Raises:
            FeedbackPersistenceError: If no store is configured or the write failed
        """
        if self.feedback_store is None:
            raise FeedbackPersistenceError("No feedback store configured")

        return self.feedback_store.record_feedback(
            original_query,
            suggested_match=self._product_ref(suggested_match),
            correction=self._product_ref(correction),
            accepted=accepted,
        )

    # Internals

    def _build_state(self, catalog: CatalogInput) -> _CatalogState:
        if catalog is None:
            snapshot = CatalogSnapshot.empty()
        elif isinstance(catalog, CatalogSnapshot):
            snapshot = catalog
        else:
            snapshot = CatalogSnapshot.build(catalog)

        return _CatalogState(
            snapshot=snapshot,
            extractor=AttributeExtractor(
                vocabulary=snapshot.name_vocabulary(),
                brands=snapshot.brand_lexicon() | self._extra_brands,
            ),
            resolver=CandidateResolver(snapshot, self.config),
        )

    def _load_aliases(self) -> LearnedAliasIndex:
        if self.feedback_store is None:
            return {}
        try:
            return self.feedback_store.alias_index(min_weight=self.config.learned_accept_threshold)
        except FeedbackPersistenceError as e:
            # Matching continues on the catalog alone
            logger.error(f"Learned aliases unavailable: {e}", exc_info=True)
            return {}

    def _product_ref(self, reference: Optional[str]) -> Optional[str]:
        """Map a canonical name to its product id; ids and unknowns pass through."""
        if not reference:
            return None
        snapshot = self._state.snapshot
        if snapshot.get(reference) is not None:
            return reference
        ids = snapshot.ids_for_name(normalize(reference))
        return ids[0] if ids else reference

    def _resolve(
        self,
        state: _CatalogState,
        aliases: LearnedAliasIndex,
        raw: str,
        normalized: str,
    ) -> MatchResult:
        if not normalized:
            return MatchResult.no_match(raw)

        if state.snapshot.is_empty and not self._warned_empty:
            self._warned_empty = True
            logger.warning("Catalog is empty; every query resolves to no match")

        attributes = state.extractor.extract(normalized)
        quantity = attributes.quantity.text if attributes.quantity else None
        query = MatchQuery(
            raw_text=raw,
            normalized_text=normalized,
            core_phrase=attributes.core_phrase,
            brand=attributes.brand,
            quantity=attributes.quantity,
        )

        candidate = state.resolver.resolve(query, aliases)
        if candidate is None:
            logger.debug("No match", extra={"query": raw, "method": "none"})
            return MatchResult.no_match(raw, brand=attributes.brand, quantity=quantity)

        product = state.snapshot.get(candidate.product_id)
        scored = self._scorer.score(
            candidate.stage_confidence,
            attributes,
            product,
            candidate.method,
            phrase=candidate.phrase,
        )

        logger.debug(
            "Matched",
            extra={
                "query": raw,
                "method": candidate.method.value,
                "product_id": product.id,
                "confidence": scored["confidence"],
            }
        )

        return MatchResult(
            query=raw,
            product_id=product.id,
            confidence=scored["confidence"],
            method=candidate.method,
            brand=attributes.brand,
            quantity=quantity,
            category=product.category,
            product_name=product.name,
            features={
                **scored["features"],
                "core_phrase": query.core_phrase,
                "corrected_phrase": query.corrected_phrase,
                "matched_text": candidate.matched_text,
            },
        )
