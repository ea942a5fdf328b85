"""Grocery-list orchestration: validation, call-scoped memoization, stats."""

import contextvars
import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..observability.batch_id import generate_batch_id, reset_batch_id, set_batch_id
from .normalizer import normalize
from .ports import BatchStats, GroceryListMatch, InvalidInputError, MatchResult
from .schemas import MatchingConfig

logger = logging.getLogger(__name__)

# (raw_text, normalized_text) -> MatchResult
ItemResolver = Callable[[str, str], MatchResult]


def coerce_item(item: Any) -> Tuple[str, bool]:
    """Turn a list item into query text.

    Returns:
        (text, usable): strings and numbers are usable; anything else is
        reported under its str() form (None as "") and never resolved
    """
    if isinstance(item, str):
        return item, True
    if isinstance(item, (int, float)) and not isinstance(item, bool):
        return str(item), True
    return ("" if item is None else str(item)), False


def compute_stats(total: int, matched: List[MatchResult]) -> BatchStats:
    breakdown = Counter(result.method.value for result in matched)
    average = sum(r.confidence for r in matched) / len(matched) if matched else 0.0
    return BatchStats(
        total_items=total,
        matched_items=len(matched),
        unmatched_items=total - len(matched),
        match_rate=round(len(matched) / total, 4) if total else 0.0,
        method_breakdown=dict(sorted(breakdown.items())),
        average_confidence=round(average, 4),
    )


class BatchOrchestrator:
    """Run the single-item pipeline over a grocery list.

    Identical normalized entries are resolved once per call; nothing is
    cached across calls.
    """

    def __init__(self, config: MatchingConfig):
        self.config = config

    def validate(self, items: Any) -> None:
        """Raise InvalidInputError for a non-list or oversized grocery list."""
        if not isinstance(items, list):
            raise InvalidInputError(
                f"Grocery list must be a list, got {type(items).__name__}"
            )
        if len(items) > self.config.max_batch_size:
            raise InvalidInputError(
                f"Grocery list has {len(items)} items, maximum is {self.config.max_batch_size}"
            )

    def match_grocery_list(self, items: List[Any], resolve: ItemResolver) -> GroceryListMatch:
        """Resolve every item and partition results.

        Args:
            items: Grocery-list entries
            resolve: Single-item resolver taking (raw_text, normalized_text)

        Returns:
            GroceryListMatch with matched results and unmatched texts in input order

        Raises:
            InvalidInputError: If items is not a list or exceeds max_batch_size
        """
        self.validate(items)

        token = set_batch_id(generate_batch_id())
        try:
            prepared: List[Tuple[str, Optional[str]]] = []
            for item in items:
                text, usable = coerce_item(item)
                normalized = normalize(text) if usable else None
                prepared.append((text, normalized or None))

            resolved = self._resolve_unique(prepared, resolve)

            result = GroceryListMatch()
            for text, normalized in prepared:
                match = resolved.get(normalized) if normalized else None
                if match is None or not match.matched:
                    result.unmatched.append(text)
                else:
                    result.matched.append(replace(match, query=text))

            result.stats = compute_stats(len(items), result.matched)
            logger.info(
                f"Matched {result.stats.matched_items}/{result.stats.total_items} grocery items "
                f"(rate {result.stats.match_rate:.2f}, avg confidence {result.stats.average_confidence:.2f}, "
                f"methods {result.stats.method_breakdown})"
            )
            return result
        finally:
            reset_batch_id(token)

    def _resolve_unique(
        self,
        prepared: List[Tuple[str, Optional[str]]],
        resolve: ItemResolver,
    ) -> Dict[str, MatchResult]:
        # First raw text seen for each normalized query
        unique: Dict[str, str] = {}
        for text, normalized in prepared:
            if normalized and normalized not in unique:
                unique[normalized] = text

        if self.config.batch_workers <= 1 or len(unique) <= 1:
            return {n: resolve(text, n) for n, text in unique.items()}

        # Each task runs in a copy of the caller's context so logs keep the batch id
        with ThreadPoolExecutor(max_workers=self.config.batch_workers) as executor:
            futures = {
                n: executor.submit(contextvars.copy_context().run, resolve, text, n)
                for n, text in unique.items()
            }
            return {n: future.result() for n, future in futures.items()}
