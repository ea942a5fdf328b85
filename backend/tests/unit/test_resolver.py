"""Unit tests for staged candidate resolution"""

import pytest

from basketmatch.catalog.models import CatalogProduct, CatalogSnapshot
from basketmatch.matching.extractor import AttributeExtractor
from basketmatch.matching.normalizer import normalize
from basketmatch.matching.ports import METHOD_STRENGTH, MatchMethod, MatchQuery
from basketmatch.matching.resolver import CandidateResolver, rescale_similarity
from basketmatch.matching.schemas import MatchingConfig


@pytest.fixture
def resolver(catalog) -> CandidateResolver:
    return CandidateResolver(catalog, MatchingConfig())


def prepare(catalog: CatalogSnapshot, text: str) -> MatchQuery:
    normalized = normalize(text)
    attrs = AttributeExtractor(catalog.name_vocabulary(), catalog.brand_lexicon()).extract(normalized)
    return MatchQuery(
        raw_text=text,
        normalized_text=normalized,
        core_phrase=attrs.core_phrase,
        brand=attrs.brand,
        quantity=attrs.quantity,
    )


class TestRescaleSimilarity:

    def test_bounds(self):
        assert rescale_similarity(0.6, 0.6) == pytest.approx(0.5)
        assert rescale_similarity(1.0, 0.6) == pytest.approx(0.85)

    def test_midpoint(self):
        assert rescale_similarity(0.8, 0.6) == pytest.approx(0.675)

    def test_below_threshold_clamped(self):
        assert rescale_similarity(0.2, 0.6) == pytest.approx(0.5)


class TestExactStage:

    def test_canonical_name(self, resolver, catalog):
        candidate = resolver.resolve(prepare(catalog, "Chicken Breast"))
        assert candidate.product_id == "chicken_breast"
        assert candidate.method == MatchMethod.EXACT
        assert candidate.stage_confidence == 1.0

    def test_exact_after_quantity_removed(self, resolver, catalog):
        candidate = resolver.resolve(prepare(catalog, "2L milk"))
        assert candidate.product_id == "milk"
        assert candidate.method == MatchMethod.EXACT

    def test_plural_input(self, resolver, catalog):
        candidate = resolver.resolve(prepare(catalog, "apple"))
        assert candidate.product_id == "apples"
        assert candidate.method == MatchMethod.EXACT


class TestLearnedStage:

    def test_learned_alias_above_threshold(self, resolver, catalog):
        index = {"chiken": [("chicken_breast", 0.85)]}
        candidate = resolver.resolve(prepare(catalog, "chiken"), index)
        assert candidate.product_id == "chicken_breast"
        assert candidate.method == MatchMethod.LEARNED
        assert candidate.stage_confidence == pytest.approx(0.85)

    def test_learned_alias_below_threshold_ignored(self, resolver, catalog):
        index = {"chiken": [("chicken_breast", 0.75)]}
        candidate = resolver.resolve(prepare(catalog, "chiken"), index)
        assert candidate.method != MatchMethod.LEARNED

    def test_exact_beats_learned(self, resolver, catalog):
        index = {"milk": [("butter", 0.99)]}
        candidate = resolver.resolve(prepare(catalog, "milk"), index)
        assert candidate.product_id == "milk"
        assert candidate.method == MatchMethod.EXACT

    def test_highest_weight_wins(self, resolver, catalog):
        index = {"chiken": [("chicken_soup", 0.85), ("chicken_breast", 0.9)]}
        candidate = resolver.resolve(prepare(catalog, "chiken"), index)
        assert candidate.product_id == "chicken_breast"

    def test_equal_weights_prefer_smaller_id(self, resolver, catalog):
        index = {"chiken": [("chicken_soup", 0.85), ("chicken_breast", 0.85)]}
        candidate = resolver.resolve(prepare(catalog, "chiken"), index)
        assert candidate.product_id == "chicken_breast"

    def test_alias_to_missing_product_ignored(self, resolver, catalog):
        index = {"chiken": [("discontinued", 0.95)]}
        candidate = resolver.resolve(prepare(catalog, "chiken"), index)
        assert candidate.product_id == "chicken"
        assert candidate.method == MatchMethod.FUZZY


class TestAliasStage:

    def test_synonym(self, resolver, catalog):
        candidate = resolver.resolve(prepare(catalog, "chicken broth"))
        assert candidate.product_id == "chicken_soup"
        assert candidate.method == MatchMethod.ALIAS
        assert candidate.stage_confidence == pytest.approx(0.9)

    def test_shared_synonym_prefers_smaller_id(self, resolver, catalog):
        candidate = resolver.resolve(prepare(catalog, "poultry"))
        assert candidate.product_id == "chicken"
        assert candidate.method == MatchMethod.ALIAS

    def test_curated_lexicon_synonym(self, resolver, catalog):
        candidate = resolver.resolve(prepare(catalog, "spuds"))
        assert candidate.product_id == "potatoes"
        assert candidate.method == MatchMethod.ALIAS
        assert candidate.stage_confidence == pytest.approx(0.9)


class TestTypoStage:

    def test_corrected_phrase_reported_as_fuzzy(self, resolver, catalog):
        query = prepare(catalog, "chiken breast")
        candidate = resolver.resolve(query)
        assert candidate.product_id == "chicken_breast"
        assert candidate.method == MatchMethod.FUZZY
        assert query.corrected_phrase == "chicken breast"
        assert 0.6 <= candidate.stage_confidence <= 0.85

    def test_corrected_synonym(self, resolver, catalog):
        candidate = resolver.resolve(prepare(catalog, "chicken brroth"))
        assert candidate.product_id == "chicken_soup"
        assert candidate.method == MatchMethod.FUZZY

    def test_correction_confidence_rescaled(self, resolver, catalog):
        query = prepare(catalog, "milx")
        candidate = resolver.resolve(query)
        assert candidate.product_id == "milk"
        assert candidate.method == MatchMethod.FUZZY
        assert candidate.stage_confidence == pytest.approx(0.63125)

    def test_correction_below_fuzzy_threshold_discarded(self, catalog):
        strict = CandidateResolver(catalog, MatchingConfig(fuzzy_threshold=0.9))
        query = prepare(catalog, "milx")
        assert strict.resolve(query) is None
        assert query.corrected_phrase == "milx"

    def test_close_correction_kept_under_strict_threshold(self, catalog):
        strict = CandidateResolver(catalog, MatchingConfig(fuzzy_threshold=0.9))
        candidate = strict.resolve(prepare(catalog, "chiken breast"))
        assert candidate.product_id == "chicken_breast"
        assert candidate.method == MatchMethod.FUZZY


class TestPartialStage:

    def test_name_inside_query(self, resolver, catalog):
        candidate = resolver.resolve(prepare(catalog, "red onions"))
        assert candidate.product_id == "onions"
        assert candidate.method == MatchMethod.PARTIAL
        assert candidate.stage_confidence == pytest.approx(0.75)

    def test_longest_contained_name_wins(self, resolver, catalog):
        candidate = resolver.resolve(prepare(catalog, "chicken breast fillet"))
        assert candidate.product_id == "chicken_breast"
        assert candidate.method == MatchMethod.PARTIAL

    def test_query_inside_name(self, resolver, catalog):
        candidate = resolver.resolve(prepare(catalog, "cheddar"))
        assert candidate.product_id == "cheddar_cheese"
        assert candidate.method == MatchMethod.PARTIAL

    def test_length_ratio_gate(self):
        snapshot = CatalogSnapshot.build([
            CatalogProduct(id="pie", name="Extra Large Family Apple Pie"),
        ])
        resolver = CandidateResolver(snapshot, MatchingConfig())
        assert resolver._partial("pie") is None

    def test_whole_words_only(self):
        snapshot = CatalogSnapshot.build([CatalogProduct(id="eggplant", name="Eggplant")])
        resolver = CandidateResolver(snapshot, MatchingConfig())
        assert resolver._partial("egg") is None


class TestFuzzyStage:

    def test_fuzzy_similarity(self, resolver, catalog):
        candidate = resolver.resolve(prepare(catalog, "grapejuice"))
        assert candidate.product_id == "grape_juice"
        assert candidate.method == MatchMethod.FUZZY
        assert 0.5 <= candidate.stage_confidence <= 0.85

    def test_threshold_respected(self, catalog):
        strict = CandidateResolver(catalog, MatchingConfig(fuzzy_threshold=0.99))
        assert strict.resolve(prepare(catalog, "grapejuice")) is None


class TestNoMatch:

    def test_unknown_item(self, resolver, catalog):
        assert resolver.resolve(prepare(catalog, "quinoa salad")) is None

    def test_empty_core(self, resolver, catalog):
        assert resolver.resolve(prepare(catalog, "")) is None

    def test_empty_catalog(self):
        resolver = CandidateResolver(CatalogSnapshot.empty(), MatchingConfig())
        query = MatchQuery(raw_text="milk", normalized_text="milk", core_phrase="milk")
        assert resolver.resolve(query) is None


class TestStagePrecedence:
    """The strongest stage that can match wins, whatever the weaker stages find"""

    @pytest.mark.parametrize("text, learned", [
        ("milk", {"milk": [("butter", 0.9)]}),
        ("poultry", {"poultry": [("chicken_soup", 0.9)]}),
        ("chicken broth", {}),
        ("red onions", {}),
    ])
    def test_strongest_qualifying_stage_wins(self, resolver, catalog, text, learned):
        query = prepare(catalog, text)
        phrase = query.core_phrase
        qualifying = [
            candidate.method
            for candidate in (
                resolver._exact(query),
                resolver._learned(query, learned),
                resolver._alias(phrase),
                resolver._partial(phrase),
                resolver._fuzzy(phrase),
            )
            if candidate is not None
        ]
        assert len(qualifying) >= 2

        candidate = resolver.resolve(query, learned)
        assert candidate.method == max(qualifying, key=METHOD_STRENGTH.get)
