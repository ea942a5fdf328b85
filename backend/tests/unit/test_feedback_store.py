"""Unit tests for the feedback store and alias promotion

Tests run against an in-memory SQLite database (see conftest.session_factory).
"""

import threading

import pytest
from sqlalchemy.exc import OperationalError

from basketmatch.feedback.ports import FeedbackPersistenceError, FeedbackRecord
from basketmatch.feedback.services import FeedbackStore
from basketmatch.feedback.status import AliasStatus
from basketmatch.models.base import Base


def correct(store: FeedbackStore, query: str, correction: str, times: int, suggested: str = "chicken_soup"):
    for _ in range(times):
        store.record_feedback(query, suggested, correction, accepted=False)


class TestRecordFeedback:
    """Test feedback log appends"""

    def test_returns_record(self, feedback_store):
        record = feedback_store.record_feedback("Chiken", "chicken_soup", "chicken_breast", accepted=False)

        assert isinstance(record, FeedbackRecord)
        assert record.id is not None
        assert record.original_query == "Chiken"
        assert record.normalized_query == "chiken"
        assert record.suggested_match == "chicken_soup"
        assert record.correction == "chicken_breast"
        assert record.accepted is False
        assert record.timestamp is not None

    def test_every_call_appends(self, feedback_store):
        feedback_store.record_feedback("milk", "milk", accepted=True)
        feedback_store.record_feedback("milk", "milk", accepted=True)
        feedback_store.record_feedback("mlk", None, "milk", accepted=False)

        records = feedback_store.list_feedback()
        assert len(records) == 3
        # newest first
        assert records[0].original_query == "mlk"

    def test_list_feedback_limit(self, feedback_store):
        for i in range(5):
            feedback_store.record_feedback(f"item {i}", None, accepted=False)
        assert len(feedback_store.list_feedback(limit=2)) == 2

    def test_empty_query_recorded_without_learning(self, feedback_store):
        record = feedback_store.record_feedback("   ", None, "milk", accepted=False)
        assert record.normalized_query == ""
        assert feedback_store.get_alias("", "milk") is None

    def test_record_to_dict(self, feedback_store):
        record = feedback_store.record_feedback("milk", "milk", accepted=True)
        data = record.to_dict()
        assert data["original_query"] == "milk"
        assert data["accepted"] is True
        assert isinstance(data["timestamp"], str)

    def test_invalid_promotion_threshold(self, session_factory):
        with pytest.raises(ValueError):
            FeedbackStore(session_factory, promotion_threshold=0)


class TestPromotion:
    """Test UNCONFIRMED → LEARNED promotion"""

    def test_below_threshold_stays_unconfirmed(self, feedback_store):
        correct(feedback_store, "chiken", "chicken_breast", times=2)

        alias = feedback_store.get_alias("chiken", "chicken_breast")
        assert alias["status"] == AliasStatus.UNCONFIRMED.value
        assert alias["support_count"] == 2
        assert feedback_store.learned_aliases() == []

    def test_threshold_promotes(self, feedback_store):
        correct(feedback_store, "chiken", "chicken_breast", times=3)

        learned = feedback_store.learned_aliases()
        assert len(learned) == 1
        assert learned[0].term == "chiken"
        assert learned[0].product_id == "chicken_breast"
        assert learned[0].weight == pytest.approx(0.85)
        assert learned[0].support_count == 3

    def test_query_normalized_before_counting(self, feedback_store):
        feedback_store.record_feedback("Chiken", "chicken_soup", "chicken_breast", False)
        feedback_store.record_feedback("CHIKEN ", "chicken_soup", "chicken_breast", False)
        feedback_store.record_feedback("chiken!", "chicken_soup", "chicken_breast", False)

        assert feedback_store.alias_index() == {"chiken": [("chicken_breast", pytest.approx(0.85))]}

    def test_further_corrections_reinforce(self, feedback_store):
        correct(feedback_store, "chiken", "chicken_breast", times=4)
        assert feedback_store.learned_aliases()[0].weight == pytest.approx(0.9)

    def test_accepted_learned_suggestion_reinforces(self, feedback_store):
        correct(feedback_store, "chiken", "chicken_breast", times=3)
        feedback_store.record_feedback("chiken", "chicken_breast", accepted=True)
        assert feedback_store.learned_aliases()[0].weight == pytest.approx(0.9)

    def test_accepted_feedback_does_not_create_alias(self, feedback_store):
        feedback_store.record_feedback("milk", "milk", accepted=True)
        assert feedback_store.get_alias("milk", "milk") is None

    def test_custom_threshold(self, session_factory):
        store = FeedbackStore(session_factory, promotion_threshold=1)
        store.record_feedback("chiken", "chicken_soup", "chicken_breast", accepted=False)
        assert len(store.learned_aliases()) == 1

    def test_min_weight_filter(self, feedback_store):
        correct(feedback_store, "chiken", "chicken_breast", times=3)
        assert feedback_store.learned_aliases(min_weight=0.9) == []
        assert feedback_store.alias_index(min_weight=0.8) != {}


class TestContradiction:
    """Test decay and retirement of learned aliases"""

    def test_different_correction_decays(self, feedback_store):
        correct(feedback_store, "chiken", "chicken_breast", times=3)
        feedback_store.record_feedback("chiken", "chicken_breast", "chicken", accepted=False)

        alias = feedback_store.get_alias("chiken", "chicken_breast")
        assert alias["status"] == AliasStatus.LEARNED.value
        assert alias["weight"] == pytest.approx(0.8)
        assert alias["contradict_count"] == 1

    def test_rejection_of_learned_suggestion_decays(self, feedback_store):
        correct(feedback_store, "chiken", "chicken_breast", times=3)
        feedback_store.record_feedback("chiken", "chicken_breast", None, accepted=False)

        assert feedback_store.get_alias("chiken", "chicken_breast")["weight"] == pytest.approx(0.8)

    def test_rejection_of_other_suggestion_leaves_alias(self, feedback_store):
        correct(feedback_store, "chiken", "chicken_breast", times=3)
        feedback_store.record_feedback("chiken", "chicken_soup", None, accepted=False)

        alias = feedback_store.get_alias("chiken", "chicken_breast")
        assert alias["weight"] == pytest.approx(0.85)
        assert alias["contradict_count"] == 0

    def test_rejection_without_suggestion_leaves_alias(self, feedback_store):
        correct(feedback_store, "chiken", "chicken_breast", times=3)
        feedback_store.record_feedback("chiken", None, None, accepted=False)

        assert feedback_store.get_alias("chiken", "chicken_breast")["weight"] == pytest.approx(0.85)

    def test_repeated_contradiction_retires(self, feedback_store):
        correct(feedback_store, "chiken", "chicken_breast", times=3)
        for _ in range(8):
            feedback_store.record_feedback("chiken", "chicken_breast", None, accepted=False)

        alias = feedback_store.get_alias("chiken", "chicken_breast")
        assert alias["status"] == AliasStatus.RETIRED.value
        assert feedback_store.learned_aliases() == []

    def test_retired_alias_restarts_counting(self, feedback_store):
        correct(feedback_store, "chiken", "chicken_breast", times=3)
        for _ in range(8):
            feedback_store.record_feedback("chiken", "chicken_breast", None, accepted=False)

        correct(feedback_store, "chiken", "chicken_breast", times=1)
        alias = feedback_store.get_alias("chiken", "chicken_breast")
        assert alias["status"] == AliasStatus.UNCONFIRMED.value
        assert alias["support_count"] == 1

        correct(feedback_store, "chiken", "chicken_breast", times=2)
        assert feedback_store.get_alias("chiken", "chicken_breast")["status"] == AliasStatus.LEARNED.value

    def test_switching_correction_eventually_learns_new_product(self, feedback_store):
        correct(feedback_store, "chiken", "chicken_breast", times=3)
        correct(feedback_store, "chiken", "chicken", times=3, suggested="chicken_breast")

        index = feedback_store.alias_index(min_weight=0.8)
        assert index == {"chiken": [("chicken", pytest.approx(0.85))]}


class TestLearningSummary:

    def test_summary_counts(self, feedback_store):
        correct(feedback_store, "chiken", "chicken_breast", times=3)
        correct(feedback_store, "mlik", "milk", times=1, suggested=None)
        feedback_store.record_feedback("milk", "milk", accepted=True)

        summary = feedback_store.learning_summary()
        assert summary.total_feedback == 5
        assert summary.accepted_feedback == 1
        assert summary.rejected_feedback == 4
        assert summary.learned_aliases == 1
        assert summary.pending_aliases == 1
        assert summary.retired_aliases == 0
        assert summary.top_corrected_queries[0].query == "chiken"
        assert summary.top_corrected_queries[0].count == 3

    def test_empty_summary(self, feedback_store):
        summary = feedback_store.learning_summary()
        assert summary.total_feedback == 0
        assert summary.top_corrected_queries == []


class TestConcurrencyAndFailures:

    def test_concurrent_corrections_are_all_counted(self, feedback_store):
        threads = [
            threading.Thread(
                target=feedback_store.record_feedback,
                args=("chiken", "chicken_soup", "chicken_breast", False),
            )
            for _ in range(10)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(feedback_store.list_feedback()) == 10
        assert feedback_store.get_alias("chiken", "chicken_breast")["support_count"] == 10

    def test_persistence_failure_raises_distinct_error(self, session_factory):
        store = FeedbackStore(session_factory)
        Base.metadata.drop_all(bind=session_factory.kw["bind"])

        with pytest.raises(FeedbackPersistenceError) as exc_info:
            store.record_feedback("milk", "milk", accepted=True)
        assert isinstance(exc_info.value.__cause__, OperationalError)

    def test_read_failure_raises_distinct_error(self, session_factory):
        store = FeedbackStore(session_factory)
        Base.metadata.drop_all(bind=session_factory.kw["bind"])

        with pytest.raises(FeedbackPersistenceError):
            store.learned_aliases()
