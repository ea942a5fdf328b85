"""Pytest fixtures for matching and feedback tests.

Provides reusable test fixtures for:
- Sample grocery catalog snapshot
- In-memory SQLite feedback store (fresh per test)
- Matching engine wired to both

Usage:
    def test_exact(engine):
        assert engine.find_best_match("Milk").method == MatchMethod.EXACT
"""

from typing import Generator

import pytest
from sqlalchemy.orm import sessionmaker

from basketmatch.catalog.models import CatalogSnapshot
from basketmatch.database import build_engine, build_session_factory
from basketmatch.engine import MatchingEngine
from basketmatch.feedback.services import FeedbackStore
from basketmatch.matching.schemas import MatchingConfig
from basketmatch.models.base import Base

from tests.fixtures.grocery_catalog import GROCERY_PRODUCTS


TEST_DATABASE_URL = "sqlite://"


@pytest.fixture
def catalog() -> CatalogSnapshot:
    """Sample grocery catalog snapshot."""
    return CatalogSnapshot.build(GROCERY_PRODUCTS)


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Session factory on a fresh in-memory database.

    Tables are created before the test and dropped after.
    """
    db_engine = build_engine(TEST_DATABASE_URL)
    factory = build_session_factory(engine=db_engine)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=db_engine)
        db_engine.dispose()


@pytest.fixture
def feedback_store(session_factory: sessionmaker) -> FeedbackStore:
    return FeedbackStore(session_factory, promotion_threshold=3)


@pytest.fixture
def config() -> MatchingConfig:
    return MatchingConfig()


@pytest.fixture
def engine(catalog, feedback_store, config) -> MatchingEngine:
    """Matching engine over the sample catalog with an isolated feedback store."""
    return MatchingEngine(catalog, feedback_store=feedback_store, config=config)
