"""Pydantic schemas for matching configuration."""

from pydantic import BaseModel, Field


class MatchingConfig(BaseModel):
    """Tunable matching options.

    - fuzzy_threshold: minimum similarity (0-1) the fuzzy stage accepts
    - learned_accept_threshold: minimum weight for a learned alias to resolve a query
    - promotion_threshold: identical corrections needed before an alias is learned
    - max_batch_size: largest grocery list accepted by match_grocery_list
    - batch_workers: threads used to resolve one grocery list (1 = sequential)
    """

    fuzzy_threshold: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Minimum fuzzy similarity accepted (0-1)"
    )

    learned_accept_threshold: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Minimum learned-alias weight used at the exact stage"
    )

    promotion_threshold: int = Field(
        default=3,
        ge=1,
        description="Identical corrections needed to learn an alias"
    )

    max_batch_size: int = Field(
        default=100,
        ge=1,
        description="Largest grocery list accepted in one call"
    )

    batch_workers: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Worker threads per grocery list"
    )

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings) -> "MatchingConfig":
        """Build config from environment Settings."""
        return cls(
            fuzzy_threshold=settings.FUZZY_THRESHOLD,
            learned_accept_threshold=settings.LEARNED_ACCEPT_THRESHOLD,
            promotion_threshold=settings.PROMOTION_THRESHOLD,
            max_batch_size=settings.MAX_BATCH_SIZE,
            batch_workers=settings.BATCH_WORKERS,
        )
