"""Observability helpers: structured logging and batch correlation IDs."""

from .batch_id import generate_batch_id, get_batch_id, set_batch_id, reset_batch_id
from .logging_config import BatchIDFilter, JSONFormatter, configure_logging, configure_from_settings

__all__ = [
    "generate_batch_id",
    "get_batch_id",
    "set_batch_id",
    "reset_batch_id",
    "BatchIDFilter",
    "JSONFormatter",
    "configure_logging",
    "configure_from_settings",
]
