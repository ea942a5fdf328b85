"""Batch ID management for log correlation.

Every grocery-list call gets its own batch ID so that the per-item log lines
emitted by resolver workers can be grouped back together.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable for batch_id (thread and async safe)
batch_id_var: ContextVar[Optional[str]] = ContextVar("batch_id", default=None)


def generate_batch_id() -> str:
    """Generate a new unique batch ID.

    Returns:
        str: UUID v4 batch ID
    """
    return str(uuid.uuid4())


def get_batch_id() -> str:
    """Get current batch ID from context.

    Returns:
        str: Current batch ID or "no-batch-id" if not set
    """
    return batch_id_var.get() or "no-batch-id"


def set_batch_id(batch_id: Optional[str]):
    """Set batch ID in current context.

    Args:
        batch_id: Batch ID to set

    Returns:
        Token that restores the previous value via reset_batch_id()
    """
    return batch_id_var.set(batch_id)


def reset_batch_id(token) -> None:
    """Restore the batch ID that was current before set_batch_id()."""
    batch_id_var.reset(token)
