"""QA validation package - invariant checks on KPI stores."""

from .validator import (
    Issue,
    QAResult,
    StoreValidator,
    validate_store,
)

__all__ = [
    "Issue",
    "QAResult",
    "StoreValidator",
    "validate_store",
]
