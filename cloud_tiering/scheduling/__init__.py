"""Tier assignment policies."""

from .tiers import (
    Condition,
    TierRule,
    TierAssignmentPolicy,
    threshold,
    category_is,
    all_of,
    record_id_key,
)

__all__ = [
    "Condition",
    "TierRule",
    "TierAssignmentPolicy",
    "threshold",
    "category_is",
    "all_of",
    "record_id_key",
]
