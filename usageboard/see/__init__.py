"""
See Module - Unified Usage Aggregation

Merge usage from every connected platform into one row per person.
"""

from usageboard.see.aggregator import UsageAggregator
from usageboard.see.identity import merge_by_email
from usageboard.see.models import MergedUser, PlatformUsage, SortKey

__all__ = [
    "UsageAggregator",
    "merge_by_email",
    "MergedUser",
    "PlatformUsage",
    "SortKey",
]
