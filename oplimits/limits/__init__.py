"""
Limits Layer
============

Loading limit storage and the rules used to fill it:
- model: Limits groups (permanent + temporary limits per subclass)
- merge: Conservative merge and voltage bound decisions
- aggregator: Slot aggregation with provenance
- voltage: Voltage bound merging per voltage level
"""

from .model import TemporaryLimit, LoadingLimits, OperationalLimitsGroup
from .merge import MergeDecision, BoundDecision, merge_conservative, merge_high_bound, merge_low_bound

__all__ = [
    "TemporaryLimit",
    "LoadingLimits",
    "OperationalLimitsGroup",
    "MergeDecision",
    "BoundDecision",
    "merge_conservative",
    "merge_high_bound",
    "merge_low_bound",
]
