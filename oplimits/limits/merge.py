"""
Merge Rules
===========

Pure decisions used when several records compete for the same limit.

Loading slots keep the lowest value. Voltage bounds tighten
monotonically and must stay consistent with the opposite bound.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


@dataclass(frozen=True)
class MergeDecision:
    """
    Outcome of merging a candidate into a slot.

    Attributes:
        value: Slot value after the merge
        replaced: The candidate became the slot value
        conflict: The slot already held a different value
    """
    value: float
    replaced: bool
    conflict: bool


def merge_conservative(current: float, candidate: float) -> MergeDecision:
    """
    Keep the lowest of the current slot value and a candidate.

    An empty slot (NaN) takes the candidate. Only a strictly lower
    candidate replaces a set value; an equal one leaves the slot as is.
    """
    if np.isnan(current):
        return MergeDecision(candidate, True, False)
    if candidate < current:
        return MergeDecision(candidate, True, True)
    return MergeDecision(current, False, candidate != current)


class BoundDecision(Enum):
    """Outcome of merging a voltage bound candidate."""
    ACCEPTED = "accepted"
    NOT_IMPROVING = "not_improving"
    INCONSISTENT = "inconsistent"


def merge_high_bound(current_high: float, resolved_low: float, candidate: float) -> BoundDecision:
    """
    Decide on a high voltage bound candidate.

    Rejected as inconsistent below a resolved low bound; otherwise
    accepted when no high bound is set or the candidate is lower.
    """
    if not np.isnan(resolved_low) and candidate < resolved_low:
        return BoundDecision.INCONSISTENT
    if np.isnan(current_high) or candidate < current_high:
        return BoundDecision.ACCEPTED
    return BoundDecision.NOT_IMPROVING


def merge_low_bound(current_low: float, resolved_high: float, candidate: float) -> BoundDecision:
    """Mirror of merge_high_bound: a low bound tightens upwards."""
    if not np.isnan(resolved_high) and candidate > resolved_high:
        return BoundDecision.INCONSISTENT
    if np.isnan(current_low) or candidate > current_low:
        return BoundDecision.ACCEPTED
    return BoundDecision.NOT_IMPROVING
