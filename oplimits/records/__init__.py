"""
Limit Records
=============

Raw limit records from the grid-model data source and their classification.
"""

from .model import LimitRecord, LimitSubclass, LimitCategory, Direction, records_from_frame
from .classifier import Classification, classify, ignored_reason

__all__ = [
    "LimitRecord",
    "LimitSubclass",
    "LimitCategory",
    "Direction",
    "records_from_frame",
    "Classification",
    "classify",
    "ignored_reason",
]
