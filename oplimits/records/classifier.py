"""
Record Classifier
=================

Assigns a limit category to a raw record.

Two naming schemes coexist in source data for the limit type:
- a legacy free-text type name ("PATL", "TATL", "highVoltage", ...)
- a normalized type code ("LimitTypeKind.patl", "LimitKind.tatl", ...)

The normalized code is authoritative. The free-text name is used only
when the normalized code is absent or not recognised; when both are
recognised and point to different categories the disagreement is
reported on the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np

from .model import LimitCategory, LimitRecord, LimitSubclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Classification:
    """
    Result of classifying one record.

    Attributes:
        category: Assigned category (UNCLASSIFIED on failure)
        subclass: Recognised subclass, None if the subclass is unknown
        failure_fields: Raw fields explaining an UNCLASSIFIED result
        conflict: Description of a type name / type code disagreement
    """
    category: LimitCategory
    subclass: Optional[LimitSubclass] = None
    failure_fields: Dict[str, Optional[str]] = field(default_factory=dict)
    conflict: Optional[str] = None

    @property
    def classified(self) -> bool:
        return self.category is not LimitCategory.UNCLASSIFIED


def ignored_reason(value: float) -> Optional[str]:
    """
    Reason for dropping a record because of its value, None if usable.

    Missing and non-positive values are a tolerated data-quality
    condition in source data.
    """
    if value is None or np.isnan(value):
        return "value is not defined"
    if value <= 0:
        return "value is <= 0"
    return None


def _type_code_suffix(limit_type: Optional[str]) -> Optional[str]:
    # "http://...#LimitTypeKind.patl" -> "patl"
    if not limit_type:
        return None
    return limit_type.rsplit(".", 1)[-1].rsplit("#", 1)[-1]


def _voltage_from_name(type_name: Optional[str]) -> Optional[LimitCategory]:
    if not type_name:
        return None
    lowered = type_name.lower()
    if lowered == "highvoltage":
        return LimitCategory.VOLTAGE_HIGH
    if lowered == "lowvoltage":
        return LimitCategory.VOLTAGE_LOW
    return None


def _voltage_from_code(limit_type: Optional[str]) -> Optional[LimitCategory]:
    suffix = _type_code_suffix(limit_type)
    if suffix == "highVoltage":
        return LimitCategory.VOLTAGE_HIGH
    if suffix == "lowVoltage":
        return LimitCategory.VOLTAGE_LOW
    return None


def _loading_from_name(type_name: Optional[str]) -> Optional[LimitCategory]:
    if type_name == "PATL":
        return LimitCategory.LOADING_PERMANENT
    if type_name == "TATL":
        return LimitCategory.LOADING_TEMPORARY
    return None


def _loading_from_code(limit_type: Optional[str]) -> Optional[LimitCategory]:
    suffix = _type_code_suffix(limit_type)
    if suffix == "patl":
        return LimitCategory.LOADING_PERMANENT
    if suffix == "tatl":
        return LimitCategory.LOADING_TEMPORARY
    return None


def _failure_fields(record: LimitRecord) -> Dict[str, Optional[str]]:
    return {
        "subclass": record.subclass,
        "type_name": record.type_name,
        "limit_type": record.limit_type,
        "terminal_id": record.terminal_id,
    }


def classify(record: LimitRecord) -> Classification:
    """
    Classify a record into a limit category.

    Args:
        record: Raw limit record

    Returns:
        Classification with the category, the recognised subclass and,
        for unclassified records, the raw fields that caused the failure
    """
    subclass = LimitSubclass.parse(record.subclass)
    if subclass is None:
        return Classification(LimitCategory.UNCLASSIFIED, None, _failure_fields(record))

    if subclass is LimitSubclass.VOLTAGE:
        from_name = _voltage_from_name(record.type_name)
        from_code = _voltage_from_code(record.limit_type)
    else:
        from_name = _loading_from_name(record.type_name)
        from_code = _loading_from_code(record.limit_type)

    if from_code is not None:
        category = from_code
    elif from_name is not None:
        category = from_name
    else:
        return Classification(LimitCategory.UNCLASSIFIED, subclass, _failure_fields(record))

    conflict = None
    if from_code is not None and from_name is not None and from_name is not from_code:
        conflict = (
            f"type name {record.type_name} disagrees with limit type {record.limit_type}; "
            f"limit type kept"
        )
        logger.debug("Record %s: %s", record.source_id, conflict)
    return Classification(category, subclass, {}, conflict)
