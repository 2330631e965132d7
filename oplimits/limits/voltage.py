"""
Voltage Bound Merger
====================

Merges high/low voltage bound candidates into a voltage level.

Each bound only tightens (high downwards, low upwards), and a candidate
that would cross the already-resolved opposite bound is rejected rather
than clamped.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..records.model import LimitCategory, LimitRecord
from .merge import BoundDecision, merge_high_bound, merge_low_bound

if TYPE_CHECKING:
    from ..conversion.context import ConversionContext
    from ..topology.network import VoltageLevel

logger = logging.getLogger(__name__)

HIGH_VOLTAGE_LIMIT = "HighVoltageLimit"
LOW_VOLTAGE_LIMIT = "LowVoltageLimit"


class VoltageBoundMerger:
    """
    Apply voltage bound candidates to voltage levels.

    Args:
        context: Conversion context used for diagnostics
    """

    def __init__(self, context: "ConversionContext"):
        self.context = context

    def merge(self, voltage_level: "VoltageLevel", category: LimitCategory,
              value: float, record: LimitRecord) -> bool:
        """
        Merge one candidate.

        Args:
            voltage_level: Voltage level receiving the bound
            category: VOLTAGE_HIGH or VOLTAGE_LOW
            value: Candidate bound (kV)
            record: Record the candidate comes from

        Returns:
            True if the voltage level bound was updated
        """
        if category is LimitCategory.VOLTAGE_HIGH:
            return self.merge_high(voltage_level, value, record)
        if category is LimitCategory.VOLTAGE_LOW:
            return self.merge_low(voltage_level, value, record)
        raise ValueError(f"{category.value} is not a voltage bound category")

    def merge_high(self, voltage_level: "VoltageLevel", value: float, record: LimitRecord) -> bool:
        decision = merge_high_bound(
            voltage_level.high_voltage_limit, voltage_level.low_voltage_limit, value
        )
        if decision is BoundDecision.INCONSISTENT:
            self.context.invalid(
                HIGH_VOLTAGE_LIMIT,
                f"Inconsistent with low voltage limit ({voltage_level.low_voltage_limit}kV)",
                record.source_id,
            )
            return False
        if decision is BoundDecision.NOT_IMPROVING:
            logger.debug("High voltage %s kV of %s kept over %s kV (%s)",
                         voltage_level.high_voltage_limit, voltage_level.id, value,
                         record.source_id)
            return False
        voltage_level.high_voltage_limit = value
        return True

    def merge_low(self, voltage_level: "VoltageLevel", value: float, record: LimitRecord) -> bool:
        decision = merge_low_bound(
            voltage_level.low_voltage_limit, voltage_level.high_voltage_limit, value
        )
        if decision is BoundDecision.INCONSISTENT:
            self.context.invalid(
                LOW_VOLTAGE_LIMIT,
                f"Inconsistent with high voltage limit ({voltage_level.high_voltage_limit}kV)",
                record.source_id,
            )
            return False
        if decision is BoundDecision.NOT_IMPROVING:
            logger.debug("Low voltage %s kV of %s kept over %s kV (%s)",
                         voltage_level.low_voltage_limit, voltage_level.id, value,
                         record.source_id)
            return False
        voltage_level.low_voltage_limit = value
        return True
