"""
Slot Aggregator
===============

Folds loading limit records into permanent and temporary slots.

A slot is the permanent limit, or the temporary limit of one acceptable
duration, of one (equipment, side, limits group, subclass). Competing
records are merged in arrival order keeping the lowest value; every
accepted value is recorded in the run's provenance store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..provenance.codec import ProvenanceEntry, SlotKey
from ..records.model import Direction, LimitRecord, LimitSubclass
from ..topology.sides import Side
from .merge import merge_conservative
from .model import LoadingLimits, OperationalLimitsGroup

if TYPE_CHECKING:
    from ..conversion.context import ConversionContext
    from ..topology.network import Equipment

logger = logging.getLogger(__name__)

PERMANENT_LIMIT = "Permanent Limit"
TEMPORARY_LIMIT = "Temporary Limit"


@dataclass
class LoadingTarget:
    """
    One lineage a loading record contributes to.

    Attributes:
        equipment: Equipment owning the limits group
        side: Side of the limits group
        group: Limits group of the record's limit set
        subclass: Loading subclass of the record
    """
    equipment: "Equipment"
    side: Side
    group: OperationalLimitsGroup
    subclass: LimitSubclass

    @property
    def limits(self) -> LoadingLimits:
        return self.group.loading_limits(self.subclass)

    @property
    def permanent_slot(self) -> SlotKey:
        return SlotKey(self.group.id, self.subclass, self.side)

    def temporary_slot(self, acceptable_duration: int) -> SlotKey:
        return self.permanent_slot.temporary(acceptable_duration)


class SlotAggregator:
    """
    Conservative merge of records into slots.

    Args:
        context: Conversion context (diagnostics, provenance, settings)
    """

    def __init__(self, context: "ConversionContext"):
        self.context = context

    def accepts_direction(self, record: LimitRecord) -> bool:
        """
        Check the direction of a temporary record.

        Only high and absolute-value limits (no direction means absolute)
        can fill a temporary slot; anything else is reported as invalid.
        """
        direction = Direction.parse(record.direction)
        if direction.accepted_for_temporary:
            return True
        if direction is Direction.LOW:
            self.context.invalid(
                TEMPORARY_LIMIT, f"TATL {record.source_id} is a low limit", record.source_id
            )
        else:
            self.context.invalid(
                TEMPORARY_LIMIT,
                f"TATL {record.source_id} does not have a valid direction",
                record.source_id,
            )
        return False

    def duration_key(self, record: LimitRecord) -> int:
        if record.acceptable_duration is None:
            return self.context.config.unbounded_duration
        return record.acceptable_duration

    def add_permanent(self, target: LoadingTarget, record: LimitRecord, value: float) -> bool:
        """
        Merge a record into the permanent slot of a target.

        Returns:
            True if the record's value was accepted
        """
        limits = target.limits
        slot = target.permanent_slot
        current = limits.permanent_limit
        decision = merge_conservative(current, value)
        if decision.conflict:
            self._conflict(
                target, slot, PERMANENT_LIMIT, record, current if decision.replaced else value,
                lambda: f"Several permanent limits defined for {self._scope(record)}. "
                        f"Only the lowest is kept.",
            )
        if not decision.replaced:
            return False
        limits.set_permanent_limit(decision.value)
        self._accepted(target, slot, record, decision.value)
        return True

    def add_temporary(self, target: LoadingTarget, record: LimitRecord, value: float) -> bool:
        """
        Merge a record into the temporary slot of its acceptable duration.

        Direction must have been checked with `accepts_direction`.

        Returns:
            True if the record's value was accepted
        """
        duration = self.duration_key(record)
        limits = target.limits
        slot = target.temporary_slot(duration)
        current = limits.get_temporary_limit_value(duration)
        decision = merge_conservative(current, value)
        if decision.conflict:
            self._conflict(
                target, slot, TEMPORARY_LIMIT, record, current if decision.replaced else value,
                lambda: f"Several temporary limits defined for same acceptable duration "
                        f"({duration} s) for {self._scope(record)}. Only the lowest is kept.",
            )
        if not decision.replaced:
            return False
        limits.set_temporary_limit(
            duration,
            record.display_name,
            decision.value,
            ensure_name_unicity=self.context.config.ensure_temporary_name_unicity,
        )
        self._accepted(target, slot, record, decision.value)
        return True

    @staticmethod
    def _scope(record: LimitRecord) -> str:
        if record.terminal_id is not None:
            return f"Terminal {record.terminal_id}"
        return f"Equipment {record.equipment_id}"

    def _conflict(self, target, slot, subject, record, superseded, message) -> None:
        # one report per superseded value; re-merging a value already reported is silent
        reported = self.context.reported_conflicts.setdefault(target.equipment.id, set())
        if (slot, superseded) in reported:
            logger.debug("Slot %s of %s: %s already reported as superseded (%s)",
                         slot.describe(), target.equipment.id, superseded, record.source_id)
            return
        reported.add((slot, superseded))
        self.context.fixed(subject, message, record.source_id)

    def _accepted(self, target: LoadingTarget, slot: SlotKey, record: LimitRecord,
                  value: float) -> None:
        self.context.provenance.record(
            target.equipment.id,
            ProvenanceEntry(slot=slot, source_id=record.source_id, baseline_value=value),
        )

