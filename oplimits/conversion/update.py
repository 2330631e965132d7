"""
Update Reconciler
=================

Re-derives limit slot values from a refreshed data source (a new
operating scenario) using the provenance recorded at conversion time.

No classification, attachment or merge is repeated. For every slot:
1. the refreshed value of the recorded source id wins outright
2. otherwise the baseline value recorded at conversion time
3. otherwise the slot's current value

A refreshed source may cover only part of the source ids.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from ..limits.model import LoadingLimits
from ..provenance.codec import ProvenanceCodec, SlotKey
from ..records.model import LimitSubclass
from ..topology.network import Equipment

logger = logging.getLogger(__name__)


class LimitSource(ABC):
    """Refreshed limit values by source record id."""

    @abstractmethod
    def updated_value(self, source_id: str) -> Optional[float]:
        """New value for a source id, None when the source has no data for it."""
        pass


class FrameLimitSource(LimitSource):
    """
    Limit source backed by a DataFrame.

    Args:
        frame: Table with a source id column and a value column
        id_column: Name of the source id column
        value_column: Name of the value column

    When an id appears several times, the last row wins. Rows with a
    missing value count as "no data".
    """

    def __init__(self, frame: pd.DataFrame, id_column: str = "source_id",
                 value_column: str = "value"):
        for column in (id_column, value_column):
            if column not in frame.columns:
                raise ValueError(f"refreshed source frame must have a '{column}' column")
        values = pd.to_numeric(frame[value_column], errors="coerce")
        ids = frame[id_column].astype(str)
        self._values: Dict[str, float] = dict(zip(ids, values.astype(float)))

    @classmethod
    def from_mapping(cls, values: Mapping[str, float]) -> "FrameLimitSource":
        frame = pd.DataFrame({"source_id": list(values), "value": list(values.values())})
        return cls(frame)

    @classmethod
    def from_csv(cls, path) -> "FrameLimitSource":
        return cls(pd.read_csv(path, dtype={"source_id": str}))

    def updated_value(self, source_id: str) -> Optional[float]:
        value = self._values.get(source_id)
        if value is None or np.isnan(value):
            return None
        return float(value)

    def __len__(self) -> int:
        return len(self._values)


class UpdateOrigin(Enum):
    """Where an updated slot value came from."""
    REFRESHED = "refreshed"
    BASELINE = "baseline"
    CURRENT = "current"


@dataclass(frozen=True)
class SlotUpdate:
    """Planned or applied value of one slot."""
    slot: SlotKey
    previous: float
    value: float
    origin: UpdateOrigin
    source_id: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.previous != self.value

    def to_dict(self) -> dict:
        return {
            "slot": self.slot.describe(),
            "previous": self.previous,
            "value": self.value,
            "origin": self.origin.value,
            "source_id": self.source_id,
        }


class UpdateReconciler:
    """
    Value-substitution pass over the limits of network elements.

    Args:
        source: Refreshed limit source
        codec: Codec matching the one used at conversion time
    """

    def __init__(self, source: LimitSource, codec: Optional[ProvenanceCodec] = None):
        self.source = source
        self.codec = codec or ProvenanceCodec()

    def resolve(self, slot: SlotKey, equipment: Equipment, current: float) -> SlotUpdate:
        """Value of one slot after the update."""
        source_id = self.codec.source_id(slot, equipment.properties)
        if source_id is not None:
            refreshed = self.source.updated_value(source_id)
            if refreshed is not None:
                return SlotUpdate(slot, current, refreshed, UpdateOrigin.REFRESHED, source_id)
        baseline = self.codec.baseline_value(slot, equipment.properties)
        if baseline is not None:
            return SlotUpdate(slot, current, baseline, UpdateOrigin.BASELINE, source_id)
        return SlotUpdate(slot, current, current, UpdateOrigin.CURRENT, source_id)

    def plan(self, equipment: Equipment) -> List[Tuple[LoadingLimits, SlotUpdate]]:
        """
        Compute the new value of every slot of an equipment without applying it.
        """
        planned = []
        for side in equipment.sides_with_groups():
            for group in equipment.limits_groups(side):
                for subclass in LimitSubclass.loading():
                    limits = group.get_loading_limits(subclass)
                    if limits is None:
                        continue
                    base = SlotKey(group.id, subclass, side)
                    if limits.has_permanent_limit():
                        planned.append(
                            (limits, self.resolve(base, equipment, limits.permanent_limit))
                        )
                    for duration in limits.sorted_durations():
                        current = limits.get_temporary_limit_value(duration)
                        planned.append(
                            (limits, self.resolve(base.temporary(duration), equipment, current))
                        )
        return planned

    def update(self, equipment: Equipment) -> List[SlotUpdate]:
        """
        Update all slots of an equipment in one step.

        The plan is computed and written while holding the equipment lock,
        so readers and writers taking the lock see either the old or the
        new set of values.
        """
        with equipment.lock:
            planned = self.plan(equipment)
            for limits, update in planned:
                if update.slot.acceptable_duration is None:
                    limits.set_permanent_limit(update.value)
                else:
                    limits.set_temporary_limit_value(update.slot.acceptable_duration, update.value)
        changed = sum(1 for _, u in planned if u.changed)
        if changed:
            logger.debug("Updated %d of %d slots of %s", changed, len(planned), equipment.id)
        return [update for _, update in planned]

    def update_all(self, equipment: Iterable[Equipment]) -> Dict[str, List[SlotUpdate]]:
        """Update every given equipment; returns the updates per equipment id."""
        updates = {}
        for eq in equipment:
            slot_updates = self.update(eq)
            if slot_updates:
                updates[eq.id] = slot_updates
        origins = [u.origin for ups in updates.values() for u in ups]
        logger.info(
            "Update pass: %d slots (%d refreshed, %d baseline, %d current)",
            len(origins),
            origins.count(UpdateOrigin.REFRESHED),
            origins.count(UpdateOrigin.BASELINE),
            origins.count(UpdateOrigin.CURRENT),
        )
        return updates
