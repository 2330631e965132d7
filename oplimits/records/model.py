"""
Limit Record Model
==================

Raw operational limit observations as delivered by the grid-model
data source, plus the enumerations used to interpret them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional

import numpy as np
import pandas as pd


class LimitSubclass(Enum):
    """Operational limit subclasses."""
    CURRENT = "CurrentLimit"
    ACTIVE_POWER = "ActivePowerLimit"
    APPARENT_POWER = "ApparentPowerLimit"
    VOLTAGE = "VoltageLimit"

    @property
    def is_loading(self) -> bool:
        return self is not LimitSubclass.VOLTAGE

    @classmethod
    def loading(cls) -> List["LimitSubclass"]:
        """Subclasses that attach to equipment sides."""
        return [cls.CURRENT, cls.ACTIVE_POWER, cls.APPARENT_POWER]

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["LimitSubclass"]:
        """
        Match a declared subclass string by its naming.

        "voltage" wins over the loading names; matching is case-insensitive
        so both "CurrentLimit" and "cim:CurrentLimit" are recognised.
        """
        if not raw:
            return None
        text = raw.lower()
        if "voltage" in text:
            return cls.VOLTAGE
        if "current" in text:
            return cls.CURRENT
        if "activepower" in text:
            return cls.ACTIVE_POWER
        if "apparentpower" in text:
            return cls.APPARENT_POWER
        return None


class LimitCategory(Enum):
    """Category assigned by the record classifier."""
    VOLTAGE_HIGH = "voltage_high"
    VOLTAGE_LOW = "voltage_low"
    LOADING_PERMANENT = "loading_permanent"
    LOADING_TEMPORARY = "loading_temporary"
    UNCLASSIFIED = "unclassified"

    @property
    def is_voltage(self) -> bool:
        return self in (LimitCategory.VOLTAGE_HIGH, LimitCategory.VOLTAGE_LOW)

    @property
    def is_loading(self) -> bool:
        return self in (LimitCategory.LOADING_PERMANENT, LimitCategory.LOADING_TEMPORARY)


class Direction(Enum):
    """Direction of a temporary limit."""
    HIGH = "high"
    LOW = "low"
    ABSOLUTE = "absoluteValue"
    UNSPECIFIED = "unspecified"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Direction":
        # Directions arrive as enum URIs, e.g. "...#OperationalLimitDirectionKind.high"
        if raw is None or raw == "":
            return cls.UNSPECIFIED
        if raw.endswith("high"):
            return cls.HIGH
        if raw.endswith("absoluteValue"):
            return cls.ABSOLUTE
        if raw.endswith("low"):
            return cls.LOW
        return cls.OTHER

    @property
    def accepted_for_temporary(self) -> bool:
        return self in (Direction.HIGH, Direction.ABSOLUTE, Direction.UNSPECIFIED)


@dataclass(frozen=True)
class LimitRecord:
    """
    One raw operational limit observation.

    Attributes:
        source_id: Identifier of the limit in the data source
        subclass: Declared subclass string (e.g. "CurrentLimit")
        value: Limit value, NaN when absent
        limit_set_id: Identifier of the containing limit set
        limit_set_name: Name of the limit set (defaults to its id)
        type_name: Legacy free-text type name ("PATL", "highVoltage", ...)
        limit_type: Normalized type code ("LimitTypeKind.patl", ...)
        acceptable_duration: Temporary limit duration in seconds, None if unbounded
        direction: Raw direction of a temporary limit
        terminal_id: Terminal the limit applies to
        equipment_id: Equipment the limit applies to
        equipment_container_id: Container used when the equipment id is unknown
        name: Display name
        short_name: Short display name, preferred over name
    """
    source_id: str
    subclass: Optional[str]
    value: float = np.nan
    limit_set_id: Optional[str] = None
    limit_set_name: Optional[str] = None
    type_name: Optional[str] = None
    limit_type: Optional[str] = None
    acceptable_duration: Optional[int] = None
    direction: Optional[str] = None
    terminal_id: Optional[str] = None
    equipment_id: Optional[str] = None
    equipment_container_id: Optional[str] = None
    name: Optional[str] = None
    short_name: Optional[str] = None

    @property
    def set_name(self) -> Optional[str]:
        return self.limit_set_name if self.limit_set_name is not None else self.limit_set_id

    @property
    def display_name(self) -> str:
        if self.short_name:
            return self.short_name
        if self.name:
            return self.name
        return self.source_id

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LimitRecord":
        """
        Build a record from a mapping of raw fields.

        Missing strings and NaN cells become None. `normal_value` takes
        precedence over `value` when both are present.
        """
        value = _float(data.get("normal_value"))
        if np.isnan(value):
            value = _float(data.get("value"))
        duration = _float(data.get("acceptable_duration"))
        return cls(
            source_id=str(data["source_id"]),
            subclass=_text(data.get("subclass")),
            value=value,
            limit_set_id=_text(data.get("limit_set_id")),
            limit_set_name=_text(data.get("limit_set_name")),
            type_name=_text(data.get("type_name")),
            limit_type=_text(data.get("limit_type")),
            acceptable_duration=None if np.isnan(duration) else int(duration),
            direction=_text(data.get("direction")),
            terminal_id=_text(data.get("terminal_id")),
            equipment_id=_text(data.get("equipment_id")),
            equipment_container_id=_text(data.get("equipment_container_id")),
            name=_text(data.get("name")),
            short_name=_text(data.get("short_name")),
        )


def records_from_frame(frame: pd.DataFrame) -> Iterator[LimitRecord]:
    """
    Yield limit records from a DataFrame, in row order.

    The frame needs a `source_id` column; every other column of
    `LimitRecord.from_dict` is optional.
    """
    if "source_id" not in frame.columns:
        raise ValueError("records frame must have a 'source_id' column")
    for row in frame.to_dict(orient="records"):
        yield LimitRecord.from_dict(row)


def records_from_csv(path) -> List[LimitRecord]:
    """Read limit records from a CSV file."""
    # all columns as text so identifiers keep their spelling; numbers are parsed per field
    frame = pd.read_csv(path, dtype=str)
    return list(records_from_frame(frame))


def _text(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, float) and np.isnan(raw):
        return None
    text = str(raw)
    return text if text != "" else None


def _float(raw: Any) -> float:
    if raw is None or raw == "":
        return np.nan
    try:
        return float(raw)
    except (TypeError, ValueError):
        return np.nan


def records_summary(records: List[LimitRecord]) -> Dict[str, int]:
    """Count records per declared subclass."""
    counts: Dict[str, int] = {}
    for record in records:
        key = record.subclass or "<none>"
        counts[key] = counts.get(key, 0) + 1
    return counts
