"""
Limits Group Model
==================

Storage for loading limits attached to one (equipment, side) pair.

An OperationalLimitsGroup holds, per loading subclass, one LoadingLimits
made of a permanent limit and temporary limits indexed by acceptable
duration (seconds).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from ..records.model import LimitSubclass


@dataclass
class TemporaryLimit:
    """Temporary limit for one acceptable duration."""
    name: str
    acceptable_duration: int
    value: float

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "acceptable_duration": self.acceptable_duration,
            "value": self.value,
        }


@dataclass
class LoadingLimits:
    """
    Permanent and temporary limits of one subclass.

    Attributes:
        permanent_limit: Permanent limit, NaN while unset
        temporary_limits: Temporary limits keyed by acceptable duration
    """
    permanent_limit: float = np.nan
    temporary_limits: Dict[int, TemporaryLimit] = field(default_factory=dict)

    def has_permanent_limit(self) -> bool:
        return not np.isnan(self.permanent_limit)

    def get_temporary_limit_value(self, acceptable_duration: int) -> float:
        """Value of the temporary limit for a duration, NaN if unset."""
        limit = self.temporary_limits.get(acceptable_duration)
        return limit.value if limit is not None else np.nan

    def get_temporary_limit(self, acceptable_duration: int) -> Optional[TemporaryLimit]:
        return self.temporary_limits.get(acceptable_duration)

    def set_permanent_limit(self, value: float) -> None:
        self.permanent_limit = value

    def set_temporary_limit(
        self,
        acceptable_duration: int,
        name: str,
        value: float,
        ensure_name_unicity: bool = True
    ) -> TemporaryLimit:
        """
        Create or replace the temporary limit for a duration.

        With `ensure_name_unicity`, a name already used by a limit of
        another duration gets a "#<n>" suffix.
        """
        if ensure_name_unicity:
            name = self._unique_name(name, acceptable_duration)
        limit = TemporaryLimit(name=name, acceptable_duration=acceptable_duration, value=value)
        self.temporary_limits[acceptable_duration] = limit
        return limit

    def set_temporary_limit_value(self, acceptable_duration: int, value: float) -> None:
        limit = self.temporary_limits.get(acceptable_duration)
        if limit is None:
            raise KeyError(f"No temporary limit for acceptable duration {acceptable_duration}")
        limit.value = value

    def sorted_durations(self) -> List[int]:
        return sorted(self.temporary_limits)

    def is_empty(self) -> bool:
        return not self.has_permanent_limit() and not self.temporary_limits

    def _unique_name(self, name: str, acceptable_duration: int) -> str:
        taken = {
            limit.name for duration, limit in self.temporary_limits.items()
            if duration != acceptable_duration
        }
        if name not in taken:
            return name
        n = 2
        while f"{name}#{n}" in taken:
            n += 1
        return f"{name}#{n}"

    def to_dict(self) -> dict:
        return {
            "permanent_limit": None if np.isnan(self.permanent_limit) else self.permanent_limit,
            "temporary_limits": [
                self.temporary_limits[d].to_dict() for d in self.sorted_durations()
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LoadingLimits":
        permanent = data.get("permanent_limit")
        limits = cls(permanent_limit=np.nan if permanent is None else float(permanent))
        for item in data.get("temporary_limits", []):
            limits.temporary_limits[int(item["acceptable_duration"])] = TemporaryLimit(
                name=item["name"],
                acceptable_duration=int(item["acceptable_duration"]),
                value=float(item["value"]),
            )
        return limits


@dataclass
class OperationalLimitsGroup:
    """
    Named container of loading limits for one (equipment, side).

    Attributes:
        id: Limit set identifier
        name: Limit set name
        limits: LoadingLimits per loading subclass
    """
    id: str
    name: str
    limits: Dict[LimitSubclass, LoadingLimits] = field(default_factory=dict)

    def get_loading_limits(self, subclass: LimitSubclass) -> Optional[LoadingLimits]:
        return self.limits.get(subclass)

    def loading_limits(self, subclass: LimitSubclass) -> LoadingLimits:
        """Get the limits of a subclass, creating them on first use."""
        if not subclass.is_loading:
            raise ValueError(f"{subclass.value} is not a loading limit subclass")
        if subclass not in self.limits:
            self.limits[subclass] = LoadingLimits()
        return self.limits[subclass]

    @property
    def current_limits(self) -> Optional[LoadingLimits]:
        return self.limits.get(LimitSubclass.CURRENT)

    @property
    def active_power_limits(self) -> Optional[LoadingLimits]:
        return self.limits.get(LimitSubclass.ACTIVE_POWER)

    @property
    def apparent_power_limits(self) -> Optional[LoadingLimits]:
        return self.limits.get(LimitSubclass.APPARENT_POWER)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "limits": {s.value: l.to_dict() for s, l in self.limits.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OperationalLimitsGroup":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            limits={
                LimitSubclass(k): LoadingLimits.from_dict(v)
                for k, v in data.get("limits", {}).items()
            },
        )
