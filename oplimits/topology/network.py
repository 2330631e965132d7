"""
Network Model
=============

Directory of network elements that limits are attached to:
voltage levels, equipment and their terminals.

The conversion engine only talks to the NetworkDirectory interface;
NetworkModel is the in-memory implementation, and can be built from a
pandapower net (see pandapower_adapter).
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from ..limits.model import OperationalLimitsGroup
from .sides import EquipmentKind, Side


@dataclass
class VoltageLevel:
    """
    Voltage level carrying high/low voltage bounds.

    Attributes:
        id: Voltage level identifier
        nominal_kv: Nominal voltage
        name: Display name
        high_voltage_limit: Resolved high bound (kV), NaN while unset
        low_voltage_limit: Resolved low bound (kV), NaN while unset
    """
    id: str
    nominal_kv: float
    name: Optional[str] = None
    high_voltage_limit: float = np.nan
    low_voltage_limit: float = np.nan

    def __post_init__(self):
        """Validate voltage level parameters."""
        if self.nominal_kv <= 0:
            raise ValueError("nominal_kv must be positive")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nominal_kv": self.nominal_kv,
            "name": self.name,
            "high_voltage_limit": _nan_to_none(self.high_voltage_limit),
            "low_voltage_limit": _nan_to_none(self.low_voltage_limit),
        }


@dataclass(frozen=True)
class Terminal:
    """
    Connection point of an equipment.

    Attributes:
        id: Terminal identifier
        equipment_id: Owning equipment
        number: Sequence number on the equipment (1..3), None for single-terminal equipment
        voltage_level_id: Voltage level the terminal connects to
    """
    id: str
    equipment_id: str
    number: Optional[int]
    voltage_level_id: str

    @property
    def side(self) -> Side:
        return Side.from_number(self.number)


@dataclass(eq=False)
class Equipment:
    """
    Network element owning limits groups and string properties.

    Limits groups are stored per side, at most one per limit set id.
    Properties are flat string key/value pairs (used for provenance).
    """
    id: str
    kind: EquipmentKind
    name: Optional[str] = None
    terminal_ids: List[str] = field(default_factory=list)
    properties: Dict[str, str] = field(default_factory=dict)
    groups: Dict[Side, Dict[str, OperationalLimitsGroup]] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    # properties

    def has_property(self, key: str) -> bool:
        return key in self.properties

    def get_property(self, key: str) -> Optional[str]:
        return self.properties.get(key)

    def set_property(self, key: str, value: str) -> None:
        self.properties[key] = str(value)

    # limits groups

    def get_limits_group(self, side: Side, limit_set_id: str) -> Optional[OperationalLimitsGroup]:
        return self.groups.get(side, {}).get(limit_set_id)

    def new_limits_group(self, side: Side, limit_set_id: str, name: str) -> OperationalLimitsGroup:
        if side not in self.kind.shape.sides:
            raise ValueError(f"{self.kind.value} {self.id} has no side {side.name}")
        group = OperationalLimitsGroup(id=limit_set_id, name=name)
        self.groups.setdefault(side, {})[limit_set_id] = group
        return group

    def limits_groups(self, side: Side) -> List[OperationalLimitsGroup]:
        return list(self.groups.get(side, {}).values())

    def sides_with_groups(self) -> List[Side]:
        return [side for side in self.kind.shape.sides if self.groups.get(side)]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "terminal_ids": list(self.terminal_ids),
            "properties": dict(self.properties),
            "groups": {
                side.name: [g.to_dict() for g in groups.values()]
                for side, groups in self.groups.items()
            },
        }


Handle = Union[Terminal, Equipment]


class NetworkDirectory(ABC):
    """
    Lookups the conversion engine needs from a network model.

    Every lookup returns None on a miss.
    """

    @abstractmethod
    def resolve_terminal(self, terminal_id: Optional[str]) -> Optional[Terminal]:
        """Terminal with the given id."""
        pass

    @abstractmethod
    def resolve_equipment(self, equipment_id: Optional[str]) -> Optional[Equipment]:
        """Equipment with the given id."""
        pass

    @abstractmethod
    def get_voltage_level(self, voltage_level_id: Optional[str]) -> Optional[VoltageLevel]:
        """Voltage level (or bus-bar container) with the given id."""
        pass

    @abstractmethod
    def voltage_level_of(self, handle: Optional[Handle]) -> Optional[VoltageLevel]:
        """
        Voltage level of a terminal, or of the sole terminal of an equipment.

        Returns None for equipment with more than one terminal.
        """
        pass

    def equipment_of(self, terminal: Terminal) -> Optional[Equipment]:
        return self.resolve_equipment(terminal.equipment_id)


@dataclass
class NetworkModel(NetworkDirectory):
    """
    In-memory network directory.

    Attributes:
        name: Network identifier
        voltage_levels: Voltage levels by id
        equipment: Equipment by id
        terminals: Terminals by id
    """
    name: str = "network"
    voltage_levels: Dict[str, VoltageLevel] = field(default_factory=dict)
    equipment: Dict[str, Equipment] = field(default_factory=dict)
    terminals: Dict[str, Terminal] = field(default_factory=dict)

    def add_voltage_level(self, voltage_level: VoltageLevel) -> VoltageLevel:
        """Add a voltage level to the network."""
        self.voltage_levels[voltage_level.id] = voltage_level
        return voltage_level

    def add_equipment(
        self,
        equipment_id: str,
        kind: EquipmentKind,
        voltage_level_ids: Sequence[str],
        terminal_ids: Optional[Sequence[str]] = None,
        name: Optional[str] = None
    ) -> Equipment:
        """
        Add an equipment and create its terminals.

        Args:
            equipment_id: Equipment identifier
            kind: Equipment kind
            voltage_level_ids: Voltage level of each terminal, in side order
            terminal_ids: Terminal identifiers (default "<equipment_id>_T<n>")
            name: Display name

        Returns:
            The created Equipment
        """
        expected = kind.shape.terminals
        if len(voltage_level_ids) != expected:
            raise ValueError(
                f"{kind.value} {equipment_id} needs {expected} terminal(s), "
                f"got {len(voltage_level_ids)}"
            )
        if terminal_ids is None:
            terminal_ids = [f"{equipment_id}_T{n}" for n in range(1, expected + 1)]
        elif len(terminal_ids) != expected:
            raise ValueError(f"{kind.value} {equipment_id} needs {expected} terminal id(s)")
        for vl_id in voltage_level_ids:
            if vl_id not in self.voltage_levels:
                raise ValueError(f"Unknown voltage level {vl_id}")
        if equipment_id in self.equipment:
            raise ValueError(f"Duplicate equipment id {equipment_id}")
        for terminal_id in terminal_ids:
            if terminal_id in self.terminals:
                raise ValueError(f"Duplicate terminal id {terminal_id}")
        if len(set(terminal_ids)) != len(terminal_ids):
            raise ValueError(f"{kind.value} {equipment_id} has repeated terminal ids")

        equipment = Equipment(id=equipment_id, kind=kind, name=name, terminal_ids=list(terminal_ids))
        self.equipment[equipment_id] = equipment
        for n, (terminal_id, vl_id) in enumerate(zip(terminal_ids, voltage_level_ids), start=1):
            number = None if expected == 1 else n
            self.terminals[terminal_id] = Terminal(terminal_id, equipment_id, number, vl_id)
        return equipment

    def resolve_terminal(self, terminal_id: Optional[str]) -> Optional[Terminal]:
        if terminal_id is None:
            return None
        return self.terminals.get(terminal_id)

    def resolve_equipment(self, equipment_id: Optional[str]) -> Optional[Equipment]:
        if equipment_id is None:
            return None
        return self.equipment.get(equipment_id)

    def get_voltage_level(self, voltage_level_id: Optional[str]) -> Optional[VoltageLevel]:
        if voltage_level_id is None:
            return None
        return self.voltage_levels.get(voltage_level_id)

    def voltage_level_of(self, handle: Optional[Handle]) -> Optional[VoltageLevel]:
        if isinstance(handle, Terminal):
            return self.voltage_levels.get(handle.voltage_level_id)
        if isinstance(handle, Equipment) and len(handle.terminal_ids) == 1:
            terminal = self.terminals.get(handle.terminal_ids[0])
            return self.voltage_level_of(terminal)
        return None

    def get_summary(self) -> dict:
        """
        Generate a summary of the network for display.

        Returns:
            Dict with element counts and limit coverage
        """
        kinds: Dict[str, int] = {}
        for eq in self.equipment.values():
            kinds[eq.kind.value] = kinds.get(eq.kind.value, 0) + 1
        return {
            "name": self.name,
            "voltage_levels": len(self.voltage_levels),
            "voltage_levels_with_bounds": sum(
                1 for vl in self.voltage_levels.values()
                if not (np.isnan(vl.high_voltage_limit) and np.isnan(vl.low_voltage_limit))
            ),
            "equipment": kinds,
            "equipment_with_limits": sum(
                1 for eq in self.equipment.values() if eq.sides_with_groups()
            ),
        }

    def to_dict(self) -> dict:
        """Serialize the network state, limits and properties included."""
        return {
            "name": self.name,
            "voltage_levels": [vl.to_dict() for vl in self.voltage_levels.values()],
            "equipment": [eq.to_dict() for eq in self.equipment.values()],
            "terminals": [
                {
                    "id": t.id,
                    "equipment_id": t.equipment_id,
                    "number": t.number,
                    "voltage_level_id": t.voltage_level_id,
                }
                for t in self.terminals.values()
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NetworkModel":
        """Rebuild a network from `to_dict` output."""
        network = cls(name=data.get("name", "network"))
        for item in data.get("voltage_levels", []):
            network.add_voltage_level(VoltageLevel(
                id=item["id"],
                nominal_kv=float(item["nominal_kv"]),
                name=item.get("name"),
                high_voltage_limit=_none_to_nan(item.get("high_voltage_limit")),
                low_voltage_limit=_none_to_nan(item.get("low_voltage_limit")),
            ))
        for item in data.get("equipment", []):
            equipment = Equipment(
                id=item["id"],
                kind=EquipmentKind(item["kind"]),
                name=item.get("name"),
                terminal_ids=list(item.get("terminal_ids", [])),
                properties=dict(item.get("properties", {})),
            )
            for side_name, groups in item.get("groups", {}).items():
                equipment.groups[Side[side_name]] = {
                    g["id"]: OperationalLimitsGroup.from_dict(g) for g in groups
                }
            network.equipment[equipment.id] = equipment
        for item in data.get("terminals", []):
            network.terminals[item["id"]] = Terminal(
                id=item["id"],
                equipment_id=item["equipment_id"],
                number=item.get("number"),
                voltage_level_id=item["voltage_level_id"],
            )
        return network


def _nan_to_none(value: float) -> Optional[float]:
    return None if np.isnan(value) else value


def _none_to_nan(value) -> float:
    return np.nan if value is None else float(value)
