"""
Equipment Sides
===============

Side enumeration and the side-fanout rules of each equipment kind.

Each kind declares its valid sides and how a limit declared for the
whole equipment is expanded:
- Lines are symmetric: "whole" fans out to both sides
- Two/three-winding transformers have distinct sides: "whole" is rejected
- Boundary (dangling) lines have a single implicit side
- Switches and injections never carry loading limits; switches carry no voltage limits either
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class Side(Enum):
    """Side of an equipment a limit attaches to."""
    WHOLE = 0
    ONE = 1
    TWO = 2
    THREE = 3

    @property
    def token(self) -> str:
        """Textual side used in persisted provenance keys ("" for the whole/implicit side)."""
        return "" if self is Side.WHOLE else str(self.value)

    @classmethod
    def from_token(cls, token: str) -> "Side":
        if token == "":
            return cls.WHOLE
        return cls(int(token))

    @classmethod
    def from_number(cls, number: Optional[int]) -> "Side":
        """Map a terminal sequence number to a side; None or -1 means whole equipment."""
        if number is None or number == -1:
            return cls.WHOLE
        return cls(number)


@dataclass(frozen=True)
class SideShape:
    """
    Side semantics of an equipment kind.

    Attributes:
        sides: Sides that can own a limits group
        whole_fanout: Sides a "whole" attachment expands to, None if invalid
        carries_loading: Whether loading limits can be attached at all
        single_sided: Any declared side maps to the implicit side
        terminals: Number of terminals of the equipment
        carries_voltage: Whether the equipment terminals can anchor voltage limits
    """
    sides: Tuple[Side, ...]
    whole_fanout: Optional[Tuple[Side, ...]]
    terminals: int = 2
    carries_loading: bool = True
    single_sided: bool = False
    carries_voltage: bool = True


class EquipmentKind(Enum):
    """Kinds of network elements limits may be attached to."""
    LINE = "Line"
    TWO_WINDINGS_TRANSFORMER = "TwoWindingsTransformer"
    THREE_WINDINGS_TRANSFORMER = "ThreeWindingsTransformer"
    DANGLING_LINE = "DanglingLine"
    SWITCH = "Switch"
    INJECTION = "Injection"

    @property
    def shape(self) -> SideShape:
        return _SHAPES[self]


_SHAPES = {
    EquipmentKind.LINE: SideShape(
        sides=(Side.ONE, Side.TWO),
        whole_fanout=(Side.ONE, Side.TWO),
    ),
    EquipmentKind.TWO_WINDINGS_TRANSFORMER: SideShape(
        sides=(Side.ONE, Side.TWO),
        whole_fanout=None,
    ),
    EquipmentKind.THREE_WINDINGS_TRANSFORMER: SideShape(
        sides=(Side.ONE, Side.TWO, Side.THREE),
        whole_fanout=None,
        terminals=3,
    ),
    EquipmentKind.DANGLING_LINE: SideShape(
        sides=(Side.WHOLE,),
        whole_fanout=(Side.WHOLE,),
        terminals=1,
        single_sided=True,
    ),
    EquipmentKind.SWITCH: SideShape(
        sides=(), whole_fanout=None, carries_loading=False, carries_voltage=False
    ),
    EquipmentKind.INJECTION: SideShape(
        sides=(), whole_fanout=None, terminals=1, carries_loading=False, single_sided=True
    ),
}


@dataclass(frozen=True)
class Fanout:
    """
    Outcome of applying the side rules to a declared side.

    `sides` is empty when the attachment is rejected; `reason` then
    explains why.
    """
    sides: Tuple[Side, ...]
    reason: Optional[str] = None

    @property
    def assigned(self) -> bool:
        return len(self.sides) > 0


def fanout(kind: EquipmentKind, side: Side) -> Fanout:
    """
    Expand a declared side into the sides that receive a limits group.

    Args:
        kind: Equipment kind
        side: Declared side (WHOLE when the limit targets the equipment)

    Returns:
        Fanout with the target sides, or a rejection reason
    """
    shape = kind.shape
    if not shape.carries_loading:
        return Fanout((), f"Loading limits cannot be attached to {kind.value}")
    if shape.single_sided:
        return Fanout(shape.sides)
    if side is Side.WHOLE:
        if shape.whole_fanout is None:
            n = len(shape.sides)
            return Fanout(
                (),
                f"Defined for Equipment {kind.value}. Should be defined for one Terminal of "
                f"{'Two' if n == 2 else 'Three'}",
            )
        return Fanout(shape.whole_fanout)
    if side in shape.sides:
        return Fanout((side,))
    return Fanout((), f"Side {side.value} is not valid for {kind.value}")
