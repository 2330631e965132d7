"""
Provenance Codec
================

Canonical keys for the provenance facts persisted on network elements.

Every accepted limit slot is described by two string properties:

    <namespace>_sourceId_<limitSetId>_<side>_<subclass>_patl
    <namespace>_baselineValue_<limitSetId>_<side>_<subclass>_patl
    <namespace>_sourceId_<limitSetId>_<side>_<subclass>_tatl_<duration>
    ...

Side is "" for the implicit side of single-sided equipment. Keys are
parsed right to left: side, subclass, tier and duration come from fixed
vocabularies, so limit set ids may contain underscores without two slot
identities ever rendering the same key. Permanent keys end in "_patl"
and temporary keys in a number, so the two tiers never collide either.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from ..records.model import LimitSubclass
from ..topology.sides import Side

logger = logging.getLogger(__name__)


class FactKind(Enum):
    """Facts recorded per slot."""
    SOURCE_ID = "sourceId"
    BASELINE_VALUE = "baselineValue"


class Tier(Enum):
    """Permanent or temporary slot."""
    PERMANENT = "patl"
    TEMPORARY = "tatl"


@dataclass(frozen=True)
class SlotKey:
    """
    Identity of a limit slot on one equipment.

    Attributes:
        limit_set_id: Limit set (limits group) identifier
        subclass: Loading limit subclass
        side: Equipment side
        acceptable_duration: Duration of a temporary slot, None for the permanent slot
    """
    limit_set_id: str
    subclass: LimitSubclass
    side: Side
    acceptable_duration: Optional[int] = None

    @property
    def tier(self) -> Tier:
        return Tier.PERMANENT if self.acceptable_duration is None else Tier.TEMPORARY

    def temporary(self, acceptable_duration: int) -> "SlotKey":
        """Temporary slot of the same group, subclass and side."""
        return SlotKey(self.limit_set_id, self.subclass, self.side, acceptable_duration)

    def describe(self) -> str:
        text = f"{self.limit_set_id}/{self.side.name}/{self.subclass.value}/{self.tier.value}"
        if self.acceptable_duration is not None:
            text += f"/{self.acceptable_duration}"
        return text


@dataclass(frozen=True)
class ProvenanceEntry:
    """Source record and baseline value behind an accepted slot value."""
    slot: SlotKey
    source_id: str
    baseline_value: float


class ProvenanceCodec:
    """
    Encode/decode provenance entries as flat string properties.

    Args:
        namespace: First token of every key
    """

    def __init__(self, namespace: str = "CGMES"):
        if not namespace:
            raise ValueError("namespace must not be empty")
        self.namespace = namespace

    def key(self, slot: SlotKey, fact: FactKind) -> str:
        """Canonical property key of one fact of a slot."""
        key = (
            f"{self.namespace}_{fact.value}_{slot.limit_set_id}_"
            f"{slot.side.token}_{slot.subclass.value}_{slot.tier.value}"
        )
        if slot.acceptable_duration is not None:
            key += f"_{slot.acceptable_duration}"
        return key

    def encode(self, entry: ProvenanceEntry) -> Dict[str, str]:
        """Both facts of an entry, as property key -> value."""
        return {
            self.key(entry.slot, FactKind.SOURCE_ID): entry.source_id,
            self.key(entry.slot, FactKind.BASELINE_VALUE): repr(float(entry.baseline_value)),
        }

    def decode(self, slot: SlotKey, properties: Mapping[str, str]) -> Optional[ProvenanceEntry]:
        """
        Provenance of a slot, None when either fact is missing or unreadable.
        """
        source_id = properties.get(self.key(slot, FactKind.SOURCE_ID))
        raw_value = properties.get(self.key(slot, FactKind.BASELINE_VALUE))
        if source_id is None or raw_value is None:
            return None
        try:
            baseline = float(raw_value)
        except ValueError:
            logger.debug("Unreadable baseline value %r for slot %s", raw_value, slot.describe())
            return None
        return ProvenanceEntry(slot=slot, source_id=source_id, baseline_value=baseline)

    def source_id(self, slot: SlotKey, properties: Mapping[str, str]) -> Optional[str]:
        return properties.get(self.key(slot, FactKind.SOURCE_ID))

    def baseline_value(self, slot: SlotKey, properties: Mapping[str, str]) -> Optional[float]:
        raw_value = properties.get(self.key(slot, FactKind.BASELINE_VALUE))
        if raw_value is None:
            return None
        try:
            return float(raw_value)
        except ValueError:
            return None

    def decode_key(self, key: str) -> Optional[Tuple[FactKind, SlotKey]]:
        """
        Parse a property key back into (fact, slot).

        Returns None for keys outside this namespace or malformed keys.
        """
        prefix = f"{self.namespace}_"
        if not key.startswith(prefix):
            return None
        rest = key[len(prefix):]
        for fact in FactKind:
            if rest.startswith(fact.value + "_"):
                body = rest[len(fact.value) + 1:]
                break
        else:
            return None

        try:
            if body.endswith("_" + Tier.PERMANENT.value):
                set_id, side, subclass = body[:-len(Tier.PERMANENT.value) - 1].rsplit("_", 2)
                duration = None
            else:
                set_id, side, subclass, tier, raw_duration = body.rsplit("_", 4)
                if tier != Tier.TEMPORARY.value:
                    return None
                duration = int(raw_duration)
            slot = SlotKey(set_id, LimitSubclass(subclass), Side.from_token(side), duration)
        except ValueError:
            return None
        if not set_id or not slot.subclass.is_loading:
            return None
        # reject non-canonical spellings such as "01" or "+60"
        if self.key(slot, fact) != key:
            return None
        return fact, slot
