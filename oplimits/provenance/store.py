"""
Provenance Store
================

Typed map of provenance entries collected during one conversion run.

Entries are recorded when a slot value is accepted and serialized to
element properties only when the run is flushed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from .codec import ProvenanceCodec, ProvenanceEntry, SlotKey

if TYPE_CHECKING:
    from ..topology.network import Equipment, NetworkDirectory

logger = logging.getLogger(__name__)


class ProvenanceStore:
    """
    Provenance entries by element id and slot.

    A later entry for the same slot supersedes the earlier one, which is
    what happens when a lower value replaces a slot value.
    """

    def __init__(self, codec: Optional[ProvenanceCodec] = None):
        self.codec = codec or ProvenanceCodec()
        self._entries: Dict[str, Dict[SlotKey, ProvenanceEntry]] = {}

    def record(self, element_id: str, entry: ProvenanceEntry) -> None:
        self._entries.setdefault(element_id, {})[entry.slot] = entry

    def get(self, element_id: str, slot: SlotKey) -> Optional[ProvenanceEntry]:
        return self._entries.get(element_id, {}).get(slot)

    def entries_for(self, element_id: str) -> List[ProvenanceEntry]:
        return list(self._entries.get(element_id, {}).values())

    def element_ids(self) -> Iterable[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    def write_to(self, element: "Equipment") -> int:
        """
        Serialize the entries of one element into its properties.

        Returns:
            Number of entries written
        """
        entries = self._entries.get(element.id, {})
        for entry in entries.values():
            for key, value in self.codec.encode(entry).items():
                element.set_property(key, value)
        return len(entries)

    def flush(self, directory: "NetworkDirectory") -> int:
        """Write every recorded entry to its element; returns the entry count."""
        written = 0
        for element_id in self._entries:
            element = directory.resolve_equipment(element_id)
            if element is None:
                logger.warning("Provenance recorded for unknown element %s", element_id)
                continue
            written += self.write_to(element)
        logger.debug("Flushed %d provenance entries", written)
        return written
