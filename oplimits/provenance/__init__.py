"""
Provenance
==========

Links between resolved limit slots and the source records behind them.
"""

from .codec import FactKind, Tier, SlotKey, ProvenanceEntry, ProvenanceCodec
from .store import ProvenanceStore

__all__ = ["FactKind", "Tier", "SlotKey", "ProvenanceEntry", "ProvenanceCodec", "ProvenanceStore"]
