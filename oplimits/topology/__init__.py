"""
Topology Layer
==============

Network elements limits are attached to:
- Voltage levels carrying voltage bounds
- Equipment (lines, transformers, dangling lines, switches, injections)
- Side rules per equipment kind
- pandapower import/export
"""

from .sides import Side, EquipmentKind, Fanout, fanout
from .network import VoltageLevel, Terminal, Equipment, NetworkDirectory, NetworkModel

__all__ = [
    "Side",
    "EquipmentKind",
    "Fanout",
    "fanout",
    "VoltageLevel",
    "Terminal",
    "Equipment",
    "NetworkDirectory",
    "NetworkModel",
]
