"""Pytest configuration and shared fixtures."""

import pytest

from oplimits.conversion.converter import LimitsConverter
from oplimits.records.model import LimitRecord
from oplimits.topology.network import NetworkModel, VoltageLevel
from oplimits.topology.sides import EquipmentKind


@pytest.fixture
def network():
    """
    Small network covering every equipment kind.

    VL400 -- L1 (line) -- VL400
    VL400 -- TR2 (2-winding) -- VL225
    VL225 / VL63 / VL20 -- TR3 (3-winding)
    VL225 -- DL1 (dangling line)
    VL63 -- SW1 (switch)
    VL20 -- LD1 (load)
    """
    net = NetworkModel(name="test")
    for vl_id, kv in [("VL400", 400.0), ("VL225", 225.0), ("VL63", 63.0), ("VL20", 20.0)]:
        net.add_voltage_level(VoltageLevel(vl_id, kv))
    net.add_equipment("L1", EquipmentKind.LINE, ["VL400", "VL400"], ["T_L1_1", "T_L1_2"])
    net.add_equipment(
        "TR2", EquipmentKind.TWO_WINDINGS_TRANSFORMER, ["VL400", "VL225"], ["T_TR2_1", "T_TR2_2"]
    )
    net.add_equipment(
        "TR3",
        EquipmentKind.THREE_WINDINGS_TRANSFORMER,
        ["VL225", "VL63", "VL20"],
        ["T_TR3_1", "T_TR3_2", "T_TR3_3"],
    )
    net.add_equipment("DL1", EquipmentKind.DANGLING_LINE, ["VL225"], ["T_DL1"])
    net.add_equipment("SW1", EquipmentKind.SWITCH, ["VL63", "VL63"])
    net.add_equipment("LD1", EquipmentKind.INJECTION, ["VL20"], ["T_LD1"])
    return net


@pytest.fixture
def converter(network):
    return LimitsConverter(network)


@pytest.fixture
def patl():
    """Factory for permanent current limit records (default: L1 side 1, set S)."""
    def make(source_id, value, **kwargs):
        fields = dict(
            subclass="CurrentLimit",
            limit_set_id="S",
            type_name="PATL",
            terminal_id="T_L1_1",
        )
        fields.update(kwargs)
        return LimitRecord(source_id=source_id, value=value, **fields)
    return make


@pytest.fixture
def tatl():
    """Factory for temporary current limit records (default: L1 side 1, set S)."""
    def make(source_id, value, duration=600, **kwargs):
        fields = dict(
            subclass="CurrentLimit",
            limit_set_id="S",
            type_name="TATL",
            terminal_id="T_L1_1",
            acceptable_duration=duration,
        )
        fields.update(kwargs)
        return LimitRecord(source_id=source_id, value=value, **fields)
    return make


@pytest.fixture
def voltage():
    """Factory for voltage limit records (default: terminal of L1, i.e. VL400)."""
    def make(source_id, value, bound="high", **kwargs):
        fields = dict(
            subclass="VoltageLimit",
            type_name=f"{bound}Voltage",
            terminal_id="T_L1_1",
        )
        fields.update(kwargs)
        return LimitRecord(source_id=source_id, value=value, **fields)
    return make
