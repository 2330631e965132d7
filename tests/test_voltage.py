import numpy as np
import pytest

from oplimits.conversion.context import DiagnosticKind


def test_inconsistent_low_bound_rejected(network, converter, voltage):
    converter.convert_records([voltage("H", 420.0), voltage("L", 450.0, bound="low")])
    vl = network.voltage_levels["VL400"]

    assert vl.high_voltage_limit == 420.0
    assert np.isnan(vl.low_voltage_limit)
    invalid = converter.report.of_kind(DiagnosticKind.INVALID)
    assert len(invalid) == 1
    assert invalid[0].subject == "LowVoltageLimit"
    assert invalid[0].message == "Inconsistent with high voltage limit (420.0kV)"


def test_inconsistent_high_bound_rejected(network, converter, voltage):
    converter.convert_records([voltage("L", 380.0, bound="low"), voltage("H", 370.0)])
    vl = network.voltage_levels["VL400"]

    assert vl.low_voltage_limit == 380.0
    assert np.isnan(vl.high_voltage_limit)
    assert converter.report.of_kind(DiagnosticKind.INVALID)[0].subject == "HighVoltageLimit"


def test_bounds_only_tighten(network, converter, voltage):
    converter.convert_records([
        voltage("H1", 440.0), voltage("H2", 420.0), voltage("H3", 430.0),
        voltage("L1", 370.0, bound="low"), voltage("L2", 380.0, bound="low"),
        voltage("L3", 360.0, bound="low"),
    ])
    vl = network.voltage_levels["VL400"]

    assert vl.high_voltage_limit == 420.0
    assert vl.low_voltage_limit == 380.0
    # non-improving candidates are dropped without a diagnostic
    assert converter.report.count() == 0


def test_equal_bounds_are_consistent(network, converter, voltage):
    converter.convert_records([voltage("H", 400.0), voltage("L", 400.0, bound="low")])
    vl = network.voltage_levels["VL400"]

    assert vl.high_voltage_limit == vl.low_voltage_limit == 400.0


def test_terminal_selects_voltage_level(network, converter, voltage):
    converter.convert_records([voltage("H", 240.0, terminal_id="T_TR2_2")])

    assert network.voltage_levels["VL225"].high_voltage_limit == 240.0
    assert np.isnan(network.voltage_levels["VL400"].high_voltage_limit)


def test_single_terminal_equipment(network, converter, voltage):
    converter.convert_records([voltage("H", 22.0, terminal_id=None, equipment_id="LD1")])

    assert network.voltage_levels["VL20"].high_voltage_limit == 22.0


def test_unknown_equipment_uses_container(network, converter, voltage):
    record = voltage(
        "H", 70.0, terminal_id=None, equipment_id="BBS1", equipment_container_id="VL63"
    )
    result = converter.convert_records([record])

    assert result.failed == []
    assert network.voltage_levels["VL63"].high_voltage_limit == 70.0


def test_equipment_id_may_name_the_voltage_level(network, converter, voltage):
    converter.convert_records([voltage("L", 57.0, bound="low", terminal_id=None, equipment_id="VL63")])

    assert network.voltage_levels["VL63"].low_voltage_limit == 57.0


def test_multi_terminal_equipment_not_assigned(network, converter, voltage):
    result = converter.convert_records([voltage("H", 420.0, terminal_id=None, equipment_id="L1")])

    assert result.failed == []
    assert converter.report.count(DiagnosticKind.NOT_ASSIGNED) == 1
    assert np.isnan(network.voltage_levels["VL400"].high_voltage_limit)


def test_unresolvable_voltage_record_is_missing(converter, voltage):
    result = converter.convert_records([
        voltage("H", 420.0, terminal_id=None, equipment_id="BBS9", equipment_container_id="VL9")
    ])

    assert result.failed == ["H"]
    assert converter.report.count(DiagnosticKind.MISSING) == 1


def test_voltage_without_bound_not_assigned(network, converter, voltage):
    converter.convert_records([voltage("V", 420.0, bound="nominal")])

    assert converter.report.count(DiagnosticKind.NOT_ASSIGNED) == 1
    assert np.isnan(network.voltage_levels["VL400"].high_voltage_limit)


def test_voltage_records_write_no_provenance(network, converter, voltage):
    result = converter.convert_records([voltage("H", 420.0)])

    assert result.converted == 1
    assert result.provenance_entries == 0


@pytest.mark.parametrize("where", [
    {"terminal_id": "SW1_T1"},
    {"terminal_id": None, "equipment_id": "SW1"},
])
def test_switch_voltage_record_not_assigned(network, converter, voltage, where):
    result = converter.convert_records([voltage("H", 70.0, **where)])

    assert result.failed == []
    assert result.converted == 0
    not_assigned = converter.report.of_kind(DiagnosticKind.NOT_ASSIGNED)
    assert len(not_assigned) == 1
    assert "Voltage limits cannot be attached to" in not_assigned[0].message
    assert np.isnan(network.voltage_levels["VL63"].high_voltage_limit)
