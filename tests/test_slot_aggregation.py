"""Conservative merge of loading records into permanent and temporary slots."""

import json

import numpy as np
import pytest

from oplimits.config import ConversionConfig
from oplimits.conversion.context import DiagnosticKind
from oplimits.conversion.converter import LimitsConverter
from oplimits.records.model import LimitSubclass
from oplimits.topology.sides import Side

LOW = "http://iec.ch/TC57/CIM100#OperationalLimitDirectionKind.low"
HIGH = "http://iec.ch/TC57/CIM100#OperationalLimitDirectionKind.high"


def current_limits(network, equipment_id="L1", side=Side.ONE, set_id="S"):
    group = network.equipment[equipment_id].get_limits_group(side, set_id)
    assert group is not None
    return group.get_loading_limits(LimitSubclass.CURRENT)


@pytest.mark.parametrize("values", [(120.0, 100.0), (100.0, 120.0)])
def test_lowest_permanent_kept_in_any_order(network, converter, patl, values):
    converter.convert_records([patl("A", values[0]), patl("B", values[1])])

    assert current_limits(network).permanent_limit == 100.0
    assert converter.report.count(DiagnosticKind.FIXED) == 1


def test_every_superseded_value_reported(network, converter, patl):
    result = converter.convert_records([patl("A", 120.0), patl("B", 100.0), patl("C", 90.0)])

    assert current_limits(network).permanent_limit == 90.0
    assert [d.record_id for d in converter.report.of_kind(DiagnosticKind.FIXED)] == ["B", "C"]
    props = network.equipment["L1"].properties
    assert props["CGMES_sourceId_S_1_CurrentLimit_patl"] == "C"
    assert props["CGMES_baselineValue_S_1_CurrentLimit_patl"] == "90.0"
    assert result.provenance_entries == 1


def test_rejected_value_repeated_is_reported_once(network, converter, patl, tatl):
    converter.convert_records([
        patl("A", 100.0), patl("B", 120.0), patl("C", 120.0),
        tatl("D", 200.0), tatl("E", 250.0), tatl("F", 250.0),
    ])

    assert current_limits(network).permanent_limit == 100.0
    assert [d.record_id for d in converter.report.of_kind(DiagnosticKind.FIXED)] == ["B", "E"]


def test_conflict_state_is_kept_per_equipment(network, converter, patl):
    converter.convert_records([
        patl("A", 120.0), patl("B", 100.0),
        patl("C", 120.0, terminal_id="T_TR2_1"), patl("D", 100.0, terminal_id="T_TR2_1"),
    ])

    assert converter.report.count(DiagnosticKind.FIXED) == 2
    assert set(converter.context.reported_conflicts) == {"L1", "TR2"}


def test_converters_over_one_network_share_no_state(network, patl):
    line = LimitsConverter(network)
    transformer = LimitsConverter(network)
    line.convert_records([patl("A", 120.0), patl("B", 100.0)])
    transformer.convert_records([patl("C", 80.0, terminal_id="T_TR2_2")])

    assert line.report.count(DiagnosticKind.FIXED) == 1
    assert transformer.report.count() == 0
    assert list(line.context.provenance.element_ids()) == ["L1"]
    assert list(transformer.context.provenance.element_ids()) == ["TR2"]
    assert network.equipment["TR2"].properties["CGMES_sourceId_S_2_CurrentLimit_patl"] == "C"


def test_equal_value_is_not_a_conflict(network, converter, patl):
    converter.convert_records([patl("A", 100.0), patl("B", 100.0)])

    assert converter.report.count(DiagnosticKind.FIXED) == 0
    # first record keeps the slot
    assert network.equipment["L1"].properties["CGMES_sourceId_S_1_CurrentLimit_patl"] == "A"


def test_sides_and_limit_sets_are_separate_slots(network, converter, patl):
    converter.convert_records([
        patl("A", 100.0),
        patl("B", 80.0, terminal_id="T_L1_2"),
        patl("C", 70.0, limit_set_id="WINTER"),
    ])

    assert current_limits(network).permanent_limit == 100.0
    assert current_limits(network, side=Side.TWO).permanent_limit == 80.0
    assert current_limits(network, set_id="WINTER").permanent_limit == 70.0
    assert converter.report.count(DiagnosticKind.FIXED) == 0


def test_subclasses_are_separate_slots(network, converter, patl):
    converter.convert_records([
        patl("A", 100.0),
        patl("B", 50.0, subclass="ApparentPowerLimit"),
    ])
    group = network.equipment["L1"].get_limits_group(Side.ONE, "S")

    assert group.current_limits.permanent_limit == 100.0
    assert group.apparent_power_limits.permanent_limit == 50.0
    assert group.active_power_limits is None


def test_temporary_durations_never_merge(network, converter, tatl):
    converter.convert_records([tatl("A", 500.0, 600), tatl("B", 400.0, 900)])
    limits = current_limits(network)

    assert limits.sorted_durations() == [600, 900]
    assert limits.get_temporary_limit_value(600) == 500.0
    assert limits.get_temporary_limit_value(900) == 400.0
    assert converter.report.count(DiagnosticKind.FIXED) == 0


def test_missing_duration_uses_unbounded_key(network, converter, tatl):
    converter.convert_records([tatl("A", 500.0, None), tatl("B", 450.0, None)])
    limits = current_limits(network)

    assert limits.sorted_durations() == [2147483647]
    assert limits.get_temporary_limit_value(2147483647) == 450.0
    assert "CGMES_sourceId_S_1_CurrentLimit_tatl_2147483647" in network.equipment["L1"].properties


def test_unbounded_duration_is_configurable(network, tatl):
    converter = LimitsConverter(network, ConversionConfig(unbounded_duration=86400))
    converter.convert_records([tatl("A", 500.0, None)])

    assert current_limits(network).sorted_durations() == [86400]


def test_low_direction_never_merged(network, converter, tatl):
    converter.convert_records([tatl("A", 300.0, direction=LOW)])

    invalid = converter.report.of_kind(DiagnosticKind.INVALID)
    assert len(invalid) == 1
    assert invalid[0].message == "TATL A is a low limit"
    assert network.equipment["L1"].get_limits_group(Side.ONE, "S") is None


def test_unknown_direction_is_invalid(network, converter, tatl):
    converter.convert_records([tatl("A", 300.0, direction="sideways")])

    assert converter.report.of_kind(DiagnosticKind.INVALID)[0].message == (
        "TATL A does not have a valid direction"
    )


@pytest.mark.parametrize("direction", [None, HIGH, "absoluteValue"])
def test_accepted_directions(network, converter, tatl, direction):
    converter.convert_records([tatl("A", 300.0, direction=direction)])

    assert current_limits(network).get_temporary_limit_value(600) == 300.0
    assert converter.report.count(DiagnosticKind.INVALID) == 0


def test_temporary_limit_names(network, converter, tatl):
    converter.convert_records([
        tatl("A", 500.0, 600, name="TATL"),
        tatl("B", 400.0, 900, name="TATL"),
        tatl("C", 500.0, 600, name="Equal"),
    ])
    limits = current_limits(network)

    assert limits.get_temporary_limit(600).name == "TATL"
    assert limits.get_temporary_limit(900).name == "TATL#2"

    converter.convert_records([tatl("D", 450.0, 600, name="Lower", short_name="LW")])
    assert limits.get_temporary_limit(600).name == "LW"
    assert limits.get_temporary_limit_value(600) == 450.0


def test_permanent_and_temporary_fixed_separately(network, converter, patl, tatl):
    converter.convert_records([
        patl("A", 100.0), patl("B", 90.0),
        tatl("C", 200.0), tatl("D", 190.0),
    ])

    fixed = converter.report.of_kind(DiagnosticKind.FIXED)
    assert [d.subject for d in fixed] == ["Permanent Limit", "Temporary Limit"]
    assert "(600 s)" in fixed[1].message
    assert "Terminal T_L1_1" in fixed[0].message


def test_limit_set_identifiers_property(network, converter, patl):
    converter.convert_records([
        patl("A", 100.0, limit_set_name="Summer"),
        patl("B", 100.0, limit_set_id="W"),
    ])
    raw = network.equipment["L1"].get_property("CGMES_OperationalLimitSetIdentifiers")

    assert json.loads(raw) == {"S": "Summer", "W": "W"}


def test_limit_set_identifiers_can_be_disabled(network, patl):
    converter = LimitsConverter(network, ConversionConfig(store_limit_set_identifiers=False))
    converter.convert_records([patl("A", 100.0)])

    assert not network.equipment["L1"].has_property("CGMES_OperationalLimitSetIdentifiers")


def test_value_screening(network, converter, patl):
    result = converter.convert_records([patl("A", np.nan), patl("B", 0.0), patl("C", -1.0)])

    assert converter.report.count(DiagnosticKind.IGNORED) == 3
    assert result.converted == 0
    assert network.equipment["L1"].get_limits_group(Side.ONE, "S") is None


def test_custom_namespace_in_provenance_keys(network, patl):
    converter = LimitsConverter(network, ConversionConfig(namespace="IGM"))
    converter.convert_records([patl("A", 100.0)])

    assert network.equipment["L1"].properties["IGM_sourceId_S_1_CurrentLimit_patl"] == "A"
