import pytest

from oplimits.topology.sides import EquipmentKind, Side, fanout


def test_line_whole_fans_out_to_both_sides():
    result = fanout(EquipmentKind.LINE, Side.WHOLE)
    assert result.sides == (Side.ONE, Side.TWO)
    assert result.assigned


@pytest.mark.parametrize("kind", [
    EquipmentKind.TWO_WINDINGS_TRANSFORMER,
    EquipmentKind.THREE_WINDINGS_TRANSFORMER,
])
def test_whole_rejected_for_asymmetric_equipment(kind):
    result = fanout(kind, Side.WHOLE)
    assert not result.assigned
    assert "Should be defined for one Terminal" in result.reason


def test_three_winding_reason_points_to_three_sides():
    assert fanout(EquipmentKind.THREE_WINDINGS_TRANSFORMER, Side.WHOLE).reason.endswith("of Three")


@pytest.mark.parametrize("side", [Side.ONE, Side.TWO, Side.THREE])
def test_three_winding_accepts_each_leg(side):
    assert fanout(EquipmentKind.THREE_WINDINGS_TRANSFORMER, side).sides == (side,)


def test_out_of_range_side_rejected():
    result = fanout(EquipmentKind.LINE, Side.THREE)
    assert not result.assigned
    assert "Side 3" in result.reason


@pytest.mark.parametrize("side", list(Side))
def test_dangling_line_normalizes_any_side(side):
    assert fanout(EquipmentKind.DANGLING_LINE, side).sides == (Side.WHOLE,)


@pytest.mark.parametrize("kind", [EquipmentKind.SWITCH, EquipmentKind.INJECTION])
@pytest.mark.parametrize("side", [Side.WHOLE, Side.ONE])
def test_no_loading_limits_on_switches_and_injections(kind, side):
    assert not fanout(kind, side).assigned


def test_side_tokens():
    assert Side.WHOLE.token == ""
    assert Side.TWO.token == "2"
    assert Side.from_token("") is Side.WHOLE
    assert Side.from_token("3") is Side.THREE
    assert Side.from_number(None) is Side.WHOLE
    assert Side.from_number(-1) is Side.WHOLE
    assert Side.from_number(1) is Side.ONE


def test_only_switches_refuse_voltage_limits():
    assert not EquipmentKind.SWITCH.shape.carries_voltage
    assert all(kind.shape.carries_voltage for kind in EquipmentKind if kind is not EquipmentKind.SWITCH)
