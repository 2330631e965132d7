import json

import pandas as pd
import pandapower as pp
import pytest

from oplimits.cli import main


@pytest.fixture
def inputs(tmp_path):
    net = pp.create_empty_network()
    b1 = pp.create_bus(net, vn_kv=110.0, name="B1")
    b2 = pp.create_bus(net, vn_kv=110.0, name="B2")
    pp.create_ext_grid(net, b1, name="Grid")
    pp.create_line_from_parameters(
        net, b1, b2, length_km=5.0, r_ohm_per_km=0.1, x_ohm_per_km=0.4,
        c_nf_per_km=10.0, max_i_ka=1.0, name="L",
    )
    network_path = tmp_path / "net.json"
    pp.to_json(net, str(network_path))

    records_path = tmp_path / "records.csv"
    pd.DataFrame([
        {"source_id": "A", "subclass": "CurrentLimit", "value": 500, "limit_set_id": "S",
         "type_name": "PATL", "terminal_id": "L_T1"},
        {"source_id": "B", "subclass": "CurrentLimit", "value": 450, "limit_set_id": "S",
         "type_name": "PATL", "terminal_id": "L_T1"},
        {"source_id": "C", "subclass": "CurrentLimit", "value": 700, "limit_set_id": "S",
         "type_name": "TATL", "terminal_id": "L_T1", "acceptable_duration": 60},
    ]).to_csv(records_path, index=False)
    return tmp_path, network_path, records_path


def test_convert_then_update(inputs):
    tmp_path, network_path, records_path = inputs
    report_path = tmp_path / "report.json"
    state_path = tmp_path / "state.json"
    net_out = tmp_path / "net_out.json"

    code = main([
        "convert", "--network", str(network_path), "--records", str(records_path),
        "--output", str(report_path), "--state-out", str(state_path),
        "--network-out", str(net_out),
    ])

    assert code == 0
    report = json.loads(report_path.read_text())
    assert report["records"] == 3
    assert report["summary"]["fixed"] == 1
    assert report["provenance_entries"] == 2
    assert pp.from_json(str(net_out)).line.at[0, "max_i_ka"] == pytest.approx(0.45)

    refreshed = tmp_path / "refreshed.csv"
    pd.DataFrame({"source_id": ["B"], "value": [400.0]}).to_csv(refreshed, index=False)

    assert main(["update", "--state", str(state_path), "--refreshed", str(refreshed)]) == 0
    state = json.loads(state_path.read_text())
    line = next(eq for eq in state["equipment"] if eq["id"] == "L")
    limits = line["groups"]["ONE"][0]["limits"]["CurrentLimit"]
    assert limits["permanent_limit"] == 400.0
    assert limits["temporary_limits"][0]["value"] == 700.0


def test_convert_reports_failed_records(inputs, tmp_path):
    _, network_path, _ = inputs
    records_path = tmp_path / "bad.csv"
    pd.DataFrame([
        {"source_id": "X", "subclass": "CurrentLimit", "value": 500, "limit_set_id": "S",
         "type_name": "PATL", "terminal_id": "NOPE"},
    ]).to_csv(records_path, index=False)
    report_path = tmp_path / "report.json"

    code = main([
        "convert", "--network", str(network_path), "--records", str(records_path),
        "--output", str(report_path),
    ])

    assert code == 1
    assert json.loads(report_path.read_text())["failed"] == ["X"]


def test_missing_input_returns_2(tmp_path):
    code = main([
        "convert", "--network", str(tmp_path / "none.json"),
        "--records", str(tmp_path / "none.csv"),
    ])
    assert code == 2


def test_invalid_config_returns_2(inputs, tmp_path):
    _, network_path, records_path = inputs
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"namespace": "two words"}))

    code = main([
        "--config", str(config_path),
        "convert", "--network", str(network_path), "--records", str(records_path),
    ])
    assert code == 2


def test_update_missing_state_returns_2(tmp_path):
    assert main(["update", "--state", str(tmp_path / "s.json"), "--refreshed", "r.csv"]) == 2
