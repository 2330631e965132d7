from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

import pandapower as pp
from pydantic import ValidationError

from .config import load_config
from .conversion.converter import LimitsConverter
from .conversion.update import FrameLimitSource, UpdateReconciler
from .provenance.codec import ProvenanceCodec
from .records.model import records_from_csv, records_summary
from .topology.network import NetworkModel
from .topology.pandapower_adapter import apply_to_pandapower, network_from_pandapower

logger = logging.getLogger(__name__)


def load_state(path: str) -> NetworkModel:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"State JSON not found: {path}")
    return NetworkModel.from_dict(json.loads(p.read_text()))


def write_json(path: str, data: Dict[str, Any]) -> None:
    Path(path).write_text(json.dumps(data, indent=2))


def cmd_convert(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
        if not Path(args.network).exists():
            raise FileNotFoundError(f"Network JSON not found: {args.network}")
        if not Path(args.records).exists():
            raise FileNotFoundError(f"Records CSV not found: {args.records}")
        net = pp.from_json(args.network)
        records = records_from_csv(args.records)
    except ValidationError as e:
        print("Config validation error:", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2
    except (FileNotFoundError, json.JSONDecodeError, ValueError) as e:
        print(f"Input error: {e}", file=sys.stderr)
        return 2

    model = network_from_pandapower(net)
    converter = LimitsConverter(model, config)
    result = converter.convert_records(records)

    out = {
        "input_records": records_summary(records),
        "network": model.get_summary(),
        **result.to_dict(),
    }
    write_json(args.output, out)
    if args.state_out:
        write_json(args.state_out, model.to_dict())
    if args.network_out:
        apply_to_pandapower(model, net, args.limit_set)
        pp.to_json(net, args.network_out)

    # Minimal console summary
    print(f"Records: {result.records}, converted: {result.converted}, failed: {len(result.failed)}")
    print(f"Provenance entries: {result.provenance_entries}")
    for kind, count in result.report.summary().items():
        if count:
            print(f"- {kind}: {count}")
    return 1 if result.failed else 0


def cmd_update(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
        model = load_state(args.state)
        if not Path(args.refreshed).exists():
            raise FileNotFoundError(f"Refreshed CSV not found: {args.refreshed}")
        source = FrameLimitSource.from_csv(args.refreshed)
    except ValidationError as e:
        print("Config validation error:", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2
    except (FileNotFoundError, json.JSONDecodeError, KeyError, ValueError) as e:
        print(f"Input error: {e}", file=sys.stderr)
        return 2

    reconciler = UpdateReconciler(source, ProvenanceCodec(config.namespace))
    updates = reconciler.update_all(model.equipment.values())
    write_json(args.output or args.state, model.to_dict())

    n_slots = sum(len(u) for u in updates.values())
    n_changed = sum(1 for ups in updates.values() for u in ups if u.changed)
    print(f"Updated {n_slots} slots on {len(updates)} elements ({n_changed} changed)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Attach grid-model operational limits to a network and update them per scenario."
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging.")
    parser.add_argument("--config", "-c", help="Path to conversion config JSON.")
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="Convert limit records into a network.")
    convert.add_argument("--network", "-n", required=True, help="pandapower network JSON.")
    convert.add_argument("--records", "-r", required=True, help="Limit records CSV.")
    convert.add_argument(
        "--output", "-o", default="limits_report.json", help="Path to write the conversion report."
    )
    convert.add_argument(
        "--state-out", help="Path to write the converted network state (needed by 'update')."
    )
    convert.add_argument(
        "--network-out", help="Path to write the pandapower network with limits applied."
    )
    convert.add_argument(
        "--limit-set", help="Limit set applied to the pandapower network (default: lowest)."
    )
    convert.set_defaults(func=cmd_convert)

    update = sub.add_parser("update", help="Re-derive limit values from a refreshed source.")
    update.add_argument("--state", "-s", required=True, help="Network state JSON from 'convert'.")
    update.add_argument("--refreshed", "-r", required=True, help="Refreshed limit values CSV.")
    update.add_argument("--output", "-o", help="Path to write the updated state (default: in place).")
    update.set_defaults(func=cmd_update)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
