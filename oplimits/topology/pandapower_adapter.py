"""
pandapower Adapter
==================

Builds a NetworkModel from a pandapower net and writes resolved limits
back into it.

MAPPING:
    net.bus                       -> VoltageLevel
    net.line                      -> Line (from_bus = side 1, to_bus = side 2)
    net.trafo                     -> TwoWindingsTransformer (hv = 1, lv = 2)
    net.trafo3w                   -> ThreeWindingsTransformer (hv = 1, mv = 2, lv = 3)
    net.switch                    -> Switch
    net.load/sgen/gen/ext_grid    -> Injection

Element ids are the element names when they are set, unique within
their table and not already used by an earlier equipment table;
"<table>_<index>" otherwise.

WRITE-BACK:
- line max_i_ka from the lowest permanent current limit (A -> kA)
- trafo max_loading_percent from the lowest permanent apparent power limit
- bus max_vm_pu / min_vm_pu from the resolved voltage bounds
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Set

import numpy as np
import pandas as pd
import pandapower as pp

from ..records.model import LimitSubclass
from .network import Equipment, NetworkModel, VoltageLevel
from .sides import EquipmentKind

logger = logging.getLogger(__name__)

INJECTION_TABLES = ("load", "sgen", "gen", "ext_grid")
EQUIPMENT_TABLES = ("line", "trafo", "trafo3w", "switch") + INJECTION_TABLES


def element_ids(
    table: pd.DataFrame,
    prefix: str,
    taken: Optional[Set[str]] = None
) -> Dict[int, str]:
    """
    Map table indices to element ids.

    Args:
        table: pandapower element table
        prefix: Table name used for generated ids
        taken: Ids already used by other tables; a name found here is not used

    Returns:
        Dict of {index: id}
    """
    taken = taken if taken is not None else set()
    if "name" in table.columns:
        names = table["name"]
        usable = names.notna() & (names.astype(str) != "") & ~names.duplicated(keep=False)
    else:
        names = pd.Series(index=table.index, dtype=object)
        usable = pd.Series(False, index=table.index)
    return {
        int(idx): (
            str(names.at[idx])
            if usable.at[idx] and str(names.at[idx]) not in taken
            else f"{prefix}_{idx}"
        )
        for idx in table.index
    }


def equipment_ids(net: pp.pandapowerNet) -> Dict[str, Dict[int, str]]:
    """
    Element ids of every equipment table, unique across tables.

    Tables are named in EQUIPMENT_TABLES order; a name already taken by an
    earlier table falls back to "<table>_<index>".

    Returns:
        Dict of {table name: {index: id}}
    """
    taken: Set[str] = set()
    ids = {}
    for table_name in EQUIPMENT_TABLES:
        table_ids = element_ids(net[table_name], table_name, taken)
        taken.update(table_ids.values())
        ids[table_name] = table_ids
    return ids


def network_from_pandapower(net: pp.pandapowerNet) -> NetworkModel:
    """
    Create a NetworkModel mirroring a pandapower net.

    Args:
        net: pandapower network

    Returns:
        NetworkModel with one voltage level per bus and one equipment
        per line, transformer, switch and injection
    """
    model = NetworkModel(name=getattr(net, "name", "") or "network")

    bus_ids = element_ids(net.bus, "bus")
    for idx, row in net.bus.iterrows():
        model.add_voltage_level(VoltageLevel(
            id=bus_ids[idx],
            nominal_kv=float(row["vn_kv"]),
            name=row["name"] if isinstance(row["name"], str) else None,
        ))

    def vl(bus) -> str:
        return bus_ids[int(bus)]

    table_ids = equipment_ids(net)

    ids = table_ids["line"]
    for idx, row in net.line.iterrows():
        model.add_equipment(ids[idx], EquipmentKind.LINE, [vl(row["from_bus"]), vl(row["to_bus"])])

    ids = table_ids["trafo"]
    for idx, row in net.trafo.iterrows():
        model.add_equipment(
            ids[idx], EquipmentKind.TWO_WINDINGS_TRANSFORMER, [vl(row["hv_bus"]), vl(row["lv_bus"])]
        )

    ids = table_ids["trafo3w"]
    for idx, row in net.trafo3w.iterrows():
        model.add_equipment(
            ids[idx],
            EquipmentKind.THREE_WINDINGS_TRANSFORMER,
            [vl(row["hv_bus"]), vl(row["mv_bus"]), vl(row["lv_bus"])],
        )

    ids = table_ids["switch"]
    for idx, row in net.switch.iterrows():
        # Bus-element switches sit at their bus on both ends
        other = row["element"] if row["et"] == "b" else row["bus"]
        model.add_equipment(ids[idx], EquipmentKind.SWITCH, [vl(row["bus"]), vl(other)])

    for table_name in INJECTION_TABLES:
        table = net[table_name]
        ids = table_ids[table_name]
        for idx, row in table.iterrows():
            model.add_equipment(ids[idx], EquipmentKind.INJECTION, [vl(row["bus"])])

    logger.debug("Built network %s from pandapower: %s", model.name, model.get_summary())
    return model


def lowest_permanent_limit(
    equipment: Equipment,
    subclass: LimitSubclass,
    limit_set_id: Optional[str] = None
) -> float:
    """
    Lowest permanent limit of a subclass over all sides of an equipment.

    Args:
        equipment: Equipment carrying limits groups
        subclass: Loading subclass
        limit_set_id: Restrict to one limit set (default: all sets)

    Returns:
        Lowest permanent limit, NaN if none is set
    """
    values = []
    for side in equipment.sides_with_groups():
        for group in equipment.limits_groups(side):
            if limit_set_id is not None and group.id != limit_set_id:
                continue
            limits = group.get_loading_limits(subclass)
            if limits is not None and limits.has_permanent_limit():
                values.append(limits.permanent_limit)
    return min(values) if values else np.nan


def apply_to_pandapower(
    model: NetworkModel,
    net: pp.pandapowerNet,
    limit_set_id: Optional[str] = None
) -> Dict[str, int]:
    """
    Write resolved limits into the pandapower net.

    Args:
        model: Network built with network_from_pandapower and converted
        net: The same pandapower network
        limit_set_id: Limit set to use (default: lowest over all sets)

    Returns:
        Dict with the number of updated elements per table
    """
    counts = {"line": 0, "trafo": 0, "bus": 0}
    table_ids = equipment_ids(net)

    for idx, eq_id in table_ids["line"].items():
        equipment = model.resolve_equipment(eq_id)
        if equipment is None:
            continue
        value = lowest_permanent_limit(equipment, LimitSubclass.CURRENT, limit_set_id)
        if not np.isnan(value):
            net.line.at[idx, "max_i_ka"] = value / 1000.0
            counts["line"] += 1

    for idx, eq_id in table_ids["trafo"].items():
        equipment = model.resolve_equipment(eq_id)
        if equipment is None:
            continue
        value = lowest_permanent_limit(equipment, LimitSubclass.APPARENT_POWER, limit_set_id)
        if not np.isnan(value):
            net.trafo.loc[idx, "max_loading_percent"] = 100.0 * value / float(net.trafo.at[idx, "sn_mva"])
            counts["trafo"] += 1

    for idx, vl_id in element_ids(net.bus, "bus").items():
        voltage_level = model.get_voltage_level(vl_id)
        if voltage_level is None:
            continue
        vn_kv = float(net.bus.at[idx, "vn_kv"])
        touched = False
        if not np.isnan(voltage_level.high_voltage_limit):
            net.bus.loc[idx, "max_vm_pu"] = voltage_level.high_voltage_limit / vn_kv
            touched = True
        if not np.isnan(voltage_level.low_voltage_limit):
            net.bus.loc[idx, "min_vm_pu"] = voltage_level.low_voltage_limit / vn_kv
            touched = True
        counts["bus"] += int(touched)

    logger.info("Applied limits to pandapower net: %s", counts)
    return counts
