"""
Operational Limit Conversion
============================

Turns limit records into resolved limits on the network.

Each record is processed to completion before the next one:
    screen value -> classify -> resolve attachment -> merge -> provenance

OperationalLimitConversion is the per-record unit. Its constructor
resolves the attachment and raises AttachmentError when nothing the
record points to exists in the network. LimitsConverter drives a record
stream through units and isolates such failures to their record.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from ..config import ConversionConfig
from ..errors import AttachmentError
from ..limits.aggregator import LoadingTarget, SlotAggregator
from ..limits.voltage import VoltageBoundMerger
from ..records.classifier import classify, ignored_reason
from ..records.model import LimitCategory, LimitRecord, LimitSubclass
from ..topology.network import Equipment, NetworkDirectory, VoltageLevel
from ..topology.sides import Side, fanout
from .context import ConversionContext, DiagnosticReport

logger = logging.getLogger(__name__)

OPERATIONAL_LIMIT = "Operational limit"


class OperationalLimitConversion:
    """
    Conversion unit of one limit record.

    Args:
        record: Record to convert
        context: Conversion context
        aggregator: Slot aggregator shared by the run
        voltage_merger: Voltage bound merger shared by the run

    Raises:
        AttachmentError: neither terminal, equipment nor container resolves
    """

    def __init__(
        self,
        record: LimitRecord,
        context: ConversionContext,
        aggregator: Optional[SlotAggregator] = None,
        voltage_merger: Optional[VoltageBoundMerger] = None
    ):
        self.record = record
        self.context = context
        self.aggregator = aggregator or SlotAggregator(context)
        self.voltage_merger = voltage_merger or VoltageBoundMerger(context)
        self.classification = classify(record)
        self.attachments: List[Tuple[Equipment, Side]] = []
        self.voltage_level: Optional[VoltageLevel] = None

        if self.classification.conflict:
            context.fixed(OPERATIONAL_LIMIT, self.classification.conflict, record.source_id)

        category = self.classification.category
        if category.is_loading:
            resolved = self._resolve_loading()
        elif category.is_voltage:
            resolved = self._resolve_voltage()
        else:
            self._unclassified()
            resolved = True
        if not resolved:
            raise AttachmentError(record.source_id, record.terminal_id, record.equipment_id)

    @property
    def network(self) -> NetworkDirectory:
        return self.context.network

    @staticmethod
    def screen(record: LimitRecord, context: ConversionContext) -> bool:
        """
        Check the record value; missing and non-positive values are ignored.

        Returns:
            True if the record should be converted
        """
        reason = ignored_reason(record.value)
        if reason is None:
            return True
        context.ignored(OPERATIONAL_LIMIT, reason, record.source_id)
        return False

    def is_assigned(self) -> bool:
        return bool(self.attachments) or self.voltage_level is not None

    # resolution

    def _resolve_loading(self) -> bool:
        terminal = self.network.resolve_terminal(self.record.terminal_id)
        equipment = self.network.equipment_of(terminal) if terminal is not None else None
        if equipment is not None:
            side = terminal.side
        else:
            equipment = self.network.resolve_equipment(self.record.equipment_id)
            side = Side.WHOLE
        if equipment is None:
            return False

        if self.record.limit_set_id is None:
            self._not_assigned(equipment, "no operational limit set")
            return True
        result = fanout(equipment.kind, side)
        if not result.assigned:
            self._not_assigned(equipment, result.reason)
            return True
        self.attachments = [(equipment, s) for s in result.sides]
        return True

    def _resolve_voltage(self) -> bool:
        terminal = self.network.resolve_terminal(self.record.terminal_id)
        if terminal is not None:
            equipment = self.network.equipment_of(terminal)
            if equipment is not None and not equipment.kind.shape.carries_voltage:
                self._not_assigned(
                    equipment, f"Voltage limits cannot be attached to {equipment.kind.value}"
                )
                return True
            self.voltage_level = self.network.voltage_level_of(terminal)
        elif self.record.equipment_id is not None:
            equipment = self.network.resolve_equipment(self.record.equipment_id)
            if equipment is None:
                # Voltage limits may point at a bus-bar section; use its container
                container_id = self.record.equipment_container_id or self.record.equipment_id
                self.voltage_level = self.network.get_voltage_level(container_id)
            elif not equipment.kind.shape.carries_voltage:
                self._not_assigned(
                    equipment, f"Voltage limits cannot be attached to {equipment.kind.value}"
                )
                return True
            else:
                self.voltage_level = self.network.voltage_level_of(equipment)
                if self.voltage_level is None:
                    self._not_assigned(equipment, "equipment has no single connection point")
                    return True
        return self.voltage_level is not None

    def _unclassified(self) -> None:
        fields = ", ".join(f"{k}={v}" for k, v in self.classification.failure_fields.items())
        if self.classification.subclass is LimitSubclass.VOLTAGE:
            self.context.not_assigned(
                OPERATIONAL_LIMIT,
                lambda: f"Not assigned: voltage limit {self.record.source_id} is neither high "
                        f"nor low ({fields})",
                self.record.source_id,
            )
        else:
            self.context.pending(
                OPERATIONAL_LIMIT,
                lambda: f"Unclassified limit {self.record.source_id} ({fields})",
                self.record.source_id,
            )

    def _not_assigned(self, equipment: Equipment, reason: Optional[str]) -> None:
        r = self.record
        self.context.not_assigned(
            OPERATIONAL_LIMIT,
            lambda: f"Not assigned for {equipment.kind.value} {equipment.id}. "
                    f"Limit id, type, typeName, subClass, terminal : "
                    f"{r.source_id}, {r.limit_type}, {r.type_name}, {r.subclass}, {r.terminal_id}"
                    + (f". {reason}" if reason else ""),
            r.source_id,
        )

    # conversion

    def convert(self) -> int:
        """
        Merge the record into its targets.

        Returns:
            Number of slots (or voltage bounds) that took the record's value
        """
        category = self.classification.category
        value = self.record.value
        if category.is_voltage:
            if self.voltage_level is None:
                return 0
            return int(self.voltage_merger.merge(self.voltage_level, category, value, self.record))
        if not self.attachments:
            return 0
        if category is LimitCategory.LOADING_PERMANENT:
            return sum(
                self.aggregator.add_permanent(target, self.record, value)
                for target in self._targets()
            )
        if category is LimitCategory.LOADING_TEMPORARY:
            if not self.aggregator.accepts_direction(self.record):
                return 0
            return sum(
                self.aggregator.add_temporary(target, self.record, value)
                for target in self._targets()
            )
        return 0

    def _targets(self) -> List[LoadingTarget]:
        subclass = self.classification.subclass
        targets = []
        for equipment, side in self.attachments:
            group = equipment.get_limits_group(side, self.record.limit_set_id)
            if group is None:
                group = equipment.new_limits_group(
                    side, self.record.limit_set_id, self.record.set_name
                )
                if self.context.config.store_limit_set_identifiers:
                    store_limit_set_identifiers(
                        equipment, self.context.config, group.id, group.name
                    )
            targets.append(LoadingTarget(equipment, side, group, subclass))
        return targets


def store_limit_set_identifiers(equipment: Equipment, config: ConversionConfig,
                                limit_set_id: str, limit_set_name: str) -> None:
    """
    Record a limit set id/name pair in the element's identifiers property.

    The property holds a JSON object; pairs of other limit sets are kept.
    """
    key = config.limit_set_identifiers_key
    raw = equipment.get_property(key)
    identifiers = json.loads(raw) if raw else {}
    identifiers[limit_set_id] = limit_set_name
    equipment.set_property(key, json.dumps(identifiers, sort_keys=True))


@dataclass
class ConversionResult:
    """
    Outcome of converting a record stream.

    Attributes:
        report: Diagnostics of the run
        records: Records seen
        converted: Records whose value reached at least one slot or bound
        failed: Source ids of records whose unit could not be built
        provenance_entries: Provenance entries written to the network
    """
    report: DiagnosticReport
    records: int = 0
    converted: int = 0
    failed: List[str] = field(default_factory=list)
    provenance_entries: int = 0

    def to_dict(self) -> dict:
        return {
            "records": self.records,
            "converted": self.converted,
            "failed": list(self.failed),
            "provenance_entries": self.provenance_entries,
            **self.report.to_dict(),
        }


class LimitsConverter:
    """
    Convert limit record streams into a network.

    Args:
        network: Network directory receiving the limits
        config: Conversion settings
    """

    def __init__(self, network: NetworkDirectory, config: Optional[ConversionConfig] = None):
        self.context = ConversionContext(network=network, config=config or ConversionConfig())
        self.aggregator = SlotAggregator(self.context)
        self.voltage_merger = VoltageBoundMerger(self.context)

    @property
    def report(self) -> DiagnosticReport:
        return self.context.report

    def convert_record(self, record: LimitRecord) -> int:
        """
        Convert one record.

        Returns:
            Number of slots or bounds updated by the record

        Raises:
            AttachmentError: nothing the record points to exists
        """
        if not OperationalLimitConversion.screen(record, self.context):
            return 0
        unit = OperationalLimitConversion(
            record, self.context, self.aggregator, self.voltage_merger
        )
        return unit.convert()

    def convert_records(self, records: Iterable[LimitRecord]) -> ConversionResult:
        """
        Convert records in arrival order, then write provenance to the network.

        A record that cannot be attached anywhere is reported as missing
        and does not stop the stream.
        """
        result = ConversionResult(report=self.context.report)
        for record in records:
            result.records += 1
            try:
                updated = self.convert_record(record)
            except AttachmentError as e:
                self.context.missing(OPERATIONAL_LIMIT, str(e), record.source_id)
                result.failed.append(record.source_id)
                continue
            if updated:
                result.converted += 1
        result.provenance_entries = self.context.provenance.flush(self.context.network)
        logger.info("Converted %d of %d limit records (%d failed)",
                    result.converted, result.records, len(result.failed))
        return result
