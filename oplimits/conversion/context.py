"""
Conversion Context
==================

Shared state of one conversion run: network directory, configuration,
provenance store and the diagnostic report.

Diagnostics are structured events rather than log lines. Each one is
still mirrored to the module logger so a run can be followed with
standard logging.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple, Union

import pandas as pd

from ..config import ConversionConfig
from ..provenance.codec import ProvenanceCodec, SlotKey
from ..provenance.store import ProvenanceStore
from ..topology.network import NetworkDirectory

logger = logging.getLogger(__name__)


class DiagnosticKind(Enum):
    """Kinds of diagnostics emitted during conversion."""
    IGNORED = "ignored"            # missing or non-positive value
    PENDING = "pending"            # record could not be classified
    NOT_ASSIGNED = "not_assigned"  # no valid attachment for the record
    FIXED = "fixed"                # conflict resolved by keeping the lowest value
    INVALID = "invalid"            # bad direction or inconsistent voltage bound
    MISSING = "missing"            # nothing resolvable; the record's unit is invalid

    @property
    def log_level(self) -> int:
        return _LOG_LEVELS[self]


_LOG_LEVELS = {
    DiagnosticKind.IGNORED: logging.DEBUG,
    DiagnosticKind.PENDING: logging.INFO,
    DiagnosticKind.FIXED: logging.INFO,
    DiagnosticKind.NOT_ASSIGNED: logging.WARNING,
    DiagnosticKind.INVALID: logging.WARNING,
    DiagnosticKind.MISSING: logging.ERROR,
}


@dataclass(frozen=True)
class Diagnostic:
    """
    One structured diagnostic.

    Attributes:
        kind: Diagnostic kind
        subject: What the diagnostic is about ("Permanent Limit", ...)
        message: Human-readable explanation
        record_id: Source id of the record involved, if any
    """
    kind: DiagnosticKind
    subject: str
    message: str
    record_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "subject": self.subject,
            "message": self.message,
            "record_id": self.record_id,
        }


@dataclass
class DiagnosticReport:
    """Diagnostics collected during a run, in emission order."""
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def record(
        self,
        kind: DiagnosticKind,
        subject: str,
        message: Union[str, Callable[[], str]],
        record_id: Optional[str] = None
    ) -> Diagnostic:
        if callable(message):
            message = message()
        diagnostic = Diagnostic(kind, subject, message, record_id)
        self.diagnostics.append(diagnostic)
        logger.log(kind.log_level, "[%s] %s: %s", kind.value, subject, message)
        return diagnostic

    def of_kind(self, kind: DiagnosticKind) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.kind is kind]

    def count(self, kind: Optional[DiagnosticKind] = None) -> int:
        if kind is None:
            return len(self.diagnostics)
        return len(self.of_kind(kind))

    def summary(self) -> Dict[str, int]:
        """Count of diagnostics per kind (every kind listed)."""
        return {kind.value: self.count(kind) for kind in DiagnosticKind}

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [d.to_dict() for d in self.diagnostics],
            columns=["kind", "subject", "message", "record_id"],
        )

    def to_dict(self) -> dict:
        return {
            "summary": self.summary(),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


@dataclass
class ConversionContext:
    """
    Everything a conversion unit needs besides its record.

    Slot state (provenance entries, reported conflicts) is keyed by
    equipment id. A context is not safe for concurrent use: to convert
    independent equipment in parallel, give each partition of records its
    own LimitsConverter over the shared network, so that two workers never
    touch the same context.

    Attributes:
        network: Directory used to resolve terminals, equipment and voltage levels
        config: Conversion settings
        report: Diagnostic sink
        provenance: Provenance entries of this run
        reported_conflicts: Per equipment id, the (slot, rejected or replaced value)
            pairs already reported as fixed
    """
    network: NetworkDirectory
    config: ConversionConfig = field(default_factory=ConversionConfig)
    report: DiagnosticReport = field(default_factory=DiagnosticReport)
    provenance: Optional[ProvenanceStore] = None
    reported_conflicts: Dict[str, Set[Tuple[SlotKey, float]]] = field(default_factory=dict)

    def __post_init__(self):
        if self.provenance is None:
            self.provenance = ProvenanceStore(ProvenanceCodec(self.config.namespace))

    def ignored(self, subject: str, message, record_id: Optional[str] = None) -> Diagnostic:
        return self.report.record(DiagnosticKind.IGNORED, subject, message, record_id)

    def pending(self, subject: str, message, record_id: Optional[str] = None) -> Diagnostic:
        return self.report.record(DiagnosticKind.PENDING, subject, message, record_id)

    def not_assigned(self, subject: str, message, record_id: Optional[str] = None) -> Diagnostic:
        return self.report.record(DiagnosticKind.NOT_ASSIGNED, subject, message, record_id)

    def fixed(self, subject: str, message, record_id: Optional[str] = None) -> Diagnostic:
        return self.report.record(DiagnosticKind.FIXED, subject, message, record_id)

    def invalid(self, subject: str, message, record_id: Optional[str] = None) -> Diagnostic:
        return self.report.record(DiagnosticKind.INVALID, subject, message, record_id)

    def missing(self, subject: str, message, record_id: Optional[str] = None) -> Diagnostic:
        return self.report.record(DiagnosticKind.MISSING, subject, message, record_id)
