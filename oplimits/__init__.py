"""
Operational Limits Engine
=========================

Converts grid-model operational limit records into resolved limits
attached to network elements:
- Voltage bounds per voltage level
- Permanent (PATL) and temporary (TATL) loading limits per equipment side
- Conservative merge of competing records (lowest value kept)
- Provenance of every accepted value for scenario updates

Architecture:
- records/: Limit record model and classifier
- topology/: Network model, equipment side rules, pandapower adapter
- limits/: Limit groups, merge rules, slot aggregation, voltage bounds
- provenance/: Canonical provenance keys and per-run store
- conversion/: Conversion units, diagnostics, update reconciler
"""

from .errors import OperationalLimitError, AttachmentError

__version__ = "1.0.0"

__all__ = ["OperationalLimitError", "AttachmentError", "__version__"]
