"""
Conversion Layer
================

Record-by-record conversion into the network, diagnostics, and the
scenario update pass driven by recorded provenance.
"""

from .context import ConversionContext, Diagnostic, DiagnosticKind, DiagnosticReport
from .converter import ConversionResult, LimitsConverter, OperationalLimitConversion
from .update import FrameLimitSource, LimitSource, SlotUpdate, UpdateOrigin, UpdateReconciler

__all__ = [
    "ConversionContext",
    "Diagnostic",
    "DiagnosticKind",
    "DiagnosticReport",
    "ConversionResult",
    "LimitsConverter",
    "OperationalLimitConversion",
    "FrameLimitSource",
    "LimitSource",
    "SlotUpdate",
    "UpdateOrigin",
    "UpdateReconciler",
]
