"""Template generation.

- CellTemplate: facade owning bindings, registries and settings
- CellRewriteOrchestrator: collection metadata, pre-pass and post-pass
- ExpansionEngine: protocol of the range-expansion engine run in between
- diagnostics: expression statistics for troubleshooting
"""

from __future__ import annotations

from celltemplate.template.diagnostics import (
    SheetDiagnostics,
    diagnose_workbook,
    log_diagnostics,
)
from celltemplate.template.engine import (
    ExpansionEngine,
    ExpansionResult,
    StandardSubstitutionEngine,
)
from celltemplate.template.orchestrator import CellRewriteOrchestrator
from celltemplate.template.template import CellTemplate

__all__ = [
    "CellTemplate",
    "CellRewriteOrchestrator",
    "ExpansionEngine",
    "ExpansionResult",
    "StandardSubstitutionEngine",
    "SheetDiagnostics",
    "diagnose_workbook",
    "log_diagnostics",
]
