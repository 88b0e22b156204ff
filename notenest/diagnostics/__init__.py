from .integrity import (
    TreeIntegrityChecker,
    TreeIntegrityReport,
    TreeIssue,
    TreeIssueType,
    find_cycles,
)
from .repair import TreeRepairTool
from .startup import StartupDiagnostics

__all__ = [
    "StartupDiagnostics",
    "TreeIntegrityChecker",
    "TreeIntegrityReport",
    "TreeIssue",
    "TreeIssueType",
    "TreeRepairTool",
    "find_cycles",
]
