from vodiff.errors import (
    DiffGenerationError,
    DiffToolError,
    DiffToolMissingError,
    NotAPatchError,
    VodiffError,
)
from vodiff.patch import (
    Patch,
    PatchDiagnostic,
    apply_patches,
    apply_patches_with_diagnostics,
    parse_marker_patches,
    parse_patches,
    parse_xml_patches,
)
from vodiff.diff import (
    BuiltinDiffExecutor,
    BuiltinMerge,
    ChangeKind,
    DiffGroup,
    GitDiffExecutor,
    GitMergeExecutor,
    LineChange,
    LineRange,
    changed_sections,
    continuous_changes,
    parse_unified_diff,
)
from vodiff.drift import has_conflict_markers, has_drifted, rebase
from vodiff.state import DiffResult, DiffState, DiffStatus
from vodiff.session import DiffSession

__all__ = [
    "BuiltinDiffExecutor",
    "BuiltinMerge",
    "ChangeKind",
    "DiffGenerationError",
    "DiffGroup",
    "DiffResult",
    "DiffSession",
    "DiffState",
    "DiffStatus",
    "DiffToolError",
    "DiffToolMissingError",
    "GitDiffExecutor",
    "GitMergeExecutor",
    "LineChange",
    "LineRange",
    "NotAPatchError",
    "Patch",
    "PatchDiagnostic",
    "VodiffError",
    "apply_patches",
    "apply_patches_with_diagnostics",
    "changed_sections",
    "continuous_changes",
    "has_conflict_markers",
    "has_drifted",
    "parse_marker_patches",
    "parse_patches",
    "parse_unified_diff",
    "rebase",
]
