from .models import ChangeKind, CharRange, DiffGroup, LineChange, LineRange
from .unified import Hunk, line_offsets, parse_hunk_header, parse_unified_diff, split_lines
from .grouping import DEFAULT_MIN_SEPARATION, changed_sections, continuous_changes, slice_lines
from .executor import (
    BuiltinDiffExecutor,
    DiffExecutor,
    GitDiffExecutor,
    GitMergeExecutor,
    ThreeWayMerge,
)
from .merge3 import BuiltinMerge, MergeOutcome, merge3_text

__all__ = [
    "BuiltinDiffExecutor",
    "BuiltinMerge",
    "ChangeKind",
    "CharRange",
    "DEFAULT_MIN_SEPARATION",
    "DiffExecutor",
    "DiffGroup",
    "GitDiffExecutor",
    "GitMergeExecutor",
    "Hunk",
    "LineChange",
    "LineRange",
    "MergeOutcome",
    "ThreeWayMerge",
    "changed_sections",
    "continuous_changes",
    "slice_lines",
    "line_offsets",
    "merge3_text",
    "parse_hunk_header",
    "parse_unified_diff",
    "split_lines",
]
