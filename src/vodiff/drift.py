from __future__ import annotations

import inspect
import re
from pathlib import Path
from typing import Awaitable, Callable, Optional, Protocol, Union

from vodiff.diff.executor import ThreeWayMerge
from vodiff.logger import logger

MergeFn = Callable[[str, str, str], Union[str, Awaitable[str]]]

_CONFLICT_RE = re.compile(r"^(<<<<<<<|=======|>>>>>>>)( |$)", re.MULTILINE)


class ContentReader(Protocol):
    def __call__(self, file_path: str) -> Optional[str]: ...


class FileSystemContentReader:
    """Reads the current file content; None when the file cannot be read."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def __call__(self, file_path: str) -> Optional[str]:
        if not file_path:
            return None
        try:
            return Path(file_path).read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("Cannot read file for drift check", file_path=file_path, error=str(e))
            return None


def has_drifted(baseline: str, current: Optional[str]) -> bool:
    # Unreadable content gives nothing to reconcile against.
    if current is None:
        return False
    return current != baseline


def has_conflict_markers(text: str) -> bool:
    return _CONFLICT_RE.search(text) is not None


async def rebase(
    baseline: str,
    current: str,
    target: str,
    merge: Union[ThreeWayMerge, MergeFn],
) -> str:
    """
    Three-way merge target onto current using baseline as the ancestor.
    The merged text is returned as produced, conflict markers included.
    """
    fn = merge.merge if isinstance(merge, ThreeWayMerge) else merge
    merged = fn(baseline, current, target)
    if inspect.isawaitable(merged):
        merged = await merged
    if has_conflict_markers(merged):
        logger.warning("Rebase produced conflict markers")
    return merged
