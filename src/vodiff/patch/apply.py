from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from vodiff.logger import logger
from .models import DiagnosticKind, Patch, PatchDiagnostic
from .xml import parse_code_file, parse_xml_patches


def _splice(text: str, start: int, length: int, replacement: str) -> str:
    return text[:start] + replacement + text[start + length :]


class _Applier:
    def __init__(self) -> None:
        self.diagnostics: List[PatchDiagnostic] = []

    def add(
        self,
        patch: Patch,
        kind: DiagnosticKind,
        msg: str,
        *,
        occurrences: Optional[int] = None,
    ) -> None:
        self.diagnostics.append(
            PatchDiagnostic(
                kind=kind,
                msg=msg,
                patch_id=patch.key,
                note=patch.note,
                occurrences=occurrences,
            )
        )
        log = logger.info if kind == DiagnosticKind.TRIMMED_MATCH else logger.warning
        log(msg, patch_id=patch.key, note=patch.note, occurrences=occurrences)

    def _check_unique(self, patch: Patch, pattern: str, text: str, label: str) -> None:
        occurrences = text.count(pattern)
        if occurrences > 1:
            self.add(
                patch,
                DiagnosticKind.NOT_UNIQUE,
                f"{label} is not unique",
                occurrences=occurrences,
            )

    def apply_one(self, patch: Patch, text: str) -> Tuple[str, bool]:
        if patch.search == "":
            if text == "":
                return patch.replace, True
            return patch.replace + "\n" + text, True

        if patch.has_short_pattern:
            idx = text.rfind(patch.search)
            if idx >= 0:
                return _splice(text, idx, len(patch.search), patch.replace), True

        idx = text.find(patch.search)
        if idx >= 0:
            self._check_unique(patch, patch.search, text, "Search pattern")
            return _splice(text, idx, len(patch.search), patch.replace), True

        trimmed = patch.search.strip()
        idx = text.find(trimmed) if trimmed else -1
        if idx >= 0:
            self.add(
                patch,
                DiagnosticKind.TRIMMED_MATCH,
                "Found pattern after trimming whitespace",
            )
            self._check_unique(patch, trimmed, text, "Trimmed search pattern")
            return _splice(text, idx, len(trimmed), patch.replace), True

        self.add(patch, DiagnosticKind.NOT_FOUND, "Search pattern not found")
        return text, False


def apply_patches_with_diagnostics(
    patches: Iterable[Patch], text: str
) -> Tuple[str, List[PatchDiagnostic]]:
    """
    Apply patches sequentially; each one sees the output of the previous.

    Match order per patch: last occurrence for short patterns, first exact
    occurrence, first occurrence of the whitespace-trimmed pattern. A patch
    that matches nothing leaves the text untouched and yields a diagnostic.
    """
    applier = _Applier()
    result = text
    for patch in patches:
        updated, applied = applier.apply_one(patch, result)
        if applied and updated == result:
            applier.add(patch, DiagnosticKind.NO_CHANGE, "Patch produced no change")
        result = updated
    return result, applier.diagnostics


def apply_patches(patches: Iterable[Patch], text: str) -> str:
    result, _ = apply_patches_with_diagnostics(patches, text)
    return result


def apply_combined_xml(text: str) -> Optional[str]:
    """Apply the XML blocks found in text to its embedded <code_file> payload."""
    code_file = parse_code_file(text)
    if code_file is None:
        logger.error("Could not extract code file")
        return None
    patches = parse_xml_patches(text)
    if not patches:
        logger.info("No patches found to apply")
        return code_file
    return apply_patches(patches, code_file)
