from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from .models import DiagnosticKind, Patch, PatchDiagnostic
from .marker import MARKER_SYSTEM_INSTRUCTION, is_marker_patch, parse_marker_patches
from .xml import (
    build_full_replace_xml,
    build_new_file_xml,
    build_xml_patch,
    extract_xml_blocks,
    parse_code_file,
    parse_xml_patches,
)
from .apply import apply_combined_xml, apply_patches, apply_patches_with_diagnostics
from .edits import FileEdit, patches_from_edit


XML_SYSTEM_INSTRUCTION = r"""# Patch format: XML DIFF blocks

Emit one block per change:

<DIFF id="unique-id">
<SEARCH>text that EXACTLY matches the current file</SEARCH>
<REPLACE>replacement text</REPLACE>
<DESCRIPTION>optional one-line summary</DESCRIPTION>
</DIFF>

Blocks are applied in order. An empty SEARCH prepends REPLACE to the file.
"""

# Internal registry of supported patch formats
_REGISTRY: Dict[str, Dict[str, object]] = {
    "xml": {
        "handler": parse_xml_patches,
        "system_prompt": XML_SYSTEM_INSTRUCTION,
    },
    "marker": {
        "handler": parse_marker_patches,
        "system_prompt": MARKER_SYSTEM_INSTRUCTION,
    },
}


def get_supported_formats() -> Tuple[str, ...]:
    return tuple(_REGISTRY.keys())


def _entry(fmt: str) -> Dict[str, object]:
    entry = _REGISTRY.get((fmt or "").lower())
    if not entry:
        raise ValueError(f"Unsupported patch format: {fmt}")
    return entry


def get_system_instruction(fmt: str) -> str:
    return _entry(fmt)["system_prompt"]  # type: ignore[return-value]


def detect_format(text: str) -> str:
    return "marker" if is_marker_patch(text) else "xml"


def parse_patches(text: str, fmt: Optional[str] = None) -> List[Patch]:
    """
    Parse patch text in the given format, or detect it when fmt is None.
    Marker text without a complete block raises NotAPatchError.
    """
    if not fmt or fmt.lower() == "auto":
        fmt = detect_format(text)
    handler: Callable[[str], List[Patch]] = _entry(fmt)["handler"]  # type: ignore[assignment]
    return handler(text)


__all__ = [
    "DiagnosticKind",
    "FileEdit",
    "Patch",
    "PatchDiagnostic",
    "apply_combined_xml",
    "apply_patches",
    "apply_patches_with_diagnostics",
    "build_full_replace_xml",
    "build_new_file_xml",
    "build_xml_patch",
    "detect_format",
    "extract_xml_blocks",
    "get_supported_formats",
    "get_system_instruction",
    "is_marker_patch",
    "parse_code_file",
    "parse_marker_patches",
    "parse_patches",
    "parse_xml_patches",
    "patches_from_edit",
]
