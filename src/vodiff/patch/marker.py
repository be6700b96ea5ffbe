from __future__ import annotations

import re
from typing import List, Optional, Tuple

from vodiff.errors import NotAPatchError
from .models import Patch
from .xml import normalize_line_endings


MARKER_SYSTEM_INSTRUCTION = r"""# Patch format: SEARCH/REPLACE blocks

Emit one block per change:

<<<<<<< SEARCH
<contiguous text that EXACTLY matches the current file>
=======
<replacement text>
>>>>>>> REPLACE

## Rules
1. SEARCH must match character-for-character (whitespace, quotes, comments).
2. Include enough lines in SEARCH to identify the change uniquely; very short
   SEARCH text (under 5 characters) replaces the LAST occurrence.
3. Blocks are applied in order; each block sees the result of the previous one.
4. An empty SEARCH prepends REPLACE to the file.
5. Keep blocks small and non-overlapping.
"""

SEARCH_MARK = "<<<<<<< SEARCH"
SPLIT_MARK = "======="
REPLACE_MARK = ">>>>>>> REPLACE"

MARKER_BLOCK_RE = re.compile(
    re.escape(SEARCH_MARK) + r"\n?(?P<body>[\s\S]*?)" + re.escape(REPLACE_MARK)
)
# Separator on a line of its own; a bare one is only a fallback.
SPLIT_LINE_RE = re.compile(r"^" + re.escape(SPLIT_MARK) + r"$\n?", re.MULTILINE)
SPLIT_BARE_RE = re.compile(re.escape(SPLIT_MARK) + r"\n?")


def is_marker_patch(text: str) -> bool:
    return SEARCH_MARK in text and REPLACE_MARK in text


def _split_body(body: str) -> Optional[Tuple[str, str]]:
    m = SPLIT_LINE_RE.search(body) or SPLIT_BARE_RE.search(body)
    if m is None:
        return None
    return body[: m.start()], body[m.end() :]


def _balance_trailing_newlines(search: str, replace: str) -> tuple[str, str]:
    # Exactly one side ending in a newline would leave a stray blank line
    # after apply; drop it from that side.
    if search.endswith("\n") and not replace.endswith("\n"):
        return search[:-1], replace
    if replace.endswith("\n") and not search.endswith("\n"):
        return search, replace[:-1]
    return search, replace


def parse_marker_patches(text: str) -> List[Patch]:
    """
    Parse LLM-style marker blocks in document order.

    Raises NotAPatchError when no complete block is present, so callers can
    tell "not this format" apart from "no changes".
    """
    normalized = normalize_line_endings(text)
    patches: List[Patch] = []
    for m in MARKER_BLOCK_RE.finditer(normalized):
        parts = _split_body(m.group("body"))
        if parts is None:
            continue
        search, replace = _balance_trailing_newlines(*parts)
        patches.append(Patch(search=search, replace=replace))
    if not patches:
        raise NotAPatchError(text)
    return patches
