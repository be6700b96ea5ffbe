from __future__ import annotations

import re
from typing import List, Optional
from uuid import uuid4

from vodiff.logger import logger
from .models import Patch

DEFAULT_TAG = "DIFF"

SEARCH_OPEN, SEARCH_CLOSE = "<SEARCH>", "</SEARCH>"
REPLACE_OPEN, REPLACE_CLOSE = "<REPLACE>", "</REPLACE>"
DESCRIPTION_OPEN, DESCRIPTION_CLOSE = "<DESCRIPTION>", "</DESCRIPTION>"
CODE_FILE_OPEN, CODE_FILE_CLOSE = "<code_file>", "</code_file>"

ID_ATTR_RE = re.compile(r'\bid="([^"]+)"')


def normalize_line_endings(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _extract_content(text: str, start_tag: str, end_tag: str) -> Optional[str]:
    start = text.find(start_tag)
    if start < 0:
        return None
    body_start = start + len(start_tag)
    end = text.find(end_tag, body_start)
    if end < 0:
        return None
    return text[body_start:end]


def _split_blocks(text: str, tag: str) -> List[str]:
    # Everything before the first opening tag is prose, not a block.
    opener = re.compile(r"<" + re.escape(tag) + r"(?=[\s>])")
    return opener.split(text)[1:]


def _parse_block(block: str, tag: str) -> Optional[Patch]:
    close = block.find(f"</{tag}>")
    if close < 0:
        return None
    inner = block[:close]

    bracket = inner.find(">")
    if bracket < 0:
        return None
    attributes = inner[:bracket]
    body = inner[bracket + 1 :]

    search = _extract_content(body, SEARCH_OPEN, SEARCH_CLOSE)
    replace = _extract_content(body, REPLACE_OPEN, REPLACE_CLOSE)
    if search is None or replace is None:
        return None

    m = ID_ATTR_RE.search(attributes)
    return Patch(
        search=search,
        replace=replace,
        external_id=m.group(1) if m else None,
        note=_extract_content(body, DESCRIPTION_OPEN, DESCRIPTION_CLOSE),
    )


def parse_xml_patches(text: str, *, tag: str = DEFAULT_TAG) -> List[Patch]:
    """
    Parse XML-ish search/replace blocks in document order:

    <DIFF id="optional">
    <SEARCH>current text</SEARCH>
    <REPLACE>new text</REPLACE>
    <DESCRIPTION>optional note</DESCRIPTION>
    </DIFF>

    Blocks without a closing tag or without SEARCH/REPLACE sections are
    skipped. Never raises for malformed input.
    """
    patches: List[Patch] = []
    for idx, block in enumerate(_split_blocks(normalize_line_endings(text), tag)):
        patch = _parse_block(block, tag)
        if patch is None:
            logger.debug("Skipping malformed patch block", index=idx, tag=tag)
            continue
        patches.append(patch)
    return patches


def extract_xml_blocks(text: str, *, tag: str = DEFAULT_TAG) -> str:
    pattern = re.compile(
        r"<" + re.escape(tag) + r"(?:\s[^>]*)?>[\s\S]*?</" + re.escape(tag) + r">"
    )
    return "\n\n".join(m.group(0) for m in pattern.finditer(text))


def parse_code_file(text: str) -> Optional[str]:
    content = _extract_content(
        normalize_line_endings(text), CODE_FILE_OPEN, CODE_FILE_CLOSE
    )
    if content is None:
        return None
    # The tags sit on their own lines around the payload.
    if content.startswith("\n"):
        content = content[1:]
    if content.endswith("\n"):
        content = content[:-1]
    return content


def build_code_file_xml(original: str, patch_text: str) -> str:
    return f"{CODE_FILE_OPEN}\n{original}\n{CODE_FILE_CLOSE}\n\n{patch_text}"


def build_xml_patch(
    search: str,
    replace: str,
    *,
    external_id: Optional[str] = None,
    note: Optional[str] = None,
    tag: str = DEFAULT_TAG,
) -> str:
    ident = external_id or str(uuid4())
    parts = [
        f'<{tag} id="{ident}">',
        f"{SEARCH_OPEN}{search}{SEARCH_CLOSE}",
        f"{REPLACE_OPEN}{replace}{REPLACE_CLOSE}",
    ]
    if note is not None:
        parts.append(f"{DESCRIPTION_OPEN}{note}{DESCRIPTION_CLOSE}")
    parts.append(f"</{tag}>")
    return "\n".join(parts)


def build_full_replace_xml(original: str, replacement: str) -> str:
    """Patch that rewrites a whole existing file."""
    return build_xml_patch(original, replacement)


def build_new_file_xml(content: str) -> str:
    """Patch for a file that does not exist yet: empty SEARCH, additions only."""
    return build_xml_patch("", content)
