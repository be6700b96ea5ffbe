from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from .models import ChangeKind, CharRange, LineChange

HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$")
NO_NEWLINE_MARK = "\\ No newline at end of file"


@dataclass(frozen=True)
class Hunk:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str = ""

    @property
    def first_old_line(self) -> int:
        # A zero count means the hunk sits *after* the given line.
        return self.old_start + 1 if self.old_count == 0 else self.old_start

    @property
    def first_new_line(self) -> int:
        return self.new_start + 1 if self.new_count == 0 else self.new_start


def parse_hunk_header(line: str) -> Optional[Hunk]:
    m = HUNK_RE.match(line)
    if not m:
        return None
    return Hunk(
        old_start=int(m.group(1)),
        old_count=int(m.group(2) or "1"),
        new_start=int(m.group(3)),
        new_count=int(m.group(4) or "1"),
        section=m.group(5).strip(),
    )


def split_lines(text: str) -> List[str]:
    """Split on '\\n' keeping terminators; no empty piece after a final newline."""
    parts = text.split("\n")
    lines = [p + "\n" for p in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def line_offsets(lines: List[str]) -> List[int]:
    """offsets[i] is where line i starts; offsets[-1] is the total length."""
    offsets = [0]
    for line in lines:
        offsets.append(offsets[-1] + len(line))
    return offsets


class _Side:
    def __init__(self, text: str) -> None:
        self.lines = split_lines(text)
        self.offsets = line_offsets(self.lines)

    def has(self, line_no: int) -> bool:
        return 1 <= line_no <= len(self.lines)

    def content(self, line_no: int) -> str:
        return self.lines[line_no - 1]

    def range(self, line_no: int) -> CharRange:
        return CharRange(self.offsets[line_no - 1], self.offsets[line_no])


class _Builder:
    def __init__(self, old_text: str, new_text: str) -> None:
        self.old = _Side(old_text)
        self.new = _Side(new_text)
        self.old_line = 1
        self.new_line = 1
        self.out: List[LineChange] = []

    def unchanged(self) -> None:
        if self.new.has(self.new_line):
            self.out.append(
                LineChange(
                    old_line_number=self.old_line,
                    new_line_number=self.new_line,
                    character_range=self.new.range(self.new_line),
                    content=self.new.content(self.new_line),
                    kind=ChangeKind.UNCHANGED,
                )
            )
        self.old_line += 1
        self.new_line += 1

    def added(self) -> None:
        if self.new.has(self.new_line):
            self.out.append(
                LineChange(
                    new_line_number=self.new_line,
                    character_range=self.new.range(self.new_line),
                    content=self.new.content(self.new_line),
                    kind=ChangeKind.ADDED,
                )
            )
        self.new_line += 1

    def removed(self) -> None:
        if self.old.has(self.old_line):
            self.out.append(
                LineChange(
                    old_line_number=self.old_line,
                    character_range=self.old.range(self.old_line),
                    content=self.old.content(self.old_line),
                    kind=ChangeKind.REMOVED,
                )
            )
        self.old_line += 1

    def unchanged_until(self, new_line: int) -> None:
        while self.new_line < new_line:
            self.unchanged()


def parse_unified_diff(old_text: str, new_text: str, diff_text: str) -> List[LineChange]:
    """
    Map unified diff text onto the two versions it was produced from.

    The result covers every line of new_text (as added or unchanged) plus
    every removed line of old_text, in display order. File headers and
    anything before the first hunk are ignored.
    """
    b = _Builder(old_text, new_text)
    old_left = new_left = 0
    in_hunk = False

    for line in diff_text.split("\n"):
        hunk = parse_hunk_header(line) if line.startswith("@@") else None
        if hunk is not None:
            b.unchanged_until(hunk.first_new_line)
            b.old_line = hunk.first_old_line
            b.new_line = hunk.first_new_line
            old_left, new_left = hunk.old_count, hunk.new_count
            in_hunk = True
            continue
        if not in_hunk or line.startswith(NO_NEWLINE_MARK):
            continue

        counted = old_left > 0 or new_left > 0
        tag = line[:1]
        if tag == "+" and (counted or not line.startswith("+++")):
            b.added()
            new_left -= 1
        elif tag == "-" and (counted or not line.startswith("---")):
            b.removed()
            old_left -= 1
        elif tag == " " or (line == "" and old_left > 0 and new_left > 0):
            # Some tools drop the leading space of blank context lines.
            b.unchanged()
            old_left -= 1
            new_left -= 1

    b.unchanged_until(len(b.new.lines) + 1)
    return b.out
