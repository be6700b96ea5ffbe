"""
Line-based three-way merge with conflict markers.

Regions where the base lines match both sides are kept as synchronisation
points; between two of them each side either left the base alone, changed
it the same way as the other side, or changed it differently (a conflict):

<<<<<<< current
...current version...
=======
...target version...
>>>>>>> target
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import Iterator, List, Optional, Sequence, Tuple

from .unified import split_lines

CONFLICT_START = "<<<<<<<"
CONFLICT_SPLIT = "======="
CONFLICT_END = ">>>>>>>"


@dataclass(frozen=True)
class MergeOutcome:
    text: str
    conflicts: int


# (base_start, base_end, a_start, a_end, b_start, b_end)
_Region = Tuple[int, int, int, int, int, int]


def _intersect(a: Tuple[int, int], b: Tuple[int, int]) -> Optional[Tuple[int, int]]:
    lo = max(a[0], b[0])
    hi = min(a[1], b[1])
    return (lo, hi) if lo < hi else None


def _sync_regions(base: Sequence[str], a: Sequence[str], b: Sequence[str]) -> List[_Region]:
    am = SequenceMatcher(None, base, a, autojunk=False).get_matching_blocks()
    bm = SequenceMatcher(None, base, b, autojunk=False).get_matching_blocks()

    regions: List[_Region] = []
    ia = ib = 0
    while ia < len(am) and ib < len(bm):
        abase, amatch, alen = am[ia]
        bbase, bmatch, blen = bm[ib]
        common = _intersect((abase, abase + alen), (bbase, bbase + blen))
        if common is not None:
            lo, hi = common
            asub = amatch + (lo - abase)
            bsub = bmatch + (lo - bbase)
            size = hi - lo
            regions.append((lo, hi, asub, asub + size, bsub, bsub + size))
        if abase + alen < bbase + blen:
            ia += 1
        else:
            ib += 1

    regions.append((len(base), len(base), len(a), len(a), len(b), len(b)))
    return regions


def _with_newline(line: str) -> str:
    return line if line.endswith("\n") else line + "\n"


def _conflict(
    ours: Sequence[str], theirs: Sequence[str], label_ours: str, label_theirs: str
) -> List[str]:
    out = [f"{CONFLICT_START} {label_ours}\n"]
    out.extend(_with_newline(line) for line in ours)
    out.append(f"{CONFLICT_SPLIT}\n")
    out.extend(_with_newline(line) for line in theirs)
    out.append(f"{CONFLICT_END} {label_theirs}\n")
    return out


def _merge_chunks(
    base: Sequence[str], a: Sequence[str], b: Sequence[str]
) -> Iterator[Tuple[str, Sequence[str], Sequence[str]]]:
    """Yield ("keep", lines, ()) or ("conflict", a_lines, b_lines)."""
    iz = ia = ib = 0
    for zlo, zhi, alo, ahi, blo, bhi in _sync_regions(base, a, b):
        a_part, b_part, z_part = a[ia:alo], b[ib:blo], base[iz:zlo]
        if a_part or b_part:
            if a_part == b_part:
                yield "keep", a_part, ()
            elif a_part == z_part:
                yield "keep", b_part, ()
            elif b_part == z_part:
                yield "keep", a_part, ()
            else:
                yield "conflict", a_part, b_part
        if zhi > zlo:
            yield "keep", base[zlo:zhi], ()
        iz, ia, ib = zhi, ahi, bhi


def merge3_text(
    base_text: str,
    ours_text: str,
    theirs_text: str,
    *,
    label_ours: str = "current",
    label_theirs: str = "target",
) -> MergeOutcome:
    base = split_lines(base_text)
    ours = split_lines(ours_text)
    theirs = split_lines(theirs_text)

    out: List[str] = []
    conflicts = 0
    for kind, first, second in _merge_chunks(base, ours, theirs):
        if kind == "conflict":
            conflicts += 1
            if out and not out[-1].endswith("\n"):
                out[-1] += "\n"
            out.extend(_conflict(first, second, label_ours, label_theirs))
        else:
            out.extend(first)
    return MergeOutcome(text="".join(out), conflicts=conflicts)


class BuiltinMerge:
    """In-process ThreeWayMerge: base is the ancestor, ours the current file, theirs the target."""

    def __init__(self, *, label_ours: str = "current", label_theirs: str = "target") -> None:
        self.label_ours = label_ours
        self.label_theirs = label_theirs

    async def merge(self, base: str, ours: str, theirs: str) -> str:
        return merge3_text(
            base,
            ours,
            theirs,
            label_ours=self.label_ours,
            label_theirs=self.label_theirs,
        ).text
