from __future__ import annotations

from typing import List, Optional, Sequence

from .models import LineChange, LineRange

DEFAULT_MIN_SEPARATION = 3


def changed_sections(
    lines: Sequence[LineChange], min_separation: int = DEFAULT_MIN_SEPARATION
) -> List[LineRange]:
    """
    Partition lines into sections of changes with up to min_separation lines
    of unchanged context on either side. Changes closer than
    2 * min_separation unchanged lines share a section.

    Always returns at least one range for non-empty input: with no changes
    the whole sequence is a single context-only section.
    """
    count = len(lines)
    sep = max(0, min_separation)
    sections: List[LineRange] = []
    start: Optional[int] = None
    last = 0

    for idx, line in enumerate(lines):
        if line.is_change:
            last = idx
            if start is None:
                start = max(0, idx - sep)
        elif start is not None and idx - last > 2 * sep:
            sections.append(LineRange(start, last + sep + 1))
            start = None

    if start is not None:
        sections.append(LineRange(start, count))
    if not sections:
        sections.append(LineRange(0, count))

    bounds = LineRange(0, count)
    return [s.clamped(bounds) for s in sections]


def continuous_changes(
    lines: Sequence[LineChange], section: LineRange
) -> List[LineRange]:
    """Runs of consecutive changed lines inside section."""
    section = section.clamped(LineRange(0, len(lines)))
    runs: List[LineRange] = []
    run_start: Optional[int] = None

    for idx in range(section.start, section.end):
        if lines[idx].is_change:
            if run_start is None:
                run_start = idx
        elif run_start is not None:
            runs.append(LineRange(run_start, idx))
            run_start = None

    if run_start is not None:
        runs.append(LineRange(run_start, section.end))
    return runs


def slice_lines(lines: Sequence[LineChange], section: LineRange) -> List[LineChange]:
    return list(lines[section.start : section.end])
