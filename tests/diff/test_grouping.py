from typing import List

from vodiff.diff import (
    ChangeKind,
    CharRange,
    LineChange,
    LineRange,
    changed_sections,
    continuous_changes,
    slice_lines,
)


def _lines(pattern: str) -> List[LineChange]:
    """u = unchanged, a = added, r = removed."""
    out: List[LineChange] = []
    old_no = new_no = 1
    for ch in pattern:
        if ch == "u":
            out.append(
                LineChange(
                    old_line_number=old_no,
                    new_line_number=new_no,
                    character_range=CharRange(0, 0),
                    content="ctx\n",
                    kind=ChangeKind.UNCHANGED,
                )
            )
            old_no += 1
            new_no += 1
        elif ch == "a":
            out.append(
                LineChange(
                    new_line_number=new_no,
                    character_range=CharRange(0, 0),
                    content="add\n",
                    kind=ChangeKind.ADDED,
                )
            )
            new_no += 1
        else:
            out.append(
                LineChange(
                    old_line_number=old_no,
                    character_range=CharRange(0, 0),
                    content="del\n",
                    kind=ChangeKind.REMOVED,
                )
            )
            old_no += 1
    return out


def _with_changes_at(size: int, *indexes: int) -> str:
    return "".join("a" if i in indexes else "u" for i in range(size))


def test_no_changes_returns_whole_range():
    assert changed_sections(_lines("uuuuu"), 3) == [LineRange(0, 5)]


def test_empty_input():
    assert changed_sections([], 3) == [LineRange(0, 0)]


def test_single_change_gets_context_on_both_sides():
    lines = _lines(_with_changes_at(20, 5))

    assert changed_sections(lines, 3) == [LineRange(2, 9)]


def test_change_near_start_is_clamped():
    lines = _lines(_with_changes_at(20, 0))

    assert changed_sections(lines, 3) == [LineRange(0, 4)]


def test_nearby_changes_merge():
    lines = _lines(_with_changes_at(30, 5, 10))

    assert changed_sections(lines, 3) == [LineRange(2, 14)]


def test_distant_changes_split():
    lines = _lines(_with_changes_at(30, 5, 20))

    assert changed_sections(lines, 3) == [LineRange(2, 9), LineRange(17, 24)]


def test_open_section_runs_to_end():
    lines = _lines(_with_changes_at(12, 5))

    assert changed_sections(lines, 3) == [LineRange(2, 12)]


def test_zero_separation():
    assert changed_sections(_lines("uau"), 0) == [LineRange(1, 2)]


def test_sections_stay_in_bounds():
    for pattern in ["a", "ua", "au", "raaur", _with_changes_at(9, 0, 8)]:
        lines = _lines(pattern)
        for section in changed_sections(lines, 3):
            assert 0 <= section.start <= section.end <= len(lines)


def test_continuous_changes():
    lines = _lines("uuaaruuau")

    assert continuous_changes(lines, LineRange(0, 9)) == [LineRange(2, 5), LineRange(7, 8)]
    assert continuous_changes(lines, LineRange(3, 6)) == [LineRange(3, 5)]
    assert continuous_changes(_lines("uaa"), LineRange(0, 3)) == [LineRange(1, 3)]
    assert continuous_changes(_lines("uuu"), LineRange(0, 3)) == []


def test_line_range_helpers():
    assert LineRange(2, 9).key == "2-9"
    assert LineRange(2, 9).size == 7
    assert LineRange(-1, 40).clamped(LineRange(0, 10)) == LineRange(0, 10)


def test_slice_lines_follows_section():
    lines = _lines("uuarru")

    assert [l.kind for l in slice_lines(lines, LineRange(2, 5))] == [
        ChangeKind.ADDED,
        ChangeKind.REMOVED,
        ChangeKind.REMOVED,
    ]
    assert slice_lines(lines, LineRange(6, 6)) == []
