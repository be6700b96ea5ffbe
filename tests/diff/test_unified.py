import pytest

from vodiff.diff import (
    BuiltinDiffExecutor,
    ChangeKind,
    CharRange,
    line_offsets,
    parse_hunk_header,
    parse_unified_diff,
    split_lines,
)
from vodiff.patch import Patch, apply_patches

U, A, R = ChangeKind.UNCHANGED, ChangeKind.ADDED, ChangeKind.REMOVED


def test_parse_hunk_header_with_counts():
    hunk = parse_hunk_header("@@ -1,0 +2,3 @@ def main():")

    assert (hunk.old_start, hunk.old_count, hunk.new_start, hunk.new_count) == (1, 0, 2, 3)
    assert hunk.section == "def main():"
    assert hunk.first_old_line == 2
    assert hunk.first_new_line == 2


def test_parse_hunk_header_omitted_counts_mean_one():
    hunk = parse_hunk_header("@@ -3 +4 @@")

    assert (hunk.old_start, hunk.old_count, hunk.new_start, hunk.new_count) == (3, 1, 4, 1)


def test_parse_hunk_header_rejects_other_lines():
    assert parse_hunk_header("+++ b/file.py") is None
    assert parse_hunk_header("@@ nonsense @@") is None


def test_split_lines_keeps_terminators():
    assert split_lines("a\nb\n") == ["a\n", "b\n"]
    assert split_lines("a\n\n") == ["a\n", "\n"]
    assert split_lines("a\nb") == ["a\n", "b"]
    assert split_lines("") == []


def test_line_offsets_are_cumulative():
    assert line_offsets(["ab\n", "\n", "c"]) == [0, 3, 4, 5]


def test_identical_prefix_and_suffix_are_emitted():
    old = "1\n2\n3\n4\n5\n"
    new = "1\n2\n3\nX\n5\n"

    lines = parse_unified_diff(old, new, "@@ -4 +4 @@\n-4\n+X\n")

    assert [l.kind for l in lines] == [U, U, U, R, A, U]
    assert [l.content for l in lines] == ["1\n", "2\n", "3\n", "4\n", "X\n", "5\n"]
    assert [(l.old_line_number, l.new_line_number) for l in lines] == [
        (1, 1),
        (2, 2),
        (3, 3),
        (4, None),
        (None, 4),
        (5, 5),
    ]
    removed, added = lines[3], lines[4]
    assert removed.character_range == CharRange(6, 8)
    assert old[slice(*removed.character_range)] == "4\n"
    assert new[slice(*added.character_range)] == "X\n"


def test_file_headers_are_ignored():
    diff = "diff --git a/f b/f\nindex 1..2\n--- a/f\n+++ b/f\n@@ -1 +1 @@\n-old\n+new\n"

    lines = parse_unified_diff("old\n", "new\n", diff)

    assert [(l.kind, l.content) for l in lines] == [(R, "old\n"), (A, "new\n")]


def test_body_lines_that_look_like_headers():
    diff = "@@ -1,2 +1,2 @@\n a\n---x\n+++y\n"

    lines = parse_unified_diff("a\n--x\n", "a\n++y\n", diff)

    assert [(l.kind, l.text) for l in lines] == [(U, "a"), (R, "--x"), (A, "++y")]


def test_pure_insertion_hunk():
    lines = parse_unified_diff("a\nb\n", "a\nX\nb\n", "@@ -1,0 +2 @@\n+X\n")

    assert [(l.kind, l.text) for l in lines] == [(U, "a"), (A, "X"), (U, "b")]
    assert lines[2].old_line_number == 2
    assert lines[2].new_line_number == 3


def test_multiple_hunks_fill_gaps():
    old = "".join(f"{i}\n" for i in range(1, 11))
    new = old.replace("2\n", "two\n").replace("9\n", "nine\n")
    diff = "@@ -2 +2 @@\n-2\n+two\n@@ -9 +9 @@\n-9\n+nine\n"

    lines = parse_unified_diff(old, new, diff)

    assert [l.kind for l in lines] == [U, R, A] + [U] * 6 + [R, A, U]
    assert [l.new_line_number for l in lines if l.kind != R] == list(range(1, 11))


def test_empty_diff_is_all_unchanged():
    lines = parse_unified_diff("a\nb\n", "a\nb\n", "")

    assert [l.kind for l in lines] == [U, U]
    assert not any(l.is_change for l in lines)


def test_no_newline_marker_is_ignored():
    diff = "@@ -1 +1 @@\n-a\n\\ No newline at end of file\n+b\n\\ No newline at end of file\n"

    lines = parse_unified_diff("a", "b", diff)

    assert [(l.kind, l.content) for l in lines] == [(R, "a"), (A, "b")]


@pytest.mark.asyncio
async def test_single_patch_round_trip():
    text = "line1\nline2\ntarget line\nline4\nline5\n"
    patched = apply_patches([Patch(search="target line", replace="changed line")], text)

    raw = await BuiltinDiffExecutor().unified_diff(text, patched)
    lines = parse_unified_diff(text, patched, raw)

    assert [l.kind for l in lines] == [U, U, R, A, U, U]
    assert [l.text for l in lines if l.is_change] == ["target line", "changed line"]
    assert "".join(l.content for l in lines if l.kind != R) == patched
