import pytest

from vodiff.diff import BuiltinMerge, merge3_text


def test_non_overlapping_changes_merge_cleanly():
    outcome = merge3_text("1\n2\n3\n4\n5\n", "one\n2\n3\n4\n5\n", "1\n2\n3\n4\nfive\n")

    assert outcome.text == "one\n2\n3\n4\nfive\n"
    assert outcome.conflicts == 0


def test_same_change_on_both_sides():
    outcome = merge3_text("a\nb\nc\n", "a\nB\nc\n", "a\nB\nc\n")

    assert outcome.text == "a\nB\nc\n"
    assert outcome.conflicts == 0


def test_one_side_unchanged():
    outcome = merge3_text("a\nb\n", "a\nb\n", "a\nb\nc\n")

    assert outcome.text == "a\nb\nc\n"


def test_conflicting_changes_get_markers():
    outcome = merge3_text("A", "A-edited", "A-target")

    assert outcome.conflicts == 1
    assert outcome.text == "<<<<<<< current\nA-edited\n=======\nA-target\n>>>>>>> target\n"


@pytest.mark.asyncio
async def test_builtin_merge_labels():
    merged = await BuiltinMerge(label_ours="mine", label_theirs="theirs").merge("x\n", "y\n", "z\n")

    assert merged.startswith("<<<<<<< mine\n")
    assert merged.endswith(">>>>>>> theirs\n")
