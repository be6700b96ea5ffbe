import pytest

from vodiff.errors import NotAPatchError
from vodiff.patch import (
    apply_patches,
    detect_format,
    get_supported_formats,
    get_system_instruction,
    parse_marker_patches,
    parse_patches,
)


@pytest.mark.parametrize(
    "text",
    [
        "<<<<<<< SEARCH\nfoo\n=======\nbar>>>>>>> REPLACE",
        "<<<<<<< SEARCH\nfoo=======\nbar\n>>>>>>> REPLACE",
    ],
)
def test_trailing_newline_asymmetry_is_normalized(text):
    patches = parse_marker_patches(text)

    assert len(patches) == 1
    assert apply_patches(patches, "foo") == "bar"


def test_matching_trailing_newlines_are_kept():
    (patch,) = parse_marker_patches(
        "<<<<<<< SEARCH\nold line\n\n=======\nnew line\n\n>>>>>>> REPLACE"
    )

    assert patch.search == "old line\n\n"
    assert patch.replace == "new line\n\n"


def test_multiple_blocks_in_order():
    text = "\n".join(
        [
            "Here is the change:",
            "<<<<<<< SEARCH",
            "alpha = 1",
            "=======",
            "alpha = 2",
            ">>>>>>> REPLACE",
            "and another",
            "<<<<<<< SEARCH",
            "beta = 1",
            "=======",
            "beta = 2",
            ">>>>>>> REPLACE",
        ]
    )

    patches = parse_marker_patches(text)

    assert [(p.search, p.replace) for p in patches] == [
        ("alpha = 1\n", "alpha = 2\n"),
        ("beta = 1\n", "beta = 2\n"),
    ]
    assert all(p.external_id is None for p in patches)


def test_text_without_markers_is_not_a_patch():
    with pytest.raises(NotAPatchError) as exc_info:
        parse_marker_patches("just some prose")

    assert exc_info.value.content == "just some prose"
    assert isinstance(exc_info.value, ValueError)


def test_separator_must_stand_on_its_own_line():
    (patch,) = parse_marker_patches(
        "<<<<<<< SEARCH\nTitle\n==========\n=======\nHeading\n==========\n>>>>>>> REPLACE"
    )

    assert patch.search == "Title\n==========\n"
    assert patch.replace == "Heading\n==========\n"
    assert apply_patches([patch], "Intro\n\nTitle\n==========\n") == "Intro\n\nHeading\n==========\n"


def test_banner_comment_in_search_is_kept():
    (patch,) = parse_marker_patches(
        "<<<<<<< SEARCH\n# =========== setup\nx = 1\n=======\nx = 2\n>>>>>>> REPLACE"
    )

    assert patch.search == "# =========== setup\nx = 1\n"
    assert patch.replace == "x = 2\n"


def test_incomplete_block_is_not_a_patch():
    with pytest.raises(NotAPatchError):
        parse_marker_patches("<<<<<<< SEARCH\nfoo\n>>>>>>> REPLACE")


def test_parsing_is_repeatable():
    text = "<<<<<<< SEARCH\na = 1\n=======\na = 2\n>>>>>>> REPLACE"

    first = parse_marker_patches(text)
    second = parse_marker_patches(text)

    assert [(p.search, p.replace) for p in first] == [(p.search, p.replace) for p in second]


def test_parse_patches_detects_format():
    marker = "<<<<<<< SEARCH\nx = 1\n=======\nx = 2\n>>>>>>> REPLACE"
    xml = '<DIFF id="a">\n<SEARCH>x = 1</SEARCH>\n<REPLACE>x = 2</REPLACE>\n</DIFF>'

    assert detect_format(marker) == "marker"
    assert detect_format(xml) == "xml"
    assert parse_patches(marker)[0].replace == "x = 2"
    assert parse_patches(xml)[0].external_id == "a"
    assert parse_patches(xml, "auto")[0].external_id == "a"


def test_parse_patches_forced_format():
    xml = '<DIFF id="a">\n<SEARCH>x</SEARCH>\n<REPLACE>y</REPLACE>\n</DIFF>'

    with pytest.raises(NotAPatchError):
        parse_patches(xml, "marker")
    with pytest.raises(ValueError):
        parse_patches(xml, "v4a")


def test_system_instructions():
    assert set(get_supported_formats()) == {"xml", "marker"}
    assert "<<<<<<< SEARCH" in get_system_instruction("marker")
    assert "<DIFF" in get_system_instruction("XML")
