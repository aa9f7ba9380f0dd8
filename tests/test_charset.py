from __future__ import annotations

import pytest

from pathscan.charset import (
    CharSet,
    DIGIT_CHARS,
    WSP_CHARS,
    XML_NAME_CHARS,
    XML_NAME_START_CHARS,
    is_alpha,
    is_digit,
    is_space,
    to_lower,
    to_upper,
)


def test_membership_forms_agree() -> None:
    cs = CharSet("abc")
    for c in b"abcxyz":
        assert (c in cs) == cs(c) == cs[c] == cs.test(c)
    assert ord("b") in cs
    assert ord("d") not in cs


def test_union_difference_and_complement() -> None:
    letters = CharSet("ab")
    both = letters + "cd"
    assert ord("d") in both and ord("a") in both
    fewer = both - CharSet("a")
    assert ord("a") not in fewer and ord("b") in fewer
    inverted = ~letters
    assert ord("a") not in inverted
    assert ord("z") in inverted
    assert 0 in inverted and 255 in inverted


def test_charsets_compare_and_hash_by_members() -> None:
    assert CharSet("ba") == CharSet(b"ab")
    assert hash(CharSet("ab")) == hash(CharSet("ba"))
    assert CharSet("a") != CharSet("b")


def test_whitespace_set() -> None:
    for c in b" \t\r\n\f\v":
        assert c in WSP_CHARS
    assert ord("x") not in WSP_CHARS


def test_xml_name_sets() -> None:
    assert ord("_") in XML_NAME_START_CHARS
    assert ord("1") not in XML_NAME_START_CHARS
    assert ord("1") in XML_NAME_CHARS
    assert ord(":") in XML_NAME_CHARS
    assert ord("-") in XML_NAME_CHARS
    assert ord(" ") not in XML_NAME_CHARS


@pytest.mark.parametrize("ch", "0123456789")
def test_digits(ch: str) -> None:
    assert is_digit(ord(ch))
    assert ord(ch) in DIGIT_CHARS
    assert not is_alpha(ord(ch))


def test_character_helpers() -> None:
    assert is_alpha(ord("q")) and is_alpha(ord("Q"))
    assert is_space(ord("\n")) and not is_space(ord("x"))
    assert to_lower(ord("M")) == ord("m")
    assert to_lower(ord("1")) == ord("1")
    assert to_upper(ord("z")) == ord("Z")
    assert to_upper(ord("Z")) == ord("Z")
