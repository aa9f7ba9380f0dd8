from __future__ import annotations

import pytest

from pathscan.bytespan import (
    ByteSpan,
    as_span,
    find,
    find_char,
    ltrim,
    next_css_key_value,
    next_key_attribute,
    read_bracketed,
    read_quoted,
    rtrim,
    token,
    token_char,
    trim,
)
from pathscan.charset import CharSet


def test_construction_clamps_to_buffer() -> None:
    span = ByteSpan(b"hello", 2, 99)
    assert span.size() == 3
    assert span == b"llo"
    assert ByteSpan("héllo").size() == 6


@pytest.mark.parametrize("offset, length", [(0, 100), (3, 10), (5, 1), (50, 50)])
def test_sub_span_never_grows_past_end(offset: int, length: int) -> None:
    data = b"0123456789"
    outer = ByteSpan(data, 2, 8)
    sub = outer.sub_span(offset, length)
    assert sub.start >= outer.start
    assert sub.end <= outer.end
    assert sub.size() <= outer.size()


def test_sub_span_past_end_is_empty() -> None:
    span = ByteSpan(b"abc")
    sub = span.sub_span(3, 2)
    assert sub.empty()
    assert sub.start == span.end


def test_advance_and_peek() -> None:
    span = ByteSpan(b"ab")
    assert span.peek() == ord("a")
    span.advance()
    assert span.peek() == ord("b")
    span.advance(10)
    assert span.empty()
    assert span.peek() == 0
    assert not span


def test_skip_while_and_until() -> None:
    span = ByteSpan(b"   abc;def")
    span.skip_while(CharSet(" "))
    assert span == "abc;def"
    span.skip_until(ord(";"))
    assert span == ";def"
    span.skip_until(ord("!"))
    assert span.empty()


def test_equality_is_by_content_and_is_equal_by_identity() -> None:
    data = b"abcabc"
    first = ByteSpan(data, 0, 3)
    second = ByteSpan(data, 3, 6)
    assert first == second
    assert not first.is_equal(second)
    assert first.is_equal(first.copy())
    assert first == "abc" and first == b"abc"
    assert first != "abcd"


def test_ordering_is_lexicographic() -> None:
    assert ByteSpan(b"abc") < ByteSpan(b"abd")
    assert ByteSpan(b"ab") < b"abc"
    assert ByteSpan(b"b") > "a"
    assert sorted([ByteSpan(b"c"), ByteSpan(b"a"), ByteSpan(b"b")]) == [b"a", b"b", b"c"]


def test_spans_key_dicts_by_content() -> None:
    table = {ByteSpan(b"path"): 1}
    assert table[ByteSpan(b"<path>", 1, 5)] == 1


def test_starts_and_ends_with() -> None:
    span = ByteSpan(b"<!--x-->")
    assert span.starts_with("<!--")
    assert span.ends_with(b"-->")
    assert not span.starts_with("<!--x-->!")


def test_as_span_copies() -> None:
    original = ByteSpan(b"abc")
    cursor = as_span(original)
    cursor.advance()
    assert original == "abc"
    assert as_span("xy") == b"xy"


def test_trims_return_new_spans() -> None:
    span = ByteSpan(b"  a b \n")
    assert ltrim(span) == "a b \n"
    assert rtrim(span) == "  a b"
    assert trim(span) == "a b"
    assert span == "  a b \n"
    assert trim(ByteSpan(b"   ")).empty()


def test_token_splits_and_advances() -> None:
    span = ByteSpan(b"a,b;c")
    delims = CharSet(",;")
    assert token(span, delims) == "a"
    assert token(span, delims) == "b"
    assert token(span, delims) == "c"
    assert span.empty()


def test_token_char() -> None:
    span = ByteSpan(b"key=value")
    assert token_char(span, ord("=")) == "key"
    assert span == "value"
    assert token_char(span, ord("=")) == "value"
    assert span.empty()


def test_find_and_find_char() -> None:
    span = ByteSpan(b"abc-->def")
    hit = find(span, "-->")
    assert hit is not None and hit == "-->def"
    assert find(span, "zzz") is None
    assert find_char(span, ord("d")) == "def"
    miss = find_char(span, ord("q"))
    assert miss.empty() and miss.start == span.end


def test_read_quoted() -> None:
    src = ByteSpan(b"  'it' \"s\"")
    assert read_quoted(src) == "it"
    assert read_quoted(src) == "s"
    assert read_quoted(src) is None
    assert read_quoted(ByteSpan(b'"open')) is None
    assert read_quoted(ByteSpan(b"bare")) is None


def test_read_bracketed() -> None:
    src = ByteSpan(b" [a b] rest")
    assert read_bracketed(src, ord("["), ord("]")) == "a b"
    assert src == " rest"
    assert read_bracketed(ByteSpan(b"[open"), ord("["), ord("]")) is None


def test_next_key_attribute_walks_pairs() -> None:
    src = ByteSpan(b' x="1" y = \'two\' d="M0 0"/>')
    pairs = []
    while True:
        pair = next_key_attribute(src)
        if pair is None:
            break
        pairs.append((pair[0].tobytes(), pair[1].tobytes()))
    assert pairs == [(b"x", b"1"), (b"y", b"two"), (b"d", b"M0 0")]


def test_next_key_attribute_stops_on_unterminated_value() -> None:
    src = ByteSpan(b'a="1" b="oops')
    assert next_key_attribute(src) is not None
    assert next_key_attribute(src) is None
    assert src.empty()


def test_next_css_key_value() -> None:
    src = ByteSpan(b"fill: red; stroke-dasharray : 4 2 ;opacity:1")
    pairs = []
    while True:
        pair = next_css_key_value(src)
        if pair is None:
            break
        pairs.append((pair[0].tobytes(), pair[1].tobytes()))
    assert pairs == [(b"fill", b"red"), (b"stroke-dasharray", b"4 2"), (b"opacity", b"1")]


def test_spans_and_bytes_share_dict_keys() -> None:
    buf = b"<path fill>"
    span = ByteSpan(buf, 1, 5)
    assert hash(span) == hash(b"path")
    assert {b"path": 1}[span] == 1
    assert {span: 2}[b"path"] == 2
    assert {span.text(): 3}["path"] == 3
