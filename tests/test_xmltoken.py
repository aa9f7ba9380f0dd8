from __future__ import annotations

from pathscan.xmltoken import XmlTokenizer, XmlTokenType, iter_tokens


def _kinds_and_values(source: bytes):
    return [(tok.type, tok.value.tobytes()) for tok in iter_tokens(source)]


def test_tag_and_text_tokens() -> None:
    assert _kinds_and_values(b'<a x="1">hi</a>') == [
        (XmlTokenType.LT, b""),
        (XmlTokenType.NAME, b"a"),
        (XmlTokenType.NAME, b"x"),
        (XmlTokenType.EQ, b""),
        (XmlTokenType.STRING, b"1"),
        (XmlTokenType.GT, b""),
        (XmlTokenType.TEXT, b"hi"),
        (XmlTokenType.LT, b""),
        (XmlTokenType.SLASH, b""),
        (XmlTokenType.NAME, b"a"),
        (XmlTokenType.GT, b""),
    ]


def test_punctuation_inside_tags() -> None:
    kinds = [tok.type for tok in iter_tokens(b"<?xml?><!x>")]
    assert kinds == [
        XmlTokenType.LT,
        XmlTokenType.QMARK,
        XmlTokenType.NAME,
        XmlTokenType.QMARK,
        XmlTokenType.GT,
        XmlTokenType.LT,
        XmlTokenType.BANG,
        XmlTokenType.NAME,
        XmlTokenType.GT,
    ]


def test_names_keep_namespace_prefix() -> None:
    names = [tok.value.tobytes() for tok in iter_tokens(b"<svg:path xlink:href='#a'/>") if tok.type == XmlTokenType.NAME]
    assert names == [b"svg:path", b"xlink:href"]


def test_in_tag_flag() -> None:
    tokens = list(iter_tokens(b"t<b>"))
    assert tokens[0].type == XmlTokenType.TEXT and not tokens[0].in_tag
    assert all(tok.in_tag for tok in tokens[1:])


def test_unknown_byte_in_tag_is_invalid_token() -> None:
    tokens = list(iter_tokens(b"<a #>"))
    assert tokens[2].type == XmlTokenType.INVALID
    assert tokens[2].value == b"#"
    assert tokens[-1].type == XmlTokenType.GT


def test_unterminated_string_sets_error_and_keeps_cursor() -> None:
    data = b'<a x="1'
    tokenizer = XmlTokenizer(data)
    tokens = list(tokenizer)
    assert [tok.type for tok in tokens] == [
        XmlTokenType.LT,
        XmlTokenType.NAME,
        XmlTokenType.NAME,
        XmlTokenType.EQ,
    ]
    assert tokenizer.error is not None
    assert tokenizer.input.start == data.index(b'"')
    assert tokenizer.next_token() is None
