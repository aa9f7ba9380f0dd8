from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, Optional, Union

from .bytespan import ByteSpan, as_span
from .charset import WSP_CHARS, XML_NAME_CHARS, XML_NAME_START_CHARS

log = logging.getLogger(__name__)


class XmlTokenType(IntEnum):
    INVALID = 0
    LT = 1
    GT = 2
    SLASH = 3
    EQ = 4
    QMARK = 5
    BANG = 6
    NAME = 7
    STRING = 8
    TEXT = 9


@dataclass
class XmlToken:
    type: XmlTokenType
    value: ByteSpan = field(default_factory=ByteSpan)
    in_tag: bool = False


_SINGLE_CHAR_TOKENS = {
    0x2F: XmlTokenType.SLASH,  # /
    0x3D: XmlTokenType.EQ,  # =
    0x3F: XmlTokenType.QMARK,  # ?
    0x21: XmlTokenType.BANG,  # !
}


class XmlTokenizer:
    """Pull tokenizer: markup punctuation, names and quoted strings inside
    tags, raw text runs outside them.

    Nothing is validated; the caller decides what a token sequence means.
    """

    def __init__(self, source: Union[ByteSpan, bytes, str]) -> None:
        self.input = as_span(source)
        self.in_tag = False
        self.error: Optional[str] = None

    def empty(self) -> bool:
        return self.input.empty()

    def __iter__(self) -> Iterator[XmlToken]:
        return self

    def __next__(self) -> XmlToken:
        tok = self.next_token()
        if tok is None:
            raise StopIteration
        return tok

    def next_token(self) -> Optional[XmlToken]:
        if self.error is not None or self.input.empty():
            return None
        if self.in_tag:
            return self._read_tag_token()
        return self._read_text()

    def _read_text(self) -> Optional[XmlToken]:
        src = self.input
        lt = src.data.find(b"<", src.start, src.end)
        if lt < 0:
            lt = src.end
        if lt != src.start:
            tok = XmlToken(XmlTokenType.TEXT, ByteSpan._make(src.data, src.start, lt), False)
            src.start = lt
            return tok
        src.start += 1
        self.in_tag = True
        return XmlToken(XmlTokenType.LT, ByteSpan._make(src.data, lt, lt), True)

    def _read_tag_token(self) -> Optional[XmlToken]:
        src = self.input
        src.skip_while(WSP_CHARS)
        if src.empty():
            return None

        data = src.data
        pos = src.start
        ch = data[pos]

        if ch == 0x3E:  # >
            src.start = pos + 1
            self.in_tag = False
            return XmlToken(XmlTokenType.GT, ByteSpan._make(data, pos, pos), True)

        kind = _SINGLE_CHAR_TOKENS.get(ch)
        if kind is not None:
            src.start = pos + 1
            return XmlToken(kind, ByteSpan._make(data, pos, pos), True)

        if ch == 0x22 or ch == 0x27:
            close = data.find(bytes((ch,)), pos + 1, src.end)
            if close < 0:
                self.error = f"unterminated string at offset {pos}"
                log.debug("xml tokenizer: %s", self.error)
                return None
            src.start = close + 1
            return XmlToken(XmlTokenType.STRING, ByteSpan._make(data, pos + 1, close), True)

        if XML_NAME_START_CHARS(ch):
            end = pos + 1
            while end < src.end and XML_NAME_CHARS(data[end]):
                end += 1
            src.start = end
            return XmlToken(XmlTokenType.NAME, ByteSpan._make(data, pos, end), True)

        src.start = pos + 1
        return XmlToken(XmlTokenType.INVALID, ByteSpan._make(data, pos, pos + 1), True)


def iter_tokens(source: Union[ByteSpan, bytes, str]) -> Iterator[XmlToken]:
    return iter(XmlTokenizer(source))


__all__ = ["XmlTokenType", "XmlToken", "XmlTokenizer", "iter_tokens"]
