"""Non-owning byte cursor.

A :class:`ByteSpan` is a ``[start, end)`` window onto a buffer it does not
own (``bytes``, ``bytearray`` or a read-only ``mmap``).  Every scanner in the
package works by moving ``start`` forward on a span; the buffer itself is
never touched, and no operation can widen a span past the bounds it was
created with.

The helpers at the bottom of the module (trim, token, find, the key/value
readers) all follow the same convention: malformed or missing input yields an
empty span or ``None``, never an exception.
"""
from __future__ import annotations

from typing import Optional, Tuple, Union

from .charset import CharSet, WSP_CHARS

Buffer = Union[bytes, bytearray, memoryview, "mmap.mmap"]  # noqa: F821
SpanLike = Union["ByteSpan", bytes, str]


def _as_bytes(other: SpanLike) -> bytes:
    if isinstance(other, ByteSpan):
        return other.tobytes()
    if isinstance(other, str):
        return other.encode("utf-8")
    return bytes(other)


class ByteSpan:
    """Borrowed view over ``data[start:end]``.

    Indexing (``span[i]``) reads ``data[start + i]`` without checking it
    against ``end``; callers are expected to test :meth:`size` first.  All
    other operations clamp to the span.

    Spans compare equal to ``bytes``, ``bytearray`` and ``str`` with the same
    content (``str`` is UTF-8 encoded).  The hash is that of the content
    bytes, so only ``bytes`` keys are interchangeable with spans in a dict or
    set; look up ``str`` keys with ``span.text()``.
    """

    __slots__ = ("data", "start", "end")

    def __init__(self, data: Union[Buffer, str] = b"", start: int = 0, end: Optional[int] = None) -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        if isinstance(data, memoryview):
            data = data.tobytes()
        size = len(data)
        if end is None or end > size:
            end = size
        start = max(0, min(start, end))
        self.data = data
        self.start = start
        self.end = end

    # -- size -------------------------------------------------------------
    def size(self) -> int:
        return self.end - self.start

    def __len__(self) -> int:
        return self.end - self.start

    def empty(self) -> bool:
        return self.start >= self.end

    def __bool__(self) -> bool:
        return self.start < self.end

    # -- access -----------------------------------------------------------
    def __getitem__(self, i: int) -> int:
        return self.data[self.start + i]

    def peek(self) -> int:
        """Current byte, or 0 once the span is exhausted."""
        if self.start < self.end:
            return self.data[self.start]
        return 0

    def copy(self) -> "ByteSpan":
        return ByteSpan._make(self.data, self.start, self.end)

    def tobytes(self) -> bytes:
        return bytes(self.data[self.start:self.end])

    def text(self, encoding: str = "utf-8") -> str:
        return self.tobytes().decode(encoding, errors="replace")

    # -- cursor movement ----------------------------------------------------
    def advance(self, n: int = 1) -> "ByteSpan":
        if n > self.end - self.start:
            n = self.end - self.start
        self.start += n
        return self

    def skip_while(self, chars: CharSet) -> "ByteSpan":
        data = self.data
        pos, end = self.start, self.end
        while pos < end and chars(data[pos]):
            pos += 1
        self.start = pos
        return self

    def skip_until(self, byte: int) -> "ByteSpan":
        pos = self.data.find(bytes((byte,)), self.start, self.end)
        self.start = self.end if pos < 0 else pos
        return self

    # -- sub ranges -----------------------------------------------------------
    def sub_span(self, offset: int, length: int) -> "ByteSpan":
        """Clamped sub range; never grows past ``end`` and never raises."""
        if offset < 0:
            offset = 0
        if length < 0:
            length = 0
        if offset >= self.size():
            return ByteSpan._make(self.data, self.end, self.end)
        start = self.start + offset
        end = min(start + length, self.end)
        return ByteSpan._make(self.data, start, end)

    def take(self, n: int) -> "ByteSpan":
        return self.sub_span(0, n)

    def starts_with(self, prefix: SpanLike) -> bool:
        needle = _as_bytes(prefix)
        if len(needle) > self.size():
            return False
        return self.data[self.start:self.start + len(needle)] == needle

    def ends_with(self, suffix: SpanLike) -> bool:
        needle = _as_bytes(suffix)
        if len(needle) > self.size():
            return False
        return self.data[self.end - len(needle):self.end] == needle

    # -- comparison -----------------------------------------------------------
    def is_equal(self, other: "ByteSpan") -> bool:
        """Identity comparison: same buffer object and same offsets."""
        return self.data is other.data and self.start == other.start and self.end == other.end

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (ByteSpan, bytes, bytearray, str)):
            needle = _as_bytes(other)
            if len(needle) != self.size():
                return False
            return self.tobytes() == needle
        return NotImplemented

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __lt__(self, other: SpanLike) -> bool:
        return self.tobytes() < _as_bytes(other)

    def __le__(self, other: SpanLike) -> bool:
        return self.tobytes() <= _as_bytes(other)

    def __gt__(self, other: SpanLike) -> bool:
        return self.tobytes() > _as_bytes(other)

    def __ge__(self, other: SpanLike) -> bool:
        return self.tobytes() >= _as_bytes(other)

    def __hash__(self) -> int:
        # content hash, so spans can key dicts; do not advance a span used as a key
        return hash(self.tobytes())

    def __repr__(self) -> str:
        preview = self.data[self.start:min(self.end, self.start + 32)]
        suffix = "..." if self.size() > 32 else ""
        return f"ByteSpan({bytes(preview)!r}{suffix}, start={self.start}, end={self.end})"

    @classmethod
    def _make(cls, data: Buffer, start: int, end: int) -> "ByteSpan":
        obj = cls.__new__(cls)
        obj.data = data
        obj.start = start
        obj.end = end
        return obj


def as_span(source: Union[ByteSpan, Buffer, str]) -> ByteSpan:
    """Coerce ``source`` into a fresh cursor (spans are copied, not shared)."""
    if isinstance(source, ByteSpan):
        return source.copy()
    return ByteSpan(source)


# ---------------------------------------------------------------------------
# chunk helpers
# ---------------------------------------------------------------------------

def ltrim(span: ByteSpan, skippable: CharSet = WSP_CHARS) -> ByteSpan:
    return span.copy().skip_while(skippable)


def rtrim(span: ByteSpan, skippable: CharSet = WSP_CHARS) -> ByteSpan:
    data = span.data
    start, end = span.start, span.end
    while start < end and skippable(data[end - 1]):
        end -= 1
    return ByteSpan._make(data, start, end)


def trim(span: ByteSpan, skippable: CharSet = WSP_CHARS) -> ByteSpan:
    return rtrim(ltrim(span, skippable), skippable)


def token(span: ByteSpan, delims: CharSet) -> ByteSpan:
    """Split ``span`` at the first delimiter.

    Returns the bytes before the delimiter and moves ``span`` past it.  When
    no delimiter is present the whole remainder is returned and ``span`` is
    left empty.
    """
    data = span.data
    start, end = span.start, span.end
    pos = start
    while pos < end and not delims(data[pos]):
        pos += 1
    span.start = pos + 1 if pos < end else pos
    return ByteSpan._make(data, start, pos)


def token_char(span: ByteSpan, delim: int) -> ByteSpan:
    data = span.data
    start, end = span.start, span.end
    pos = data.find(bytes((delim,)), start, end)
    if pos < 0:
        span.start = end
        return ByteSpan._make(data, start, end)
    span.start = pos + 1
    return ByteSpan._make(data, start, pos)


def find(span: ByteSpan, needle: SpanLike) -> Optional[ByteSpan]:
    """Span starting at the first occurrence of ``needle``, or ``None``."""
    pattern = _as_bytes(needle)
    if not pattern:
        return span.copy()
    pos = span.data.find(pattern, span.start, span.end)
    if pos < 0:
        return None
    return ByteSpan._make(span.data, pos, span.end)


def find_char(span: ByteSpan, ch: int) -> ByteSpan:
    """Span starting at the first ``ch``; empty (at ``end``) if not present."""
    pos = span.data.find(bytes((ch,)), span.start, span.end)
    if pos < 0:
        pos = span.end
    return ByteSpan._make(span.data, pos, span.end)


def read_quoted(src: ByteSpan) -> Optional[ByteSpan]:
    """Read a ``"``/``'`` quoted run from ``src``; returns the inner bytes."""
    src.skip_while(WSP_CHARS)
    if not src:
        return None
    quote = src.peek()
    if quote not in (0x22, 0x27):
        return None
    begin = src.start + 1
    pos = src.data.find(bytes((quote,)), begin, src.end)
    if pos < 0:
        return None
    src.start = pos + 1
    return ByteSpan._make(src.data, begin, pos)


def read_bracketed(src: ByteSpan, lbracket: int, rbracket: int) -> Optional[ByteSpan]:
    src.skip_while(WSP_CHARS)
    if not src or src.peek() != lbracket:
        return None
    begin = src.start + 1
    pos = src.data.find(bytes((rbracket,)), begin, src.end)
    if pos < 0:
        return None
    src.start = pos + 1
    return ByteSpan._make(src.data, begin, pos)


_QUOTE_CHARS = CharSet("\"'")


def next_key_attribute(src: ByteSpan) -> Optional[Tuple[ByteSpan, ByteSpan]]:
    """Read the next ``name="value"`` pair from ``src``.

    Values end at the same quote character that opened them; there is no
    escaping inside.  Returns ``None`` at the end of input, at a ``/`` (the
    tail of a self-closing tag), or when a value is unterminated.
    """
    src.skip_while(WSP_CHARS)
    if not src:
        return None
    if src.peek() == 0x2F:  # '/'
        return None

    key = trim(token_char(src, 0x3D))  # '='

    data = src.data
    pos, end = src.start, src.end
    while pos < end and not _QUOTE_CHARS(data[pos]):
        pos += 1
    if pos >= end:
        src.start = end
        return None

    quote = data[pos]
    begin = pos + 1
    close = data.find(bytes((quote,)), begin, end)
    if close < 0:
        src.start = end
        return None
    src.start = close + 1
    return key, ByteSpan._make(data, begin, close)


def next_css_key_value(
    src: ByteSpan, field_delimiter: int = 0x3B, key_value_separator: int = 0x3A
) -> Optional[Tuple[ByteSpan, ByteSpan]]:
    """Read the next ``key:value;`` property from an inline style list."""
    src.skip_while(WSP_CHARS)
    if not src:
        return None
    value = token_char(src, field_delimiter)
    key = token_char(value, key_value_separator)
    return trim(key), trim(value)


__all__ = [
    "ByteSpan",
    "as_span",
    "ltrim",
    "rtrim",
    "trim",
    "token",
    "token_char",
    "find",
    "find_char",
    "read_quoted",
    "read_bracketed",
    "next_key_attribute",
    "next_css_key_value",
]
