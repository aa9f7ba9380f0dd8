"""Byte character classes.

A :class:`CharSet` answers "is byte ``c`` a member of this class" with a single
table lookup.  The table holds 256 entries, so only single byte encodings are
covered; that is all the scanners need since XML markup and SVG path data are
ASCII.
"""
from __future__ import annotations

from typing import Union

CharsLike = Union[str, bytes, "CharSet"]


def _table_from(chars: CharsLike) -> bytearray:
    if isinstance(chars, CharSet):
        return bytearray(chars._bits)
    if isinstance(chars, str):
        chars = chars.encode("latin-1")
    bits = bytearray(256)
    for c in chars:
        bits[c] = 1
    return bits


class CharSet:
    """Immutable 256 entry membership table."""

    __slots__ = ("_bits",)

    def __init__(self, chars: CharsLike = "") -> None:
        self._bits = bytes(_table_from(chars))

    def __contains__(self, c: int) -> bool:
        return self._bits[c] != 0

    def __call__(self, c: int) -> bool:
        return self._bits[c] != 0

    def __getitem__(self, c: int) -> bool:
        return self._bits[c] != 0

    def test(self, c: int) -> bool:
        return self._bits[c] != 0

    def __add__(self, other: CharsLike) -> "CharSet":
        bits = bytearray(self._bits)
        for i, v in enumerate(_table_from(other)):
            if v:
                bits[i] = 1
        return CharSet._from_table(bits)

    def __sub__(self, other: CharsLike) -> "CharSet":
        bits = bytearray(self._bits)
        for i, v in enumerate(_table_from(other)):
            if v:
                bits[i] = 0
        return CharSet._from_table(bits)

    def __invert__(self) -> "CharSet":
        return CharSet._from_table(bytearray(0 if v else 1 for v in self._bits))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CharSet):
            return NotImplemented
        return self._bits == other._bits

    def __hash__(self) -> int:
        return hash(self._bits)

    def __repr__(self) -> str:
        members = "".join(chr(i) for i, v in enumerate(self._bits) if v)
        return f"CharSet({members!r})"

    @classmethod
    def _from_table(cls, bits: bytearray) -> "CharSet":
        obj = cls.__new__(cls)
        obj._bits = bytes(bits)
        return obj


def is_digit(c: int) -> bool:
    return 0x30 <= c <= 0x39


def is_alpha(c: int) -> bool:
    return 0x41 <= c <= 0x5A or 0x61 <= c <= 0x7A


def is_space(c: int) -> bool:
    return c in (0x20, 0x09, 0x0A, 0x0D)


def to_lower(c: int) -> int:
    return c | 0x20 if 0x41 <= c <= 0x5A else c


def to_upper(c: int) -> int:
    return c & ~0x20 if 0x61 <= c <= 0x7A else c


WSP_CHARS = CharSet("\t\r\n\f\v ")
ALPHA_CHARS = CharSet("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz")
DIGIT_CHARS = CharSet("0123456789")
HEX_DIGIT_CHARS = CharSet("0123456789ABCDEFabcdef")

# ASCII subset of the XML Name / NCName productions
XML_NAME_START_CHARS = ALPHA_CHARS + "_"
XML_NAME_CHARS = ALPHA_CHARS + DIGIT_CHARS + ".-_:"
XML_NCNAME_CHARS = ALPHA_CHARS + DIGIT_CHARS + ".-_"


__all__ = [
    "CharSet",
    "is_digit",
    "is_alpha",
    "is_space",
    "to_lower",
    "to_upper",
    "WSP_CHARS",
    "ALPHA_CHARS",
    "DIGIT_CHARS",
    "HEX_DIGIT_CHARS",
    "XML_NAME_START_CHARS",
    "XML_NAME_CHARS",
    "XML_NCNAME_CHARS",
]
