"""Number, flag and argument-list readers for SVG attribute values.

The readers consume from the front of a :class:`~pathscan.bytespan.ByteSpan`
and only move its ``start`` when they succeed.
"""
from __future__ import annotations

import re
from typing import List, Optional, Union

from .bytespan import ByteSpan, as_span
from .charset import WSP_CHARS

# [+-]? then digits with an optional fraction, or a bare fraction.  The
# exponent needs at least one digit, so "1em"/"2ex" stop before the unit.
_NUMBER_RE = re.compile(rb"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

NUMBER_SEPARATORS = WSP_CHARS + ","


def read_number(span: ByteSpan) -> Optional[float]:
    """Read a number sitting at the very start of ``span``."""
    if span.start >= span.end:
        return None
    m = _NUMBER_RE.match(span.data, span.start, span.end)
    if m is None:
        return None
    span.start = m.end()
    return float(m.group(0))


def parse_number(source: Union[ByteSpan, bytes, str]) -> Optional[float]:
    """Like :func:`read_number` but leaves the caller's span alone."""
    return read_number(as_span(source))


def read_next_number(span: ByteSpan) -> Optional[float]:
    span.skip_while(NUMBER_SEPARATORS)
    return read_number(span)


def read_next_flag(span: ByteSpan) -> Optional[int]:
    """Read an arc flag: exactly one ``0`` or ``1`` byte, no separator needed after it."""
    span.skip_while(NUMBER_SEPARATORS)
    c = span.peek()
    if c == 0x30 or c == 0x31:
        span.start += 1
        return c - 0x30
    return None


def read_numeric_arguments(span: ByteSpan, arg_types: str) -> Optional[List[float]]:
    """Read one value per letter of ``arg_types``.

    ``c`` (coordinate) and ``r`` (radius) read a number, ``f`` reads a flag.
    Returns ``None``, with ``span`` restored, unless every argument was read.
    """
    saved = span.start
    out: List[float] = []
    for kind in arg_types:
        if kind == "c" or kind == "r":
            value = read_next_number(span)
        elif kind == "f":
            flag = read_next_flag(span)
            value = None if flag is None else float(flag)
        else:
            raise ValueError(f"unknown argument type {kind!r}")
        if value is None:
            span.start = saved
            return None
        out.append(value)
    return out


def parse_number_list(source: Union[ByteSpan, bytes, str]) -> List[float]:
    """All numbers of a whitespace/comma separated list (``points``, dash arrays)."""
    span = as_span(source)
    values: List[float] = []
    while True:
        value = read_next_number(span)
        if value is None:
            break
        values.append(value)
    return values


__all__ = [
    "NUMBER_SEPARATORS",
    "read_number",
    "parse_number",
    "read_next_number",
    "read_next_flag",
    "read_numeric_arguments",
    "parse_number_list",
]
