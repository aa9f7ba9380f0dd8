"""Reader for the SVG path-data (``d`` attribute) command grammar.

The reader yields one :class:`PathSegment` per command argument group:
``"L 10 10 20 20"`` produces two ``L`` segments with iterations 0 and 1.
Coordinates are returned exactly as written; turning relative or shorthand
commands into absolute drawing ops is :mod:`pathscan.pathprogram`'s job.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Optional, Tuple, Union

from .bytespan import ByteSpan, as_span
from .charset import CharSet
from .numbers import NUMBER_SEPARATORS, read_numeric_arguments

log = logging.getLogger(__name__)

# c = coordinate, r = radius, f = single digit flag
_ARG_TYPES = {
    "A": "ccrffcc",
    "C": "cccccc",
    "H": "c",
    "L": "cc",
    "M": "cc",
    "Q": "cccc",
    "S": "cccc",
    "T": "cc",
    "V": "c",
    "Z": "",
}
SEGMENT_ARG_TYPES = MappingProxyType(
    {**_ARG_TYPES, **{k.lower(): v for k, v in _ARG_TYPES.items()}}
)

NUMBER_LEADING_CHARS = CharSet("0123456789.+-")


def segment_arg_types(command: str) -> Optional[str]:
    return SEGMENT_ARG_TYPES.get(command)


@dataclass(frozen=True)
class PathSegment:
    command: str
    iteration: int
    arg_types: str
    args: Tuple[float, ...]

    @property
    def is_relative(self) -> bool:
        return self.command.islower()


class PathSegmentReader:
    """Pull reader over a path-data span.

    ``next_segment()`` returns ``None`` at the end of input or on the first
    error; ``error`` is set in the second case and ``remains`` is left at the
    start of the command group that failed.
    """

    def __init__(self, source: Union[ByteSpan, bytes, str]) -> None:
        self.remains = as_span(source)
        self.command: Optional[str] = None
        self.arg_types: Optional[str] = None
        self.iteration = 0
        self.error: Optional[str] = None

    def has_more(self) -> bool:
        return self.error is None and bool(self.remains)

    def __iter__(self) -> Iterator[PathSegment]:
        return self

    def __next__(self) -> PathSegment:
        seg = self.next_segment()
        if seg is None:
            raise StopIteration
        return seg

    def _fail(self, offset: int, message: str) -> None:
        self.remains.start = offset
        self.error = message
        log.debug("path data error at offset %d: %s", offset, message)

    def next_segment(self) -> Optional[PathSegment]:
        if self.error is not None:
            return None
        rem = self.remains
        rem.skip_while(NUMBER_SEPARATORS)
        if rem.empty():
            return None

        group_start = rem.start
        c = rem.peek()
        if not NUMBER_LEADING_CHARS(c):
            command = chr(c)
            arg_types = SEGMENT_ARG_TYPES.get(command)
            if arg_types is None:
                self._fail(group_start, f"unknown path command {command!r}")
                return None
            self.command = command
            self.arg_types = arg_types
            self.iteration = 0
            rem.advance(1)
        elif self.command is None or self.arg_types is None:
            self._fail(group_start, "numbers before the first path command")
            return None
        elif not self.arg_types:
            self._fail(group_start, f"arguments after {self.command!r}")
            return None
        else:
            self.iteration += 1

        args = read_numeric_arguments(rem, self.arg_types)
        if args is None:
            self._fail(group_start, f"missing arguments for {self.command!r}")
            return None
        return PathSegment(self.command, self.iteration, self.arg_types, tuple(args))


def iter_segments(source: Union[ByteSpan, bytes, str]) -> Iterator[PathSegment]:
    return iter(PathSegmentReader(source))


__all__ = [
    "SEGMENT_ARG_TYPES",
    "NUMBER_LEADING_CHARS",
    "segment_arg_types",
    "PathSegment",
    "PathSegmentReader",
    "iter_segments",
]
