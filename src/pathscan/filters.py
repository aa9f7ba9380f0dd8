"""Curve segment sources and filters.

Sources and filters are single-pass iterators of :class:`CurveSegment`.  A
segment refers to its curve through a :class:`~pathscan.curves.CurveArena`
handle plus a ``[t0, t1]`` parameter range, so filters can be chained
without copying geometry::

    arena = CurveArena()
    source = ProgramCurveSource(parse_path("M0 0 L100 0"), arena)
    for seg in DashFilter(arena, source, [10, 5]):
        ...
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

import numpy as np

from .curves import (
    Curve,
    CurveArena,
    LineCurve,
    compute_length,
    evaluate,
    find_t_at_length,
    normal,
    program_curves,
    sub_curve,
)
from .pathprogram import PathProgram

log = logging.getLogger(__name__)


@dataclass
class CurveSegment:
    """A ``[t0, t1]`` piece of the curve at ``handle``.

    ``arc_start``/``arc_end`` are distances from the start of the segment's
    source range, measured along the curve.
    """

    handle: int
    t0: float = 0.0
    t1: float = 1.0
    visible: bool = True
    start: Optional[np.ndarray] = None
    end: Optional[np.ndarray] = None
    arc_start: float = 0.0
    arc_end: float = 0.0

    @property
    def arc_length(self) -> float:
        return self.arc_end - self.arc_start


def segment_curve(arena: CurveArena, seg: CurveSegment) -> Curve:
    """The curve a segment covers, as a sub curve when it is not the full range."""
    curve = arena[seg.handle]
    if seg.t0 == 0.0 and seg.t1 == 1.0:
        return curve
    return sub_curve(curve, seg.t0, seg.t1)


def _full_segment(arena: CurveArena, handle: int, length_steps: int = 50) -> CurveSegment:
    curve = arena[handle]
    return CurveSegment(
        handle,
        0.0,
        1.0,
        True,
        evaluate(curve, 0.0),
        evaluate(curve, 1.0),
        0.0,
        compute_length(curve, length_steps),
    )


class CurveSource:
    """Emits the whole curve at ``handle`` once."""

    def __init__(self, handle: int, arena: Optional[CurveArena] = None) -> None:
        self.handle = handle
        self.arena = arena
        self._emitted = False

    def __iter__(self) -> Iterator[CurveSegment]:
        return self

    def __next__(self) -> CurveSegment:
        if self._emitted:
            raise StopIteration
        self._emitted = True
        if self.arena is None:
            return CurveSegment(self.handle)
        return _full_segment(self.arena, self.handle)


class ProgramCurveSource:
    """One segment per drawing op of a path program, curves added to ``arena``."""

    def __init__(self, program: PathProgram, arena: CurveArena, length_steps: int = 50) -> None:
        self.arena = arena
        self.length_steps = length_steps
        self._handles = program_curves(program, arena)

    def __iter__(self) -> Iterator[CurveSegment]:
        return self

    def __next__(self) -> CurveSegment:
        return _full_segment(self.arena, next(self._handles), self.length_steps)


class DashFilter:
    """Splits each input segment into alternating on/off pieces.

    ``pattern`` lists dash and gap lengths.  An odd-length pattern is
    repeated twice per cycle, as for ``stroke-dasharray``.  ``offset`` shifts
    the start of the pattern along each input segment.  The pattern restarts
    at the start of every input segment.

    With ``visible_only`` the gaps are dropped; otherwise every piece is
    emitted with ``visible`` set accordingly, and the pieces of one input
    segment exactly cover its length.
    """

    def __init__(
        self,
        arena: CurveArena,
        source: Iterable[CurveSegment],
        pattern: Sequence[float],
        arc_steps: int = 100,
        offset: float = 0.0,
        visible_only: bool = False,
        max_iterations: int = 20,
    ) -> None:
        self.arena = arena
        self.max_iterations = max_iterations
        self.source = iter(source)
        self.pattern: List[float] = [float(v) for v in pattern] or [1.0]
        self.arc_steps = arc_steps
        self.offset = float(offset)
        self.visible_only = visible_only
        self.solid = False

        cycle = sum(self.pattern)
        if len(self.pattern) % 2:
            cycle *= 2
        if cycle <= 0.0 or any(v < 0.0 for v in self.pattern):
            log.warning("dash pattern %s has no positive length; drawing solid", self.pattern)
            self.solid = True
        else:
            self.offset %= cycle

        self.pattern_index = 0
        self.draw = True
        self._segments = self._run()

    def __iter__(self) -> Iterator[CurveSegment]:
        return self

    def __next__(self) -> CurveSegment:
        return next(self._segments)

    def _advance_pattern(self) -> None:
        self.pattern_index = (self.pattern_index + 1) % len(self.pattern)
        self.draw = not self.draw

    def _run(self) -> Iterator[CurveSegment]:
        pattern = self.pattern
        steps = self.arc_steps
        for base in self.source:
            if not base.visible:
                if not self.visible_only:
                    yield base
                continue

            curve = segment_curve(self.arena, base)
            total = compute_length(curve, steps)
            if self.solid:
                yield CurveSegment(
                    base.handle, base.t0, base.t1, True,
                    evaluate(curve, 0.0), evaluate(curve, 1.0), 0.0, total,
                )
                continue

            t_span = base.t1 - base.t0
            self.pattern_index = 0
            self.draw = True
            offset = self.offset
            while offset >= pattern[self.pattern_index]:
                offset -= pattern[self.pattern_index]
                self._advance_pattern()
            remaining = pattern[self.pattern_index] - offset

            arc_len0 = 0.0
            while arc_len0 < total:
                arc_len1 = min(arc_len0 + remaining, total)
                t0 = find_t_at_length(curve, arc_len0, self.max_iterations, steps)
                t1 = find_t_at_length(curve, arc_len1, self.max_iterations, steps)
                visible = self.draw
                seg = CurveSegment(
                    base.handle,
                    base.t0 + t0 * t_span,
                    base.t0 + t1 * t_span,
                    visible,
                    evaluate(curve, t0),
                    evaluate(curve, t1),
                    arc_len0,
                    arc_len1,
                )
                arc_len0 = arc_len1
                self._advance_pattern()
                remaining = pattern[self.pattern_index]
                if visible or not self.visible_only:
                    yield seg


WidthFn = Callable[[float], float]


class WidthOutlineFilter:
    """Outlines each visible input segment as a variable width stroke.

    For every segment the filter samples ``steps + 1`` points, offsets them
    by half of ``width_fn(t)`` along the normal, and emits straight pieces
    down the left side, across the end, back up the right side and across
    the start, closing the outline.  The pieces are new :class:`LineCurve`
    entries in ``arena``.
    """

    def __init__(
        self,
        arena: CurveArena,
        source: Iterable[CurveSegment],
        width_fn: WidthFn,
        steps: int = 40,
    ) -> None:
        self.arena = arena
        self.source = iter(source)
        self.width_fn = width_fn
        self.steps = max(1, int(steps))
        self._segments = self._run()

    def __iter__(self) -> Iterator[CurveSegment]:
        return self

    def __next__(self) -> CurveSegment:
        return next(self._segments)

    def _line(self, p0: np.ndarray, p1: np.ndarray) -> CurveSegment:
        handle = self.arena.add(LineCurve(p0, p1))
        line = self.arena[handle]
        return CurveSegment(handle, 0.0, 1.0, True, line.p0, line.p1, 0.0, compute_length(line))

    def offset_points(self, curve: Curve, direction: float) -> np.ndarray:
        ts = np.linspace(0.0, 1.0, self.steps + 1)
        half = 0.5 * np.array([self.width_fn(float(t)) for t in ts])
        return evaluate(curve, ts) + normal(curve, ts) * (direction * half)[:, None]

    def _run(self) -> Iterator[CurveSegment]:
        for base in self.source:
            if not base.visible:
                continue
            curve = segment_curve(self.arena, base)
            left = self.offset_points(curve, -1.0)
            right = self.offset_points(curve, 1.0)

            for i in range(self.steps):
                yield self._line(left[i], left[i + 1])
            yield self._line(left[-1], right[-1])
            for i in range(self.steps, 0, -1):
                yield self._line(right[i], right[i - 1])
            yield self._line(right[0], left[0])


def brush_variable_width(
    arena: CurveArena,
    source: Iterable[CurveSegment],
    width_fn: WidthFn,
    steps: int = 40,
) -> WidthOutlineFilter:
    return WidthOutlineFilter(arena, source, width_fn, steps)


__all__ = [
    "CurveSegment",
    "segment_curve",
    "CurveSource",
    "ProgramCurveSource",
    "DashFilter",
    "WidthOutlineFilter",
    "brush_variable_width",
]
