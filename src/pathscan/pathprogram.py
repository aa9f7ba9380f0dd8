"""Normalized path programs.

A :class:`PathProgram` is the canonical form of an SVG ``d`` attribute: a
list of absolute drawing ops (``MOVETO``, ``LINETO``, ``QUADTO``,
``CUBICTO``, ``ARCTO``, ``CLOSE``) terminated by one ``END``, with all
operands stored in one flat list.  Relative commands, ``H``/``V``, smooth
curves and the implicit lineto after a moveto are resolved by
:class:`PathNormalizer` while the program is built.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from .bytespan import ByteSpan
from .pathsegment import PathSegment, PathSegmentReader

log = logging.getLogger(__name__)


class PathOp(IntEnum):
    END = 0
    MOVETO = 1
    LINETO = 2
    CUBICTO = 3
    QUADTO = 4
    ARCTO = 5
    CLOSE = 6


PATH_OP_ARITY = (0, 2, 2, 6, 4, 7, 0)

Instruction = Tuple[PathOp, Tuple[float, ...]]


class PathProgramError(ValueError):
    """Raised when a :class:`PathProgramBuilder` is driven out of order."""


@dataclass
class PathProgram:
    ops: List[PathOp] = field(default_factory=list)
    args: List[float] = field(default_factory=list)

    def __iter__(self) -> Iterator[Instruction]:
        ap = 0
        args = self.args
        for op in self.ops:
            if op == PathOp.END:
                return
            n = PATH_OP_ARITY[op]
            yield op, tuple(args[ap:ap + n])
            ap += n

    def instructions(self) -> List[Instruction]:
        return list(self)

    def args_array(self) -> np.ndarray:
        return np.asarray(self.args, dtype=np.float32)

    def is_terminated(self) -> bool:
        return bool(self.ops) and self.ops[-1] == PathOp.END

    def drawing_op_count(self) -> int:
        return sum(1 for op in self.ops if op not in (PathOp.MOVETO, PathOp.END))

    def clear(self) -> None:
        self.ops.clear()
        self.args.clear()


class PathProgramBuilder:
    """Emits absolute ops into a :class:`PathProgram` and tracks pen state."""

    def __init__(self, program: Optional[PathProgram] = None) -> None:
        self.program = program if program is not None else PathProgram()
        self.current_point = (0.0, 0.0)
        self.subpath_start = (0.0, 0.0)
        self.has_current_point = False
        self.subpath_open = False
        self.ended = False

    def reset(self) -> None:
        self.program.clear()
        self.current_point = (0.0, 0.0)
        self.subpath_start = (0.0, 0.0)
        self.has_current_point = False
        self.subpath_open = False
        self.ended = False

    def _emit(self, op: PathOp, *args: float) -> None:
        self.program.ops.append(op)
        self.program.args.extend(float(a) for a in args)

    def _check_drawing(self, what: str) -> None:
        if self.ended:
            raise PathProgramError(f"{what} after finalize()")
        if not self.has_current_point:
            raise PathProgramError(f"{what} without a current point")

    def move_to(self, x: float, y: float) -> None:
        if self.ended:
            raise PathProgramError("move_to after finalize()")
        self._emit(PathOp.MOVETO, x, y)
        self.current_point = (float(x), float(y))
        self.subpath_start = self.current_point
        self.has_current_point = True
        self.subpath_open = True

    def line_to(self, x: float, y: float) -> None:
        self._check_drawing("line_to")
        self._emit(PathOp.LINETO, x, y)
        self.current_point = (float(x), float(y))
        self.subpath_open = True

    def quad_to(self, x1: float, y1: float, x: float, y: float) -> None:
        self._check_drawing("quad_to")
        self._emit(PathOp.QUADTO, x1, y1, x, y)
        self.current_point = (float(x), float(y))
        self.subpath_open = True

    def cubic_to(self, x1: float, y1: float, x2: float, y2: float, x: float, y: float) -> None:
        self._check_drawing("cubic_to")
        self._emit(PathOp.CUBICTO, x1, y1, x2, y2, x, y)
        self.current_point = (float(x), float(y))
        self.subpath_open = True

    def arc_to(
        self,
        rx: float,
        ry: float,
        x_axis_rotation: float,
        large_arc: float,
        sweep: float,
        x: float,
        y: float,
    ) -> None:
        self._check_drawing("arc_to")
        self._emit(
            PathOp.ARCTO,
            rx,
            ry,
            x_axis_rotation,
            1.0 if large_arc > 0.5 else 0.0,
            1.0 if sweep > 0.5 else 0.0,
            x,
            y,
        )
        self.current_point = (float(x), float(y))
        self.subpath_open = True

    def close(self) -> None:
        self._check_drawing("close")
        if not self.subpath_open:
            raise PathProgramError("close without an open subpath")
        self._emit(PathOp.CLOSE)
        self.current_point = self.subpath_start
        self.subpath_open = False

    def finalize(self) -> PathProgram:
        if not self.ended:
            self._emit(PathOp.END)
            self.ended = True
        return self.program


_CUBIC_COMMANDS = frozenset("CcSs")
_QUAD_COMMANDS = frozenset("QqTt")


class PathNormalizer:
    """Turns raw :class:`PathSegment` records into absolute builder calls."""

    def __init__(self, builder: PathProgramBuilder, reinject_moveto_after_close: bool = True) -> None:
        self.builder = builder
        self.reinject_moveto_after_close = reinject_moveto_after_close
        self.reset()

    def reset(self) -> None:
        self.cx = 0.0
        self.cy = 0.0
        self.sx = 0.0
        self.sy = 0.0
        self.has_current_point = False
        self.last_cubic_ctrl: Optional[Tuple[float, float]] = None
        self.last_quad_ctrl: Optional[Tuple[float, float]] = None
        self.prev_command = "M"
        self.just_closed = False

    def __call__(self, seg: PathSegment) -> None:
        self.consume(seg)

    def _set_current(self, x: float, y: float) -> None:
        self.cx = x
        self.cy = y
        self.has_current_point = True

    def _finish(self, command: str, cubic_ctrl=None, quad_ctrl=None) -> None:
        self.last_cubic_ctrl = cubic_ctrl
        self.last_quad_ctrl = quad_ctrl
        self.prev_command = command
        self.just_closed = False

    def consume(self, seg: PathSegment) -> None:
        cmd = seg.command
        a = seg.args
        b = self.builder
        upper = cmd.upper()
        rel = cmd != upper

        if upper == "M":
            if rel:
                x, y = self.cx + a[0], self.cy + a[1]
            else:
                x, y = a[0], a[1]
            if seg.iteration == 0:
                b.move_to(x, y)
                self.sx, self.sy = x, y
            else:
                b.line_to(x, y)
            self._set_current(x, y)
            self._finish(cmd)
            return

        if not self.has_current_point:
            if upper == "Z":
                log.debug("closepath before any moveto; skipped")
                return
            log.warning("path command %r before any moveto; starting at (0, 0)", cmd)
            b.move_to(0.0, 0.0)
            self.sx, self.sy = 0.0, 0.0
            self._set_current(0.0, 0.0)

        if upper == "Z":
            if not b.subpath_open:
                log.debug("closepath with no open subpath; skipped")
                return
            b.close()
            self._set_current(self.sx, self.sy)
            self._finish(cmd)
            self.just_closed = True
            return

        if self.just_closed and self.reinject_moveto_after_close:
            b.move_to(self.cx, self.cy)
        cx, cy = self.cx, self.cy
        ox, oy = (cx, cy) if rel else (0.0, 0.0)

        if upper == "L":
            x, y = ox + a[0], oy + a[1]
            b.line_to(x, y)
            self._set_current(x, y)
            self._finish(cmd)
        elif upper == "H":
            x = (cx + a[0]) if rel else a[0]
            b.line_to(x, cy)
            self._set_current(x, cy)
            self._finish(cmd)
        elif upper == "V":
            y = (cy + a[0]) if rel else a[0]
            b.line_to(cx, y)
            self._set_current(cx, y)
            self._finish(cmd)
        elif upper == "C":
            x1, y1 = ox + a[0], oy + a[1]
            x2, y2 = ox + a[2], oy + a[3]
            x, y = ox + a[4], oy + a[5]
            b.cubic_to(x1, y1, x2, y2, x, y)
            self._set_current(x, y)
            self._finish(cmd, cubic_ctrl=(x2, y2))
        elif upper == "S":
            x2, y2 = ox + a[0], oy + a[1]
            x, y = ox + a[2], oy + a[3]
            x1, y1 = cx, cy
            if self.last_cubic_ctrl is not None and self.prev_command in _CUBIC_COMMANDS:
                x1 = 2.0 * cx - self.last_cubic_ctrl[0]
                y1 = 2.0 * cy - self.last_cubic_ctrl[1]
            b.cubic_to(x1, y1, x2, y2, x, y)
            self._set_current(x, y)
            self._finish(cmd, cubic_ctrl=(x2, y2))
        elif upper == "Q":
            x1, y1 = ox + a[0], oy + a[1]
            x, y = ox + a[2], oy + a[3]
            b.quad_to(x1, y1, x, y)
            self._set_current(x, y)
            self._finish(cmd, quad_ctrl=(x1, y1))
        elif upper == "T":
            x, y = ox + a[0], oy + a[1]
            x1, y1 = cx, cy
            if self.last_quad_ctrl is not None and self.prev_command in _QUAD_COMMANDS:
                x1 = 2.0 * cx - self.last_quad_ctrl[0]
                y1 = 2.0 * cy - self.last_quad_ctrl[1]
            b.quad_to(x1, y1, x, y)
            self._set_current(x, y)
            self._finish(cmd, quad_ctrl=(x1, y1))
        elif upper == "A":
            x, y = ox + a[5], oy + a[6]
            b.arc_to(a[0], a[1], a[2], a[3], a[4], x, y)
            self._set_current(x, y)
            self._finish(cmd)
        else:
            log.debug("unhandled path command %r", cmd)


def parse_path(
    source: Union[ByteSpan, bytes, str],
    reinject_moveto_after_close: bool = True,
) -> PathProgram:
    """Parse path data into a terminated :class:`PathProgram`.

    Malformed data does not raise: the program holds every op read before
    the first error.
    """
    reader = PathSegmentReader(source)
    builder = PathProgramBuilder()
    normalizer = PathNormalizer(builder, reinject_moveto_after_close)
    for seg in reader:
        normalizer.consume(seg)
    if reader.error is not None:
        log.debug("path data truncated: %s", reader.error)
    return builder.finalize()


def run_path_program(program: PathProgram, executor) -> None:
    """Call ``executor.execute(op, args)`` for every op up to ``END``."""
    for op, args in program:
        executor.execute(op, args)


# ---------------------------------------------------------------------------
# printing
# ---------------------------------------------------------------------------

def _fmt(value: float, precision: int) -> str:
    text = f"{value:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


_OP_LETTERS = {
    PathOp.MOVETO: "M",
    PathOp.LINETO: "L",
    PathOp.CUBICTO: "C",
    PathOp.QUADTO: "Q",
    PathOp.ARCTO: "A",
    PathOp.CLOSE: "Z",
}


class PathPrinter:
    """Executor that renders a program back into absolute path data."""

    def __init__(self, precision: int = 3) -> None:
        self.precision = precision
        self.parts: List[str] = []

    def execute(self, op: PathOp, args: Sequence[float]) -> None:
        letter = _OP_LETTERS[op]
        if op == PathOp.ARCTO:
            rx, ry, rot, large, sweep, x, y = args
            values = [
                _fmt(rx, self.precision),
                _fmt(ry, self.precision),
                _fmt(rot, self.precision),
                str(int(large)),
                str(int(sweep)),
                _fmt(x, self.precision),
                _fmt(y, self.precision),
            ]
        else:
            values = [_fmt(v, self.precision) for v in args]
        self.parts.append(" ".join([letter] + values) if values else letter)

    def text(self) -> str:
        return " ".join(self.parts)


def format_path_program(program: PathProgram, precision: int = 3) -> str:
    printer = PathPrinter(precision)
    run_path_program(program, printer)
    return printer.text()


# ---------------------------------------------------------------------------
# bounds
# ---------------------------------------------------------------------------

_ARC_BOUNDS_SAMPLES = 64


def _quad_extrema(p0: float, p1: float, p2: float) -> List[float]:
    d = p0 - 2.0 * p1 + p2
    if d == 0.0:
        return []
    t = (p0 - p1) / d
    return [t] if 0.0 < t < 1.0 else []


def _cubic_extrema(p0: float, p1: float, p2: float, p3: float) -> List[float]:
    # roots of the derivative, divided through by 3
    a = -p0 + 3.0 * p1 - 3.0 * p2 + p3
    b = 2.0 * (p0 - 2.0 * p1 + p2)
    c = p1 - p0
    if abs(a) < 1e-12:
        if abs(b) < 1e-12:
            return []
        roots = [-c / b]
    else:
        disc = b * b - 4.0 * a * c
        if disc < 0.0:
            return []
        s = math.sqrt(disc)
        roots = [(-b + s) / (2.0 * a), (-b - s) / (2.0 * a)]
    return [t for t in roots if 0.0 < t < 1.0]


def bounding_box(program: PathProgram) -> Optional[Tuple[float, float, float, float]]:
    """Tight ``(x, y, width, height)`` of the geometry, or ``None`` when empty."""
    from .curves import ArcCurve, evaluate

    xs: List[float] = []
    ys: List[float] = []
    cx = cy = sx = sy = 0.0

    for op, a in program:
        if op == PathOp.MOVETO:
            cx, cy = a
            sx, sy = cx, cy
            xs.append(cx)
            ys.append(cy)
        elif op == PathOp.LINETO:
            cx, cy = a
            xs.append(cx)
            ys.append(cy)
        elif op == PathOp.QUADTO:
            pts = np.array([[cx, cy], [a[0], a[1]], [a[2], a[3]]])
            ts = _quad_extrema(*pts[:, 0]) + _quad_extrema(*pts[:, 1]) + [1.0]
            for t in ts:
                mt = 1.0 - t
                p = mt * mt * pts[0] + 2.0 * mt * t * pts[1] + t * t * pts[2]
                xs.append(float(p[0]))
                ys.append(float(p[1]))
            cx, cy = a[2], a[3]
        elif op == PathOp.CUBICTO:
            pts = np.array([[cx, cy], [a[0], a[1]], [a[2], a[3]], [a[4], a[5]]])
            ts = _cubic_extrema(*pts[:, 0]) + _cubic_extrema(*pts[:, 1]) + [1.0]
            for t in ts:
                mt = 1.0 - t
                p = (
                    mt ** 3 * pts[0]
                    + 3.0 * mt * mt * t * pts[1]
                    + 3.0 * mt * t * t * pts[2]
                    + t ** 3 * pts[3]
                )
                xs.append(float(p[0]))
                ys.append(float(p[1]))
            cx, cy = a[4], a[5]
        elif op == PathOp.ARCTO:
            rx, ry, rot, large, sweep, x, y = a
            try:
                arc = ArcCurve.from_endpoints((cx, cy), (x, y), rx, ry, rot, large > 0.5, sweep > 0.5)
            except ValueError:
                xs.append(x)
                ys.append(y)
            else:
                pts = evaluate(arc, np.linspace(0.0, 1.0, _ARC_BOUNDS_SAMPLES + 1))
                xs.extend(float(v) for v in pts[:, 0])
                ys.extend(float(v) for v in pts[:, 1])
            cx, cy = x, y
        elif op == PathOp.CLOSE:
            cx, cy = sx, sy

    if not xs:
        return None
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)
    return min_x, min_y, max_x - min_x, max_y - min_y


__all__ = [
    "PathOp",
    "PATH_OP_ARITY",
    "PathProgram",
    "PathProgramError",
    "PathProgramBuilder",
    "PathNormalizer",
    "PathPrinter",
    "parse_path",
    "run_path_program",
    "format_path_program",
    "bounding_box",
]
