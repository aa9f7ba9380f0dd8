"""Parametric curves over ``t`` in ``[0, 1]``.

Curve kinds are plain frozen dataclasses; behaviour lives in the module
functions (:func:`evaluate`, :func:`tangent`, :func:`normal`,
:func:`compute_length`, :func:`find_t_at_length`) which dispatch on the
kind.  Every function accepts a scalar ``t`` (returning a point of shape
``(2,)``) or an array of ``t`` values (returning shape ``(N, 2)``).

Arc length is approximated by inscribed polylines, so lengths are slightly
short on strongly curved pieces; raise ``steps`` where that matters.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterator, List, Sequence, Tuple, Union

import numpy as np

from .pathprogram import PathOp, PathProgram

log = logging.getLogger(__name__)

PointLike = Union[Sequence[float], np.ndarray]
TLike = Union[float, np.ndarray]

LENGTH_STEPS = 50
ARC_LENGTH_TOLERANCE = 1e-4


def _pt(p: PointLike) -> np.ndarray:
    arr = np.array(p, dtype=float).reshape(2)
    arr.setflags(write=False)
    return arr


def _t(t: TLike) -> np.ndarray:
    return np.clip(np.asarray(t, dtype=float), 0.0, 1.0)[..., None]


@dataclass(frozen=True, eq=False)
class LineCurve:
    p0: np.ndarray
    p1: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "p0", _pt(self.p0))
        object.__setattr__(self, "p1", _pt(self.p1))


@dataclass(frozen=True, eq=False)
class QuadraticCurve:
    """Quadratic Bezier stored in power basis: ``(a t + b) t + c``."""

    p0: np.ndarray
    p1: np.ndarray
    p2: np.ndarray
    a: np.ndarray = field(init=False, repr=False)
    b: np.ndarray = field(init=False, repr=False)
    c: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        p0, p1, p2 = _pt(self.p0), _pt(self.p1), _pt(self.p2)
        b = 2.0 * (p1 - p0)
        object.__setattr__(self, "p0", p0)
        object.__setattr__(self, "p1", p1)
        object.__setattr__(self, "p2", p2)
        object.__setattr__(self, "c", p0)
        object.__setattr__(self, "b", b)
        object.__setattr__(self, "a", p2 - p0 - b)


@dataclass(frozen=True, eq=False)
class CubicCurve:
    """Cubic Bezier stored in power basis: ``((a t + b) t + c) t + d``."""

    p0: np.ndarray
    p1: np.ndarray
    p2: np.ndarray
    p3: np.ndarray
    a: np.ndarray = field(init=False, repr=False)
    b: np.ndarray = field(init=False, repr=False)
    c: np.ndarray = field(init=False, repr=False)
    d: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        p0, p1, p2, p3 = _pt(self.p0), _pt(self.p1), _pt(self.p2), _pt(self.p3)
        c = 3.0 * (p1 - p0)
        b = 3.0 * (p2 - 2.0 * p1 + p0)
        object.__setattr__(self, "p0", p0)
        object.__setattr__(self, "p1", p1)
        object.__setattr__(self, "p2", p2)
        object.__setattr__(self, "p3", p3)
        object.__setattr__(self, "d", p0)
        object.__setattr__(self, "c", c)
        object.__setattr__(self, "b", b)
        object.__setattr__(self, "a", p3 - p0 - c - b)


@dataclass(frozen=True, eq=False)
class ArcCurve:
    """Elliptical arc in center form.

    ``theta`` runs from ``theta1`` to ``theta1 + delta_theta``; ``phi`` is the
    x-axis rotation in radians.  Build from SVG endpoint parameters with
    :meth:`from_endpoints`.
    """

    center: np.ndarray
    rx: float
    ry: float
    phi: float
    theta1: float
    delta_theta: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", _pt(self.center))

    @classmethod
    def from_endpoints(
        cls,
        p0: PointLike,
        p1: PointLike,
        rx: float,
        ry: float,
        x_axis_rotation_deg: float,
        large_arc: bool,
        sweep: bool,
    ) -> "ArcCurve":
        if rx == 0 or ry == 0:
            raise ValueError("arc radius must be non-zero")

        x1, y1 = (float(v) for v in p0)
        x2, y2 = (float(v) for v in p1)
        rx_abs = abs(float(rx))
        ry_abs = abs(float(ry))
        phi = math.radians(float(x_axis_rotation_deg) % 360.0)
        cos_phi = math.cos(phi)
        sin_phi = math.sin(phi)

        if x1 == x2 and y1 == y2:
            # zero sweep; place the center so that every t evaluates to p0
            return cls((x1 - rx_abs * cos_phi, y1 - rx_abs * sin_phi), rx_abs, ry_abs, phi, 0.0, 0.0)

        dx = (x1 - x2) / 2.0
        dy = (y1 - y2) / 2.0
        x1p = cos_phi * dx + sin_phi * dy
        y1p = -sin_phi * dx + cos_phi * dy

        lam = (x1p ** 2) / (rx_abs ** 2) + (y1p ** 2) / (ry_abs ** 2)
        if lam > 1:
            scale = math.sqrt(lam)
            rx_abs *= scale
            ry_abs *= scale

        sign = -1.0 if bool(large_arc) == bool(sweep) else 1.0
        numerator = rx_abs ** 2 * ry_abs ** 2 - rx_abs ** 2 * y1p ** 2 - ry_abs ** 2 * x1p ** 2
        denom = rx_abs ** 2 * y1p ** 2 + ry_abs ** 2 * x1p ** 2
        if denom == 0:
            denom = 1e-12
        coef = sign * math.sqrt(max(0.0, numerator / denom))
        cxp = coef * (rx_abs * y1p) / ry_abs
        cyp = coef * -(ry_abs * x1p) / rx_abs

        cx = cos_phi * cxp - sin_phi * cyp + (x1 + x2) / 2.0
        cy = sin_phi * cxp + cos_phi * cyp + (y1 + y2) / 2.0

        def angle(u: Tuple[float, float], v: Tuple[float, float]) -> float:
            ux, uy = u
            vx, vy = v
            return math.atan2(ux * vy - uy * vx, ux * vx + uy * vy)

        v1 = ((x1p - cxp) / rx_abs, (y1p - cyp) / ry_abs)
        v2 = ((-x1p - cxp) / rx_abs, (-y1p - cyp) / ry_abs)

        theta1 = angle((1.0, 0.0), v1)
        delta_theta = angle(v1, v2)
        if not sweep and delta_theta > 0:
            delta_theta -= 2 * math.pi
        elif sweep and delta_theta < 0:
            delta_theta += 2 * math.pi

        return cls((cx, cy), rx_abs, ry_abs, phi, theta1, delta_theta)


@dataclass(frozen=True, eq=False)
class SubCurve:
    """The ``[t0, t1]`` piece of ``base``, reparameterized onto ``[0, 1]``."""

    base: "Curve"
    t0: float
    t1: float


Curve = Union[LineCurve, QuadraticCurve, CubicCurve, ArcCurve, SubCurve]


def sub_curve(curve: Curve, t0: float, t1: float) -> SubCurve:
    if isinstance(curve, SubCurve):
        span = curve.t1 - curve.t0
        return SubCurve(curve.base, curve.t0 + t0 * span, curve.t0 + t1 * span)
    return SubCurve(curve, float(t0), float(t1))


# ---------------------------------------------------------------------------
# evaluation
# ---------------------------------------------------------------------------

def evaluate(curve: Curve, t: TLike) -> np.ndarray:
    """Point(s) on ``curve`` at ``t``; ``t`` is clamped to ``[0, 1]``."""
    if isinstance(curve, LineCurve):
        tt = _t(t)
        return curve.p0 + tt * (curve.p1 - curve.p0)
    if isinstance(curve, CubicCurve):
        tt = _t(t)
        return ((curve.a * tt + curve.b) * tt + curve.c) * tt + curve.d
    if isinstance(curve, QuadraticCurve):
        tt = _t(t)
        return (curve.a * tt + curve.b) * tt + curve.c
    if isinstance(curve, ArcCurve):
        theta = curve.theta1 + curve.delta_theta * np.clip(np.asarray(t, dtype=float), 0.0, 1.0)
        cos_t = np.cos(theta)
        sin_t = np.sin(theta)
        cos_phi = math.cos(curve.phi)
        sin_phi = math.sin(curve.phi)
        x = curve.center[0] + curve.rx * cos_t * cos_phi - curve.ry * sin_t * sin_phi
        y = curve.center[1] + curve.rx * cos_t * sin_phi + curve.ry * sin_t * cos_phi
        return np.stack([x, y], axis=-1)
    if isinstance(curve, SubCurve):
        tc = np.clip(np.asarray(t, dtype=float), 0.0, 1.0)
        return evaluate(curve.base, curve.t0 + tc * (curve.t1 - curve.t0))
    raise TypeError(f"not a curve: {type(curve).__name__}")


def tangent(curve: Curve, t: TLike) -> np.ndarray:
    """Unnormalized derivative ``dP/dt``."""
    if isinstance(curve, LineCurve):
        tt = np.asarray(t, dtype=float)[..., None]
        return np.zeros_like(tt) + (curve.p1 - curve.p0)
    if isinstance(curve, CubicCurve):
        tt = _t(t)
        return (3.0 * curve.a * tt + 2.0 * curve.b) * tt + curve.c
    if isinstance(curve, QuadraticCurve):
        tt = _t(t)
        return 2.0 * curve.a * tt + curve.b
    if isinstance(curve, ArcCurve):
        theta = curve.theta1 + curve.delta_theta * np.clip(np.asarray(t, dtype=float), 0.0, 1.0)
        dx = -curve.rx * np.sin(theta) * curve.delta_theta
        dy = curve.ry * np.cos(theta) * curve.delta_theta
        cos_phi = math.cos(curve.phi)
        sin_phi = math.sin(curve.phi)
        return np.stack([dx * cos_phi - dy * sin_phi, dx * sin_phi + dy * cos_phi], axis=-1)
    if isinstance(curve, SubCurve):
        tc = np.clip(np.asarray(t, dtype=float), 0.0, 1.0)
        span = curve.t1 - curve.t0
        return tangent(curve.base, curve.t0 + tc * span) * span
    raise TypeError(f"not a curve: {type(curve).__name__}")


def normal(curve: Curve, t: TLike) -> np.ndarray:
    """Unit tangent rotated a quarter turn: ``(-ty, tx)``.  Zero where the tangent vanishes."""
    tan = tangent(curve, t)
    norm = np.linalg.norm(tan, axis=-1, keepdims=True)
    unit = np.divide(tan, norm, out=np.zeros_like(tan), where=norm > 1e-12)
    return np.stack([-unit[..., 1], unit[..., 0]], axis=-1)


# ---------------------------------------------------------------------------
# arc length
# ---------------------------------------------------------------------------

def approximate_arc_length(curve: Curve, t0: float, t1: float, steps: int = 10) -> float:
    if isinstance(curve, LineCurve):
        lo, hi = (min(max(v, 0.0), 1.0) for v in (t0, t1))
        return abs(hi - lo) * float(np.hypot(*(curve.p1 - curve.p0)))
    steps = max(1, int(steps))
    pts = evaluate(curve, np.linspace(t0, t1, steps + 1))
    return float(np.hypot(*np.diff(pts, axis=0).T).sum())


def compute_length(curve: Curve, steps: int = LENGTH_STEPS) -> float:
    """Polyline length through ``steps + 1`` uniform samples; exact for lines."""
    return approximate_arc_length(curve, 0.0, 1.0, steps)


def find_t_at_length(
    curve: Curve,
    length: float,
    max_iterations: int = 20,
    steps: int = LENGTH_STEPS,
) -> float:
    """Parameter at which the arc length from ``t = 0`` reaches ``length``.

    Partial lengths are measured with the same sample count as the total,
    so the result is non-decreasing in ``length`` and ``total`` maps to 1.
    """
    if length <= 0.0:
        return 0.0
    if isinstance(curve, LineCurve):
        total = compute_length(curve)
        if total <= 1e-8:
            return 0.0
        return min(max(length / total, 0.0), 1.0)

    total = compute_length(curve, steps)
    if length >= total:
        return 1.0

    lo, hi = 0.0, 1.0
    mid = 0.5
    for _ in range(max_iterations):
        mid = 0.5 * (lo + hi)
        partial = approximate_arc_length(curve, 0.0, mid, steps)
        if abs(partial - length) < ARC_LENGTH_TOLERANCE:
            break
        if partial < length:
            lo = mid
        else:
            hi = mid
    return min(max(mid, 0.0), 1.0)


# ---------------------------------------------------------------------------
# sampling
# ---------------------------------------------------------------------------

def sample_parametric(curve: Curve, steps: int) -> Iterator[Tuple[np.ndarray, float]]:
    """``steps + 1`` points at uniform ``t``."""
    steps = max(1, int(steps))
    for i in range(steps + 1):
        t = i / steps
        yield evaluate(curve, t), t


def sample_arc_length(
    curve: Curve, steps: int, length_steps: int = LENGTH_STEPS
) -> Iterator[Tuple[np.ndarray, float]]:
    """``steps + 1`` points spaced evenly along the curve."""
    steps = max(1, int(steps))
    total = compute_length(curve, length_steps)
    for i in range(steps + 1):
        t = find_t_at_length(curve, total * i / steps, steps=length_steps)
        yield evaluate(curve, t), t


# ---------------------------------------------------------------------------
# arena
# ---------------------------------------------------------------------------

class CurveArena:
    """Owns the curves of one path; segments refer to them by integer handle."""

    def __init__(self) -> None:
        self._curves: List[Curve] = []

    def add(self, curve: Curve) -> int:
        self._curves.append(curve)
        return len(self._curves) - 1

    def __getitem__(self, handle: int) -> Curve:
        return self._curves[handle]

    def __len__(self) -> int:
        return len(self._curves)

    def __iter__(self) -> Iterator[Curve]:
        return iter(self._curves)

    def clear(self) -> None:
        self._curves.clear()


def program_curves(program: PathProgram, arena: CurveArena) -> Iterator[int]:
    """Add one curve per drawing op of ``program`` and yield its handle.

    ``CLOSE`` contributes the closing line only when it has length.  Arcs with
    a zero radius become straight lines.
    """
    current = (0.0, 0.0)
    start = (0.0, 0.0)
    for op, a in program:
        if op == PathOp.MOVETO:
            current = (a[0], a[1])
            start = current
        elif op == PathOp.LINETO:
            end = (a[0], a[1])
            yield arena.add(LineCurve(current, end))
            current = end
        elif op == PathOp.QUADTO:
            end = (a[2], a[3])
            yield arena.add(QuadraticCurve(current, (a[0], a[1]), end))
            current = end
        elif op == PathOp.CUBICTO:
            end = (a[4], a[5])
            yield arena.add(CubicCurve(current, (a[0], a[1]), (a[2], a[3]), end))
            current = end
        elif op == PathOp.ARCTO:
            end = (a[5], a[6])
            try:
                curve: Curve = ArcCurve.from_endpoints(current, end, a[0], a[1], a[2], a[3] > 0.5, a[4] > 0.5)
            except ValueError:
                log.debug("zero radius arc to %s drawn as a line", end)
                curve = LineCurve(current, end)
            yield arena.add(curve)
            current = end
        elif op == PathOp.CLOSE:
            if current != start:
                yield arena.add(LineCurve(current, start))
            current = start


__all__ = [
    "LineCurve",
    "QuadraticCurve",
    "CubicCurve",
    "ArcCurve",
    "SubCurve",
    "Curve",
    "sub_curve",
    "evaluate",
    "tangent",
    "normal",
    "approximate_arc_length",
    "compute_length",
    "find_t_at_length",
    "sample_parametric",
    "sample_arc_length",
    "CurveArena",
    "program_curves",
]
