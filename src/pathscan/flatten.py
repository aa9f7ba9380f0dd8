from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple

import numpy as np

from .curves import ArcCurve
from .pathprogram import PathOp, PathProgram

log = logging.getLogger(__name__)

Polyline = List[Tuple[float, float]]

# Subdivision stops here even if the piece is still not flat (e.g. NaN input).
MAX_SUBDIVISION_DEPTH = 24


def _chord_distance(line: np.ndarray, norm: float, vec: np.ndarray) -> float:
    return abs(line[0] * vec[1] - line[1] * vec[0]) / norm


def _flatten_cubic(
    p0: np.ndarray, p1: np.ndarray, p2: np.ndarray, p3: np.ndarray, tol: float, depth: int = 0
) -> Polyline:
    def flat_enough(pa: np.ndarray, pb: np.ndarray, pc: np.ndarray, pd: np.ndarray) -> bool:
        line = pd - pa
        norm = math.hypot(line[0], line[1])
        if norm == 0:
            # closed loop: fall back to the control point distances from pa
            return max(math.hypot(*(pb - pa)), math.hypot(*(pc - pa))) <= tol
        return max(_chord_distance(line, norm, pb - pa), _chord_distance(line, norm, pc - pa)) <= tol

    if depth >= MAX_SUBDIVISION_DEPTH or flat_enough(p0, p1, p2, p3):
        return [(float(p0[0]), float(p0[1])), (float(p3[0]), float(p3[1]))]

    p01 = (p0 + p1) / 2.0
    p12 = (p1 + p2) / 2.0
    p23 = (p2 + p3) / 2.0
    p012 = (p01 + p12) / 2.0
    p123 = (p12 + p23) / 2.0
    p0123 = (p012 + p123) / 2.0

    left = _flatten_cubic(p0, p01, p012, p0123, tol, depth + 1)
    right = _flatten_cubic(p0123, p123, p23, p3, tol, depth + 1)
    return left[:-1] + right


def _flatten_quadratic(p0: np.ndarray, p1: np.ndarray, p2: np.ndarray, tol: float, depth: int = 0) -> Polyline:
    line = p2 - p0
    norm = math.hypot(line[0], line[1])
    if norm == 0:
        dist = math.hypot(*(p1 - p0))
    else:
        dist = _chord_distance(line, norm, p1 - p0)
    if depth >= MAX_SUBDIVISION_DEPTH or dist <= tol:
        return [(float(p0[0]), float(p0[1])), (float(p2[0]), float(p2[1]))]

    p01 = (p0 + p1) / 2.0
    p12 = (p1 + p2) / 2.0
    p012 = (p01 + p12) / 2.0
    left = _flatten_quadratic(p0, p01, p012, tol, depth + 1)
    right = _flatten_quadratic(p012, p12, p2, tol, depth + 1)
    return left[:-1] + right


def arc_to_cubics(arc: ArcCurve) -> List[Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]]:
    """Approximate ``arc`` with cubic Beziers spanning at most a quarter turn each."""
    if arc.delta_theta == 0.0:
        return []
    cos_phi = math.cos(arc.phi)
    sin_phi = math.sin(arc.phi)
    cx, cy = arc.center
    rx, ry = arc.rx, arc.ry

    segments = max(1, int(math.ceil(abs(arc.delta_theta) / (math.pi / 2 + 1e-9))))
    delta = arc.delta_theta / segments
    e = 4 * math.tan(delta / 4) / 3

    def point(theta: float) -> np.ndarray:
        c, s = math.cos(theta), math.sin(theta)
        return np.array([cx + rx * c * cos_phi - ry * s * sin_phi, cy + rx * c * sin_phi + ry * s * cos_phi])

    def derivative(theta: float) -> np.ndarray:
        c, s = math.cos(theta), math.sin(theta)
        return np.array([-rx * s * cos_phi - ry * c * sin_phi, -rx * s * sin_phi + ry * c * cos_phi])

    result = []
    for i in range(segments):
        t1 = arc.theta1 + i * delta
        t2 = t1 + delta
        p_start = point(t1)
        p_end = point(t2)
        result.append((p_start, p_start + derivative(t1) * e, p_end - derivative(t2) * e, p_end))
    return result


def flatten_program(program: PathProgram, tolerance: float = 0.25) -> List[Polyline]:
    """Polylines for every subpath of ``program``.

    Curves are subdivided until their control points lie within ``tolerance``
    of the chord.  Closed subpaths end on their first point.  Subpaths that
    never draw (a lone moveto) are dropped.
    """
    if tolerance <= 0:
        raise ValueError("tolerance must be positive")

    polylines: List[Polyline] = []
    current = np.array([0.0, 0.0])
    start = np.array([0.0, 0.0])
    poly: Optional[Polyline] = None

    def ensure_poly() -> Polyline:
        nonlocal poly
        if poly is None:
            poly = [(float(current[0]), float(current[1]))]
            polylines.append(poly)
        return poly

    for op, a in program:
        if op == PathOp.MOVETO:
            current = np.array(a, dtype=float)
            start = current.copy()
            poly = None
            ensure_poly()
        elif op == PathOp.LINETO:
            target = np.array(a, dtype=float)
            ensure_poly().append((float(target[0]), float(target[1])))
            current = target
        elif op == PathOp.QUADTO:
            ctrl = np.array(a[0:2], dtype=float)
            target = np.array(a[2:4], dtype=float)
            ensure_poly().extend(_flatten_quadratic(current, ctrl, target, tolerance)[1:])
            current = target
        elif op == PathOp.CUBICTO:
            c1 = np.array(a[0:2], dtype=float)
            c2 = np.array(a[2:4], dtype=float)
            target = np.array(a[4:6], dtype=float)
            ensure_poly().extend(_flatten_cubic(current, c1, c2, target, tolerance)[1:])
            current = target
        elif op == PathOp.ARCTO:
            rx, ry, rot, large, sweep, x, y = a
            target = np.array([x, y], dtype=float)
            pts = ensure_poly()
            try:
                arc = ArcCurve.from_endpoints(current, target, rx, ry, rot, large > 0.5, sweep > 0.5)
            except ValueError:
                pts.append((float(x), float(y)))
            else:
                for c0, c1, c2, c3 in arc_to_cubics(arc):
                    pts.extend(_flatten_cubic(c0, c1, c2, c3, tolerance)[1:])
                # pin the exact endpoint over the accumulated trig error
                if len(pts) > 1:
                    pts[-1] = (float(x), float(y))
            current = target
        elif op == PathOp.CLOSE:
            if poly is not None and poly[0] != poly[-1]:
                poly.append(poly[0])
            current = start.copy()
            poly = None

    return [p for p in polylines if len(p) > 1]


__all__ = ["arc_to_cubics", "flatten_program", "MAX_SUBDIVISION_DEPTH"]
