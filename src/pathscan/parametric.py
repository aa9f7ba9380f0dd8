from __future__ import annotations

from typing import Callable, List, Optional, Tuple

EasingFn = Callable[[float, float], float]


def linear_easing(local_t: float, global_t: float) -> float:
    return local_t


class ParametricStopMap:
    """Piecewise function over ``[0, 1]`` defined by ``(offset, value)`` stops.

    ``evaluate(t)`` interpolates between the two stops around ``t``.  The
    easing function receives the position between those stops (0..1) and
    the clamped global ``t``, and returns the interpolation weight.  Stops
    may be added in any order.
    """

    def __init__(self, easing: Optional[EasingFn] = None) -> None:
        self._stops: List[Tuple[float, float]] = []
        self._sorted = True
        self.easing: EasingFn = easing or linear_easing

    def add_stop(self, offset: float, value: float) -> "ParametricStopMap":
        self._stops.append((float(offset), float(value)))
        self._sorted = False
        return self

    def set_easing(self, easing: EasingFn) -> None:
        self.easing = easing

    @property
    def stops(self) -> List[Tuple[float, float]]:
        self._sort()
        return list(self._stops)

    def _sort(self) -> None:
        if not self._sorted:
            # stable, so equal offsets keep insertion order
            self._stops.sort(key=lambda s: s[0])
            self._sorted = True

    def evaluate(self, t: float) -> float:
        stops = self._stops
        if not stops:
            return 0.0
        if len(stops) == 1:
            return stops[0][1]
        self._sort()

        t = min(max(float(t), 0.0), 1.0)
        if t <= stops[0][0]:
            return stops[0][1]
        for (off_a, val_a), (off_b, val_b) in zip(stops, stops[1:]):
            if t <= off_b:
                span = off_b - off_a
                if span <= 1e-8:
                    return val_a
                local_t = (t - off_a) / span
                weight = self.easing(local_t, t)
                return val_a + (val_b - val_a) * weight
        return stops[-1][1]

    __call__ = evaluate

    def __len__(self) -> int:
        return len(self._stops)


__all__ = ["ParametricStopMap", "linear_easing"]
