from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Dict, Iterator, List

from rich.table import Table


class Timings:
    """Wall-clock totals per named stage, accumulated over repeated entries."""

    def __init__(self) -> None:
        self.seconds: Dict[str, float] = {}
        self.counts: Dict[str, int] = {}
        self._order: List[str] = []

    @contextmanager
    def section(self, name: str) -> Iterator[None]:
        t0 = time.perf_counter()
        try:
            yield
        finally:
            dt = time.perf_counter() - t0
            if name not in self.seconds:
                self._order.append(name)
                self.seconds[name] = 0.0
                self.counts[name] = 0
            self.seconds[name] += dt
            self.counts[name] += 1

    @property
    def total(self) -> float:
        return sum(self.seconds.values())

    def summarize(self) -> str:
        lines = ["=== Timing Summary ==="]
        for name in self._order:
            lines.append(f"{name:24s} {self.seconds[name] * 1000:9.2f} ms  x{self.counts[name]}")
        lines.append("-" * 44)
        lines.append(f"{'Total':24s} {self.total * 1000:9.2f} ms")
        return "\n".join(lines)

    def table(self) -> Table:
        table = Table(title="Timings")
        table.add_column("Stage")
        table.add_column("ms", justify="right")
        table.add_column("calls", justify="right")
        for name in self._order:
            table.add_row(name, f"{self.seconds[name] * 1000:.2f}", str(self.counts[name]))
        table.add_row("total", f"{self.total * 1000:.2f}", "", style="bold")
        return table


__all__ = ["Timings"]
