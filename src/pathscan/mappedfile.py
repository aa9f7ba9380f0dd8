from __future__ import annotations

import logging
import mmap
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from .bytespan import ByteSpan

log = logging.getLogger(__name__)


@contextmanager
def open_mapped(path: Union[str, Path]) -> Iterator[ByteSpan]:
    """Map ``path`` read-only and yield a span over the whole file.

    Spans derived from the yielded one must not be used after the ``with``
    block exits; the mapping is closed there.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input not found: {p}")
    with p.open("rb") as fh:
        size = p.stat().st_size
        if size == 0:
            # mmap refuses zero length mappings
            log.debug("open_mapped: %s is empty", p)
            yield ByteSpan(b"")
            return
        mapped = mmap.mmap(fh.fileno(), 0, access=mmap.ACCESS_READ)
        try:
            log.debug("open_mapped: %s (%d bytes)", p, size)
            yield ByteSpan(mapped)
        finally:
            mapped.close()


__all__ = ["open_mapped"]
