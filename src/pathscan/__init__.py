"""Byte-level SVG scanning and path geometry."""
from __future__ import annotations

from .bytespan import ByteSpan
from .curves import CurveArena, compute_length, evaluate, find_t_at_length
from .document import iter_path_elements, iter_path_programs
from .filters import CurveSegment, DashFilter, ProgramCurveSource, WidthOutlineFilter
from .pathprogram import PathOp, PathProgram, format_path_program, parse_path
from .xmlscan import XmlElement, XmlElementKind, XmlScanner, XmlScanParams

__version__ = "0.1.0"

__all__ = [
    "ByteSpan",
    "CurveArena",
    "CurveSegment",
    "DashFilter",
    "PathOp",
    "PathProgram",
    "ProgramCurveSource",
    "WidthOutlineFilter",
    "XmlElement",
    "XmlElementKind",
    "XmlScanParams",
    "XmlScanner",
    "compute_length",
    "evaluate",
    "find_t_at_length",
    "format_path_program",
    "iter_path_elements",
    "iter_path_programs",
    "parse_path",
]
