from __future__ import annotations

import logging

import pytest

from pathscan.bytespan import ByteSpan
from pathscan.document import (
    dash_array_for,
    dash_offset_for,
    iter_path_elements,
    iter_path_programs,
    presentation_value,
    program_for,
)
from pathscan.pathprogram import PathOp
from pathscan.xmlscan import iter_elements

SVG = b"""<?xml version="1.0"?>
<svg xmlns="http://www.w3.org/2000/svg" xmlns:svg="http://www.w3.org/2000/svg">
  <path id="a" d="M0 0 L10 0"/>
  <path id="no-d"/>
  <glyph d="M1 1 L2 2"/>
  <g>
    <path id="b" d="M 0 0 &#x4C; 5 5" stroke-dasharray="4 2"></path>
    <svg:path id="c" d="M1 1 h3"/>
  </g>
</svg>
"""


def test_iter_path_elements_selects_paths_with_data() -> None:
    found = [(elem.attribute("id").tobytes(), d.tobytes()) for elem, d in iter_path_elements(SVG)]
    assert found == [
        (b"a", b"M0 0 L10 0"),
        (b"b", b"M 0 0 &#x4C; 5 5"),
        (b"c", b"M1 1 h3"),
    ]


def test_iter_path_programs_expands_entities() -> None:
    programs = [program for _, program in iter_path_programs(SVG)]
    assert len(programs) == 3
    assert programs[1].instructions() == [(PathOp.MOVETO, (0.0, 0.0)), (PathOp.LINETO, (5.0, 5.0))]
    assert programs[2].instructions()[-1] == (PathOp.LINETO, (4.0, 1.0))


def test_program_for_plain_span() -> None:
    assert program_for(ByteSpan(b"M0 0 Z")).ops == [PathOp.MOVETO, PathOp.CLOSE, PathOp.END]


def test_truncated_document_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="pathscan"):
        found = list(iter_path_elements(b'<svg><path d="M0 0 L1 1"/><!-- never closed'))
    assert len(found) == 1
    assert "stopped early" in caplog.text


def _element(markup: bytes):
    return next(iter_elements(markup))


@pytest.mark.parametrize(
    "markup, expected",
    [
        (b'<path stroke-dasharray="4 2"/>', [4.0, 2.0]),
        (b'<path stroke-dasharray="4,2,1"/>', [4.0, 2.0, 1.0]),
        (b'<path stroke-dasharray="4 2" style="fill:none; stroke-dasharray: 1, 1"/>', [1.0, 1.0]),
        (b'<path stroke-dasharray="none"/>', None),
        (b'<path style="stroke-dasharray:none"/>', None),
        (b'<path stroke-dasharray=""/>', None),
        (b"<path/>", None),
    ],
)
def test_dash_array_for(markup: bytes, expected) -> None:
    assert dash_array_for(_element(markup)) == expected


def test_dash_offset_for() -> None:
    assert dash_offset_for(_element(b'<path stroke-dashoffset="2.5"/>')) == 2.5
    assert dash_offset_for(_element(b'<path style="stroke-dashoffset: -3"/>')) == -3.0
    assert dash_offset_for(_element(b'<path stroke-dashoffset="bogus"/>')) == 0.0
    assert dash_offset_for(_element(b"<path/>")) == 0.0


def test_presentation_value_trims() -> None:
    assert presentation_value(_element(b'<path stroke=" red "/>'), "stroke") == b"red"
    assert presentation_value(_element(b"<path/>"), "stroke") is None
