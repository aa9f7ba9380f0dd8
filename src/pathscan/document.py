"""Glue between the XML scanner and the path pipeline.

Only what is written on the ``<path>`` element itself is used: there is no
style cascade, no ``<use>`` expansion and no transform handling.
"""
from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Tuple, Union

from .bytespan import ByteSpan, next_css_key_value, trim
from .numbers import parse_number, parse_number_list
from .pathprogram import PathProgram, parse_path
from .xmlentity import expand_entities
from .xmlscan import XmlElement, XmlScanner, XmlScanParams

log = logging.getLogger(__name__)

Source = Union[ByteSpan, bytes, str]


def iter_path_elements(
    source: Source, params: Optional[XmlScanParams] = None
) -> Iterator[Tuple[XmlElement, ByteSpan]]:
    """``(element, d)`` for every ``path`` start or self-closing tag with a `d` attribute."""
    scanner = XmlScanner(source, params)
    for elem in scanner:
        if not (elem.is_start() or elem.is_self_closing()):
            continue
        if elem.xml_name.name != b"path":
            continue
        d = elem.attribute("d")
        if d is None:
            log.debug("path element without d at offset %d", elem.name_span.start)
            continue
        yield elem, d
    if scanner.error is not None:
        log.warning("XML scan stopped early: %s", scanner.error)


def iter_path_programs(
    source: Source,
    reinject_moveto_after_close: bool = True,
    params: Optional[XmlScanParams] = None,
) -> Iterator[Tuple[XmlElement, PathProgram]]:
    for elem, d in iter_path_elements(source, params):
        yield elem, program_for(d, reinject_moveto_after_close)


def program_for(d: ByteSpan, reinject_moveto_after_close: bool = True) -> PathProgram:
    """Parse a raw `d` attribute value, expanding entity references first."""
    if d.data.find(b"&", d.start, d.end) >= 0:
        d = ByteSpan(expand_entities(d))
    return parse_path(d, reinject_moveto_after_close)


def style_property(elem: XmlElement, name: str) -> Optional[ByteSpan]:
    """Value of ``name`` from the element's inline ``style`` attribute."""
    style = elem.attribute("style")
    if style is None:
        return None
    src = style.copy()
    found: Optional[ByteSpan] = None
    while True:
        pair = next_css_key_value(src)
        if pair is None:
            break
        key, value = pair
        if key == name:
            found = value
    return found


def presentation_value(elem: XmlElement, name: str) -> Optional[ByteSpan]:
    """Inline style wins over the presentation attribute of the same name."""
    value = style_property(elem, name)
    if value is None:
        value = elem.attribute(name)
    return None if value is None else trim(value)


def dash_array_for(elem: XmlElement) -> Optional[List[float]]:
    value = presentation_value(elem, "stroke-dasharray")
    if value is None or not value or value == b"none":
        return None
    values = parse_number_list(value)
    return values or None


def dash_offset_for(elem: XmlElement) -> float:
    value = presentation_value(elem, "stroke-dashoffset")
    if value is None:
        return 0.0
    number = parse_number(value)
    return 0.0 if number is None else number


__all__ = [
    "iter_path_elements",
    "iter_path_programs",
    "program_for",
    "style_property",
    "presentation_value",
    "dash_array_for",
    "dash_offset_for",
]
