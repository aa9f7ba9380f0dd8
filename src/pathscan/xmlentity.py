from __future__ import annotations

import logging
from typing import Union

from .bytespan import ByteSpan, as_span, token_char

log = logging.getLogger(__name__)

XML_ENTITIES = {
    b"lt": b"<",
    b"gt": b">",
    b"amp": b"&",
    b"apos": b"'",
    b"quot": b'"',
}


def _codepoint(ref: bytes) -> bytes:
    try:
        if ref[:1] in (b"x", b"X"):
            value = int(ref[1:], 16)
        else:
            value = int(ref, 10)
        return chr(value).encode("utf-8")
    except (ValueError, OverflowError):
        log.debug("dropping invalid character reference &#%s;", ref.decode("latin-1"))
        return b""


def expand_entities(source: Union[ByteSpan, bytes, str]) -> bytes:
    """Expand the predefined XML entities and numeric character references.

    Unknown named entities are dropped.  The result is a new ``bytes``
    object; the source buffer is not modified.
    """
    s = as_span(source)
    data = s.data
    if data.find(b"&", s.start, s.end) < 0:
        return s.tobytes()

    out = bytearray()
    while s:
        amp = data.find(b"&", s.start, s.end)
        if amp < 0:
            out += data[s.start:s.end]
            break
        out += data[s.start:amp]
        s.start = amp + 1
        ref = token_char(s, 0x3B).tobytes()  # ';'
        if ref.startswith(b"#"):
            out += _codepoint(ref[1:])
        else:
            replacement = XML_ENTITIES.get(ref)
            if replacement is None:
                log.debug("dropping unknown entity &%s;", ref.decode("latin-1"))
            else:
                out += replacement
    return bytes(out)


__all__ = ["XML_ENTITIES", "expand_entities"]
