"""Element-level XML scanner.

:class:`XmlScanner` breaks a buffer into :class:`XmlElement` records (tags,
text content, comments, CDATA, processing instructions, DOCTYPE and ENTITY
declarations) without building a tree and without copying: every span on an
element points back into the source buffer.

It is deliberately not a conforming XML parser.  Nesting is not checked,
entities are not expanded (see :mod:`pathscan.xmlentity`) and DTDs are only
skipped over.  The scanner stops at the first construct it cannot close and
reports why in ``error``.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator, Optional, Tuple, Union

from .bytespan import (
    ByteSpan,
    as_span,
    ltrim,
    next_key_attribute,
    read_quoted,
    rtrim,
    trim,
)
from .charset import WSP_CHARS

log = logging.getLogger(__name__)


class XmlElementKind(IntEnum):
    INVALID = 0
    XMLDECL = 1
    START_TAG = 2
    END_TAG = 3
    SELF_CLOSING = 4
    CONTENT = 5
    COMMENT = 6
    PROCESSING_INSTRUCTION = 7
    CDATA = 8
    DOCTYPE = 9
    ENTITY = 10


@dataclass
class XmlScanParams:
    skip_comments: bool = False
    skip_processing_instructions: bool = False
    skip_whitespace: bool = True
    skip_cdata: bool = False


@dataclass
class XmlName:
    """Qualified name split at the first ``:``."""

    ns: ByteSpan = field(default_factory=ByteSpan)
    name: ByteSpan = field(default_factory=ByteSpan)

    @classmethod
    def from_span(cls, qname: ByteSpan) -> "XmlName":
        colon = qname.data.find(b":", qname.start, qname.end)
        if colon < 0:
            return cls(ByteSpan._make(qname.data, qname.start, qname.start), qname.copy())
        return cls(
            ByteSpan._make(qname.data, qname.start, colon),
            ByteSpan._make(qname.data, colon + 1, qname.end),
        )

    def fqname(self) -> str:
        if self.ns:
            return f"{self.ns.text()}:{self.name.text()}"
        return self.name.text()


@dataclass
class XmlElement:
    kind: XmlElementKind
    name_span: ByteSpan = field(default_factory=ByteSpan)
    data: ByteSpan = field(default_factory=ByteSpan)
    xml_name: XmlName = field(default_factory=XmlName)

    @property
    def name(self) -> ByteSpan:
        return self.xml_name.name

    def tag_name(self) -> str:
        return self.xml_name.name.text()

    def is_xml_decl(self) -> bool:
        return self.kind == XmlElementKind.XMLDECL

    def is_start(self) -> bool:
        return self.kind == XmlElementKind.START_TAG

    def is_self_closing(self) -> bool:
        return self.kind == XmlElementKind.SELF_CLOSING

    def is_end(self) -> bool:
        return self.kind == XmlElementKind.END_TAG

    def is_content(self) -> bool:
        return self.kind == XmlElementKind.CONTENT

    def is_comment(self) -> bool:
        return self.kind == XmlElementKind.COMMENT

    def is_processing_instruction(self) -> bool:
        return self.kind == XmlElementKind.PROCESSING_INSTRUCTION

    def is_cdata(self) -> bool:
        return self.kind == XmlElementKind.CDATA

    def is_doctype(self) -> bool:
        return self.kind == XmlElementKind.DOCTYPE

    def is_entity_declaration(self) -> bool:
        return self.kind == XmlElementKind.ENTITY

    def attributes(self) -> Iterator[Tuple[ByteSpan, ByteSpan]]:
        """``(key, value)`` spans in document order.  Values are raw (entities unexpanded)."""
        src = self.data.copy()
        while True:
            pair = next_key_attribute(src)
            if pair is None:
                return
            yield pair

    def attribute(self, name: Union[str, bytes]) -> Optional[ByteSpan]:
        for key, value in self.attributes():
            if key == name:
                return value
        return None


# Everything up to the closing '>' of a tag, skipping quoted attribute values.
_TAG_BODY_RE = re.compile(rb"(?:[^>\"']|\"[^\"]*\"|'[^']*')*>")
_SUBSET_END_RE = re.compile(rb"\][\t\r\n\f\v ]*>")

_NAME_STOP = WSP_CHARS + "/?>["


def _scan_name(data, pos: int, end: int) -> int:
    while pos < end and not _NAME_STOP(data[pos]):
        pos += 1
    return pos


class XmlScanner:
    """Pull scanner producing one :class:`XmlElement` per call.

    ``next_element()`` returns ``None`` at the end of input or on malformed
    markup; in the latter case ``error`` says why and the cursor is left on
    the ``<`` that opened the failing construct.
    """

    def __init__(self, source: Union[ByteSpan, bytes, str], params: Optional[XmlScanParams] = None) -> None:
        self.source = as_span(source)
        self.params = params or XmlScanParams()
        self.in_tag = False
        self.error: Optional[str] = None

    def __iter__(self) -> Iterator[XmlElement]:
        return self

    def __next__(self) -> XmlElement:
        elem = self.next_element()
        if elem is None:
            raise StopIteration
        return elem

    def next_element(self) -> Optional[XmlElement]:
        params = self.params
        while True:
            before = (self.source.start, self.in_tag)
            elem = self._scan()
            if elem is None:
                return None
            if (self.source.start, self.in_tag) == before:
                self._fail("scanner made no progress")
                return None
            kind = elem.kind
            if kind == XmlElementKind.COMMENT and params.skip_comments:
                continue
            if kind == XmlElementKind.PROCESSING_INSTRUCTION and params.skip_processing_instructions:
                continue
            if kind == XmlElementKind.CDATA and params.skip_cdata:
                continue
            return elem

    # -- internals -----------------------------------------------------------
    def _fail(self, message: str) -> None:
        self.error = message
        log.debug("xml scanner stopped at offset %d: %s", self.source.start, message)

    def _scan(self) -> Optional[XmlElement]:
        src = self.source
        while self.error is None and src.start < src.end:
            if self.in_tag:
                return self._read_markup()

            data = src.data
            start = src.start
            lt = data.find(b"<", start, src.end)
            if lt < 0:
                lt = src.end
            else:
                self.in_tag = True
            src.start = lt

            content = ByteSpan._make(data, start, lt)
            if self.params.skip_whitespace:
                content = trim(content)
            if content:
                return XmlElement(XmlElementKind.CONTENT, data=content)
        return None

    def _read_markup(self) -> Optional[XmlElement]:
        src = self.source
        data = src.data
        lt = src.start
        body = lt + 1
        rest = ByteSpan._make(data, body, src.end)

        if rest.starts_with(b"?"):
            return self._read_processing_instruction(body + 1)
        if rest.starts_with(b"!--"):
            return self._read_delimited(XmlElementKind.COMMENT, body + 3, b"-->", "unterminated comment")
        if rest.starts_with(b"![CDATA["):
            return self._read_delimited(XmlElementKind.CDATA, body + 8, b"]]>", "unterminated CDATA section")
        if bytes(data[body:body + 8]).upper() == b"!DOCTYPE":
            return self._read_doctype(body + 8)
        if rest.starts_with(b"!ENTITY"):
            return self._read_entity(body + 7)
        if rest.starts_with(b"!"):
            return self._read_declaration(body + 1)
        if rest.starts_with(b"/"):
            return self._read_tag(XmlElementKind.END_TAG, body + 1)
        return self._read_tag(XmlElementKind.START_TAG, body)

    def _find_close(self, pos: int) -> int:
        m = _TAG_BODY_RE.match(self.source.data, pos, self.source.end)
        if m is None:
            return -1
        return m.end() - 1

    def _finish(self, resume_at: int) -> None:
        self.source.start = resume_at
        self.in_tag = False

    def _read_tag(self, kind: XmlElementKind, pos: int) -> Optional[XmlElement]:
        gt = self._find_close(pos)
        if gt < 0:
            self._fail("missing '>' for tag")
            return None
        data = self.source.data
        chunk = rtrim(ByteSpan._make(data, pos, gt))
        if kind == XmlElementKind.START_TAG and chunk.ends_with(b"/"):
            kind = XmlElementKind.SELF_CLOSING
            chunk.end -= 1

        name_end = _scan_name(data, chunk.start, chunk.end)
        name_span = ByteSpan._make(data, chunk.start, name_end)
        attrs = trim(ByteSpan._make(data, name_end, chunk.end))
        self._finish(gt + 1)
        return XmlElement(kind, name_span, attrs, XmlName.from_span(name_span))

    def _read_processing_instruction(self, pos: int) -> Optional[XmlElement]:
        gt = self._find_close(pos)
        if gt < 0:
            self._fail("missing '>' for processing instruction")
            return None
        data = self.source.data
        chunk = rtrim(ByteSpan._make(data, pos, gt))
        if chunk.ends_with(b"?"):
            chunk.end -= 1
        name_end = _scan_name(data, chunk.start, chunk.end)
        target = ByteSpan._make(data, chunk.start, name_end)
        body = trim(ByteSpan._make(data, name_end, chunk.end))
        kind = XmlElementKind.XMLDECL if target == b"xml" else XmlElementKind.PROCESSING_INSTRUCTION
        self._finish(gt + 1)
        return XmlElement(kind, target, body, XmlName.from_span(target))

    def _read_delimited(self, kind: XmlElementKind, pos: int, terminator: bytes, message: str) -> Optional[XmlElement]:
        data = self.source.data
        close = data.find(terminator, pos, self.source.end)
        if close < 0:
            self._fail(message)
            return None
        self._finish(close + len(terminator))
        return XmlElement(kind, data=ByteSpan._make(data, pos, close))

    def _read_entity(self, pos: int) -> Optional[XmlElement]:
        gt = self._find_close(pos)
        if gt < 0:
            self._fail("missing '>' for entity declaration")
            return None
        data = self.source.data
        chunk = trim(ByteSpan._make(data, pos, gt))
        name_end = _scan_name(data, chunk.start, chunk.end)
        name_span = ByteSpan._make(data, chunk.start, name_end)
        value = trim(ByteSpan._make(data, name_end, chunk.end))
        self._finish(gt + 1)
        return XmlElement(XmlElementKind.ENTITY, name_span, value, XmlName.from_span(name_span))

    def _read_declaration(self, pos: int) -> Optional[XmlElement]:
        # <!ELEMENT>, <!ATTLIST> and friends outside a DOCTYPE: passed over as INVALID
        gt = self._find_close(pos)
        if gt < 0:
            self._fail("missing '>' for declaration")
            return None
        data = self.source.data
        chunk = trim(ByteSpan._make(data, pos, gt))
        name_end = _scan_name(data, chunk.start, chunk.end)
        name_span = ByteSpan._make(data, chunk.start, name_end)
        body = trim(ByteSpan._make(data, name_end, chunk.end))
        log.debug("unsupported declaration <!%s> at offset %d", name_span.text(), pos - 2)
        self._finish(gt + 1)
        return XmlElement(XmlElementKind.INVALID, name_span, body, XmlName.from_span(name_span))

    def _read_doctype(self, pos: int) -> Optional[XmlElement]:
        data = self.source.data
        end = self.source.end
        s = ltrim(ByteSpan._make(data, pos, end))
        name_end = _scan_name(data, s.start, end)
        root = ByteSpan._make(data, s.start, name_end)
        s.start = name_end
        s.skip_while(WSP_CHARS)
        ids_start = s.start

        if s.starts_with(b"PUBLIC"):
            s.advance(6)
            if read_quoted(s) is None:
                self._fail("DOCTYPE PUBLIC without a public identifier")
                return None
            read_quoted(s)
        elif s.starts_with(b"SYSTEM"):
            s.advance(6)
            if read_quoted(s) is None:
                self._fail("DOCTYPE SYSTEM without a system identifier")
                return None
        ids = trim(ByteSpan._make(data, ids_start, s.start))
        s.skip_while(WSP_CHARS)

        c = s.peek()
        if c == 0x3E:  # >
            self._finish(s.start + 1)
            return XmlElement(XmlElementKind.DOCTYPE, root, ids, XmlName.from_span(root))
        if c == 0x5B:  # [
            m = _SUBSET_END_RE.search(data, s.start + 1, end)
            if m is None:
                self._fail("unterminated DOCTYPE internal subset")
                return None
            subset = ByteSpan._make(data, s.start + 1, m.start())
            self._finish(m.end())
            return XmlElement(XmlElementKind.DOCTYPE, root, subset, XmlName.from_span(root))

        self._fail("malformed DOCTYPE")
        return None


def iter_elements(source: Union[ByteSpan, bytes, str], params: Optional[XmlScanParams] = None) -> Iterator[XmlElement]:
    return iter(XmlScanner(source, params))


__all__ = [
    "XmlElementKind",
    "XmlScanParams",
    "XmlName",
    "XmlElement",
    "XmlScanner",
    "iter_elements",
]
