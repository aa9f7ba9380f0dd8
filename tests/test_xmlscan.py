from __future__ import annotations

import pytest

from pathscan.xmlscan import XmlElementKind, XmlScanner, XmlScanParams, iter_elements

K = XmlElementKind


def _summary(source: bytes, params: XmlScanParams | None = None):
    return [(e.kind, e.name_span.tobytes(), e.data.tobytes()) for e in iter_elements(source, params)]


def test_basic_document_shape() -> None:
    elements = list(iter_elements(b'<a x="1"><b/>text</a>'))
    assert [e.kind for e in elements] == [K.START_TAG, K.SELF_CLOSING, K.CONTENT, K.END_TAG]
    assert elements[0].name == b"a"
    assert elements[1].name == b"b"
    assert elements[2].data == b"text"
    assert elements[3].name == b"a"
    assert elements[0].attribute("x") == b"1"
    assert elements[0].attribute("y") is None


def test_declaration_instruction_comment_and_cdata() -> None:
    src = (
        b'<?xml version="1.0"?>'
        b'<?xml-stylesheet href="a.css"?>'
        b"<!-- note -->"
        b"<![CDATA[x<y]]>"
    )
    assert _summary(src) == [
        (K.XMLDECL, b"xml", b'version="1.0"'),
        (K.PROCESSING_INSTRUCTION, b"xml-stylesheet", b'href="a.css"'),
        (K.COMMENT, b"", b" note "),
        (K.CDATA, b"", b"x<y"),
    ]


def test_skip_params_filter_kinds() -> None:
    src = b"<?pi x?><!--c--><![CDATA[d]]><e/>"
    params = XmlScanParams(skip_comments=True, skip_processing_instructions=True, skip_cdata=True)
    assert [e.kind for e in iter_elements(src, params)] == [K.SELF_CLOSING]


def test_whitespace_content_is_kept_when_not_skipped() -> None:
    src = b"<a> </a>"
    assert [e.kind for e in iter_elements(src)] == [K.START_TAG, K.END_TAG]
    kept = list(iter_elements(src, XmlScanParams(skip_whitespace=False)))
    assert [e.kind for e in kept] == [K.START_TAG, K.CONTENT, K.END_TAG]
    assert kept[1].data == b" "


def test_trailing_content_is_emitted() -> None:
    assert _summary(b"<a/>tail") == [(K.SELF_CLOSING, b"a", b""), (K.CONTENT, b"", b"tail")]


def test_quoted_gt_does_not_close_tag() -> None:
    elements = list(iter_elements(b'<a t="x>y" u=\'>\'>z'))
    assert elements[0].kind == K.START_TAG
    assert elements[0].attribute("t") == b"x>y"
    assert elements[0].attribute("u") == b">"
    assert elements[1].data == b"z"


def test_self_closing_with_attributes() -> None:
    (elem,) = iter_elements(b'<path d="M0 0L1 1" />')
    assert elem.kind == K.SELF_CLOSING
    assert elem.tag_name() == "path"
    assert elem.attribute("d") == b"M0 0L1 1"
    assert [(k.tobytes(), v.tobytes()) for k, v in elem.attributes()] == [(b"d", b"M0 0L1 1")]


def test_namespaced_names() -> None:
    (elem,) = iter_elements(b"<svg:path/>")
    assert elem.xml_name.ns == b"svg"
    assert elem.xml_name.name == b"path"
    assert elem.xml_name.fqname() == "svg:path"
    (plain,) = iter_elements(b"<g/>")
    assert plain.xml_name.ns.empty()
    assert plain.xml_name.fqname() == "g"


def test_doctype_with_internal_subset() -> None:
    src = b'<!DOCTYPE svg [ <!ENTITY a "b"> ]><svg/>'
    elements = list(iter_elements(src))
    assert elements[0].kind == K.DOCTYPE
    assert elements[0].name == b"svg"
    assert elements[0].data == b' <!ENTITY a "b"> '
    assert elements[1].kind == K.SELF_CLOSING


def test_doctype_external_id() -> None:
    src = b'<!DOCTYPE svg PUBLIC "-//W3C//DTD SVG 1.1//EN" "http://www.w3.org/Graphics/SVG/1.1/DTD/svg11.dtd">'
    (elem,) = iter_elements(src)
    assert elem.kind == K.DOCTYPE
    assert elem.data.starts_with(b'PUBLIC "-//W3C')
    assert elem.data.ends_with(b'svg11.dtd"')


def test_html_doctype() -> None:
    (elem,) = iter_elements(b"<!DOCTYPE html>")
    assert elem.kind == K.DOCTYPE
    assert elem.name == b"html"
    assert elem.data.empty()


def test_entity_declaration() -> None:
    (elem,) = iter_elements(b'<!ENTITY ns_svg "http://www.w3.org/2000/svg">')
    assert elem.kind == K.ENTITY
    assert elem.name == b"ns_svg"
    assert elem.data == b'"http://www.w3.org/2000/svg"'


def test_lowercase_doctype() -> None:
    elements = list(iter_elements(b"<!doctype html><html/>"))
    assert [e.kind for e in elements] == [K.DOCTYPE, K.SELF_CLOSING]
    assert elements[0].name == b"html"


def test_other_declarations_are_invalid_not_tags() -> None:
    scanner = XmlScanner(b"<!ELEMENT svg ANY><!ATTLIST svg x CDATA #IMPLIED><svg/>")
    elements = list(scanner)
    assert [e.kind for e in elements] == [K.INVALID, K.INVALID, K.SELF_CLOSING]
    assert elements[0].name == b"ELEMENT"
    assert elements[0].data == b"svg ANY"
    assert elements[1].name == b"ATTLIST"
    assert scanner.error is None


@pytest.mark.parametrize(
    "src, message",
    [
        (b"<a><!-- oops", "comment"),
        (b"<a><![CDATA[x", "CDATA"),
        (b'<a><b x="1', "tag"),
        (b"<a><!DOCTYPE svg [ <!ENTITY", "DOCTYPE"),
    ],
)
def test_malformed_markup_stops_with_error(src: bytes, message: str) -> None:
    scanner = XmlScanner(src)
    first = scanner.next_element()
    assert first is not None and first.kind == K.START_TAG
    assert scanner.next_element() is None
    assert scanner.error is not None and message in scanner.error
    assert scanner.source.start == 3
    assert scanner.next_element() is None


def test_matches_lxml_element_structure() -> None:
    etree = pytest.importorskip("lxml.etree")
    src = b"""<?xml version="1.0" encoding="UTF-8"?>
<!-- drawing -->
<svg width="100" height="50" viewBox="0 0 100 50">
  <g id="layer1" style="stroke:black">
    <path id="p1" d="M 10 10 L 90 10"/>
    <path id="p2" d='M10,20 C 20,30 40,30 50,20' stroke-dasharray="4 2"></path>
    <text x="5" y="45">label &amp; more</text>
  </g>
  <rect x="0" y="0" width="100" height="50"/>
</svg>
"""
    root = etree.fromstring(src)
    expected = [(el.tag, dict(el.attrib)) for el in root.iter() if isinstance(el.tag, str)]

    scanned = []
    for elem in iter_elements(src):
        if elem.kind in (K.START_TAG, K.SELF_CLOSING):
            attrs = {k.text(): v.text() for k, v in elem.attributes()}
            scanned.append((elem.tag_name(), attrs))
    assert scanned == expected

    ends = [e.tag_name() for e in iter_elements(src) if e.kind == K.END_TAG]
    assert ends == ["path", "text", "g", "svg"]
