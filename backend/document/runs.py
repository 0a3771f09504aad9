"""Turn formatted segments into WordprocessingML ``<w:r>`` elements."""

from dataclasses import replace
from typing import Iterable

from docx.oxml.ns import nsmap, qn
from lxml import etree

from document.markup import FormattedSegment

_W_NSMAP = {"w": nsmap["w"]}
XML_SPACE = "{http://www.w3.org/XML/1998/namespace}space"


def make_run(text: str, properties: etree._Element | None = None) -> etree._Element:
    """Build ``<w:r>[<w:rPr/>]<w:t xml:space="preserve">text</w:t></w:r>``.

    ``properties`` is attached as-is; pass a copy if it belongs to another run.
    """
    run = etree.Element(qn("w:r"), nsmap=_W_NSMAP)
    if properties is not None:
        run.append(properties)
    text_el = etree.SubElement(run, qn("w:t"))
    text_el.set(XML_SPACE, "preserve")
    text_el.text = text
    return run


def build_properties(segment: FormattedSegment) -> etree._Element | None:
    """Build a ``<w:rPr>`` for ``segment``, or None if nothing is set.

    Children follow the CT_RPr sequence order: rFonts, b, i, color, sz,
    szCs, highlight, u.
    """
    if segment.is_plain:
        return None

    props = etree.Element(qn("w:rPr"), nsmap=_W_NSMAP)
    if segment.font_family:
        fonts = etree.SubElement(props, qn("w:rFonts"))
        for attr in ("w:ascii", "w:hAnsi", "w:cs"):
            fonts.set(qn(attr), segment.font_family)
    if segment.bold:
        etree.SubElement(props, qn("w:b"))
    if segment.italic:
        etree.SubElement(props, qn("w:i"))
    if segment.color:
        etree.SubElement(props, qn("w:color")).set(qn("w:val"), segment.color)
    if segment.font_size:
        half_points = str(segment.font_size * 2)
        etree.SubElement(props, qn("w:sz")).set(qn("w:val"), half_points)
        etree.SubElement(props, qn("w:szCs")).set(qn("w:val"), half_points)
    if segment.highlight:
        etree.SubElement(props, qn("w:highlight")).set(qn("w:val"), segment.highlight)
    if segment.underline:
        etree.SubElement(props, qn("w:u")).set(qn("w:val"), "single")

    if len(props) == 0:
        return None
    return props


def synthesize_runs(
    segments: Iterable[FormattedSegment],
    font_family: str | None = None,
    font_size: int | None = None,
) -> list[etree._Element]:
    """Convert segments to runs, applying font overrides to every run.

    Overrides replace whatever the markup produced for that field.
    """
    runs = []
    for segment in segments:
        if font_family:
            segment = replace(segment, font_family=font_family)
        if font_size:
            segment = replace(segment, font_size=font_size)
        runs.append(make_run(segment.text, build_properties(segment)))
    return runs
