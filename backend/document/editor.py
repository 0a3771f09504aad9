"""Format-preserving DOCX find-and-replace.

Given original .docx bytes and a list of find/replace pairs whose
replacement text carries markdown emphasis, rewrites the matching runs in
``word/document.xml`` and repacks the archive. Every other archive entry
is copied through unchanged.
"""

import io
import logging
import re
import zipfile
import zlib
from dataclasses import dataclass
from typing import Iterable

from lxml import etree

from document.markup import parse_markdown
from document.rewriter import paragraph_text, rewrite_paragraph
from document.runs import synthesize_runs
from document.tree import find_paragraphs, walk

logger = logging.getLogger(__name__)

DOCUMENT_XML = "word/document.xml"

# XML-illegal control characters: 0x00-0x08, 0x0B, 0x0C, 0x0E-0x1F, 0x7F
# Tab (0x09), newline (0x0A), carriage return (0x0D) are allowed.
_XML_ILLEGAL_RE = re.compile(
    r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]"
)


class ContainerError(Exception):
    """Raised when the input is not a readable .docx container."""


@dataclass(frozen=True)
class ReplacementRequest:
    """One find/replace pair. ``font_size`` is in points."""

    find: str
    replace: str
    font_family: str | None = None
    font_size: int | None = None


def _sanitize_for_xml(text: str) -> str:
    """Strip characters that are illegal in XML from text."""
    return _XML_ILLEGAL_RE.sub("", text)


def replace_text(
    document_bytes: bytes,
    requests: Iterable[ReplacementRequest],
) -> bytes:
    """Apply ``requests`` in order and return new .docx bytes.

    Later requests see the text introduced by earlier ones. If no paragraph
    changes, the body entry is written back byte-for-byte.

    Raises:
        ContainerError: If the archive, its body entry, or the body XML
            cannot be read.
    """
    entries = _read_archive(document_bytes)
    body = _find_body(entries)
    root = _parse_body(body)

    changed = 0
    for request in requests:
        changed += apply_request(root, request)

    new_body = _serialize_body(root) if changed else body
    logger.info("DOCX replace: %d paragraph edit(s) applied", changed)
    return _write_archive(entries, new_body)


def apply_request(root: etree._Element, request: ReplacementRequest) -> int:
    """Apply one request to every paragraph under ``root``.

    Returns the number of paragraphs changed.
    """
    segments = parse_markdown(_sanitize_for_xml(request.replace))
    runs = synthesize_runs(segments, request.font_family, request.font_size)
    changed = 0

    def _visit(paragraph: etree._Element) -> None:
        nonlocal changed
        if rewrite_paragraph(paragraph, request.find, runs):
            changed += 1

    walk(root, _visit)
    if changed:
        logger.info("MATCH: %r changed %d paragraph(s)", request.find[:60], changed)
    else:
        logger.info("No match for %r", request.find[:60])
    return changed


def paragraph_texts(document_bytes: bytes) -> list[str]:
    """Plain run text of every paragraph in the body, in document order."""
    root = _parse_body(_find_body(_read_archive(document_bytes)))
    return [paragraph_text(p) for p in find_paragraphs(root)]


# ---------------------------------------------------------------------------
# Archive helpers
# ---------------------------------------------------------------------------

def _read_archive(document_bytes: bytes) -> list[tuple[zipfile.ZipInfo, bytes]]:
    """Read every entry of the archive, keeping its ZipInfo and order.

    Encrypted entries surface from zipfile as RuntimeError.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(document_bytes)) as zin:
            return [(info, zin.read(info)) for info in zin.infolist()]
    except (
        zipfile.BadZipFile,
        zipfile.LargeZipFile,
        zlib.error,
        EOFError,
        NotImplementedError,
        RuntimeError,
    ) as e:
        logger.warning("DOCX replace: cannot open archive: %s", e)
        raise ContainerError(f"Invalid DOCX: cannot open archive ({e})") from e


def _find_body(entries: list[tuple[zipfile.ZipInfo, bytes]]) -> bytes:
    for info, data in entries:
        if info.filename == DOCUMENT_XML:
            return data
    logger.warning("DOCX replace: archive has no %s", DOCUMENT_XML)
    raise ContainerError(f"Invalid DOCX: missing {DOCUMENT_XML}")


def _parse_body(body: bytes) -> etree._Element:
    try:
        parser = etree.XMLParser(resolve_entities=False, huge_tree=True)
        return etree.fromstring(body, parser)
    except etree.XMLSyntaxError as e:
        logger.warning("DOCX replace: %s is not well-formed: %s", DOCUMENT_XML, e)
        raise ContainerError(f"Invalid DOCX: malformed {DOCUMENT_XML} ({e})") from e


def _serialize_body(root: etree._Element) -> bytes:
    """Serialize the whole tree so prolog PIs and comments survive."""
    tree = root.getroottree()
    return etree.tostring(
        tree,
        xml_declaration=True,
        encoding="UTF-8",
        standalone=tree.docinfo.standalone,
    )


def _write_archive(
    entries: list[tuple[zipfile.ZipInfo, bytes]],
    body: bytes,
) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zout:
        for info, data in entries:
            zout.writestr(info, body if info.filename == DOCUMENT_XML else data)
    return buf.getvalue()
