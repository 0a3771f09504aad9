"""Depth-first traversal over a parsed WordprocessingML body."""

import enum
from typing import Callable, Iterator

from docx.oxml.ns import qn
from lxml import etree


class NodeKind(enum.Enum):
    PARAGRAPH = "paragraph"
    RUN = "run"
    PROPERTIES = "properties"
    CONTAINER = "container"


_KIND_BY_TAG = {
    qn("w:p"): NodeKind.PARAGRAPH,
    qn("w:r"): NodeKind.RUN,
    qn("w:rPr"): NodeKind.PROPERTIES,
}


def node_kind(node: etree._Element) -> NodeKind | None:
    """Classify ``node``; comments and processing instructions return None."""
    if not isinstance(node.tag, str):
        return None
    return _KIND_BY_TAG.get(node.tag, NodeKind.CONTAINER)


def iter_nodes(node: etree._Element) -> Iterator[tuple[NodeKind, etree._Element]]:
    """Yield ``(kind, element)`` in document order, parents before children."""
    kind = node_kind(node)
    if kind is None:
        return
    yield kind, node
    for child in node:
        yield from iter_nodes(child)


def find_paragraphs(node: etree._Element) -> list[etree._Element]:
    """Every ``<w:p>`` under (and including) ``node``, in document order."""
    return [el for kind, el in iter_nodes(node) if kind is NodeKind.PARAGRAPH]


def walk(node: etree._Element, visitor: Callable[[etree._Element], None]) -> None:
    """Call ``visitor`` once for every paragraph under ``node``.

    Paragraphs are collected before the first visit, so a visitor may
    replace a paragraph's runs without disturbing the traversal.
    """
    for paragraph in find_paragraphs(node):
        visitor(paragraph)
