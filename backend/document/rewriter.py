"""Find-and-replace inside a single ``<w:p>`` paragraph.

The search runs over the paragraph's concatenated run text, so a match may
span several runs. Once a paragraph matches, its runs are rebuilt from
scratch: surviving text takes the first original run's properties and each
occurrence becomes a copy of the replacement runs.
"""

from copy import deepcopy
from typing import Sequence

from docx.oxml.ns import qn
from lxml import etree

from document.runs import make_run


def paragraph_runs(paragraph: etree._Element) -> list[etree._Element]:
    """Direct ``<w:r>`` children of ``paragraph``."""
    return [child for child in paragraph if child.tag == qn("w:r")]


def run_text(run: etree._Element) -> str:
    return "".join(t.text or "" for t in run.findall(qn("w:t")))


def paragraph_text(paragraph: etree._Element) -> str:
    return "".join(run_text(run) for run in paragraph_runs(paragraph))


def rewrite_paragraph(
    paragraph: etree._Element,
    find: str,
    replacement_runs: Sequence[etree._Element],
) -> bool:
    """Replace every occurrence of ``find`` in ``paragraph``.

    Returns True if the paragraph was changed. Non-run children (paragraph
    properties, bookmarks, hyperlinks) keep their positions; the new runs
    are inserted where the first original run was.
    """
    runs = paragraph_runs(paragraph)
    if not runs or not find:
        return False

    full_text = "".join(run_text(run) for run in runs)
    if find not in full_text:
        return False

    base_props = runs[0].find(qn("w:rPr"))
    parts = full_text.split(find)

    new_runs: list[etree._Element] = []
    for idx, part in enumerate(parts):
        if part:
            props = deepcopy(base_props) if base_props is not None else None
            new_runs.append(make_run(part, props))
        if idx < len(parts) - 1:
            new_runs.extend(deepcopy(run) for run in replacement_runs)

    anchor = paragraph.index(runs[0])
    for run in runs:
        paragraph.remove(run)
    for offset, run in enumerate(new_runs):
        paragraph.insert(anchor + offset, run)
    return True
