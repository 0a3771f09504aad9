"""Master test fixtures.

Environment variables are set BEFORE any application imports so that
``config.Settings()`` initialises with test-safe values and never
touches Docker secrets.
"""

import io
import os
import zipfile

# ── Set test env vars before any app import ──────────────────────────
os.environ.update({
    "LLM_API_KEY": "test-llm-key",
    "LLM_PROVIDER": "openai",
    "LLM_MODEL": "gpt-4o-mini",
    "ALLOWED_ORIGINS": "https://test.example.com",
})
os.environ.pop("DEFAULT_FONT_FAMILY", None)
os.environ.pop("DEFAULT_FONT_SIZE", None)

import pytest

from docx import Document as DocxDocument
from docx.oxml.ns import nsdecls
from httpx import ASGITransport, AsyncClient
from lxml import etree


def build_docx(*paragraphs) -> bytes:
    """Build a .docx with python-docx.

    Each paragraph is either a string (one plain run) or a list of
    ``(text, {"bold": True, ...})`` tuples, one per run.
    """
    doc = DocxDocument()
    for para in paragraphs:
        if isinstance(para, str):
            doc.add_paragraph(para)
            continue
        p = doc.add_paragraph()
        for text, fmt in para:
            run = p.add_run(text)
            for attr, value in fmt.items():
                setattr(run, attr, value)
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def make_paragraph(inner_xml: str) -> etree._Element:
    """Parse a ``<w:p>`` with the given inner XML using a plain lxml parser."""
    return etree.fromstring(f"<w:p {nsdecls('w')}>{inner_xml}</w:p>")


def read_entry(document_bytes: bytes, name: str) -> bytes:
    with zipfile.ZipFile(io.BytesIO(document_bytes)) as zf:
        return zf.read(name)


@pytest.fixture
def docx_factory():
    """Expose ``build_docx`` to tests."""
    return build_docx


@pytest.fixture
def simple_docx() -> bytes:
    """A one-paragraph CV line, the canonical rewrite example."""
    return build_docx("Responsible for deployments")


@pytest.fixture
async def test_client():
    """HTTPX async client wired to the FastAPI app."""
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
