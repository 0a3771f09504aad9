"""Extract text from uploaded .docx files for the analysis prompt."""

import io
import logging

import mammoth

from document.editor import ContainerError, paragraph_texts

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".docx"}

EXTRACT_MODES = ("html", "text")


async def extract_text(filename: str, content: bytes, mode: str = "html") -> str:
    """Extract the document body as HTML or plain text.

    Args:
        filename: Original filename (used to determine type).
        content: Raw file bytes.
        mode: ``"html"`` for mammoth's HTML rendering, ``"text"`` for
            paragraph text joined by blank lines.

    Returns:
        Extracted text as a string.

    Raises:
        ValueError: If the file type or mode is not supported.
        ContainerError: If the file cannot be read as a .docx.
    """
    ext = _get_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise ValueError(
            f"Unsupported file type: {ext}. "
            f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    if mode == "html":
        return _extract_html(content)
    if mode == "text":
        return _extract_docx(content)

    raise ValueError(f"Unsupported extract mode: {mode}. Allowed: {', '.join(EXTRACT_MODES)}")


def _get_extension(filename: str) -> str:
    """Return the lowercase file extension including the dot."""
    dot = filename.rfind(".")
    if dot == -1:
        return ""
    return filename[dot:].lower()


def _extract_html(content: bytes) -> str:
    """Render the document body as HTML using mammoth."""
    try:
        result = mammoth.convert_to_html(io.BytesIO(content))
    except Exception as e:
        raise ContainerError(f"Invalid DOCX: could not convert to HTML ({e})") from e
    for message in result.messages:
        logger.debug("mammoth: %s", message)
    return result.value


def _extract_docx(content: bytes) -> str:
    """Join the non-blank paragraph texts of the body with blank lines."""
    paragraphs = [text for text in paragraph_texts(content) if text.strip()]
    return "\n\n".join(paragraphs)
