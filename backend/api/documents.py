"""Document endpoints: extract text, analyze against a job post, apply suggestions."""

import logging
from urllib.parse import quote

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from config import settings
from document.analyzer import PROVIDER_BASE_URLS, CollaboratorError, CVAnalysis, analyze_cv
from document.editor import ContainerError, ReplacementRequest, replace_text
from document.parser import ALLOWED_EXTENSIONS, EXTRACT_MODES, extract_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["documents"])

DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class ExtractResponse(BaseModel):
    filename: str
    content: str


class ReplacementIn(BaseModel):
    find: str = Field(min_length=1)
    replace: str
    font_family: str | None = Field(None, alias="fontFamily")
    font_size: int | None = Field(None, alias="fontSize", gt=0)


_replacements_adapter = TypeAdapter(list[ReplacementIn])


async def _read_upload(file: UploadFile) -> tuple[str, bytes]:
    """Validate extension and size, return (filename, content)."""
    filename = file.filename or "unknown"

    ext = _get_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {ext}. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}",
        )

    content = await file.read()
    if len(content) > settings.max_upload_size:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Maximum size is {settings.max_upload_size // (1024 * 1024)}MB.",
        )

    if len(content) == 0:
        raise HTTPException(status_code=400, detail="File is empty.")

    return filename, content


@router.post("/extract", response_model=ExtractResponse)
async def extract_document(
    file: UploadFile = File(...),
    mode: str = Form("html"),
):
    """Return the document body as HTML (default) or plain text."""
    filename, content = await _read_upload(file)
    if mode not in EXTRACT_MODES:
        raise HTTPException(status_code=400, detail=f"Unsupported extract mode: {mode}")

    try:
        extracted = await extract_text(filename, content, mode)
    except (ValueError, ContainerError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Extracted %d chars (%s) from '%s'", len(extracted), mode, filename)
    return ExtractResponse(filename=filename, content=extracted)


@router.post("/analyze", response_model=CVAnalysis)
async def analyze_document(
    file: UploadFile = File(...),
    job_post: str = Form(...),
    provider: str | None = Form(None),
    model: str | None = Form(None),
):
    """Score the uploaded CV against a job post and return suggested rewrites."""
    filename, content = await _read_upload(file)
    if not job_post.strip():
        raise HTTPException(status_code=400, detail="Job post is empty.")

    provider = provider or settings.llm_provider
    if provider not in PROVIDER_BASE_URLS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported provider: {provider}. Allowed: {', '.join(sorted(PROVIDER_BASE_URLS))}",
        )

    try:
        cv_html = await extract_text(filename, content, "html")
    except (ValueError, ContainerError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        api_key = settings.llm_api_key
    except ValueError as e:
        logger.error("LLM API key missing: %s", e)
        raise HTTPException(status_code=500, detail="LLM API key is not configured.")

    try:
        return await analyze_cv(
            cv_html,
            job_post,
            provider,
            model or settings.llm_model,
            api_key,
        )
    except CollaboratorError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/replace")
async def replace_document_text(
    file: UploadFile = File(...),
    replacements: str = Form(...),
):
    """Apply markdown-formatted replacements and return the edited .docx."""
    filename, content = await _read_upload(file)

    try:
        items = _replacements_adapter.validate_json(replacements)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid replacements: {e}")

    requests = [
        ReplacementRequest(
            find=item.find,
            replace=item.replace,
            font_family=item.font_family or settings.default_font_family,
            font_size=item.font_size or settings.default_font_size,
        )
        for item in items
    ]

    try:
        edited = replace_text(content, requests)
    except ContainerError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("Applied %d replacement(s) to '%s'", len(requests), filename)
    return Response(
        content=edited,
        media_type=DOCX_CONTENT_TYPE,
        headers={"Content-Disposition": _content_disposition(filename)},
    )


def _get_extension(filename: str) -> str:
    """Return the lowercase file extension including the dot."""
    dot = filename.rfind(".")
    if dot == -1:
        return ""
    return filename[dot:].lower()


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name plus the RFC 5987 UTF-8 name."""
    fallback = "".join(
        c if c.isascii() and c.isprintable() and c not in '"\\' else "_" for c in filename
    )
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
