"""Ask an LLM to critique a CV against a job post.

The model returns scores plus a list of ``{originalText, suggestion}``
pairs; suggestions may use the emphasis markup understood by
``document.markup``. Clients send those pairs back to
``POST /api/documents/replace`` as find/replace requests.
"""

import logging

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

# OpenAI-compatible endpoints per provider; None means the SDK default.
PROVIDER_BASE_URLS: dict[str, str | None] = {
    "openai": None,
    "google": "https://generativelanguage.googleapis.com/v1beta/openai/",
}

_SYSTEM_PROMPT = (
    "You are a pragmatic technical hiring manager who has reviewed thousands "
    "of CVs. You care only about whether the candidate's experience maps to the "
    "open role. Be direct, objective and brief.\n\n"
    "Respond with a single JSON object of this exact shape:\n"
    '{"overallScore": number, "strengths": [string], '
    '"improvements": [{"originalText": string, "suggestion": string}], '
    '"newScore": number}\n\n'
    "Scoring (0-100): 40% keyword and phrasing match to the job post, 30% "
    "quantified achievements over responsibilities, 20% relevance of "
    "experience to the requirements, 10% concision and structure. newScore is "
    "the score after every suggestion is applied. List strengths only when the "
    "CV scores above 70.\n\n"
    "Rules for improvements:\n"
    "- originalText must be copied verbatim from the CV so it can be found "
    "and replaced.\n"
    "- Only suggest high-impact changes; an empty list is a valid answer.\n"
    "- Mirror the job post's own phrasing. Do not add version numbers or "
    "other pedantic detail.\n"
    "- Prefer quantified impact over responsibilities, e.g. \"Responsible for "
    "deployments\" becomes \"Automated deployments, reducing release time by "
    "50%\".\n"
    "- Keep the original structure and length: a bullet stays a bullet, a "
    "keyword list stays a keyword list.\n"
    "- Emphasis is allowed sparingly: **bold**, *italic* or _italic_, "
    "***bold italic***, __underline__."
)


class CollaboratorError(Exception):
    """Raised when the LLM call fails or its answer has the wrong shape."""


class Improvement(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int = 0
    original_text: str = Field(alias="originalText", min_length=1)
    suggestion: str


class CVAnalysis(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    overall_score: float = Field(alias="overallScore", ge=0, le=100)
    strengths: list[str] = Field(default_factory=list)
    improvements: list[Improvement]
    new_score: float = Field(alias="newScore", ge=0, le=100)


def _get_llm_client(provider: str, api_key: str) -> AsyncOpenAI:
    return AsyncOpenAI(api_key=api_key, base_url=PROVIDER_BASE_URLS[provider])


def build_user_prompt(cv_html: str, job_post: str) -> str:
    return f"**CV (HTML):**\n{cv_html}\n\n**Job Post:**\n{job_post}"


async def analyze_cv(
    cv_html: str,
    job_post: str,
    provider: str,
    model: str,
    api_key: str,
) -> CVAnalysis:
    """Score ``cv_html`` against ``job_post`` and collect suggested rewrites.

    Improvement ids are renumbered 0..n-1 in the order returned.

    Raises:
        CollaboratorError: If the provider is unknown, the request fails, or
            the response is not a valid analysis.
    """
    if provider not in PROVIDER_BASE_URLS:
        raise CollaboratorError(
            f"Unsupported provider: {provider}. "
            f"Supported: {', '.join(sorted(PROVIDER_BASE_URLS))}"
        )

    user_prompt = build_user_prompt(cv_html, job_post)
    logger.info(
        "Requesting CV analysis from %s/%s (%d chars)", provider, model, len(user_prompt)
    )

    client = _get_llm_client(provider, api_key)
    try:
        response = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            response_format={"type": "json_object"},
        )
    except OpenAIError as e:
        logger.warning("CV analysis request failed: %s", e)
        raise CollaboratorError(f"LLM request failed: {e}") from e

    content = response.choices[0].message.content or ""
    try:
        analysis = CVAnalysis.model_validate_json(content)
    except ValidationError as e:
        logger.warning("CV analysis response rejected: %s", e)
        raise CollaboratorError(f"LLM returned an invalid analysis: {e}") from e

    analysis.improvements = [
        imp.model_copy(update={"id": i}) for i, imp in enumerate(analysis.improvements)
    ]
    logger.info("CV analysis returned %d improvement(s)", len(analysis.improvements))
    return analysis
