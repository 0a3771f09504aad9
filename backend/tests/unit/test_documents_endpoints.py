"""Tests for /api/documents/{extract,analyze,replace} and /api/health."""

import io
import json
from unittest.mock import AsyncMock, patch

import pytest
from docx import Document as DocxDocument

from document.analyzer import CollaboratorError, CVAnalysis

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _upload(content: bytes, filename: str = "cv.docx") -> dict:
    return {"file": (filename, content, DOCX_TYPE)}


class TestHealth:
    async def test_health(self, test_client):
        resp = await test_client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestExtract:
    async def test_html_default(self, test_client, simple_docx):
        resp = await test_client.post("/api/documents/extract", files=_upload(simple_docx))
        assert resp.status_code == 200
        body = resp.json()
        assert body["filename"] == "cv.docx"
        assert "<p>Responsible for deployments</p>" in body["content"]

    async def test_text_mode(self, test_client, simple_docx):
        resp = await test_client.post(
            "/api/documents/extract", files=_upload(simple_docx), data={"mode": "text"}
        )
        assert resp.status_code == 200
        assert resp.json()["content"] == "Responsible for deployments"

    async def test_unknown_mode(self, test_client, simple_docx):
        resp = await test_client.post(
            "/api/documents/extract", files=_upload(simple_docx), data={"mode": "pdf"}
        )
        assert resp.status_code == 400

    async def test_rejects_other_extensions(self, test_client):
        resp = await test_client.post(
            "/api/documents/extract", files=_upload(b"hello", "notes.txt")
        )
        assert resp.status_code == 400
        assert "Unsupported file type" in resp.json()["detail"]

    async def test_rejects_empty_file(self, test_client):
        resp = await test_client.post("/api/documents/extract", files=_upload(b""))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "File is empty."

    async def test_rejects_oversized_file(self, test_client, simple_docx):
        with patch("api.documents.settings.max_upload_size", 10):
            resp = await test_client.post("/api/documents/extract", files=_upload(simple_docx))
        assert resp.status_code == 400
        assert "too large" in resp.json()["detail"]

    async def test_corrupt_docx(self, test_client):
        resp = await test_client.post("/api/documents/extract", files=_upload(b"garbage"))
        assert resp.status_code == 400
        assert "Invalid DOCX" in resp.json()["detail"]


class TestAnalyze:
    @pytest.fixture(autouse=True)
    def _patch_analyzer(self):
        analysis = CVAnalysis(
            overall_score=55,
            strengths=[],
            improvements=[
                {"id": 0, "originalText": "Responsible for deployments",
                 "suggestion": "**Automated** deployments"},
            ],
            new_score=78,
        )
        with patch("api.documents.analyze_cv", new_callable=AsyncMock, return_value=analysis) as ac:
            self.analyze_cv = ac
            yield

    async def test_returns_camel_case_analysis(self, test_client, simple_docx):
        resp = await test_client.post(
            "/api/documents/analyze",
            files=_upload(simple_docx),
            data={"job_post": "Platform engineer"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["overallScore"] == 55
        assert body["newScore"] == 78
        assert body["improvements"][0]["originalText"] == "Responsible for deployments"

    async def test_passes_html_and_settings(self, test_client, simple_docx):
        await test_client.post(
            "/api/documents/analyze",
            files=_upload(simple_docx),
            data={"job_post": "Platform engineer"},
        )
        args = self.analyze_cv.call_args.args
        assert "<p>Responsible for deployments</p>" in args[0]
        assert args[1] == "Platform engineer"
        assert args[2] == "openai"
        assert args[3] == "gpt-4o-mini"
        assert args[4] == "test-llm-key"

    async def test_provider_and_model_override(self, test_client, simple_docx):
        await test_client.post(
            "/api/documents/analyze",
            files=_upload(simple_docx),
            data={"job_post": "x", "provider": "google", "model": "gemini-2.5-pro"},
        )
        args = self.analyze_cv.call_args.args
        assert args[2] == "google"
        assert args[3] == "gemini-2.5-pro"

    async def test_empty_job_post(self, test_client, simple_docx):
        resp = await test_client.post(
            "/api/documents/analyze", files=_upload(simple_docx), data={"job_post": "  "}
        )
        assert resp.status_code == 400
        self.analyze_cv.assert_not_awaited()

    async def test_unknown_provider_is_400(self, test_client, simple_docx):
        resp = await test_client.post(
            "/api/documents/analyze",
            files=_upload(simple_docx),
            data={"job_post": "x", "provider": "anthropic"},
        )
        assert resp.status_code == 400
        assert "Unsupported provider: anthropic" in resp.json()["detail"]
        self.analyze_cv.assert_not_awaited()

    async def test_collaborator_error_is_502(self, test_client, simple_docx):
        self.analyze_cv.side_effect = CollaboratorError("LLM request failed: boom")
        resp = await test_client.post(
            "/api/documents/analyze", files=_upload(simple_docx), data={"job_post": "x"}
        )
        assert resp.status_code == 502
        assert resp.json()["detail"] == "LLM request failed: boom"


class TestReplace:
    async def test_returns_edited_docx(self, test_client, simple_docx):
        replacements = [{
            "find": "Responsible for deployments",
            "replace": "**Automated** deployments, reducing release time by *50%*",
            "fontFamily": "Cambria",
            "fontSize": 10,
        }]
        resp = await test_client.post(
            "/api/documents/replace",
            files=_upload(simple_docx),
            data={"replacements": json.dumps(replacements)},
        )
        assert resp.status_code == 200
        assert resp.headers["content-type"] == DOCX_TYPE
        assert 'filename="cv.docx"' in resp.headers["content-disposition"]

        doc = DocxDocument(io.BytesIO(resp.content))
        (para,) = [p for p in doc.paragraphs if p.text]
        assert para.text == "Automated deployments, reducing release time by 50%"
        assert para.runs[0].bold is True
        assert para.runs[0].font.name == "Cambria"

    async def test_non_latin1_filename(self, test_client, simple_docx):
        replacements = [{"find": "Responsible", "replace": "Accountable"}]
        resp = await test_client.post(
            "/api/documents/replace",
            files=_upload(simple_docx, "简历.docx"),
            data={"replacements": json.dumps(replacements)},
        )
        assert resp.status_code == 200
        disposition = resp.headers["content-disposition"]
        assert 'filename="__.docx"' in disposition
        assert "filename*=UTF-8''%E7%AE%80%E5%8E%86.docx" in disposition

    async def test_default_font_from_settings(self, test_client, simple_docx):
        replacements = [{"find": "Responsible", "replace": "Accountable"}]
        with (
            patch("api.documents.settings.default_font_family", "Georgia"),
            patch("api.documents.settings.default_font_size", 11),
        ):
            resp = await test_client.post(
                "/api/documents/replace",
                files=_upload(simple_docx),
                data={"replacements": json.dumps(replacements)},
            )
        assert resp.status_code == 200
        doc = DocxDocument(io.BytesIO(resp.content))
        (para,) = [p for p in doc.paragraphs if p.text]
        assert para.runs[0].font.name == "Georgia"

    async def test_invalid_json(self, test_client, simple_docx):
        resp = await test_client.post(
            "/api/documents/replace",
            files=_upload(simple_docx),
            data={"replacements": "not json"},
        )
        assert resp.status_code == 400
        assert "Invalid replacements" in resp.json()["detail"]

    async def test_empty_find_rejected(self, test_client, simple_docx):
        resp = await test_client.post(
            "/api/documents/replace",
            files=_upload(simple_docx),
            data={"replacements": json.dumps([{"find": "", "replace": "x"}])},
        )
        assert resp.status_code == 400

    async def test_non_positive_font_size_rejected(self, test_client, simple_docx):
        bad = [{"find": "a", "replace": "b", "fontSize": 0}]
        resp = await test_client.post(
            "/api/documents/replace",
            files=_upload(simple_docx),
            data={"replacements": json.dumps(bad)},
        )
        assert resp.status_code == 400

    async def test_corrupt_docx(self, test_client):
        resp = await test_client.post(
            "/api/documents/replace",
            files=_upload(b"\x00\x01 random"),
            data={"replacements": json.dumps([{"find": "a", "replace": "b"}])},
        )
        assert resp.status_code == 400
        assert "Invalid DOCX" in resp.json()["detail"]
