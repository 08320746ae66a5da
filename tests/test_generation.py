"""Tests for AI quiz generation.

Covers:
  POST /api/generate-quiz
  POST /api/convert-quiz

The Gemini client is mocked — tests focus on prompt plumbing, parsing,
normalisation and error envelopes.
"""

import io
import json
from unittest.mock import MagicMock, patch

import docx
import httpx
import pytest
from fastapi.testclient import TestClient

from quiz_builder.config import settings
from quiz_builder.core.errors import GenerationFailed, ValidationFailed
from quiz_builder.services.document_text import extract_text
from quiz_builder.services.generation import normalize_candidate, parse_questions_json
from quiz_builder.services.llm_client import GeminiClient
from conftest import auth, register_and_login

MODEL_OUTPUT = "```json\n" + json.dumps(
    [
        {"type": "MCQ", "text": "Capital of Italy?", "options": ["Rome", "Milan"], "answer": "Rome"},
        {"type": "Multi MCQ", "text": "Even numbers", "options": ["1", "2", "4"], "answer": ["2", "4"]},
        {"type": "True/False", "text": "Water boils at 100C at sea level", "answer": "true"},
        {"type": "One Word", "text": "Chemical symbol for gold", "answer": "Au", "explanation": "From aurum."},
        {"type": "Subjective", "text": "Explain tides"},
    ]
) + "\n```"


def _mock_llm(output: str) -> MagicMock:
    llm = MagicMock()
    llm.generate.return_value = output
    return llm


class TestParsing:
    def test_strips_code_fences(self):
        assert len(parse_questions_json(MODEL_OUTPUT)) == 5

    def test_ignores_chatter_around_array(self):
        raw = 'Sure! Here you go: [{"type": "MCQ", "text": "x"}] Hope that helps.'
        assert parse_questions_json(raw) == [{"type": "MCQ", "text": "x"}]

    def test_object_with_questions_key(self):
        raw = json.dumps({"questions": [{"text": "x"}]})
        assert parse_questions_json(raw) == [{"text": "x"}]

    def test_unparsable_raises_with_raw(self):
        with pytest.raises(GenerationFailed) as exc_info:
            parse_questions_json("```json\nnot json at all\n```")
        assert exc_info.value.message == "LLM returned unparsable JSON"
        assert exc_info.value.raw == "not json at all"

    def test_raw_hidden_when_disabled(self, monkeypatch):
        monkeypatch.setattr(settings, "EXPOSE_LLM_RAW_OUTPUT", False)
        with pytest.raises(GenerationFailed) as exc_info:
            parse_questions_json("nope")
        assert exc_info.value.raw is None
        assert exc_info.value.details is None


class TestNormalisation:
    def test_legacy_labels_mapped(self):
        types = [normalize_candidate(q)["type"] for q in parse_questions_json(MODEL_OUTPUT)]
        assert types == ["single-choice", "multi-choice", "true-false", "short-answer", "free-text"]

    def test_true_false_gets_options_and_canonical_answer(self):
        q = normalize_candidate({"type": "True/False", "text": "t", "answer": "FALSE"})
        assert q["options"] == ["True", "False"]
        assert q["answer"] == "False"

    def test_answer_outside_options_dropped(self):
        q = normalize_candidate({"type": "MCQ", "text": "t", "options": ["a", "b"], "answer": "c"})
        assert q["answer"] == ""
        q = normalize_candidate({"type": "Multi MCQ", "text": "t", "options": ["a", "b"], "answer": ["a", "z"]})
        assert q["answer"] == ["a"]

    def test_options_removed_for_open_questions(self):
        q = normalize_candidate({"type": "One Word", "text": "t", "options": ["a"], "answer": "a"})
        assert q["options"] == []

    def test_blank_text_dropped(self):
        assert normalize_candidate({"type": "MCQ", "text": "  "}) is None


class TestGenerateEndpoint:
    def test_generate_quiz(self, client: TestClient):
        token = register_and_login(client)
        llm = _mock_llm(MODEL_OUTPUT)
        with patch("quiz_builder.services.generation.get_llm_client", return_value=llm):
            resp = client.post(
                "/api/generate-quiz",
                json={"source": "World capitals", "numQuestions": 5, "difficulties": ["Easy"]},
                headers=auth(token),
            )
        assert resp.status_code == 200, resp.text
        quiz = resp.json()["quiz"]
        assert len(quiz) == 5
        assert quiz[0] == {
            "type": "single-choice",
            "text": "Capital of Italy?",
            "options": ["Rome", "Milan"],
            "answer": "Rome",
            "explanation": "",
        }
        prompt = llm.generate.call_args[0][0]
        assert "World capitals" in prompt
        assert "Easy" in prompt

    def test_result_trimmed_to_requested_count(self, client: TestClient):
        token = register_and_login(client)
        with patch("quiz_builder.services.generation.get_llm_client", return_value=_mock_llm(MODEL_OUTPUT)):
            resp = client.post(
                "/api/generate-quiz", json={"source": "x", "numQuestions": 2}, headers=auth(token)
            )
        assert len(resp.json()["quiz"]) == 2

    def test_missing_source(self, client: TestClient):
        token = register_and_login(client)
        resp = client.post("/api/generate-quiz", json={}, headers=auth(token))
        assert resp.status_code == 400
        assert resp.json()["message"] == "source required"

    def test_unparsable_output_is_500_with_raw(self, client: TestClient):
        token = register_and_login(client)
        with patch("quiz_builder.services.generation.get_llm_client", return_value=_mock_llm("I cannot do that")):
            resp = client.post("/api/generate-quiz", json={"source": "x"}, headers=auth(token))
        assert resp.status_code == 500
        body = resp.json()
        assert body["error_code"] == "generation_failed"
        assert body["message"] == "LLM returned unparsable JSON"
        assert body["details"]["raw"] == "I cannot do that"

    def test_requires_auth(self, client: TestClient):
        resp = client.post("/api/generate-quiz", json={"source": "x"})
        assert resp.status_code == 401

    def test_rate_limited(self, client: TestClient):
        token = register_and_login(client)
        with patch("quiz_builder.services.rate_limiter.seconds_until_allowed", return_value=7):
            resp = client.post("/api/generate-quiz", json={"source": "x"}, headers=auth(token))
        assert resp.status_code == 429
        assert resp.json()["error_code"] == "rate_limited"
        assert resp.headers["retry-after"] == "7"


class TestConvertEndpoint:
    def test_convert_txt(self, client: TestClient):
        token = register_and_login(client)
        llm = _mock_llm(MODEL_OUTPUT)
        with patch("quiz_builder.services.generation.get_llm_client", return_value=llm):
            resp = client.post(
                "/api/convert-quiz",
                files={"file": ("quiz.txt", b"1. Capital of Italy? a) Rome b) Milan", "text/plain")},
                headers=auth(token),
            )
        assert resp.status_code == 200, resp.text
        assert len(resp.json()["quiz"]) == 5
        assert "Capital of Italy? a) Rome" in llm.generate.call_args[0][0]

    def test_unsupported_type(self, client: TestClient):
        token = register_and_login(client)
        resp = client.post(
            "/api/convert-quiz",
            files={"file": ("quiz.xlsx", b"data", "application/octet-stream")},
            headers=auth(token),
        )
        assert resp.status_code == 400
        assert "Unsupported file type" in resp.json()["message"]

    def test_too_large(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 10)
        token = register_and_login(client)
        resp = client.post(
            "/api/convert-quiz",
            files={"file": ("quiz.txt", b"x" * 11, "text/plain")},
            headers=auth(token),
        )
        assert resp.status_code == 400

    def test_blank_document(self, client: TestClient):
        token = register_and_login(client)
        resp = client.post(
            "/api/convert-quiz",
            files={"file": ("quiz.txt", b"   \n  ", "text/plain")},
            headers=auth(token),
        )
        assert resp.status_code == 500
        assert resp.json()["error_code"] == "generation_failed"


class TestDocumentText:
    def test_docx(self):
        document = docx.Document()
        document.add_paragraph("Q1. What is 2 + 2?")
        document.add_paragraph("Answer: 4")
        buf = io.BytesIO()
        document.save(buf)
        text = extract_text(buf.getvalue(), "paper.DOCX")
        assert "What is 2 + 2?" in text
        assert "Answer: 4" in text

    def test_unsupported(self):
        with pytest.raises(ValidationFailed):
            extract_text(b"x", "paper.doc")

    def test_unreadable_pdf_hides_parser_error_unless_exposed(self, monkeypatch):
        monkeypatch.setattr(settings, "EXPOSE_LLM_RAW_OUTPUT", False)
        with pytest.raises(GenerationFailed) as exc_info:
            extract_text(b"not a pdf", "paper.pdf")
        assert exc_info.value.details is None

    def test_unreadable_docx_reports_parser_error_when_exposed(self, monkeypatch):
        monkeypatch.setattr(settings, "EXPOSE_LLM_RAW_OUTPUT", True)
        with pytest.raises(GenerationFailed) as exc_info:
            extract_text(b"not a docx", "paper.docx")
        assert exc_info.value.raw


class TestGeminiClient:
    def _client(self, handler) -> GeminiClient:
        client = GeminiClient(api_key="k", model="m", base_url="https://llm.test/v1")
        client._http = httpx.Client(
            base_url="https://llm.test/v1", transport=httpx.MockTransport(handler)
        )
        return client

    def test_returns_first_candidate_text(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/models/m:generateContent"
            assert request.headers["x-goog-api-key"] == "k"
            return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "[]"}]}}]})

        assert self._client(handler).generate("hi") == "[]"

    def test_http_error_becomes_generation_failed(self):
        client = self._client(lambda request: httpx.Response(503, text="overloaded"))
        with pytest.raises(GenerationFailed) as exc_info:
            client.generate("hi")
        assert exc_info.value.raw == "overloaded"

    def test_non_json_body_becomes_generation_failed(self):
        client = self._client(lambda request: httpx.Response(200, text="<html>gateway</html>"))
        with pytest.raises(GenerationFailed) as exc_info:
            client.generate("hi")
        assert exc_info.value.message == "LLM returned an invalid response"
        assert exc_info.value.raw == "<html>gateway</html>"

    def test_upstream_text_hidden_unless_exposed(self, monkeypatch):
        monkeypatch.setattr(settings, "EXPOSE_LLM_RAW_OUTPUT", False)
        for response in (
            httpx.Response(500, text="upstream internals"),
            httpx.Response(200, text="<html>gateway</html>"),
        ):
            client = self._client(lambda request, response=response: response)
            with pytest.raises(GenerationFailed) as exc_info:
                client.generate("hi")
            assert exc_info.value.raw is None
            assert exc_info.value.details is None

    def test_missing_api_key(self):
        with pytest.raises(GenerationFailed):
            GeminiClient(api_key="").generate("hi")
