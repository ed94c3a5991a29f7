"""Unit tests for AI candidate summaries and follow-up questions via httpx."""

from __future__ import annotations

import json
from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.core.constants import FOLLOW_UP_FALLBACK
from app.models.enums import Recommendation
from app.services.summary import (
    generate_candidate_summary,
    generate_follow_up_questions,
    parse_summary,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SUMMARY = {
    "overall_assessment": "Strong backend engineer with clear communication.",
    "key_strengths": ["SQL", "System design"],
    "areas_of_concern": ["Limited frontend exposure"],
    "technical_skills": ["Python", "Postgres"],
    "soft_skills": ["Communication"],
    "recommendation": "Hire",
    "confidence_score": 82,
    "next_steps": ["Schedule team interview"],
}


def _gemini_response(text: str) -> MagicMock:
    mock_response = MagicMock()
    mock_response.status_code = 200
    mock_response.raise_for_status = MagicMock()
    mock_response.json.return_value = {
        "candidates": [{"content": {"parts": [{"text": text}]}}]
    }
    return mock_response


@pytest.fixture()
def gemini_key() -> Generator[None, None, None]:
    with patch("app.services.summary.settings") as mock_settings:
        mock_settings.GEMINI_API_KEY = "gemini-test"
        mock_settings.GEMINI_MODEL = "gemini-2.5-flash"
        mock_settings.GEMINI_API_BASE = "https://gemini.test/v1beta"
        yield


def _patched_client(response: Any = None, error: Exception | None = None) -> tuple[Any, AsyncMock]:
    patcher = patch("httpx.AsyncClient")
    mock_client_class = patcher.start()
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    if error is not None:
        mock_client.post = AsyncMock(side_effect=error)
    else:
        mock_client.post = AsyncMock(return_value=response)
    mock_client_class.return_value = mock_client
    return patcher, mock_client


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParseSummary:

    def test_plain_json(self) -> None:
        summary = parse_summary(json.dumps(SUMMARY))
        assert summary.recommendation == Recommendation.hire
        assert summary.confidence_score == 82
        assert summary.is_placeholder is False

    def test_markdown_fenced_json(self) -> None:
        text = "```json\n" + json.dumps(SUMMARY) + "\n```"
        assert parse_summary(text).key_strengths == ["SQL", "System design"]

    def test_camel_case_keys_accepted(self) -> None:
        camel = {
            "overallAssessment": "Good fit.",
            "keyStrengths": ["Ownership"],
            "recommendation": "Strong Hire",
            "confidenceScore": 90,
        }
        summary = parse_summary("Here you go: " + json.dumps(camel))
        assert summary.overall_assessment == "Good fit."
        assert summary.recommendation == Recommendation.strong_hire


# ---------------------------------------------------------------------------
# Summary generation
# ---------------------------------------------------------------------------


class TestGenerateCandidateSummary:

    @pytest.mark.asyncio
    async def test_valid_response(self, gemini_key: None) -> None:
        patcher, mock_client = _patched_client(_gemini_response(json.dumps(SUMMARY)))
        try:
            summary = await generate_candidate_summary(
                "Jane Doe", "Backend Engineer", ["Strong on SQL", "Great communicator"]
            )
        finally:
            patcher.stop()

        assert summary.recommendation == Recommendation.hire
        call = mock_client.post.call_args
        assert call.args[0] == "https://gemini.test/v1beta/models/gemini-2.5-flash:generateContent"
        assert call.kwargs["params"] == {"key": "gemini-test"}
        body = call.kwargs["json"]
        assert body["generationConfig"]["temperature"] == 0.7
        assert body["generationConfig"]["maxOutputTokens"] == 2048
        prompt = body["contents"][0]["parts"][0]["text"]
        assert "Jane Doe" in prompt
        assert "Strong on SQL\n\nGreat communicator" in prompt

    @pytest.mark.asyncio
    async def test_http_error_returns_placeholder(self, gemini_key: None) -> None:
        patcher, _ = _patched_client(error=httpx.HTTPError("Connection timeout"))
        try:
            summary = await generate_candidate_summary("Jane Doe", "Backend Engineer", [])
        finally:
            patcher.stop()

        assert summary.is_placeholder is True
        assert summary.recommendation == Recommendation.maybe
        assert summary.confidence_score == 0
        assert "Manual review required" in summary.key_strengths[0]

    @pytest.mark.asyncio
    async def test_bad_api_base_returns_placeholder(self, gemini_key: None) -> None:
        patcher, _ = _patched_client(error=httpx.InvalidURL("No scheme included in URL."))
        try:
            summary = await generate_candidate_summary("Jane Doe", "Backend Engineer", ["ok"])
            questions = await generate_follow_up_questions("Jane Doe", "Backend Engineer", ["ok"])
        finally:
            patcher.stop()

        assert summary.is_placeholder is True
        assert questions == [FOLLOW_UP_FALLBACK]

    @pytest.mark.asyncio
    async def test_missing_required_fields_returns_placeholder(self, gemini_key: None) -> None:
        incomplete = json.dumps({"key_strengths": ["SQL"]})
        patcher, _ = _patched_client(_gemini_response(incomplete))
        try:
            summary = await generate_candidate_summary("Jane Doe", "Backend Engineer", ["ok"])
        finally:
            patcher.stop()

        assert summary.is_placeholder is True

    @pytest.mark.asyncio
    async def test_non_json_returns_placeholder(self, gemini_key: None) -> None:
        patcher, _ = _patched_client(_gemini_response("I cannot help with that."))
        try:
            summary = await generate_candidate_summary("Jane Doe", "Backend Engineer", ["ok"])
        finally:
            patcher.stop()

        assert summary.is_placeholder is True

    @pytest.mark.asyncio
    async def test_unknown_recommendation_returns_placeholder(self, gemini_key: None) -> None:
        patcher, _ = _patched_client(
            _gemini_response(json.dumps({**SUMMARY, "recommendation": "Definitely"}))
        )
        try:
            summary = await generate_candidate_summary("Jane Doe", "Backend Engineer", ["ok"])
        finally:
            patcher.stop()

        assert summary.is_placeholder is True

    @pytest.mark.asyncio
    async def test_missing_api_key_returns_placeholder(self) -> None:
        with patch("app.services.summary.settings") as mock_settings, \
                patch("httpx.AsyncClient") as mock_client_class:
            mock_settings.GEMINI_API_KEY = ""
            summary = await generate_candidate_summary("Jane Doe", "Backend Engineer", ["ok"])

        assert summary.is_placeholder is True
        mock_client_class.assert_not_called()


# ---------------------------------------------------------------------------
# Follow-up questions
# ---------------------------------------------------------------------------


class TestFollowUpQuestions:

    @pytest.mark.asyncio
    async def test_questions_parsed(self, gemini_key: None) -> None:
        questions = ["How do you design schemas?", "Tell us about a hard bug."]
        patcher, _ = _patched_client(
            _gemini_response("```json\n" + json.dumps(questions) + "\n```")
        )
        try:
            result = await generate_follow_up_questions("Jane Doe", "Backend Engineer", ["ok"])
        finally:
            patcher.stop()

        assert result == questions

    @pytest.mark.asyncio
    async def test_no_array_falls_back(self, gemini_key: None) -> None:
        patcher, _ = _patched_client(_gemini_response("No questions today."))
        try:
            result = await generate_follow_up_questions("Jane Doe", "Backend Engineer", ["ok"])
        finally:
            patcher.stop()

        assert result == [FOLLOW_UP_FALLBACK]

    @pytest.mark.asyncio
    async def test_http_error_falls_back(self, gemini_key: None) -> None:
        patcher, _ = _patched_client(error=httpx.HTTPError("503"))
        try:
            result = await generate_follow_up_questions("Jane Doe", "Backend Engineer", [])
        finally:
            patcher.stop()

        assert result == [FOLLOW_UP_FALLBACK]
