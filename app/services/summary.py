"""AI candidate assessment via the Gemini ``generateContent`` API.

Two operations, both built from a candidate's note thread:

* ``generate_candidate_summary`` -- structured assessment with a hiring
  recommendation and confidence score.
* ``generate_follow_up_questions`` -- interview questions for gaps in the
  notes.

Neither ever raises to the caller.  Any failure (missing API key, HTTP
error, malformed or incomplete JSON) is logged and answered with a
placeholder so the UI can still render a "manual review" state.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.constants import FOLLOW_UP_FALLBACK
from app.models.enums import Recommendation
from app.models.summary import CandidateSummary

logger = logging.getLogger(__name__)

_OBJECT_PATTERN = re.compile(r"\{.*\}", re.DOTALL)
_ARRAY_PATTERN = re.compile(r"\[.*\]", re.DOTALL)

_GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 2048,
}

SUMMARY_PROMPT = """\
As an AI hiring assistant, analyze the following candidate interview notes and provide a comprehensive summary.

Candidate: {name}
Role: {role}

Interview Notes:
{notes}

Please provide a structured analysis in the following JSON format:
{{
  "overall_assessment": "A 2-3 sentence overall assessment of the candidate",
  "key_strengths": ["strength1", "strength2", "strength3"],
  "areas_of_concern": ["concern1", "concern2"],
  "technical_skills": ["skill1", "skill2", "skill3"],
  "soft_skills": ["skill1", "skill2", "skill3"],
  "recommendation": "Strong Hire|Hire|Maybe|No Hire",
  "confidence_score": 85,
  "next_steps": ["next step 1", "next step 2"]
}}

Base your analysis on:
- Technical competency mentioned in notes
- Communication skills
- Problem-solving ability
- Cultural fit indicators
- Experience relevance
- Any red flags or concerns

Be objective and professional. If information is limited, acknowledge this in your assessment.

Return only valid JSON without any markdown formatting or code blocks.\
"""

FOLLOW_UP_PROMPT = """\
Based on the following interview notes for {name} applying for {role},
suggest 5 insightful follow-up questions that would help better evaluate this candidate.

Notes:
{notes}

Focus on:
- Areas not yet thoroughly explored
- Clarifying technical competencies
- Understanding cultural fit
- Assessing problem-solving approach

Return only a JSON array of questions without any markdown formatting:
["question1", "question2", "question3", "question4", "question5"]\
"""

# The model sometimes answers with camelCase keys
_KEY_ALIASES = {
    "overallAssessment": "overall_assessment",
    "keyStrengths": "key_strengths",
    "areasOfConcern": "areas_of_concern",
    "technicalSkills": "technical_skills",
    "softSkills": "soft_skills",
    "confidenceScore": "confidence_score",
    "nextSteps": "next_steps",
}


class SummaryGenerationError(Exception):
    """The model's answer could not be turned into a result."""


def _strip_fences(text: str) -> str:
    text = text.strip()
    text = re.sub(r"```json\s*", "", text)
    return re.sub(r"```\s*", "", text)


async def _generate(prompt: str) -> str:
    """POST a single-turn prompt and return the first candidate's text."""
    if not settings.GEMINI_API_KEY:
        raise SummaryGenerationError("GEMINI_API_KEY is not configured")

    url = f"{settings.GEMINI_API_BASE}/models/{settings.GEMINI_MODEL}:generateContent"
    async with httpx.AsyncClient(timeout=60.0) as client:
        response = await client.post(
            url,
            params={"key": settings.GEMINI_API_KEY},
            headers={"Content-Type": "application/json"},
            json={
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": _GENERATION_CONFIG,
            },
        )
        response.raise_for_status()
        data = response.json()
    return data["candidates"][0]["content"]["parts"][0]["text"]


def parse_summary(text: str) -> CandidateSummary:
    """Extract the first JSON object from a model answer.

    Raises ``SummaryGenerationError`` when no object is present or the
    required fields are missing.
    """
    match = _OBJECT_PATTERN.search(_strip_fences(text))
    if match is None:
        raise SummaryGenerationError("No JSON object in model response")

    raw: dict[str, Any] = json.loads(match.group(0))
    parsed = {_KEY_ALIASES.get(key, key): value for key, value in raw.items()}
    if not parsed.get("overall_assessment") or not parsed.get("recommendation"):
        raise SummaryGenerationError("Missing required fields in model response")

    try:
        return CandidateSummary.model_validate(parsed)
    except PydanticValidationError as exc:
        raise SummaryGenerationError(str(exc)) from exc


def placeholder_summary(candidate_name: str, reason: str) -> CandidateSummary:
    return CandidateSummary(
        overall_assessment=(
            f"Unable to generate AI summary for {candidate_name} at this time. "
            f"{reason}. Please review the notes manually or try again later."
        ),
        key_strengths=["Manual review required - AI analysis unavailable"],
        areas_of_concern=["AI analysis failed - please review notes manually"],
        recommendation=Recommendation.maybe,
        confidence_score=0,
        next_steps=[
            "Manual review of interview notes recommended",
            "Verify the Gemini API key and quotas",
            "Consider re-running AI analysis later",
        ],
        is_placeholder=True,
    )


async def generate_candidate_summary(
    candidate_name: str,
    role: str,
    notes: list[str],
) -> CandidateSummary:
    """Summarize a candidate's notes; never raises."""
    prompt = SUMMARY_PROMPT.format(
        name=candidate_name, role=role, notes="\n\n".join(notes)
    )
    try:
        text = await _generate(prompt)
        summary = parse_summary(text)
    except (
        httpx.HTTPError,
        httpx.InvalidURL,
        json.JSONDecodeError,
        KeyError,
        IndexError,
        TypeError,
        SummaryGenerationError,
    ) as exc:
        logger.error(
            "candidate_summary_failed",
            extra={
                "candidate_name": candidate_name,
                "error_type": type(exc).__name__,
                "error_message": str(exc),
            },
        )
        return placeholder_summary(candidate_name, "The AI service encountered an error")

    logger.info(
        "candidate_summary_generated",
        extra={
            "candidate_name": candidate_name,
            "recommendation": summary.recommendation.value,
            "confidence_score": summary.confidence_score,
        },
    )
    return summary


async def generate_follow_up_questions(
    candidate_name: str,
    role: str,
    notes: list[str],
) -> list[str]:
    """Suggest follow-up interview questions; never raises."""
    prompt = FOLLOW_UP_PROMPT.format(
        name=candidate_name, role=role, notes="\n\n".join(notes)
    )
    try:
        text = await _generate(prompt)
        match = _ARRAY_PATTERN.search(_strip_fences(text))
        if match is None:
            return [FOLLOW_UP_FALLBACK]
        questions = json.loads(match.group(0))
    except (
        httpx.HTTPError,
        httpx.InvalidURL,
        json.JSONDecodeError,
        KeyError,
        IndexError,
        TypeError,
        SummaryGenerationError,
    ) as exc:
        logger.error(
            "follow_up_questions_failed",
            extra={
                "candidate_name": candidate_name,
                "error_type": type(exc).__name__,
                "error_message": str(exc),
            },
        )
        return [FOLLOW_UP_FALLBACK]

    if not isinstance(questions, list):
        return [FOLLOW_UP_FALLBACK]
    return [str(q) for q in questions if str(q).strip()] or [FOLLOW_UP_FALLBACK]
