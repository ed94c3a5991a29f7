"""Pydantic models for AI-generated candidate summaries."""

from pydantic import BaseModel, Field

from app.models.enums import Recommendation


class CandidateSummary(BaseModel):
    """Structured assessment of a candidate built from their notes."""
    overall_assessment: str
    key_strengths: list[str] = []
    areas_of_concern: list[str] = []
    technical_skills: list[str] = []
    soft_skills: list[str] = []
    recommendation: Recommendation = Recommendation.maybe
    confidence_score: int = Field(default=0, ge=0, le=100)
    next_steps: list[str] = []
    is_placeholder: bool = False


class FollowUpQuestionsResponse(BaseModel):
    questions: list[str] = []
