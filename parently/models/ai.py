"""
Structured AI outputs.

Defaults double as the degraded answers used when the LLM is unavailable
or returns something unparseable.
"""
from typing import List

from pydantic import Field

from parently.models.common import CamelModel
from parently.models.records import ModelTier


class ComplexityEvaluation(CamelModel):
    complexity_score: float = Field(default=3, ge=1, le=5)
    reasoning: str = "Complexity evaluated"


class DailyPlanContent(CamelModel):
    plan: str = "Focus on family well-being and financial stability today"
    focus_areas: List[str] = Field(default_factory=lambda: ["parenting", "finances"])
    tips: List[str] = Field(default_factory=lambda: [
        "Take time for yourself",
        "Review family budget",
        "Connect with your child",
    ])


class ChatReply(CamelModel):
    response: str
    model: ModelTier
    complexity_score: float = 3
    # Degraded answers are returned but never cached
    is_fallback: bool = Field(default=False, exclude=True)


class ChildInsightContent(CamelModel):
    summary: str = "Child appears to be doing well"
    emotional_state: str = "Stable"
    concerns: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    suggested_actions: List[str] = Field(default_factory=list)
