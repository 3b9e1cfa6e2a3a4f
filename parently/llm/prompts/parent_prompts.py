"""
Parent Prompts - Prompts for the parent-facing assistant.

This module contains prompts that instruct the LLM to:
1. Rate how hard a question is (drives model tier selection)
2. Draft a short daily plan from recent check-ins and goals
3. Answer parenting and family-finance questions
4. Summarise a child's recent messages for the parent

Structured prompts ask for JSON with camelCase keys matching the
models in parently.models.ai.
"""
from typing import Iterable, List, Optional

from parently.models.records import ChildMessage, ParentCheckin


PARENT_SYSTEM_PROMPT = """You are Parently, an AI assistant for parents and family finances.

Rules:
- Be empathetic and practical
- Address parenting and financial concerns together when both apply
- Keep it concise but thorough
- Do NOT give legal or medical diagnoses"""

JSON_SYSTEM_PROMPT = """You are Parently's analysis engine.
Respond with a single JSON object and nothing else."""


def get_complexity_prompt(message: str) -> str:
    """
    Ask for a 1-5 complexity rating of a parent's question.

    Args:
        message: The parent's chat message

    Returns:
        Prompt requesting {"complexityScore", "reasoning"}
    """
    return f"""Evaluate the complexity of this parenting/financial question on a scale of 1-5:
1 = Simple factual question
2 = Basic advice needed
3 = Moderate complexity requiring context
4 = Complex situation requiring analysis
5 = Very complex requiring deep understanding

Question: "{message}"

Respond with JSON format:
{{
  "complexityScore": number,
  "reasoning": "brief explanation"
}}"""


def get_plan_prompt(
    checkins: List[ParentCheckin],
    goal_titles: Optional[Iterable[str]] = None,
    family_situation: Optional[str] = None,
) -> str:
    """
    Build the daily plan prompt.

    Args:
        checkins: Recent check-ins, newest first
        goal_titles: Titles of the parent's financial goals
        family_situation: Free-text context, if any

    Returns:
        Prompt requesting {"plan", "focusAreas", "tips"}
    """
    emotional = ", ".join(f"{c.emotional_state}/10" for c in checkins) or "No check-ins yet"
    stress = ", ".join(f"{c.financial_stress}/10" for c in checkins) or "No check-ins yet"
    goals = ", ".join(goal_titles or []) or "None specified"

    return f"""As a parenting and family finance AI assistant, create a concise daily plan based on this context:

Recent emotional states: {emotional}
Recent financial stress: {stress}
Current goals: {goals}
Family situation: {family_situation or 'Not specified'}

Create a brief, actionable plan with:
1. Main focus for today
2. 2-3 specific tips
3. One financial action item

Format as JSON:
{{
  "plan": "brief daily plan",
  "focusAreas": ["area1", "area2"],
  "tips": ["tip1", "tip2", "tip3"]
}}"""


def get_chat_prompt(message: str, context: Optional[str] = None) -> str:
    """Format a parent's chat message, with optional check-in context."""
    context_block = f"Context: {context}\n\n" if context else ""
    return f"""{context_block}User message: "{message}"

Provide a helpful, empathetic response that addresses parenting and/or financial concerns."""


def get_checkin_context(checkin: Optional[ParentCheckin]) -> Optional[str]:
    """Describe the latest check-in as chat context."""
    if checkin is None:
        return None
    context = (
        f"Recent emotional state: {checkin.emotional_state}/10, "
        f"Financial stress: {checkin.financial_stress}/10"
    )
    if checkin.notes:
        context += f", Notes: {checkin.notes}"
    return context


def get_insights_prompt(
    child_messages: List[ChildMessage],
    parent_checkins: List[ParentCheckin],
) -> str:
    """
    Build the child insight prompt from a child's messages and the
    parent's check-ins.

    Returns:
        Prompt requesting {"summary", "emotionalState", "concerns",
        "recommendations", "suggestedActions"}
    """
    messages = "\n".join(
        f'- "{m.message}" ({m.created_at.isoformat()})' for m in child_messages
    )
    checkins = "\n".join(
        f"- Emotional: {c.emotional_state}/10, Financial stress: "
        f"{c.financial_stress}/10 ({c.created_at.isoformat()})"
        for c in parent_checkins
    )

    return f"""Analyze this child-parent interaction data and provide insights for the parent:

Child's recent messages:
{messages or '- none'}

Parent's recent check-ins:
{checkins or '- none'}

Provide insights in JSON format:
{{
  "summary": "brief summary of child's emotional state and concerns",
  "emotionalState": "overall emotional assessment",
  "concerns": ["concern1", "concern2"],
  "recommendations": ["recommendation1", "recommendation2"],
  "suggestedActions": ["action1", "action2"]
}}"""
