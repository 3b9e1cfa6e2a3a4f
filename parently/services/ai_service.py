"""
AI Service - Business logic on top of the LLM client.

This service turns family data into prompts and LLM replies into typed
results:
1. Rates a parent's question and picks the model tier
2. Drafts daily plans from check-ins and goals
3. Answers parent and child chat
4. Builds child insights for the parent

Every operation degrades instead of failing: when the LLM is unavailable
or returns unparseable output, a fixed default answer is returned and
the failure is logged.
"""
from typing import Iterable, List, Optional

from parently.core.exceptions import LLMError
from parently.core.logging_config import get_logger
from parently.llm.client import LLMClient
from parently.llm.parsing import extract_json
from parently.llm.prompts import (
    CHILD_SYSTEM_PROMPT,
    JSON_SYSTEM_PROMPT,
    PARENT_SYSTEM_PROMPT,
    get_chat_prompt,
    get_child_prompt,
    get_complexity_prompt,
    get_insights_prompt,
    get_plan_prompt,
)
from parently.models.ai import (
    ChatReply,
    ChildInsightContent,
    ComplexityEvaluation,
    DailyPlanContent,
)
from parently.models.records import ChildMessage, ModelTier, ParentCheckin

logger = get_logger(__name__)

# Scores at or below this run on the fast tier
FAST_TIER_MAX_COMPLEXITY = 3

PARENT_FALLBACK_REPLY = (
    "I apologize, but I'm having trouble processing your request right now. "
    "Please try again in a moment."
)
CHILD_FALLBACK_REPLY = (
    "Oops, I'm having a little trouble thinking right now. "
    "Can you ask me again in a minute?"
)


def tier_for_complexity(score: float) -> ModelTier:
    """Map a 1-5 complexity score to a model tier."""
    return "fast" if score <= FAST_TIER_MAX_COMPLEXITY else "smart"


def degraded_insights() -> ChildInsightContent:
    """Insights returned when generation fails."""
    return ChildInsightContent(
        summary="Unable to generate insights at this time",
        emotional_state="Unknown",
        concerns=[],
        recommendations=["Continue monitoring child's messages"],
        suggested_actions=["Check in with your child"],
    )


class AIService:
    """
    Parenting assistant backed by an LLMClient.

    Example:
        >>> service = AIService(LLMClient())
        >>> reply = service.handle_chat("How do I explain a budget to a 7 year old?")
        >>> reply.model
        'fast'
    """

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self.llm_client = llm_client or LLMClient()

    # ============================================================
    # Complexity
    # ============================================================

    def evaluate_complexity(self, message: str) -> ComplexityEvaluation:
        """
        Rate a parent's question from 1 (simple) to 5 (very complex).

        Any failure yields the moderate default of 3.
        """
        try:
            raw = self.llm_client.generate(
                get_complexity_prompt(message),
                tier="fast",
                system_prompt=JSON_SYSTEM_PROMPT,
            )
            data = extract_json(raw)
            # Scores may arrive fractional or as numeric strings
            score = min(max(float(data.get("complexityScore", 3)), 1.0), 5.0)
            return ComplexityEvaluation(
                complexity_score=score,
                reasoning=data.get("reasoning") or "Complexity evaluated",
            )
        except (LLMError, ValueError, TypeError) as e:
            logger.warning(f"Complexity evaluation failed, using default: {e}")
            return ComplexityEvaluation(
                complexity_score=3,
                reasoning="Default complexity score due to evaluation error",
            )

    # ============================================================
    # Daily plan
    # ============================================================

    def generate_plan(
        self,
        checkins: List[ParentCheckin],
        goal_titles: Optional[Iterable[str]] = None,
        family_situation: Optional[str] = None,
    ) -> DailyPlanContent:
        """
        Draft today's plan.

        Args:
            checkins: Recent check-ins, newest first
            goal_titles: The parent's financial goal titles
            family_situation: Optional free-text context

        Returns:
            DailyPlanContent; missing keys fall back to defaults
        """
        try:
            raw = self.llm_client.generate(
                get_plan_prompt(checkins, goal_titles, family_situation),
                tier="fast",
                system_prompt=JSON_SYSTEM_PROMPT,
            )
            data = extract_json(raw)
            # Empty values count as missing
            return DailyPlanContent.model_validate({k: v for k, v in data.items() if v})
        except (LLMError, ValueError) as e:
            logger.warning(f"Plan generation failed, using default plan: {e}")
            return DailyPlanContent()

    # ============================================================
    # Chat
    # ============================================================

    def handle_chat(self, message: str, context: Optional[str] = None) -> ChatReply:
        """
        Answer a parent's message on the tier its complexity calls for.

        Args:
            message: The parent's message
            context: Optional description of the latest check-in

        Returns:
            ChatReply; `is_fallback` is set on the degraded answer
        """
        complexity = self.evaluate_complexity(message)
        tier = tier_for_complexity(complexity.complexity_score)

        logger.info(f"Parent chat: complexity={complexity.complexity_score}, tier={tier}")

        try:
            response = self.llm_client.generate(
                get_chat_prompt(message, context),
                tier=tier,
                system_prompt=PARENT_SYSTEM_PROMPT,
            )
            return ChatReply(
                response=response,
                model=tier,
                complexity_score=complexity.complexity_score,
            )
        except LLMError as e:
            logger.error(f"Chat handling failed: {e}")
            return ChatReply(
                response=PARENT_FALLBACK_REPLY,
                model="fast",
                complexity_score=3,
                is_fallback=True,
            )

    def handle_child_message(self, message: str) -> ChatReply:
        """Answer a child's message. Always runs on the fast tier."""
        try:
            response = self.llm_client.generate(
                get_child_prompt(message),
                tier="fast",
                system_prompt=CHILD_SYSTEM_PROMPT,
            )
            return ChatReply(response=response, model="fast", complexity_score=1)
        except LLMError as e:
            logger.error(f"Child chat failed: {e}")
            return ChatReply(
                response=CHILD_FALLBACK_REPLY,
                model="fast",
                complexity_score=1,
                is_fallback=True,
            )

    # ============================================================
    # Insights
    # ============================================================

    def generate_child_insights(
        self,
        child_messages: List[ChildMessage],
        parent_checkins: List[ParentCheckin],
    ) -> ChildInsightContent:
        """
        Summarise a child's recent messages for the parent.

        Runs on the smart tier.
        """
        try:
            raw = self.llm_client.generate(
                get_insights_prompt(child_messages, parent_checkins),
                tier="smart",
                system_prompt=JSON_SYSTEM_PROMPT,
            )
            data = extract_json(raw)
            return ChildInsightContent.model_validate(
                {k: v for k, v in data.items() if v is not None}
            )
        except (LLMError, ValueError) as e:
            logger.warning(f"Child insights generation failed: {e}")
            return degraded_insights()
