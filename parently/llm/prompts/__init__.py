"""
Prompts module - LLM prompt templates.

Parent prompts drive planning, chat, complexity rating and insights;
child prompts drive the kids' chat.
"""
from parently.llm.prompts.parent_prompts import (
    PARENT_SYSTEM_PROMPT,
    JSON_SYSTEM_PROMPT,
    get_complexity_prompt,
    get_plan_prompt,
    get_chat_prompt,
    get_checkin_context,
    get_insights_prompt,
)
from parently.llm.prompts.child_prompts import CHILD_SYSTEM_PROMPT, get_child_prompt

__all__ = [
    "PARENT_SYSTEM_PROMPT",
    "JSON_SYSTEM_PROMPT",
    "get_complexity_prompt",
    "get_plan_prompt",
    "get_chat_prompt",
    "get_checkin_context",
    "get_insights_prompt",
    "CHILD_SYSTEM_PROMPT",
    "get_child_prompt",
]
