"""
Models module - Pydantic schemas for data validation.

This module defines:
- records.py  : Typed, decrypted views of database rows
- requests.py : Input validation for API endpoints
- ai.py       : Structured LLM outputs with degraded defaults
- common.py   : camelCase base model and the response envelope
"""
from parently.models.common import CamelModel, success, to_payload
from parently.models.records import (
    User,
    UserWithPassword,
    ParentCheckin,
    DailyPlan,
    ChatMessage,
    ChildTask,
    ChildMessage,
    FinancialGoal,
    ChildInsight,
)
from parently.models.ai import (
    ComplexityEvaluation,
    DailyPlanContent,
    ChatReply,
    ChildInsightContent,
)

__all__ = [
    "CamelModel",
    "success",
    "to_payload",
    "User",
    "UserWithPassword",
    "ParentCheckin",
    "DailyPlan",
    "ChatMessage",
    "ChildTask",
    "ChildMessage",
    "FinancialGoal",
    "ChildInsight",
    "ComplexityEvaluation",
    "DailyPlanContent",
    "ChatReply",
    "ChildInsightContent",
]
