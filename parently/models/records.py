"""
Typed records returned by the repository.

These are the decrypted, API-facing view of database rows.
"""
from typing import Literal, Optional

from pydantic import Field

from parently.models.common import CamelModel, UtcDatetime

UserType = Literal["parent", "child"]
CheckinType = Literal["morning", "evening"]
ModelTier = Literal["fast", "smart"]
TaskType = Literal["homework", "social", "financial"]
GoalType = Literal["savings", "activity", "emergency"]


class User(CamelModel):
    id: str
    email: str
    name: str
    user_type: UserType
    parent_id: Optional[str] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class UserWithPassword(User):
    """User plus the stored hash; the hash never serialises."""
    password_hash: str = Field(exclude=True)


class ParentCheckin(CamelModel):
    id: str
    user_id: str
    checkin_type: CheckinType
    emotional_state: int
    financial_stress: int
    notes: Optional[str] = None
    unexpected_expenses: float = 0
    created_at: UtcDatetime


class DailyPlan(CamelModel):
    id: str
    user_id: str
    plan_content: str
    plan_date: str
    created_at: UtcDatetime


class ChatMessage(CamelModel):
    id: str
    user_id: str
    message: str
    response: str
    complexity_score: Optional[float] = None
    ai_model: ModelTier
    created_at: UtcDatetime


class ChildTask(CamelModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    task_type: TaskType
    points: int
    completed: bool
    completed_at: Optional[UtcDatetime] = None
    created_at: UtcDatetime


class ChildMessage(CamelModel):
    id: str
    user_id: str
    message: str
    ai_response: str
    created_at: UtcDatetime


class FinancialGoal(CamelModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    target_amount: float
    current_amount: float
    goal_type: GoalType
    target_date: Optional[UtcDatetime] = None
    created_at: UtcDatetime


class ChildInsight(CamelModel):
    id: str
    parent_id: str
    child_id: str
    insight_content: str
    recommendations: Optional[str] = None
    insight_date: str
    created_at: UtcDatetime
