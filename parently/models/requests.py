"""
Request models for the REST API.

These Pydantic models define the contract between client and server.
Field limits mirror the ranges enforced at the boundary; nothing deeper
in the stack re-validates them.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field

from parently.models.common import CamelModel
from parently.models.records import CheckinType, GoalType, TaskType, UserType


# ============================================================
# Auth
# ============================================================

class RegisterRequest(CamelModel):
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=8)
    user_type: UserType
    parent_id: Optional[str] = Field(default=None, min_length=1)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8)


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


# ============================================================
# Parent
# ============================================================

class CheckinRequest(CamelModel):
    """
    A morning or evening self-report.

    Attributes:
        emotional_state: 1 (struggling) to 10 (great)
        financial_stress: 1 (calm) to 10 (overwhelmed)
        unexpected_expenses: Money spent on surprises since the last check-in
    """
    checkin_type: CheckinType
    emotional_state: int = Field(..., ge=1, le=10)
    financial_stress: int = Field(..., ge=1, le=10)
    notes: Optional[str] = Field(default=None, max_length=1000)
    unexpected_expenses: Optional[float] = Field(default=None, ge=0)


class ChatRequest(CamelModel):
    message: str = Field(
        ...,
        min_length=1,
        max_length=2000,
        examples=["How do I talk to my kid about our tighter budget?"],
    )


class FinancialGoalRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=500)
    target_amount: float = Field(..., gt=0)
    goal_type: GoalType
    target_date: Optional[datetime] = None


class GoalProgressRequest(CamelModel):
    current_amount: float = Field(..., ge=0)


# ============================================================
# Kids
# ============================================================

class ChildMessageRequest(CamelModel):
    message: str = Field(..., min_length=1, max_length=1000)


class TaskCompleteRequest(CamelModel):
    task_id: UUID


class CreateTaskRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=500)
    task_type: TaskType
    points: Optional[int] = Field(default=None, ge=1, le=100)
