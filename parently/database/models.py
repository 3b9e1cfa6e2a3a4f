"""
Database Models - SQLAlchemy ORM models for persistent storage.

Columns suffixed `_encrypted` hold Fernet tokens; the repository is the
only code that reads or writes them.
"""
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp; every DateTime column stores UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UserRow(Base):
    """Parent and child accounts. Children point at their parent."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    user_type = Column(String(10), nullable=False)  # 'parent' | 'child'
    parent_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class ParentCheckinRow(Base):
    __tablename__ = "parent_checkins"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    checkin_type = Column(String(10), nullable=False)  # 'morning' | 'evening'
    emotional_state = Column(Integer, nullable=False)
    financial_stress = Column(Integer, nullable=False)
    notes_encrypted = Column(Text, nullable=True)
    unexpected_expenses = Column(Float, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class DailyPlanRow(Base):
    __tablename__ = "daily_plans"
    __table_args__ = (UniqueConstraint("user_id", "plan_date", name="uq_daily_plan_user_date"),)

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    plan_content = Column(Text, nullable=False)  # JSON document
    plan_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ChatMessageRow(Base):
    __tablename__ = "chat_messages"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    message_encrypted = Column(Text, nullable=False)
    response_encrypted = Column(Text, nullable=False)
    complexity_score = Column(Float, nullable=True)
    ai_model = Column(String(10), nullable=False)  # 'fast' | 'smart'
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ChildTaskRow(Base):
    __tablename__ = "child_tasks"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    task_type = Column(String(20), nullable=False)  # 'homework' | 'social' | 'financial'
    points = Column(Integer, default=10, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ChildMessageRow(Base):
    __tablename__ = "child_messages"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    message_encrypted = Column(Text, nullable=False)
    ai_response_encrypted = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class FinancialGoalRow(Base):
    __tablename__ = "financial_goals"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    target_amount = Column(Float, nullable=False)
    current_amount = Column(Float, default=0, nullable=False)
    goal_type = Column(String(20), nullable=False)  # 'savings' | 'activity' | 'emergency'
    target_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ChildInsightRow(Base):
    __tablename__ = "child_insights"

    id = Column(String(36), primary_key=True)
    parent_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    child_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    insight_content = Column(Text, nullable=False)
    recommendations = Column(Text, nullable=True)
    insight_date = Column(String(10), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
