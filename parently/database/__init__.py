"""
Database module - relational persistence.

This module handles:
- Connection and session management
- ORM table definitions
- Owner-scoped CRUD with field encryption
- Table creation
"""
from parently.database.connection import DatabaseConnection, get_database
from parently.database.models import (
    Base,
    UserRow,
    ParentCheckinRow,
    DailyPlanRow,
    ChatMessageRow,
    ChildTaskRow,
    ChildMessageRow,
    FinancialGoalRow,
    ChildInsightRow,
)
from parently.database.repository import FamilyRepository, get_repository
from parently.database.init_db import create_tables, drop_tables

__all__ = [
    # Connection
    "DatabaseConnection",
    "get_database",
    # Models
    "Base",
    "UserRow",
    "ParentCheckinRow",
    "DailyPlanRow",
    "ChatMessageRow",
    "ChildTaskRow",
    "ChildMessageRow",
    "FinancialGoalRow",
    "ChildInsightRow",
    # Repository
    "FamilyRepository",
    "get_repository",
    # Init
    "create_tables",
    "drop_tables",
]
