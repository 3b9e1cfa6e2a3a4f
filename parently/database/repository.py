"""
Family Repository - CRUD over the relational store.

Every write path creates one row; reads are owner-filtered and ordered
newest first. Free-text columns are encrypted on the way in and decrypted
on the way out, so callers only ever see plaintext typed records.
"""
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from parently.core.encryption import EncryptionService
from parently.core.exceptions import ConflictError, NotFoundError
from parently.core.logging_config import get_logger
from parently.database.connection import DatabaseConnection
from parently.database.models import (
    ChatMessageRow,
    ChildInsightRow,
    ChildMessageRow,
    ChildTaskRow,
    DailyPlanRow,
    FinancialGoalRow,
    ParentCheckinRow,
    UserRow,
    utcnow,
)
from parently.models.records import (
    ChatMessage,
    ChildInsight,
    ChildMessage,
    ChildTask,
    DailyPlan,
    FinancialGoal,
    ParentCheckin,
    User,
    UserWithPassword,
)

logger = get_logger(__name__)


def _as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class FamilyRepository:
    """
    Typed data access for users, check-ins, plans, chats, tasks, goals
    and insights.

    Example:
        >>> repo = FamilyRepository(DatabaseConnection("sqlite://"), EncryptionService("k"))
        >>> parent = repo.create_user("p@home.org", "Pat", hash_password("..."), "parent")
        >>> repo.get_user_by_id(parent.id).name
        'Pat'
    """

    def __init__(self, db: DatabaseConnection, encryption: EncryptionService):
        self.db = db
        self.encryption = encryption

    # ------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------

    @staticmethod
    def _to_user(row: UserRow) -> User:
        return User(
            id=row.id,
            email=row.email,
            name=row.name,
            user_type=row.user_type,
            parent_id=row.parent_id,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _to_checkin(self, row: ParentCheckinRow) -> ParentCheckin:
        return ParentCheckin(
            id=row.id,
            user_id=row.user_id,
            checkin_type=row.checkin_type,
            emotional_state=row.emotional_state,
            financial_stress=row.financial_stress,
            notes=self.encryption.decrypt(row.notes_encrypted) if row.notes_encrypted else None,
            unexpected_expenses=row.unexpected_expenses or 0,
            created_at=row.created_at,
        )

    def _to_chat_message(self, row: ChatMessageRow) -> ChatMessage:
        return ChatMessage(
            id=row.id,
            user_id=row.user_id,
            message=self.encryption.decrypt(row.message_encrypted),
            response=self.encryption.decrypt(row.response_encrypted),
            complexity_score=row.complexity_score,
            ai_model=row.ai_model,
            created_at=row.created_at,
        )

    def _to_child_message(self, row: ChildMessageRow) -> ChildMessage:
        return ChildMessage(
            id=row.id,
            user_id=row.user_id,
            message=self.encryption.decrypt(row.message_encrypted),
            ai_response=self.encryption.decrypt(row.ai_response_encrypted),
            created_at=row.created_at,
        )

    @staticmethod
    def _to_task(row: ChildTaskRow) -> ChildTask:
        return ChildTask(
            id=row.id,
            user_id=row.user_id,
            title=row.title,
            description=row.description,
            task_type=row.task_type,
            points=row.points,
            completed=bool(row.completed),
            completed_at=row.completed_at,
            created_at=row.created_at,
        )

    @staticmethod
    def _to_goal(row: FinancialGoalRow) -> FinancialGoal:
        return FinancialGoal(
            id=row.id,
            user_id=row.user_id,
            title=row.title,
            description=row.description,
            target_amount=row.target_amount,
            current_amount=row.current_amount,
            goal_type=row.goal_type,
            target_date=row.target_date,
            created_at=row.created_at,
        )

    @staticmethod
    def _to_plan(row: DailyPlanRow) -> DailyPlan:
        return DailyPlan(
            id=row.id,
            user_id=row.user_id,
            plan_content=row.plan_content,
            plan_date=row.plan_date,
            created_at=row.created_at,
        )

    @staticmethod
    def _to_insight(row: ChildInsightRow) -> ChildInsight:
        return ChildInsight(
            id=row.id,
            parent_id=row.parent_id,
            child_id=row.child_id,
            insight_content=row.insight_content,
            recommendations=row.recommendations,
            insight_date=row.insight_date,
            created_at=row.created_at,
        )

    # ------------------------------------------------------------
    # Users
    # ------------------------------------------------------------

    def create_user(
        self,
        email: str,
        name: str,
        password_hash: str,
        user_type: str,
        parent_id: Optional[str] = None,
    ) -> User:
        now = utcnow()
        row = UserRow(
            id=self.encryption.generate_secure_id(),
            email=email,
            name=name,
            password_hash=password_hash,
            user_type=user_type,
            parent_id=parent_id,
            created_at=now,
            updated_at=now,
        )
        try:
            with self.db.get_session() as session:
                session.add(row)
        except IntegrityError:
            # Only a duplicate email is a client conflict
            if self.get_user_by_email(email) is not None:
                raise ConflictError("User with this email already exists")
            raise

        logger.info(f"Created {user_type} user {row.id[:8]}...")
        return self._to_user(row)

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        with self.db.get_session() as session:
            row = session.query(UserRow).filter(UserRow.id == user_id).first()
            return self._to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[UserWithPassword]:
        with self.db.get_session() as session:
            row = session.query(UserRow).filter(UserRow.email == email).first()
            if not row:
                return None
            return UserWithPassword(
                **self._to_user(row).model_dump(),
                password_hash=row.password_hash,
            )

    def get_children_by_parent_id(self, parent_id: str) -> List[User]:
        with self.db.get_session() as session:
            rows = session.query(UserRow).filter(
                UserRow.parent_id == parent_id,
                UserRow.user_type == "child",
            ).order_by(UserRow.created_at).all()
            return [self._to_user(r) for r in rows]

    # ------------------------------------------------------------
    # Check-ins
    # ------------------------------------------------------------

    def create_checkin(
        self,
        user_id: str,
        checkin_type: str,
        emotional_state: int,
        financial_stress: int,
        notes: Optional[str] = None,
        unexpected_expenses: float = 0,
    ) -> ParentCheckin:
        row = ParentCheckinRow(
            id=self.encryption.generate_secure_id(),
            user_id=user_id,
            checkin_type=checkin_type,
            emotional_state=emotional_state,
            financial_stress=financial_stress,
            notes_encrypted=self.encryption.encrypt(notes) if notes else None,
            unexpected_expenses=unexpected_expenses or 0,
            created_at=utcnow(),
        )
        with self.db.get_session() as session:
            session.add(row)
        return self._to_checkin(row)

    def get_recent_checkins(
        self,
        user_id: str,
        limit: int = 10,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> List[ParentCheckin]:
        with self.db.get_session() as session:
            query = session.query(ParentCheckinRow).filter(ParentCheckinRow.user_id == user_id)
            if start_date is not None:
                query = query.filter(ParentCheckinRow.created_at >= _as_naive_utc(start_date))
            if end_date is not None:
                query = query.filter(ParentCheckinRow.created_at <= _as_naive_utc(end_date))
            rows = query.order_by(ParentCheckinRow.created_at.desc()).limit(limit).all()
            return [self._to_checkin(r) for r in rows]

    # ------------------------------------------------------------
    # Daily plans
    # ------------------------------------------------------------

    def upsert_daily_plan(self, user_id: str, plan_content: str, plan_date: str) -> DailyPlan:
        """Store the plan for a day, replacing any earlier plan for that day."""
        with self.db.get_session() as session:
            row = session.query(DailyPlanRow).filter(
                DailyPlanRow.user_id == user_id,
                DailyPlanRow.plan_date == plan_date,
            ).first()
            if row is None:
                row = DailyPlanRow(
                    id=self.encryption.generate_secure_id(),
                    user_id=user_id,
                    plan_date=plan_date,
                )
                session.add(row)
            row.plan_content = plan_content
            row.created_at = utcnow()
            session.flush()
            return self._to_plan(row)

    def get_daily_plan(self, user_id: str, plan_date: str) -> Optional[DailyPlan]:
        with self.db.get_session() as session:
            row = session.query(DailyPlanRow).filter(
                DailyPlanRow.user_id == user_id,
                DailyPlanRow.plan_date == plan_date,
            ).first()
            return self._to_plan(row) if row else None

    # ------------------------------------------------------------
    # Parent chat
    # ------------------------------------------------------------

    def create_chat_message(
        self,
        user_id: str,
        message: str,
        response: str,
        ai_model: str,
        complexity_score: Optional[float] = None,
    ) -> ChatMessage:
        row = ChatMessageRow(
            id=self.encryption.generate_secure_id(),
            user_id=user_id,
            message_encrypted=self.encryption.encrypt(message),
            response_encrypted=self.encryption.encrypt(response),
            complexity_score=complexity_score,
            ai_model=ai_model,
            created_at=utcnow(),
        )
        with self.db.get_session() as session:
            session.add(row)
        return self._to_chat_message(row)

    def get_chat_history(self, user_id: str, limit: int = 20) -> List[ChatMessage]:
        with self.db.get_session() as session:
            rows = session.query(ChatMessageRow).filter(
                ChatMessageRow.user_id == user_id
            ).order_by(ChatMessageRow.created_at.desc()).limit(limit).all()
            return [self._to_chat_message(r) for r in rows]

    # ------------------------------------------------------------
    # Child tasks
    # ------------------------------------------------------------

    def create_child_task(
        self,
        user_id: str,
        title: str,
        task_type: str,
        points: int = 10,
        description: Optional[str] = None,
    ) -> ChildTask:
        row = ChildTaskRow(
            id=self.encryption.generate_secure_id(),
            user_id=user_id,
            title=title,
            description=description,
            task_type=task_type,
            points=points,
            completed=False,
            created_at=utcnow(),
        )
        with self.db.get_session() as session:
            session.add(row)
        return self._to_task(row)

    def get_child_tasks(self, user_id: str, completed: Optional[bool] = None) -> List[ChildTask]:
        with self.db.get_session() as session:
            query = session.query(ChildTaskRow).filter(ChildTaskRow.user_id == user_id)
            if completed is not None:
                query = query.filter(ChildTaskRow.completed == completed)
            rows = query.order_by(ChildTaskRow.created_at.desc()).all()
            return [self._to_task(r) for r in rows]

    def complete_task(self, task_id: str, user_id: str) -> ChildTask:
        """
        Mark one of the child's tasks as done.

        Raises:
            NotFoundError: task missing or owned by another child
            ConflictError: task already completed
        """
        with self.db.get_session() as session:
            row = session.query(ChildTaskRow).filter(
                ChildTaskRow.id == task_id,
                ChildTaskRow.user_id == user_id,
            ).first()
            if row is None:
                raise NotFoundError("Task not found")
            if row.completed:
                raise ConflictError("Task already completed")
            row.completed = True
            row.completed_at = utcnow()
            session.flush()
            return self._to_task(row)

    # ------------------------------------------------------------
    # Child messages
    # ------------------------------------------------------------

    def create_child_message(self, user_id: str, message: str, ai_response: str) -> ChildMessage:
        row = ChildMessageRow(
            id=self.encryption.generate_secure_id(),
            user_id=user_id,
            message_encrypted=self.encryption.encrypt(message),
            ai_response_encrypted=self.encryption.encrypt(ai_response),
            created_at=utcnow(),
        )
        with self.db.get_session() as session:
            session.add(row)
        return self._to_child_message(row)

    def get_child_messages(self, user_id: str, limit: int = 50) -> List[ChildMessage]:
        with self.db.get_session() as session:
            rows = session.query(ChildMessageRow).filter(
                ChildMessageRow.user_id == user_id
            ).order_by(ChildMessageRow.created_at.desc()).limit(limit).all()
            return [self._to_child_message(r) for r in rows]

    # ------------------------------------------------------------
    # Financial goals
    # ------------------------------------------------------------

    def create_financial_goal(
        self,
        user_id: str,
        title: str,
        target_amount: float,
        goal_type: str,
        description: Optional[str] = None,
        target_date: Optional[datetime] = None,
        current_amount: float = 0,
    ) -> FinancialGoal:
        row = FinancialGoalRow(
            id=self.encryption.generate_secure_id(),
            user_id=user_id,
            title=title,
            description=description,
            target_amount=target_amount,
            current_amount=current_amount,
            goal_type=goal_type,
            target_date=_as_naive_utc(target_date),
            created_at=utcnow(),
        )
        with self.db.get_session() as session:
            session.add(row)
        return self._to_goal(row)

    def get_financial_goals(self, user_id: str) -> List[FinancialGoal]:
        with self.db.get_session() as session:
            rows = session.query(FinancialGoalRow).filter(
                FinancialGoalRow.user_id == user_id
            ).order_by(FinancialGoalRow.created_at.desc()).all()
            return [self._to_goal(r) for r in rows]

    def update_financial_goal_progress(
        self, goal_id: str, user_id: str, current_amount: float
    ) -> FinancialGoal:
        with self.db.get_session() as session:
            row = session.query(FinancialGoalRow).filter(
                FinancialGoalRow.id == goal_id,
                FinancialGoalRow.user_id == user_id,
            ).first()
            if row is None:
                raise NotFoundError("Goal not found")
            row.current_amount = current_amount
            session.flush()
            return self._to_goal(row)

    # ------------------------------------------------------------
    # Child insights
    # ------------------------------------------------------------

    def create_child_insight(
        self,
        parent_id: str,
        child_id: str,
        insight_content: str,
        insight_date: str,
        recommendations: Optional[str] = None,
    ) -> ChildInsight:
        row = ChildInsightRow(
            id=self.encryption.generate_secure_id(),
            parent_id=parent_id,
            child_id=child_id,
            insight_content=insight_content,
            recommendations=recommendations,
            insight_date=insight_date,
            created_at=utcnow(),
        )
        with self.db.get_session() as session:
            session.add(row)
        return self._to_insight(row)

    def get_child_insights(self, parent_id: str, child_id: str, limit: int = 10) -> List[ChildInsight]:
        with self.db.get_session() as session:
            rows = session.query(ChildInsightRow).filter(
                ChildInsightRow.parent_id == parent_id,
                ChildInsightRow.child_id == child_id,
            ).order_by(ChildInsightRow.created_at.desc()).limit(limit).all()
            return [self._to_insight(r) for r in rows]


_repository: Optional[FamilyRepository] = None


def get_repository() -> FamilyRepository:
    """Get or create the repository bound to the global connection."""
    global _repository
    if _repository is None:
        from parently.core.config import get_settings
        from parently.database.connection import get_database
        _repository = FamilyRepository(
            get_database(),
            EncryptionService(get_settings().encryption_key),
        )
    return _repository
