"""
Parent Routes - Check-ins, plans, chat, progress, insights and goals.

Every endpoint requires a parent account. Rate-limit buckets:
- checkin  : POST /checkin
- plan     : GET /plan
- chat     : POST /chat
- insights : GET /insights
- general  : everything else
"""
import json
from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from parently.api.dependencies import get_ai_service, get_auth_service, rate_limited
from parently.cache.service import CacheService, get_cache_service
from parently.core.logging_config import get_logger
from parently.database.repository import FamilyRepository, get_repository
from parently.llm.prompts import get_checkin_context
from parently.models.common import success
from parently.models.requests import (
    ChatRequest,
    CheckinRequest,
    FinancialGoalRequest,
    GoalProgressRequest,
)
from parently.services.ai_service import AIService
from parently.services.auth_service import AuthenticatedUser, AuthService

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/parent",
    tags=["Parent"],
)

# Inputs to plan and insight generation
PLAN_CHECKIN_COUNT = 5
INSIGHT_MESSAGE_COUNT = 20
INSIGHT_CHECKIN_COUNT = 10


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


# ============================================================
# Check-ins
# ============================================================

@router.post("/checkin", status_code=201, summary="Record a morning or evening check-in")
def create_checkin(
    request: CheckinRequest,
    user: AuthenticatedUser = Depends(rate_limited("checkin", role="parent")),
    repository: FamilyRepository = Depends(get_repository),
) -> dict:
    checkin = repository.create_checkin(
        user_id=user.id,
        checkin_type=request.checkin_type,
        emotional_state=request.emotional_state,
        financial_stress=request.financial_stress,
        notes=request.notes,
        unexpected_expenses=request.unexpected_expenses or 0,
    )
    logger.info(f"Check-in recorded for {user.id[:8]}... ({request.checkin_type})")
    return success(checkin)


# ============================================================
# Daily plan
# ============================================================

@router.get("/plan", summary="Get (or generate) the daily plan")
def get_plan(
    plan_date: Optional[date] = Query(default=None, alias="date"),
    user: AuthenticatedUser = Depends(rate_limited("plan", role="parent")),
    repository: FamilyRepository = Depends(get_repository),
    cache: CacheService = Depends(get_cache_service),
    ai: AIService = Depends(get_ai_service),
) -> dict:
    """
    Resolve the plan for a day.

    Order of lookup: cache, stored plan for the day, fresh generation
    from the latest check-ins and goal titles.
    """
    day = plan_date.isoformat() if plan_date else _today()

    cached = cache.get_cached_daily_plan(user.id, day)
    if cached:
        return success(cached, cached=True)

    stored = repository.get_daily_plan(user.id, day)
    if stored:
        plan = json.loads(stored.plan_content)
        cache.cache_daily_plan(user.id, day, plan)
        return success(plan)

    checkins = repository.get_recent_checkins(user.id, limit=PLAN_CHECKIN_COUNT)
    goal_titles = [g.title for g in repository.get_financial_goals(user.id)]

    plan = ai.generate_plan(checkins, goal_titles).to_api()

    cache.cache_daily_plan(user.id, day, plan)
    repository.upsert_daily_plan(user.id, json.dumps(plan), day)

    logger.info(f"Generated plan for {user.id[:8]}... on {day}")
    return success(plan)


# ============================================================
# Chat
# ============================================================

@router.post("/chat", summary="Chat with the parenting assistant")
def chat(
    request: ChatRequest,
    user: AuthenticatedUser = Depends(rate_limited("chat", role="parent")),
    repository: FamilyRepository = Depends(get_repository),
    cache: CacheService = Depends(get_cache_service),
    ai: AIService = Depends(get_ai_service),
) -> dict:
    """
    Answer a parent's message.

    Identical messages within 30 minutes are served from cache. The
    latest check-in is passed to the model as context.
    """
    message_hash = cache.generate_message_hash(request.message)

    cached = cache.get_cached_ai_response(user.id, message_hash)
    if cached:
        return success(cached, cached=True)

    latest = repository.get_recent_checkins(user.id, limit=1)
    context = get_checkin_context(latest[0] if latest else None)

    reply = ai.handle_chat(request.message, context)
    payload = reply.to_api()

    if not reply.is_fallback:
        cache.cache_ai_response(user.id, message_hash, payload)

    repository.create_chat_message(
        user_id=user.id,
        message=request.message,
        response=reply.response,
        ai_model=reply.model,
        complexity_score=reply.complexity_score,
    )
    return success(payload)


# ============================================================
# Progress
# ============================================================

@router.get("/progress", summary="Check-in history, chat history and trends")
def get_progress(
    limit: int = Query(default=10, ge=1, le=100),
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    user: AuthenticatedUser = Depends(rate_limited("general", role="parent")),
    repository: FamilyRepository = Depends(get_repository),
) -> dict:
    checkins = repository.get_recent_checkins(
        user.id, limit=limit, start_date=start_date, end_date=end_date
    )
    chat_history = repository.get_chat_history(user.id, limit=limit)

    return success({
        "checkins": checkins,
        "chatHistory": chat_history,
        "trends": {
            "emotional": [{"date": c.created_at, "value": c.emotional_state} for c in checkins],
            "financial": [{"date": c.created_at, "value": c.financial_stress} for c in checkins],
        },
    })


# ============================================================
# Child insights
# ============================================================

@router.get("/insights", summary="AI insights for each child")
def get_insights(
    user: AuthenticatedUser = Depends(rate_limited("insights", role="parent")),
    repository: FamilyRepository = Depends(get_repository),
    cache: CacheService = Depends(get_cache_service),
    ai: AIService = Depends(get_ai_service),
) -> dict:
    """
    Build insights for every child that has sent at least one message.

    Results are cached per child for 2 hours and stored for history.
    """
    results = []
    parent_checkins = None

    for child in repository.get_children_by_parent_id(user.id):
        messages = repository.get_child_messages(child.id, limit=INSIGHT_MESSAGE_COUNT)
        if not messages:
            continue

        cached = cache.get_cached_child_insights(user.id, child.id)
        if cached:
            results.append({
                "childId": child.id,
                "childName": child.name,
                "insights": cached,
                "cached": True,
            })
            continue

        if parent_checkins is None:
            parent_checkins = repository.get_recent_checkins(user.id, limit=INSIGHT_CHECKIN_COUNT)

        insights = ai.generate_child_insights(messages, parent_checkins)
        data = insights.to_api()

        cache.cache_child_insights(user.id, child.id, data)
        repository.create_child_insight(
            parent_id=user.id,
            child_id=child.id,
            insight_content=insights.summary,
            insight_date=_today(),
            recommendations="; ".join(insights.recommendations),
        )
        results.append({"childId": child.id, "childName": child.name, "insights": data})

    return success(results)


@router.get("/insights/history", summary="Stored insights for one child")
def get_insight_history(
    child_id: Optional[str] = Query(default=None, alias="childId"),
    limit: int = Query(default=10, ge=1, le=50),
    user: AuthenticatedUser = Depends(rate_limited("general", role="parent")),
    auth: AuthService = Depends(get_auth_service),
    repository: FamilyRepository = Depends(get_repository),
) -> dict:
    child = auth.require_own_child(user, child_id)
    return success(repository.get_child_insights(user.id, child.id, limit=limit))


# ============================================================
# Financial goals
# ============================================================

@router.post("/goals", status_code=201, summary="Create a financial goal")
def create_goal(
    request: FinancialGoalRequest,
    user: AuthenticatedUser = Depends(rate_limited("general", role="parent")),
    repository: FamilyRepository = Depends(get_repository),
) -> dict:
    goal = repository.create_financial_goal(
        user_id=user.id,
        title=request.title,
        target_amount=request.target_amount,
        goal_type=request.goal_type,
        description=request.description,
        target_date=request.target_date,
    )
    return success(goal)


@router.get("/goals", summary="List financial goals")
def list_goals(
    user: AuthenticatedUser = Depends(rate_limited("general", role="parent")),
    repository: FamilyRepository = Depends(get_repository),
) -> dict:
    return success(repository.get_financial_goals(user.id))


@router.put("/goals/{goal_id}/progress", summary="Update how much has been saved")
def update_goal_progress(
    goal_id: str,
    request: GoalProgressRequest,
    user: AuthenticatedUser = Depends(rate_limited("general", role="parent")),
    repository: FamilyRepository = Depends(get_repository),
) -> dict:
    goal = repository.update_financial_goal_progress(goal_id, user.id, request.current_amount)
    return success(goal)
