"""
Kids Routes - Child chat and tasks, plus parent views of a child.

Child endpoints act on the caller's own data. Parent endpoints take a
`childId` query parameter that must name one of the parent's children.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from parently.api.dependencies import get_ai_service, get_auth_service, rate_limited
from parently.cache.service import CacheService, get_cache_service
from parently.core.logging_config import get_logger
from parently.database.repository import FamilyRepository, get_repository
from parently.models.common import success
from parently.models.requests import (
    ChildMessageRequest,
    CreateTaskRequest,
    TaskCompleteRequest,
)
from parently.services.ai_service import AIService
from parently.services.auth_service import AuthenticatedUser, AuthService

logger = get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/kids",
    tags=["Kids"],
)

DEFAULT_TASK_POINTS = 10
SUMMARY_MESSAGE_COUNT = 10
SUMMARY_PREVIEW_COUNT = 5
PREVIEW_LENGTH = 50


def _preview(text: str) -> str:
    return text[:PREVIEW_LENGTH] + ("..." if len(text) > PREVIEW_LENGTH else "")


# ============================================================
# Child endpoints
# ============================================================

@router.post("/message", summary="Chat with the kids' assistant")
def send_message(
    request: ChildMessageRequest,
    user: AuthenticatedUser = Depends(rate_limited("chat", role="child")),
    repository: FamilyRepository = Depends(get_repository),
    cache: CacheService = Depends(get_cache_service),
    ai: AIService = Depends(get_ai_service),
) -> dict:
    message_hash = cache.generate_message_hash(request.message)

    cached = cache.get_cached_ai_response(user.id, message_hash)
    if cached:
        return success(cached, cached=True)

    reply = ai.handle_child_message(request.message)
    payload = {"response": reply.response, "model": reply.model}

    if not reply.is_fallback:
        cache.cache_ai_response(user.id, message_hash, payload)

    repository.create_child_message(user.id, request.message, reply.response)
    return success(payload)


@router.get("/tasks", summary="The child's tasks and points")
def list_tasks(
    completed: Optional[bool] = Query(default=None),
    user: AuthenticatedUser = Depends(rate_limited("general", role="child")),
    repository: FamilyRepository = Depends(get_repository),
) -> dict:
    tasks = repository.get_child_tasks(user.id, completed=completed)
    return success({
        "tasks": tasks,
        "points": {
            "total": sum(t.points for t in tasks if t.completed),
            "available": sum(t.points for t in tasks if not t.completed),
        },
    })


@router.post("/tasks/complete", summary="Mark one of the child's tasks done")
def complete_task(
    request: TaskCompleteRequest,
    user: AuthenticatedUser = Depends(rate_limited("general", role="child")),
    repository: FamilyRepository = Depends(get_repository),
) -> dict:
    task = repository.complete_task(str(request.task_id), user.id)
    logger.info(f"Child {user.id[:8]}... completed task {task.id[:8]}... (+{task.points})")
    return success({
        "message": "Task completed successfully",
        "pointsEarned": task.points,
        "taskId": task.id,
    })


# ============================================================
# Parent endpoints
# ============================================================

@router.post("/tasks", status_code=201, summary="Assign a task to a child")
def create_task(
    request: CreateTaskRequest,
    child_id: Optional[str] = Query(default=None, alias="childId"),
    user: AuthenticatedUser = Depends(rate_limited("general", role="parent")),
    auth: AuthService = Depends(get_auth_service),
    repository: FamilyRepository = Depends(get_repository),
) -> dict:
    child = auth.require_own_child(user, child_id)
    task = repository.create_child_task(
        user_id=child.id,
        title=request.title,
        task_type=request.task_type,
        points=request.points or DEFAULT_TASK_POINTS,
        description=request.description,
    )
    return success(task)


@router.get("/messages", summary="A child's conversation with the assistant")
def list_messages(
    child_id: Optional[str] = Query(default=None, alias="childId"),
    limit: int = Query(default=20, ge=1, le=100),
    user: AuthenticatedUser = Depends(rate_limited("general", role="parent")),
    auth: AuthService = Depends(get_auth_service),
    repository: FamilyRepository = Depends(get_repository),
) -> dict:
    child = auth.require_own_child(user, child_id)
    return success(repository.get_child_messages(child.id, limit=limit))


@router.get("/summary", summary="Task and activity summary for a child")
def get_summary(
    child_id: Optional[str] = Query(default=None, alias="childId"),
    user: AuthenticatedUser = Depends(rate_limited("general", role="parent")),
    auth: AuthService = Depends(get_auth_service),
    repository: FamilyRepository = Depends(get_repository),
) -> dict:
    child = auth.require_own_child(user, child_id)

    tasks = repository.get_child_tasks(child.id)
    messages = repository.get_child_messages(child.id, limit=SUMMARY_MESSAGE_COUNT)
    done = [t for t in tasks if t.completed]

    return success({
        "childId": child.id,
        "tasks": {
            "total": len(tasks),
            "completed": len(done),
            "pending": len(tasks) - len(done),
        },
        "points": {
            "total": sum(t.points for t in done),
            "available": sum(t.points for t in tasks if not t.completed),
        },
        "recentActivity": {
            "lastMessage": messages[0].created_at if messages else None,
            "messageCount": len(messages),
            "recentMessages": [
                {"message": _preview(m.message), "timestamp": m.created_at}
                for m in messages[:SUMMARY_PREVIEW_COUNT]
            ],
        },
    })
