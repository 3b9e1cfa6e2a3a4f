"""
Health Check Routes - Liveness and API discovery.

These endpoints are used for:
1. Load balancer health checks
2. Clients discovering the endpoint groups
"""
from datetime import datetime, timezone

from fastapi import APIRouter

from parently.core.config import get_settings
from parently.core.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])

APP_VERSION = "1.0.0"

AVAILABLE_ENDPOINTS = [
    "GET /health",
    "GET /api/v1",
    "POST /api/v1/auth/register",
    "POST /api/v1/auth/login",
    "POST /api/v1/auth/refresh",
    "GET /api/v1/auth/me",
    "POST /api/v1/auth/logout",
    "POST /api/v1/parent/checkin",
    "GET /api/v1/parent/plan",
    "POST /api/v1/parent/chat",
    "GET /api/v1/parent/progress",
    "GET /api/v1/parent/insights",
    "GET /api/v1/parent/insights/history",
    "POST /api/v1/parent/goals",
    "GET /api/v1/parent/goals",
    "PUT /api/v1/parent/goals/{goalId}/progress",
    "POST /api/v1/kids/message",
    "GET /api/v1/kids/tasks",
    "POST /api/v1/kids/tasks/complete",
    "POST /api/v1/kids/tasks",
    "GET /api/v1/kids/messages",
    "GET /api/v1/kids/summary",
]


@router.get("/health", summary="Health check endpoint")
async def health_check() -> dict:
    """
    Perform a basic health check.

    Verifies the API is up; it does not probe the database or the LLM.
    """
    logger.debug("Health check requested")
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": get_settings().app_env,
    }


@router.get("/api/v1", summary="API information")
async def api_info() -> dict:
    return {
        "name": "Parently API",
        "version": APP_VERSION,
        "description": "AI assistant for parents and family finances",
        "endpoints": {
            "auth": "/api/v1/auth",
            "parent": "/api/v1/parent",
            "kids": "/api/v1/kids",
        },
    }
