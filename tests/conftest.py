"""
Shared test fixtures.

This module provides:
- Environment for an in-memory SQLite database and in-memory cache
- A scripted LLM client standing in for Groq
- A FastAPI TestClient with the AI service wired to the fake LLM
- Helpers to register parents and children
"""
import json
import os

# Settings are read once; configure the environment before importing the app
os.environ.update({
    "APP_ENV": "test",
    "DATABASE_URL": "sqlite://",
    "JWT_SECRET": "test-jwt-secret",
    "ENCRYPTION_KEY": "test-encryption-key",
    "GROQ_API_KEY": "test-groq-key",
    "GOOGLE_API_KEY": "",
    "LOG_LEVEL": "WARNING",
    "LOG_TO_FILE": "false",
    "ENABLE_AUDIT_LOGGING": "true",
    "ALLOWED_ORIGINS": "http://localhost:3000",
})
os.environ.pop("REDIS_URL", None)

from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from parently.api.dependencies import get_ai_service
from parently.api.main import app
from parently.cache.store import get_cache_store
from parently.core.exceptions import LLMError
from parently.database.connection import get_database
from parently.database.init_db import create_tables, drop_tables
from parently.services.ai_service import AIService

PASSWORD = "password123"

# =============================================================================
# Fake LLM
# =============================================================================

PLAN_REPLY = {
    "plan": "Take a slow morning and review the grocery budget",
    "focusAreas": ["rest", "budget"],
    "tips": ["Walk after dinner", "Plan three meals", "Read together"],
}

INSIGHTS_REPLY = {
    "summary": "Your child is excited about saving money",
    "emotionalState": "Happy",
    "concerns": [],
    "recommendations": ["Praise the saving habit", "Set a small goal together"],
    "suggestedActions": ["Open a piggy bank"],
}


class FakeLLMClient:
    """
    Scripted stand-in for LLMClient.

    Replies are chosen from the prompt text. Set `fail = True` to make
    every call raise LLMError, or `complexity` to change the rating.
    """

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.fail = False
        self.complexity = 2
        self.chat_reply = "Try setting a weekly family budget night."
        self.overrides: Dict[str, str] = {}

    def generate(self, prompt: str, tier: str = "fast", system_prompt: Optional[str] = None) -> str:
        self.calls.append({"prompt": prompt, "tier": tier, "system_prompt": system_prompt})
        if self.fail:
            raise LLMError("LLM call failed after 3 attempts: boom")

        for marker, reply in self.overrides.items():
            if marker in prompt:
                return reply

        if "Evaluate the complexity" in prompt:
            return json.dumps({"complexityScore": self.complexity, "reasoning": "scripted"})
        if "daily plan" in prompt:
            return "```json\n" + json.dumps(PLAN_REPLY) + "\n```"
        if "Analyze this child-parent" in prompt:
            return json.dumps(INSIGHTS_REPLY)
        if "The child is asking" in prompt:
            return "Saving a little each week is awesome! 🐷"
        return self.chat_reply

    def tiers(self) -> List[str]:
        return [c["tier"] for c in self.calls]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def reset_state():
    """Fresh tables and an empty cache for every test."""
    db = get_database()
    drop_tables(db)
    create_tables(db)
    get_cache_store().reset()
    yield
    get_cache_store().reset()


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def client(fake_llm):
    app.dependency_overrides[get_ai_service] = lambda: AIService(fake_llm)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# =============================================================================
# Helpers
# =============================================================================

def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(
    client: TestClient,
    email: str,
    name: str,
    user_type: str = "parent",
    parent_id: Optional[str] = None,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    body = {"email": email, "name": name, "password": PASSWORD, "userType": user_type}
    if parent_id:
        body["parentId"] = parent_id
    response = client.post("/api/v1/auth/register", json=body)
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return data["user"], data["tokens"]


@pytest.fixture
def parent(client):
    """Registered parent: (user, headers)."""
    user, tokens = register(client, "parent@family.com", "Pat Parent")
    return user, auth_headers(tokens["accessToken"])


@pytest.fixture
def child(client, parent):
    """Child of `parent`: (user, headers)."""
    parent_user, _ = parent
    user, tokens = register(client, "kid@family.com", "Kim Kid", "child", parent_user["id"])
    return user, auth_headers(tokens["accessToken"])
