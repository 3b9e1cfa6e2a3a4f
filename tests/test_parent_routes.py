import json
from datetime import datetime, timedelta, timezone

from conftest import INSIGHTS_REPLY, PLAN_REPLY, auth_headers, register
from parently.database.repository import get_repository

BASE = "/api/v1/parent"

CHECKIN = {
    "checkinType": "morning",
    "emotionalState": 6,
    "financialStress": 7,
    "notes": "Car repair wiped out the savings",
    "unexpectedExpenses": 450.0,
}


# =============================================================================
# Check-ins
# =============================================================================

def test_create_checkin(client, parent):
    user, headers = parent
    response = client.post(f"{BASE}/checkin", json=CHECKIN, headers=headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["userId"] == user["id"]
    assert data["notes"] == CHECKIN["notes"]
    assert data["unexpectedExpenses"] == 450.0
    assert response.headers["X-RateLimit-Limit"] == "5"
    assert response.headers["X-RateLimit-Remaining"] == "4"


def test_checkin_notes_are_encrypted_at_rest(client, parent):
    user, headers = parent
    client.post(f"{BASE}/checkin", json=CHECKIN, headers=headers)

    from parently.database.connection import get_database
    from parently.database.models import ParentCheckinRow
    with get_database().get_session() as session:
        row = session.query(ParentCheckinRow).filter(ParentCheckinRow.user_id == user["id"]).one()
        assert "savings" not in row.notes_encrypted


def test_checkin_out_of_range(client, parent):
    _, headers = parent
    response = client.post(f"{BASE}/checkin", json={**CHECKIN, "emotionalState": 11}, headers=headers)

    assert response.status_code == 400
    assert "emotionalState" in response.json()["error"]


def test_checkin_rate_limit(client, parent):
    _, headers = parent
    for _ in range(5):
        assert client.post(f"{BASE}/checkin", json=CHECKIN, headers=headers).status_code == 201

    response = client.post(f"{BASE}/checkin", json=CHECKIN, headers=headers)
    assert response.status_code == 429
    assert "Retry-After" in response.headers


def test_child_cannot_use_parent_endpoints(client, child):
    _, headers = child
    response = client.post(f"{BASE}/checkin", json=CHECKIN, headers=headers)

    assert response.status_code == 403
    assert response.json()["success"] is False


def test_parent_endpoints_require_auth(client):
    assert client.get(f"{BASE}/goals").status_code == 401


def test_auth_is_checked_before_body(client):
    response = client.post(f"{BASE}/checkin", json={"checkinType": "noon"})
    assert response.status_code == 401


# =============================================================================
# Plan
# =============================================================================

def test_plan_generated_then_cached(client, parent, fake_llm):
    _, headers = parent
    client.post(f"{BASE}/checkin", json=CHECKIN, headers=headers)
    client.post(f"{BASE}/goals", json={
        "title": "Emergency fund", "targetAmount": 1000, "goalType": "emergency",
    }, headers=headers)

    first = client.get(f"{BASE}/plan", params={"date": "2024-05-01"}, headers=headers)
    assert first.status_code == 200
    body = first.json()
    assert body["data"] == PLAN_REPLY
    assert "cached" not in body
    assert "Emergency fund" in fake_llm.calls[0]["prompt"]

    second = client.get(f"{BASE}/plan", params={"date": "2024-05-01"}, headers=headers)
    assert second.json() == {"success": True, "data": PLAN_REPLY, "cached": True}
    assert len(fake_llm.calls) == 1


def test_plan_reuses_stored_plan_when_cache_is_empty(client, parent, fake_llm):
    user, headers = parent
    stored = {"plan": "Stored plan", "focusAreas": ["x"], "tips": ["y"]}
    get_repository().upsert_daily_plan(user["id"], json.dumps(stored), "2024-05-02")

    response = client.get(f"{BASE}/plan", params={"date": "2024-05-02"}, headers=headers)

    assert response.json()["data"] == stored
    assert fake_llm.calls == []


def test_plan_defaults_to_today(client, parent):
    user, headers = parent
    client.get(f"{BASE}/plan", headers=headers)

    today = datetime.now(timezone.utc).date().isoformat()
    assert get_repository().get_daily_plan(user["id"], today) is not None


def test_plan_bad_date(client, parent):
    _, headers = parent
    response = client.get(f"{BASE}/plan", params={"date": "01/05/2024"}, headers=headers)
    assert response.status_code == 400


def test_plan_degrades_when_llm_down(client, parent, fake_llm):
    _, headers = parent
    fake_llm.fail = True

    response = client.get(f"{BASE}/plan", params={"date": "2024-05-03"}, headers=headers)

    assert response.status_code == 200
    assert response.json()["data"]["focusAreas"] == ["parenting", "finances"]


# =============================================================================
# Chat
# =============================================================================

def test_chat_uses_latest_checkin_as_context(client, parent, fake_llm):
    user, headers = parent
    client.post(f"{BASE}/checkin", json=CHECKIN, headers=headers)

    response = client.post(f"{BASE}/chat", json={"message": "How do I cope?"}, headers=headers)

    assert response.status_code == 200
    assert response.json()["data"] == {
        "response": fake_llm.chat_reply,
        "model": "fast",
        "complexityScore": 2,
    }
    assert "Financial stress: 7/10" in fake_llm.calls[-1]["prompt"]

    history = get_repository().get_chat_history(user["id"])
    assert [m.message for m in history] == ["How do I cope?"]
    assert history[0].ai_model == "fast"


def test_chat_cache_hit(client, parent, fake_llm):
    _, headers = parent
    client.post(f"{BASE}/chat", json={"message": "Same question"}, headers=headers)
    calls = len(fake_llm.calls)

    response = client.post(f"{BASE}/chat", json={"message": "Same question"}, headers=headers)

    assert response.json()["cached"] is True
    assert len(fake_llm.calls) == calls


def test_chat_smart_tier(client, parent, fake_llm):
    _, headers = parent
    fake_llm.complexity = 5

    response = client.post(f"{BASE}/chat", json={"message": "Divorce and debt"}, headers=headers)

    assert response.json()["data"]["model"] == "smart"
    assert response.json()["data"]["complexityScore"] == 5


def test_chat_fractional_complexity_goes_to_smart_tier(client, parent, fake_llm):
    user, headers = parent
    fake_llm.complexity = 3.5

    response = client.post(f"{BASE}/chat", json={"message": "Second job or not?"}, headers=headers)

    data = response.json()["data"]
    assert data["model"] == "smart"
    assert data["complexityScore"] == 3.5
    assert get_repository().get_chat_history(user["id"])[0].complexity_score == 3.5


def test_chat_fallback_is_not_cached(client, parent, fake_llm):
    _, headers = parent
    fake_llm.fail = True
    first = client.post(f"{BASE}/chat", json={"message": "Hello?"}, headers=headers)
    assert first.status_code == 200
    assert "trouble" in first.json()["data"]["response"]

    fake_llm.fail = False
    second = client.post(f"{BASE}/chat", json={"message": "Hello?"}, headers=headers)
    assert "cached" not in second.json()
    assert second.json()["data"]["response"] == fake_llm.chat_reply


def test_chat_message_length(client, parent):
    _, headers = parent
    assert client.post(f"{BASE}/chat", json={"message": ""}, headers=headers).status_code == 400
    assert client.post(f"{BASE}/chat", json={"message": "x" * 2001}, headers=headers).status_code == 400


# =============================================================================
# Progress
# =============================================================================

def test_progress(client, parent):
    _, headers = parent
    client.post(f"{BASE}/checkin", json=CHECKIN, headers=headers)
    client.post(f"{BASE}/checkin", json={**CHECKIN, "emotionalState": 8, "financialStress": 2}, headers=headers)
    client.post(f"{BASE}/chat", json={"message": "Thanks"}, headers=headers)

    response = client.get(f"{BASE}/progress", headers=headers)

    data = response.json()["data"]
    assert len(data["checkins"]) == 2
    assert len(data["chatHistory"]) == 1
    assert [t["value"] for t in data["trends"]["emotional"]] == [8, 6]
    assert [t["value"] for t in data["trends"]["financial"]] == [2, 7]
    assert data["trends"]["emotional"][0]["date"].endswith("Z")


def test_progress_date_filter(client, parent):
    _, headers = parent
    client.post(f"{BASE}/checkin", json=CHECKIN, headers=headers)

    future = (datetime.now(timezone.utc) + timedelta(days=1)).isoformat()
    response = client.get(f"{BASE}/progress", params={"startDate": future}, headers=headers)

    assert response.json()["data"]["checkins"] == []


def test_progress_limit_bounds(client, parent):
    _, headers = parent
    assert client.get(f"{BASE}/progress", params={"limit": 0}, headers=headers).status_code == 400
    assert client.get(f"{BASE}/progress", params={"limit": 101}, headers=headers).status_code == 400


# =============================================================================
# Insights
# =============================================================================

def test_insights_only_for_children_with_messages(client, parent, child, fake_llm):
    parent_user, parent_headers = parent
    child_user, child_headers = child
    register(client, "quiet@family.com", "Quiet Kid", "child", parent_user["id"])
    client.post("/api/v1/kids/message", json={"message": "I saved 5 dollars!"}, headers=child_headers)

    response = client.get(f"{BASE}/insights", headers=parent_headers)

    results = response.json()["data"]
    assert len(results) == 1
    assert results[0]["childId"] == child_user["id"]
    assert results[0]["childName"] == "Kim Kid"
    assert results[0]["insights"] == INSIGHTS_REPLY
    assert fake_llm.tiers()[-1] == "smart"

    again = client.get(f"{BASE}/insights", headers=parent_headers)
    assert again.json()["data"][0]["cached"] is True

    stored = get_repository().get_child_insights(parent_user["id"], child_user["id"])
    assert len(stored) == 1
    assert stored[0].recommendations == "; ".join(INSIGHTS_REPLY["recommendations"])


def test_insights_rate_limit(client, parent):
    _, headers = parent
    client.get(f"{BASE}/insights", headers=headers)
    client.get(f"{BASE}/insights", headers=headers)

    assert client.get(f"{BASE}/insights", headers=headers).status_code == 429


def test_insight_history(client, parent, child):
    _, parent_headers = parent
    child_user, child_headers = child
    client.post("/api/v1/kids/message", json={"message": "Hi"}, headers=child_headers)
    client.get(f"{BASE}/insights", headers=parent_headers)

    response = client.get(f"{BASE}/insights/history", params={"childId": child_user["id"]}, headers=parent_headers)

    assert response.status_code == 200
    entry = response.json()["data"][0]
    assert entry["insightContent"] == INSIGHTS_REPLY["summary"]
    assert entry["recommendations"] == "; ".join(INSIGHTS_REPLY["recommendations"])


def test_insight_history_requires_own_child(client, parent, child):
    child_user, _ = child
    _, tokens = register(client, "stranger@family.com", "Stranger")

    missing = client.get(f"{BASE}/insights/history", headers=auth_headers(tokens["accessToken"]))
    assert missing.status_code == 400

    foreign = client.get(
        f"{BASE}/insights/history",
        params={"childId": child_user["id"]},
        headers=auth_headers(tokens["accessToken"]),
    )
    assert foreign.status_code == 403
    assert foreign.json()["error"] == "Access denied"


# =============================================================================
# Goals
# =============================================================================

def test_goals_crud(client, parent):
    _, headers = parent
    created = client.post(f"{BASE}/goals", json={
        "title": "Summer camp",
        "description": "Two weeks by the lake",
        "targetAmount": 800,
        "goalType": "activity",
        "targetDate": "2024-07-01T00:00:00Z",
    }, headers=headers)

    assert created.status_code == 201
    goal = created.json()["data"]
    assert goal["currentAmount"] == 0
    assert goal["targetDate"].startswith("2024-07-01")

    client.post(f"{BASE}/goals", json={"title": "Rainy day", "targetAmount": 500, "goalType": "emergency"}, headers=headers)
    listed = client.get(f"{BASE}/goals", headers=headers).json()["data"]
    assert [g["title"] for g in listed] == ["Rainy day", "Summer camp"]

    updated = client.put(f"{BASE}/goals/{goal['id']}/progress", json={"currentAmount": 120.5}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["data"]["currentAmount"] == 120.5


def test_goal_validation(client, parent):
    _, headers = parent
    response = client.post(f"{BASE}/goals", json={"title": "X", "targetAmount": 0, "goalType": "savings"}, headers=headers)
    assert response.status_code == 400


def test_goal_progress_on_someone_elses_goal(client, parent):
    _, headers = parent
    goal = client.post(f"{BASE}/goals", json={"title": "Mine", "targetAmount": 10, "goalType": "savings"}, headers=headers).json()["data"]
    _, tokens = register(client, "other@family.com", "Other Parent")

    response = client.put(
        f"{BASE}/goals/{goal['id']}/progress",
        json={"currentAmount": 5},
        headers=auth_headers(tokens["accessToken"]),
    )
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Goal not found"}
