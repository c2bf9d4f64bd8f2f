"""Tests for the /api/workbot endpoints."""

import json
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from workbot.api.workbot import get_proposer, get_reference_date
from workbot.db.session import get_db
from workbot.main import app

TODAY = date(2026, 2, 25)

PLAN_TEXT = json.dumps(
    {
        "actions": [
            {
                "type": "set",
                "status": "office",
                "toolCall": {"tool": "expand_week_period", "params": {"week": "next_week"}},
                "note": None,
            }
        ],
        "summary": "Office next week",
        "targetUser": None,
    }
)


@pytest.fixture
def proposer():
    mock = MagicMock()
    mock.propose = AsyncMock(return_value=PLAN_TEXT)
    return mock


@pytest.fixture
def client(db_session, team, proposer):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_reference_date] = lambda: TODAY
    app.dependency_overrides[get_proposer] = lambda: proposer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def headers(team):
    return {"X-User-Id": team["alice"].id}


class TestAuth:
    def test_missing_header(self, client):
        response = client.post("/api/workbot/resolve", json={"actions": [{"type": "clear"}]})
        assert response.status_code == 401

    def test_unknown_user(self, client):
        response = client.post("/api/workbot/resolve", json={"actions": [{"type": "clear"}]}, headers={"X-User-Id": "nobody"})
        assert response.status_code == 401

    def test_inactive_user(self, client, team):
        response = client.post(
            "/api/workbot/resolve", json={"actions": [{"type": "clear"}]}, headers={"X-User-Id": team["gone"].id}
        )
        assert response.status_code == 403

    def test_header_user_role_is_applied(self, client, team):
        """Test the caller's role comes from the stored user the header names."""
        response = client.post(
            "/api/workbot/apply",
            json={"changes": [{"date": "2026-12-01", "status": "office"}]},
            headers={"X-User-Id": team["priya"].id},
        )
        assert response.json()["processed"] == 1


class TestParse:
    """POST /api/workbot/parse"""

    def test_returns_clean_plan(self, client, headers, proposer):
        response = client.post("/api/workbot/parse", json={"command": " mark next week as office "}, headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["summary"] == "Office next week"
        assert body["actions"][0]["toolCall"]["tool"] == "expand_week_period"
        assert "targetUser" not in body
        assert "note" not in body["actions"][0]
        proposer.propose.assert_awaited_once_with("mark next week as office", TODAY, "Alice Kumar")

    def test_empty_command(self, client, headers):
        response = client.post("/api/workbot/parse", json={"command": "   "}, headers=headers)
        assert response.status_code == 400

    def test_unparseable_response(self, client, headers, proposer):
        proposer.propose.return_value = "Sorry, I cannot help with that."
        response = client.post("/api/workbot/parse", json={"command": "hello"}, headers=headers)
        assert response.status_code == 422
        assert response.json()["detail"] == "Could not understand the command. Please try rephrasing it."

    def test_empty_plan(self, client, headers, proposer):
        proposer.propose.return_value = '{"actions": []}'
        response = client.post("/api/workbot/parse", json={"command": "hello"}, headers=headers)
        assert response.status_code == 422

    def test_other_target_user_is_forbidden(self, client, headers, proposer):
        proposer.propose.return_value = '{"actions": [{"type": "clear"}], "targetUser": "Rahul"}'
        response = client.post("/api/workbot/parse", json={"command": "clear Rahul's week"}, headers=headers)
        assert response.status_code == 403
        assert "Rahul's calendar" in response.json()["detail"]

    def test_proposer_failure(self, client, headers, proposer):
        proposer.propose.side_effect = RuntimeError("upstream timeout")
        response = client.post("/api/workbot/parse", json={"command": "mark tomorrow"}, headers=headers)
        assert response.status_code == 503


class TestResolve:
    """POST /api/workbot/resolve"""

    def test_resolves_actions(self, client, headers):
        response = client.post(
            "/api/workbot/resolve",
            json={
                "actions": [
                    {"type": "set", "status": "office", "toolCall": {"tool": "expand_specific_weeks", "params": {"period": "next_month", "weeks": [2]}}}
                ]
            },
            headers=headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert [change["date"] for change in body["changes"]] == [
            "2026-03-09",
            "2026-03-10",
            "2026-03-11",
            "2026-03-12",
            "2026-03-13",
        ]
        assert body["validCount"] == 4
        assert body["invalidCount"] == 1
        holiday = body["changes"][1]
        assert holiday["valid"] is False
        assert holiday["invalidReason"] == "holiday"

    def test_missing_actions(self, client, headers):
        response = client.post("/api/workbot/resolve", json={}, headers=headers)
        assert response.status_code == 400


class TestApply:
    """POST /api/workbot/apply"""

    def test_applies_changes(self, client, headers):
        response = client.post(
            "/api/workbot/apply",
            json={"changes": [{"date": "2026-03-02", "status": "office"}, {"date": "2026-13-01", "status": "office"}]},
            headers=headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert (body["processed"], body["failed"]) == (1, 1)
        assert body["results"][1]["success"] is False

    def test_empty_batch(self, client, headers):
        response = client.post("/api/workbot/apply", json={"changes": []}, headers=headers)
        assert response.status_code == 400

    def test_batch_cap(self, client, headers):
        changes = [{"date": "2026-03-02", "status": "office"}] * 101
        response = client.post("/api/workbot/apply", json={"changes": changes}, headers=headers)
        assert response.status_code == 400
