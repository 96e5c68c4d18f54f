"""Tests for the assessment API router."""

import pytest
from httpx import ASGITransport, AsyncClient

from skillx.api.deps import reset_assessment_flow, set_assessment_flow
from skillx.main import create_app
from skillx.providers.errors import TransientError
from skillx.schemas.recommendations import parse_recommendations
from skillx.services.assessment_steps import GOAL_REQUIRED_MESSAGE
from tests.conftest import complete_session_data, seed_local

_BASE = "/api/v1/assessment"
_AUTH = {"Authorization": "Bearer user-token"}


@pytest.fixture
async def client(flow):
    """HTTP client bound to an app whose flow uses the test doubles."""
    set_assessment_flow(flow)
    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await reset_assessment_flow()


class TestState:
    async def test_initial_state(self, client):
        response = await client.get(_BASE)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["current_step"] == 1
        assert data["step_name"] == "Goal Setting"
        assert data["progress_percent"] == 0.0
        assert data["minutes_remaining"] == 10
        assert data["auth_prompt_visible"] is False
        assert data["is_authenticated"] is False
        assert data["session"]["portfolio"] is None

    async def test_restored_from_local_storage(self, client, store):
        seed_local(store, 3, complete_session_data())

        response = await client.get(_BASE)

        assert response.json()["data"]["current_step"] == 3


class TestAdvance:
    async def test_failed_gate_is_not_an_http_error(self, client):
        response = await client.post(f"{_BASE}/advance", json={"data": {}})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["validation"] == {"is_valid": False, "message": GOAL_REQUIRED_MESSAGE}
        assert data["state"]["validation_errors"] == {"1": GOAL_REQUIRED_MESSAGE}
        assert data["state"]["current_step"] == 1

    async def test_advance_moves_forward(self, client):
        response = await client.post(f"{_BASE}/advance", json={"data": {"goals": "career-change"}})

        data = response.json()["data"]
        assert data["validation"]["is_valid"] is True
        assert data["state"]["current_step"] == 2
        assert data["state"]["validation_errors"] == {}

    async def test_invalid_field_value_is_400(self, client, store):
        seed_local(store, 2, complete_session_data(skills={}))

        response = await client.post(
            f"{_BASE}/advance",
            json={"data": {"skills": {"Python": {"selected": True, "level": 9}}}},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_unknown_request_field_rejected(self, client):
        response = await client.post(f"{_BASE}/advance", json={"goals": "x"})

        assert response.status_code == 400

    async def test_retreat(self, client, store):
        seed_local(store, 3, complete_session_data())

        response = await client.post(f"{_BASE}/retreat")

        assert response.json()["data"]["current_step"] == 2


class TestAnswers:
    async def test_set_and_list_answers(self, client):
        response = await client.put(f"{_BASE}/answers/4", json={"value": 5})

        assert response.status_code == 200
        assert response.json()["data"] == {"4": 5}
        listed = await client.get(f"{_BASE}/answers")
        assert listed.json()["data"] == {"4": 5}

    async def test_value_out_of_scale(self, client):
        response = await client.put(f"{_BASE}/answers/4", json={"value": 6})

        assert response.status_code == 400

    async def test_unknown_question(self, client):
        response = await client.put(f"{_BASE}/answers/99", json={"value": 3})

        assert response.status_code == 400
        assert "Unknown question id" in response.json()["error"]["message"]


class TestSignInGate:
    async def test_anonymous_path_to_results(self, client, store, fake_client):
        seed_local(store, 4, complete_session_data())
        fake_client.personalized_result = parse_recommendations(
            {"recommendations": [{"id": "qa", "name": "QA Engineer", "matchPercentage": 55}]}
        )

        advanced = await client.post(f"{_BASE}/advance", json={"data": {}})
        assert advanced.json()["data"]["state"]["auth_prompt_visible"] is True
        assert advanced.json()["data"]["state"]["current_step"] == 4

        continued = await client.post(f"{_BASE}/auth/continue")
        assert continued.json()["data"]["current_step"] == 5

        results = await client.get(f"{_BASE}/results")
        assert results.status_code == 200
        view = results.json()["data"]
        assert view["status"] == "ready"
        assert view["matches"][0]["score_text"] == "55%"
        assert fake_client.submissions == []

    async def test_continue_without_prompt_is_422(self, client):
        response = await client.post(f"{_BASE}/auth/continue")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_STATE_TRANSITION"

    async def test_redirect_url(self, client):
        response = await client.post(f"{_BASE}/auth/redirect", json={"kind": "login"})

        assert response.json()["data"] == {"redirect_url": "/login?redirect=/career-assessment"}

    async def test_redirect_kind_validated(self, client):
        response = await client.post(f"{_BASE}/auth/redirect", json={"kind": "sso"})

        assert response.status_code == 400

    async def test_signed_in_submission_uses_bearer_token(self, client, store, fake_client):
        seed_local(store, 4, complete_session_data())

        response = await client.post(f"{_BASE}/advance", json={"data": {}}, headers=_AUTH)

        assert response.json()["data"]["state"]["current_step"] == 5
        assert response.json()["data"]["state"]["is_authenticated"] is True
        assert fake_client.submissions[0][0] == "user-token"


class TestResults:
    async def test_results_before_last_step_is_422(self, client):
        response = await client.get(f"{_BASE}/results")

        assert response.status_code == 422

    async def test_results_fetch_failure_is_error_view(self, client, store, fake_client):
        seed_local(store, 5, complete_session_data())
        fake_client.personalized_error = TransientError("HTTP 503", 503)

        response = await client.get(f"{_BASE}/results")

        assert response.status_code == 200
        view = response.json()["data"]
        assert view["status"] == "error"
        assert view["error_title"] == "Unable to load recommendations"


class TestSaveResetNotices:
    async def test_failed_save_creates_dismissible_notice(self, client, fake_client):
        fake_client.save_error = TransientError("down", 500)

        saved = await client.post(f"{_BASE}/save-and-exit", headers=_AUTH)
        notice = saved.json()["data"]["notice"]
        assert notice["title"] == "Save Failed"
        assert notice["variant"] == "destructive"

        notices = await client.get(f"{_BASE}/notices", headers=_AUTH)
        assert notice["id"] in [n["id"] for n in notices.json()["data"]]

        dismissed = await client.delete(f"{_BASE}/notices/{notice['id']}", headers=_AUTH)
        assert dismissed.status_code == 204

        again = await client.delete(f"{_BASE}/notices/{notice['id']}", headers=_AUTH)
        assert again.status_code == 404

    async def test_reset(self, client, store):
        seed_local(store, 3, complete_session_data())

        response = await client.post(f"{_BASE}/reset")

        data = response.json()["data"]
        assert data["notice"] is None
        assert data["state"]["current_step"] == 1
        assert data["state"]["session"]["goals"] is None

    async def test_sync_status_reports_pushes(self, client, flow):
        await client.post(f"{_BASE}/advance", json={"data": {"goals": "job-seeking"}}, headers=_AUTH)
        await flow.persistence.queue.drain()

        response = await client.get(f"{_BASE}/sync", headers=_AUTH)

        data = response.json()["data"]
        assert data["pending"] == 0
        assert data["history"]
        assert all(entry["succeeded"] for entry in data["history"])


class TestCatalog:
    async def test_catalog(self, client):
        response = await client.get(f"{_BASE}/catalog")

        data = response.json()["data"]
        assert len(data["steps"]) == 5
        assert len(data["questions"]) == 32
        assert [g["id"] for g in data["goals"]][0] == "career-change"
        assert len(data["skill_levels"]) == 5
