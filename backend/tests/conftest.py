"""Shared fixtures for SkillX tests.

Unit tests run without network access: the backend client is replaced by
``FakeBackendClient`` and local storage by ``InMemorySessionStore``.
Background pushes use a zero-retry policy so failures surface at once.
"""

import json
from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from skillx.providers.retry import RetryPolicy
from skillx.schemas.assessment import ProgressRecord, QuizSubmission
from skillx.schemas.recommendations import BackendRecommendationsResponse
from skillx.services.assessment_flow import AssessmentFlow
from skillx.services.background_sync import BackgroundSyncQueue
from skillx.services.persistence_sync import PersistenceSync
from skillx.services.session_store import SESSION_KEY, InMemorySessionStore

TEST_TOKEN = "test-token"  # nosec B105

_PATCH_SLEEP = "skillx.providers.retry.asyncio.sleep"


class FakeBackendClient:
    """In-memory stand-in for BackendClient.

    Progress calls mirror the real client: without a token they are
    skipped and return None. Set the ``*_error`` attributes to make a call
    raise; calls are recorded even when they fail.
    """

    def __init__(self) -> None:
        self.progress: ProgressRecord | None = None
        self.submit_result = BackendRecommendationsResponse()
        self.personalized_result = BackendRecommendationsResponse()

        self.get_error: Exception | None = None
        self.save_error: Exception | None = None
        self.clear_error: Exception | None = None
        self.submit_error: Exception | None = None
        self.personalized_error: Exception | None = None

        self.get_calls: list[str | None] = []
        self.saved: list[dict[str, Any]] = []
        self.cleared: list[str] = []
        self.submissions: list[tuple[str | None, QuizSubmission]] = []
        self.personalized_calls: list[str | None] = []

    async def get_progress(self, token: str | None) -> ProgressRecord | None:
        self.get_calls.append(token)
        if not token:
            return None
        if self.get_error is not None:
            raise self.get_error
        return self.progress

    async def save_progress(self, token: str | None, record: dict[str, Any]) -> dict | None:
        if not token:
            return None
        self.saved.append(record)
        if self.save_error is not None:
            raise self.save_error
        return {"success": True}

    async def clear_progress(self, token: str | None) -> dict | None:
        if not token:
            return None
        self.cleared.append(token)
        if self.clear_error is not None:
            raise self.clear_error
        return {"success": True}

    async def submit_quiz(
        self, token: str | None, submission: QuizSubmission
    ) -> BackendRecommendationsResponse:
        self.submissions.append((token, submission))
        if self.submit_error is not None:
            raise self.submit_error
        return self.submit_result

    async def get_personalized_recommendations(
        self, token: str | None
    ) -> BackendRecommendationsResponse:
        self.personalized_calls.append(token)
        if self.personalized_error is not None:
            raise self.personalized_error
        return self.personalized_result


# =============================================================================
# Data builders
# =============================================================================


def complete_answers(value: int = 3) -> dict[str, int]:
    """An answer for every catalog question."""
    return {str(qid): value for qid in range(1, 33)}


def rated_skills(*names: str, level: int = 2) -> dict[str, dict[str, Any]]:
    return {name: {"selected": True, "level": level} for name in names}


def complete_session_data(**overrides: Any) -> dict[str, Any]:
    """Storage-shaped session data that passes every step gate."""
    data: dict[str, Any] = {
        "goals": "career-change",
        "skills": rated_skills("Python", "SQL", "Git"),
        "personality": complete_answers(),
        "personalityType": "",
        "personalityData": None,
        "preferences": {
            "learningStyle": ["visual"],
            "timeCommitment": "part-time",
            "budget": "low",
        },
        "portfolio": None,
    }
    data.update(overrides)
    return data


def seed_local(store: InMemorySessionStore, step: int, data: dict[str, Any]) -> None:
    """Write a local session snapshot as the wizard would."""
    store.set(SESSION_KEY, json.dumps({"currentStep": step, "data": data}))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def no_sleep() -> AsyncIterator[AsyncMock]:
    """Patch out retry backoff sleeps."""
    with patch(_PATCH_SLEEP, new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def fake_client() -> FakeBackendClient:
    return FakeBackendClient()


@pytest_asyncio.fixture
async def sync_queue() -> AsyncIterator[BackgroundSyncQueue]:
    queue = BackgroundSyncQueue(RetryPolicy(max_retries=0, base_delay_ms=0, max_delay_ms=0))
    yield queue
    await queue.stop()


@pytest.fixture
def persistence(
    store: InMemorySessionStore,
    fake_client: FakeBackendClient,
    sync_queue: BackgroundSyncQueue,
) -> PersistenceSync:
    return PersistenceSync(store, fake_client, sync_queue)  # type: ignore[arg-type]


@pytest.fixture
def flow(persistence: PersistenceSync, fake_client: FakeBackendClient) -> AssessmentFlow:
    """Anonymous flow, not yet restored."""
    return AssessmentFlow(persistence, fake_client)  # type: ignore[arg-type]


@pytest.fixture
def authed_flow(
    persistence: PersistenceSync, fake_client: FakeBackendClient
) -> AssessmentFlow:
    """Signed-in flow, not yet restored."""
    return AssessmentFlow(persistence, fake_client, identity=TEST_TOKEN)  # type: ignore[arg-type]
