"""Tests for the assessment wizard state machine."""

import json

import pytest

from skillx.core.errors import InvalidStateError, ValidationError
from skillx.providers.errors import TransientError
from skillx.schemas.recommendations import BackendRecommendationsResponse, TopMatch
from skillx.services.assessment_flow import AssessmentFlow, normalize_skills_for_backend
from skillx.services.assessment_steps import (
    GOAL_REQUIRED_MESSAGE,
    LEARNING_STYLE_REQUIRED_MESSAGE,
    MORE_SKILLS_MESSAGE,
    PERSONALITY_INCOMPLETE_MESSAGE,
    SKILL_REQUIRED_MESSAGE,
)
from skillx.services.persistence_sync import (
    RESET_FAILED_TITLE,
    RESET_TITLE,
    SAVE_FAILED_TITLE,
    SAVED_TITLE,
    RestoreSource,
)
from skillx.services.session_store import ANSWERS_KEY, PENDING_KEY, SESSION_KEY
from tests.conftest import TEST_TOKEN, complete_session_data, rated_skills, seed_local


async def _flow_at(flow: AssessmentFlow, store, step: int, **overrides) -> AssessmentFlow:
    seed_local(store, step, complete_session_data(**overrides))
    await flow.restore()
    return flow


class TestNormalizeSkills:
    def test_drops_unselected_entries(self) -> None:
        skills = {
            "Python": {"selected": True, "level": 2},
            "Go": {"selected": False, "level": 3},
        }
        assert normalize_skills_for_backend(skills) == {
            "Python": {"selected": True, "level": 2}
        }

    def test_splits_html_css(self) -> None:
        result = normalize_skills_for_backend({"HTML/CSS": {"selected": True, "level": 3}})
        assert result == {
            "HTML": {"selected": True, "level": 3},
            "CSS": {"selected": True, "level": 3},
        }

    def test_drops_entries_without_level(self) -> None:
        assert normalize_skills_for_backend({"Python": {"selected": True}}) == {}


class TestAdvance:
    @pytest.mark.parametrize(
        ("step", "overrides", "message"),
        [
            (1, {"goals": None}, GOAL_REQUIRED_MESSAGE),
            (2, {"skills": {}}, SKILL_REQUIRED_MESSAGE),
            (3, {"personality": {}}, PERSONALITY_INCOMPLETE_MESSAGE),
            (
                4,
                {"preferences": {"learningStyle": [], "timeCommitment": "part-time"}},
                LEARNING_STYLE_REQUIRED_MESSAGE,
            ),
        ],
    )
    async def test_failing_gate_keeps_step_and_records_error(
        self, flow: AssessmentFlow, store, step: int, overrides: dict, message: str
    ) -> None:
        await _flow_at(flow, store, step, **overrides)

        result = await flow.advance()

        assert result.is_valid is False
        assert flow.current_step == step
        assert flow.validation_errors == {step: message}
        assert flow.auth_prompt_visible is False

    async def test_goal_gate_then_success(self, flow: AssessmentFlow) -> None:
        result = await flow.advance({"goals": None})

        assert result.is_valid is False
        assert flow.current_step == 1
        assert flow.validation_errors == {1: GOAL_REQUIRED_MESSAGE}

        result = await flow.advance({"goals": "career-change"})

        assert result.is_valid is True
        assert flow.current_step == 2
        assert flow.validation_errors == {}

    async def test_skills_step_splits_and_counts(self, flow: AssessmentFlow, store) -> None:
        await _flow_at(flow, store, 2, skills={})

        result = await flow.advance(
            {
                "skills": {
                    "HTML/CSS": {"selected": True, "level": 3},
                    "Python": {"selected": True, "level": 2},
                    "Go": {"selected": False, "level": 1},
                }
            }
        )

        assert result.is_valid is True
        assert flow.current_step == 3
        assert set(flow.session.skills) == {"HTML", "CSS", "Python"}

    async def test_two_skills_blocked(self, flow: AssessmentFlow, store) -> None:
        await _flow_at(flow, store, 2, skills={})

        result = await flow.advance({"skills": rated_skills("Python", "SQL")})

        assert result.message == MORE_SKILLS_MESSAGE
        assert flow.current_step == 2

    async def test_personality_uses_recorded_answers(
        self, flow: AssessmentFlow, store
    ) -> None:
        await _flow_at(flow, store, 3, personality={})
        for qid in range(1, 33):
            flow.set_answer(qid, 4)

        result = await flow.advance()

        assert result.is_valid is True
        assert flow.current_step == 4
        assert len(flow.session.personality) == 32
        assert set(flow.session.personality.values()) == {4}

    async def test_incomplete_personality_blocked(self, flow: AssessmentFlow, store) -> None:
        await _flow_at(flow, store, 3, personality={})
        flow.set_answer(1, 5)

        result = await flow.advance()

        assert result.message == PERSONALITY_INCOMPLETE_MESSAGE
        assert flow.validation_errors[3] == PERSONALITY_INCOMPLETE_MESSAGE

    async def test_integer_personality_keys_accepted(self, flow: AssessmentFlow, store) -> None:
        await _flow_at(flow, store, 3, personality={})

        result = await flow.advance({"personality": {i: 3 for i in range(1, 33)}})

        assert result.is_valid is True
        assert "1" in flow.session.personality

    async def test_invalid_field_value_raises(self, flow: AssessmentFlow, store) -> None:
        await _flow_at(flow, store, 2, skills={})

        with pytest.raises(ValidationError):
            await flow.advance({"skills": {"Python": {"selected": True, "level": 9}}})

        assert flow.current_step == 2

    async def test_results_step_does_not_move(self, flow: AssessmentFlow, store) -> None:
        await _flow_at(flow, store, 5)

        result = await flow.advance()

        assert result.is_valid is True
        assert flow.current_step == 5

    async def test_every_change_written_locally(self, flow: AssessmentFlow, store) -> None:
        await flow.advance({"goals": "job-seeking"})

        saved = json.loads(store.get(SESSION_KEY))
        assert saved["currentStep"] == 2
        assert saved["data"]["goals"] == "job-seeking"
        assert saved["data"]["portfolio"] is None


class TestSubmission:
    async def test_anonymous_user_sees_sign_in_prompt(
        self, flow: AssessmentFlow, store, fake_client
    ) -> None:
        await _flow_at(flow, store, 4)

        result = await flow.advance()

        assert result.is_valid is True
        assert flow.auth_prompt_visible is True
        assert flow.current_step == 4
        assert fake_client.submissions == []

    async def test_continue_without_auth_goes_to_results(
        self, flow: AssessmentFlow, store, fake_client
    ) -> None:
        await _flow_at(flow, store, 4)
        await flow.advance()

        step = flow.continue_without_auth()

        assert step == 5
        assert flow.auth_prompt_visible is False
        assert flow.session.backend is None
        assert fake_client.submissions == []

    async def test_continue_without_prompt_raises(self, flow: AssessmentFlow) -> None:
        with pytest.raises(InvalidStateError):
            flow.continue_without_auth()

    async def test_retreat_closes_prompt(self, flow: AssessmentFlow, store) -> None:
        await _flow_at(flow, store, 4)
        await flow.advance()

        flow.retreat()

        assert flow.auth_prompt_visible is False
        with pytest.raises(InvalidStateError):
            flow.continue_without_auth()
        assert flow.current_step == 3

    async def test_cannot_skip_failed_step_after_going_back(
        self, flow: AssessmentFlow, store
    ) -> None:
        await _flow_at(flow, store, 4)
        await flow.advance()
        flow.retreat()
        flow.retreat()

        result = await flow.advance({"skills": {}})
        assert result.is_valid is False

        with pytest.raises(InvalidStateError):
            flow.continue_without_auth()
        assert flow.current_step == 2

    async def test_failed_revalidation_closes_prompt(self, flow: AssessmentFlow, store) -> None:
        await _flow_at(flow, store, 4)
        await flow.advance()

        result = await flow.advance({"preferences": {"learningStyle": [], "timeCommitment": ""}})

        assert result.is_valid is False
        assert flow.auth_prompt_visible is False
        with pytest.raises(InvalidStateError):
            flow.continue_without_auth()

    async def test_restore_closes_prompt(self, flow: AssessmentFlow, store) -> None:
        await _flow_at(flow, store, 4)
        await flow.advance()

        await flow.restore()

        assert flow.current_step == 4
        assert flow.auth_prompt_visible is False

    async def test_sign_in_after_prompt_submits_and_closes_it(
        self, flow: AssessmentFlow, store, fake_client
    ) -> None:
        await _flow_at(flow, store, 4)
        await flow.advance()
        flow.identity = TEST_TOKEN

        await flow.advance()

        assert flow.current_step == 5
        assert flow.auth_prompt_visible is False
        assert len(fake_client.submissions) == 1

    async def test_signed_in_submission_stores_recommendations(
        self, authed_flow: AssessmentFlow, store, fake_client
    ) -> None:
        fake_client.submit_result = BackendRecommendationsResponse(
            top_matches=[TopMatch(path_id="data-analyst", name="Data Analyst")]
        )
        await _flow_at(authed_flow, store, 4)

        await authed_flow.advance()

        assert authed_flow.current_step == 5
        assert authed_flow.session.backend == fake_client.submit_result
        assert len(fake_client.submissions) == 1
        token, submission = fake_client.submissions[0]
        assert token == TEST_TOKEN
        assert len(submission.answers) == 32
        assert submission.preferences.time_commitment == "part-time"

    async def test_submission_happens_once(
        self, authed_flow: AssessmentFlow, store, fake_client
    ) -> None:
        await _flow_at(authed_flow, store, 4)

        await authed_flow.advance()
        await authed_flow.advance()

        assert len(fake_client.submissions) == 1

    async def test_failed_submission_still_reaches_results(
        self, authed_flow: AssessmentFlow, store, fake_client
    ) -> None:
        fake_client.submit_error = TransientError("backend down", 503)
        await _flow_at(authed_flow, store, 4)

        await authed_flow.advance()

        assert authed_flow.current_step == 5
        assert authed_flow.session.backend is None


class TestRetreat:
    async def test_retreat_skips_validation(self, flow: AssessmentFlow, store) -> None:
        await _flow_at(flow, store, 3, personality={})

        assert flow.retreat() == 2

    def test_retreat_floors_at_first_step(self, flow: AssessmentFlow) -> None:
        assert flow.retreat() == 1
        assert flow.current_step == 1


class TestAnswers:
    def test_set_answer_records_value(self, flow: AssessmentFlow, store) -> None:
        answers = flow.set_answer("7", 5)

        assert answers == {"7": 5}
        assert json.loads(store.get(ANSWERS_KEY)) == {"7": 5}

    def test_unknown_question_rejected(self, flow: AssessmentFlow) -> None:
        with pytest.raises(ValidationError, match="Unknown question id"):
            flow.set_answer(33, 3)

    @pytest.mark.parametrize("value", [0, 6, True])
    def test_out_of_scale_rejected(self, flow: AssessmentFlow, value: int) -> None:
        with pytest.raises(ValidationError):
            flow.set_answer(1, value)


class TestReset:
    async def test_reset_clears_everything(self, flow: AssessmentFlow, store) -> None:
        await _flow_at(flow, store, 3, personality={})
        flow.set_answer(1, 2)
        await flow.advance()

        notice = await flow.reset_all()

        assert notice is None
        assert flow.current_step == 1
        assert flow.session.goals is None
        assert flow.session.skills == {}
        assert flow.validation_errors == {}
        assert store.get(SESSION_KEY) is None
        assert store.get(ANSWERS_KEY) is None

    async def test_signed_in_reset_clears_server(
        self, authed_flow: AssessmentFlow, store, fake_client
    ) -> None:
        await _flow_at(authed_flow, store, 2)

        notice = await authed_flow.reset_all()

        assert notice is not None
        assert notice.title == RESET_TITLE
        assert fake_client.cleared == [TEST_TOKEN]

    async def test_server_clear_failure_reported(
        self, authed_flow: AssessmentFlow, store, fake_client
    ) -> None:
        fake_client.clear_error = TransientError("down", 500)
        await _flow_at(authed_flow, store, 2)

        notice = await authed_flow.reset_all()

        assert notice is not None
        assert notice.title == RESET_FAILED_TITLE
        assert notice.variant == "destructive"
        assert authed_flow.current_step == 1
        assert store.get(SESSION_KEY) is None


class TestAuthRedirect:
    async def test_redirect_url_and_pending_payload(
        self, flow: AssessmentFlow, store
    ) -> None:
        await _flow_at(flow, store, 4)
        await flow.advance()

        url = flow.prepare_auth_redirect("signup")

        assert url == "/signup?redirect=/career-assessment"
        pending = json.loads(store.get(PENDING_KEY))
        assert pending["currentStep"] == 4
        assert pending["data"]["goals"] == "career-change"

    async def test_pending_payload_restores_after_sign_in(
        self, flow: AssessmentFlow, store, persistence, fake_client
    ) -> None:
        await _flow_at(flow, store, 4)
        flow.set_answer(5, 1)
        flow.prepare_auth_redirect("login")

        signed_in = AssessmentFlow(persistence, fake_client, identity=TEST_TOKEN)
        source = await signed_in.restore()

        assert source is RestoreSource.PENDING
        assert signed_in.current_step == 4
        assert store.get(PENDING_KEY) is None
        assert fake_client.get_calls == []
        assert signed_in.answers == {"5": 1}

    def test_unknown_kind_rejected(self, flow: AssessmentFlow) -> None:
        with pytest.raises(ValidationError):
            flow.prepare_auth_redirect("admin")  # type: ignore[arg-type]


class TestSaveAndExit:
    async def test_save_success(self, authed_flow: AssessmentFlow, store, fake_client) -> None:
        await _flow_at(authed_flow, store, 2)
        await authed_flow.persistence.queue.drain()
        saves_before = len(fake_client.saved)

        notice = await authed_flow.save_and_exit()

        assert notice.title == SAVED_TITLE
        assert len(fake_client.saved) == saves_before + 1
        assert fake_client.saved[-1]["currentStep"] == 2

    async def test_save_failure_keeps_local_copy(
        self, authed_flow: AssessmentFlow, store, fake_client
    ) -> None:
        await _flow_at(authed_flow, store, 2)
        fake_client.save_error = TransientError("down", 502)
        store.remove(SESSION_KEY)

        notice = await authed_flow.save_and_exit()

        assert notice.title == SAVE_FAILED_TITLE
        assert json.loads(store.get(SESSION_KEY))["currentStep"] == 2


class TestProgress:
    def test_initial_progress(self, flow: AssessmentFlow) -> None:
        progress = flow.progress

        assert progress.current_step == 1
        assert progress.step_name == "Goal Setting"
        assert progress.percent == 0.0
        assert progress.minutes_remaining == 10

    async def test_results_progress(self, flow: AssessmentFlow, store) -> None:
        await _flow_at(flow, store, 5)

        assert flow.progress.percent == 100.0
        assert flow.progress.minutes_remaining == 0
