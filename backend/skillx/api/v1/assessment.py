"""Assessment API router.

Drives the five-step assessment wizard: read state, advance/retreat,
record quiz answers, handle the sign-in gate, save, reset, and render
results.
"""

from typing import Any, Literal

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, ConfigDict, Field

from skillx.api.deps import CurrentFlow
from skillx.core.errors import InvalidStateError, NotFoundError
from skillx.core.responses import DataResponse
from skillx.data.assessment_options import (
    BUDGET_RANGES,
    GOALS,
    LEARNING_STYLES,
    SKILL_LEVELS,
    TIME_COMMITMENTS,
)
from skillx.data.quiz_questions import LIKERT_LABELS, LIKERT_MAX, LIKERT_MIN, QUIZ_QUESTIONS
from skillx.data.skills_catalog import SKILL_CATALOG
from skillx.services.assessment_flow import AssessmentFlow
from skillx.services.assessment_steps import LAST_STEP, STEPS
from skillx.services.persistence_sync import SyncNotice
from skillx.services.results_view import ResultsView, load_results

router = APIRouter()


# =============================================================================
# Request Schemas
# =============================================================================


class AdvanceRequest(BaseModel):
    """Fields gathered on the active step, merged before validation."""

    model_config = ConfigDict(extra="forbid")

    data: dict[str, Any] = Field(default_factory=dict)


class AnswerRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    value: int = Field(..., ge=LIKERT_MIN, le=LIKERT_MAX)


class AuthRedirectRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["login", "signup"]


# =============================================================================
# Helper Functions
# =============================================================================


def _notice_to_dict(notice: SyncNotice) -> dict:
    return {
        "id": notice.id,
        "title": notice.title,
        "description": notice.description,
        "variant": notice.variant,
    }


def _state_to_dict(flow: AssessmentFlow) -> dict:
    progress = flow.progress
    return {
        "current_step": progress.current_step,
        "step_name": progress.step_name,
        "progress_percent": progress.percent,
        "minutes_remaining": progress.minutes_remaining,
        "session": flow.session.to_storage(),
        "answers": flow.answers,
        "validation_errors": {
            str(step): message for step, message in flow.validation_errors.items()
        },
        "auth_prompt_visible": flow.auth_prompt_visible,
        "is_authenticated": flow.is_authenticated,
        "notices": [_notice_to_dict(n) for n in flow.persistence.notices],
    }


# =============================================================================
# State & Transitions
# =============================================================================


@router.get("")
async def get_state(flow: CurrentFlow) -> DataResponse[dict]:
    """Current step, session, errors and notices."""
    return DataResponse(data=_state_to_dict(flow))


@router.post("/advance")
async def advance(request: AdvanceRequest, flow: CurrentFlow) -> DataResponse[dict]:
    """Merge step data and try to move forward.

    A failed step gate is not an HTTP error: the response carries the
    validation result and the unchanged step.
    """
    result = await flow.advance(request.data)
    return DataResponse(
        data={
            "validation": {"is_valid": result.is_valid, "message": result.message},
            "state": _state_to_dict(flow),
        }
    )


@router.post("/retreat")
async def retreat(flow: CurrentFlow) -> DataResponse[dict]:
    flow.retreat()
    return DataResponse(data=_state_to_dict(flow))


@router.post("/reset")
async def reset(flow: CurrentFlow) -> DataResponse[dict]:
    """Clear local and server progress and start over."""
    notice = await flow.reset_all()
    return DataResponse(
        data={
            "notice": _notice_to_dict(notice) if notice else None,
            "state": _state_to_dict(flow),
        }
    )


@router.post("/save-and-exit")
async def save_and_exit(flow: CurrentFlow) -> DataResponse[dict]:
    notice = await flow.save_and_exit()
    return DataResponse(data={"notice": _notice_to_dict(notice)})


# =============================================================================
# Quiz Answers
# =============================================================================


@router.get("/answers")
async def get_answers(flow: CurrentFlow) -> DataResponse[dict[str, int]]:
    return DataResponse(data=flow.answers)


@router.put("/answers/{question_id}")
async def set_answer(
    question_id: str, request: AnswerRequest, flow: CurrentFlow
) -> DataResponse[dict[str, int]]:
    """Record one Likert answer; returns the full answers map."""
    return DataResponse(data=flow.set_answer(question_id, request.value))


# =============================================================================
# Sign-in Gate
# =============================================================================


@router.post("/auth/continue")
async def continue_without_auth(flow: CurrentFlow) -> DataResponse[dict]:
    """Skip sign-in and go to results without submitting."""
    flow.continue_without_auth()
    return DataResponse(data=_state_to_dict(flow))


@router.post("/auth/redirect")
async def auth_redirect(
    request: AuthRedirectRequest, flow: CurrentFlow
) -> DataResponse[dict]:
    """Stash the assessment and return the login/signup URL."""
    return DataResponse(data={"redirect_url": flow.prepare_auth_redirect(request.kind)})


# =============================================================================
# Results
# =============================================================================


@router.get("/results")
async def get_results(flow: CurrentFlow) -> DataResponse[ResultsView]:
    """Results view; only available on the last step."""
    if flow.current_step != LAST_STEP:
        raise InvalidStateError(
            f"Results are available on step {LAST_STEP}, "
            f"assessment is on step {flow.current_step}"
        )
    view = await load_results(flow.session, flow.client, flow.identity, flow.answers)
    return DataResponse(data=view)


# =============================================================================
# Notices & Sync
# =============================================================================


@router.get("/notices")
async def list_notices(flow: CurrentFlow) -> DataResponse[list[dict]]:
    return DataResponse(data=[_notice_to_dict(n) for n in flow.persistence.notices])


@router.delete("/notices/{notice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def dismiss_notice(notice_id: str, flow: CurrentFlow) -> Response:
    if not flow.persistence.dismiss_notice(notice_id):
        raise NotFoundError("Notice", notice_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/sync")
async def sync_status(flow: CurrentFlow) -> DataResponse[dict]:
    """Background push queue: pending count and recent outcomes."""
    queue = flow.persistence.queue
    return DataResponse(
        data={
            "running": queue.is_running,
            "pending": queue.pending,
            "history": [
                {
                    "name": o.name,
                    "succeeded": o.succeeded,
                    "attempts": o.attempts,
                    "error": o.error,
                    "finished_at": o.finished_at.isoformat(),
                }
                for o in queue.history
            ],
        }
    )


# =============================================================================
# Catalog
# =============================================================================


@router.get("/catalog")
async def get_catalog() -> DataResponse[dict]:
    """Static choices: steps, goals, skills, quiz items, preferences."""

    def options(items: tuple) -> list[dict]:
        return [{"id": o.id, "label": o.label, "description": o.description} for o in items]

    return DataResponse(
        data={
            "steps": [
                {
                    "id": s.id,
                    "name": s.name,
                    "estimated_time_minutes": s.estimated_time_minutes,
                    "icon": s.icon,
                }
                for s in STEPS
            ],
            "goals": options(GOALS),
            "skills": {category: list(names) for category, names in SKILL_CATALOG.items()},
            "skill_levels": options(SKILL_LEVELS),
            "questions": [
                {"id": q.id, "question": q.question, "category": q.category}
                for q in QUIZ_QUESTIONS
            ],
            "likert_labels": {str(v): label for v, label in LIKERT_LABELS.items()},
            "learning_styles": options(LEARNING_STYLES),
            "time_commitments": options(TIME_COMMITMENTS),
            "budget_ranges": options(BUDGET_RANGES),
        }
    )
