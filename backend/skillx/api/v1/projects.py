"""Project status API router.

Exposes the learning-journey project status state machine so clients can
validate a transition and get the timestamps it sets.
"""

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, field_validator

from skillx.core.errors import ValidationError
from skillx.core.responses import DataResponse
from skillx.services.project_status import (
    ProjectStatus,
    get_valid_transitions,
    transition_status,
)

router = APIRouter()


class StatusTransitionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    current_status: str
    new_status: str

    @field_validator("current_status", "new_status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        ProjectStatus.from_string(v)
        return v


def _parse_status(value: str) -> ProjectStatus:
    try:
        return ProjectStatus.from_string(value)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


@router.get("/status-transitions/{current_status}")
async def list_transitions(current_status: str) -> DataResponse[list[str]]:
    """Statuses reachable from ``current_status``."""
    status = _parse_status(current_status)
    return DataResponse(data=[s.value for s in get_valid_transitions(status)])


@router.post("/status-transitions")
async def apply_transition(request: StatusTransitionRequest) -> DataResponse[dict]:
    """Validate a transition and return the resulting status and timestamps.

    Raises:
        InvalidStatusTransitionError: 422 when the transition is not allowed.
    """
    result = transition_status(
        ProjectStatus.from_string(request.current_status),
        ProjectStatus.from_string(request.new_status),
    )
    return DataResponse(
        data={
            "new_status": result.new_status.value,
            "submitted_at": result.submitted_at.isoformat() if result.submitted_at else None,
            "reviewed_at": result.reviewed_at.isoformat() if result.reviewed_at else None,
            "completed_at": result.completed_at.isoformat() if result.completed_at else None,
        }
    )
