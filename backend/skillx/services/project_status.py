"""Project submission status transitions.

State machine for learning-journey project statuses:
- Not Started → In Progress
- In Progress → Submitted
- Submitted → Approved, Rejected, Completed
- Approved → Completed
- Rejected → Submitted (resubmission)
- Completed → (terminal, no transitions)

Review is mandatory: In Progress cannot jump to Completed, and a rejected
project has to be resubmitted before it can complete.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from skillx.core.errors import APIError

# =============================================================================
# Exceptions
# =============================================================================


class InvalidStatusTransitionError(APIError):
    """Raised when attempting an invalid project status transition."""

    def __init__(
        self,
        current_status: "ProjectStatus",
        target_status: "ProjectStatus",
        valid_transitions: list["ProjectStatus"],
    ) -> None:
        """Initialize with transition details.

        Args:
            current_status: The current status of the project.
            target_status: The attempted target status.
            valid_transitions: List of valid target statuses from current.
        """
        self.current_status = current_status
        self.target_status = target_status
        self.valid_transitions = valid_transitions
        valid_names = [s.value for s in valid_transitions]
        super().__init__(
            code="INVALID_STATUS_TRANSITION",
            message=(
                f"Cannot transition from {current_status.value} to {target_status.value}. "
                f"Valid transitions: {valid_names or 'none (terminal state)'}"
            ),
            status_code=422,
        )


# =============================================================================
# Enums
# =============================================================================


class ProjectStatus(Enum):
    """Project status values, as stored by the learning-journey tracker."""

    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"

    @classmethod
    def from_string(cls, value: str) -> "ProjectStatus":
        """Convert a stored string to enum.

        Args:
            value: Status string.

        Returns:
            The corresponding ProjectStatus enum value.

        Raises:
            ValueError: If the string doesn't match any status.
        """
        for status in cls:
            if status.value == value:
                return status
        valid = [s.value for s in cls]
        raise ValueError(f"Invalid project status: '{value}'. Valid: {valid}")


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class StatusTransitionResult:
    """Result of a status transition.

    Attributes:
        new_status: The status after transition.
        submitted_at: Timestamp when (re)submitted for review.
        reviewed_at: Timestamp when approved or rejected.
        completed_at: Timestamp when completed.
    """

    new_status: ProjectStatus
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    completed_at: datetime | None = None


# =============================================================================
# State Machine Definition
# =============================================================================


_VALID_TRANSITIONS: dict[ProjectStatus, list[ProjectStatus]] = {
    ProjectStatus.NOT_STARTED: [ProjectStatus.IN_PROGRESS],
    ProjectStatus.IN_PROGRESS: [ProjectStatus.SUBMITTED],
    ProjectStatus.SUBMITTED: [
        ProjectStatus.APPROVED,
        ProjectStatus.REJECTED,
        ProjectStatus.COMPLETED,
    ],
    ProjectStatus.APPROVED: [ProjectStatus.COMPLETED],
    ProjectStatus.REJECTED: [ProjectStatus.SUBMITTED],
    ProjectStatus.COMPLETED: [],  # Terminal state
}

_REVIEW_OUTCOMES = frozenset({ProjectStatus.APPROVED, ProjectStatus.REJECTED})


# =============================================================================
# Public Functions
# =============================================================================


def is_valid_transition(current: ProjectStatus, target: ProjectStatus) -> bool:
    """Check if a status transition is valid.

    Args:
        current: The current status of the project.
        target: The desired target status.

    Returns:
        True if the transition is allowed, False otherwise.
    """
    return target in _VALID_TRANSITIONS.get(current, [])


def get_valid_transitions(status: ProjectStatus) -> list[ProjectStatus]:
    """Get valid target statuses from current status."""
    return list(_VALID_TRANSITIONS.get(status, []))


def transition_status(
    current: ProjectStatus,
    target: ProjectStatus,
) -> StatusTransitionResult:
    """Execute a status transition with validation.

    Args:
        current: The current status of the project.
        target: The desired target status.

    Returns:
        StatusTransitionResult with new status and timestamps.

    Raises:
        InvalidStatusTransitionError: If the transition is not allowed.
    """
    if not is_valid_transition(current, target):
        raise InvalidStatusTransitionError(
            current_status=current,
            target_status=target,
            valid_transitions=get_valid_transitions(current),
        )

    now = datetime.now(UTC)

    return StatusTransitionResult(
        new_status=target,
        submitted_at=now if target == ProjectStatus.SUBMITTED else None,
        reviewed_at=now if target in _REVIEW_OUTCOMES else None,
        completed_at=now if target == ProjectStatus.COMPLETED else None,
    )
