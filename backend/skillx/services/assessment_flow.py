"""Assessment wizard state machine.

Owns the current step, the session aggregate, per-step validation errors
and the sign-in gate in front of the quiz submission. Every mutation is
persisted through ``PersistenceSync``: locally right away, and to the
server in the background when an identity is present.

Transitions:
- advance(partial): merge, validate the active step, then move forward.
  Completing step 4 submits the assessment (awaited) before moving to
  results. A failed submission still moves to results without data.
- retreat(): one step back, no validation.
- reset_all(): clear local and server copies, start over at step 1.

Without an identity, completing step 4 raises the sign-in prompt and the
wizard stays on step 4 until the user continues anonymously or leaves for
login/signup (the pending payload brings them back where they were).
"""

from dataclasses import dataclass
from typing import Any, Literal

import structlog
from pydantic import ValidationError as PydanticValidationError

from skillx.core.errors import InvalidStateError, ValidationError
from skillx.data.quiz_questions import LIKERT_MAX, LIKERT_MIN, is_known_question
from skillx.data.skills_catalog import COMBINED_SKILL_SPLITS
from skillx.providers.backend_client import BackendClient
from skillx.providers.errors import ProviderError
from skillx.schemas.assessment import AssessmentSession, QuizSubmission
from skillx.services.assessment_steps import (
    FIRST_STEP,
    LAST_STEP,
    SUBMIT_STEP,
    ValidationResult,
    ValidationRule,
    build_validation_rules,
    get_step,
    minutes_remaining,
    progress_percent,
    validate_step,
)
from skillx.services.persistence_sync import PersistenceSync, RestoreSource, SyncNotice

logger = structlog.get_logger()

SKILLS_STEP = 2
PERSONALITY_STEP = 3

AuthRedirectKind = Literal["login", "signup"]
DEFAULT_REDIRECT_PATH = "/career-assessment"


@dataclass(frozen=True)
class FlowProgress:
    """Derived progress for the active step."""

    current_step: int
    step_name: str
    percent: float
    minutes_remaining: int


def normalize_skills_for_backend(skills: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Keep selected skills only and split combined picker entries.

    ``{"HTML/CSS": {"selected": True, "level": 3}}`` becomes separate
    ``HTML`` and ``CSS`` entries at level 3. Entries without a level are
    dropped along with unselected ones.
    """
    out: dict[str, dict[str, Any]] = {}
    for name, info in skills.items():
        if isinstance(info, dict):
            selected = info.get("selected")
            level = info.get("level")
        else:
            selected = getattr(info, "selected", False)
            level = getattr(info, "level", None)
        if not selected or level is None:
            continue
        for target in COMBINED_SKILL_SPLITS.get(name, (name,)):
            out[target] = {"selected": True, "level": level}
    return out


class AssessmentFlow:
    """The five-step assessment wizard.

    Args:
        persistence: Local/server persistence.
        client: Backend client used for the quiz submission.
        identity: Bearer token of the signed-in user, or None.
        rules: Validation rules keyed by step (defaults to the standard set).
        redirect_path: Path login/signup should return to.
    """

    def __init__(
        self,
        persistence: PersistenceSync,
        client: BackendClient,
        *,
        identity: str | None = None,
        rules: dict[int, ValidationRule] | None = None,
        redirect_path: str = DEFAULT_REDIRECT_PATH,
    ) -> None:
        self._persistence = persistence
        self._client = client
        self._identity = identity or None
        self._rules = rules if rules is not None else build_validation_rules()
        self._redirect_path = redirect_path

        self._current_step = FIRST_STEP
        self._session = AssessmentSession()
        self._validation_errors: dict[int, str] = {}
        self._auth_prompt_visible = False
        self._restored = False
        self._restore_source = RestoreSource.NONE

    # =========================================================================
    # State
    # =========================================================================

    @property
    def current_step(self) -> int:
        return self._current_step

    @property
    def session(self) -> AssessmentSession:
        return self._session

    @property
    def validation_errors(self) -> dict[int, str]:
        """Failure messages keyed by step, for steps that last failed."""
        return dict(self._validation_errors)

    @property
    def auth_prompt_visible(self) -> bool:
        return self._auth_prompt_visible

    @property
    def identity(self) -> str | None:
        return self._identity

    @identity.setter
    def identity(self, value: str | None) -> None:
        self._identity = value or None

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    @property
    def persistence(self) -> PersistenceSync:
        return self._persistence

    @property
    def client(self) -> BackendClient:
        return self._client

    @property
    def restore_source(self) -> RestoreSource:
        return self._restore_source

    @property
    def answers(self) -> dict[str, int]:
        """Personality answers recorded so far, keyed by question id."""
        return self._persistence.read_answers()

    @property
    def progress(self) -> FlowProgress:
        step = get_step(self._current_step)
        return FlowProgress(
            current_step=step.id,
            step_name=step.name,
            percent=progress_percent(step.id),
            minutes_remaining=minutes_remaining(step.id),
        )

    # =========================================================================
    # Restore
    # =========================================================================

    async def restore(self) -> RestoreSource:
        """Load state from the highest-precedence source and persist it."""
        state = await self._persistence.restore(self._identity)
        self._current_step = state.current_step
        self._session = state.session
        self._restore_source = state.source
        self._auth_prompt_visible = False
        self._restored = True
        logger.info(
            "Assessment restored",
            source=state.source.value,
            step=state.current_step,
        )
        self._persist()
        return state.source

    async def ensure_restored(self) -> None:
        """Restore once; later calls are no-ops."""
        if not self._restored:
            await self.restore()

    # =========================================================================
    # Transitions
    # =========================================================================

    async def advance(self, partial: dict[str, Any] | None = None) -> ValidationResult:
        """Merge ``partial`` into the session and try to complete the active step.

        Args:
            partial: Session fields gathered on the active step (snake_case
                or camelCase keys).

        Returns:
            The active step's validation result.

        Raises:
            ValidationError: If a merged field has an invalid value.
        """
        step = self._current_step
        self._merge(self._prepare_partial(step, dict(partial or {})))

        result = validate_step(step, self._session, self._rules)
        if not result.is_valid:
            self._validation_errors[step] = result.message
            self._auth_prompt_visible = False
            logger.info("Step validation failed", step=step, message=result.message)
            return result

        self._validation_errors.pop(step, None)

        if step == SUBMIT_STEP:
            if not self.is_authenticated:
                self._auth_prompt_visible = True
                logger.info("Sign-in required before submission", step=step)
                return result
            await self._submit()

        self._move_to(step + 1)
        return result

    def retreat(self) -> int:
        """Go back one step without validation. Returns the new step.

        Leaving step 4 closes the sign-in prompt.
        """
        self._move_to(self._current_step - 1)
        return self._current_step

    async def reset_all(self) -> SyncNotice | None:
        """Clear every saved copy and start over at step 1.

        Returns:
            Reset notice for signed-in users, otherwise None.
        """
        notice = await self._persistence.clear_all(self._identity)
        self._session = AssessmentSession()
        self._current_step = FIRST_STEP
        self._validation_errors = {}
        self._auth_prompt_visible = False
        logger.info("Assessment reset")
        return notice

    def set_answer(self, question_id: str | int, value: int) -> dict[str, int]:
        """Record one personality answer.

        Returns:
            The updated answers map.

        Raises:
            ValidationError: Unknown question id or value outside the scale.
        """
        qid = str(question_id)
        if not is_known_question(qid):
            raise ValidationError(f"Unknown question id: {qid}")
        if isinstance(value, bool) or not LIKERT_MIN <= value <= LIKERT_MAX:
            raise ValidationError(
                f"Answer must be between {LIKERT_MIN} and {LIKERT_MAX}. Got: {value}"
            )
        answers = self._persistence.read_answers()
        answers[qid] = value
        self._persistence.write_answers(answers)
        return answers

    # =========================================================================
    # Sign-in gate
    # =========================================================================

    def continue_without_auth(self) -> int:
        """Dismiss the sign-in prompt and go to results without submitting.

        Raises:
            InvalidStateError: If the prompt is not showing.
        """
        if not self._auth_prompt_visible or self._current_step != SUBMIT_STEP:
            raise InvalidStateError("No sign-in prompt is pending")
        self._move_to(LAST_STEP)
        return self._current_step

    def prepare_auth_redirect(self, kind: AuthRedirectKind) -> str:
        """Stash the assessment for after sign-in and return the redirect URL.

        Raises:
            ValidationError: If ``kind`` is not "login" or "signup".
        """
        if kind not in ("login", "signup"):
            raise ValidationError(f"Unknown redirect kind: {kind}")
        self._persistence.write_pending(
            self._current_step, self._session, self._persistence.read_answers()
        )
        logger.info("Pending assessment stored", step=self._current_step, kind=kind)
        return f"/{kind}?redirect={self._redirect_path}"

    async def save_and_exit(self) -> SyncNotice:
        """Save locally and to the server, waiting for the server result."""
        return await self._persistence.save_now(
            self._current_step, self._session, self._identity
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _prepare_partial(self, step: int, partial: dict[str, Any]) -> dict[str, Any]:
        if step == SKILLS_STEP and isinstance(partial.get("skills"), dict):
            partial["skills"] = normalize_skills_for_backend(partial["skills"])
        if step == PERSONALITY_STEP and "personality" not in partial:
            partial["personality"] = self._persistence.read_answers()
        if isinstance(partial.get("personality"), dict):
            partial["personality"] = {
                str(key): value for key, value in partial["personality"].items()
            }
        return partial

    def _merge(self, partial: dict[str, Any]) -> None:
        if not partial:
            return
        try:
            self._session = self._session.merged(partial)
        except PydanticValidationError as exc:
            details = [
                {"field": ".".join(str(p) for p in err["loc"]), "error": err["msg"]}
                for err in exc.errors()
            ]
            raise ValidationError("Invalid assessment data", details=details) from exc
        self._persist()

    def _move_to(self, step: int) -> None:
        step = min(max(step, FIRST_STEP), LAST_STEP)
        if step == self._current_step:
            return
        self._current_step = step
        self._auth_prompt_visible = False
        self._persist()

    def _persist(self) -> None:
        self._persistence.persist(self._current_step, self._session, self._identity)

    async def _submit(self) -> None:
        answers = self._persistence.read_answers() or dict(self._session.personality)
        try:
            submission = QuizSubmission(
                answers=answers,
                skills=self._session.skills,
                preferences=self._session.preferences,
            )
            backend = await self._client.submit_quiz(self._identity, submission)
        except (ProviderError, PydanticValidationError) as exc:
            logger.error("Quiz submission failed", error=str(exc))
            return
        self._session = self._session.model_copy(update={"backend": backend})
        self._persist()
