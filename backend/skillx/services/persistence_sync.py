"""Local and server persistence for assessment progress.

Every session change is written synchronously to the local store and,
for signed-in users, pushed to the server progress endpoint through the
background sync queue. Local failures are logged and otherwise invisible;
a failed server push becomes a dismissible notice.

Restore precedence on load:
1. The pending-assessment payload left before an auth redirect. It fully
   determines step and session, and is deleted once read.
2. The local session snapshot, if well-formed.
3. The server progress record (signed-in users only), merged
   field-by-field over whatever the local snapshot provided.

Conflict policy is last-write-wins: there is no versioning between the
local copy, the server copy, and other devices.
"""

import json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

import structlog
from pydantic import ValidationError as PydanticValidationError

from skillx.providers.backend_client import BackendClient
from skillx.providers.errors import ProviderError
from skillx.schemas.assessment import AssessmentSession, ProgressRecord
from skillx.services.assessment_steps import FIRST_STEP, clamp_step
from skillx.services.background_sync import BackgroundSyncQueue, SyncJob
from skillx.services.session_store import (
    ANSWERS_KEY,
    PENDING_KEY,
    SESSION_KEY,
    SessionStore,
    StorageError,
)

logger = structlog.get_logger()

PUSH_JOB_NAME = "save_progress"

NoticeVariant = Literal["default", "destructive"]


@dataclass(frozen=True)
class SyncNotice:
    """A user-facing notice about a persistence outcome."""

    title: str
    description: str
    variant: NoticeVariant = "default"
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


PUSH_FAILED_TITLE = "Progress Save Failed"
PUSH_FAILED_DESCRIPTION = (
    "Could not save your assessment progress to the server. "
    "Please check your connection or login status."
)
SAVED_TITLE = "Progress Saved"
SAVED_DESCRIPTION = "Your assessment progress has been saved. You can continue later."
SAVE_FAILED_TITLE = "Save Failed"
SAVE_FAILED_DESCRIPTION = "Could not save progress to server, but it's saved locally."
RESET_TITLE = "Progress Reset"
RESET_DESCRIPTION = "Your assessment progress has been cleared."
RESET_FAILED_TITLE = "Reset Failed"
RESET_FAILED_DESCRIPTION = (
    "Could not clear server progress, but local progress is cleared."
)


class RestoreSource(str, Enum):
    """Where a restored state came from."""

    NONE = "none"
    PENDING = "pending"
    LOCAL = "local"
    SERVER = "server"


@dataclass
class RestoredState:
    """Outcome of a restore.

    Attributes:
        current_step: Clamped step to resume at.
        session: Restored session (portfolio always None).
        source: Highest-precedence source that contributed.
    """

    current_step: int
    session: AssessmentSession
    source: RestoreSource


class PersistenceSync:
    """Persists assessment progress locally and on the server.

    Args:
        store: Local key-value store.
        client: Backend client for the progress endpoints.
        queue: Background queue used for server pushes.
    """

    def __init__(
        self,
        store: SessionStore,
        client: BackendClient,
        queue: BackgroundSyncQueue,
    ) -> None:
        self._store = store
        self._client = client
        self._queue = queue
        self._notices: list[SyncNotice] = []

    @property
    def queue(self) -> BackgroundSyncQueue:
        return self._queue

    # =========================================================================
    # Notices
    # =========================================================================

    @property
    def notices(self) -> list[SyncNotice]:
        """Undismissed notices, oldest first."""
        return list(self._notices)

    def add_notice(
        self, title: str, description: str, variant: NoticeVariant = "default"
    ) -> SyncNotice:
        notice = SyncNotice(title=title, description=description, variant=variant)
        self._notices.append(notice)
        return notice

    def dismiss_notice(self, notice_id: str) -> bool:
        """Remove a notice. Returns False if no notice has that id."""
        for index, notice in enumerate(self._notices):
            if notice.id == notice_id:
                del self._notices[index]
                return True
        return False

    # =========================================================================
    # Answers map
    # =========================================================================

    def read_answers(self) -> dict[str, int]:
        """Read the stored personality answers map.

        Returns an empty map when the key is absent or unreadable.
        """
        raw = self._store.get(ANSWERS_KEY)
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed stored answers")
            return {}
        if not isinstance(parsed, dict):
            return {}
        return {
            str(key): value
            for key, value in parsed.items()
            if isinstance(value, int) and not isinstance(value, bool)
        }

    def write_answers(self, answers: dict[str, int]) -> None:
        """Replace the stored answers map. Storage failures are logged."""
        try:
            self._store.set(ANSWERS_KEY, json.dumps(answers))
        except StorageError as exc:
            logger.warning("Failed to store answers", error=str(exc))

    # =========================================================================
    # Save
    # =========================================================================

    def _progress_payload(self, step: int, session: AssessmentSession) -> dict[str, Any]:
        return {
            "currentStep": step,
            "data": session.to_storage(),
            "answers": self.read_answers(),
        }

    def save_local(self, step: int, session: AssessmentSession) -> bool:
        """Write ``{currentStep, data}`` to the local session key.

        Returns:
            True on success. Failures are logged, never raised.
        """
        payload = {"currentStep": step, "data": session.to_storage()}
        try:
            self._store.set(SESSION_KEY, json.dumps(payload))
        except StorageError as exc:
            logger.error("Local progress save failed", step=step, error=str(exc))
            return False
        return True

    def push_remote(
        self, step: int, session: AssessmentSession, token: str | None
    ) -> SyncJob | None:
        """Queue a server save of the current progress.

        The payload is captured now, so later edits do not leak into this
        push. Without a token nothing is queued.

        Returns:
            The queued job, or None when not signed in.
        """
        if not token:
            return None
        payload = self._progress_payload(step, session)
        logger.info(
            "Queueing progress push",
            step=step,
            answer_count=len(payload["answers"]),
        )

        def on_failure(exc: Exception) -> None:
            logger.error("Progress push failed", step=step, error=str(exc))
            self.add_notice(PUSH_FAILED_TITLE, PUSH_FAILED_DESCRIPTION, "destructive")

        return self._queue.enqueue(
            PUSH_JOB_NAME,
            lambda: self._client.save_progress(token, payload),
            on_failure=on_failure,
        )

    def persist(self, step: int, session: AssessmentSession, token: str | None) -> None:
        """Save locally, then queue the server push when signed in."""
        self.save_local(step, session)
        self.push_remote(step, session, token)

    async def save_now(
        self, step: int, session: AssessmentSession, token: str | None
    ) -> SyncNotice:
        """Save locally and await the server save.

        Returns:
            The notice describing the outcome (also kept in ``notices``).
        """
        self.save_local(step, session)
        payload = self._progress_payload(step, session)
        try:
            await self._client.save_progress(token, payload)
        except ProviderError as exc:
            logger.error("Save before exit failed", step=step, error=str(exc))
            return self.add_notice(SAVE_FAILED_TITLE, SAVE_FAILED_DESCRIPTION, "destructive")
        logger.info("Progress saved before exit", step=step)
        return self.add_notice(SAVED_TITLE, SAVED_DESCRIPTION)

    def write_pending(self, step: int, session: AssessmentSession, answers: dict[str, int]) -> None:
        """Store the pending-assessment payload ahead of an auth redirect."""
        payload = {
            "currentStep": step,
            "data": session.to_storage(),
            "answers": answers,
        }
        try:
            self._store.set(PENDING_KEY, json.dumps(payload))
        except StorageError as exc:
            logger.error("Failed to store pending assessment", error=str(exc))

    # =========================================================================
    # Clear
    # =========================================================================

    async def clear_all(self, token: str | None) -> SyncNotice | None:
        """Remove local progress and the server copy.

        The local clear always happens first. Without a token there is no
        server copy to clear and no notice is produced.

        Returns:
            The outcome notice, or None when not signed in.
        """
        for key in (SESSION_KEY, ANSWERS_KEY):
            try:
                self._store.remove(key)
            except StorageError as exc:
                logger.error("Local progress clear failed", key=key, error=str(exc))

        if not token:
            return None
        try:
            await self._client.clear_progress(token)
        except ProviderError as exc:
            logger.error("Server progress clear failed", error=str(exc))
            return self.add_notice(RESET_FAILED_TITLE, RESET_FAILED_DESCRIPTION, "destructive")
        logger.info("Progress reset")
        return self.add_notice(RESET_TITLE, RESET_DESCRIPTION)

    # =========================================================================
    # Restore
    # =========================================================================

    async def restore(self, token: str | None) -> RestoredState:
        """Rebuild step and session from the highest-precedence source.

        Never raises: unreadable sources are logged and skipped.
        """
        pending = self._restore_pending()
        if pending is not None:
            return pending

        state = RestoredState(
            current_step=FIRST_STEP,
            session=AssessmentSession(),
            source=RestoreSource.NONE,
        )
        local = self._restore_local()
        if local is not None:
            state = local

        if token:
            state = await self._overlay_server(state, token)
        return state

    def _restore_pending(self) -> RestoredState | None:
        raw = self._store.get(PENDING_KEY)
        if raw is None:
            return None
        try:
            self._store.remove(PENDING_KEY)
        except StorageError as exc:
            logger.warning("Failed to remove pending assessment", error=str(exc))
        try:
            record = ProgressRecord.model_validate(json.loads(raw))
            session = AssessmentSession.from_storage(record.data or {})
        except (json.JSONDecodeError, PydanticValidationError) as exc:
            logger.warning("Ignoring malformed pending assessment", error=str(exc))
            return None
        if record.answers:
            self.write_answers(record.answers)
        logger.info(
            "Pending assessment restored",
            step=record.current_step,
            data_keys=sorted((record.data or {}).keys()),
        )
        return RestoredState(
            current_step=clamp_step(record.current_step or FIRST_STEP),
            session=session,
            source=RestoreSource.PENDING,
        )

    def _restore_local(self) -> RestoredState | None:
        raw = self._store.get(SESSION_KEY)
        if raw is None:
            return None
        try:
            record = ProgressRecord.model_validate(json.loads(raw))
            if not record.current_step or record.data is None:
                raise ValueError("missing currentStep or data")
            session = AssessmentSession.from_storage(record.data)
        except (ValueError, PydanticValidationError) as exc:
            logger.warning("Ignoring malformed local progress", error=str(exc))
            return None
        return RestoredState(
            current_step=clamp_step(record.current_step),
            session=session,
            source=RestoreSource.LOCAL,
        )

    async def _overlay_server(self, state: RestoredState, token: str) -> RestoredState:
        try:
            record = await self._client.get_progress(token)
        except ProviderError as exc:
            logger.info("No server progress found or error", error=str(exc))
            return state
        if record is None:
            return state

        step = state.current_step
        session = state.session
        if record.current_step:
            step = clamp_step(record.current_step)
        if record.data:
            try:
                session = session.merged(record.data).model_copy(update={"portfolio": None})
            except PydanticValidationError as exc:
                logger.warning("Ignoring malformed server progress data", error=str(exc))
        if record.answers:
            self.write_answers(record.answers)
        return RestoredState(current_step=step, session=session, source=RestoreSource.SERVER)
