"""Shared dependencies for API endpoints.

The service drives one assessment at a time, so the flow is a process-wide
singleton built from settings. The caller's identity is the bearer token
from the Authorization header, falling back to BACKEND_TOKEN; with
neither, the assessment runs anonymously.
"""

from typing import Annotated

from fastapi import Depends, Request

from skillx.core.config import settings
from skillx.providers.backend_client import BackendClient
from skillx.providers.retry import RetryPolicy
from skillx.services.assessment_flow import AssessmentFlow
from skillx.services.assessment_steps import build_validation_rules
from skillx.services.background_sync import BackgroundSyncQueue
from skillx.services.persistence_sync import PersistenceSync
from skillx.services.session_store import JsonFileSessionStore, SessionStore

_BEARER_PREFIX = "bearer "


def build_assessment_flow(
    *,
    store: SessionStore | None = None,
    client: BackendClient | None = None,
    identity: str | None = None,
) -> AssessmentFlow:
    """Wire an AssessmentFlow from settings.

    Args:
        store: Local store (defaults to the JSON file at STORAGE_PATH).
        client: Backend client (defaults to BACKEND_API_URL).
        identity: Initial bearer token.

    Returns:
        A flow that has not been restored yet.
    """
    if store is None:
        store = JsonFileSessionStore(settings.storage_path)
    if client is None:
        client = BackendClient(
            settings.backend_base_url, timeout=settings.backend_timeout_seconds
        )
    queue = BackgroundSyncQueue(
        RetryPolicy(
            max_retries=settings.sync_max_retries,
            base_delay_ms=settings.sync_retry_base_delay_ms,
            max_delay_ms=settings.sync_retry_max_delay_ms,
        )
    )
    return AssessmentFlow(
        PersistenceSync(store, client, queue),
        client,
        identity=identity,
        rules=build_validation_rules(settings.personality_min_answers),
        redirect_path=settings.assessment_redirect_path,
    )


# Singleton instance for the application
_flow: AssessmentFlow | None = None


def get_assessment_flow() -> AssessmentFlow:
    """Get the singleton assessment flow, building it on first use."""
    global _flow
    if _flow is None:
        _flow = build_assessment_flow()
    return _flow


def set_assessment_flow(flow: AssessmentFlow) -> None:
    """Install a prebuilt flow (for testing)."""
    global _flow
    _flow = flow


async def reset_assessment_flow() -> None:
    """Stop the background queue and drop the singleton."""
    global _flow
    if _flow is not None:
        await _flow.persistence.queue.stop()
    _flow = None


def get_identity(request: Request) -> str | None:
    """Bearer token for the caller, or None when anonymous."""
    header = request.headers.get("authorization", "")
    if header.lower().startswith(_BEARER_PREFIX):
        token = header[len(_BEARER_PREFIX):].strip()
        if token:
            return token
    return settings.backend_token.get_secret_value() or None


Identity = Annotated[str | None, Depends(get_identity)]


async def get_flow(identity: Identity) -> AssessmentFlow:
    """Return the restored flow for the caller.

    A change of identity (e.g. after signing in) restores again so the
    server copy and any pending payload are picked up.
    """
    flow = get_assessment_flow()
    if flow.identity != identity:
        flow.identity = identity
        await flow.restore()
    else:
        await flow.ensure_restored()
    return flow


CurrentFlow = Annotated[AssessmentFlow, Depends(get_flow)]
