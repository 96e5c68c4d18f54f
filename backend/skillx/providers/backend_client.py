"""HTTP client for the recommendations backend.

Endpoints:
- GET    /api/assessment-progress/me        load saved progress (404 = none)
- POST   /api/assessment-progress/me        save progress
- DELETE /api/assessment-progress/me        clear progress
- POST   /api/careers/submit-quiz           submit answers, get recommendations
- GET    /api/recommendations/personalized  recommendations feed (new or legacy)

Progress calls are skipped (return None) without a bearer token. HTTP and
transport failures map onto the provider error taxonomy so callers can
decide what to retry.
"""

from typing import Any

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from skillx.providers.errors import (
    AuthenticationError,
    BackendResponseError,
    RateLimitError,
    TransientError,
)
from skillx.schemas.assessment import ProgressRecord, QuizSubmission
from skillx.schemas.recommendations import (
    BackendRecommendationsResponse,
    parse_recommendations,
)

logger = structlog.get_logger()

PROGRESS_PATH = "/api/assessment-progress/me"
SUBMIT_QUIZ_PATH = "/api/careers/submit-quiz"
PERSONALIZED_RECOMMENDATIONS_PATH = "/api/recommendations/personalized"

_ERROR_BODY_PREVIEW = 200


def _retry_after_seconds(response: httpx.Response) -> float | None:
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return max(float(raw), 0.0)
    except ValueError:
        return None


def _error_message(response: httpx.Response) -> str:
    """Extract a readable message from an error response."""
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
    text = response.text[:_ERROR_BODY_PREVIEW]
    return f"HTTP {response.status_code}: {text}" if text else f"HTTP {response.status_code}"


class BackendClient:
    """Async client for the recommendations backend.

    Args:
        base_url: Backend root URL, without trailing slash.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass a MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        token: str | None,
        json: dict[str, Any] | None = None,
        not_found_ok: bool = False,
    ) -> Any:
        """Send a request and decode the JSON body.

        Args:
            method: HTTP method.
            path: Endpoint path.
            token: Bearer token, if any.
            json: Request body.
            not_found_ok: Return None on 404 instead of raising.

        Returns:
            Decoded JSON body, or None for an empty body or tolerated 404.

        Raises:
            TransientError: Transport failure, timeout, or 5xx.
            RateLimitError: 429 response.
            AuthenticationError: 401 or 403 response.
            BackendResponseError: Other 4xx or a non-JSON body.
        """
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            async with self._client() as client:
                response = await client.request(method, path, headers=headers, json=json)
        except httpx.TimeoutException as exc:
            raise TransientError(f"{method} {path} timed out") from exc
        except httpx.TransportError as exc:
            raise TransientError(f"{method} {path} failed: {exc}") from exc

        status = response.status_code
        if status == 404 and not_found_ok:
            return None
        if status in (401, 403):
            raise AuthenticationError(_error_message(response), status)
        if status == 429:
            raise RateLimitError(
                _error_message(response),
                retry_after_seconds=_retry_after_seconds(response),
            )
        if status >= 500:
            raise TransientError(_error_message(response), status)
        if status >= 400:
            raise BackendResponseError(_error_message(response), status)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            preview = response.text[:_ERROR_BODY_PREVIEW]
            raise BackendResponseError(
                f"Expected JSON response but got: {preview}", status
            ) from exc

    # =========================================================================
    # Progress
    # =========================================================================

    async def get_progress(self, token: str | None) -> ProgressRecord | None:
        """Load the signed-in user's saved progress.

        Returns:
            ProgressRecord, or None without a token or when none exists.
        """
        if not token:
            logger.debug("No auth token, skipping progress fetch")
            return None
        body = await self._request("GET", PROGRESS_PATH, token=token, not_found_ok=True)
        if not isinstance(body, dict):
            return None
        try:
            record = ProgressRecord.model_validate(body)
        except PydanticValidationError as exc:
            raise BackendResponseError(f"Malformed progress record: {exc}") from exc
        logger.info(
            "Progress loaded",
            current_step=record.current_step,
            answer_count=len(record.answers or {}),
        )
        return record

    async def save_progress(
        self, token: str | None, record: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Save ``{currentStep, data, answers}`` for the signed-in user.

        Returns:
            Backend acknowledgement, or None without a token.
        """
        if not token:
            logger.debug("No auth token, skipping progress save")
            return None
        body = await self._request("POST", PROGRESS_PATH, token=token, json=record)
        return body if isinstance(body, dict) else None

    async def clear_progress(self, token: str | None) -> dict[str, Any] | None:
        """Delete the signed-in user's saved progress.

        Returns:
            Backend acknowledgement, or None without a token.
        """
        if not token:
            logger.debug("No auth token, skipping progress clear")
            return None
        body = await self._request("DELETE", PROGRESS_PATH, token=token)
        return body if isinstance(body, dict) else None

    # =========================================================================
    # Recommendations
    # =========================================================================

    async def submit_quiz(
        self, token: str | None, submission: QuizSubmission
    ) -> BackendRecommendationsResponse:
        """Submit answers, skills and preferences; return recommendations.

        Raises:
            ProviderError: On any backend failure.
            BackendResponseError: If the response cannot be parsed.
        """
        logger.info(
            "Submitting quiz",
            answer_count=len(submission.answers),
            skill_count=len(submission.skills),
        )
        body = await self._request(
            "POST",
            SUBMIT_QUIZ_PATH,
            token=token,
            json=submission.model_dump(mode="json", by_alias=True),
        )
        result = self._parse_recommendations(body)
        logger.info(
            "Quiz submission succeeded",
            top_match_count=len(result.top_matches),
            has_profile=result.profile is not None,
            path_count=len(result.paths),
        )
        return result

    async def get_personalized_recommendations(
        self, token: str | None
    ) -> BackendRecommendationsResponse:
        """Fetch the personalized feed, normalizing the legacy shape.

        Raises:
            ProviderError: On any backend failure.
            BackendResponseError: If the response cannot be parsed.
        """
        body = await self._request("GET", PERSONALIZED_RECOMMENDATIONS_PATH, token=token)
        return self._parse_recommendations(body)

    @staticmethod
    def _parse_recommendations(body: Any) -> BackendRecommendationsResponse:
        try:
            return parse_recommendations(body)
        except PydanticValidationError as exc:
            raise BackendResponseError(
                f"Malformed recommendations payload: {exc.error_count()} error(s)"
            ) from exc
