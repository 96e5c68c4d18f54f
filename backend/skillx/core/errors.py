"""API error classes.

Errors raised out of the assessment API carry a machine-readable code, a
message for people and an HTTP status. ``skillx.main`` renders them into
the ``{"error": {...}}`` envelope.
"""


class APIError(Exception):
    """Base for every error the API reports to clients.

    Attributes:
        code: Stable error code, e.g. "VALIDATION_ERROR".
        message: Text shown to the caller.
        status_code: HTTP status of the response.
        details: Per-field problems, when there are any.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details


class ValidationError(APIError):
    """Rejected input (400): unknown question ids, Likert values off the
    scale, session fields of the wrong shape."""

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__("VALIDATION_ERROR", message, 400, details)


class NotFoundError(APIError):
    """No such resource (404), e.g. a notice that was already dismissed."""

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        label = f"{resource} with id '{resource_id}'" if resource_id else resource
        super().__init__("NOT_FOUND", f"{label} not found", 404)


class InvalidStateError(APIError):
    """The wizard is not in a state that allows the request (422).

    Example: continuing without sign-in while no sign-in prompt is open,
    or asking for results before the last step.
    """

    def __init__(self, message: str) -> None:
        super().__init__("INVALID_STATE_TRANSITION", message, 422)


class InternalError(APIError):
    """Anything unexpected (500). The message never includes a traceback."""

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__("INTERNAL_ERROR", message, 500)
