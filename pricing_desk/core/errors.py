"""Typed failures surfaced by the transport, services and lifecycle rules."""

from __future__ import annotations


class PricingDeskError(Exception):
    """Base client error carrying the server's machine-readable context."""

    default_code = "pricing_desk_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        request_id: str | None = None,
        retryable: bool | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.status_code = status_code
        self.request_id = request_id
        self.retryable = retryable

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (status={self.status_code})"


class NetworkError(PricingDeskError):
    """The API could not be reached."""

    default_code = "network_error"


class AuthorizationError(PricingDeskError):
    """Missing, expired or closed session credentials."""

    default_code = "unauthorized"


class ValidationFailure(PricingDeskError):
    """Payload rejected, either locally before sending or by the server."""

    default_code = "validation_failed"

    def __init__(self, message: str, *, problems: list[str] | None = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.problems = list(problems or [])


class NotFoundError(PricingDeskError):
    """The pricing request does not exist or is hidden from the caller's role."""

    default_code = "not_found"


class IllegalTransitionError(PricingDeskError):
    """Action not allowed for the request's state or the caller's relation to it."""

    default_code = "illegal_transition"


class ServerError(PricingDeskError):
    """Any other non-success response."""

    default_code = "server_error"


_STATUS_ERRORS: dict[int, type[PricingDeskError]] = {
    400: ValidationFailure,
    401: AuthorizationError,
    403: IllegalTransitionError,
    404: NotFoundError,
    409: IllegalTransitionError,
    422: ValidationFailure,
}


def error_class_for_status(status_code: int) -> type[PricingDeskError]:
    return _STATUS_ERRORS.get(status_code, ServerError)
