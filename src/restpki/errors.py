"""restpki error types."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .core.validation import ValidationResults

__all__ = [
    "CertificateError",
    "ConfigError",
    "ParameterError",
    "RestError",
    "RestHttpError",
    "RestPkiApiError",
    "RestPkiError",
    "RestUnreachableError",
    "StateError",
    "ValidationError",
]


class RestPkiError(Exception):
    """Base error for restpki operations."""


class ParameterError(RestPkiError):
    """A required parameter was not set or has an invalid value."""


class StateError(RestPkiError):
    """A result was requested before the operation that produces it ran."""


class ConfigError(RestPkiError):
    """Configuration validation error."""


class CertificateError(RestPkiError):
    """Certificate or CMS parsing error."""


class RestError(RestPkiError):
    """Error raised while performing a REST call.

    Args:
        message: Human-readable error description.
        verb: HTTP method of the failed call.
        url: Target URL of the failed call.
    """

    def __init__(self, message: str, verb: str, url: str) -> None:
        super().__init__(message)
        self.verb = verb
        self.url = url

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (str(self), self.verb, self.url), self.__dict__)


class RestUnreachableError(RestError):
    """The REST endpoint could not be reached (DNS, TLS, timeout, refused).

    Args:
        verb: HTTP method of the failed call.
        url: Target URL of the failed call.
        reason: Optional low-level failure description.
        retryable: Whether this error is transient and worth retrying.
    """

    def __init__(
        self, verb: str, url: str, reason: str | None = None, *, retryable: bool = False
    ) -> None:
        message = f"REST action {verb} {url} unreachable"
        if reason:
            message += f": {reason}"
        super().__init__(message, verb, url)
        self.reason = reason
        self.retryable = retryable

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self.verb, self.url, self.reason), {"retryable": self.retryable})

    def __setstate__(self, state: dict[str, Any] | None) -> None:
        if state is None:
            return
        self.retryable = state.get("retryable", False)


class RestHttpError(RestError):
    """The endpoint answered with a non-2xx status that is not an API error."""

    def __init__(
        self, verb: str, url: str, status_code: int, error_message: str | None = None
    ) -> None:
        message = f"REST action {verb} {url} returned HTTP error {status_code}"
        if error_message:
            message += f": {error_message}"
        super().__init__(message, verb, url)
        self.status_code = status_code
        self.error_message = error_message

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self.verb, self.url, self.status_code, self.error_message))


class RestPkiApiError(RestError):
    """The API rejected the request with a domain error code."""

    def __init__(self, verb: str, url: str, error_code: str, detail: str | None = None) -> None:
        message = f"REST PKI action {verb} {url} error: {error_code}"
        if detail:
            message += f" ({detail})"
        super().__init__(message, verb, url)
        self.error_code = error_code
        self.detail = detail

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self.verb, self.url, self.error_code, self.detail))


class ValidationError(RestError):
    """The API refused the operation because a validation failed.

    The message is the full text rendering of the validation results.
    """

    def __init__(self, verb: str, url: str, validation_results: ValidationResults) -> None:
        super().__init__(str(validation_results), verb, url)
        self.validation_results = validation_results

    def __reduce__(self) -> tuple[Any, ...]:
        return (type(self), (self.verb, self.url, self.validation_results))
