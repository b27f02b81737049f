"""Failure taxonomy for the analysis API client.

Every failure point funnels through :func:`classify_response` or
:func:`classify_exception`, which return a structured :class:`ApiFailure`.
:func:`log_failure` is the single place that turns a failure into log
lines, so GET, POST and the endpoint helpers all report errors the same
way.

Usage::

    failure = classify_response(response.status_code, body, endpoint="/analysis/rackets")
    log_failure(failure, api_key=settings.api_key, api_secret=settings.api_secret)
    raise error_for(failure)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping

import httpx

LOGGER = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    MALFORMED_RESPONSE = "malformed_response"
    API = "api"


# ---------------------------------------------------------------------------
# Structured failure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ApiFailure:
    """What went wrong with one request.

    Parameters
    ----------
    kind:
        Failure category.
    status:
        HTTP status when the server answered, else None.
    message:
        Human-readable description.
    endpoint:
        Endpoint path the request targeted, when known.
    body:
        Decoded response body for non-2xx answers (for diagnostics only).
    """

    kind: ErrorKind
    status: int | None
    message: str
    endpoint: str = ""
    body: Any = None


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PadelApiError(Exception):
    kind: ErrorKind = ErrorKind.API

    def __init__(self, failure: ApiFailure) -> None:
        super().__init__(failure.message)
        self.failure = failure

    @property
    def status(self) -> int | None:
        return self.failure.status

    @classmethod
    def from_message(cls, message: str, *, status: int | None = None, endpoint: str = "") -> "PadelApiError":
        return cls(ApiFailure(kind=cls.kind, status=status, message=message, endpoint=endpoint))


class ConfigurationError(PadelApiError):
    kind = ErrorKind.CONFIGURATION


class TransportError(PadelApiError):
    kind = ErrorKind.TRANSPORT


class AuthError(PadelApiError):
    kind = ErrorKind.AUTH


class RateLimitError(PadelApiError):
    kind = ErrorKind.RATE_LIMIT


class MalformedResponseError(PadelApiError):
    kind = ErrorKind.MALFORMED_RESPONSE


class ApiStatusError(PadelApiError):
    kind = ErrorKind.API


_ERROR_TYPES: Dict[ErrorKind, type[PadelApiError]] = {
    ErrorKind.CONFIGURATION: ConfigurationError,
    ErrorKind.TRANSPORT: TransportError,
    ErrorKind.AUTH: AuthError,
    ErrorKind.RATE_LIMIT: RateLimitError,
    ErrorKind.MALFORMED_RESPONSE: MalformedResponseError,
    ErrorKind.API: ApiStatusError,
}


def error_for(failure: ApiFailure) -> PadelApiError:
    return _ERROR_TYPES[failure.kind](failure)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _body_message(body: Any) -> str:
    if isinstance(body, Mapping):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return "Unknown error"


def classify_response(status: int, body: Any = None, *, endpoint: str = "") -> ApiFailure:
    """Map a non-2xx HTTP answer to a failure."""
    if status == 401:
        return ApiFailure(
            kind=ErrorKind.AUTH,
            status=status,
            message="authentication failed: API key invalid or expired",
            endpoint=endpoint,
            body=body,
        )
    if status == 403:
        return ApiFailure(
            kind=ErrorKind.AUTH,
            status=status,
            message="access denied: HMAC signature invalid or expired",
            endpoint=endpoint,
            body=body,
        )
    if status == 429:
        return ApiFailure(
            kind=ErrorKind.RATE_LIMIT,
            status=status,
            message="too many requests: rate limit exceeded",
            endpoint=endpoint,
            body=body,
        )
    return ApiFailure(
        kind=ErrorKind.API,
        status=status,
        message=f"API error {status}: {_body_message(body)}",
        endpoint=endpoint,
        body=body,
    )


def classify_exception(exc: BaseException, *, endpoint: str = "") -> ApiFailure:
    """Map an exception raised while sending a request to a failure."""
    if isinstance(exc, PadelApiError):
        return exc.failure
    if isinstance(exc, httpx.TimeoutException):
        return ApiFailure(
            kind=ErrorKind.TRANSPORT,
            status=None,
            message=f"request timed out: {exc}",
            endpoint=endpoint,
        )
    if isinstance(exc, httpx.ConnectError):
        return ApiFailure(
            kind=ErrorKind.TRANSPORT,
            status=None,
            message=f"server not responding (connection refused): {exc}",
            endpoint=endpoint,
        )
    if isinstance(exc, httpx.RequestError):
        return ApiFailure(
            kind=ErrorKind.TRANSPORT,
            status=None,
            message=f"no response from server: {exc}",
            endpoint=endpoint,
        )
    return ApiFailure(
        kind=ErrorKind.TRANSPORT,
        status=None,
        message=f"request could not be sent: {exc}",
        endpoint=endpoint,
    )


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def describe_credentials(api_key: str, api_secret: str) -> str:
    """Key prefix and secret length; never the secret itself."""
    key_part = f"{api_key[:5]}..." if api_key else "(unset)"
    secret_part = f"yes (length: {len(api_secret)})" if api_secret else "no"
    return f"api_key={key_part} secret_configured={secret_part}"


def log_failure(
    failure: ApiFailure,
    *,
    api_key: str = "",
    api_secret: str = "",
    logger: logging.Logger | None = None,
) -> None:
    log = logger or LOGGER
    where = failure.endpoint or "(unknown endpoint)"

    if failure.kind is ErrorKind.AUTH:
        log.error("%s status=%s endpoint=%s", failure.message, failure.status, where)
        log.error("check API key and secret: %s", describe_credentials(api_key, api_secret))
    elif failure.kind is ErrorKind.RATE_LIMIT:
        log.error("%s endpoint=%s (no automatic backoff)", failure.message, where)
    elif failure.kind is ErrorKind.TRANSPORT:
        log.error("transport failure endpoint=%s: %s", where, failure.message)
    elif failure.kind is ErrorKind.MALFORMED_RESPONSE:
        log.error("malformed response endpoint=%s: %s", where, failure.message)
    elif failure.kind is ErrorKind.CONFIGURATION:
        log.warning("configuration problem: %s", failure.message)
    else:
        log.error("%s endpoint=%s", failure.message, where)
        log.error("full response body: %r", failure.body)
