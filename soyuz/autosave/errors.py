from __future__ import annotations

import httpx


class PersistenceError(Exception):
    """A save or lookup against the assessment service failed."""

    retryable: bool = False
    #: whether the payload is worth keeping in the local backup
    back_up: bool = False

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class TransientError(PersistenceError):
    """Connection failure, timeout, 408, 429 or 5xx; worth retrying."""

    retryable = True
    back_up = True


class PayloadValidationError(PersistenceError):
    """The service rejected the payload (400, 404, 409, 422)."""


class AuthenticationError(PersistenceError):
    """The token was missing, invalid or not allowed (401, 403)."""


RetryableStatus = frozenset({408, 429})
ValidationStatus = frozenset({400, 404, 409, 422})
AuthenticationStatus = frozenset({401, 403})


def from_response(response: httpx.Response) -> PersistenceError:
    status = response.status_code
    message = f"HTTP {status}: {_detail(response)}"
    if status in AuthenticationStatus:
        return AuthenticationError(message, status)
    if status in ValidationStatus:
        return PayloadValidationError(message, status)
    if status in RetryableStatus or status >= 500:
        return TransientError(message, status)
    return PayloadValidationError(message, status)


def from_transport(exc: httpx.TransportError) -> TransientError:
    return TransientError(f"{type(exc).__name__}: {exc}")


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase or "unknown error"
    if isinstance(body, dict) and "detail" in body:
        detail = body["detail"]
        return detail if isinstance(detail, str) else str(detail)
    return response.reason_phrase or "unknown error"
