"""Failure taxonomy for repository synchronization.

Every failure that leaves the sync engine is one of four variants:

- ``NotFound``: the path or file is absent.
- ``InvalidArgument``: empty batch, duplicate path, missing required field.
- ``ConcurrencyConflict``: stale concurrency token, or the branch head moved
  between reading it and moving it.
- ``StoreUnavailable``: network, authentication, or unexpected store response.

Each variant carries a ``kind`` tag and the transport ``status`` that
request handlers report for it (404, 400, everything else 500). An
optional ``domain`` (``"content"`` or ``"draft"``) names what the failure
was about when that differs from the tool that raised it.
"""

from __future__ import annotations

import requests


class SyncError(Exception):
    """Base class for all sync engine failures."""

    kind = "server_error"
    status = 500

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        domain: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.path = path
        self.domain = domain

    def to_dict(self) -> dict:
        """Structured form used by request handlers."""
        data = {
            "error": self.kind,
            "status": self.status,
            "detail": self.message,
        }
        if self.path is not None:
            data["path"] = self.path
        return data


class NotFound(SyncError):
    kind = "not_found"
    status = 404


class InvalidArgument(SyncError):
    kind = "invalid_argument"
    status = 400


class ConcurrencyConflict(SyncError):
    kind = "concurrency_conflict"
    status = 500


class StoreUnavailable(SyncError):
    kind = "store_unavailable"
    status = 500


def _response_message(response: requests.Response | None) -> str:
    """Best-effort extraction of the store's error message."""
    if response is None:
        return ""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] if response.text else ""
    if isinstance(body, dict):
        return str(body.get("message", ""))
    return ""


def classify_http_error(
    exc: Exception,
    *,
    path: str | None = None,
    conflict_statuses: frozenset[int] = frozenset(),
) -> SyncError:
    """Map a transport exception raised by the store client to a ``SyncError``.

    Args:
        exc: Exception raised by ``requests`` (or a ``SyncError`` already).
        path: Repository path the failing call concerned, if any.
        conflict_statuses: HTTP statuses that mean "someone else wrote first"
            for the step that failed (409/422 for content writes and
            branch pointer moves).

    Returns:
        The classified error. The original exception is kept as ``__cause__``
        by callers that ``raise ... from exc``.
    """
    if isinstance(exc, SyncError):
        return exc

    if isinstance(exc, requests.HTTPError):
        response = exc.response
        status = response.status_code if response is not None else 0
        detail = _response_message(response)

        match status:
            case 401 | 403:
                return StoreUnavailable(
                    f"Store rejected credentials ({status}): {detail or 'authentication failed'}",
                    path=path,
                )
            case 404:
                return NotFound(
                    f"Not found: {path}" if path else "Not found",
                    path=path,
                )
            case s if s in conflict_statuses:
                return ConcurrencyConflict(
                    f"Concurrent modification detected ({status}): {detail or 'stale version'}",
                    path=path,
                )
            case _:
                return StoreUnavailable(
                    f"Unexpected store response ({status}): {detail or 'no detail'}",
                    path=path,
                )

    if isinstance(exc, requests.RequestException):
        return StoreUnavailable(f"Store unreachable: {exc}", path=path)

    return StoreUnavailable(f"Unexpected store failure: {exc}", path=path)
