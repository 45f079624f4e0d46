"""Centralized exception mapping for consistent API errors."""

from dataclasses import dataclass
from typing import Any, Optional

import httpx
from pydantic import ValidationError


@dataclass(frozen=True)
class ErrorMapping:
    """Normalized error payload shared by the client and the UI."""

    code: str
    message: str
    http_status: Optional[int] = None
    retryable: bool = False


class ApiError(Exception):
    """Raised by the API client; carries a canonical error code."""

    def __init__(self, mapping: ErrorMapping, cause: Optional[BaseException] = None):
        super().__init__(mapping.message)
        self.mapping = mapping
        self.cause = cause

    @property
    def code(self) -> str:
        return self.mapping.code

    @property
    def http_status(self) -> Optional[int]:
        return self.mapping.http_status

    @property
    def retryable(self) -> bool:
        return self.mapping.retryable


def _map_status(status: int, message: str) -> ErrorMapping:
    if status == 401:
        return ErrorMapping("unauthorized", message or "Unauthorized", status)
    if status == 403:
        return ErrorMapping("forbidden", message or "Forbidden", status)
    if status == 404:
        return ErrorMapping("not_found", message or "Resource not found", status)
    if status == 429:
        return ErrorMapping(
            "rate_limited",
            message or "Rate limited, please try again later",
            status,
            retryable=True,
        )
    if 400 <= status < 500:
        return ErrorMapping("client_error", f"{message} (HTTP {status})", status)
    if 500 <= status < 600:
        return ErrorMapping("server_error", f"{message} (HTTP {status})", status, retryable=True)
    return ErrorMapping("unknown", message or f"HTTP error {status}", status)


def _response_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.reason_phrase or ""
    if isinstance(payload, dict):
        for key in ("message", "error", "detail"):
            if payload.get(key):
                return str(payload[key])
    return response.reason_phrase or ""


def map_exception(error: Any) -> ErrorMapping:
    """Map raw transport/decoding exceptions into stable error semantics."""
    if isinstance(error, ApiError):
        return error.mapping

    if isinstance(error, httpx.HTTPStatusError):
        return _map_status(error.response.status_code, _response_message(error.response))

    if isinstance(error, httpx.TimeoutException):
        return ErrorMapping("timeout", "Request timed out", retryable=True)

    if isinstance(error, httpx.ConnectError):
        return ErrorMapping("network", "Connection failed", retryable=True)

    if isinstance(error, httpx.TransportError):
        return ErrorMapping("network", f"I/O error: {error}", retryable=True)

    if isinstance(error, (ValidationError, ValueError)):
        return ErrorMapping("decoding", f"Serialization error: {error}")

    message = str(error).strip() if error is not None else ""
    return ErrorMapping("unknown", message or "Unknown error")


def to_api_error(error: BaseException) -> ApiError:
    if isinstance(error, ApiError):
        return error
    return ApiError(map_exception(error), cause=error)
