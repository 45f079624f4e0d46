"""Error kinds raised inside the navigation and preference subsystem.

None of these is fatal: each one is absorbed close to where it is raised and
replaced by a safe fallback (default value, root route, anonymous identity).
"""

from __future__ import annotations

from typing import Optional


class ProductReviewError(Exception):
    """Base class for client-side errors."""


class StorageFailure(ProductReviewError):
    """A preference store read or write failed."""

    def __init__(self, key: str, operation: str, cause: Optional[BaseException] = None):
        self.key = key
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Preference {operation} failed for '{key}'{detail}")


class RouteDecodeError(ProductReviewError):
    """A path or payload does not describe any known route."""

    def __init__(self, path: str, reason: str = "unrecognized route"):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot decode route '{path}': {reason}")


class IdentityUnavailable(ProductReviewError):
    """The user identifier could not be obtained within the allowed wait."""

    def __init__(self, timeout: Optional[float] = None, reason: str = "timed out"):
        self.timeout = timeout
        self.reason = reason
        suffix = f" after {timeout:.2f}s" if timeout is not None else ""
        super().__init__(f"User identity unavailable ({reason}){suffix}")
