"""Framework-independent navigation stack."""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

import structlog

from .errors import RouteDecodeError
from .route_codec import decode_path, encode_path, route_from_payload, route_to_payload
from .routes import ROOT_ROUTE, Route

logger = structlog.get_logger(__name__)

NavigationListener = Callable[[Route], None]


class NavigationStack:
    """Ordered route history whose first entry is always the root route.

    The stack has a single writer: the thread that created it (the UI thread).
    Observers derive the visible screen from ``current`` only.
    """

    def __init__(self, root: Route = ROOT_ROUTE) -> None:
        self._root = root
        self._entries: List[Route] = [root]
        self._listeners: List[NavigationListener] = []
        self._owner = threading.get_ident()

    @property
    def root(self) -> Route:
        return self._root

    @property
    def entries(self) -> Tuple[Route, ...]:
        return tuple(self._entries)

    @property
    def current(self) -> Route:
        return self._entries[-1]

    @property
    def depth(self) -> int:
        return len(self._entries)

    @property
    def can_pop(self) -> bool:
        return len(self._entries) > 1

    def push(self, route: Route) -> None:
        """Append a route. The same route pushed twice yields two entries."""
        self._check_writer()
        self._entries.append(route)
        logger.debug("navigation_push", route=route.type, depth=len(self._entries))
        self._notify()

    def pop(self) -> Optional[Route]:
        """Remove the top entry; the root is never popped."""
        self._check_writer()
        if len(self._entries) <= 1:
            return None
        removed = self._entries.pop()
        logger.debug("navigation_pop", route=removed.type, depth=len(self._entries))
        self._notify()
        return removed

    def reset_to_root(self) -> None:
        self._check_writer()
        self._entries = [self._root]
        logger.debug("navigation_reset")
        self._notify()

    def navigate_to_path(self, path: str) -> Route:
        """Follow a deep link; unknown paths land on the root route."""
        try:
            route = decode_path(path)
        except RouteDecodeError as exc:
            logger.warning("route_decode_failed", path=exc.path, reason=exc.reason)
            self.reset_to_root()
            return self._root
        if route == self._root:
            self.reset_to_root()
        else:
            self.push(route)
        return route

    def path_history(self) -> List[str]:
        return [encode_path(route) for route in self._entries]

    def subscribe(self, listener: NavigationListener) -> Callable[[], None]:
        """Register a listener called with the current route after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def to_payload(self) -> Dict[str, Any]:
        return {"entries": [route_to_payload(route) for route in self._entries]}

    @classmethod
    def from_payload(cls, payload: Any, root: Route = ROOT_ROUTE) -> "NavigationStack":
        """Restore a saved stack; anything invalid yields a root-only stack."""
        stack = cls(root)
        raw_entries = payload.get("entries") if isinstance(payload, dict) else None
        if not isinstance(raw_entries, list) or not raw_entries:
            return stack
        try:
            routes = [route_from_payload(entry) for entry in raw_entries]
        except RouteDecodeError as exc:
            logger.warning("navigation_restore_failed", path=exc.path, reason=exc.reason)
            return stack
        if routes[0] != root:
            logger.warning("navigation_restore_failed", reason="root mismatch")
            return stack
        stack._entries = routes
        return stack

    def _check_writer(self) -> None:
        if threading.get_ident() != self._owner:
            raise RuntimeError("NavigationStack may only be mutated from its owner thread")

    def _notify(self) -> None:
        current = self._entries[-1]
        for listener in list(self._listeners):
            listener(current)
