"""Route codecs: legacy path strings and typed payloads.

Two deliberately distinct formats are supported:

* the legacy path form (``product_details/42``) used by deep links; it only
  carries the identifying parameters of a route, so the optional display
  hints of ``ProductDetails`` are dropped on encode;
* the typed payload form (``{"type": "product_details", "productId": "42"}``),
  which is lossless and is what saved navigation state uses.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple
from urllib.parse import quote, unquote

import structlog
from pydantic import ValidationError

from .errors import RouteDecodeError
from .routes import ROOT_ROUTE, ROUTE_ADAPTER, ROUTE_TYPES, Route

logger = structlog.get_logger(__name__)

# Placeholders name the route's serialized (camelCase) fields.
PATH_TEMPLATES: Dict[str, str] = {
    "product_list": "product_list",
    "product_details": "product_details/{productId}",
    "notifications": "notifications",
    "notification_detail": "notification_detail/{notificationId}",
    "wishlist": "wishlist",
    "ai_assistant": "ai_assistant/{productId}/{productName}",
}


def _template_params(template: str) -> List[str]:
    _head, *placeholders = template.split("/")
    return [placeholder.strip("{}") for placeholder in placeholders]


_PATH_PARAMS: Dict[str, List[str]] = {
    kind: _template_params(template) for kind, template in PATH_TEMPLATES.items()
}


def _segment(value: str) -> str:
    # '/' must never survive inside a single path segment
    return quote(value, safe="")


def encode_path(route: Route) -> str:
    """Encode a route into its legacy path string."""
    if not isinstance(route, ROUTE_TYPES):
        raise TypeError(f"Not a route: {route!r}")
    fields = route_to_payload(route)
    segments: Tuple[str, ...] = (route.type,) + tuple(
        _segment(str(fields[name])) for name in _PATH_PARAMS[route.type]
    )
    return "/".join(segments)


def decode_path(path: str) -> Route:
    """Decode a legacy path string; raises RouteDecodeError when unrecognized."""
    raw = (path or "").strip()
    cleaned = raw.strip("/")
    if not cleaned:
        raise RouteDecodeError(raw, "empty path")

    head, *params = cleaned.split("/")
    names = _PATH_PARAMS.get(head)
    if names is None:
        raise RouteDecodeError(raw)

    if len(params) != len(names):
        raise RouteDecodeError(raw, f"expected {len(names)} parameter(s), got {len(params)}")

    values: List[str] = [unquote(param) for param in params]
    if any(not value for value in values):
        raise RouteDecodeError(raw, "empty parameter")
    try:
        return ROUTE_ADAPTER.validate_python({"type": head, **dict(zip(names, values))})
    except ValidationError as exc:
        raise RouteDecodeError(raw, "invalid parameters") from exc


def decode_path_or_root(path: str) -> Route:
    """Decode a deep link, falling back to the root route."""
    try:
        return decode_path(path)
    except RouteDecodeError as exc:
        logger.warning("route_decode_failed", path=exc.path, reason=exc.reason)
        return ROOT_ROUTE


def route_to_payload(route: Route) -> Dict[str, Any]:
    return route.model_dump(mode="json", by_alias=True, exclude_none=True)


def route_from_payload(payload: Any) -> Route:
    """Rebuild a route from its typed payload form."""
    try:
        return ROUTE_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        kind = payload.get("type") if isinstance(payload, dict) else payload
        raise RouteDecodeError(str(kind), "invalid payload") from exc
