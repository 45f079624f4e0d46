"""Domain-level routes, navigation, theme and data models."""

from .errors import IdentityUnavailable, ProductReviewError, RouteDecodeError, StorageFailure
from .navigation import NavigationStack
from .route_codec import (
    PATH_TEMPLATES,
    decode_path,
    decode_path_or_root,
    encode_path,
    route_from_payload,
    route_to_payload,
)
from .routes import (
    ROOT_ROUTE,
    AIAssistant,
    NotificationDetail,
    Notifications,
    ProductDetails,
    ProductList,
    Route,
    Wishlist,
)
from .theme import ThemeMode, resolve_is_dark, toggled_mode

__all__ = [
    "ProductReviewError",
    "StorageFailure",
    "RouteDecodeError",
    "IdentityUnavailable",
    "NavigationStack",
    "PATH_TEMPLATES",
    "encode_path",
    "decode_path",
    "decode_path_or_root",
    "route_to_payload",
    "route_from_payload",
    "Route",
    "ROOT_ROUTE",
    "ProductList",
    "ProductDetails",
    "Notifications",
    "NotificationDetail",
    "Wishlist",
    "AIAssistant",
    "ThemeMode",
    "resolve_is_dark",
    "toggled_mode",
]
