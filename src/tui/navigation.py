"""Screen registry for the route types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from ..domain.routes import AIAssistant, NotificationDetail, ProductDetails, Route


@dataclass(frozen=True)
class ScreenInfo:
    """Display metadata for one route type."""

    key: str
    label: str
    description: str


SCREENS: Tuple[ScreenInfo, ...] = (
    ScreenInfo("product_list", "Products", "Browse and search the product catalogue."),
    ScreenInfo("product_details", "Product", "Product details, ratings and reviews."),
    ScreenInfo("notifications", "Notifications", "Review, order and system notifications."),
    ScreenInfo("notification_detail", "Notification", "A single notification."),
    ScreenInfo("wishlist", "Wishlist", "Products saved for later."),
    ScreenInfo("ai_assistant", "AI Assistant", "Ask questions about a product."),
)

SCREEN_MAP: Dict[str, ScreenInfo] = {screen.key: screen for screen in SCREENS}


def screen_for(route: Route) -> ScreenInfo:
    return SCREEN_MAP[route.type]


def screen_title(route: Route) -> str:
    label = screen_for(route).label
    if isinstance(route, ProductDetails):
        return f"{label}: {route.name or route.product_id}"
    if isinstance(route, AIAssistant):
        return f"{label}: {route.product_name}"
    if isinstance(route, NotificationDetail):
        return f"{label} #{route.notification_id}"
    return label
