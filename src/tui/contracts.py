"""Presentation-layer contract for the navigation and theme core."""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from ..domain.navigation import NavigationStack
from ..domain.routes import Route
from ..services.theme_service import ThemeController


@runtime_checkable
class NavigationHost(Protocol):
    """What a presentation layer implements to render core state."""

    def show_route(self, route: Route) -> None: ...

    def apply_theme(self, is_dark: bool) -> None: ...


def attach_host(
    host: NavigationHost,
    navigation: NavigationStack,
    theme: ThemeController,
) -> Callable[[], None]:
    """Drive ``host`` from navigation and theme changes; returns a detach callable.

    The host receives the resolved theme immediately; routes arrive on the
    next navigation change.
    """
    unsubscribe_navigation = navigation.subscribe(host.show_route)
    theme_subscription = theme.is_dark.subscribe(host.apply_theme)

    def detach() -> None:
        unsubscribe_navigation()
        theme_subscription.close()

    return detach
