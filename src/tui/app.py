"""Textual host for the navigation stack and theme engine."""

from __future__ import annotations

from typing import Callable, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Footer, Header, Label, Static

from ..config.settings import settings
from ..domain.navigation import NavigationStack
from ..domain.route_codec import encode_path
from ..domain.routes import Notifications, Route, Wishlist
from ..services.theme_service import SystemThemeSignal, ThemeController
from ..services.user_preferences import UserPreferences
from .contracts import attach_host
from .logging import bind_session, configure_logging, log_tui_event
from .navigation import screen_for, screen_title
from .widgets import Breadcrumb, StatusBar

DARK_THEME = "textual-dark"
LIGHT_THEME = "textual-light"


class ProductReviewApp(App):
    """Product Review terminal client."""

    TITLE = "Product Review"
    CSS = """
    #screen-body {
        padding: 1 2;
    }
    #screen-title {
        text-style: bold;
        margin: 1 0;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("b", "back", "Back"),
        Binding("h", "home", "Home"),
        Binding("n", "show_notifications", "Notifications"),
        Binding("w", "show_wishlist", "Wishlist"),
        Binding("t", "toggle_theme", "Theme"),
    ]

    def __init__(
        self,
        preferences: Optional[UserPreferences] = None,
        *,
        deep_link: Optional[str] = None,
        system_dark: bool = False,
    ) -> None:
        super().__init__()
        configure_logging()
        self.preferences = preferences or UserPreferences.from_settings()
        self.navigation = NavigationStack()
        self.system_theme = SystemThemeSignal(system_dark)
        self.theme_controller = ThemeController(self.preferences, self.system_theme)
        self._deep_link = deep_link
        self._detach: Optional[Callable[[], None]] = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="screen-body"):
            yield Breadcrumb(id="breadcrumb")
            yield Label("", id="screen-title")
            yield Static("", id="screen-help")
            yield StatusBar(id="status-bar")
        yield Footer()

    async def on_mount(self) -> None:
        await self.preferences.start()
        bind_session(user_id=self.preferences.cached_user_id, environment=settings.environment)
        self.theme_controller.start()
        self._detach = attach_host(self, self.navigation, self.theme_controller)
        if self._deep_link:
            self.navigation.navigate_to_path(self._deep_link)
        self.show_route(self.navigation.current)

    async def on_unmount(self) -> None:
        if self._detach is not None:
            self._detach()
        self.theme_controller.stop()
        await self.preferences.close()

    def show_route(self, route: Route) -> None:
        self.query_one("#breadcrumb", Breadcrumb).set_labels(
            screen_for(entry).label for entry in self.navigation.entries
        )
        title = screen_title(route)
        self.sub_title = title
        self.query_one("#screen-title", Label).update(title)
        self.query_one("#screen-help", Static).update(screen_for(route).description)
        self._refresh_status()
        log_tui_event("route_shown", path=encode_path(route), depth=self.navigation.depth)

    def apply_theme(self, is_dark: bool) -> None:
        self.theme = DARK_THEME if is_dark else LIGHT_THEME
        self._refresh_status()
        log_tui_event("theme_applied", dark=is_dark, mode=self.theme_controller.mode.value)

    def action_back(self) -> None:
        self.navigation.pop()

    def action_home(self) -> None:
        self.navigation.reset_to_root()

    def action_show_notifications(self) -> None:
        self.navigation.push(Notifications())

    def action_show_wishlist(self) -> None:
        self.navigation.push(Wishlist())

    async def action_toggle_theme(self) -> None:
        mode = await self.theme_controller.toggle()
        self._refresh_status()
        self.notify(f"Theme: {mode.value}")

    def _refresh_status(self) -> None:
        status_bar = self.query_one("#status-bar", StatusBar)
        status_bar.set_states(
            identity="ok" if self.preferences.cached_user_id else "warn",
            theme=self.theme_controller.mode.value.capitalize(),
        )
