"""Status bar widget for identity and theme state."""

from __future__ import annotations

from textual.reactive import reactive
from textual.widgets import Static

IDENTITY_STATES = {
    "ok": ("green", "Identity"),
    "warn": ("yellow", "Identity pending"),
}


def _badge(label: str, color: str) -> str:
    return f"[{color}]●[/{color}] {label}"


class StatusBar(Static):
    """Identity and theme badges for the current session."""

    identity_state = reactive("unknown")
    theme_label = reactive("System")

    def set_states(self, *, identity: str, theme: str) -> None:
        self.identity_state = identity
        self.theme_label = theme

    def render_badges(self) -> str:
        color, label = IDENTITY_STATES.get(self.identity_state, ("grey66", "Identity unknown"))
        return "   ".join([_badge(label, color), _badge(f"Theme: {self.theme_label}", "cyan")])

    def on_mount(self) -> None:
        self.update(self.render_badges())

    def watch_identity_state(self) -> None:
        self.update(self.render_badges())

    def watch_theme_label(self) -> None:
        self.update(self.render_badges())
