"""Breadcrumb widget showing the navigation stack."""

from __future__ import annotations

from typing import Iterable, Tuple

from textual.reactive import reactive
from textual.widgets import Static

SEPARATOR = " › "


class Breadcrumb(Static):
    """Stack labels, root first, with the current screen in bold."""

    labels: reactive[Tuple[str, ...]] = reactive(("Products",))

    def set_labels(self, labels: Iterable[str]) -> None:
        self.labels = tuple(labels) or ("Products",)

    def render_trail(self) -> str:
        *parents, current = self.labels
        trail = [f"[dim]{label}[/dim]" for label in parents]
        trail.append(f"[b]{current}[/b]")
        return SEPARATOR.join(trail)

    def watch_labels(self) -> None:
        self.update(self.render_trail())

    def on_mount(self) -> None:
        self.update(self.render_trail())
