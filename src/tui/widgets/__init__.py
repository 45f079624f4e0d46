"""Shared Textual widgets."""

from .breadcrumb import Breadcrumb
from .status_bar import StatusBar

__all__ = ["Breadcrumb", "StatusBar"]
