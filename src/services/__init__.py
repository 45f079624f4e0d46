"""Services package for the Product Review client."""

from .api_client import ProductReviewClient
from .error_mapper import ApiError, ErrorMapping, map_exception
from .identity_injector import ANONYMOUS_USER_ID, USER_ID_HEADER, UserIdInjector
from .preference_flow import LiveValue, PreferenceFlow, Subscription
from .preference_store import JsonFilePreferenceStore, MemoryPreferenceStore
from .retry import RetryPolicy, retry_on_failure
from .theme_service import SystemThemeSignal, ThemeController
from .user_preferences import UserPreferences

__all__ = [
    "ProductReviewClient",
    "ApiError",
    "ErrorMapping",
    "map_exception",
    "ANONYMOUS_USER_ID",
    "USER_ID_HEADER",
    "UserIdInjector",
    "LiveValue",
    "PreferenceFlow",
    "Subscription",
    "JsonFilePreferenceStore",
    "MemoryPreferenceStore",
    "RetryPolicy",
    "retry_on_failure",
    "SystemThemeSignal",
    "ThemeController",
    "UserPreferences",
]
