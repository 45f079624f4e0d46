"""Async client for the product review backend."""

from typing import Any, Dict, List, Optional

import httpx
import structlog

from ..config.settings import settings
from ..domain.dto import (
    Notification,
    NotificationDTO,
    Page,
    PageResponse,
    Product,
    ProductDTO,
    Review,
    ReviewDTO,
    notification_from_dto,
    page_from_response,
    product_from_dto,
    review_from_dto,
)
from .error_mapper import to_api_error
from .identity_injector import UserIdInjector
from .retry import RetryPolicy, retry_on_failure

logger = structlog.get_logger(__name__)


def _without_none(params: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in params.items() if value is not None}


class ProductReviewClient:
    """REST client; every request carries ``X-User-ID`` via the injector."""

    def __init__(
        self,
        injector: UserIdInjector,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_policy: Optional[RetryPolicy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        network = settings.network
        self.injector = injector
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=network.max_retries,
            base_delay=network.retry_base_delay,
            max_delay=network.retry_max_delay,
        )
        self.client = httpx.AsyncClient(
            base_url=base_url or network.base_url,
            timeout=timeout or network.timeout_seconds,
            event_hooks={"request": [injector]},
            transport=transport,
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            error = to_api_error(e)
            logger.warning(
                "api_error",
                method=method,
                url=url,
                error_code=error.code,
                retryable=error.retryable,
            )
            raise error from e
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise to_api_error(e) from e

    @retry_on_failure()
    async def get_products(
        self,
        page: int = 0,
        size: int = 10,
        sort: str = "name,asc",
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Page[Product]:
        data = await self._request(
            "GET",
            "api/products",
            params=_without_none(
                {"page": page, "size": size, "sort": sort, "category": category, "search": search}
            ),
        )
        envelope = PageResponse.model_validate(data or {})
        return page_from_response(
            envelope, lambda item: product_from_dto(ProductDTO.model_validate(item))
        )

    @retry_on_failure()
    async def get_product(self, product_id: str) -> Product:
        data = await self._request("GET", f"api/products/{product_id}")
        return product_from_dto(ProductDTO.model_validate(data))

    @retry_on_failure()
    async def get_reviews(
        self,
        product_id: str,
        page: int = 0,
        size: int = 10,
        sort: str = "createdAt,desc",
        rating: Optional[int] = None,
    ) -> Page[Review]:
        data = await self._request(
            "GET",
            f"api/products/{product_id}/reviews",
            params=_without_none({"page": page, "size": size, "sort": sort, "rating": rating}),
        )
        envelope = PageResponse.model_validate(data or {})
        return page_from_response(
            envelope,
            lambda item: review_from_dto(ReviewDTO.model_validate(item), product_id),
        )

    async def post_review(
        self,
        product_id: str,
        *,
        rating: int,
        comment: str,
        reviewer_name: Optional[str] = None,
    ) -> Review:
        data = await self._request(
            "POST",
            f"api/products/{product_id}/reviews",
            json={"reviewerName": reviewer_name, "rating": rating, "comment": comment},
        )
        return review_from_dto(ReviewDTO.model_validate(data), product_id)

    async def mark_review_helpful(self, review_id: str) -> Review:
        data = await self._request("PUT", f"api/products/reviews/{review_id}/helpful")
        return review_from_dto(ReviewDTO.model_validate(data))

    async def chat(self, product_id: str, question: str) -> str:
        data = await self._request(
            "POST", f"api/products/{product_id}/chat", json={"question": question}
        )
        return str((data or {}).get("answer", ""))

    @retry_on_failure()
    async def get_wishlist(self) -> List[str]:
        data = await self._request("GET", "api/user/wishlist")
        return [str(product_id) for product_id in data or []]

    async def toggle_wishlist(self, product_id: str) -> None:
        await self._request("POST", f"api/user/wishlist/{product_id}")

    @retry_on_failure()
    async def get_notifications(self) -> List[Notification]:
        data = await self._request("GET", "api/user/notifications")
        return [notification_from_dto(NotificationDTO.model_validate(item)) for item in data or []]

    @retry_on_failure()
    async def get_unread_count(self) -> int:
        data = await self._request("GET", "api/user/notifications/unread-count")
        return int((data or {}).get("count", 0))

    async def mark_notification_read(self, notification_id: str) -> None:
        await self._request("PUT", f"api/user/notifications/{notification_id}/read")

    async def mark_all_notifications_read(self) -> None:
        await self._request("PUT", "api/user/notifications/read-all")

    async def delete_notification(self, notification_id: str) -> None:
        await self._request("DELETE", f"api/user/notifications/{notification_id}")

    async def aclose(self) -> None:
        await self.client.aclose()
