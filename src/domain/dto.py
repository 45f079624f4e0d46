"""Wire DTOs and their mapping into fully-populated domain values.

Every default applied to an absent field is spelled out in the mapping
functions below.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

ANONYMOUS_REVIEWER = "Anonymous"


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )


class ProductDTO(_WireModel):
    id: str
    name: str
    description: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    price: float = 0.0
    image_url: Optional[str] = None
    average_rating: Optional[float] = None
    review_count: Optional[int] = None
    rating_breakdown: Optional[Dict[str, int]] = None
    ai_summary: Optional[str] = None


class ReviewDTO(_WireModel):
    id: Optional[str] = None
    product_id: Optional[str] = None
    reviewer_name: Optional[str] = None
    rating: int
    comment: str
    created_at: Optional[str] = None
    helpful_count: Optional[int] = None


class NotificationDTO(_WireModel):
    id: str
    title: str
    message: str
    is_read: bool = Field(default=False, alias="read")
    created_at: str
    product_id: Optional[str] = None


class PageResponse(_WireModel):
    content: List[Any] = Field(default_factory=list)
    number: int = 0
    size: int = 0
    total_pages: int = 0
    total_elements: int = 0
    last: bool = True


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    description: str
    categories: Tuple[str, ...]
    price: float
    image_url: Optional[str]
    average_rating: float
    review_count: int
    rating_breakdown: Optional[Dict[int, int]]
    ai_summary: Optional[str]


@dataclass(frozen=True)
class Review:
    id: str
    product_id: str
    user_name: str
    rating: int
    comment: str
    created_at: str
    helpful_count: int


@dataclass(frozen=True)
class Notification:
    id: str
    title: str
    message: str
    is_read: bool
    created_at: Optional[datetime]
    product_id: Optional[str] = None


@dataclass(frozen=True)
class Page(Generic[T]):
    content: List[T] = field(default_factory=list)
    current_page: int = 0
    total_pages: int = 0
    total_elements: int = 0
    is_last: bool = True

    @property
    def next_page(self) -> Optional[int]:
        return None if self.is_last else self.current_page + 1

    @property
    def is_empty(self) -> bool:
        return not self.content


def _rating_breakdown(raw: Optional[Dict[str, int]]) -> Optional[Dict[int, int]]:
    if raw is None:
        return None
    breakdown: Dict[int, int] = {}
    for key, count in raw.items():
        try:
            breakdown[int(key)] = int(count)
        except (TypeError, ValueError):
            continue
    return breakdown


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp with or without fractional seconds."""
    if not raw:
        return None
    value = raw.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def product_from_dto(dto: ProductDTO) -> Product:
    return Product(
        id=dto.id,
        name=dto.name,
        description=dto.description or "",
        categories=tuple(dto.categories),
        price=dto.price,
        image_url=dto.image_url,
        average_rating=dto.average_rating if dto.average_rating is not None else 0.0,
        review_count=dto.review_count if dto.review_count is not None else 0,
        rating_breakdown=_rating_breakdown(dto.rating_breakdown),
        ai_summary=dto.ai_summary,
    )


def review_from_dto(
    dto: ReviewDTO,
    product_id: Optional[str] = None,
    *,
    clock: Callable[[], float] = time.time,
) -> Review:
    """Map a review; a missing id is derived from the current time in ms."""
    review_id = dto.id if dto.id is not None else str(int(clock() * 1000))
    return Review(
        id=review_id,
        product_id=product_id or dto.product_id or "",
        user_name=dto.reviewer_name or ANONYMOUS_REVIEWER,
        rating=dto.rating,
        comment=dto.comment,
        created_at=dto.created_at or "",
        helpful_count=dto.helpful_count if dto.helpful_count is not None else 0,
    )


def notification_from_dto(dto: NotificationDTO) -> Notification:
    return Notification(
        id=dto.id,
        title=dto.title,
        message=dto.message,
        is_read=dto.is_read,
        created_at=parse_timestamp(dto.created_at),
        product_id=dto.product_id,
    )


def page_from_response(response: PageResponse, mapper: Callable[[Any], T]) -> Page[T]:
    """Map a page envelope, converting each raw item with ``mapper``."""
    return Page(
        content=[mapper(item) for item in response.content],
        current_page=response.number,
        total_pages=response.total_pages,
        total_elements=response.total_elements,
        is_last=response.last,
    )
