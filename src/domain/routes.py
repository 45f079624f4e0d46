"""Closed set of typed navigation routes."""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class _RouteBase(BaseModel):
    """Immutable route with camelCase serialized field names."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ProductList(_RouteBase):
    type: Literal["product_list"] = "product_list"


class ProductDetails(_RouteBase):
    type: Literal["product_details"] = "product_details"
    product_id: str = Field(min_length=1)
    image_url: Optional[str] = None
    name: Optional[str] = None


class Notifications(_RouteBase):
    type: Literal["notifications"] = "notifications"


class NotificationDetail(_RouteBase):
    type: Literal["notification_detail"] = "notification_detail"
    notification_id: str = Field(min_length=1)


class Wishlist(_RouteBase):
    type: Literal["wishlist"] = "wishlist"


class AIAssistant(_RouteBase):
    type: Literal["ai_assistant"] = "ai_assistant"
    product_id: str = Field(min_length=1)
    product_name: str = Field(min_length=1)


Route = Annotated[
    Union[
        ProductList,
        ProductDetails,
        Notifications,
        NotificationDetail,
        Wishlist,
        AIAssistant,
    ],
    Field(discriminator="type"),
]

ROUTE_TYPES: Tuple[Type[_RouteBase], ...] = (
    ProductList,
    ProductDetails,
    Notifications,
    NotificationDetail,
    Wishlist,
    AIAssistant,
)

ROUTE_ADAPTER: TypeAdapter = TypeAdapter(Route)

# The stack always starts here.
ROOT_ROUTE = ProductList()
