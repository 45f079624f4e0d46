"""Tests for legacy path and typed payload route encoding."""

import pytest

from src.domain.errors import RouteDecodeError
from src.domain.route_codec import (
    PATH_TEMPLATES,
    decode_path,
    decode_path_or_root,
    encode_path,
    route_from_payload,
    route_to_payload,
)
from src.domain.routes import (
    ROOT_ROUTE,
    ROUTE_TYPES,
    AIAssistant,
    NotificationDetail,
    Notifications,
    ProductDetails,
    ProductList,
    Wishlist,
)


@pytest.mark.parametrize(
    "route,path",
    [
        (ProductList(), "product_list"),
        (ProductDetails(product_id="42"), "product_details/42"),
        (Notifications(), "notifications"),
        (NotificationDetail(notification_id="n-9"), "notification_detail/n-9"),
        (Wishlist(), "wishlist"),
        (AIAssistant(product_id="7", product_name="Desk Lamp"), "ai_assistant/7/Desk%20Lamp"),
    ],
)
def test_encode_path_templates(route, path):
    assert encode_path(route) == path
    assert decode_path(path) == route


def test_slash_in_product_name_is_percent_encoded():
    route = AIAssistant(product_id="7", product_name="A/B")

    path = encode_path(route)

    assert path == "ai_assistant/7/A%2FB"
    assert decode_path(path) == route


def test_percent_sign_in_parameter_survives_round_trip():
    route = AIAssistant(product_id="7", product_name="100% Cotton")

    assert decode_path(encode_path(route)) == route


def test_encode_path_drops_display_hints():
    route = ProductDetails(product_id="42", image_url="http://img/42.png", name="Mug")

    assert encode_path(route) == "product_details/42"
    assert decode_path("product_details/42") == ProductDetails(product_id="42")


def test_decode_tolerates_surrounding_slashes_and_whitespace():
    assert decode_path("  /wishlist/ ") == Wishlist()


@pytest.mark.parametrize(
    "path",
    [
        "",
        "   ",
        "unknown_screen",
        "product_details",
        "product_details/1/2",
        "ai_assistant/7",
        "notification_detail/",
        "product_list/extra",
    ],
)
def test_decode_rejects_unrecognized_paths(path):
    with pytest.raises(RouteDecodeError):
        decode_path(path)


def test_decode_path_or_root_falls_back_to_root():
    assert decode_path_or_root("no/such/route") == ROOT_ROUTE
    assert decode_path_or_root("notifications") == Notifications()


def test_encode_path_rejects_non_routes():
    with pytest.raises(TypeError):
        encode_path("product_list")


def test_payload_keeps_optional_fields():
    route = ProductDetails(product_id="42", image_url="http://img/42.png", name="Mug")

    payload = route_to_payload(route)

    assert payload == {
        "type": "product_details",
        "productId": "42",
        "imageUrl": "http://img/42.png",
        "name": "Mug",
    }
    assert route_from_payload(payload) == route


def test_payload_omits_absent_optional_fields():
    assert route_to_payload(ProductDetails(product_id="42")) == {
        "type": "product_details",
        "productId": "42",
    }


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "checkout"},
        {"type": "product_details"},
        {"type": "wishlist", "extra": True},
        "product_list",
        None,
    ],
)
def test_route_from_payload_rejects_invalid_payloads(payload):
    with pytest.raises(RouteDecodeError):
        route_from_payload(payload)


def test_every_route_type_has_a_path_template():
    kinds = {route_type.model_fields["type"].default for route_type in ROUTE_TYPES}

    assert set(PATH_TEMPLATES) == kinds


@pytest.mark.parametrize(
    "route",
    [
        ProductList(),
        ProductDetails(product_id="42"),
        Notifications(),
        NotificationDetail(notification_id="n-9"),
        Wishlist(),
        AIAssistant(product_id="7", product_name="Mug"),
    ],
)
def test_encode_path_follows_template(route):
    payload = route_to_payload(route)
    expected = PATH_TEMPLATES[route.type]
    for name, value in payload.items():
        expected = expected.replace("{" + name + "}", value)

    assert encode_path(route) == expected
