"""Default field mappings: raw platform event -> action payload.

Each function here is the explicit form of an action's field defaults. The
calling code (HTTP route or Kafka consumer) runs it, then hands the result
to the action. Actions themselves only ever see resolved payloads.

Raw events follow the usual track-call shape:

    {
      "type": "track",
      "event": "Order Completed",
      "userId": "...", "anonymousId": "...",
      "timestamp": "2024-05-01T10:00:00Z",
      "properties": {...},
      "context": {"traits": {...}}
    }
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from .algolia_insights import (
    AlgoliaConversionEvent,
    AlgoliaEvent,
    AlgoliaFilterClickedEvent,
    AlgoliaProductClickedEvent,
    AlgoliaProductViewedEvent,
)
from .errors import PayloadValidationError
from .iterable_models import TrackPurchasePayload
from .iterable_utils import to_unix_seconds


def _get(obj: Any, *path: str) -> Any:
    """Follow `path` through nested mappings; None when any step is missing."""
    for key in path:
        if not isinstance(obj, Mapping):
            return None
        obj = obj.get(key)
    return obj


def _str_or_none(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _drop_none(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def _properties(event: Mapping[str, Any]) -> Mapping[str, Any]:
    properties = event.get("properties")
    if properties is None:
        return {}
    if not isinstance(properties, Mapping):
        raise PayloadValidationError("properties must be an object.")
    return properties


def _object_list(properties: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    """`properties[key]` as a list of objects; missing means empty."""
    values = properties.get(key)
    if values is None:
        return []
    if not isinstance(values, list) or not all(isinstance(v, Mapping) for v in values):
        raise PayloadValidationError(f"properties.{key} must be a list of objects.")
    return values


def matches_track_purchase(event: Mapping[str, Any]) -> bool:
    """Default subscription: type = "track" and event == "Order Completed"."""
    return event.get("type") == "track" and event.get("event") == "Order Completed"


def _commerce_item(product: Mapping[str, Any]) -> dict[str, Any]:
    return _drop_none(
        {
            "id": _str_or_none(product.get("product_id")),
            "sku": product.get("sku"),
            "name": product.get("name"),
            "description": product.get("description"),
            "categories": product.get("category"),
            "price": product.get("price"),
            "quantity": product.get("quantity"),
            "imageUrl": product.get("image_url"),
            "url": product.get("url"),
        }
    )


def resolve_track_purchase_payload(event: Mapping[str, Any]) -> TrackPurchasePayload:
    """Build a TrackPurchasePayload from an "Order Completed" event.

    Raises:
        PayloadValidationError when `properties` or `properties.products`
        is not the expected structure.
        pydantic.ValidationError when required values (total, product ids)
        are missing or have the wrong type.
    """
    properties = _properties(event)
    products = _object_list(properties, "products")
    traits = _get(event, "context", "traits")

    email = properties.get("email")
    if email is None:
        email = _get(traits, "email")

    user = _drop_none(
        {
            "email": email,
            "userId": event.get("userId"),
            "dataFields": traits,
            "phoneNumber": _get(traits, "phone"),
            "mergeNestedObjects": False,
        }
    )

    return TrackPurchasePayload.model_validate(
        _drop_none(
            {
                "id": properties.get("order_id"),
                "user": user,
                "dataFields": properties,
                "items": [_commerce_item(product) for product in products],
                "total": properties.get("total"),
                "createdAt": event.get("timestamp"),
                "campaignId": properties.get("campaignId"),
                "templateId": properties.get("templateId"),
            }
        )
    )


# --- Algolia -----------------------------------------------------------------

ALGOLIA_EVENT_KINDS = ("view", "click", "conversion", "filter")


def _algolia_common(event: Mapping[str, Any], properties: Mapping[str, Any]) -> dict[str, Any]:
    timestamp = event.get("timestamp")
    return _drop_none(
        {
            "eventName": event.get("event"),
            "index": properties.get("search_index"),
            "userToken": event.get("userId") or event.get("anonymousId"),
            "queryID": properties.get("query_id"),
            # Insights wants milliseconds
            "timestamp": to_unix_seconds(timestamp) * 1000 if timestamp is not None else None,
        }
    )


def _clicked_products(properties: Mapping[str, Any]) -> tuple[list[str], Optional[list[Any]]]:
    """Object ids and their positions for a click.

    A single `product_id` pairs with `position`. For a `products` list each
    product carries its own `position`; positions are sent only when every
    clicked product has one, so both lists stay the same length.
    """
    if properties.get("product_id") is not None:
        position = properties.get("position")
        return [str(properties["product_id"])], None if position is None else [position]

    clicked = [p for p in _object_list(properties, "products") if p.get("product_id") is not None]
    object_ids = [str(p["product_id"]) for p in clicked]
    positions = [p.get("position") for p in clicked]
    if not clicked or any(position is None for position in positions):
        return object_ids, None
    return object_ids, positions


def _object_ids(properties: Mapping[str, Any]) -> list[str]:
    return _clicked_products(properties)[0]


def _filters(properties: Mapping[str, Any]) -> list[str]:
    return [
        f"{item['attribute']}:{item['value']}"
        for item in _object_list(properties, "filters")
        if "attribute" in item and "value" in item
    ]


def resolve_algolia_event(event: Mapping[str, Any], kind: str) -> AlgoliaEvent:
    """Build an Insights event of `kind` (view, click, conversion, filter).

    Raises:
        ValueError for an unknown kind; PayloadValidationError when
        properties are malformed; pydantic.ValidationError when the event
        lacks index, userToken, event name, object ids or filters.
    """
    properties = _properties(event)
    common = _algolia_common(event, properties)

    if kind == "view":
        return AlgoliaProductViewedEvent(**common, objectIDs=_object_ids(properties))
    if kind == "click":
        object_ids, positions = _clicked_products(properties)
        return AlgoliaProductClickedEvent(**common, objectIDs=object_ids, positions=positions)
    if kind == "conversion":
        return AlgoliaConversionEvent(**common, objectIDs=_object_ids(properties))
    if kind == "filter":
        return AlgoliaFilterClickedEvent(**common, filters=_filters(properties))
    raise ValueError(f"Unknown Algolia event kind: {kind!r}")
