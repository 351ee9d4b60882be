"""Iterable "Track Purchase" action.

Flow:
    validate -> reshape payload into TrackPurchaseRequest -> one POST

Reshaping rules (Iterable's purchase schema differs from the platform's
"Order Completed" event in a few places):

1) `products` in event dataFields
   The line items already travel in `items`; sending them twice makes
   Iterable store the same data under two keys.

2) `user.phoneNumber`
   Iterable reads the phone number from `user.dataFields.phoneNumber`, not
   from a sibling of `email` / `userId`.

3) Dates
   Custom fields may hold dates at any depth; they are sent as epoch
   seconds, as is `createdAt`.

The payload passed in is never modified; the request body is a new object.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from .errors import PayloadValidationError
from .http_client import Request
from .iterable_models import TrackPurchasePayload, TrackPurchaseRequest, TrackPurchaseUser
from .iterable_utils import convert_dates_in_object, to_unix_seconds, transform_items

logger = logging.getLogger(__name__)

TRACK_PURCHASE_URL = "https://api.iterable.com/api/commerce/trackPurchase"


def validate(payload: TrackPurchasePayload) -> None:
    """Iterable identifies the purchaser by email or userId; one is required."""
    if not payload.user.email and not payload.user.userId:
        raise PayloadValidationError("Must include email or userId.")


def _user_data_fields(payload: TrackPurchasePayload) -> dict[str, Any]:
    fields = convert_dates_in_object(payload.user.dataFields or {})
    phone_number = payload.user.phoneNumber
    if phone_number is None:
        fields.pop("phoneNumber", None)
    else:
        fields["phoneNumber"] = phone_number
    return fields


def build_track_purchase_request(
    payload: TrackPurchasePayload, now: Optional[Callable[[], datetime]] = None
) -> TrackPurchaseRequest:
    """Validate `payload` and build the request body.

    Args:
        payload: Resolved action payload.
        now: Clock used when `createdAt` is missing (defaults to UTC now).

    Raises:
        PayloadValidationError: neither email nor userId is set, or
            `createdAt` is not a date.
    """
    validate(payload)

    event_fields = {
        key: value for key, value in (payload.dataFields or {}).items() if key != "products"
    }

    user = TrackPurchaseUser(
        email=payload.user.email,
        userId=payload.user.userId,
        mergeNestedObjects=payload.user.mergeNestedObjects,
        dataFields=_user_data_fields(payload),
    )

    return TrackPurchaseRequest(
        id=payload.id,
        user=user,
        items=transform_items(item.model_dump() for item in payload.items),
        campaignId=payload.campaignId,
        templateId=payload.templateId,
        createdAt=to_unix_seconds(payload.createdAt, now),
        total=payload.total,
        dataFields=convert_dates_in_object(event_fields),
    )


def perform(
    request: Request,
    payload: TrackPurchasePayload,
    now: Optional[Callable[[], datetime]] = None,
):
    """Send one purchase to Iterable.

    Validation happens before anything touches the network. Errors raised by
    `request` (httpx.HTTPError and friends) propagate as-is.
    """
    body = build_track_purchase_request(payload, now)
    logger.info(
        "[Iterable] trackPurchase id=%s items=%d total=%s",
        body.id,
        len(body.items),
        body.total,
    )
    return request(TRACK_PURCHASE_URL, method="POST", json=body.to_json())
