"""Pydantic models for the Iterable trackPurchase action.

`TrackPurchasePayload` is what the action receives, already resolved from a
raw platform event (see `mapping`). `TrackPurchaseRequest` is what goes on
the wire. Keeping them separate means a field can only reach Iterable if the
request model names it.

Field names are camelCase because that is Iterable's API contract.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# ISO string, datetime, or epoch milliseconds
DateInput = Union[datetime, str, int, float]


class CommerceItem(BaseModel):
    """One order line item."""

    id: str
    sku: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    categories: Optional[Union[list[str], str]] = None
    price: Optional[float] = None
    quantity: Optional[int] = None
    imageUrl: Optional[str] = None
    url: Optional[str] = None
    dataFields: Optional[dict[str, Any]] = None


class IterableUser(BaseModel):
    """User block of the payload.

    `phoneNumber` is accepted here but never sent as a sibling of
    `email` / `userId`; the action moves it into `dataFields`.
    """

    email: Optional[str] = None
    userId: Optional[str] = None
    mergeNestedObjects: Optional[bool] = None
    dataFields: Optional[dict[str, Any]] = None
    phoneNumber: Optional[str] = None


class TrackPurchasePayload(BaseModel):
    """Resolved input for one trackPurchase call.

    Fields:
        id: Order id. Iterable updates a purchase with the same id, or
            generates one when absent.
        user: Who purchased. Needs email or userId (checked by the action).
        dataFields: Event-level custom properties.
        items: Line items.
        total: Order total.
        createdAt: When the purchase happened.
        campaignId / templateId: Attribution.
    """

    id: Optional[str] = None
    user: IterableUser
    dataFields: Optional[dict[str, Any]] = None
    items: list[CommerceItem]
    total: Union[int, float]
    createdAt: Optional[DateInput] = None
    campaignId: Optional[int] = None
    templateId: Optional[int] = None


class TrackPurchaseUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: Optional[str] = None
    userId: Optional[str] = None
    mergeNestedObjects: Optional[bool] = None
    dataFields: dict[str, Any] = Field(default_factory=dict)


class TrackPurchaseRequest(BaseModel):
    """Body of `POST /api/commerce/trackPurchase`."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    user: TrackPurchaseUser
    items: list[dict[str, Any]]
    campaignId: Optional[int] = None
    templateId: Optional[int] = None
    createdAt: int
    total: Union[int, float]
    dataFields: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        """JSON body with unset optional fields left out.

        Only top-level and `user` fields are pruned; None values inside
        `dataFields` are custom data and are sent as null.
        """
        body = self.model_dump()
        body["user"] = {k: v for k, v in body["user"].items() if v is not None}
        return {k: v for k, v in body.items() if v is not None}
