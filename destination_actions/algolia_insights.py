"""Algolia Insights event model and endpoints.

Four event shapes share a common header (`eventName`, `index`, `userToken`,
optional `timestamp` / `queryID`, and the `eventType` tag):

    product viewed   -> objectIDs
    product clicked  -> objectIDs, positions (same length as objectIDs)
    conversion       -> objectIDs
    filter clicked   -> filters ("attribute:value")

Field names are camelCase because they go on the wire as-is.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, model_validator

from .http_client import Request

logger = logging.getLogger(__name__)

BASE_INSIGHTS_URL = "https://insights.algolia.io"

AlgoliaEventType = Literal["view", "click", "conversion"]


def behaviour_endpoint() -> str:
    """Where insights events are POSTed."""
    return BASE_INSIGHTS_URL + "/1/events"


class AlgoliaSettings(BaseModel):
    appId: str
    apiKey: str


def permissions_url(settings: Union[AlgoliaSettings, Mapping[str, Any]]) -> str:
    """Key-lookup URL for the configured API key.

    Values are interpolated verbatim; callers pass trusted settings.
    """
    if not isinstance(settings, AlgoliaSettings):
        settings = AlgoliaSettings.model_validate(settings)
    return f"https://{settings.appId}.algolia.net/1/keys/{settings.apiKey}"


class AlgoliaApiPermissions(BaseModel):
    """Response body of the key-lookup endpoint (only the part we read)."""

    acl: list[str]


class _EventCommon(BaseModel):
    eventName: str
    index: str
    userToken: str
    timestamp: Optional[int] = None  # milliseconds since epoch
    queryID: Optional[str] = None
    eventType: AlgoliaEventType


class AlgoliaProductViewedEvent(_EventCommon):
    eventType: Literal["view"] = "view"
    objectIDs: list[str] = Field(min_length=1)


class AlgoliaProductClickedEvent(_EventCommon):
    eventType: Literal["click"] = "click"
    objectIDs: list[str] = Field(min_length=1)
    positions: Optional[list[int]] = None

    @model_validator(mode="after")
    def _positions_match_object_ids(self) -> "AlgoliaProductClickedEvent":
        # One ranking position per object id.
        if self.positions is not None and len(self.positions) != len(self.objectIDs):
            raise ValueError("positions must have the same length as objectIDs")
        return self


class AlgoliaFilterClickedEvent(_EventCommon):
    eventType: Literal["click"] = "click"
    filters: list[str] = Field(min_length=1)


class AlgoliaConversionEvent(_EventCommon):
    eventType: Literal["conversion"] = "conversion"
    objectIDs: list[str] = Field(min_length=1)


AlgoliaEvent = Union[
    AlgoliaProductViewedEvent,
    AlgoliaProductClickedEvent,
    AlgoliaFilterClickedEvent,
    AlgoliaConversionEvent,
]


def send_insights_event(request: Request, event: AlgoliaEvent):
    """POST a single event to the Insights API.

    Optional fields that were never set are left out of the body.
    """
    body = {"events": [event.model_dump(exclude_none=True)]}
    logger.info("[Algolia] Sending %s event %r", event.eventType, event.eventName)
    return request(behaviour_endpoint(), method="POST", json=body)


def verify_api_key(request: Request, settings: Union[AlgoliaSettings, Mapping[str, Any]]) -> bool:
    """Return True when the API key is allowed to send search events."""
    resp = request(permissions_url(settings), method="GET")
    permissions = AlgoliaApiPermissions.model_validate(resp.json())
    return "search" in permissions.acl
