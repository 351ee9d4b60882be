"""Tests for the Algolia Insights event model and endpoints."""

from unittest.mock import Mock

import httpx
import pytest
from pydantic import ValidationError

from destination_actions.algolia_insights import (
    BASE_INSIGHTS_URL,
    AlgoliaApiPermissions,
    AlgoliaConversionEvent,
    AlgoliaFilterClickedEvent,
    AlgoliaProductClickedEvent,
    AlgoliaProductViewedEvent,
    AlgoliaSettings,
    behaviour_endpoint,
    permissions_url,
    send_insights_event,
    verify_api_key,
)


class TestEndpoints:
    def test_base_url(self):
        assert BASE_INSIGHTS_URL == "https://insights.algolia.io"

    def test_behaviour_endpoint(self):
        assert behaviour_endpoint() == "https://insights.algolia.io/1/events"

    def test_permissions_url_from_mapping(self):
        assert (
            permissions_url({"appId": "APP1", "apiKey": "KEY1"})
            == "https://APP1.algolia.net/1/keys/KEY1"
        )

    def test_permissions_url_from_settings(self):
        settings = AlgoliaSettings(appId="APP1", apiKey="KEY1")
        assert permissions_url(settings) == "https://APP1.algolia.net/1/keys/KEY1"


class TestEventModels:
    """Each variant carries the common header plus its own fields."""

    common = {"eventName": "Product Viewed", "index": "products", "userToken": "u1"}

    def test_viewed_defaults_to_view(self):
        event = AlgoliaProductViewedEvent(**self.common, objectIDs=["p1"])
        assert event.eventType == "view"
        assert event.timestamp is None
        assert event.queryID is None

    def test_clicked_positions_optional(self):
        event = AlgoliaProductClickedEvent(**self.common, objectIDs=["p1"])
        assert event.eventType == "click"
        assert event.positions is None

    def test_clicked_with_positions(self):
        event = AlgoliaProductClickedEvent(**self.common, objectIDs=["p1", "p2"], positions=[1, 2])
        assert event.positions == [1, 2]

    def test_conversion(self):
        event = AlgoliaConversionEvent(**self.common, objectIDs=["p1"])
        assert event.eventType == "conversion"

    def test_filter_clicked(self):
        event = AlgoliaFilterClickedEvent(**self.common, filters=["brand:acme"])
        assert event.eventType == "click"
        assert event.filters == ["brand:acme"]

    def test_unknown_event_type_rejected(self):
        with pytest.raises(ValidationError):
            AlgoliaProductViewedEvent(**self.common, objectIDs=["p1"], eventType="purchase")

    @pytest.mark.parametrize(
        "model, event_type",
        [
            (AlgoliaProductViewedEvent, "conversion"),
            (AlgoliaProductClickedEvent, "view"),
            (AlgoliaConversionEvent, "click"),
        ],
    )
    def test_event_type_pinned_per_variant(self, model, event_type):
        with pytest.raises(ValidationError):
            model(**self.common, objectIDs=["p1"], eventType=event_type)

    def test_filter_clicked_is_click_only(self):
        with pytest.raises(ValidationError):
            AlgoliaFilterClickedEvent(**self.common, filters=["brand:acme"], eventType="view")

    @pytest.mark.parametrize(
        "model", [AlgoliaProductViewedEvent, AlgoliaProductClickedEvent, AlgoliaConversionEvent]
    )
    def test_object_ids_required(self, model):
        with pytest.raises(ValidationError):
            model(**self.common, objectIDs=[])

    def test_filters_required(self):
        with pytest.raises(ValidationError):
            AlgoliaFilterClickedEvent(**self.common, filters=[])

    def test_positions_length_must_match(self):
        with pytest.raises(ValidationError, match="same length as objectIDs"):
            AlgoliaProductClickedEvent(**self.common, objectIDs=["p1", "p2"], positions=[1])

    def test_permissions_shape(self):
        permissions = AlgoliaApiPermissions.model_validate({"acl": ["search", "browse"]})
        assert permissions.acl == ["search", "browse"]


class TestSendInsightsEvent:
    def test_posts_single_event(self):
        request = Mock(return_value=httpx.Response(200))
        event = AlgoliaProductClickedEvent(
            eventName="Product Clicked",
            index="products",
            userToken="u1",
            objectIDs=["p1"],
            queryID="q1",
        )

        send_insights_event(request, event)

        request.assert_called_once_with(
            "https://insights.algolia.io/1/events",
            method="POST",
            json={
                "events": [
                    {
                        "eventName": "Product Clicked",
                        "index": "products",
                        "userToken": "u1",
                        "queryID": "q1",
                        "eventType": "click",
                        "objectIDs": ["p1"],
                    }
                ]
            },
        )


class TestVerifyApiKey:
    @pytest.mark.parametrize("acl, expected", [(["search", "addObject"], True), (["browse"], False)])
    def test_checks_search_acl(self, acl, expected):
        request = Mock(return_value=httpx.Response(200, json={"acl": acl}))

        assert verify_api_key(request, {"appId": "APP1", "apiKey": "KEY1"}) is expected
        request.assert_called_once_with("https://APP1.algolia.net/1/keys/KEY1", method="GET")
