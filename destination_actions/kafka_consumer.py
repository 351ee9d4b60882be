"""Kafka consumer that feeds raw platform events to the trackPurchase action.

High-level flow:
    poll -> decode JSON -> subscription match -> resolve payload -> perform -> commit

Offsets are committed manually after each message is handled, whatever the
outcome. A message that fails (bad JSON, invalid payload, Iterable error) is
logged and skipped; nothing is retried here.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx
from confluent_kafka import Consumer
from pydantic import ValidationError

from .config import KAFKA_BOOTSTRAP_SERVERS, KAFKA_GROUP_ID, KAFKA_TOPIC
from .errors import PayloadValidationError
from .http_client import Request
from .mapping import matches_track_purchase, resolve_track_purchase_payload
from .track_purchase import perform

logger = logging.getLogger(__name__)


def create_consumer() -> Consumer:
    """Create and configure a Confluent Kafka Consumer.

    - auto.offset.reset=earliest: a brand new group starts at the beginning.
    - enable.auto.commit=False: offsets move only after a message is handled.
    """
    conf: dict[str, Any] = {
        "bootstrap.servers": KAFKA_BOOTSTRAP_SERVERS,
        "group.id": KAFKA_GROUP_ID,
        "auto.offset.reset": "earliest",
        "enable.auto.commit": False,
    }
    return Consumer(conf)


def handle_event(request: Request, data: Any) -> Optional[httpx.Response]:
    """Dispatch one decoded event. Returns the Iterable response, or None if skipped.

    Never raises for bad input or upstream failures: they are logged so the
    consumer can move on to the next message.
    """
    if not isinstance(data, dict) or not matches_track_purchase(data):
        return None

    try:
        payload = resolve_track_purchase_payload(data)
        return perform(request, payload)
    except ValidationError as e:
        logger.warning("[Consumer] Bad event schema: %s messageId=%s", e, data.get("messageId"))
    except PayloadValidationError as e:
        logger.warning("[Consumer] Rejected payload: %s messageId=%s", e.message, data.get("messageId"))
    except httpx.HTTPError as e:
        logger.error("[Consumer] Iterable request failed: %s messageId=%s", e, data.get("messageId"))
    return None


def run_consumer(request: Request, stop_event) -> None:
    """Run the consumer loop until `stop_event.is_set()` becomes True.

    Args:
        request: Iterable request capability.
        stop_event: A threading.Event (or compatible object) used to stop the loop.
    """
    logger.info("[Consumer] Starting Kafka consumer topic=%s", KAFKA_TOPIC)

    consumer = create_consumer()
    consumer.subscribe([KAFKA_TOPIC])

    try:
        while not stop_event.is_set():
            # Wait up to 1 second so shutdown is noticed promptly.
            msg = consumer.poll(1.0)

            if msg is None:
                continue

            if msg.error():
                logger.error("[Consumer] Kafka error: %s", msg.error())
                continue

            try:
                data = json.loads(msg.value().decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.warning(
                    "[Consumer] Bad payload (decode/json): %s. Skipping. partition=%s offset=%s",
                    e,
                    msg.partition(),
                    msg.offset(),
                )
                consumer.commit(msg)
                continue

            handle_event(request, data)
            consumer.commit(msg)

    finally:
        consumer.close()
        logger.info("[Consumer] Closed")
