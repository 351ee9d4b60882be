"""destination-actions FastAPI application.

Responsibilities:
- Accept raw platform events over HTTP and run the matching action:
    `POST /iterable/trackPurchase`
    `POST /algolia/{kind}`   (kind: view | click | conversion | filter)
- Optionally start a background Kafka consumer that runs trackPurchase for
  every "Order Completed" event on the topic (ENABLE_CONSUMER=true).

Status codes:
    400 payload broke a business rule (PayloadValidationError)
    422 payload could not be resolved into the action's fields
    502 the vendor API failed
"""

from __future__ import annotations

import logging
from threading import Event, Thread
from typing import Any

import httpx
from fastapi import Body, FastAPI, HTTPException
from pydantic import ValidationError

from .algolia_insights import send_insights_event
from .config import ENABLE_CONSUMER, LOG_LEVEL
from .errors import PayloadValidationError
from .http_client import HttpRequest, create_algolia_request, create_iterable_request
from .kafka_consumer import run_consumer
from .mapping import ALGOLIA_EVENT_KINDS, resolve_algolia_event, resolve_track_purchase_payload
from .track_purchase import perform

logger = logging.getLogger(__name__)

app = FastAPI(title="Destination Actions")

# Used to signal the consumer thread to stop on shutdown.
stop_event = Event()

consumer_thread: Thread | None = None

# Request capabilities; created on startup.
iterable_request: HttpRequest | None = None
algolia_request: HttpRequest | None = None


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.on_event("startup")
def on_startup() -> None:
    """Startup hook.

    - Configure logging.
    - Build the vendor HTTP clients.
    - Start the Kafka consumer thread when enabled.
    """
    global consumer_thread, iterable_request, algolia_request

    configure_logging()
    iterable_request = create_iterable_request()
    algolia_request = create_algolia_request()

    if ENABLE_CONSUMER:
        consumer_thread = Thread(
            target=run_consumer,
            args=(iterable_request, stop_event),
            daemon=True,
        )
        consumer_thread.start()


@app.on_event("shutdown")
def on_shutdown() -> None:
    stop_event.set()
    for client in (iterable_request, algolia_request):
        if client is not None:
            client.close()


@app.get("/health")
def health() -> dict[str, str]:
    """Basic liveness endpoint."""
    return {"status": "ok"}


def _run(action, *args) -> httpx.Response:
    """Call an action and translate its failures into HTTP errors."""
    try:
        return action(*args)
    except PayloadValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except httpx.HTTPError as e:
        # 502 means the vendor API failed, not us.
        raise HTTPException(status_code=502, detail=f"Upstream error: {e}")


@app.post("/iterable/trackPurchase")
def track_purchase(event: dict[str, Any] = Body(...)):
    """Resolve an "Order Completed" event and send it to Iterable."""
    try:
        payload = resolve_track_purchase_payload(event)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    except PayloadValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    resp = _run(perform, iterable_request, payload)
    return {"status": "sent", "statusCode": resp.status_code}


@app.post("/algolia/{kind}")
def algolia_event(kind: str, event: dict[str, Any] = Body(...)):
    """Resolve an Insights event of `kind` and send it to Algolia."""
    if kind not in ALGOLIA_EVENT_KINDS:
        raise HTTPException(status_code=404, detail=f"Unknown event kind: {kind}")

    try:
        insights_event = resolve_algolia_event(event, kind)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    except PayloadValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)

    resp = _run(send_insights_event, algolia_request, insights_event)
    return {"status": "sent", "statusCode": resp.status_code}
