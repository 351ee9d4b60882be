"""destination-actions configuration.

Everything is read from environment variables once, at import time, so the
same code runs locally, in CI, or inside a container without changes.

Vendor credentials are only used to build the authenticated HTTP clients in
`http_client`; the actions themselves never read them.
"""

from __future__ import annotations

import os

# --- Iterable ----------------------------------------------------------------
# Sent as the `Api-Key` header on every Iterable request.
ITERABLE_API_KEY: str = os.getenv("ITERABLE_API_KEY", "")

# --- Algolia -----------------------------------------------------------------
ALGOLIA_APP_ID: str = os.getenv("ALGOLIA_APP_ID", "")
ALGOLIA_API_KEY: str = os.getenv("ALGOLIA_API_KEY", "")

# --- HTTP --------------------------------------------------------------------
# Applies to connect, read, write and pool timeouts of the httpx clients.
HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10.0"))

# --- Kafka -------------------------------------------------------------------
# Raw platform events (track/identify/...) arrive on this topic as JSON.
KAFKA_BOOTSTRAP_SERVERS: str = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092")
KAFKA_TOPIC: str = os.getenv("KAFKA_TOPIC", "segment.events.v1")
KAFKA_GROUP_ID: str = os.getenv("KAFKA_GROUP_ID", "destination-actions")

# The HTTP surface works without a broker; the consumer is opt-in.
ENABLE_CONSUMER: bool = os.getenv("ENABLE_CONSUMER", "false").lower() in ("1", "true", "yes")

# --- Logging -----------------------------------------------------------------
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
