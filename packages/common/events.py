"""Lightweight event bus wrapper for producing domain events to Kafka.

Uses `confluent_kafka.Producer` when `KAFKA_BOOTSTRAP` is configured; otherwise
events are only logged so dev/test runs need no broker.
"""

from .config import get_settings
from confluent_kafka import KafkaException, Producer
from functools import lru_cache
from typing import Any
import json, logging

log = logging.getLogger(__name__)


class EventBus:
    """Thin Kafka publisher; publishing never raises into request handling."""

    def __init__(self, bootstrap: str | None, topic: str) -> None:
        """Create the producer when a bootstrap address is given."""
        self.topic = topic
        self._producer = Producer({"bootstrap.servers": bootstrap}) if bootstrap else None

    def publish(self, event_type: str, key: str, value: dict[str, Any]) -> None:
        """Publish an event envelope to the configured topic and log it.

        Args:
            event_type: Dotted event name, e.g. "assessment.submitted".
            key: Message key (used for partitioning).
            value: JSON-serializable payload dictionary.
        """
        envelope = {"type": event_type, "data": value}
        if self._producer:
            try:
                self._producer.produce(self.topic, key=key, value=json.dumps(envelope, default=str).encode("utf-8"))
                self._producer.poll(0)
            except (KafkaException, BufferError):
                log.exception("event publish failed", extra={"event_type": event_type, "key": key})
                return
        log.info("PUBLISH", extra={"topic": self.topic, "event_type": event_type, "key": key, "data": value})


@lru_cache()
def get_event_bus() -> EventBus:
    """Return the process-wide `EventBus` built from settings."""
    s = get_settings()
    return EventBus(s.KAFKA_BOOTSTRAP, s.EVENTS_TOPIC)
