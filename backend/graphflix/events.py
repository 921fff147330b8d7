"""
Rating notifications on the event bus.

Publishing is at-least-once effort: a failure is reported to the caller as
EventPublishingError but never undoes the rating write that preceded it.
"""

import json
import logging
from typing import Optional

from . import config, models
from .exceptions import EventPublishingError
from .schemas import RatingEvent

logger = logging.getLogger(__name__)

RATING_CREATED = "RATING_CREATED"
RATING_UPDATED = "RATING_UPDATED"
RATING_DELETED = "RATING_DELETED"

SEND_TIMEOUT_SECONDS = 10


class EventPublisher:
    """Accepts (topic, key, payload). Subclasses decide where it goes."""

    def publish(self, topic: str, key: str, payload: dict) -> None:
        raise NotImplementedError

    def is_available(self) -> bool:
        return True

    def close(self) -> None:
        pass


class LoggingEventPublisher(EventPublisher):
    """Used when no Kafka brokers are configured."""

    def publish(self, topic: str, key: str, payload: dict) -> None:
        logger.info("Kafka disabled, event for %s [%s]: %s", topic, key, payload)

    def is_available(self) -> bool:
        return False


class KafkaEventPublisher(EventPublisher):
    def __init__(self, bootstrap_servers: str):
        from kafka import KafkaProducer

        self.producer = KafkaProducer(
            bootstrap_servers=[h.strip() for h in bootstrap_servers.split(",") if h.strip()],
            key_serializer=lambda k: k.encode("utf-8"),
            value_serializer=lambda v: json.dumps(v).encode("utf-8"),
        )
        logger.info("Kafka producer initialized for %s", bootstrap_servers)

    def publish(self, topic: str, key: str, payload: dict) -> None:
        # block on the broker ack so a failed send reaches the caller
        self.producer.send(topic, key=key, value=payload).get(timeout=SEND_TIMEOUT_SECONDS)
        logger.info("Kafka event sent to %s [%s]", topic, key)

    def is_available(self) -> bool:
        return self.producer.bootstrap_connected()

    def close(self) -> None:
        self.producer.flush()
        self.producer.close()


class RatingEventProducer:
    TOPICS = {
        RATING_CREATED: config.RATING_CREATED_TOPIC,
        RATING_UPDATED: config.RATING_UPDATED_TOPIC,
        RATING_DELETED: config.RATING_DELETED_TOPIC,
    }

    def __init__(self, publisher: EventPublisher):
        self.publisher = publisher

    def publish_created(self, rating: models.Rating) -> None:
        self._publish(RATING_CREATED, rating)

    def publish_updated(self, rating: models.Rating) -> None:
        self._publish(RATING_UPDATED, rating)

    def publish_deleted(self, rating: models.Rating) -> None:
        self._publish(RATING_DELETED, rating)

    def _publish(self, event_type: str, rating: models.Rating) -> None:
        event = RatingEvent(
            event_type=event_type,
            rating_id=rating.id,
            user_id=rating.user_id,
            movie_id=rating.movie_id,
            rating=rating.rating,
            comment=rating.comment,
            timestamp=rating.timestamp,
        )
        payload = event.model_dump(mode="json", by_alias=True)
        try:
            # movie id as key keeps all events of one movie on one partition
            self.publisher.publish(self.TOPICS[event_type], rating.movie_id, payload)
        except Exception as e:
            logger.error("Failed to publish %s for rating %s: %s", event_type, rating.id, e)
            raise EventPublishingError(
                f"Failed to publish {event_type.lower().replace('_', ' ')} event"
            ) from e


_publisher: Optional[EventPublisher] = None


def get_publisher() -> EventPublisher:
    global _publisher
    if _publisher is None:
        if config.KAFKA_BOOTSTRAP_SERVERS:
            _publisher = KafkaEventPublisher(config.KAFKA_BOOTSTRAP_SERVERS)
        else:
            _publisher = LoggingEventPublisher()
    return _publisher


def get_event_producer() -> RatingEventProducer:
    return RatingEventProducer(get_publisher())


def close_publisher() -> None:
    global _publisher
    if _publisher is not None:
        _publisher.close()
        _publisher = None
