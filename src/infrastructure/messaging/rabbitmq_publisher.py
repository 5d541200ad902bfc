"""
RabbitMQ event publisher.

Uses pika in a thread-pool executor so blocking I/O doesn't stall the
asyncio event loop. A new connection is opened per publish call; a run
emits a handful of events at most.
"""
import asyncio
import json
from dataclasses import asdict
from enum import Enum
from functools import partial
from typing import Any

import pika
import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.config import settings
from src.domain.events.domain_events import (
    DomainEvent,
    ListingPipelineFailedEvent,
    ListingPublishedEvent,
    PipelineDegradedEvent,
    PipelineStageChangedEvent,
)

logger = structlog.get_logger(__name__)

EXCHANGE_NAME = "listing_pipeline.events"


def _event_to_routing_key(event: DomainEvent) -> str:
    if isinstance(event, PipelineStageChangedEvent):
        return f"pipeline.stage.{event.to_stage.value.lower()}"
    if isinstance(event, PipelineDegradedEvent):
        return f"pipeline.degraded.{event.marker}"
    if isinstance(event, ListingPublishedEvent):
        return "listing.published"
    if isinstance(event, ListingPipelineFailedEvent):
        return "listing.failed"
    return "event.unknown"


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _serialise_event(event: DomainEvent) -> str:
    payload = {"event_type": _event_to_routing_key(event), **asdict(event)}
    return json.dumps(payload, default=_json_default)


def _blocking_publish(rabbitmq_url: str, routing_key: str, body: str) -> None:
    connection = pika.BlockingConnection(pika.URLParameters(rabbitmq_url))
    try:
        channel = connection.channel()
        channel.exchange_declare(
            exchange=EXCHANGE_NAME, exchange_type="topic", durable=True
        )
        channel.basic_publish(
            exchange=EXCHANGE_NAME,
            routing_key=routing_key,
            body=body.encode(),
            properties=pika.BasicProperties(
                delivery_mode=pika.DeliveryMode.Persistent,
                content_type="application/json",
            ),
        )
    finally:
        connection.close()


def _blocking_ping(rabbitmq_url: str) -> None:
    connection = pika.BlockingConnection(pika.URLParameters(rabbitmq_url))
    connection.close()


async def check_rabbitmq_connection(rabbitmq_url: str = settings.rabbitmq_url) -> str:
    """Return "connected" or a short error description for health reporting."""
    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, partial(_blocking_ping, rabbitmq_url))
    except Exception as exc:
        return f"error: {exc}"
    return "connected"


class RabbitMQPublisher(EventPublisher):
    """Publishes pipeline events to a RabbitMQ topic exchange."""

    def __init__(self, rabbitmq_url: str = settings.rabbitmq_url) -> None:
        self._url = rabbitmq_url

    async def publish(self, event: DomainEvent) -> None:
        routing_key = _event_to_routing_key(event)
        body = _serialise_event(event)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                partial(_blocking_publish, self._url, routing_key, body),
            )
            logger.debug("event_published", routing_key=routing_key, event_id=str(event.event_id))
        except Exception as exc:
            # Losing an event never fails the run
            logger.error(
                "failed_to_publish_event",
                routing_key=routing_key,
                error=str(exc),
            )
