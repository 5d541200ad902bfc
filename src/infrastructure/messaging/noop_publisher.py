"""
No-op event publisher, used in tests and for local runs without RabbitMQ.
"""
import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.domain.events.domain_events import DomainEvent

logger = structlog.get_logger(__name__)


class NoOpEventPublisher(EventPublisher):
    """Drops pipeline events after logging them at debug level."""

    async def publish(self, event: DomainEvent) -> None:
        logger.debug(
            "pipeline_event_discarded",
            event_type=type(event).__name__,
            event_id=str(event.event_id),
        )
