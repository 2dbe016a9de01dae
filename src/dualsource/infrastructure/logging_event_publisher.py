"""Logging-backed event publisher for attribution workflows."""

from __future__ import annotations

import logging

from dualsource.domain.events import AttributionEvent, AttributionFallback

LOGGER = logging.getLogger("dualsource.events")


class LoggingEventPublisher:
    """Write each event's payload summary to the ``dualsource.events`` logger.

    Fallback events are logged at ``fallback_level`` so degraded recordings show
    up without enabling INFO output.
    """

    def __init__(self, level: int = logging.INFO, fallback_level: int = logging.WARNING) -> None:
        self.level = level
        self.fallback_level = fallback_level

    def publish(self, event: AttributionEvent) -> None:
        level = self.fallback_level if isinstance(event, AttributionFallback) else self.level
        LOGGER.log(
            level,
            "domain_event_emitted",
            extra={
                "event_name": type(event).__name__,
                "correlation_id": event.correlation_id,
                "payload_summary": event.payload_summary,
                "occurred_at": event.occurred_at.isoformat(),
            },
        )
