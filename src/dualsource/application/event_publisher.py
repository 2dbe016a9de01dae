"""Ports for publishing attribution events."""

from __future__ import annotations

from typing import Protocol

from dualsource.domain.events import AttributionEvent


class EventPublisher(Protocol):
    """Receives the normalization, tracking and fallback events of one recording.

    Events sharing a ``correlation_id`` belong to the same CLI invocation or
    service call.
    """

    def publish(self, event: AttributionEvent) -> None:
        """Publish a single event."""


class NullEventPublisher:
    """Drops every event; the default for library callers."""

    def publish(self, event: AttributionEvent) -> None:  # noqa: ARG002
        return
