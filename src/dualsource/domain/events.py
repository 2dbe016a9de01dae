"""Domain event contracts for attribution workflows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """Base domain event emitted by application services."""

    correlation_id: str
    payload_summary: dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))


@dataclass(frozen=True, slots=True)
class TracksNormalized(DomainEvent):
    """Merge normalization finished (possibly as a pass-through)."""


@dataclass(frozen=True, slots=True)
class ActivityTracked(DomainEvent):
    """An attributed activity timeline was produced."""


@dataclass(frozen=True, slots=True)
class AttributionFallback(DomainEvent):
    """Invalid input forced a stage to fall back to its safe default."""


AttributionEvent = TracksNormalized | ActivityTracked | AttributionFallback
