"""DDD domain layer."""

from .events import ActivityTracked, AttributionEvent, AttributionFallback, DomainEvent, TracksNormalized

__all__ = [
    "DomainEvent",
    "TracksNormalized",
    "ActivityTracked",
    "AttributionFallback",
    "AttributionEvent",
]
