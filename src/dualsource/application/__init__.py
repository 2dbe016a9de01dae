"""Application services layer."""

from .attribution_service import AttributeDualSourceRecording

__all__ = ["AttributeDualSourceRecording"]
