"""Public package exports for dualsource with lazy imports."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "InvalidInputError",
    "TrackAnalysis",
    "LevelThresholds",
    "analyze",
    "NormalizationResult",
    "NormalizationTuning",
    "normalize_for_merge",
    "Source",
    "ActivitySegment",
    "ActivityTuning",
    "track_activity",
    "TimestampedWord",
    "label_transcript",
    "label_timestamped_words",
    "summarize_timeline",
    "AttributeDualSourceRecording",
]

_EXPORT_MODULES: dict[str, str] = {
    "InvalidInputError": "dualsource.audio_contract",
    "TrackAnalysis": "dualsource.levels",
    "LevelThresholds": "dualsource.levels",
    "analyze": "dualsource.levels",
    "NormalizationResult": "dualsource.normalization",
    "NormalizationTuning": "dualsource.normalization",
    "normalize_for_merge": "dualsource.normalization",
    "Source": "dualsource.activity",
    "ActivitySegment": "dualsource.activity",
    "ActivityTuning": "dualsource.activity",
    "track_activity": "dualsource.activity",
    "TimestampedWord": "dualsource.labeling",
    "label_transcript": "dualsource.labeling",
    "label_timestamped_words": "dualsource.labeling",
    "summarize_timeline": "dualsource.labeling",
    "AttributeDualSourceRecording": "dualsource.application.attribution_service",
}


def __getattr__(name: str) -> Any:
    if name not in _EXPORT_MODULES:
        raise AttributeError(f"module 'dualsource' has no attribute {name!r}")

    module = import_module(_EXPORT_MODULES[name])
    value = getattr(module, name)
    globals()[name] = value
    return value
