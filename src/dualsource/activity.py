"""Source attribution for dual-source recordings.

Both tracks are cut into fixed windows and each window is labeled by comparing
linear RMS levels. Consecutive windows with the same label collapse into
segments, segments shorter than two windows are absorbed into the segment that
follows them, and short BOTH segments sitting inside single-source speech are
relabeled to that source.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
import logging
from typing import Iterable, Sequence

import numpy as np

from .audio_contract import InvalidInputError, coerce_samples, ensure_sample_rate
from .levels import duration_ms, window_rms

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_INTERVAL_MS = 100
DEFAULT_ACTIVITY_THRESHOLD = 0.005
DEFAULT_DOMINANCE_RATIO = 3.0
MIN_RMS_FOR_RATIO = 0.0001
BOTH_SMOOTHING_MAX_MS = 500
DEBOUNCE_INTERVALS = 2


class Source(str, Enum):
    """Which track produced a slice of the recording."""

    SILENCE = "silence"
    USER = "user"
    SYSTEM = "system"
    BOTH = "both"

    @property
    def label(self) -> str:
        return _SOURCE_LABELS[self]

    @property
    def is_single(self) -> bool:
        return self in (Source.USER, Source.SYSTEM)


_SOURCE_LABELS = {
    Source.SILENCE: "",
    Source.USER: "[User]",
    Source.SYSTEM: "[System]",
    Source.BOTH: "[User+System]",
}

# Index order used by the vectorised classifier.
_SOURCE_CODES: tuple[Source, ...] = (Source.SILENCE, Source.USER, Source.SYSTEM, Source.BOTH)


@dataclass(frozen=True, slots=True)
class ActivitySegment:
    """A half-open ``[start_ms, end_ms)`` span attributed to one source."""

    start_ms: int
    end_ms: int
    source: Source

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms

    def __str__(self) -> str:
        return f"[{self.start_ms}-{self.end_ms}ms: {self.source.name}]"


@dataclass(frozen=True, slots=True)
class ActivityTuning:
    """Secondary constants for timeline post-processing."""

    min_rms_for_ratio: float = MIN_RMS_FOR_RATIO
    both_smoothing_max_ms: int = BOTH_SMOOTHING_MAX_MS
    debounce_intervals: int = DEBOUNCE_INTERVALS


DEFAULT_ACTIVITY_TUNING = ActivityTuning()


def classify_interval(
    mic_rms: float,
    sys_rms: float,
    activity_threshold: float = DEFAULT_ACTIVITY_THRESHOLD,
    dominance_ratio: float = DEFAULT_DOMINANCE_RATIO,
    min_rms_for_ratio: float = MIN_RMS_FOR_RATIO,
) -> Source:
    """Label one window from its linear RMS levels."""

    mic_active = mic_rms >= activity_threshold
    sys_active = sys_rms >= activity_threshold

    if not mic_active and not sys_active:
        return Source.SILENCE
    if not sys_active:
        return Source.USER
    if not mic_active:
        return Source.SYSTEM

    # Compare scaled levels rather than a quotient so swapping the tracks mirrors the label.
    mic_level = max(mic_rms, min_rms_for_ratio)
    sys_level = max(sys_rms, min_rms_for_ratio)
    if mic_level > dominance_ratio * sys_level:
        return Source.USER
    if sys_level > dominance_ratio * mic_level:
        return Source.SYSTEM
    return Source.BOTH


def classify_windows(
    mic_rms: np.ndarray,
    sys_rms: np.ndarray,
    activity_threshold: float = DEFAULT_ACTIVITY_THRESHOLD,
    dominance_ratio: float = DEFAULT_DOMINANCE_RATIO,
    min_rms_for_ratio: float = MIN_RMS_FOR_RATIO,
) -> list[Source]:
    """Vectorised :func:`classify_interval` over aligned per-window RMS arrays."""

    mic_rms = np.asarray(mic_rms, dtype=np.float64)
    sys_rms = np.asarray(sys_rms, dtype=np.float64)
    if mic_rms.shape != sys_rms.shape:
        raise InvalidInputError("invalid_interval", "Window RMS arrays must be aligned.")

    mic_active = mic_rms >= activity_threshold
    sys_active = sys_rms >= activity_threshold
    mic_level = np.maximum(mic_rms, min_rms_for_ratio)
    sys_level = np.maximum(sys_rms, min_rms_for_ratio)

    codes = np.select(
        [
            ~mic_active & ~sys_active,
            mic_active & ~sys_active,
            ~mic_active & sys_active,
            mic_level > dominance_ratio * sys_level,
            sys_level > dominance_ratio * mic_level,
        ],
        [0, 1, 2, 1, 2],
        default=3,
    )
    return [_SOURCE_CODES[code] for code in codes.tolist()]


def merge_same_source(segments: Iterable[ActivitySegment]) -> list[ActivitySegment]:
    """Collapse consecutive segments that share a source."""

    merged: list[ActivitySegment] = []
    for segment in segments:
        if merged and merged[-1].source == segment.source:
            merged[-1] = replace(merged[-1], end_ms=segment.end_ms)
        else:
            merged.append(segment)
    return merged


def debounce_segments(segments: Sequence[ActivitySegment], min_duration_ms: int) -> list[ActivitySegment]:
    """Absorb segments shorter than ``min_duration_ms`` into their context.

    A short segment takes the source of the segment that follows it; a short run
    at the very end takes the source of the segment before it. Equivalent to
    repeatedly relabeling the first short segment and re-merging, in one pass.
    """

    merged = merge_same_source(segments)
    if len(merged) <= 1:
        return merged

    debounced: list[ActivitySegment] = []
    pending_start: int | None = None
    for segment in merged:
        start_ms = segment.start_ms if pending_start is None else pending_start
        if debounced and debounced[-1].source == segment.source:
            debounced[-1] = replace(debounced[-1], end_ms=segment.end_ms)
            pending_start = None
        elif segment.end_ms - start_ms < min_duration_ms:
            pending_start = start_ms
        else:
            debounced.append(ActivitySegment(start_ms, segment.end_ms, segment.source))
            pending_start = None

    if pending_start is not None:
        last = merged[-1]
        if debounced:
            debounced[-1] = replace(debounced[-1], end_ms=last.end_ms)
        else:
            debounced.append(ActivitySegment(pending_start, last.end_ms, last.source))
    return debounced


def _smoothing_target(previous: Source, following: Source) -> Source | None:
    if previous == following and previous.is_single:
        return previous
    if previous.is_single and following is Source.SILENCE:
        return previous
    if following.is_single and previous is Source.SILENCE:
        return following
    return None


def smooth_both_segments(
    segments: Sequence[ActivitySegment],
    max_duration_ms: int = BOTH_SMOOTHING_MAX_MS,
) -> list[ActivitySegment]:
    """Relabel brief BOTH segments that sit inside single-source speech."""

    relabeled: list[ActivitySegment] = []
    for index, segment in enumerate(segments):
        if segment.source is Source.BOTH and segment.duration_ms <= max_duration_ms:
            # Recording boundaries behave like silence.
            previous = segments[index - 1].source if index > 0 else Source.SILENCE
            following = segments[index + 1].source if index + 1 < len(segments) else Source.SILENCE
            target = _smoothing_target(previous, following)
            if target is not None:
                segment = replace(segment, source=target)
        relabeled.append(segment)
    return merge_same_source(relabeled)


def _validate_parameters(interval_ms: int, activity_threshold: float, dominance_ratio: float) -> None:
    if interval_ms <= 0:
        raise InvalidInputError("invalid_interval", f"Interval must be positive, got {interval_ms} ms.")
    if activity_threshold < 0.0:
        raise InvalidInputError(
            "invalid_threshold", f"Activity threshold must be non-negative, got {activity_threshold}."
        )
    if dominance_ratio < 1.0:
        raise InvalidInputError("invalid_ratio", f"Dominance ratio must be >= 1.0, got {dominance_ratio}.")


def track_activity(
    mic: np.ndarray,
    sys: np.ndarray,
    sample_rate: int,
    interval_ms: int = DEFAULT_SAMPLE_INTERVAL_MS,
    activity_threshold: float = DEFAULT_ACTIVITY_THRESHOLD,
    dominance_ratio: float = DEFAULT_DOMINANCE_RATIO,
    tuning: ActivityTuning = DEFAULT_ACTIVITY_TUNING,
) -> list[ActivitySegment]:
    """Build a contiguous attributed timeline covering the longer of the two tracks."""

    mic_samples = coerce_samples(mic, "mic")
    sys_samples = coerce_samples(sys, "sys")
    sample_rate = ensure_sample_rate(sample_rate)
    _validate_parameters(interval_ms, activity_threshold, dominance_ratio)

    total_samples = max(mic_samples.size, sys_samples.size)
    total_ms = duration_ms(total_samples, sample_rate)

    mic_rms = window_rms(mic_samples, sample_rate, interval_ms, total_samples)
    sys_rms = window_rms(sys_samples, sample_rate, interval_ms, total_samples)
    labels = classify_windows(
        mic_rms,
        sys_rms,
        activity_threshold=activity_threshold,
        dominance_ratio=dominance_ratio,
        min_rms_for_ratio=tuning.min_rms_for_ratio,
    )

    windows = []
    for index, source in enumerate(labels):
        start_ms = index * interval_ms
        if start_ms >= total_ms:
            break
        windows.append(ActivitySegment(start_ms, min(start_ms + interval_ms, total_ms), source))

    timeline = debounce_segments(windows, tuning.debounce_intervals * interval_ms)
    timeline = smooth_both_segments(timeline, tuning.both_smoothing_max_ms)

    logger.info("Generated activity timeline with %d segments", len(timeline))
    return timeline


def timeline_total_ms(timeline: Sequence[ActivitySegment]) -> int:
    return timeline[-1].end_ms if timeline else 0
