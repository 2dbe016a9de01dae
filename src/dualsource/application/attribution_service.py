"""Application services orchestrating normalization and attribution use-cases."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence
from uuid import uuid4

import numpy as np

from dualsource.activity import (
    DEFAULT_ACTIVITY_TUNING,
    DEFAULT_ACTIVITY_THRESHOLD,
    DEFAULT_DOMINANCE_RATIO,
    DEFAULT_SAMPLE_INTERVAL_MS,
    ActivitySegment,
    ActivityTuning,
    Source,
    track_activity,
)
from dualsource.application.event_publisher import EventPublisher, NullEventPublisher
from dualsource.audio_contract import InvalidInputError
from dualsource.domain.events import ActivityTracked, AttributionFallback, TracksNormalized
from dualsource.labeling import TimestampedWord, label_timestamped_words, label_transcript, summarize_timeline
from dualsource.levels import DEFAULT_LEVEL_THRESHOLDS, LevelThresholds
from dualsource.normalization import (
    DEFAULT_NORMALIZATION_TUNING,
    DEFAULT_TARGET_RMS_DB,
    NormalizationResult,
    NormalizationTuning,
    normalize_for_merge,
)
from dualsource.utils.config import AttributionConfig

logger = logging.getLogger(__name__)


def _known_duration_ms(tracks: Sequence[object], sample_rate: int) -> int:
    """Best-effort duration of malformed input, used only for fallback timelines."""

    if not isinstance(sample_rate, (int, np.integer)) or sample_rate <= 0:
        return 0
    lengths = [np.asarray(track).shape[0] for track in tracks if track is not None and np.ndim(track) >= 1]
    return max(lengths, default=0) * 1000 // int(sample_rate)


def _unattributed(total_ms: int) -> list[ActivitySegment]:
    return [ActivitySegment(0, total_ms, Source.BOTH)] if total_ms > 0 else []


@dataclass(slots=True)
class AttributeDualSourceRecording:
    """Use case that normalizes and attributes a captured mic/system track pair."""

    event_publisher: EventPublisher = NullEventPublisher()
    normalization_tuning: NormalizationTuning = DEFAULT_NORMALIZATION_TUNING
    activity_tuning: ActivityTuning = DEFAULT_ACTIVITY_TUNING
    thresholds: LevelThresholds = DEFAULT_LEVEL_THRESHOLDS

    @classmethod
    def from_config(
        cls, config: AttributionConfig, event_publisher: EventPublisher | None = None
    ) -> "AttributeDualSourceRecording":
        return cls(
            event_publisher=event_publisher or NullEventPublisher(),
            normalization_tuning=config.normalization.to_tuning(),
            activity_tuning=config.activity.to_tuning(),
            thresholds=config.levels.to_thresholds(),
        )

    def normalize(
        self,
        mic: np.ndarray,
        sys: np.ndarray,
        sample_rate: int,
        target_rms_db: float = DEFAULT_TARGET_RMS_DB,
        enabled: bool = True,
        correlation_id: str | None = None,
    ) -> NormalizationResult:
        """Normalize for merge, falling back to the untouched tracks on invalid input."""

        correlation_id = correlation_id or str(uuid4())
        try:
            result = normalize_for_merge(
                mic,
                sys,
                sample_rate,
                target_rms_db=target_rms_db,
                enabled=enabled,
                tuning=self.normalization_tuning,
                thresholds=self.thresholds,
            )
        except InvalidInputError as exc:
            logger.warning("Normalization failed; merging original tracks.", exc_info=exc)
            self.event_publisher.publish(
                AttributionFallback(
                    correlation_id=correlation_id,
                    payload_summary={"stage": "normalization", **exc.as_dict()},
                )
            )
            return NormalizationResult(
                mic_samples=mic,
                sys_samples=sys,
                was_processed=False,
                warning=f"normalization skipped: {exc.message}",
            )

        if result.warning:
            logger.warning("Normalization warning: %s", result.warning)
        self.event_publisher.publish(
            TracksNormalized(
                correlation_id=correlation_id,
                payload_summary={
                    "was_processed": result.was_processed,
                    "mic_gain_db": round(result.mic_gain_db, 3),
                    "sys_gain_db": round(result.sys_gain_db, 3),
                    "warning": result.warning,
                },
            )
        )
        return result

    def track(
        self,
        mic: np.ndarray,
        sys: np.ndarray,
        sample_rate: int,
        interval_ms: int = DEFAULT_SAMPLE_INTERVAL_MS,
        activity_threshold: float = DEFAULT_ACTIVITY_THRESHOLD,
        dominance_ratio: float = DEFAULT_DOMINANCE_RATIO,
        enabled: bool = True,
        correlation_id: str | None = None,
    ) -> list[ActivitySegment]:
        """Attribute the recording.

        Invalid input, or tracking switched off, yields a single unattributed
        BOTH span covering the known duration.
        """

        correlation_id = correlation_id or str(uuid4())
        if not enabled:
            total_ms = _known_duration_ms((mic, sys), sample_rate)
            logger.debug("Activity tracking disabled; recording left unattributed.")
            self.event_publisher.publish(
                ActivityTracked(
                    correlation_id=correlation_id,
                    payload_summary={"enabled": False, "total_ms": total_ms},
                )
            )
            return _unattributed(total_ms)

        try:
            timeline = track_activity(
                mic,
                sys,
                sample_rate,
                interval_ms=interval_ms,
                activity_threshold=activity_threshold,
                dominance_ratio=dominance_ratio,
                tuning=self.activity_tuning,
            )
        except InvalidInputError as exc:
            logger.warning("Activity tracking failed; treating recording as unattributed.", exc_info=exc)
            total_ms = _known_duration_ms((mic, sys), sample_rate)
            self.event_publisher.publish(
                AttributionFallback(
                    correlation_id=correlation_id,
                    payload_summary={"stage": "activity", "total_ms": total_ms, **exc.as_dict()},
                )
            )
            return _unattributed(total_ms)

        self.event_publisher.publish(
            ActivityTracked(
                correlation_id=correlation_id,
                payload_summary={"segments": len(timeline), **summarize_timeline(timeline).as_dict()},
            )
        )
        return timeline

    def label(self, transcript: str | Sequence[TimestampedWord], timeline: Sequence[ActivitySegment]) -> str:
        if isinstance(transcript, str):
            return label_transcript(transcript, timeline)
        return label_timestamped_words(transcript, timeline)
