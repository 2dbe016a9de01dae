"""CLI-facing handlers that delegate to application services."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
import json

import numpy as np

from dualsource.activity import ActivitySegment
from dualsource.application.attribution_service import AttributeDualSourceRecording
from dualsource.audio_contract import InvalidInputError
from dualsource.infrastructure.logging_event_publisher import LoggingEventPublisher
from dualsource.io.pcm_file import read_pcm16, write_pcm16
from dualsource.labeling import summarize_timeline
from dualsource.levels import TrackAnalysis, analyze
from dualsource.normalization import NormalizationResult
from dualsource.utils.config import AttributionConfig, load_attribution_config

_event_publisher = LoggingEventPublisher()


@dataclass(frozen=True, slots=True)
class AttributionReport:
    """Timeline, summary and optional labeled transcript for one recording."""

    timeline: list[ActivitySegment]
    summary: dict[str, object]
    labeled_transcript: str | None = None

    def as_dict(self) -> dict[str, object]:
        return {
            "timeline": [
                {"start_ms": seg.start_ms, "end_ms": seg.end_ms, "source": seg.source.value}
                for seg in self.timeline
            ],
            "summary": self.summary,
            "labeled_transcript": self.labeled_transcript,
        }


def resolve_config(config_path: Path | None) -> AttributionConfig:
    if config_path is None:
        return AttributionConfig()
    return load_attribution_config(config_path)


def _service(config: AttributionConfig) -> AttributeDualSourceRecording:
    return AttributeDualSourceRecording.from_config(config, event_publisher=_event_publisher)


def _load_pair(mic: Path, sys: Path) -> tuple[np.ndarray, np.ndarray, int]:
    mic_samples, mic_rate = read_pcm16(mic)
    sys_samples, sys_rate = read_pcm16(sys)
    if mic_rate != sys_rate:
        raise InvalidInputError(
            "invalid_sample_rate",
            f"Tracks must share a sample rate (mic {mic_rate} Hz, system {sys_rate} Hz).",
        )
    return mic_samples, sys_samples, mic_rate


def analyze_path(path: Path, config: AttributionConfig) -> TrackAnalysis:
    samples, sample_rate = read_pcm16(path)
    return analyze(samples, sample_rate, config.levels.to_thresholds())


def normalize_paths(
    mic: Path,
    sys: Path,
    output_dir: Path,
    correlation_id: str,
    config: AttributionConfig,
    target_rms_db: float | None = None,
    enabled: bool | None = None,
) -> tuple[Path, Path, NormalizationResult]:
    mic_samples, sys_samples, sample_rate = _load_pair(mic, sys)
    settings = config.normalization
    result = _service(config).normalize(
        mic_samples,
        sys_samples,
        sample_rate,
        target_rms_db=settings.target_rms_db if target_rms_db is None else target_rms_db,
        enabled=settings.enabled if enabled is None else enabled,
        correlation_id=correlation_id,
    )

    output_dir.mkdir(parents=True, exist_ok=True)
    mic_out = output_dir / f"{mic.stem}_normalized.wav"
    sys_out = output_dir / f"{sys.stem}_normalized.wav"
    write_pcm16(mic_out, result.mic_samples, sample_rate)
    write_pcm16(sys_out, result.sys_samples, sample_rate)
    return mic_out, sys_out, result


def attribute_paths(
    mic: Path,
    sys: Path,
    correlation_id: str,
    config: AttributionConfig,
    transcript: Path | None = None,
    report_json: Path | None = None,
) -> AttributionReport:
    mic_samples, sys_samples, sample_rate = _load_pair(mic, sys)
    settings = config.activity
    service = _service(config)
    timeline = service.track(
        mic_samples,
        sys_samples,
        sample_rate,
        interval_ms=settings.sample_interval_ms,
        activity_threshold=settings.activity_threshold,
        dominance_ratio=settings.dominance_ratio,
        enabled=settings.enabled,
        correlation_id=correlation_id,
    )

    labeled = None
    if transcript is not None:
        labeled = service.label(transcript.read_text(encoding="utf-8"), timeline)

    report = AttributionReport(
        timeline=timeline,
        summary=summarize_timeline(timeline).as_dict(),
        labeled_transcript=labeled,
    )
    if report_json is not None:
        report_json.parent.mkdir(parents=True, exist_ok=True)
        report_json.write_text(json.dumps(report.as_dict(), indent=2))
    return report


def analysis_as_dict(analysis: TrackAnalysis) -> dict[str, object]:
    payload = asdict(analysis)
    payload["dynamic_range_db"] = analysis.dynamic_range_db
    return payload
