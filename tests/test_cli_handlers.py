from pathlib import Path
import json

import pytest

from helpers import SAMPLE_RATE, constant_rms_track
from dualsource.activity import ActivitySegment, Source
from dualsource.audio_contract import InvalidInputError
from dualsource.interfaces import cli_handlers
from dualsource.io.pcm_file import write_pcm16
from dualsource.utils.config import AttributionConfig


def test_attribute_paths_rejects_mismatched_sample_rates(tmp_path: Path) -> None:
    mic = tmp_path / "mic.wav"
    sys = tmp_path / "sys.wav"
    write_pcm16(mic, constant_rms_track(0.1, 500), SAMPLE_RATE)
    write_pcm16(sys, constant_rms_track(0.1, 500, 8_000), 8_000)

    with pytest.raises(InvalidInputError) as excinfo:
        cli_handlers.attribute_paths(mic, sys, correlation_id="corr", config=AttributionConfig())

    assert excinfo.value.code == "invalid_sample_rate"


def test_normalize_paths_honours_override(tmp_path: Path) -> None:
    mic = tmp_path / "mic.wav"
    sys = tmp_path / "sys.wav"
    write_pcm16(mic, constant_rms_track(0.01, 2000), SAMPLE_RATE)
    write_pcm16(sys, constant_rms_track(0.01, 2000), SAMPLE_RATE)

    _, _, result = cli_handlers.normalize_paths(
        mic,
        sys,
        tmp_path / "out",
        correlation_id="corr",
        config=AttributionConfig(),
        target_rms_db=-30.0,
    )

    assert result.was_processed is False
    assert result.mic_gain_db == 0.0


def test_resolve_config_reads_file(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"activity": {"sample_interval_ms": 50}}))

    assert cli_handlers.resolve_config(None) == AttributionConfig()
    assert cli_handlers.resolve_config(path).activity.sample_interval_ms == 50


def test_analysis_as_dict_includes_dynamic_range(tmp_path: Path) -> None:
    path = tmp_path / "track.wav"
    write_pcm16(path, constant_rms_track(0.1, 200), SAMPLE_RATE)

    payload = cli_handlers.analysis_as_dict(cli_handlers.analyze_path(path, AttributionConfig()))

    assert payload["sample_count"] == 3200
    assert payload["dynamic_range_db"] == pytest.approx(0.0)


def test_attribute_paths_skips_tracking_when_disabled(tmp_path: Path) -> None:
    mic = tmp_path / "mic.wav"
    sys = tmp_path / "sys.wav"
    write_pcm16(mic, constant_rms_track(0.1, 500), SAMPLE_RATE)
    write_pcm16(sys, constant_rms_track(0.0, 500), SAMPLE_RATE)
    config = AttributionConfig.model_validate({"activity": {"enabled": False}})

    report = cli_handlers.attribute_paths(mic, sys, correlation_id="corr", config=config)

    assert report.timeline == [ActivitySegment(0, 500, Source.BOTH)]
    assert report.summary["both_ratio"] == 1.0
