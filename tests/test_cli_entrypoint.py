from __future__ import annotations

import json

import numpy as np
import soundfile as sf
from typer.testing import CliRunner

from helpers import SAMPLE_RATE, constant_rms_track
from dualsource.cli import app
from dualsource.io.pcm_file import read_pcm16, write_pcm16

runner = CliRunner()


def _write_pair(tmp_path, mic: np.ndarray, sys: np.ndarray):
    mic_path = tmp_path / "mic.wav"
    sys_path = tmp_path / "sys.wav"
    write_pcm16(mic_path, mic, SAMPLE_RATE)
    write_pcm16(sys_path, sys, SAMPLE_RATE)
    return mic_path, sys_path


def test_attribute_prints_timeline(tmp_path) -> None:
    mic = constant_rms_track(0.1, 1000)
    mic_path, sys_path = _write_pair(tmp_path, mic, np.zeros_like(mic))
    report_path = tmp_path / "reports" / "report.json"

    result = runner.invoke(
        app,
        ["attribute", "--mic", str(mic_path), "--sys", str(sys_path), "--report-json", str(report_path)],
    )

    assert result.exit_code == 0, result.output
    assert "[0-1000ms: USER]" in result.output
    assert "BOTH ratio: 0.00%" in result.output
    report = json.loads(report_path.read_text())
    assert report["timeline"] == [{"start_ms": 0, "end_ms": 1000, "source": "user"}]
    assert report["labeled_transcript"] is None


def test_attribute_labels_transcript(tmp_path) -> None:
    mic = constant_rms_track(0.1, 1000)
    mic_path, sys_path = _write_pair(tmp_path, mic, np.zeros_like(mic))
    transcript = tmp_path / "transcript.txt"
    transcript.write_text("hello from the mic", encoding="utf-8")

    result = runner.invoke(
        app, ["attribute", "-m", str(mic_path), "-s", str(sys_path), "--transcript", str(transcript)]
    )

    assert result.exit_code == 0, result.output
    assert "[User]: hello from the mic" in result.output


def test_normalize_writes_tracks(tmp_path) -> None:
    mic_path, sys_path = _write_pair(tmp_path, constant_rms_track(0.01, 2000), constant_rms_track(0.1, 2000))
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app, ["normalize", "--mic", str(mic_path), "--sys", str(sys_path), "--out-dir", str(out_dir)]
    )

    assert result.exit_code == 0, result.output
    assert "Processed: True" in result.output
    normalized, sample_rate = read_pcm16(out_dir / "mic_normalized.wav")
    assert sample_rate == SAMPLE_RATE
    assert np.abs(normalized).max() > np.abs(constant_rms_track(0.01, 2000)).max()
    assert (out_dir / "sys_normalized.wav").exists()


def test_normalize_disabled_passes_through(tmp_path) -> None:
    mic = constant_rms_track(0.01, 2000)
    mic_path, sys_path = _write_pair(tmp_path, mic, constant_rms_track(0.1, 2000))
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app, ["normalize", "-m", str(mic_path), "-s", str(sys_path), "-o", str(out_dir), "--disabled"]
    )

    assert result.exit_code == 0, result.output
    assert "Processed: False" in result.output
    np.testing.assert_array_equal(read_pcm16(out_dir / "mic_normalized.wav")[0], mic)


def test_analyze_prints_json(tmp_path) -> None:
    path = tmp_path / "track.wav"
    write_pcm16(path, constant_rms_track(0.1, 500), SAMPLE_RATE)

    result = runner.invoke(app, ["analyze", str(path)])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["duration_ms"] == 500
    assert payload["is_clipped"] is False
    assert payload["is_silent"] is False
    assert payload["rms_db"] == payload["peak_db"]


def test_stereo_input_exits_with_code_two(tmp_path) -> None:
    stereo = tmp_path / "stereo.wav"
    sf.write(stereo, np.zeros((1600, 2), dtype=np.int16), SAMPLE_RATE, subtype="PCM_16")
    mono = tmp_path / "mono.wav"
    write_pcm16(mono, constant_rms_track(0.1, 100), SAMPLE_RATE)

    result = runner.invoke(app, ["attribute", "--mic", str(stereo), "--sys", str(mono)])

    assert result.exit_code == 2


def test_unknown_log_level_is_a_usage_error(tmp_path) -> None:
    path = tmp_path / "track.wav"
    write_pcm16(path, constant_rms_track(0.1, 200), SAMPLE_RATE)

    rejected = runner.invoke(app, ["--log-level", "chatty", "analyze", str(path)])
    accepted = runner.invoke(app, ["--log-level", "debug", "analyze", str(path)])

    assert rejected.exit_code == 2
    assert rejected.exception is None or isinstance(rejected.exception, SystemExit)
    assert accepted.exit_code == 0, accepted.output
