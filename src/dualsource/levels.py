"""Level analysis primitives for mono 16-bit PCM tracks."""

from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np

from .audio_contract import PCM16_FULL_SCALE, InvalidInputError, coerce_samples, ensure_sample_rate

MIN_LINEAR_LEVEL = 1e-10
CLIPPING_THRESHOLD_DB = -0.1
SILENCE_THRESHOLD_DB = -60.0


@dataclass(frozen=True, slots=True)
class LevelThresholds:
    """Thresholds that turn raw levels into clipped/silent flags."""

    clipping_threshold_db: float = CLIPPING_THRESHOLD_DB
    silence_threshold_db: float = SILENCE_THRESHOLD_DB


DEFAULT_LEVEL_THRESHOLDS = LevelThresholds()


@dataclass(frozen=True, slots=True)
class TrackAnalysis:
    """Loudness metrics extracted from a single track."""

    rms_db: float
    peak_db: float
    duration_ms: int
    is_clipped: bool
    is_silent: bool
    rms_linear: float = 0.0
    peak_linear: float = 0.0
    sample_count: int = 0

    @property
    def dynamic_range_db(self) -> float:
        return self.peak_db - self.rms_db


def linear_to_db(value: float) -> float:
    return float(20.0 * math.log10(max(value, MIN_LINEAR_LEVEL)))


def db_to_linear(value_db: float) -> float:
    return float(10.0 ** (value_db / 20.0))


def rms_linear(samples: np.ndarray) -> float:
    """RMS amplitude normalized to full scale (0.0-1.0)."""

    array = coerce_samples(samples)
    mean_square = float(np.mean(np.square(array, dtype=np.float64)))
    return math.sqrt(mean_square) / PCM16_FULL_SCALE


def peak_linear(samples: np.ndarray) -> float:
    array = coerce_samples(samples)
    return float(np.max(np.abs(array.astype(np.int64)))) / PCM16_FULL_SCALE


def duration_ms(sample_count: int, sample_rate: int) -> int:
    return int(sample_count) * 1000 // ensure_sample_rate(sample_rate)


def analyze(
    samples: np.ndarray,
    sample_rate: int,
    thresholds: LevelThresholds = DEFAULT_LEVEL_THRESHOLDS,
) -> TrackAnalysis:
    """Compute RMS/peak levels and derived flags for one PCM buffer."""

    array = coerce_samples(samples)
    sample_rate = ensure_sample_rate(sample_rate)

    rms = rms_linear(array)
    peak = peak_linear(array)
    rms_db = linear_to_db(rms)
    peak_db = linear_to_db(peak)

    return TrackAnalysis(
        rms_db=rms_db,
        peak_db=peak_db,
        duration_ms=duration_ms(array.size, sample_rate),
        is_clipped=peak_db >= thresholds.clipping_threshold_db,
        is_silent=rms_db < thresholds.silence_threshold_db,
        rms_linear=rms,
        peak_linear=peak,
        sample_count=int(array.size),
    )


def window_starts(total_samples: int, sample_rate: int, interval_ms: int) -> np.ndarray:
    """First sample index of every ``interval_ms`` window covering ``total_samples``.

    Boundaries are derived from milliseconds so windows never drift when a window
    does not hold a whole number of samples.
    """

    sample_rate = ensure_sample_rate(sample_rate)
    if interval_ms <= 0:
        raise InvalidInputError("invalid_interval", f"Interval must be positive, got {interval_ms} ms.")
    step = int(interval_ms) * sample_rate
    if step < 1000:
        raise InvalidInputError(
            "invalid_interval",
            f"A {interval_ms} ms interval holds less than one sample at {sample_rate} Hz.",
        )
    window_count = -(-int(total_samples) * 1000 // step)
    return (np.arange(window_count, dtype=np.int64) * step) // 1000


def window_rms(
    samples: np.ndarray,
    sample_rate: int,
    interval_ms: int,
    total_samples: int | None = None,
) -> np.ndarray:
    """Linear RMS per window; samples past the end of the track count as silence."""

    array = coerce_samples(samples)
    total = array.size if total_samples is None else int(total_samples)
    if total < array.size:
        raise InvalidInputError("invalid_interval", "Padded length cannot be shorter than the track.")

    starts = window_starts(total, sample_rate, interval_ms)
    counts = np.diff(np.append(starts, total))

    squares = np.square(array, dtype=np.float64)
    in_track = starts[starts < array.size]
    sums = np.zeros(starts.size, dtype=np.float64)
    sums[: in_track.size] = np.add.reduceat(squares, in_track)

    return np.sqrt(sums / counts) / PCM16_FULL_SCALE
