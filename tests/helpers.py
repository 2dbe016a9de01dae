"""Signal builders shared by the test modules."""

import numpy as np

SAMPLE_RATE = 16_000


def constant_rms_track(rms: float, duration_ms: int, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Alternating +/-A square wave, so every window has RMS (and peak) ``A``."""

    frames = duration_ms * sample_rate // 1000
    amplitude = int(round(rms * 32768.0))
    signs = np.where(np.arange(frames) % 2 == 0, 1, -1)
    return (signs * amplitude).astype(np.int16)


def level_pattern(levels: list[float], interval_ms: int = 100, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Concatenate one constant-RMS window per entry in ``levels``."""

    return np.concatenate([constant_rms_track(level, interval_ms, sample_rate) for level in levels])

