"""Per-track gain normalization applied before the microphone and system tracks are merged.

Decision order
--------------
1. Disabled: both tracks pass through untouched.
2. Both tracks silent: nothing to balance, pass through.
3. Both tracks clipped: attenuate each so its peak lands at
   ``clipped_attenuation_db`` and report a warning.
4. Tracks already within ``balance_threshold_db`` of each other: pass through.
5. Otherwise each track is moved towards the target RMS, limited so the
   post-gain peak stays at or below ``-headroom_db`` dBFS and clamped to
   ``+/- max_gain_db``. Recordings shorter than ``short_recording_ms`` are
   anchored on their peak because their RMS estimate is unstable.

Gain is applied with truncation towards zero. A gain of exactly 0 dB returns
the caller's buffer object unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

import numpy as np

from .audio_contract import PCM16_MAX, PCM16_MIN, coerce_samples
from .levels import DEFAULT_LEVEL_THRESHOLDS, LevelThresholds, TrackAnalysis, analyze, db_to_linear

logger = logging.getLogger(__name__)

BALANCE_THRESHOLD_DB = 6.0
MAX_GAIN_DB = 20.0
HEADROOM_DB = 3.0
SHORT_RECORDING_MS = 1000
CLIPPED_ATTENUATION_DB = -6.0
DEFAULT_TARGET_RMS_DB = -20.0

BOTH_CLIPPED_WARNING = "both tracks clipped; attenuated"


@dataclass(frozen=True, slots=True)
class NormalizationTuning:
    """Tunable constants for the merge normalizer."""

    balance_threshold_db: float = BALANCE_THRESHOLD_DB
    max_gain_db: float = MAX_GAIN_DB
    headroom_db: float = HEADROOM_DB
    short_recording_ms: int = SHORT_RECORDING_MS
    clipped_attenuation_db: float = CLIPPED_ATTENUATION_DB


DEFAULT_NORMALIZATION_TUNING = NormalizationTuning()


@dataclass(frozen=True, slots=True)
class NormalizationResult:
    """Adjusted buffers and the gains that produced them."""

    mic_samples: np.ndarray
    sys_samples: np.ndarray
    mic_gain_db: float = 0.0
    sys_gain_db: float = 0.0
    was_processed: bool = False
    warning: str | None = None
    mic_analysis: TrackAnalysis | None = None
    sys_analysis: TrackAnalysis | None = None


def compute_gain(
    analysis: TrackAnalysis,
    target_rms_db: float = DEFAULT_TARGET_RMS_DB,
    tuning: NormalizationTuning = DEFAULT_NORMALIZATION_TUNING,
) -> float:
    """Gain in dB that moves one track towards ``target_rms_db`` without eating headroom."""

    if analysis.is_silent:
        return 0.0

    if analysis.duration_ms < tuning.short_recording_ms:
        desired = (target_rms_db + tuning.headroom_db) - analysis.peak_db
    else:
        desired = target_rms_db - analysis.rms_db

    max_allowed = -tuning.headroom_db - analysis.peak_db
    gain = min(desired, max_allowed)
    return float(np.clip(gain, -tuning.max_gain_db, tuning.max_gain_db))


def apply_gain(samples: np.ndarray, gain_db: float) -> np.ndarray:
    """Scale PCM16 samples by ``gain_db`` with a hard clamp to the int16 range.

    Scaled values are truncated towards zero so no sample ends up louder than
    the exact gain allows.
    """

    if gain_db == 0.0:
        return samples

    array = coerce_samples(samples)
    scaled = np.trunc(array.astype(np.float64) * db_to_linear(gain_db))
    return np.clip(scaled, PCM16_MIN, PCM16_MAX).astype(np.int16)


def _clipping_warning(mic: TrackAnalysis, sys: TrackAnalysis) -> str | None:
    clipped = [name for name, analysis in (("mic", mic), ("system", sys)) if analysis.is_clipped]
    if not clipped:
        return None
    return f"clipping detected on {' and '.join(clipped)} track{'s' if len(clipped) > 1 else ''}"


def _pass_through(
    mic: np.ndarray,
    sys: np.ndarray,
    warning: str | None = None,
    mic_analysis: TrackAnalysis | None = None,
    sys_analysis: TrackAnalysis | None = None,
) -> NormalizationResult:
    return NormalizationResult(
        mic_samples=mic,
        sys_samples=sys,
        was_processed=False,
        warning=warning,
        mic_analysis=mic_analysis,
        sys_analysis=sys_analysis,
    )


def normalize_for_merge(
    mic: np.ndarray,
    sys: np.ndarray,
    sample_rate: int,
    target_rms_db: float = DEFAULT_TARGET_RMS_DB,
    enabled: bool = True,
    tuning: NormalizationTuning = DEFAULT_NORMALIZATION_TUNING,
    thresholds: LevelThresholds = DEFAULT_LEVEL_THRESHOLDS,
) -> NormalizationResult:
    """Decide and apply per-track gain so both tracks reach comparable loudness."""

    if not enabled:
        return _pass_through(mic, sys)

    mic_analysis = analyze(mic, sample_rate, thresholds)
    sys_analysis = analyze(sys, sample_rate, thresholds)
    logger.debug(
        "normalization_analysis mic_rms_db=%.2f mic_peak_db=%.2f sys_rms_db=%.2f sys_peak_db=%.2f",
        mic_analysis.rms_db,
        mic_analysis.peak_db,
        sys_analysis.rms_db,
        sys_analysis.peak_db,
    )

    if mic_analysis.is_silent and sys_analysis.is_silent:
        logger.debug("normalization_skipped reason=both_silent")
        return _pass_through(mic, sys, mic_analysis=mic_analysis, sys_analysis=sys_analysis)

    if mic_analysis.is_clipped and sys_analysis.is_clipped:
        mic_gain_db = tuning.clipped_attenuation_db - mic_analysis.peak_db
        sys_gain_db = tuning.clipped_attenuation_db - sys_analysis.peak_db
        logger.warning("Both tracks clipped; attenuating mic by %.2f dB and system by %.2f dB.", mic_gain_db, sys_gain_db)
        return NormalizationResult(
            mic_samples=apply_gain(mic, mic_gain_db),
            sys_samples=apply_gain(sys, sys_gain_db),
            mic_gain_db=mic_gain_db,
            sys_gain_db=sys_gain_db,
            was_processed=True,
            warning=BOTH_CLIPPED_WARNING,
            mic_analysis=mic_analysis,
            sys_analysis=sys_analysis,
        )

    warning = _clipping_warning(mic_analysis, sys_analysis)

    if abs(mic_analysis.rms_db - sys_analysis.rms_db) < tuning.balance_threshold_db:
        logger.debug("normalization_skipped reason=balanced")
        return _pass_through(mic, sys, warning, mic_analysis, sys_analysis)

    mic_gain_db = compute_gain(mic_analysis, target_rms_db, tuning)
    sys_gain_db = compute_gain(sys_analysis, target_rms_db, tuning)
    logger.info("Normalizing tracks: mic gain %.2f dB, system gain %.2f dB.", mic_gain_db, sys_gain_db)
    if warning:
        logger.warning("Normalization input: %s.", warning)

    return NormalizationResult(
        mic_samples=apply_gain(mic, mic_gain_db),
        sys_samples=apply_gain(sys, sys_gain_db),
        mic_gain_db=mic_gain_db,
        sys_gain_db=sys_gain_db,
        was_processed=True,
        warning=warning,
        mic_analysis=mic_analysis,
        sys_analysis=sys_analysis,
    )
