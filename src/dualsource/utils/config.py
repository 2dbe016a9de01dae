from __future__ import annotations

from pathlib import Path

import json

from pydantic import BaseModel, Field, field_validator, model_validator

from dualsource.activity import (
    BOTH_SMOOTHING_MAX_MS,
    DEBOUNCE_INTERVALS,
    DEFAULT_ACTIVITY_THRESHOLD,
    DEFAULT_DOMINANCE_RATIO,
    DEFAULT_SAMPLE_INTERVAL_MS,
    MIN_RMS_FOR_RATIO,
    ActivityTuning,
)
from dualsource.levels import CLIPPING_THRESHOLD_DB, SILENCE_THRESHOLD_DB, LevelThresholds
from dualsource.normalization import (
    BALANCE_THRESHOLD_DB,
    CLIPPED_ATTENUATION_DB,
    DEFAULT_TARGET_RMS_DB,
    HEADROOM_DB,
    MAX_GAIN_DB,
    SHORT_RECORDING_MS,
    NormalizationTuning,
)


class LevelConfig(BaseModel):
    clipping_threshold_db: float = Field(CLIPPING_THRESHOLD_DB, le=0.0)
    silence_threshold_db: float = Field(SILENCE_THRESHOLD_DB, le=0.0)

    @model_validator(mode="after")
    def _validate_order(self) -> "LevelConfig":
        if self.silence_threshold_db >= self.clipping_threshold_db:
            raise ValueError("silence_threshold_db must be below clipping_threshold_db.")
        return self

    def to_thresholds(self) -> LevelThresholds:
        return LevelThresholds(
            clipping_threshold_db=self.clipping_threshold_db,
            silence_threshold_db=self.silence_threshold_db,
        )


class NormalizationConfig(BaseModel):
    enabled: bool = True
    target_rms_db: float = Field(DEFAULT_TARGET_RMS_DB, le=0.0)
    balance_threshold_db: float = Field(BALANCE_THRESHOLD_DB, ge=0.0)
    max_gain_db: float = Field(MAX_GAIN_DB, ge=0.0, le=60.0)
    headroom_db: float = Field(HEADROOM_DB, ge=0.0)
    short_recording_ms: int = Field(SHORT_RECORDING_MS, ge=0)
    clipped_attenuation_db: float = Field(CLIPPED_ATTENUATION_DB)

    @field_validator("clipped_attenuation_db")
    @classmethod
    def _validate_clipped_attenuation(cls, value: float) -> float:
        if value > 0.0:
            raise ValueError("clipped_attenuation_db must be <= 0.0.")
        return value

    def to_tuning(self) -> NormalizationTuning:
        return NormalizationTuning(
            balance_threshold_db=self.balance_threshold_db,
            max_gain_db=self.max_gain_db,
            headroom_db=self.headroom_db,
            short_recording_ms=self.short_recording_ms,
            clipped_attenuation_db=self.clipped_attenuation_db,
        )


class ActivityConfig(BaseModel):
    enabled: bool = True
    sample_interval_ms: int = Field(DEFAULT_SAMPLE_INTERVAL_MS, gt=0)
    activity_threshold: float = Field(DEFAULT_ACTIVITY_THRESHOLD, ge=0.0, le=1.0)
    dominance_ratio: float = Field(DEFAULT_DOMINANCE_RATIO, ge=1.0)
    min_rms_for_ratio: float = Field(MIN_RMS_FOR_RATIO, gt=0.0)
    both_smoothing_max_ms: int = Field(BOTH_SMOOTHING_MAX_MS, ge=0)
    debounce_intervals: int = Field(DEBOUNCE_INTERVALS, ge=0)

    def to_tuning(self) -> ActivityTuning:
        return ActivityTuning(
            min_rms_for_ratio=self.min_rms_for_ratio,
            both_smoothing_max_ms=self.both_smoothing_max_ms,
            debounce_intervals=self.debounce_intervals,
        )


class AttributionConfig(BaseModel):
    levels: LevelConfig = Field(default_factory=LevelConfig)
    normalization: NormalizationConfig = Field(default_factory=NormalizationConfig)
    activity: ActivityConfig = Field(default_factory=ActivityConfig)


def load_attribution_config(path: Path) -> AttributionConfig:
    data = _load_config_data(path)
    return AttributionConfig.model_validate(data)


def _load_config_data(path: Path) -> dict:
    if path.suffix.lower() in {".yaml", ".yml"}:
        try:
            import yaml
        except ImportError as exc:
            raise ImportError("PyYAML is required to load YAML configs.") from exc

        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}

    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)
