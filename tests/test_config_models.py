from __future__ import annotations

import json

import pytest

from dualsource.activity import DEFAULT_ACTIVITY_TUNING
from dualsource.normalization import DEFAULT_NORMALIZATION_TUNING
from dualsource.utils.config import (
    ActivityConfig,
    AttributionConfig,
    LevelConfig,
    NormalizationConfig,
    load_attribution_config,
)


def test_defaults_match_core_tunings() -> None:
    config = AttributionConfig()

    assert config.normalization.to_tuning() == DEFAULT_NORMALIZATION_TUNING
    assert config.activity.to_tuning() == DEFAULT_ACTIVITY_TUNING
    assert config.activity.sample_interval_ms == 100
    assert config.activity.activity_threshold == pytest.approx(0.005)
    assert config.normalization.target_rms_db == pytest.approx(-20.0)
    assert config.levels.to_thresholds().silence_threshold_db == pytest.approx(-60.0)


def test_activity_config_rejects_ratio_below_one() -> None:
    with pytest.raises(ValueError):
        ActivityConfig.model_validate({"dominance_ratio": 0.5})


def test_activity_config_rejects_non_positive_interval() -> None:
    with pytest.raises(ValueError):
        ActivityConfig(sample_interval_ms=0)


def test_normalization_config_rejects_positive_attenuation() -> None:
    with pytest.raises(ValueError):
        NormalizationConfig(clipped_attenuation_db=3.0)


def test_level_config_rejects_inverted_thresholds() -> None:
    with pytest.raises(ValueError):
        LevelConfig(clipping_threshold_db=-70.0, silence_threshold_db=-60.0)


def test_level_config_rejects_positive_clipping_threshold() -> None:
    with pytest.raises(ValueError):
        LevelConfig(clipping_threshold_db=0.5)


def test_load_json_config(tmp_path) -> None:
    path = tmp_path / "attribution.json"
    path.write_text(json.dumps({"activity": {"dominance_ratio": 4.0, "debounce_intervals": 3}}))

    config = load_attribution_config(path)

    assert config.activity.dominance_ratio == pytest.approx(4.0)
    assert config.activity.to_tuning().debounce_intervals == 3
    assert config.normalization.enabled is True


def test_load_yaml_config(tmp_path) -> None:
    path = tmp_path / "attribution.yaml"
    path.write_text(
        "normalization:\n"
        "  enabled: false\n"
        "  max_gain_db: 12.0\n"
        "levels:\n"
        "  silence_threshold_db: -50.0\n"
    )

    config = load_attribution_config(path)

    assert config.normalization.enabled is False
    assert config.normalization.to_tuning().max_gain_db == pytest.approx(12.0)
    assert config.levels.silence_threshold_db == pytest.approx(-50.0)


def test_empty_yaml_config_uses_defaults(tmp_path) -> None:
    path = tmp_path / "empty.yml"
    path.write_text("")

    assert load_attribution_config(path) == AttributionConfig()
