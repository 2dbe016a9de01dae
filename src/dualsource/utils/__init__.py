from .config import (
    ActivityConfig,
    AttributionConfig,
    LevelConfig,
    NormalizationConfig,
    load_attribution_config,
)

__all__ = [
    "ActivityConfig",
    "AttributionConfig",
    "LevelConfig",
    "NormalizationConfig",
    "load_attribution_config",
]
