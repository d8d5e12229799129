"""
loyalty_ai/features/catalog/service.py

Feature catalog.

Handles:
- Default feature configurations (limits, prompts, output kind)
- Limit overrides from settings
- Feature lookup
"""

from typing import Dict, Optional

from loyalty_ai.core.config import Settings, settings as default_settings
from loyalty_ai.core.errors import ValidationError
from loyalty_ai.features.catalog.prompts import (
    CHAT_SYSTEM_PROMPT,
    LOYALTY_TEST_INSTRUCTION,
    LOYALTY_TEST_SYSTEM_PROMPT,
    RED_FLAG_INSTRUCTION,
    RED_FLAG_SYSTEM_PROMPT,
)
from loyalty_ai.models.feature import Feature, FeatureConfig, OutputKind


# Default feature configurations
DEFAULT_FEATURES = {
    Feature.CHAT: {
        "path": "/chat",
        "monthly_limit": 100,
        "system_prompt": CHAT_SYSTEM_PROMPT,
        "user_instruction": None,
        "output": OutputKind.TEXT,
    },
    Feature.LOYALTY_TEST: {
        "path": "/loyalty-test",
        "monthly_limit": 100,
        "system_prompt": LOYALTY_TEST_SYSTEM_PROMPT,
        "user_instruction": LOYALTY_TEST_INSTRUCTION,
        "output": OutputKind.TEXT,
    },
    Feature.RED_FLAG: {
        "path": "/red-flag",
        "monthly_limit": 50,
        "system_prompt": RED_FLAG_SYSTEM_PROMPT,
        "user_instruction": RED_FLAG_INSTRUCTION,
        "output": OutputKind.ANALYSIS,
    },
}

# Settings field overriding each feature's monthly limit
LIMIT_SETTINGS = {
    Feature.CHAT: "CHAT_MONTHLY_LIMIT",
    Feature.LOYALTY_TEST: "LOYALTY_TEST_MONTHLY_LIMIT",
    Feature.RED_FLAG: "RED_FLAG_MONTHLY_LIMIT",
}


class FeatureCatalog:
    """Immutable registry of feature configurations."""

    def __init__(self, features: Dict[Feature, FeatureConfig]):
        self._features = dict(features)

    def get(self, feature) -> FeatureConfig:
        try:
            return self._features[Feature(feature)]
        except (KeyError, ValueError):
            raise ValidationError(f"Unknown feature: {feature}")

    def limits(self) -> Dict[Feature, int]:
        return {key: cfg.monthly_limit for key, cfg in self._features.items()}

    def __iter__(self):
        return iter(self._features.values())

    def __len__(self) -> int:
        return len(self._features)


def build_catalog(settings_obj: Optional[Settings] = None, limits: Optional[Dict[Feature, int]] = None) -> FeatureCatalog:
    """
    Build the feature catalog.

    Args:
        settings_obj: Settings providing monthly limit overrides
        limits: Explicit per-feature limits (take precedence over settings)

    Returns:
        FeatureCatalog with one entry per Feature
    """
    cfg = settings_obj or default_settings
    features: Dict[Feature, FeatureConfig] = {}
    for feature, defaults in DEFAULT_FEATURES.items():
        values = dict(defaults)
        override = getattr(cfg, LIMIT_SETTINGS[feature], None)
        if override is not None:
            values["monthly_limit"] = int(override)
        if limits and feature in limits:
            values["monthly_limit"] = int(limits[feature])
        features[feature] = FeatureConfig(feature=feature, **values)
    return FeatureCatalog(features)
