"""Feature flag helpers for runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Literal, TypedDict, cast


FeatureFlagKey = Literal[
    "bitrix_sync_enabled",
    "auto_conversion_enabled",
    "public_forms_enabled",
    "auto_archive_enabled",
]


class FeatureFlagValues(TypedDict):
    bitrix_sync_enabled: bool
    auto_conversion_enabled: bool
    public_forms_enabled: bool
    auto_archive_enabled: bool


@dataclass(frozen=True)
class FeatureFlagDefinition:
    env_var: str
    default: bool


_FEATURE_FLAG_DEFINITIONS: Dict[FeatureFlagKey, FeatureFlagDefinition] = {
    "bitrix_sync_enabled": FeatureFlagDefinition("FEATURE_BITRIX_SYNC_ENABLED", True),
    "auto_conversion_enabled": FeatureFlagDefinition("FEATURE_AUTO_CONVERSION_ENABLED", True),
    "public_forms_enabled": FeatureFlagDefinition("FEATURE_PUBLIC_FORMS_ENABLED", True),
    "auto_archive_enabled": FeatureFlagDefinition("FEATURE_AUTO_ARCHIVE_ENABLED", True),
}


def _normalize_bool(value: str | None, default: bool = True) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


@lru_cache(maxsize=None)
def get_feature_flags() -> FeatureFlagValues:
    """Return the cached feature flag state sourced from the environment."""
    values: Dict[FeatureFlagKey, bool] = {}
    for key, definition in _FEATURE_FLAG_DEFINITIONS.items():
        values[key] = _normalize_bool(os.getenv(definition.env_var), default=definition.default)
    return cast(FeatureFlagValues, values)


def is_feature_enabled(flag: FeatureFlagKey) -> bool:
    return get_feature_flags()[flag]


def bitrix_sync_enabled() -> bool:
    """Global toggle for outbound Bitrix24 calls."""
    return is_feature_enabled("bitrix_sync_enabled")


def auto_conversion_enabled() -> bool:
    """Convert leads into contacts/deals as soon as they get an event."""
    return is_feature_enabled("auto_conversion_enabled")


def public_forms_enabled() -> bool:
    return is_feature_enabled("public_forms_enabled")


def auto_archive_enabled() -> bool:
    """Archive finished events when the event list is requested."""
    return is_feature_enabled("auto_archive_enabled")


def refresh_feature_flag_cache() -> None:
    """Invalidate cached feature flag values (useful for tests)."""
    get_feature_flags.cache_clear()
