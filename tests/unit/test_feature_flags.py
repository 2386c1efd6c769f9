import pytest

from tourcrm.utils.feature_flags import (
    FeatureFlagKey,
    auto_conversion_enabled,
    get_feature_flags,
    is_feature_enabled,
    refresh_feature_flag_cache,
)

_ENV_FLAG_MAPPING = {
    "FEATURE_BITRIX_SYNC_ENABLED": "bitrix_sync_enabled",
    "FEATURE_AUTO_CONVERSION_ENABLED": "auto_conversion_enabled",
    "FEATURE_PUBLIC_FORMS_ENABLED": "public_forms_enabled",
    "FEATURE_AUTO_ARCHIVE_ENABLED": "auto_archive_enabled",
}


def test_get_feature_flags_defaults_true():
    assert get_feature_flags() == {
        "bitrix_sync_enabled": True,
        "auto_conversion_enabled": True,
        "public_forms_enabled": True,
        "auto_archive_enabled": True,
    }


@pytest.mark.parametrize(
    "env_name,flag_key",
    list(_ENV_FLAG_MAPPING.items()),
)
def test_individual_flag_disabled_via_env(monkeypatch, env_name: str, flag_key: FeatureFlagKey):
    monkeypatch.setenv(env_name, "false")
    refresh_feature_flag_cache()

    flags = get_feature_flags()
    assert flags[flag_key] is False
    assert is_feature_enabled(flag_key) is False


@pytest.mark.parametrize("raw_value", ["maybe", "junk", "2", None])
def test_invalid_value_falls_back_to_default(monkeypatch, raw_value):
    env_name = "FEATURE_AUTO_CONVERSION_ENABLED"
    if raw_value is None:
        monkeypatch.delenv(env_name, raising=False)
    else:
        monkeypatch.setenv(env_name, raw_value)
    refresh_feature_flag_cache()

    assert auto_conversion_enabled() is True


def test_values_are_cached_until_refresh(monkeypatch):
    assert auto_conversion_enabled() is True
    monkeypatch.setenv("FEATURE_AUTO_CONVERSION_ENABLED", "off")
    assert auto_conversion_enabled() is True
    refresh_feature_flag_cache()
    assert auto_conversion_enabled() is False
