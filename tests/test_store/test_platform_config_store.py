"""Tests for PlatformConfigStore: defaults, partial updates and health."""

from __future__ import annotations

import pytest

from app.core.exceptions import UnknownPlatformError
from app.schemas.platform import PlatformConfigSave, PlatformConfigUpdate, PlatformSettings
from app.services.registry import PLATFORMS
from app.services.store.platform_configs import PlatformConfigStore


class TestDefaults:
    def test_unconfigured_platform_is_disabled_sandboxed_keyless(
        self, config_store: PlatformConfigStore
    ):
        config = config_store.get_config("u1", "kiwify")

        assert config.id == "kiwify"
        assert config.name == "Kiwify"
        assert config.enabled is False
        assert config.sandbox is True
        assert config.api_key == ""
        assert config.secret_key == ""
        assert config.settings == PlatformSettings()

    def test_all_configs_cover_the_catalog_in_order(self, config_store: PlatformConfigStore):
        config_store.update_config("u1", "hubla", {"enabled": True})

        configs = config_store.get_all_configs("u1")

        assert [c.id for c in configs] == [p.id for p in PLATFORMS]
        assert {c.id for c in configs if c.enabled} == {"hubla"}

    def test_configs_are_per_user(self, config_store: PlatformConfigStore):
        config_store.update_config("u1", "hubla", {"enabled": True})
        assert config_store.get_config("u2", "hubla").enabled is False

    def test_unknown_platform(self, config_store: PlatformConfigStore):
        with pytest.raises(UnknownPlatformError):
            config_store.get_config("u1", "paypal")
        with pytest.raises(UnknownPlatformError):
            config_store.update_config("u1", "paypal", {"enabled": True})


class TestUpdateConfig:
    def test_toggle_touches_only_enabled(self, config_store: PlatformConfigStore):
        config_store.save_config(
            "u1",
            "doppus",
            PlatformConfigSave(api_key="k", secret_key="s", sandbox=False),
        )

        config = config_store.update_config("u1", "doppus", {"enabled": True})

        assert config.enabled is True
        assert config.api_key == "k"
        assert config.secret_key == "s"
        assert config.sandbox is False

    def test_update_model_ignores_unset_fields(self, config_store: PlatformConfigStore):
        config_store.update_config("u1", "pepper", {"api_key": "k1", "webhook_url": "https://a"})
        config = config_store.update_config(
            "u1", "pepper", PlatformConfigUpdate(webhook_url="https://b")
        )
        assert config.api_key == "k1"
        assert config.webhook_url == "https://b"

    def test_explicit_null_does_not_clear_credentials(self, config_store: PlatformConfigStore):
        config_store.update_config("u1", "pepper", {"api_key": "k1"})
        config = config_store.update_config("u1", "pepper", {"api_key": None, "webhook_url": None})
        assert config.api_key == "k1"
        assert config.webhook_url is None

    def test_settings_update(self, config_store: PlatformConfigStore):
        config = config_store.update_config(
            "u1", "clickbank", {"settings": {"currencies": ["USD"], "test_mode": False}}
        )
        assert config.settings.currencies == ["USD"]
        assert config.settings.test_mode is False
        assert config.settings.countries == ["BR"]


class TestSaveConfig:
    def test_save_replaces_credentials(self, config_store: PlatformConfigStore):
        config_store.save_config("u1", "appmax", PlatformConfigSave(api_key="old", secret_key="s"))
        config = config_store.save_config(
            "u1",
            "appmax",
            PlatformConfigSave(api_key="new", secret_key="s2", enabled=True, webhook_secret="wh"),
        )

        assert config.api_key == "new"
        assert config.secret_key == "s2"
        assert config.enabled is True
        assert config.webhook_secret == "wh"

    def test_integration_view(self, config_store: PlatformConfigStore):
        config_store.save_config("u1", "appmax", PlatformConfigSave(api_key="k", secret_key="s"))

        integration = config_store.get_integration("u1", "appmax")

        assert integration.platform.name == "Appmax"
        assert integration.config.api_key == "k"
        assert integration.enabled is False
        assert integration.sandbox is True


class TestRecordHealth:
    def test_success_and_failure(self, config_store: PlatformConfigStore):
        ok = config_store.record_health("u1", "nitro", ok=True, latency_ms=120.5)
        assert ok.status.is_active is True
        assert ok.status.latency == 120.5
        assert ok.status.errors == 0
        assert ok.status.last_checked is not None

        failed = config_store.record_health("u1", "nitro", ok=False, latency_ms=15000.0)
        assert failed.status.is_active is False
        assert failed.status.errors == 1

    def test_health_does_not_enable_platform(self, config_store: PlatformConfigStore):
        config = config_store.record_health("u1", "nitro", ok=True, latency_ms=1.0)
        assert config.enabled is False
