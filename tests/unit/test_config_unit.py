"""Unit tests for ConfigManager."""

from pathlib import Path

import yaml

from cliphistory.utils import ConfigManager


def test_defaults_present(config: ConfigManager) -> None:
    """A missing user file leaves the default store limits in place."""
    assert config.get("stores.text.enabled") is True
    assert config.get("stores.image.enabled") is False
    assert config.get("stores.text.max_size") == 5120
    assert config.get("app.query_return_limit") == 25
    assert config.validate()


def test_dotted_get_missing_returns_default(config: ConfigManager) -> None:
    """Unknown keys fall back to the supplied default."""
    assert config.get("stores.video.max_size", 7) == 7
    assert config.get("app.logging.level") is None


def test_set_creates_nested_keys(config: ConfigManager) -> None:
    """set() builds intermediate dictionaries."""
    config.set("ui.theme.name", "dark")

    assert config.get("ui.theme.name") == "dark"


def test_user_file_merges_over_defaults(tmp_path: Path) -> None:
    """User settings override only the keys they name."""
    settings = tmp_path / "settings.yaml"
    settings.write_text(yaml.safe_dump({"stores": {"image": {"enabled": True}}}), encoding="utf-8")

    config = ConfigManager(config_path=str(settings))

    assert config.get("stores.image.enabled") is True
    assert config.get("stores.image.max_size") == 5120
    assert config.get("stores.text.enabled") is True


def test_save_round_trips(tmp_path: Path) -> None:
    """Saved settings are loaded by a new manager."""
    settings = tmp_path / "nested" / "settings.yaml"
    config = ConfigManager(config_path=str(settings))
    config.set("app.query_return_limit", 50)

    assert config.save()

    reloaded = ConfigManager(config_path=str(settings))
    assert reloaded.get("app.query_return_limit") == 50


def test_validate_rejects_bad_values(config: ConfigManager) -> None:
    """Out of range values fail validation."""
    config.set("app.check_interval", 10)
    assert not config.validate()

    config.reset()
    config.set("stores.text.max_size", 0)
    assert not config.validate()

    config.reset()
    config.set("app.query_return_limit", 0)
    assert not config.validate()


def test_get_all_is_a_copy(config: ConfigManager) -> None:
    """Mutating the exported dict does not change the configuration."""
    exported = config.get_all()
    exported["stores"]["text"]["enabled"] = False

    assert config.get("stores.text.enabled") is True
