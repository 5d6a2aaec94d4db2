from pathlib import Path

import pytest

from botcore.documents import DocumentType
from botcore.settings import BotSettings
from botcore.store import DocumentCache


def test_defaults():
    settings = BotSettings()
    assert settings.store.config_dir == "config"
    assert settings.store.file_format == "yaml"
    assert settings.store.lock_timeout is None
    assert settings.plugins.modules == []
    assert settings.logging.log_level == "INFO"


def test_from_yaml_interpolates_env(tmp_path: Path, monkeypatch):
    """${VAR} placeholders are replaced from the environment."""
    monkeypatch.setenv("BOT_HOME", str(tmp_path))
    settings_file = tmp_path / "botcore.yaml"
    settings_file.write_text(
        "store:\n"
        "  config_dir: ${BOT_HOME}/config\n"
        "  file_format: json\n"
        "  lock_timeout: 5\n"
        "plugins:\n"
        "  modules:\n"
        "    - sample_plugins\n"
        "logging:\n"
        "  log_level: DEBUG\n"
    )

    settings = BotSettings.from_yaml(str(settings_file))
    assert settings.store.config_dir == f"{tmp_path}/config"
    assert settings.store.file_format == "json"
    assert settings.store.lock_timeout == 5.0
    assert settings.plugins.modules == ["sample_plugins"]
    assert settings.logging.log_level == "DEBUG"


def test_missing_settings_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        BotSettings.from_yaml(str(tmp_path / "missing.yaml"))


def test_bad_file_format(tmp_path: Path):
    settings_file = tmp_path / "botcore.yaml"
    settings_file.write_text("store:\n  file_format: toml\n")
    with pytest.raises(ValueError):
        BotSettings.from_yaml(str(settings_file))


def test_to_yaml_round_trip(tmp_path: Path):
    settings = BotSettings()
    settings.store.lock_timeout = 2.5
    settings.plugins.modules = ["acme_bot.plugins"]
    out = tmp_path / "nested" / "botcore.yaml"
    settings.to_yaml(str(out))

    loaded = BotSettings.from_yaml(str(out))
    assert loaded == settings


def test_create_store_and_loader(tmp_path: Path):
    settings = BotSettings()
    settings.store.config_dir = str(tmp_path)
    settings.store.file_format = "json"
    settings.plugins.modules = ["sample_plugins"]

    store = settings.create_store()
    assert isinstance(store.cache, DocumentCache)
    assert store.path_for(DocumentType.ENGINE) == tmp_path / "engine.json"

    loader = settings.create_loader()
    assert "sample.RecordingStrategy" in loader.registry

    settings.store.cache = False
    assert settings.create_store().cache is None
