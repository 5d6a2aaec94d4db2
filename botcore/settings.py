"""Settings for the config core itself.

Supports YAML format with environment variable interpolation.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from .codec import ConfigCodec
from .plugins import PluginLoader, PluginRegistry
from .store import ConfigStore, DocumentCache


@dataclass
class StoreSettings:
    """Where documents live and how they are accessed."""
    config_dir: str = "config"
    file_format: str = "yaml"  # yaml | json
    lock_timeout: Optional[float] = None  # seconds; None blocks forever
    cache: bool = True


@dataclass
class PluginSettings:
    """Modules imported at startup to populate the plugin registry."""
    modules: List[str] = field(default_factory=list)


@dataclass
class LoggingSettings:
    log_file: str = "logs/botcore.log"
    log_level: str = "INFO"
    console: bool = True


@dataclass
class BotSettings:
    """Complete settings of the config core."""
    store: StoreSettings = field(default_factory=StoreSettings)
    plugins: PluginSettings = field(default_factory=PluginSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @classmethod
    def from_yaml(cls, settings_path: str) -> "BotSettings":
        """Load settings from YAML file with env var interpolation.

        Args:
            settings_path: Path to YAML settings file

        Returns:
            BotSettings instance

        Example YAML:
            store:
              config_dir: "${BOT_HOME}/config"
              lock_timeout: 5
            plugins:
              modules:
                - acme_bot.adapters
            logging:
              log_level: DEBUG
        """
        settings_file = Path(settings_path)
        if not settings_file.exists():
            raise FileNotFoundError(f"Settings file not found: {settings_path}")

        with settings_file.open("r") as f:
            raw = f.read()

        # Interpolate environment variables: ${VAR_NAME}
        for key, value in os.environ.items():
            raw = raw.replace(f"${{{key}}}", value)

        data = yaml.safe_load(raw) or {}

        store_data = data.get("store", {})
        if store_data.get("file_format", "yaml") not in ("yaml", "json"):
            raise ValueError(f"store.file_format must be 'yaml' or 'json', got {store_data['file_format']!r}")
        if store_data.get("lock_timeout") is not None:
            store_data["lock_timeout"] = float(store_data["lock_timeout"])

        return cls(
            store=StoreSettings(**store_data),
            plugins=PluginSettings(**data.get("plugins", {})),
            logging=LoggingSettings(**data.get("logging", {})),
        )

    def to_yaml(self, output_path: str) -> None:
        """Save settings to YAML file."""
        data = {
            "store": {
                "config_dir": self.store.config_dir,
                "file_format": self.store.file_format,
                "lock_timeout": self.store.lock_timeout,
                "cache": self.store.cache,
            },
            "plugins": {
                "modules": list(self.plugins.modules),
            },
            "logging": {
                "log_file": self.logging.log_file,
                "log_level": self.logging.log_level,
                "console": self.logging.console,
            },
        }

        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with output_file.open("w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def create_store(self) -> ConfigStore:
        return ConfigStore(
            self.store.config_dir,
            codec=ConfigCodec(),
            cache=DocumentCache() if self.store.cache else None,
            file_format=self.store.file_format,
            lock_timeout=self.store.lock_timeout,
        )

    def create_loader(self, registry: Optional[PluginRegistry] = None) -> PluginLoader:
        registry = registry or PluginRegistry()
        registry.import_plugins(self.plugins.modules)
        return PluginLoader(registry)
