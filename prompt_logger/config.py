import copy
import logging
import os

import yaml

logger = logging.getLogger(__name__)

TOKEN_ENV = "PROMPT_LOGGER_TOKEN"


class Config:
    """Configuration manager that loads from YAML and merges with defaults."""

    DEFAULTS = {
        "extension": {
            "name": "prompt-logger",
        },
        "store": {
            "transport": "local",
            "root_dir": "./data",
            "log_path": "logs/prompt_logs.jsonl",
        },
        "remote": {
            "base_url": "http://127.0.0.1:8000",
            "token": None,
            "csrf_header": "X-CSRF-Token",
            "timeout": 30.0,
        },
        "settings": {
            "path": "./data/settings.json",
            "debounce_seconds": 1.0,
        },
        "capture": {
            "events": ["message_sent"],
        },
        "export": {
            "dir": ".",
        },
        "server": {
            "host": "127.0.0.1",
            "port": 8000,
            "root_dir": "./data",
            "token": None,
            "debug": False,
        },
        "logging": {
            "level": "INFO",
        },
    }

    def __init__(self, config_path=None):
        self._config = copy.deepcopy(self.DEFAULTS)

        if config_path is not None:
            try:
                with open(config_path, "r") as f:
                    user_config = yaml.safe_load(f)

                if user_config and isinstance(user_config, dict):
                    self._config = self._deep_merge(self._config, user_config)
            except FileNotFoundError:
                logger.debug("Config file %s not found, using defaults", config_path)
            except yaml.YAMLError:
                logger.warning("Invalid YAML in %s, using defaults", config_path)

        token = os.environ.get(TOKEN_ENV)
        if token:
            self._config["remote"]["token"] = token
            self._config["server"]["token"] = token

    @classmethod
    def from_env(cls):
        """Load from ``CONFIG_PATH`` (default ``config.yaml``)."""
        return cls(os.environ.get("CONFIG_PATH", "config.yaml"))

    @staticmethod
    def _deep_merge(base, override):
        """Recursively merge override dict into base dict."""
        result = copy.deepcopy(base)
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = Config._deep_merge(result[key], value)
            else:
                result[key] = copy.deepcopy(value)
        return result

    def get(self, key, default=None):
        """Get a top-level config key."""
        return self._config.get(key, default)

    def __getitem__(self, key):
        return self._config[key]

    def __contains__(self, key):
        return key in self._config
