"""
Centralized configuration manager.
Loads the YAML config and provides typed access with defaults.

    - Schema validation for critical config fields (warnings only)
    - Defaults merged under whatever the file provides
    - Reset support for testing
"""

import copy
import os
import yaml
import logging

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(
    os.path.abspath(__file__)))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

_DEFAULTS = {
    "recognition": {
        "detection_threshold": 0.5,
        "recognition_threshold": 0.7,
    },
    "network": {
        "weights_path": None,
        "use_placeholder": False,
        "layer_sizes": [256, 128, 64, 32, 5],
        "seed": 0,
    },
    "mlp": {
        "weights_path": None,
        "scaler_path": None,
        "layer_sizes": [126, 128, 64, 4],
        "seed": 0,
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "max_size_mb": 10,
        "backup_count": 3,
    },
}

# Schema: required sections and their expected types
_CONFIG_SCHEMA = {
    "recognition": {
        "detection_threshold": float,
        "recognition_threshold": float,
    },
    "network": {
        "layer_sizes": list,
        "seed": int,
    },
    "mlp": {
        "layer_sizes": list,
        "seed": int,
    },
    "logging": {
        "level": str,
    },
}

# Keys holding file paths; relative values resolve against the config file
_PATH_KEYS = (("network", "weights_path"), ("mlp", "weights_path"), ("mlp", "scaler_path"))


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _schema_problems(data):
    """Yield one message per schema violation in ``data``."""
    for section_name, fields in _CONFIG_SCHEMA.items():
        section = data.get(section_name)
        if section is None:
            yield "Missing config section: '%s'" % section_name
            continue
        if not isinstance(section, dict):
            yield "Section '%s' should be a dict, got %s" % (section_name, type(section).__name__)
            continue
        for field_name, expected in fields.items():
            if field_name not in section:
                continue
            value = section[field_name]
            # ints are fine where floats are expected
            allowed = (int, float) if expected is float else expected
            if not isinstance(value, allowed):
                yield "%s.%s: expected %s, got %s (%r)" % (
                    section_name, field_name, expected.__name__, type(value).__name__, value)


class Config:
    """Singleton configuration manager."""

    _instance = None
    _data = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = copy.deepcopy(_DEFAULTS)
        return cls._instance

    def load(self, config_path=None):
        """Load configuration from a YAML file on top of the defaults."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "config.yaml")

        loaded = {}
        try:
            with open(config_path, "r") as f:
                loaded = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)

        if not isinstance(loaded, dict):
            logger.warning("Config root should be a mapping, got %s; using defaults",
                           type(loaded).__name__)
            loaded = {}

        self._data = _deep_merge(copy.deepcopy(_DEFAULTS), loaded)
        self._resolve_paths(os.path.dirname(os.path.abspath(config_path)))

        # Validate schema
        self._validate()

        return self

    def _resolve_paths(self, config_dir):
        for section, key in _PATH_KEYS:
            values = self._data.get(section)
            if not isinstance(values, dict):
                continue
            value = values.get(key)
            if isinstance(value, str) and value and not os.path.isabs(value):
                values[key] = os.path.normpath(os.path.join(config_dir, value))

    def _validate(self):
        """Check sections against the schema; problems are logged, not raised.

        Returns:
            list of warning messages (empty when the config is clean)
        """
        problems = list(_schema_problems(self._data))
        for problem in problems:
            logger.warning("Config validation: %s", problem)
        if not problems:
            logger.debug("Config validation passed")
        return problems

    def set(self, key_path: str, value):
        """Override a nested value using dot notation: 'recognition.recognition_threshold'."""
        *parents, leaf = key_path.split(".")
        node = self._data
        for key in parents:
            node = node.setdefault(key, {})
        node[leaf] = value

    def get(self, key_path: str, default=None):
        """Nested value by dot notation ('network.seed'), or ``default``."""
        node = self._data
        for key in key_path.split("."):
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        return self._data.get(section, {})

    @property
    def recognition(self) -> dict:
        return self._data.get("recognition", {})

    @property
    def network(self) -> dict:
        return self._data.get("network", {})

    @property
    def mlp(self) -> dict:
        return self._data.get("mlp", {})

    @property
    def logging(self) -> dict:
        return self._data.get("logging", {})

    @property
    def base_dir(self) -> str:
        return _BASE_DIR

    @classmethod
    def reset(cls):
        """Reset singleton instance (for testing)."""
        cls._instance = None
        cls._data = {}
