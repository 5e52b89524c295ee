"""
Export configuration.

Settings come from an optional YAML file layered over built-in defaults,
then over keyword overrides::

    on_projection_error: skip      # or "raise"
    date_format: "yyyy-mm-dd hh:mm:ss"
    temp_dir: null                 # default: the destination's directory
    fsync: true
"""

import os

import yaml

from .errors import ConfigError
from .schema import ON_ERROR_POLICIES

DEFAULTS = {
    "on_projection_error": "raise",
    "date_format": "yyyy-mm-dd hh:mm:ss",
    "temp_dir": None,
    "fsync": True,
}


def load_config(config_path=None, **overrides):
    """Load configuration from a YAML file and apply keyword overrides.

    Parameters
    ----------
    config_path : str or None
        YAML file to read. Missing files are an error; ``None`` means
        defaults only.
    **overrides
        Individual settings that win over the file.

    Returns
    -------
    dict
    """
    config = dict(DEFAULTS)
    if config_path:
        if not os.path.exists(config_path):
            raise ConfigError(f"Config file not found: {config_path}")
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Cannot parse {config_path}: {exc}") from exc
        if not isinstance(user_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping")
        config.update(user_config)
    config.update(overrides)
    validate_config(config)
    return config


def validate_config(config):
    unknown = sorted(set(config) - set(DEFAULTS))
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
    if config["on_projection_error"] not in ON_ERROR_POLICIES:
        raise ConfigError(
            f"on_projection_error must be one of {ON_ERROR_POLICIES}, "
            f"got {config['on_projection_error']!r}"
        )
    if not isinstance(config["date_format"], str) or not config["date_format"]:
        raise ConfigError("date_format must be a non-empty string")
    if config["temp_dir"] is not None and not isinstance(config["temp_dir"], str):
        raise ConfigError("temp_dir must be a path string or null")
    if not isinstance(config["fsync"], bool):
        raise ConfigError("fsync must be true or false")
