import logging
import os
from string import Template

import yaml

DEFAULTS = {
    "chart_path": ".",
    "namespace": "monitoring",
    "release": "test-release",
    "values": "",
    "output": "yaml",
    "log_level": "INFO",
    "helm_binary": "helm",
}


def get_log_level_descriptor(log_level) -> int:
    if log_level:
        level = getattr(logging, str(log_level).upper(), None)
        if not isinstance(level, int):
            raise ValueError(f"unknown log level: {log_level}")
        return level
    return logging.INFO


def load_run_config(config: str | None) -> dict:
    """Reads the optional YAML run config, expanding ${VAR} from the environment."""
    run_config = dict(DEFAULTS)
    if not config:
        return run_config
    with open(config, "r") as stream:
        config_template = Template(stream.read())
        config_string = config_template.safe_substitute(**os.environ)
    try:
        loaded = yaml.safe_load(config_string)
    except yaml.YAMLError as e:
        raise ValueError(f"invalid config {config}: {e}") from e
    if loaded is None:
        return run_config
    if not isinstance(loaded, dict):
        raise ValueError(f"config {config} must be a mapping")
    for key, value in loaded.items():
        if key not in DEFAULTS:
            raise ValueError(f"unknown config key: {key}")
        if value is not None:
            run_config[key] = value
    return run_config


def resolve(option, run_config: dict, key: str):
    """Command-line value wins over config, config over defaults."""
    if option is not None:
        return option
    return run_config.get(key, DEFAULTS[key])
