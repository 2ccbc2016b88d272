import logging
import os
from dataclasses import dataclass
from typing import Any

import yaml

from kubectl_pxc.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV = "PXC_CONFIG"
DEFAULT_CONFIG_PATH = os.path.join("~", ".pxc", "config.yml")
OUTPUT_FORMATS = ("text", "wide", "json", "yaml")


@dataclass
class Config:
    snapshot: str | None = None
    output: str = "text"
    namespace: str | None = None


def config_path(explicit: str | None = None) -> str:
    return os.path.expanduser(explicit or os.environ.get(CONFIG_ENV) or DEFAULT_CONFIG_PATH)


def load_config(path: str | None = None) -> Config:
    """
    Read the YAML configuration file. A missing file yields defaults unless it
    was asked for explicitly.
    """
    resolved = config_path(path)
    if not os.path.exists(resolved):
        if path:
            raise ConfigError(f"config file {resolved} does not exist")
        return Config()

    try:
        with open(resolved, encoding="utf-8") as f:
            data: Any = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read config file {resolved}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config file {resolved} must be a mapping")

    unknown = set(data) - {"snapshot", "output", "namespace"}
    if unknown:
        raise ConfigError(f"config file {resolved} has unknown keys: {sorted(unknown)}")

    output = data.get("output", "text")
    if output not in OUTPUT_FORMATS:
        raise ConfigError(f"config output must be one of {', '.join(OUTPUT_FORMATS)}")

    snapshot = data.get("snapshot")
    if snapshot:
        snapshot = os.path.expanduser(str(snapshot))

    logger.debug("Loaded config from %s", resolved)
    return Config(snapshot=snapshot, output=output, namespace=data.get("namespace"))
