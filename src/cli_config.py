"""Settings for a migration run, merged from defaults, YAML, environment and CLI.

Precedence, lowest to highest: ``Constants`` defaults, the YAML config file,
``CARRYOVER_*`` environment variables, command-line flags.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional

import yaml

from constants import Constants
from errors import ConfigError

logger = logging.getLogger(__name__)

ENV_OVERRIDES = {
    "CARRYOVER_REGISTRY_URL": "registry_url",
    "CARRYOVER_RELEASE_INDEX_URL": "release_index_url",
    "CARRYOVER_FNM_BIN": "fnm_bin",
    "CARRYOVER_NPM_BIN": "npm_bin",
    "CARRYOVER_NODE_BIN": "node_bin",
}

# CLI dest -> settings field
CLI_OVERRIDES = {
    "TARGET": "target",
    "REMOVE_OLD": "remove_old",
    "FORCE_UPGRADE": "force_upgrade",
    "REGISTRY_URL": "registry_url",
    "RELEASE_INDEX_URL": "release_index_url",
    "VERSION_MANAGER": "version_manager",
}


@dataclass
class MigrationSettings:
    """Resolved configuration of one run."""

    target: str = Constants.LATEST_LTS
    remove_old: bool = False
    force_upgrade: bool = True
    exclude: List[str] = field(default_factory=list)
    version_manager: str = Constants.SUPPORTED_VERSION_MANAGERS[0]
    registry_url: str = Constants.REGISTRY_URL_NPM
    release_index_url: str = Constants.RELEASE_INDEX_URL_NODE
    npm_bin: str = Constants.NPM_BIN
    node_bin: str = Constants.NODE_BIN
    fnm_bin: str = Constants.FNM_BIN

    def update(self, values: Mapping[str, Any], source: str) -> None:
        """Apply ``values`` onto the settings, validating names and types."""
        known = {f.name: f for f in fields(self)}
        for key, value in values.items():
            if key not in known:
                raise ConfigError(f"Unknown setting '{key}' in {source}")
            current = getattr(self, key)
            if isinstance(current, bool):
                if not isinstance(value, bool):
                    raise ConfigError(f"Setting '{key}' in {source} must be true or false")
            elif isinstance(current, list):
                if isinstance(value, str):
                    value = [value]
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    raise ConfigError(f"Setting '{key}' in {source} must be a list of names")
            elif not isinstance(value, str) or not value.strip():
                raise ConfigError(f"Setting '{key}' in {source} must be a non-empty string")
            setattr(self, key, value)
        if self.version_manager not in Constants.SUPPORTED_VERSION_MANAGERS:
            raise ConfigError(f"Unsupported version manager '{self.version_manager}'")


def load_config_file(config_path: Optional[str]) -> Dict[str, Any]:
    """Load the settings mapping from a YAML file.

    A top-level ``carryover:`` section is used when present, otherwise the
    whole document.
    """
    if not config_path:
        return {}
    if not os.path.isfile(config_path):
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config {config_path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    section = data.get(Constants.CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigError(f"'{Constants.CONFIG_SECTION}' section in {config_path} must be a mapping")
    return section


def env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    environ = os.environ if environ is None else environ
    return {
        setting: environ[var].strip()
        for var, setting in ENV_OVERRIDES.items()
        if environ.get(var, "").strip()
    }


def build_settings(args, environ: Optional[Mapping[str, str]] = None) -> MigrationSettings:
    """Merge every configuration source into a ``MigrationSettings``.

    Raises:
        ConfigError: On unreadable files, unknown keys or wrongly typed values.
    """
    settings = MigrationSettings()
    config_path = getattr(args, "CONFIG", None)
    file_values = load_config_file(config_path)
    if file_values:
        settings.update(file_values, source=config_path)
        logger.info("Loaded config from: %s", config_path)

    settings.update(env_overrides(environ), source="environment")

    cli_values = {
        setting: getattr(args, dest)
        for dest, setting in CLI_OVERRIDES.items()
        if getattr(args, dest, None) is not None
    }
    settings.update(cli_values, source="command line")

    extra_excludes = getattr(args, "EXCLUDE", None) or []
    settings.exclude = list(dict.fromkeys([*settings.exclude, *extra_excludes]))
    return settings
