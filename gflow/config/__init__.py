"""Configuration Management Package"""

import json
import os
import sys
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from gflow import DEFAULT_TRUNK, DEFAULT_INTEGRATION
from gflow.flow.branches import BranchNaming
from gflow.version import VALID_SOURCES as VALID_VERSION_SOURCES

# Environment variable -> config field
ENV_OVERRIDES = {
    "GFLOW_TRUNK": "trunk_branch",
    "GFLOW_INTEGRATION": "integration_branch",
    "GFLOW_REMOTE": "remote",
    "GFLOW_VERSION_SOURCE": "version_source",
}


@dataclass
class Config:
    """User configuration with sensible defaults."""
    trunk_branch: str = DEFAULT_TRUNK
    integration_branch: str = DEFAULT_INTEGRATION
    feature_prefix: str = "feature"
    release_prefix: str = "release"
    hotfix_prefix: str = "hotfix"
    remote: str = "origin"
    version_source: str = "auto"
    strict_versions: bool = True  # release/hotfix names must be Major.Minor.Patch
    delete_remote_branches: bool = False
    tag_message: str = "Version {version}"

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def naming(self) -> BranchNaming:
        return BranchNaming(
            trunk=self.trunk_branch,
            integration=self.integration_branch,
            feature_prefix=self.feature_prefix,
            release_prefix=self.release_prefix,
            hotfix_prefix=self.hotfix_prefix,
            strict_versions=self.strict_versions,
        )

    def validate(self) -> list[str]:
        """Validate config values and return list of warnings.

        Invalid values are replaced with defaults after warning.
        """
        warnings = []
        defaults = Config()

        for name in ("trunk_branch", "integration_branch", "feature_prefix",
                     "release_prefix", "hotfix_prefix", "remote"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip() or ' ' in value.strip():
                warnings.append(f"Invalid {name} '{value}', using '{getattr(defaults, name)}'")
                setattr(self, name, getattr(defaults, name))

        if self.trunk_branch == self.integration_branch:
            warnings.append(f"trunk_branch and integration_branch are both '{self.trunk_branch}', using defaults")
            self.trunk_branch = defaults.trunk_branch
            self.integration_branch = defaults.integration_branch

        prefixes = [self.feature_prefix, self.release_prefix, self.hotfix_prefix]
        if len(set(prefixes)) != len(prefixes) or any('/' in p for p in prefixes):
            warnings.append(f"Branch prefixes must be distinct and contain no '/', using defaults")
            self.feature_prefix = defaults.feature_prefix
            self.release_prefix = defaults.release_prefix
            self.hotfix_prefix = defaults.hotfix_prefix

        if self.version_source not in VALID_VERSION_SOURCES:
            warnings.append(f"Invalid version_source '{self.version_source}', using '{defaults.version_source}'")
            self.version_source = defaults.version_source

        if '{version}' not in str(self.tag_message):
            warnings.append(f"tag_message must contain '{{version}}', using '{defaults.tag_message}'")
            self.tag_message = defaults.tag_message

        return warnings

    def apply_env(self, environ=None) -> 'Config':
        """Apply GFLOW_* environment overrides in place."""
        environ = os.environ if environ is None else environ
        for var, field_name in ENV_OVERRIDES.items():
            value = environ.get(var)
            if value:
                setattr(self, field_name, value)
        return self

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        config = cls(**filtered)
        # Validate and print warnings to stderr
        for warning in config.validate():
            print(f"Config warning: {warning}", file=sys.stderr)
        return config


class ConfigManager:
    """Manages loading and saving configuration."""

    CONFIG_FILENAME = ".gflowrc"

    def __init__(self):
        self._config: Optional[Config] = None
        self._config_path: Optional[Path] = None

    def load(self) -> Config:
        if self._config is not None:
            return self._config

        local_path = Path.cwd() / self.CONFIG_FILENAME
        if local_path.exists():
            self._config = self._load_from_file(local_path)
            self._config_path = local_path
            return self._config

        home_path = Path.home() / self.CONFIG_FILENAME
        if home_path.exists():
            self._config = self._load_from_file(home_path)
            self._config_path = home_path
            return self._config

        self._config = Config()
        return self._config

    def _load_from_file(self, path: Path) -> Config:
        try:
            with open(path, 'r') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            return Config.from_dict(data)
        except (json.JSONDecodeError, ValueError, IOError) as e:
            print(f"Warning: Could not load {path}: {e}", file=sys.stderr)
            return Config()

    def save(self, config: Config, global_config: bool = True) -> Path:
        path = Path.home() / self.CONFIG_FILENAME if global_config else Path.cwd() / self.CONFIG_FILENAME
        with open(path, 'w') as f:
            json.dump(config.to_dict(), f, indent=2)
        return path

    def get_config_path(self) -> Optional[Path]:
        return self._config_path


_manager = ConfigManager()


def load_config() -> Config:
    return _manager.load()


def save_config(config: Config, global_config: bool = True) -> Path:
    return _manager.save(config, global_config)


def get_config_path() -> Optional[Path]:
    return _manager.get_config_path()


__all__ = [
    "Config",
    "ConfigManager",
    "load_config",
    "save_config",
    "get_config_path",
    "VALID_VERSION_SOURCES",
    "ENV_OVERRIDES",
]
