"""
Configuration loader for YAML-based configs.

Handles loading, validation, and caching of global and profile configurations.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config_models import GlobalConfig, MergeProfile

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    Loads and manages configuration from YAML files.

    Supports:
    - Global config from global_config.yaml
    - Merge profiles from profiles/*.yaml
    - In-memory config updates for API
    """

    def __init__(self, config_dir: str | Path | None = None):
        """
        Initialize the config loader.

        Args:
            config_dir: Path to config directory. Defaults to ./config
        """
        if config_dir is None:
            # Default to config dir relative to this file's package
            config_dir = Path(__file__).parent.parent.parent / "config"

        self.config_dir = Path(config_dir)
        self._global_config: GlobalConfig | None = None
        self._profiles: dict[str, MergeProfile] = {}

    @property
    def profiles_dir(self) -> Path:
        return self.config_dir / "profiles"

    @property
    def global_config(self) -> GlobalConfig:
        """Get the global configuration (lazy loaded)."""
        if self._global_config is None:
            self._global_config = self._load_global_config()
        return self._global_config

    def _load_global_config(self) -> GlobalConfig:
        """Load global configuration from YAML file."""
        config_path = self.config_dir / "global_config.yaml"

        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
            return GlobalConfig(**data)

        # Return defaults if no config file exists
        return GlobalConfig()

    def _candidate_paths(self, profile_name: str) -> list[Path]:
        lowered = profile_name.lower()
        patterns = dict.fromkeys([
            f"{lowered}.yaml",
            f"{lowered.replace(' ', '_')}.yaml",
            f"{lowered.replace(' ', '-')}.yaml",
        ])
        return [self.profiles_dir / pattern for pattern in patterns]

    def get_profile(self, profile_name: str) -> MergeProfile | None:
        """
        Get configuration for a specific profile.

        Args:
            profile_name: Profile name to load config for

        Returns:
            MergeProfile if found, None otherwise
        """
        if profile_name in self._profiles:
            return self._profiles[profile_name]

        config = self._load_profile(profile_name)
        if config:
            self._profiles[profile_name] = config

        return config

    def _load_profile(self, profile_name: str) -> MergeProfile | None:
        """Load profile configuration from YAML file."""
        if not self.profiles_dir.exists():
            return None

        for config_path in self._candidate_paths(profile_name):
            if config_path.exists():
                with open(config_path) as f:
                    data = yaml.safe_load(f) or {}
                return MergeProfile(**data)

        return None

    def load_all_profiles(self) -> dict[str, MergeProfile]:
        """Load all profile configurations, skipping invalid files."""
        if not self.profiles_dir.exists():
            return {}

        configs = {}
        for path in sorted(self.profiles_dir.glob("*.yaml")):
            try:
                with open(path) as f:
                    data = yaml.safe_load(f) or {}
                config = MergeProfile(**data)
            except (OSError, yaml.YAMLError, ValidationError, TypeError) as e:
                logger.warning("Failed to load profile %s: %s", path, e)
                continue
            configs[config.profile.name] = config
            self._profiles[config.profile.name] = config

        return configs

    def list_profiles(self) -> list[str]:
        """List all available profile names."""
        return sorted(self.load_all_profiles())

    def save_global_config(self, config: GlobalConfig) -> None:
        """Save global configuration to YAML file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        config_path = self.config_dir / "global_config.yaml"

        data = config.model_dump(mode="json", exclude_none=True)
        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        self._global_config = config

    def save_profile(self, config: MergeProfile) -> None:
        """Save profile configuration to YAML file."""
        self.profiles_dir.mkdir(parents=True, exist_ok=True)

        filename = config.profile.name.lower().replace(" ", "_") + ".yaml"
        config_path = self.profiles_dir / filename

        data = config.model_dump(mode="json", exclude_none=True)
        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        self._profiles[config.profile.name] = config

    def delete_profile(self, profile_name: str) -> bool:
        """Delete a profile configuration file."""
        deleted = False
        for config_path in self._candidate_paths(profile_name):
            if config_path.exists():
                config_path.unlink()
                deleted = True

        self._profiles.pop(profile_name, None)

        return deleted

    def update_global_config(self, updates: dict[str, Any]) -> GlobalConfig:
        """Update global configuration with partial data."""
        current = self.global_config.model_dump(mode="json")
        current.update(updates)
        new_config = GlobalConfig(**current)
        self.save_global_config(new_config)
        return new_config

    def reload(self) -> None:
        """Reload all configurations from disk."""
        self._global_config = None
        self._profiles = {}
