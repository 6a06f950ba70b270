"""Profile detection from filenames."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.config_models import MergeProfile


class ProfileDetector:
    """
    Detects the merge profile for a file using configured patterns.

    Matching is case-insensitive; longer patterns win so that
    "CONTACTS_EU" is preferred over "CONTACTS".
    """

    def __init__(self, profiles: dict[str, MergeProfile]):
        """
        Initialize the detector.

        Args:
            profiles: Dictionary of profile name -> config
        """
        self.profiles = profiles
        self._build_pattern_index()

    def _build_pattern_index(self) -> None:
        """Build an index of patterns to profile names."""
        self._pattern_index: dict[str, str] = {}

        for profile_name, config in self.profiles.items():
            for pattern in config.filename_patterns:
                self._pattern_index.setdefault(pattern.upper(), profile_name)

    def detect(self, filename: str) -> str | None:
        """
        Detect profile from filename.

        Args:
            filename: Filename (with or without path)

        Returns:
            Profile name if detected, None otherwise
        """
        # Get just the filename without path
        filename_only = filename.split("/")[-1].split("\\")[-1]
        filename_upper = filename_only.upper()

        for pattern in sorted(self._pattern_index, key=len, reverse=True):
            if pattern and pattern in filename_upper:
                profile_name = self._pattern_index[pattern]
                config = self.profiles.get(profile_name)
                if config and config.profile.enabled:
                    return profile_name

        return None

    def detect_all(self, filenames: list[str]) -> dict[str, str | None]:
        """Detect profiles for multiple filenames."""
        return {filename: self.detect(filename) for filename in filenames}

    def list_enabled_profiles(self) -> list[str]:
        """List all enabled profiles."""
        return [
            name for name, config in self.profiles.items()
            if config.profile.enabled
        ]
