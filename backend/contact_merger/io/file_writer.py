"""File writer for merge results."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping

import yaml

from ..core.config_models import OutputConfig, OutputFormat

if TYPE_CHECKING:
    from ..core.aggregator import ContactSummary


class FileWriter:
    """
    Writes merge results to JSON or YAML.

    Supports:
    - Files on disk
    - In-memory bytes for downloads
    - Output filename templating
    """

    def __init__(self, output_config: OutputConfig | None = None):
        """
        Initialize the writer.

        Args:
            output_config: Output configuration (uses defaults if None)
        """
        self.config = output_config or OutputConfig()

    @staticmethod
    def to_payload(result: Mapping[str, ContactSummary]) -> dict[str, Any]:
        """Convert summaries to plain dictionaries."""
        return {key: summary.to_dict() for key, summary in result.items()}

    def dumps(
        self,
        result: Mapping[str, ContactSummary],
        output_format: OutputFormat | str | None = None,
    ) -> str:
        """Serialize a result to text."""
        output_format = OutputFormat(output_format or self.config.format)
        payload = self.to_payload(result)

        if output_format == OutputFormat.YAML:
            return yaml.safe_dump(
                payload,
                default_flow_style=False,
                sort_keys=self.config.sort_keys,
                allow_unicode=True,
                indent=self.config.indent or None,
            )

        if self.config.sort_keys:
            # Only group keys are sorted; label order inside a group is significant
            payload = dict(sorted(payload.items()))
        return json.dumps(payload, indent=self.config.indent or None, ensure_ascii=False) + "\n"

    def write(
        self,
        result: Mapping[str, ContactSummary],
        output_path: str | Path,
        output_format: OutputFormat | str | None = None,
    ) -> str:
        """
        Write a result to a file.

        Args:
            result: Group key -> summary
            output_path: Path to output file
            output_format: json or yaml (overrides config)

        Returns:
            Path to written file
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        output_path.write_text(
            self.dumps(result, output_format), encoding=self.config.encoding
        )

        return str(output_path)

    def write_bytes(
        self,
        result: Mapping[str, ContactSummary],
        output_format: OutputFormat | str | None = None,
    ) -> bytes:
        """Serialize a result to bytes (for downloads)."""
        return self.dumps(result, output_format).encode(self.config.encoding)

    def format_filename(
        self,
        profile_name: str,
        stem: str,
        template: str | None = None,
        output_format: OutputFormat | str | None = None,
    ) -> str:
        """
        Format output filename using template.

        Args:
            profile_name: Profile name
            stem: Input filename without extension
            template: Filename template (overrides config)
            output_format: Format whose extension fills {ext} (overrides config)

        Returns:
            Formatted filename
        """
        template = template or self.config.filename_template
        ext = OutputFormat(output_format or self.config.format).value
        return template.format(profile=profile_name, stem=stem, ext=ext)
