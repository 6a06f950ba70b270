"""
Merge execution engine.

Sits between the outer layers (CLI, API, file readers) and the aggregator:
rejects absent arguments, normalizes record values to strings, runs the
aggregation inside a processing context and reports the outcome.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

from .aggregator import ContactAggregator, ContactSummary
from .config_models import NULL_ARGUMENT_MESSAGE, GlobalConfig, MergeProfile, Selectors
from .processing_context import ProcessingContext, ProcessingResult


class MergeEngine:
    """
    Executes contact merges.

    The engine:
    1. Validates that records and selectors are present
    2. Creates a processing context
    3. Groups and finalizes the records
    4. Returns the summaries with a processing report
    """

    def __init__(self, global_config: GlobalConfig | None = None):
        """
        Initialize the merge engine.

        Args:
            global_config: Global configuration
        """
        self.global_config = global_config or GlobalConfig()

    def process(
        self,
        records: Sequence[Mapping[str, Any]] | None,
        selectors: Selectors | MergeProfile | Mapping[str, Any] | None,
        profile_name: str | None = None,
        source_file: str | None = None,
    ) -> tuple[dict[str, ContactSummary], ProcessingResult]:
        """
        Merge records by the configured group key.

        Args:
            records: Input rows in order
            selectors: Selectors, a profile carrying them, or a raw mapping
            profile_name: Profile name for reporting
            source_file: Source filename for tracking

        Returns:
            Tuple of (group key -> summary, ProcessingResult)

        Raises:
            ValueError: If records or selectors are absent
        """
        if records is None:
            raise ValueError(f"records: {NULL_ARGUMENT_MESSAGE}")
        if selectors is None:
            raise ValueError(f"selectors: {NULL_ARGUMENT_MESSAGE}")

        if isinstance(selectors, MergeProfile):
            profile_name = profile_name or selectors.profile.name
            selectors = selectors.selectors
        elif not isinstance(selectors, Selectors):
            selectors = Selectors(**selectors)

        started_at = datetime.now()
        rows = self.normalize_records(records)

        context = ProcessingContext(profile_name=profile_name, source_file=source_file)
        aggregator = ContactAggregator(selectors, context)
        result = aggregator.aggregate(rows)

        return result, context.get_result(
            input_rows=len(rows),
            group_count=len(result),
            started_at=started_at,
            completed_at=datetime.now(),
        )

    @staticmethod
    def normalize_records(
        records: Iterable[Mapping[str, Any]],
    ) -> list[dict[str, str]]:
        """
        Coerce every record to a string -> string mapping.

        Missing values (None or NaN-like floats from spreadsheets) become "".
        """
        rows = []
        for index, record in enumerate(records):
            if record is None:
                raise ValueError(f"records[{index}]: {NULL_ARGUMENT_MESSAGE}")
            rows.append({
                str(name): _to_text(value) for name, value in record.items()
            })
        return rows

    @staticmethod
    def check_columns(columns: Iterable[str], selectors: Selectors) -> list[str]:
        """
        Report selector fields missing from a table header.

        Informational only: merging never requires these fields to exist.

        Returns:
            List of warning messages (empty if all fields are present)
        """
        available = set(columns)
        warnings = []

        named = [
            ("group_by_field", selectors.group_by_field),
            ("code_field", selectors.code_field),
            ("destination_field", selectors.destination_field),
        ]
        named.extend(("label_fields", f) for f in selectors.label_fields)
        named.extend(("variable_fields", f) for f in selectors.variable_fields)

        reported = set()
        for selector, column in named:
            if column in available or (selector, column) in reported:
                continue
            reported.add((selector, column))
            warnings.append(f"Column '{column}' ({selector}) not found; values will be empty")

        return warnings


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value != value:
        return ""
    return str(value)
