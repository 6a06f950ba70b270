"""
Contact aggregation.

Groups flat string records by a key field and merges each group into a
summary of deduplicated labels, last-seen variables and unique destinations.

Aggregation runs in two passes:
1. ``group`` walks the records in input order and appends every
   contribution to a per-key accumulator (nothing is deduplicated yet)
2. ``finalize`` turns the accumulators into summaries

Ingestion is sequential, so accumulators are never shared between writers
and no locking is needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Hashable, Iterable, Mapping, Sequence, TypeVar

if TYPE_CHECKING:
    from .config_models import Selectors
    from .processing_context import ProcessingContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Destination:
    """A (code, destination) pair attached to a contact."""

    code: str
    destination: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"code": self.code, "destination": self.destination}


def destination_key(dest: Destination) -> Hashable:
    """
    Deduplication key for destinations.

    Only the destination value is compared, so two rows sharing a
    destination but carrying different codes collapse into the first one.
    """
    # TODO: key on (dest.code, dest.destination) once callers accept
    # several codes per destination
    return dest.destination


def unique_elements(items: Iterable[T], key=None) -> list[T]:
    """Return items with duplicates removed, keeping first-seen order."""
    seen: set = set()
    unique: list[T] = []
    for item in items:
        marker = key(item) if key else item
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(item)
    return unique


@dataclass
class GroupAccumulator:
    """Everything contributed to one group key, in input order."""

    key: str
    labels: list[str] = field(default_factory=list)
    destinations: list[Destination] = field(default_factory=list)
    variables: dict[str, str] = field(default_factory=dict)
    row_indices: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class ContactSummary:
    """Merged view of a single contact."""

    labels: tuple[str, ...]
    destinations: tuple[Destination, ...]
    variables: Mapping[str, str]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "labels": list(self.labels),
            "variables": dict(self.variables),
            "destinations": [d.to_dict() for d in self.destinations],
        }


class ContactAggregator:
    """
    Merges records that share a group key.

    Diagnostics (blank keys, overwritten variables) go to the optional
    processing context; the aggregator itself never raises for well-formed
    input.
    """

    def __init__(
        self,
        selectors: Selectors,
        context: ProcessingContext | None = None,
    ):
        """
        Initialize the aggregator.

        Args:
            selectors: Field selectors for this run
            context: Processing context receiving diagnostics
        """
        self.selectors = selectors
        self.context = context

    def aggregate(
        self, records: Sequence[Mapping[str, str]]
    ) -> dict[str, ContactSummary]:
        """Group and finalize in one call."""
        return self.finalize(self.group(records))

    def group(
        self, records: Sequence[Mapping[str, str]]
    ) -> dict[str, GroupAccumulator]:
        """
        Accumulate records per group key.

        Args:
            records: Records in input order

        Returns:
            Dictionary of group key -> accumulator
        """
        groups: dict[str, GroupAccumulator] = {}

        for index, record in enumerate(records):
            raw_key = record.get(self.selectors.group_by_field, "")
            key = raw_key.strip()
            if not key:
                self._warn(
                    "Record has empty group key, skipping",
                    column=self.selectors.group_by_field,
                    original_value=raw_key,
                    row_index=index,
                )
                if self.context is not None:
                    self.context.skip_row(index)
                continue

            accumulator = groups.get(key)
            if accumulator is None:
                accumulator = GroupAccumulator(key=key)
                groups[key] = accumulator

            self._contribute(accumulator, record, index)

        return groups

    def _contribute(
        self, accumulator: GroupAccumulator, record: Mapping[str, str], index: int
    ) -> None:
        """Append one record's labels, destination and variables."""
        accumulator.row_indices.append(index)

        accumulator.labels.extend(
            record.get(name, "") for name in self.selectors.label_fields
        )

        accumulator.destinations.append(
            Destination(
                code=record.get(self.selectors.code_field, ""),
                destination=record.get(self.selectors.destination_field, ""),
            )
        )

        for name in self.selectors.variable_fields:
            value = record.get(name, "")
            previous = accumulator.variables.get(name)
            if previous is not None and previous != value:
                self._warn(
                    f"Variable '{name}' already set for '{accumulator.key}', overwriting",
                    column=name,
                    original_value=value,
                    row_index=index,
                    details={"group": accumulator.key, "previous": previous},
                )
            accumulator.variables[name] = value

    def finalize(
        self, groups: Mapping[str, GroupAccumulator]
    ) -> dict[str, ContactSummary]:
        """Build summaries from accumulators without modifying them."""
        return {key: self.summarize(acc) for key, acc in groups.items()}

    @staticmethod
    def summarize(accumulator: GroupAccumulator) -> ContactSummary:
        """Deduplicate a single accumulator."""
        return ContactSummary(
            labels=tuple(unique_elements(accumulator.labels)),
            destinations=tuple(
                unique_elements(accumulator.destinations, key=destination_key)
            ),
            variables=dict(accumulator.variables),
        )

    def _warn(self, message: str, **kwargs: Any) -> None:
        if self.context is not None:
            self.context.add_warning(message, **kwargs)
            return
        logger.warning(
            "%s (row=%s column=%s value=%r)",
            message,
            kwargs.get("row_index"),
            kwargs.get("column"),
            kwargs.get("original_value"),
        )
