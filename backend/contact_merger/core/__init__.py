"""Core configuration and merge components."""

from .aggregator import (
    ContactAggregator,
    ContactSummary,
    Destination,
    GroupAccumulator,
    destination_key,
    unique_elements,
)
from .config_models import (
    GlobalConfig,
    LoggingConfig,
    MergeProfile,
    OutputConfig,
    OutputFormat,
    ProfileInfo,
    Selectors,
)
from .config_loader import ConfigLoader
from .merge_engine import MergeEngine
from .processing_context import ProcessingContext, ProcessingResult, RowError

__all__ = [
    "ContactAggregator",
    "ContactSummary",
    "Destination",
    "GroupAccumulator",
    "destination_key",
    "unique_elements",
    "GlobalConfig",
    "LoggingConfig",
    "MergeProfile",
    "OutputConfig",
    "OutputFormat",
    "ProfileInfo",
    "Selectors",
    "ConfigLoader",
    "MergeEngine",
    "ProcessingContext",
    "ProcessingResult",
    "RowError",
]
