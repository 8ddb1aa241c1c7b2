"""Error taxonomy shared by adapters, the store layer and the pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .pipeline import IngestionSummary


class ContestRadarError(Exception):
    """Base class for all errors raised by contest_radar."""


class SourceError(ContestRadarError):
    """Failure while fetching or parsing a single external source."""

    retryable = False


class NetworkError(SourceError):
    """Connection, timeout or transient HTTP failure."""

    retryable = True


class ShapeError(SourceError):
    """Response is missing expected fields or failed its status check."""


class ExtractionDriftError(SourceError):
    """Page structure no longer matches the extraction patterns."""


class StoreError(ContestRadarError):
    """Canonical store operation failed."""


class IngestionBusyError(ContestRadarError):
    """An ingestion run is already in progress."""


class IngestionRunError(ContestRadarError):
    """A pipeline step failed against the store."""

    def __init__(self, step: str, summary: "IngestionSummary", message: str) -> None:
        super().__init__(f"{step} failed: {message}")
        self.step = step
        self.summary = summary


__all__ = [
    "ContestRadarError",
    "ExtractionDriftError",
    "IngestionBusyError",
    "IngestionRunError",
    "NetworkError",
    "ShapeError",
    "SourceError",
    "StoreError",
]
