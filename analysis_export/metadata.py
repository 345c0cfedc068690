"""
Analysis Export - Metadata Calculator.

Derives the export-wide statistics that every format embeds:
record count, average quality score and undefined-data percentage.
The text helpers below are the only place these numbers are turned
into strings, so every format prints them identically.
"""

from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence
import logging

from .exceptions import EmptyBatchError
from .models import (
    CONFIDENCE_THRESHOLD,
    DATA_RANGE_LABEL,
    EnrichedRecord,
    ExportMetadata,
)


logger = logging.getLogger(__name__)


Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MetadataCalculator:
    """Computes ExportMetadata from a record batch."""

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or _utc_now

    def compute(
        self,
        records: Sequence[EnrichedRecord],
        filters: Optional[Mapping[str, Any]] = None,
    ) -> ExportMetadata:
        """
        Compute metadata for a non-empty batch.

        Raises:
            EmptyBatchError: if records is empty
        """
        total = len(records)
        if total == 0:
            raise EmptyBatchError()

        average_confidence = sum(r.quality_confidence for r in records) / total
        undefined_count = sum(1 for r in records if r.has_undefined_fields)

        now = self._clock()
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)

        metadata = ExportMetadata(
            generated_date=now.strftime("%Y-%m-%d"),
            generated_time=now.strftime("%H:%M:%S"),
            applied_filters=deepcopy(dict(filters or {})),
            total_records=total,
            average_quality_score_percent=average_confidence * 100,
            undefined_data_percent=100 * undefined_count / total,
            confidence_threshold=CONFIDENCE_THRESHOLD,
        )

        logger.debug(
            "Computed metadata: records=%d quality=%.2f undefined=%.1f%%",
            total,
            metadata.average_quality_score_percent,
            metadata.undefined_data_percent,
        )
        return metadata


# ============================================================
# SHARED TEXT RENDERING
# ============================================================

def format_quality_score(metadata: ExportMetadata) -> str:
    return f"{metadata.average_quality_score_percent:.2f}"


def format_undefined_percent(metadata: ExportMetadata) -> str:
    return f"{metadata.undefined_data_percent:.1f}%"


def format_threshold(metadata: ExportMetadata) -> str:
    return f"{metadata.confidence_threshold:g}"


def metadata_comment_lines(metadata: ExportMetadata) -> List[str]:
    """Trailing '#' block appended after tabular data."""
    return [
        "# Export Metadata",
        f"# Export Date: {metadata.generated_date}",
        f"# Total Records: {metadata.total_records}",
        f"# Data Quality Score: {format_quality_score(metadata)}",
        f"# Confidence Threshold: {format_threshold(metadata)}",
        f"# Undefined Data: {format_undefined_percent(metadata)}",
    ]


def chart_metadata_lines(metadata: ExportMetadata) -> List[str]:
    """Short block embedded in chart snapshots."""
    return [
        f"Export Date: {metadata.generated_date}",
        f"Total Records: {metadata.total_records}",
        f"Data Quality Score: {format_quality_score(metadata)}",
    ]


def create_metadata_calculator(clock: Optional[Clock] = None) -> MetadataCalculator:
    """Create a metadata calculator."""
    return MetadataCalculator(clock=clock)


def metadata_from_dict(data: Dict[str, Any]) -> ExportMetadata:
    """Rebuild metadata from its wire representation."""
    return ExportMetadata(
        generated_date=data["exportDate"],
        generated_time=data["exportTime"],
        applied_filters=dict(data.get("filtersApplied") or {}),
        total_records=int(data["totalRecords"]),
        average_quality_score_percent=float(data["dataQualityScore"]),
        undefined_data_percent=float(data["undefinedDataPercentage"]),
        confidence_threshold=float(data.get("confidenceThreshold", CONFIDENCE_THRESHOLD)),
        data_range=data.get("dataRange", DATA_RANGE_LABEL),
    )
