"""
Analysis Export - Core Models.

============================================================
PURPOSE
============================================================
Define core data models for the multi-dimensional export layer:
- Enriched records and their six analytical dimensions
- Export formats and pipeline stages
- Progress events
- Export metadata and payloads

============================================================
CRITICAL CONSTRAINTS
============================================================
- Records are supplied by the caller and are READ-ONLY
- Metadata is derived once per export and never mutated
- Payloads carry bytes only; delivery is the sink's job

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import hashlib

from .exceptions import UnsupportedFormatError


# ============================================================
# CONSTANTS
# ============================================================

UNDEFINED_LABEL = "Undefined"
"""Sentinel label for a field the upstream classifier could not populate."""

CONFIDENCE_THRESHOLD = 0.6
"""Classification threshold of the generating system, reproduced in every export."""

DATA_RANGE_LABEL = "All available data"

EMOTION_NAMES: Tuple[str, ...] = ("joy", "anger", "fear", "sadness", "disgust")

DIMENSIONS: Tuple[str, ...] = (
    "geographic",
    "demographic",
    "sentiment",
    "topics",
    "engagement",
    "temporal",
)


# ============================================================
# EXPORT FORMATS
# ============================================================

class ExportFormat(Enum):
    """Supported export formats."""
    CSV = "csv"
    JSON = "json"
    PDF = "pdf"
    XLSX = "xlsx"
    PNG = "png"
    SVG = "svg"

    @classmethod
    def parse(cls, value: Any) -> "ExportFormat":
        """Resolve a format from an enum member or a case-insensitive string."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnsupportedFormatError(value, [f.value for f in cls])

    @property
    def is_chart(self) -> bool:
        """Whether this format snapshots a chart instead of the record table."""
        return self in (ExportFormat.PNG, ExportFormat.SVG)

    @property
    def generating_message(self) -> str:
        """Progress message for the generating stage."""
        mapping = {
            "csv": "Generating CSV file...",
            "json": "Generating JSON file...",
            "pdf": "Generating PDF report...",
            "xlsx": "Generating Excel file...",
            "png": "Generating PNG chart...",
            "svg": "Generating SVG chart...",
        }
        return mapping[self.value]


# ============================================================
# PIPELINE STAGES
# ============================================================

class ExportStage(Enum):
    """Stages of a single export invocation."""
    PREPARING = "preparing"
    PROCESSING = "processing"
    GENERATING = "generating"
    DOWNLOADING = "downloading"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def progress_percent(self) -> int:
        """Fixed progress value reported on entering this stage."""
        mapping = {
            "preparing": 0,
            "processing": 25,
            "generating": 50,
            "downloading": 75,
            "complete": 100,
            "error": 0,
        }
        return mapping[self.value]

    @property
    def is_terminal(self) -> bool:
        return self in (ExportStage.COMPLETE, ExportStage.ERROR)


@dataclass(frozen=True)
class ProgressEvent:
    """Progress notification delivered to the caller's callback."""
    stage: ExportStage
    progress_percent: int
    message: str
    estimated_seconds_remaining: Optional[float] = None

    @classmethod
    def for_stage(cls, stage: ExportStage, message: str) -> "ProgressEvent":
        return cls(stage=stage, progress_percent=stage.progress_percent, message=message)


# ============================================================
# GEOGRAPHIC DIMENSION
# ============================================================

@dataclass(frozen=True)
class GeoLevel:
    """One level of the location hierarchy."""
    name: str = UNDEFINED_LABEL
    confidence_score: float = 0.0
    is_undefined: bool = True

    @classmethod
    def undefined(cls) -> "GeoLevel":
        return cls(name=UNDEFINED_LABEL, confidence_score=0.0, is_undefined=True)


@dataclass(frozen=True)
class GeographicHierarchy:
    """Country -> state -> LGA -> ward -> polling unit."""
    country: GeoLevel = field(default_factory=GeoLevel.undefined)
    state: GeoLevel = field(default_factory=GeoLevel.undefined)
    lga: GeoLevel = field(default_factory=GeoLevel.undefined)
    ward: GeoLevel = field(default_factory=GeoLevel.undefined)
    polling_unit: GeoLevel = field(default_factory=GeoLevel.undefined)

    LEVELS = ("country", "state", "lga", "ward", "polling_unit")

    def level(self, name: str) -> GeoLevel:
        """Named level, undefined when missing."""
        return getattr(self, name) or GeoLevel.undefined()

    def levels(self) -> List[GeoLevel]:
        """Levels from coarsest to finest."""
        return [self.level(name) for name in self.LEVELS]


# ============================================================
# DEMOGRAPHIC DIMENSION
# ============================================================

@dataclass(frozen=True)
class DemographicAttribute:
    """A classified demographic attribute."""
    label: str = UNDEFINED_LABEL
    confidence_score: float = 0.0

    @property
    def is_undefined(self) -> bool:
        return self.label == UNDEFINED_LABEL


@dataclass(frozen=True)
class DemographicProfile:
    """Education, occupation, age group and gender classifications."""
    education: DemographicAttribute = field(default_factory=DemographicAttribute)
    occupation: DemographicAttribute = field(default_factory=DemographicAttribute)
    age_group: DemographicAttribute = field(default_factory=DemographicAttribute)
    gender: DemographicAttribute = field(default_factory=DemographicAttribute)

    def attributes(self) -> List[DemographicAttribute]:
        return [
            attribute or DemographicAttribute()
            for attribute in (self.education, self.occupation, self.age_group, self.gender)
        ]

    @property
    def has_undefined(self) -> bool:
        return any(a.is_undefined for a in self.attributes())


# ============================================================
# SENTIMENT / TOPICS / ENGAGEMENT / TEMPORAL
# ============================================================

@dataclass(frozen=True)
class SentimentProfile:
    """Polarity, emotion, intensity and complexity analysis."""
    polarity_label: str = UNDEFINED_LABEL
    polarity_score: float = 0.0  # -1.0 to +1.0
    primary_emotion: str = UNDEFINED_LABEL
    emotion_scores: Dict[str, float] = field(default_factory=dict)
    intensity_label: str = UNDEFINED_LABEL
    intensity_score: float = 0.0
    complexity_label: str = UNDEFINED_LABEL
    model_agreement: float = 0.0


@dataclass(frozen=True)
class TopicProfile:
    """Policy areas, campaign issues and event types."""
    primary_policy_area: str = UNDEFINED_LABEL
    campaign_issues: Tuple[str, ...] = ()
    event_types: Tuple[str, ...] = ()
    trending_score: float = 0.0


@dataclass(frozen=True)
class EngagementProfile:
    """Engagement level, virality and quality."""
    level: str = UNDEFINED_LABEL
    virality_score: float = 0.0
    quality_score: float = 0.0
    influencer_amplified: bool = False


@dataclass(frozen=True)
class TemporalProfile:
    """Activity timing and election cycle phase."""
    peak_hours: Tuple[str, ...] = ()
    active_days: Tuple[str, ...] = ()
    election_phase: str = UNDEFINED_LABEL


@dataclass(frozen=True)
class DataQuality:
    """
    Authoritative per-record quality summary.

    The dimensional confidence scores are descriptive; this is the
    one used for aggregate statistics.
    """
    completeness: float = 0.0
    confidence: float = 0.0
    last_updated: Optional[datetime] = None


# ============================================================
# ENRICHED RECORD
# ============================================================

@dataclass(frozen=True)
class EnrichedRecord:
    """One analysed political entity scored along six dimensions."""
    id: str
    name: str
    party: str = UNDEFINED_LABEL
    position: str = UNDEFINED_LABEL
    region_label: str = UNDEFINED_LABEL

    geographic: Optional[GeographicHierarchy] = None
    demographic: Optional[DemographicProfile] = None
    sentiment: Optional[SentimentProfile] = None
    topics: Optional[TopicProfile] = None
    engagement: Optional[EngagementProfile] = None
    temporal: Optional[TemporalProfile] = None
    data_quality: Optional[DataQuality] = None

    @property
    def quality_confidence(self) -> float:
        return self.data_quality.confidence if self.data_quality else 0.0

    @property
    def has_undefined_fields(self) -> bool:
        """
        Record-level undefined test.

        True when the state level is undefined or any demographic
        label carries the sentinel. Missing dimensions count as undefined.
        """
        if self.geographic is None or self.geographic.level("state").is_undefined:
            return True
        if self.demographic is None:
            return True
        return self.demographic.has_undefined


# ============================================================
# EXPORT METADATA
# ============================================================

@dataclass(frozen=True)
class ExportMetadata:
    """
    Metadata embedded in every export.

    Computed once per invocation from the full record batch.
    """
    generated_date: str
    generated_time: str
    applied_filters: Dict[str, Any]
    total_records: int
    average_quality_score_percent: float
    undefined_data_percent: float
    confidence_threshold: float = CONFIDENCE_THRESHOLD
    data_range: str = DATA_RANGE_LABEL

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation shared by every structured format."""
        return {
            "exportDate": self.generated_date,
            "exportTime": self.generated_time,
            "dataRange": self.data_range,
            "filtersApplied": self.applied_filters,
            "totalRecords": self.total_records,
            "dataQualityScore": self.average_quality_score_percent,
            "confidenceThreshold": self.confidence_threshold,
            "undefinedDataPercentage": self.undefined_data_percent,
        }


# ============================================================
# PAYLOAD
# ============================================================

@dataclass(frozen=True)
class ExportPayload:
    """Serialized output handed to a sink."""
    content: bytes
    content_type: str
    filename: str
    record_count: int = 0

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    @property
    def checksum(self) -> str:
        """SHA-256 checksum of the content."""
        return hashlib.sha256(self.content).hexdigest()

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")


# ============================================================
# CHART INPUT
# ============================================================

@dataclass(frozen=True)
class ChartSource:
    """Rendered chart markup supplied by the chart-rendering collaborator."""
    markup: str
    chart_type: str = "multi-dimensional"


@dataclass(frozen=True)
class ChartOptions:
    """Snapshot options for image exports."""
    width: int = 1920
    height: int = 1080
    quality: float = 1.0
    include_metadata: bool = True
