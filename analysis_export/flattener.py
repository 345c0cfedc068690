"""
Analysis Export - Dimension Flattener.

============================================================
PURPOSE
============================================================
Project one EnrichedRecord into a flat, format-agnostic row:
identity + the six dimensions + data quality, 42 scalar fields
in a fixed order shared by every serializer.

============================================================
RULES
============================================================
- Flattening is pure and total; it never raises
- Missing numbers become 0.0
- Missing labels become "Undefined"
- Missing lists become ""
- List items are joined with "; " ("\\;" inside an item)

============================================================
"""

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union
import csv
import io
import logging

from .models import (
    EMOTION_NAMES,
    UNDEFINED_LABEL,
    DemographicAttribute,
    EnrichedRecord,
    GeoLevel,
)


logger = logging.getLogger(__name__)


LIST_SEPARATOR = "; "


# ============================================================
# FIELD TABLE
# ============================================================

@dataclass(frozen=True)
class FieldSpec:
    """One column of the flattened row."""
    attr: str    # FlatRow attribute
    header: str  # CSV header
    key: str     # JSON key
    kind: str    # "text", "score", "flag", "list", "timestamp"


FIELD_SPECS: List[FieldSpec] = [
    # Identity
    FieldSpec("id", "ID", "id", "text"),
    FieldSpec("name", "Name", "name", "text"),
    FieldSpec("party", "Party", "party", "text"),
    FieldSpec("position", "Position", "position", "text"),
    FieldSpec("region_label", "State", "regionLabel", "text"),
    # Geographic
    FieldSpec("country", "Country", "country", "text"),
    FieldSpec("state", "State_Detail", "state", "text"),
    FieldSpec("lga", "LGA", "lga", "text"),
    FieldSpec("ward", "Ward", "ward", "text"),
    FieldSpec("polling_unit", "Polling_Unit", "pollingUnit", "text"),
    FieldSpec("geographic_confidence", "Geographic_Confidence", "geographicConfidence", "score"),
    # Demographic
    FieldSpec("education", "Education", "education", "text"),
    FieldSpec("occupation", "Occupation", "occupation", "text"),
    FieldSpec("age_group", "Age_Group", "ageGroup", "text"),
    FieldSpec("gender", "Gender", "gender", "text"),
    FieldSpec("demographic_confidence", "Demographic_Confidence", "demographicConfidence", "score"),
    # Sentiment
    FieldSpec("polarity", "Polarity", "polarity", "text"),
    FieldSpec("polarity_score", "Polarity_Score", "polarityScore", "score"),
    FieldSpec("primary_emotion", "Primary_Emotion", "primaryEmotion", "text"),
    FieldSpec("joy_score", "Joy_Score", "joyScore", "score"),
    FieldSpec("anger_score", "Anger_Score", "angerScore", "score"),
    FieldSpec("fear_score", "Fear_Score", "fearScore", "score"),
    FieldSpec("sadness_score", "Sadness_Score", "sadnessScore", "score"),
    FieldSpec("disgust_score", "Disgust_Score", "disgustScore", "score"),
    FieldSpec("intensity", "Intensity", "intensity", "text"),
    FieldSpec("intensity_score", "Intensity_Score", "intensityScore", "score"),
    FieldSpec("complexity", "Complexity", "complexity", "text"),
    FieldSpec("model_agreement", "Model_Agreement", "modelAgreement", "score"),
    # Topics
    FieldSpec("primary_policy_area", "Primary_Policy_Area", "primaryPolicyArea", "text"),
    FieldSpec("campaign_issues", "Campaign_Issues", "campaignIssues", "list"),
    FieldSpec("event_types", "Event_Types", "eventTypes", "list"),
    FieldSpec("trending_score", "Trending_Score", "trendingScore", "score"),
    # Engagement
    FieldSpec("engagement_level", "Engagement_Level", "engagementLevel", "text"),
    FieldSpec("virality_score", "Virality_Score", "viralityScore", "score"),
    FieldSpec("quality_score", "Quality_Score", "qualityScore", "score"),
    FieldSpec("influencer_amplification", "Influencer_Amplification", "influencerAmplification", "flag"),
    # Temporal
    FieldSpec("peak_hours", "Peak_Hours", "peakHours", "list"),
    FieldSpec("active_days", "Active_Days", "activeDays", "list"),
    FieldSpec("election_phase", "Election_Phase", "electionPhase", "text"),
    # Data quality
    FieldSpec("completeness", "Completeness", "completeness", "score"),
    FieldSpec("confidence", "Confidence", "confidence", "score"),
    FieldSpec("last_updated", "Last_Updated", "lastUpdated", "timestamp"),
]

CSV_HEADERS: List[str] = [spec.header for spec in FIELD_SPECS]

_SPECS_BY_ATTR: Dict[str, FieldSpec] = {spec.attr: spec for spec in FIELD_SPECS}


def field_spec(attr: str) -> FieldSpec:
    """Look up the column definition for a FlatRow attribute."""
    return _SPECS_BY_ATTR[attr]


# ============================================================
# FLAT ROW
# ============================================================

@dataclass(frozen=True)
class FlatRow:
    """Fully scalar projection of one record. Field order follows FIELD_SPECS."""
    id: str
    name: str
    party: str
    position: str
    region_label: str

    country: str
    state: str
    lga: str
    ward: str
    polling_unit: str
    geographic_confidence: float

    education: str
    occupation: str
    age_group: str
    gender: str
    demographic_confidence: float

    polarity: str
    polarity_score: float
    primary_emotion: str
    joy_score: float
    anger_score: float
    fear_score: float
    sadness_score: float
    disgust_score: float
    intensity: str
    intensity_score: float
    complexity: str
    model_agreement: float

    primary_policy_area: str
    campaign_issues: str
    event_types: str
    trending_score: float

    engagement_level: str
    virality_score: float
    quality_score: float
    influencer_amplification: bool

    peak_hours: str
    active_days: str
    election_phase: str

    completeness: float
    confidence: float
    last_updated: str

    def values(self) -> List[Any]:
        """Field values in column order."""
        return [getattr(self, spec.attr) for spec in FIELD_SPECS]

    def to_dict(self) -> Dict[str, Any]:
        """JSON object keyed by camelCase field keys."""
        return {spec.key: getattr(self, spec.attr) for spec in FIELD_SPECS}

    def list_items(self, attr: str) -> List[str]:
        """Split a list-valued field back into its items."""
        if _SPECS_BY_ATTR[attr].kind != "list":
            raise KeyError(f"{attr} is not a list field")
        return split_list_field(getattr(self, attr))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlatRow":
        """Inverse of to_dict()."""
        values = {spec.attr: _coerce(spec, data.get(spec.key)) for spec in FIELD_SPECS}
        return cls(**values)

    @classmethod
    def from_csv_values(cls, values: Sequence[str]) -> "FlatRow":
        """Build a row from one parsed CSV line."""
        if len(values) != len(FIELD_SPECS):
            raise ValueError(
                f"Expected {len(FIELD_SPECS)} columns, got {len(values)}"
            )
        parsed = {}
        for spec, raw in zip(FIELD_SPECS, values):
            if spec.kind == "flag":
                parsed[spec.attr] = raw.strip().lower() in ("yes", "true", "1")
            else:
                parsed[spec.attr] = _coerce(spec, raw)
        return cls(**parsed)


def _coerce(spec: FieldSpec, value: Any) -> Any:
    if spec.kind == "score":
        return _score(value)
    if spec.kind == "flag":
        return bool(value)
    if spec.kind == "list":
        return "" if value is None else str(value)
    return _text(value)


# ============================================================
# VALUE HELPERS
# ============================================================

def _text(value: Any) -> str:
    if value is None:
        return UNDEFINED_LABEL
    text = str(value)
    return text if text else UNDEFINED_LABEL


def _score(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def escape_list_item(item: str) -> str:
    return item.replace("\\", "\\\\").replace(";", "\\;")


def join_list_field(items: Optional[Iterable[Any]]) -> str:
    """Join list items with '; ', escaping interior semicolons."""
    if not items:
        return ""
    return LIST_SEPARATOR.join(escape_list_item(str(item)) for item in items)


def split_list_field(value: str) -> List[str]:
    """Inverse of join_list_field()."""
    if not value:
        return []
    items: List[str] = []
    current: List[str] = []
    i = 0
    while i < len(value):
        char = value[i]
        if char == "\\" and i + 1 < len(value):
            current.append(value[i + 1])
            i += 2
            continue
        if char == ";":
            items.append("".join(current))
            current = []
            i += 1
            # Separator is "; " - drop exactly one space
            if i < len(value) and value[i] == " ":
                i += 1
            continue
        current.append(char)
        i += 1
    items.append("".join(current))
    return items


def format_timestamp(value: Optional[Union[datetime, str]]) -> str:
    """
    ISO-8601 UTC with millisecond precision, e.g. 2024-01-15T00:00:00.000Z.

    ISO strings are parsed first; anything unparseable renders as Undefined.
    """
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return UNDEFINED_LABEL
    if not isinstance(value, datetime):
        return UNDEFINED_LABEL
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


# ============================================================
# FLATTENER
# ============================================================

class DimensionFlattener:
    """Projects enriched records into FlatRows."""

    def flatten(self, record: EnrichedRecord) -> FlatRow:
        """Flatten one record. Never raises for missing nested values."""
        geo = record.geographic
        demo = record.demographic
        sentiment = record.sentiment
        topics = record.topics
        engagement = record.engagement
        temporal = record.temporal
        quality = record.data_quality

        country, state, lga, ward, polling_unit = (
            geo.levels() if geo else [GeoLevel.undefined()] * 5
        )
        demographic_attrs = (
            demo.attributes() if demo else [DemographicAttribute()] * 4
        )
        emotions = (sentiment.emotion_scores if sentiment else None) or {}

        return FlatRow(
            id=_text(record.id),
            name=_text(record.name),
            party=_text(record.party),
            position=_text(record.position),
            region_label=_text(record.region_label),

            country=_text(country.name),
            state=_text(state.name),
            lga=_text(lga.name),
            ward=_text(ward.name),
            polling_unit=_text(polling_unit.name),
            geographic_confidence=_score(state.confidence_score),

            education=_text(demographic_attrs[0].label),
            occupation=_text(demographic_attrs[1].label),
            age_group=_text(demographic_attrs[2].label),
            gender=_text(demographic_attrs[3].label),
            demographic_confidence=(
                sum(_score(a.confidence_score) for a in demographic_attrs) / 4
            ),

            polarity=_text(sentiment.polarity_label if sentiment else None),
            polarity_score=_score(sentiment.polarity_score if sentiment else None),
            primary_emotion=_text(sentiment.primary_emotion if sentiment else None),
            joy_score=_score(emotions.get(EMOTION_NAMES[0])),
            anger_score=_score(emotions.get(EMOTION_NAMES[1])),
            fear_score=_score(emotions.get(EMOTION_NAMES[2])),
            sadness_score=_score(emotions.get(EMOTION_NAMES[3])),
            disgust_score=_score(emotions.get(EMOTION_NAMES[4])),
            intensity=_text(sentiment.intensity_label if sentiment else None),
            intensity_score=_score(sentiment.intensity_score if sentiment else None),
            complexity=_text(sentiment.complexity_label if sentiment else None),
            model_agreement=_score(sentiment.model_agreement if sentiment else None),

            primary_policy_area=_text(topics.primary_policy_area if topics else None),
            campaign_issues=join_list_field(topics.campaign_issues if topics else None),
            event_types=join_list_field(topics.event_types if topics else None),
            trending_score=_score(topics.trending_score if topics else None),

            engagement_level=_text(engagement.level if engagement else None),
            virality_score=_score(engagement.virality_score if engagement else None),
            quality_score=_score(engagement.quality_score if engagement else None),
            influencer_amplification=bool(engagement.influencer_amplified) if engagement else False,

            peak_hours=join_list_field(temporal.peak_hours if temporal else None),
            active_days=join_list_field(temporal.active_days if temporal else None),
            election_phase=_text(temporal.election_phase if temporal else None),

            completeness=_score(quality.completeness if quality else None),
            confidence=_score(quality.confidence if quality else None),
            last_updated=format_timestamp(quality.last_updated if quality else None),
        )

    def flatten_all(self, records: Iterable[EnrichedRecord]) -> List[FlatRow]:
        """Flatten records preserving input order."""
        rows = [self.flatten(record) for record in records]
        logger.debug("Flattened %d records", len(rows))
        return rows


# ============================================================
# CSV READER
# ============================================================

def read_csv_rows(content: str) -> List[FlatRow]:
    """
    Parse the tabular part of a CSV export back into FlatRows.

    Reading stops at the first blank line, so the trailing
    '#' metadata block is skipped.
    """
    reader = csv.reader(io.StringIO(content))
    header = next(reader, None)
    if header != CSV_HEADERS:
        raise ValueError("CSV header does not match the export field order")

    rows: List[FlatRow] = []
    for values in reader:
        if not values:
            break
        rows.append(FlatRow.from_csv_values(values))
    return rows


def create_flattener() -> DimensionFlattener:
    """Create a dimension flattener."""
    return DimensionFlattener()


def flat_row_field_names() -> List[str]:
    """FlatRow attribute names in declaration order."""
    return [f.name for f in fields(FlatRow)]

