"""
Pydantic schemas for raw enriched records.

Raw records arrive as JSON-shaped dicts (camelCase keys, snake_case
also accepted). They are validated here, once, and converted into the
frozen record dataclasses the rest of the package works with.
"""
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any, Dict, Iterable, List, Mapping, Optional, Union
import json
import logging

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .exceptions import RecordValidationError
from .models import (
    UNDEFINED_LABEL,
    DataQuality,
    DemographicAttribute,
    DemographicProfile,
    EngagementProfile,
    EnrichedRecord,
    GeographicHierarchy,
    GeoLevel,
    SentimentProfile,
    TemporalProfile,
    TopicProfile,
)


logger = logging.getLogger(__name__)


UnitScore = Annotated[float, Field(ge=0.0, le=1.0)]
SignedScore = Annotated[float, Field(ge=-1.0, le=1.0)]


# =======================
# COMMON
# =======================

class _Schema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


def _label_shorthand(value: Any, key: str) -> Any:
    # "Lagos" is accepted in place of {"name": "Lagos"}
    if isinstance(value, str):
        return {key: value}
    return value


# =======================
# 1. GEOGRAPHIC
# =======================

class GeoLevelSchema(_Schema):
    name: str = UNDEFINED_LABEL
    confidence_score: UnitScore = 0.0
    is_undefined: Optional[bool] = None

    @model_validator(mode="after")
    def _check_undefined(self) -> "GeoLevelSchema":
        if self.is_undefined is None:
            self.is_undefined = self.name in ("", UNDEFINED_LABEL)
        if self.is_undefined:
            if self.confidence_score != 0.0:
                raise ValueError("an undefined level must have confidenceScore 0")
            self.name = UNDEFINED_LABEL
        return self

    def to_level(self) -> GeoLevel:
        return GeoLevel(
            name=self.name,
            confidence_score=self.confidence_score,
            is_undefined=bool(self.is_undefined),
        )


def _undefined_level() -> GeoLevelSchema:
    return GeoLevelSchema(is_undefined=True)


class GeographicSchema(_Schema):
    country: GeoLevelSchema = Field(default_factory=_undefined_level)
    state: GeoLevelSchema = Field(default_factory=_undefined_level)
    lga: GeoLevelSchema = Field(default_factory=_undefined_level)
    ward: GeoLevelSchema = Field(default_factory=_undefined_level)
    polling_unit: GeoLevelSchema = Field(default_factory=_undefined_level)

    @field_validator("country", "state", "lga", "ward", "polling_unit", mode="before")
    @classmethod
    def _level_shorthand(cls, value: Any) -> Any:
        return _label_shorthand(value, "name")

    def to_hierarchy(self) -> GeographicHierarchy:
        """Convert, propagating an undefined level to every finer level."""
        levels = {}
        fallback = False
        for name in GeographicHierarchy.LEVELS:
            level = getattr(self, name).to_level()
            if fallback:
                level = GeoLevel.undefined()
            elif level.is_undefined:
                fallback = True
            levels[name] = level
        return GeographicHierarchy(**levels)


# =======================
# 2. DEMOGRAPHIC
# =======================

class DemographicAttributeSchema(_Schema):
    label: str = Field(
        default=UNDEFINED_LABEL,
        validation_alias=AliasChoices("label", "level"),
    )
    confidence_score: UnitScore = 0.0

    def to_attribute(self) -> DemographicAttribute:
        return DemographicAttribute(
            label=self.label or UNDEFINED_LABEL,
            confidence_score=self.confidence_score,
        )


class OccupationSchema(DemographicAttributeSchema):
    label: str = Field(
        default=UNDEFINED_LABEL,
        validation_alias=AliasChoices("label", "sector"),
    )


class AgeGroupSchema(DemographicAttributeSchema):
    label: str = Field(
        default=UNDEFINED_LABEL,
        validation_alias=AliasChoices("label", "range"),
    )


class GenderSchema(DemographicAttributeSchema):
    label: str = Field(
        default=UNDEFINED_LABEL,
        validation_alias=AliasChoices("label", "classification"),
    )


class DemographicSchema(_Schema):
    education: DemographicAttributeSchema = Field(default_factory=DemographicAttributeSchema)
    occupation: OccupationSchema = Field(default_factory=OccupationSchema)
    age_group: AgeGroupSchema = Field(default_factory=AgeGroupSchema)
    gender: GenderSchema = Field(default_factory=GenderSchema)

    @field_validator("education", "occupation", "age_group", "gender", mode="before")
    @classmethod
    def _attribute_shorthand(cls, value: Any) -> Any:
        return _label_shorthand(value, "label")

    def to_profile(self) -> DemographicProfile:
        return DemographicProfile(
            education=self.education.to_attribute(),
            occupation=self.occupation.to_attribute(),
            age_group=self.age_group.to_attribute(),
            gender=self.gender.to_attribute(),
        )


# =======================
# 3. SENTIMENT / TOPICS / ENGAGEMENT / TEMPORAL
# =======================

class SentimentSchema(_Schema):
    polarity_label: str = UNDEFINED_LABEL
    polarity_score: SignedScore = 0.0
    primary_emotion: str = UNDEFINED_LABEL
    emotion_scores: Dict[str, UnitScore] = Field(default_factory=dict)
    intensity_label: str = UNDEFINED_LABEL
    intensity_score: UnitScore = 0.0
    complexity_label: str = UNDEFINED_LABEL
    model_agreement: UnitScore = 0.0

    def to_profile(self) -> SentimentProfile:
        return SentimentProfile(**self.model_dump())


class TopicsSchema(_Schema):
    primary_policy_area: str = UNDEFINED_LABEL
    campaign_issues: List[str] = Field(default_factory=list)
    event_types: List[str] = Field(default_factory=list)
    trending_score: UnitScore = 0.0

    def to_profile(self) -> TopicProfile:
        return TopicProfile(
            primary_policy_area=self.primary_policy_area,
            campaign_issues=tuple(self.campaign_issues),
            event_types=tuple(self.event_types),
            trending_score=self.trending_score,
        )


class EngagementSchema(_Schema):
    level: str = UNDEFINED_LABEL
    virality_score: UnitScore = 0.0
    quality_score: UnitScore = 0.0
    influencer_amplified: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "influencerAmplified", "influencer_amplified", "influencerAmplification",
        ),
    )

    def to_profile(self) -> EngagementProfile:
        return EngagementProfile(**self.model_dump())


class TemporalSchema(_Schema):
    peak_hours: List[str] = Field(default_factory=list)
    active_days: List[str] = Field(default_factory=list)
    election_phase: str = UNDEFINED_LABEL

    def to_profile(self) -> TemporalProfile:
        return TemporalProfile(
            peak_hours=tuple(self.peak_hours),
            active_days=tuple(self.active_days),
            election_phase=self.election_phase,
        )


class DataQualitySchema(_Schema):
    completeness: UnitScore = 0.0
    confidence: UnitScore = 0.0
    last_updated: Optional[datetime] = None

    def to_quality(self) -> DataQuality:
        return DataQuality(**self.model_dump())


# =======================
# 4. RECORD
# =======================

class EnrichedRecordSchema(_Schema):
    id: str
    name: str
    party: str = UNDEFINED_LABEL
    position: str = UNDEFINED_LABEL
    region_label: str = UNDEFINED_LABEL

    geographic: Optional[GeographicSchema] = None
    demographic: Optional[DemographicSchema] = None
    sentiment: Optional[SentimentSchema] = None
    topics: Optional[TopicsSchema] = None
    engagement: Optional[EngagementSchema] = None
    temporal: Optional[TemporalSchema] = None
    data_quality: Optional[DataQualitySchema] = None

    def to_record(self) -> EnrichedRecord:
        return EnrichedRecord(
            id=self.id,
            name=self.name,
            party=self.party,
            position=self.position,
            region_label=self.region_label,
            geographic=self.geographic.to_hierarchy() if self.geographic else None,
            demographic=self.demographic.to_profile() if self.demographic else None,
            sentiment=self.sentiment.to_profile() if self.sentiment else None,
            topics=self.topics.to_profile() if self.topics else None,
            engagement=self.engagement.to_profile() if self.engagement else None,
            temporal=self.temporal.to_profile() if self.temporal else None,
            data_quality=self.data_quality.to_quality() if self.data_quality else None,
        )


# =======================
# LOADERS
# =======================

def load_record(raw: Any, index: int = 0) -> EnrichedRecord:
    """Validate one raw record; raise RecordValidationError on failure."""
    try:
        schema = EnrichedRecordSchema.model_validate(raw)
    except ValidationError as e:
        raise RecordValidationError(index, e.errors(include_url=False)) from e
    return schema.to_record()


def load_records(raw_items: Iterable[Any]) -> List[EnrichedRecord]:
    """Validate raw records in order, stopping at the first invalid one."""
    records = [load_record(raw, index) for index, raw in enumerate(raw_items)]
    logger.debug(f"Validated {len(records)} records")
    return records


def load_records_from_file(path: Union[str, Path]) -> List[EnrichedRecord]:
    """
    Load records from a JSON file.

    The file holds either an array of records or an object with a
    "records" array.
    """
    document = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(document, Mapping):
        document = document.get("records")
    if not isinstance(document, list):
        raise ValueError(f"{path}: expected a JSON array or an object with a 'records' array")
    return load_records(document)
