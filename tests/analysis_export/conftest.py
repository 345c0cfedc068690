"""
Shared fixtures for the analysis export tests.
"""

import pytest
from datetime import datetime, timezone
from typing import Any, Dict, Sequence

from analysis_export.models import (
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


FIXED_NOW = datetime(2024, 3, 15, 9, 30, 45, tzinfo=timezone.utc)


def build_record(
    record_id: str = "pol-001",
    name: str = "Amina Bello",
    party: str = "APC",
    position: str = "Senator",
    region_label: str = "Lagos",
    state_undefined: bool = False,
    education: str = "University",
    quality_confidence: float = 0.8,
    campaign_issues: Sequence[str] = ("Security", "Economy"),
    event_types: Sequence[str] = ("Rally",),
    influencer: bool = True,
) -> EnrichedRecord:
    """Build a fully populated record."""
    if state_undefined:
        state = lga = ward = polling_unit = GeoLevel.undefined()
    else:
        state = GeoLevel("Lagos", 0.9, False)
        lga = GeoLevel("Ikeja", 0.8, False)
        ward = GeoLevel("Ward 3", 0.7, False)
        polling_unit = GeoLevel("PU 012", 0.6, False)

    return EnrichedRecord(
        id=record_id,
        name=name,
        party=party,
        position=position,
        region_label=region_label,
        geographic=GeographicHierarchy(
            country=GeoLevel("Nigeria", 0.99, False),
            state=state,
            lga=lga,
            ward=ward,
            polling_unit=polling_unit,
        ),
        demographic=DemographicProfile(
            education=DemographicAttribute(
                education, 0.0 if education == UNDEFINED_LABEL else 0.8
            ),
            occupation=DemographicAttribute("Lawyer", 0.7),
            age_group=DemographicAttribute("45-54", 0.6),
            gender=DemographicAttribute("Female", 0.9),
        ),
        sentiment=SentimentProfile(
            polarity_label="Positive",
            polarity_score=0.45,
            primary_emotion="joy",
            emotion_scores={
                "joy": 0.6,
                "anger": 0.1,
                "fear": 0.05,
                "sadness": 0.1,
                "disgust": 0.15,
            },
            intensity_label="Moderate",
            intensity_score=0.55,
            complexity_label="Simple",
            model_agreement=0.82,
        ),
        topics=TopicProfile(
            primary_policy_area="Economy",
            campaign_issues=tuple(campaign_issues),
            event_types=tuple(event_types),
            trending_score=0.73,
        ),
        engagement=EngagementProfile(
            level="High",
            virality_score=0.64,
            quality_score=0.71,
            influencer_amplified=influencer,
        ),
        temporal=TemporalProfile(
            peak_hours=("09:00-12:00", "18:00-21:00"),
            active_days=("Monday", "Friday"),
            election_phase="Campaign",
        ),
        data_quality=DataQuality(
            completeness=0.9,
            confidence=quality_confidence,
            last_updated=datetime(2024, 1, 15, tzinfo=timezone.utc),
        ),
    )


def raw_record(**overrides: Any) -> Dict[str, Any]:
    """A raw camelCase record as a data source would supply it."""
    raw = {
        "id": "pol-101",
        "name": "Chidi Okafor",
        "party": "PDP",
        "position": "Governor",
        "regionLabel": "Enugu",
        "geographic": {
            "country": {"name": "Nigeria", "confidenceScore": 0.99, "isUndefined": False},
            "state": {"name": "Enugu", "confidenceScore": 0.85, "isUndefined": False},
            "lga": {"name": "Nsukka", "confidenceScore": 0.7, "isUndefined": False},
            "ward": {"name": "Ward 1", "confidenceScore": 0.65, "isUndefined": False},
            "pollingUnit": {"name": "PU 004", "confidenceScore": 0.6, "isUndefined": False},
        },
        "demographic": {
            "education": {"label": "Postgraduate", "confidenceScore": 0.75},
            "occupation": {"label": "Engineer", "confidenceScore": 0.7},
            "ageGroup": {"label": "35-44", "confidenceScore": 0.65},
            "gender": {"label": "Male", "confidenceScore": 0.9},
        },
        "sentiment": {
            "polarityLabel": "Negative",
            "polarityScore": -0.3,
            "primaryEmotion": "anger",
            "emotionScores": {"joy": 0.1, "anger": 0.55},
            "intensityLabel": "High",
            "intensityScore": 0.8,
            "complexityLabel": "Complex",
            "modelAgreement": 0.7,
        },
        "topics": {
            "primaryPolicyArea": "Infrastructure",
            "campaignIssues": ["Roads", "Power"],
            "eventTypes": ["Town Hall"],
            "trendingScore": 0.4,
        },
        "engagement": {
            "level": "Medium",
            "viralityScore": 0.35,
            "qualityScore": 0.6,
            "influencerAmplified": False,
        },
        "temporal": {
            "peakHours": ["12:00-15:00"],
            "activeDays": ["Tuesday"],
            "electionPhase": "Pre-campaign",
        },
        "dataQuality": {
            "completeness": 0.8,
            "confidence": 0.7,
            "lastUpdated": "2024-02-01T10:15:30.250Z",
        },
    }
    raw.update(overrides)
    return raw


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def fixed_clock():
    """Clock returning a fixed UTC instant."""
    return lambda: FIXED_NOW


@pytest.fixture
def calculator(fixed_clock):
    """Metadata calculator with a fixed clock."""
    from analysis_export.metadata import MetadataCalculator

    return MetadataCalculator(clock=fixed_clock)


@pytest.fixture
def record_factory():
    """Factory for fully populated records."""
    return build_record


@pytest.fixture
def sample_records():
    """Four records, one with an undefined education label."""
    return [
        build_record("pol-001", "Amina Bello", quality_confidence=0.8),
        build_record("pol-002", "Tunde Adeyemi", party="LP", quality_confidence=0.6),
        build_record("pol-003", "Ngozi Eze", party="PDP", quality_confidence=0.9),
        build_record(
            "pol-004",
            "Musa Ibrahim",
            education=UNDEFINED_LABEL,
            quality_confidence=0.7,
        ),
    ]


@pytest.fixture
def sample_rows(sample_records):
    """Flattened sample records."""
    from analysis_export.flattener import DimensionFlattener

    return DimensionFlattener().flatten_all(sample_records)


@pytest.fixture
def sample_metadata(calculator, sample_records):
    """Metadata for the sample records."""
    return calculator.compute(sample_records, {"party": ["APC", "LP"]})


@pytest.fixture
def raw_record_factory():
    """Factory for raw camelCase records."""
    return raw_record


ENV_KEYS = [
    "EXPORT_OUTPUT_DIR",
    "EXPORT_VERSION",
    "EXPORT_JSON_INDENT",
    "EXPORT_CHART_TYPE",
    "EXPORT_CHART_WIDTH",
    "EXPORT_CHART_HEIGHT",
    "EXPORT_CHART_QUALITY",
    "EXPORT_CHART_INCLUDE_METADATA",
    "LOG_LEVEL",
    "LOG_FORMAT",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Environment without export settings, working in a temp directory."""
    for key in ENV_KEYS:
        # setenv first so values loaded from .env files are undone on teardown
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


@pytest.fixture
def svg_markup():
    """HTML fragment wrapping a rendered chart."""
    return (
        '<div class="chart-container">'
        '<svg xmlns="http://www.w3.org/2000/svg" width="800" height="600">'
        '<g><rect width="10" height="20"/></g>'
        "</svg>"
        "<p>Legend</p>"
        "</div>"
    )
