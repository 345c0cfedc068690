"""
Tests for the dimension flattener.
"""

import pytest
from datetime import datetime, timedelta, timezone

from .conftest import build_record


class TestFieldTable:
    """Tests for the fixed column table."""

    def test_column_count(self):
        """Test the table has 42 columns."""
        from analysis_export.flattener import CSV_HEADERS, FIELD_SPECS

        assert len(FIELD_SPECS) == 42
        assert len(CSV_HEADERS) == 42

    def test_group_boundaries(self):
        """Test each dimension group sits at its documented position."""
        from analysis_export.flattener import CSV_HEADERS

        assert CSV_HEADERS[:5] == ["ID", "Name", "Party", "Position", "State"]
        assert CSV_HEADERS[10] == "Geographic_Confidence"
        assert CSV_HEADERS[15] == "Demographic_Confidence"
        assert CSV_HEADERS[16:19] == ["Polarity", "Polarity_Score", "Primary_Emotion"]
        assert CSV_HEADERS[27] == "Model_Agreement"
        assert CSV_HEADERS[28:32] == [
            "Primary_Policy_Area", "Campaign_Issues", "Event_Types", "Trending_Score",
        ]
        assert CSV_HEADERS[35] == "Influencer_Amplification"
        assert CSV_HEADERS[38] == "Election_Phase"
        assert CSV_HEADERS[39:] == ["Completeness", "Confidence", "Last_Updated"]

    def test_flat_row_matches_table(self):
        """Test FlatRow declares its fields in table order."""
        from analysis_export.flattener import FIELD_SPECS, flat_row_field_names

        assert flat_row_field_names() == [spec.attr for spec in FIELD_SPECS]


class TestDimensionFlattener:
    """Tests for DimensionFlattener.flatten."""

    def test_populated_record(self):
        """Test a fully populated record flattens to its values."""
        from analysis_export.flattener import DimensionFlattener

        row = DimensionFlattener().flatten(build_record())

        assert row.id == "pol-001"
        assert row.region_label == "Lagos"
        assert row.country == "Nigeria"
        assert row.polling_unit == "PU 012"
        assert row.geographic_confidence == 0.9
        assert row.demographic_confidence == pytest.approx(0.75)
        assert row.joy_score == 0.6
        assert row.disgust_score == 0.15
        assert row.campaign_issues == "Security; Economy"
        assert row.event_types == "Rally"
        assert row.influencer_amplification is True
        assert row.peak_hours == "09:00-12:00; 18:00-21:00"
        assert row.last_updated == "2024-01-15T00:00:00.000Z"

    def test_empty_record_defaults(self):
        """Test missing dimensions flatten to sentinel defaults without raising."""
        from analysis_export.flattener import DimensionFlattener, FIELD_SPECS
        from analysis_export.models import EnrichedRecord

        row = DimensionFlattener().flatten(EnrichedRecord(id="x", name="Nobody"))

        for spec in FIELD_SPECS:
            value = getattr(row, spec.attr)
            if spec.kind == "score":
                assert value == 0.0, spec.attr
            elif spec.kind == "list":
                assert value == "", spec.attr
            elif spec.kind == "flag":
                assert value is False
            elif spec.attr not in ("id", "name"):
                assert value == "Undefined", spec.attr

    def test_undefined_state_zero_confidence(self):
        """Test an undefined state yields zero geographic confidence."""
        from analysis_export.flattener import DimensionFlattener

        row = DimensionFlattener().flatten(build_record(state_undefined=True))

        assert row.state == "Undefined"
        assert row.lga == "Undefined"
        assert row.geographic_confidence == 0.0

    def test_undefined_label_in_demographic_average(self):
        """Test an undefined label contributes zero to the demographic mean."""
        from analysis_export.flattener import DimensionFlattener

        row = DimensionFlattener().flatten(build_record(education="Undefined"))

        assert row.education == "Undefined"
        assert row.demographic_confidence == pytest.approx((0.0 + 0.7 + 0.6 + 0.9) / 4)

    def test_missing_geographic_level(self):
        """Test a missing level inside the hierarchy flattens as undefined."""
        from analysis_export.flattener import DimensionFlattener
        from analysis_export.models import EnrichedRecord, GeographicHierarchy, GeoLevel

        record = EnrichedRecord(
            id="x",
            name="Gap",
            geographic=GeographicHierarchy(country=GeoLevel("Nigeria", 0.9, False), state=None),
        )

        row = DimensionFlattener().flatten(record)

        assert row.country == "Nigeria"
        assert row.state == "Undefined"
        assert row.geographic_confidence == 0.0

    def test_missing_demographic_attribute(self):
        """Test a missing attribute counts as undefined with zero confidence."""
        from analysis_export.flattener import DimensionFlattener
        from analysis_export.models import DemographicAttribute, DemographicProfile, EnrichedRecord

        record = EnrichedRecord(
            id="x",
            name="Gap",
            demographic=DemographicProfile(
                education=None, gender=DemographicAttribute("Female", 0.8)
            ),
        )

        row = DimensionFlattener().flatten(record)

        assert row.education == "Undefined"
        assert row.gender == "Female"
        assert row.demographic_confidence == pytest.approx(0.2)

    def test_string_last_updated(self):
        """Test an ISO string timestamp on the record is rendered."""
        from analysis_export.flattener import DimensionFlattener
        from analysis_export.models import DataQuality, EnrichedRecord

        record = EnrichedRecord(
            id="x", name="Text Time", data_quality=DataQuality(0.5, 0.5, "2024-01-01T00:00:00Z")
        )

        row = DimensionFlattener().flatten(record)

        assert row.last_updated == "2024-01-01T00:00:00.000Z"
        assert row.confidence == 0.5

    def test_partial_emotion_scores(self):
        """Test absent emotions default to zero."""
        from dataclasses import replace
        from analysis_export.flattener import DimensionFlattener

        record = build_record()
        record = replace(
            record,
            sentiment=replace(record.sentiment, emotion_scores={"anger": 0.4}),
        )

        row = DimensionFlattener().flatten(record)

        assert row.anger_score == 0.4
        assert row.joy_score == 0.0
        assert row.fear_score == 0.0

    def test_order_preserved(self, sample_records):
        """Test flatten_all keeps input order."""
        from analysis_export.flattener import create_flattener

        rows = create_flattener().flatten_all(sample_records)

        assert [r.id for r in rows] == ["pol-001", "pol-002", "pol-003", "pol-004"]


class TestListFields:
    """Tests for list joining and escaping."""

    def test_join_and_split(self):
        """Test items containing separators survive a join/split cycle."""
        from analysis_export.flattener import join_list_field, split_list_field

        items = ["Fuel; subsidy", "C:\\path", "Plain"]
        joined = join_list_field(items)

        assert joined == "Fuel\\; subsidy; C:\\\\path; Plain"
        assert split_list_field(joined) == items

    def test_empty(self):
        """Test empty and missing lists."""
        from analysis_export.flattener import join_list_field, split_list_field

        assert join_list_field([]) == ""
        assert join_list_field(None) == ""
        assert split_list_field("") == []

    def test_list_items_on_row(self, sample_rows):
        """Test FlatRow.list_items splits list columns only."""
        row = sample_rows[0]

        assert row.list_items("campaign_issues") == ["Security", "Economy"]
        with pytest.raises(KeyError):
            row.list_items("name")


class TestTimestamps:
    """Tests for last-updated rendering."""

    def test_millisecond_precision(self):
        """Test microseconds are truncated to milliseconds."""
        from analysis_export.flattener import format_timestamp

        value = datetime(2024, 5, 1, 8, 9, 10, 123456, tzinfo=timezone.utc)

        assert format_timestamp(value) == "2024-05-01T08:09:10.123Z"

    def test_offset_converted(self):
        """Test offset-aware values are converted to UTC."""
        from analysis_export.flattener import format_timestamp

        value = datetime(2024, 5, 1, 1, 0, tzinfo=timezone(timedelta(hours=2)))

        assert format_timestamp(value) == "2024-04-30T23:00:00.000Z"

    def test_naive_treated_as_utc(self):
        """Test naive values are taken as UTC."""
        from analysis_export.flattener import format_timestamp

        assert format_timestamp(datetime(2024, 1, 1)) == "2024-01-01T00:00:00.000Z"

    def test_missing(self):
        """Test a missing timestamp renders as the sentinel."""
        from analysis_export.flattener import format_timestamp

        assert format_timestamp(None) == "Undefined"

    def test_iso_string(self):
        """Test ISO strings with a Z suffix are parsed."""
        from analysis_export.flattener import format_timestamp

        assert format_timestamp("2024-02-01T10:15:30.250Z") == "2024-02-01T10:15:30.250Z"
        assert format_timestamp("2024-02-01T12:15:30+02:00") == "2024-02-01T10:15:30.000Z"

    @pytest.mark.parametrize("value", ["", "yesterday", "2024-13-45"])
    def test_unparseable_string(self, value):
        """Test unparseable strings render as the sentinel."""
        from analysis_export.flattener import format_timestamp

        assert format_timestamp(value) == "Undefined"


class TestFlatRowDict:
    """Tests for the JSON object form of a row."""

    def test_dict_round_trip(self, sample_rows):
        """Test to_dict and from_dict are inverses."""
        from analysis_export.flattener import FlatRow

        for row in sample_rows:
            assert FlatRow.from_dict(row.to_dict()) == row

    def test_camel_case_keys(self, sample_rows):
        """Test JSON keys use camelCase."""
        data = sample_rows[0].to_dict()

        assert data["regionLabel"] == "Lagos"
        assert data["geographicConfidence"] == 0.9
        assert data["influencerAmplification"] is True
        assert "region_label" not in data
