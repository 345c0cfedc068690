"""
Analysis Export - Narrative Report.

Plain-text document standing in for the "PDF" export. Sections,
in order: banner, metadata, filters, executive summary, one block
per record (input order), each closed by an 80-wide rule.
"""

from typing import List
import json

from .base import BASE_FILENAME, BaseFormatter, join_lines
from .flattener import FlatRow
from .metadata import format_quality_score, format_threshold, format_undefined_percent
from .models import ExportFormat, ExportMetadata, ExportPayload


TITLE = "MULTI-DIMENSIONAL SENTIMENT ANALYSIS REPORT"
RECORD_RULE = "   " + "=" * 80


def _heading(title: str) -> List[str]:
    return [title, "=" * len(title)]


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


def _items(row: FlatRow, attr: str) -> str:
    return ", ".join(row.list_items(attr))


class NarrativeReportFormatter(BaseFormatter):
    """Formats rows as a section-ordered text report."""

    @property
    def format(self) -> ExportFormat:
        return ExportFormat.PDF

    @property
    def content_type(self) -> str:
        return "text/plain"

    @property
    def filename(self) -> str:
        return f"{BASE_FILENAME}-report.txt"

    def format_rows(
        self,
        rows: List[FlatRow],
        metadata: ExportMetadata,
    ) -> ExportPayload:
        """Format rows as a narrative report."""
        lines = self._header_lines(rows, metadata)
        for index, row in enumerate(rows, start=1):
            lines.extend(self._record_lines(index, row))
        return self._build_payload(join_lines(lines), len(rows))

    def _header_lines(self, rows: List[FlatRow], metadata: ExportMetadata) -> List[str]:
        filters = json.dumps(metadata.applied_filters, indent=2, ensure_ascii=False, default=str)
        return [
            *_heading(TITLE),
            "",
            f"Export Date: {metadata.generated_date}",
            f"Export Time: {metadata.generated_time}",
            f"Data Range: {metadata.data_range}",
            f"Total Records: {metadata.total_records}",
            f"Data Quality Score: {format_quality_score(metadata)}/100",
            f"Confidence Threshold: {format_threshold(metadata)}",
            f"Undefined Data: {format_undefined_percent(metadata)}",
            "",
            *_heading("FILTERS APPLIED:"),
            filters,
            "",
            *_heading("EXECUTIVE SUMMARY:"),
            (
                "This report contains comprehensive multi-dimensional analysis "
                f"of {len(rows)} political entities."
            ),
            (
                "The analysis covers six key dimensions: Geographic, Demographic, "
                "Sentiment, Topics, Engagement, and Temporal patterns."
            ),
            "",
            *_heading("DETAILED DATA:"),
            "",
        ]

    def _record_lines(self, index: int, row: FlatRow) -> List[str]:
        return [
            f"{index}. {row.name.upper()}",
            f"   Party: {row.party}",
            f"   Position: {row.position}",
            f"   State: {row.region_label}",
            "",
            "   GEOGRAPHIC ANALYSIS:",
            f"   - Location: {row.state}, {row.lga}",
            f"   - Administrative Level: {row.ward}, {row.polling_unit}",
            f"   - Confidence: {_pct(row.geographic_confidence)}",
            "",
            "   DEMOGRAPHIC PROFILE:",
            f"   - Education: {row.education}",
            f"   - Occupation: {row.occupation}",
            f"   - Age Group: {row.age_group}",
            f"   - Gender: {row.gender}",
            f"   - Confidence: {_pct(row.demographic_confidence)}",
            "",
            "   SENTIMENT ANALYSIS:",
            f"   - Polarity: {row.polarity} ({row.polarity_score:.2f})",
            f"   - Primary Emotion: {row.primary_emotion}",
            f"   - Intensity: {row.intensity} ({row.intensity_score:.2f})",
            f"   - Complexity: {row.complexity}",
            f"   - Model Agreement: {_pct(row.model_agreement)}",
            "",
            "   TOPIC ENGAGEMENT:",
            f"   - Primary Policy Area: {row.primary_policy_area}",
            f"   - Campaign Issues: {_items(row, 'campaign_issues')}",
            f"   - Event Types: {_items(row, 'event_types')}",
            f"   - Trending Score: {row.trending_score:.2f}",
            "",
            "   ENGAGEMENT METRICS:",
            f"   - Level: {row.engagement_level}",
            f"   - Virality Score: {row.virality_score:.2f}",
            f"   - Quality Score: {row.quality_score:.2f}",
            f"   - Influencer Amplification: {'Yes' if row.influencer_amplification else 'No'}",
            "",
            "   TEMPORAL PATTERNS:",
            f"   - Peak Hours: {_items(row, 'peak_hours')}",
            f"   - Active Days: {_items(row, 'active_days')}",
            f"   - Election Phase: {row.election_phase}",
            "",
            "   DATA QUALITY:",
            f"   - Completeness: {_pct(row.completeness)}",
            f"   - Confidence: {_pct(row.confidence)}",
            f"   - Last Updated: {row.last_updated}",
            "",
            RECORD_RULE,
            "",
        ]
