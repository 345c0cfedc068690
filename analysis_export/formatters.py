"""
Analysis Export - Output Formatters.

============================================================
PURPOSE
============================================================
Format flattened rows into the tabular export formats:
- CSV (single table + trailing '#' metadata block)
- JSON (metadata + data + summary)
- Multi-sheet CSV bundle (text surrogate for a workbook)

The narrative report lives in report.py and chart snapshots
in charts.py; FormatterFactory below covers all six formats.

============================================================
REQUIREMENTS
============================================================
Every export must include the same derived metadata:
- Export date
- Total records
- Data quality score
- Confidence threshold
- Undefined data percentage

============================================================
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
import json
import logging

from .base import (
    BASE_FILENAME,
    BaseFormatter,
    join_lines,
    render_line,
)
from .charts import PngFormatter, SvgFormatter
from .flattener import CSV_HEADERS, FIELD_SPECS, FlatRow
from .metadata import metadata_comment_lines
from .models import (
    DIMENSIONS,
    ChartOptions,
    ChartSource,
    ExportFormat,
    ExportMetadata,
    ExportPayload,
)
from .report import NarrativeReportFormatter


logger = logging.getLogger(__name__)


ALL_COLUMNS: Tuple[str, ...] = tuple(spec.attr for spec in FIELD_SPECS)

SHEET_SEPARATOR = "\n\n" + "=" * 80 + "\n\n"
SHEET_MARKER = "# Sheet: "


# ============================================================
# CSV FORMATTER
# ============================================================

class CsvFormatter(BaseFormatter):
    """Formats rows as CSV with a trailing metadata comment block."""

    @property
    def format(self) -> ExportFormat:
        return ExportFormat.CSV

    @property
    def content_type(self) -> str:
        return "text/csv"

    @property
    def filename(self) -> str:
        return f"{BASE_FILENAME}.csv"

    def format_rows(
        self,
        rows: List[FlatRow],
        metadata: ExportMetadata,
    ) -> ExportPayload:
        """Format rows as CSV."""
        lines = [",".join(CSV_HEADERS)]
        lines.extend(render_line(row, ALL_COLUMNS) for row in rows)

        # Blank line ends the table; comments follow
        lines.append("")
        lines.extend(metadata_comment_lines(metadata))

        return self._build_payload(join_lines(lines), len(rows))


# ============================================================
# JSON FORMATTER
# ============================================================

class JsonFormatter(BaseFormatter):
    """Formats rows as a JSON document."""

    def __init__(self, export_version: str = "1.0.0", indent: Optional[int] = 2):
        self._export_version = export_version
        self._indent = indent

    @property
    def format(self) -> ExportFormat:
        return ExportFormat.JSON

    @property
    def content_type(self) -> str:
        return "application/json"

    @property
    def filename(self) -> str:
        return f"{BASE_FILENAME}.json"

    def build_document(
        self,
        rows: List[FlatRow],
        metadata: ExportMetadata,
    ) -> Dict[str, Any]:
        """Build the JSON document before encoding."""
        return {
            "metadata": metadata.to_dict(),
            "data": [row.to_dict() for row in rows],
            "summary": {
                "totalRecords": len(rows),
                "dimensionsCovered": list(DIMENSIONS),
                "exportVersion": self._export_version,
            },
        }

    def format_rows(
        self,
        rows: List[FlatRow],
        metadata: ExportMetadata,
    ) -> ExportPayload:
        """Format rows as JSON."""
        document = self.build_document(rows, metadata)
        content = json.dumps(document, indent=self._indent, ensure_ascii=False, default=str)
        return self._build_payload(content, len(rows))


def parse_json_rows(content: str) -> List[FlatRow]:
    """Read the data section of a JSON export back into FlatRows."""
    document = json.loads(content)
    return [FlatRow.from_dict(item) for item in document.get("data", [])]


# ============================================================
# MULTI-SHEET FORMATTER
# ============================================================

@dataclass(frozen=True)
class SheetColumn:
    """A sheet column backed by a FlatRow attribute."""
    header: str
    attr: str


@dataclass(frozen=True)
class SheetDefinition:
    name: str
    columns: Tuple[SheetColumn, ...]


def _identity_columns() -> Tuple[SheetColumn, ...]:
    return (SheetColumn("ID", "id"), SheetColumn("Name", "name"))


SHEETS: Tuple[SheetDefinition, ...] = (
    SheetDefinition("Summary", _identity_columns() + (
        SheetColumn("Party", "party"),
        SheetColumn("Position", "position"),
        SheetColumn("State", "region_label"),
        SheetColumn("Overall_Sentiment", "polarity_score"),
        SheetColumn("Data_Quality", "confidence"),
    )),
    SheetDefinition("Geographic", _identity_columns() + (
        SheetColumn("Country", "country"),
        SheetColumn("State", "state"),
        SheetColumn("LGA", "lga"),
        SheetColumn("Ward", "ward"),
        SheetColumn("Polling_Unit", "polling_unit"),
        SheetColumn("Confidence", "geographic_confidence"),
    )),
    SheetDefinition("Demographic", _identity_columns() + (
        SheetColumn("Education", "education"),
        SheetColumn("Occupation", "occupation"),
        SheetColumn("Age_Group", "age_group"),
        SheetColumn("Gender", "gender"),
        SheetColumn("Confidence", "demographic_confidence"),
    )),
    SheetDefinition("Sentiment", _identity_columns() + (
        SheetColumn("Polarity", "polarity"),
        SheetColumn("Polarity_Score", "polarity_score"),
        SheetColumn("Primary_Emotion", "primary_emotion"),
        SheetColumn("Joy", "joy_score"),
        SheetColumn("Anger", "anger_score"),
        SheetColumn("Fear", "fear_score"),
        SheetColumn("Sadness", "sadness_score"),
        SheetColumn("Disgust", "disgust_score"),
        SheetColumn("Intensity", "intensity"),
        SheetColumn("Intensity_Score", "intensity_score"),
        SheetColumn("Complexity", "complexity"),
        SheetColumn("Model_Agreement", "model_agreement"),
    )),
    SheetDefinition("Topics", _identity_columns() + (
        SheetColumn("Primary_Policy_Area", "primary_policy_area"),
        SheetColumn("Campaign_Issues", "campaign_issues"),
        SheetColumn("Event_Types", "event_types"),
        SheetColumn("Trending_Score", "trending_score"),
    )),
    SheetDefinition("Engagement", _identity_columns() + (
        SheetColumn("Level", "engagement_level"),
        SheetColumn("Virality_Score", "virality_score"),
        SheetColumn("Quality_Score", "quality_score"),
        SheetColumn("Influencer_Amplification", "influencer_amplification"),
    )),
    SheetDefinition("Temporal", _identity_columns() + (
        SheetColumn("Peak_Hours", "peak_hours"),
        SheetColumn("Active_Days", "active_days"),
        SheetColumn("Election_Phase", "election_phase"),
    )),
)


class MultiSheetFormatter(BaseFormatter):
    """
    Formats rows as named CSV sections bundled in one payload.

    Text surrogate for a workbook: each section starts with a
    "# Sheet: <name>" marker and sections are separated by a
    rule of 80 '=' characters.
    """

    def __init__(self, sheets: Tuple[SheetDefinition, ...] = SHEETS):
        self._sheets = sheets

    @property
    def format(self) -> ExportFormat:
        return ExportFormat.XLSX

    @property
    def content_type(self) -> str:
        return "text/csv"

    @property
    def filename(self) -> str:
        return f"{BASE_FILENAME}.xlsx.csv"

    def render_sheet(self, sheet: SheetDefinition, rows: List[FlatRow]) -> str:
        attrs = [column.attr for column in sheet.columns]
        lines = [",".join(column.header for column in sheet.columns)]
        lines.extend(render_line(row, attrs) for row in rows)
        return join_lines(lines)

    def format_rows(
        self,
        rows: List[FlatRow],
        metadata: ExportMetadata,
    ) -> ExportPayload:
        """Format rows as a multi-sheet bundle."""
        sections = []
        for index, sheet in enumerate(self._sheets):
            body = self.render_sheet(sheet, rows)
            if index == 0:
                body = join_lines([body, ""] + metadata_comment_lines(metadata))
            sections.append(f"{SHEET_MARKER}{sheet.name}\n{body}")

        return self._build_payload(SHEET_SEPARATOR.join(sections), len(rows))


def split_sheets(content: str) -> Dict[str, str]:
    """Split a multi-sheet bundle into {sheet name: CSV text}."""
    sheets: Dict[str, str] = {}
    for section in content.split(SHEET_SEPARATOR):
        marker, _, body = section.partition("\n")
        if not marker.startswith(SHEET_MARKER):
            raise ValueError(f"Section does not start with a sheet marker: {marker!r}")
        sheets[marker[len(SHEET_MARKER):]] = body
    return sheets


# ============================================================
# FORMATTER FACTORY
# ============================================================

class FormatterFactory:
    """Factory for creating formatters."""

    @staticmethod
    def create(
        export_format: ExportFormat,
        chart_source: Optional[ChartSource] = None,
        chart_options: Optional[ChartOptions] = None,
        export_version: str = "1.0.0",
        json_indent: Optional[int] = 2,
    ) -> BaseFormatter:
        """Create the formatter for a format. Every ExportFormat member is handled."""
        if export_format is ExportFormat.CSV:
            return CsvFormatter()
        elif export_format is ExportFormat.JSON:
            return JsonFormatter(export_version=export_version, indent=json_indent)
        elif export_format is ExportFormat.PDF:
            return NarrativeReportFormatter()
        elif export_format is ExportFormat.XLSX:
            return MultiSheetFormatter()
        elif export_format is ExportFormat.SVG:
            return SvgFormatter(chart_source, chart_options)
        elif export_format is ExportFormat.PNG:
            return PngFormatter(chart_source, chart_options)
        # Unreachable while the branches above cover ExportFormat
        raise AssertionError(f"Unhandled export format: {export_format}")


def create_formatter(
    export_format: ExportFormat,
    chart_source: Optional[ChartSource] = None,
    chart_options: Optional[ChartOptions] = None,
) -> BaseFormatter:
    """Create a formatter for the given format."""
    return FormatterFactory.create(export_format, chart_source, chart_options)
