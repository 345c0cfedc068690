"""
Analysis Export - Chart Snapshots.

============================================================
PURPOSE
============================================================
Snapshot a chart supplied by the chart-rendering collaborator:
- SVG: extract the <svg> element, optionally inject a metadata
  comment right after its opening tag
- PNG: no rasterization; the payload is a notification text
  describing the requested snapshot

============================================================
"""

from typing import List, Optional, Tuple
import logging
import re

from .base import BaseFormatter, join_lines
from .exceptions import ChartSourceRequiredError, NoVectorContentError
from .flattener import FlatRow
from .metadata import chart_metadata_lines
from .models import (
    ChartOptions,
    ChartSource,
    ExportFormat,
    ExportMetadata,
    ExportPayload,
)


logger = logging.getLogger(__name__)


# Quoted attribute values may contain ">"; "svg" must end the tag name
_SVG_TAG = re.compile(
    r"""<(/?)svg(?=[\s/>])(?:"[^"]*"|'[^']*'|[^'">])*?(/?)>""",
    re.IGNORECASE,
)


# ============================================================
# SVG EXTRACTION
# ============================================================

def _locate_svg(markup: str) -> Optional[Tuple[int, int, int]]:
    """
    Find the first top-level <svg> element.

    Returns (start, end_of_opening_tag, end) or None.
    """
    depth = 0
    start = opening_end = -1
    for match in _SVG_TAG.finditer(markup):
        closing, self_closing = match.group(1), match.group(2)
        if closing:
            if depth == 0:
                continue
            depth -= 1
            if depth == 0:
                return start, opening_end, match.end()
        elif self_closing:
            if depth == 0:
                return match.start(), match.end(), match.end()
        else:
            if depth == 0:
                start, opening_end = match.start(), match.end()
            depth += 1
    return None


def extract_svg(markup: str) -> str:
    """
    Return the first <svg>...</svg> element in the markup.

    Raises:
        NoVectorContentError: if there is no complete SVG element
    """
    location = _locate_svg(markup or "")
    if location is None:
        raise NoVectorContentError()
    start, _, end = location
    return markup[start:end]


def inject_metadata_comment(svg: str, metadata: ExportMetadata) -> str:
    """Insert the metadata comment immediately after the opening <svg> tag."""
    location = _locate_svg(svg)
    if location is None:
        raise NoVectorContentError()
    start, opening_end, end = location
    comment = join_lines(
        ["<!-- Multi-Dimensional Analysis Chart"] + chart_metadata_lines(metadata) + ["-->"]
    )
    if opening_end == end:
        # Self-closing element has no body to hold the comment
        return f"{svg[:start]}{comment}\n{svg[start:]}"
    return f"{svg[:opening_end]}\n{comment}{svg[opening_end:]}"


# ============================================================
# CHART FORMATTERS
# ============================================================

class _ChartFormatter(BaseFormatter):
    """Shared state for chart snapshot formatters."""

    extension = ""

    def __init__(
        self,
        chart_source: Optional[ChartSource] = None,
        options: Optional[ChartOptions] = None,
    ):
        self._source = chart_source
        self._options = options or ChartOptions()

    @property
    def options(self) -> ChartOptions:
        return self._options

    @property
    def filename(self) -> str:
        chart_type = self._source.chart_type if self._source else "multi-dimensional"
        return f"{chart_type}-chart{self.extension}"

    def _require_source(self) -> ChartSource:
        if self._source is None:
            raise ChartSourceRequiredError(self.format.value)
        return self._source


class SvgFormatter(_ChartFormatter):
    """Exports the chart's SVG element, optionally annotated with metadata."""

    extension = ".svg"

    @property
    def format(self) -> ExportFormat:
        return ExportFormat.SVG

    @property
    def content_type(self) -> str:
        return "image/svg+xml;charset=utf-8"

    def format_rows(
        self,
        rows: List[FlatRow],
        metadata: ExportMetadata,
    ) -> ExportPayload:
        source = self._require_source()
        svg = extract_svg(source.markup)
        if self._options.include_metadata:
            svg = inject_metadata_comment(svg, metadata)
        return self._build_payload(svg, len(rows))


class PngFormatter(_ChartFormatter):
    """
    Stub raster export.

    Produces a reproducible notification text instead of an image.
    """

    extension = ".png.txt"

    @property
    def format(self) -> ExportFormat:
        return ExportFormat.PNG

    @property
    def content_type(self) -> str:
        return "text/plain"

    def notification_text(self, metadata: ExportMetadata) -> str:
        options = self._options
        suffix = "including metadata" if options.include_metadata else "without metadata"
        lines = [
            f"High-resolution PNG export ({options.width}x{options.height}) "
            f"with quality {options.quality:g} {suffix} would be generated here."
        ]
        if options.include_metadata:
            lines.append("")
            lines.extend(chart_metadata_lines(metadata))
        return join_lines(lines)

    def format_rows(
        self,
        rows: List[FlatRow],
        metadata: ExportMetadata,
    ) -> ExportPayload:
        self._require_source()
        logger.info(
            "PNG export initiated: width=%d height=%d quality=%s metadata=%s",
            self._options.width,
            self._options.height,
            self._options.quality,
            self._options.include_metadata,
        )
        return self._build_payload(self.notification_text(metadata), len(rows))
