"""
Analysis Export - Formatter Base.

Shared contract for every serializer: take flattened rows and the
export metadata, return an ExportPayload. Formatters do no I/O.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List

from .flattener import FieldSpec, FlatRow, field_spec
from .models import ExportFormat, ExportMetadata, ExportPayload


BASE_FILENAME = "multi-dimensional-analysis"


# ============================================================
# CELL RENDERING
# ============================================================

def quote(text: str) -> str:
    """Wrap in double quotes, doubling any embedded quote."""
    return '"' + text.replace('"', '""') + '"'


def render_cell(spec: FieldSpec, value: Any) -> str:
    """Render one CSV cell according to its column kind."""
    if spec.kind == "score":
        return f"{value:.3f}"
    if spec.kind == "flag":
        return "Yes" if value else "No"
    return quote(str(value))


def render_line(row: FlatRow, attrs: Iterable[str]) -> str:
    """Render selected columns of a row as one CSV line."""
    return ",".join(
        render_cell(field_spec(attr), getattr(row, attr)) for attr in attrs
    )


def join_lines(lines: List[str]) -> str:
    return "\n".join(lines)


# ============================================================
# BASE FORMATTER
# ============================================================

class BaseFormatter(ABC):
    """Base class for export formatters."""

    @property
    @abstractmethod
    def format(self) -> ExportFormat:
        """Export format this formatter produces."""
        pass

    @property
    @abstractmethod
    def content_type(self) -> str:
        """MIME type of the output."""
        pass

    @property
    @abstractmethod
    def filename(self) -> str:
        """Deterministic filename for the output."""
        pass

    @abstractmethod
    def format_rows(
        self,
        rows: List[FlatRow],
        metadata: ExportMetadata,
    ) -> ExportPayload:
        """Serialize rows into a payload."""
        pass

    def _build_payload(self, text: str, record_count: int) -> ExportPayload:
        return ExportPayload(
            content=text.encode("utf-8"),
            content_type=self.content_type,
            filename=self.filename,
            record_count=record_count,
        )
