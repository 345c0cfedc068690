"""
Analysis Export Exceptions - Error taxonomy for the export pipeline.

Validation errors are raised before any stage beyond "preparing".
Everything else is reported as an "error" progress event by the
pipeline and then re-raised to the caller. Nothing here is retried.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional


class ExportError(Exception):
    """Base exception for all export pipeline errors."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class EmptyBatchError(ExportError):
    """The record batch is empty."""

    def __init__(self, message: str = "Cannot export an empty record batch") -> None:
        super().__init__(message)


class UnsupportedFormatError(ExportError):
    """The requested export format is not recognised."""

    def __init__(self, format_value: Any, supported: Optional[List[str]] = None) -> None:
        self.format_value = format_value
        self.supported = supported or []
        super().__init__(
            f"Unsupported export format: {format_value}",
            {"supported": self.supported},
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["format_value"] = str(self.format_value)
        return data


class ChartSourceRequiredError(ExportError):
    """An image format was requested without a chart source."""

    def __init__(self, format_value: str) -> None:
        self.format_value = format_value
        super().__init__(f"Chart source is required for {format_value} export")


class NoVectorContentError(ExportError):
    """The chart source contains no SVG element."""

    def __init__(self, message: str = "No SVG element found in chart") -> None:
        super().__init__(message)


class SinkDeliveryError(ExportError):
    """The sink failed to deliver a payload."""

    def __init__(
        self,
        filename: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.filename = filename
        self.cause = cause
        reason = f": {cause}" if cause else ""
        super().__init__(
            f"Failed to deliver {filename}{reason}",
            {"cause_type": type(cause).__name__ if cause else None},
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["filename"] = self.filename
        return data


class ExportCancelledError(ExportError):
    """The caller cancelled the export at a stage boundary."""

    def __init__(self, stage: str) -> None:
        self.stage = stage
        super().__init__(f"Export cancelled before {stage}", {"stage": stage})


class RecordValidationError(ExportError):
    """A raw record failed validation at the data-source boundary."""

    def __init__(
        self,
        index: int,
        errors: Optional[List[dict[str, Any]]] = None,
        message: Optional[str] = None,
    ) -> None:
        self.index = index
        self.errors = errors or []
        super().__init__(
            message or f"Record {index} failed validation ({len(self.errors)} error(s))",
            {"index": index},
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")}
            for e in self.errors
        ]
        return data
