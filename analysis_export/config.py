"""
Analysis Export - Configuration.

Settings are read from the environment after loading an optional
.env file. Invalid numbers raise ValueError in from_env(); range
problems are reported by validate().
"""

from dataclasses import dataclass
from typing import List, Optional
import os

from dotenv import load_dotenv

from .models import ChartOptions


LOG_FORMATS = ("text", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ExportConfig:
    """Configuration for exports and the command-line runner."""
    output_dir: str = "exports"
    export_version: str = "1.0.0"
    json_indent: Optional[int] = 2

    # Chart snapshot defaults
    chart_type: str = "multi-dimensional"
    chart_width: int = 1920
    chart_height: int = 1080
    chart_quality: float = 1.0
    chart_include_metadata: bool = True

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "ExportConfig":
        """Load configuration from environment variables."""
        load_dotenv(dotenv_path)
        indent = os.getenv("EXPORT_JSON_INDENT", "2").strip()
        return cls(
            output_dir=os.getenv("EXPORT_OUTPUT_DIR", "exports"),
            export_version=os.getenv("EXPORT_VERSION", "1.0.0"),
            json_indent=int(indent) if indent else None,
            chart_type=os.getenv("EXPORT_CHART_TYPE", "multi-dimensional"),
            chart_width=int(os.getenv("EXPORT_CHART_WIDTH", "1920")),
            chart_height=int(os.getenv("EXPORT_CHART_HEIGHT", "1080")),
            chart_quality=float(os.getenv("EXPORT_CHART_QUALITY", "1.0")),
            chart_include_metadata=_env_flag("EXPORT_CHART_INCLUDE_METADATA", "true"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "text").lower(),
        )

    def chart_options(self) -> ChartOptions:
        """Default chart options derived from this configuration."""
        return ChartOptions(
            width=self.chart_width,
            height=self.chart_height,
            quality=self.chart_quality,
            include_metadata=self.chart_include_metadata,
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not self.output_dir:
            errors.append("output_dir must not be empty")

        if not self.export_version:
            errors.append("export_version must not be empty")

        if self.json_indent is not None and self.json_indent < 0:
            errors.append("json_indent must be non-negative")

        if not self.chart_type:
            errors.append("chart_type must not be empty")

        if self.chart_width < 1 or self.chart_height < 1:
            errors.append("chart_width and chart_height must be at least 1")

        if not 0.0 < self.chart_quality <= 1.0:
            errors.append("chart_quality must be in (0, 1]")

        if self.log_level not in LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(LOG_LEVELS)}")

        if self.log_format not in LOG_FORMATS:
            errors.append(f"log_format must be one of {', '.join(LOG_FORMATS)}")

        return errors
