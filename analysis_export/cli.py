"""
Analysis Export - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for one-off exports.

- Provides argparse-based CLI
- Loads configuration from environment, overridden by flags
- Validates input records before exporting
- Writes the payload through a download manager over a file sink

============================================================
USAGE
============================================================
python -m analysis_export --input records.json --format csv
python -m analysis_export --input records.json --format json --filters '{"party": "APC"}'
python -m analysis_export --input records.json --format svg --chart chart.html

============================================================
EXIT CODES
============================================================
0 - export completed
1 - export failed (invalid input, serialization or delivery error)
2 - configuration error

============================================================
"""

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import LOG_FORMATS, LOG_LEVELS, ExportConfig
from .exceptions import ExportError
from .models import ChartSource, ExportFormat, ProgressEvent
from .pipeline import create_export_pipeline
from .schemas import load_records_from_file
from .sinks import DownloadManager, FileSink


logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_EXPORT_ERROR = 1
EXIT_CONFIG_ERROR = 2


# ============================================================
# LOGGING SETUP
# ============================================================

def setup_logging(level: str = "INFO", log_format: str = "text") -> logging.Logger:
    """
    Set up logging with a single stdout handler.

    Args:
        level: Log level
        log_format: Output format (json or text)

    Returns:
        Package logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("analysis_export")


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="analysis-export",
        description="Export multi-dimensional analysis records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Formats:
  csv   - Single table with trailing metadata comments
  json  - Metadata, data and summary document
  pdf   - Plain-text narrative report
  xlsx  - Multi-sheet CSV bundle
  png   - Raster snapshot notification (requires --chart)
  svg   - Vector chart snapshot (requires --chart)
""",
    )

    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        metavar="PATH",
        help="JSON file with an array of records (or {\"records\": [...]})",
    )

    parser.add_argument(
        "--format", "-f",
        type=str,
        choices=[f.value for f in ExportFormat],
        default="csv",
        help="Export format (default: csv)",
    )

    parser.add_argument(
        "--output-dir", "-o",
        type=str,
        metavar="DIR",
        help="Output directory (default: EXPORT_OUTPUT_DIR or exports)",
    )

    parser.add_argument(
        "--filters",
        type=str,
        metavar="JSON",
        help="Applied filters as a JSON object, recorded in the metadata",
    )

    # --------------------------------------------------------
    # Chart Options
    # --------------------------------------------------------
    chart_group = parser.add_argument_group("Chart Options")

    chart_group.add_argument(
        "--chart",
        type=str,
        metavar="PATH",
        help="File with rendered chart markup (SVG or HTML fragment)",
    )

    chart_group.add_argument(
        "--chart-type",
        type=str,
        metavar="NAME",
        help="Chart type used in the output filename",
    )

    chart_group.add_argument("--width", type=int, metavar="PX", help="Snapshot width")
    chart_group.add_argument("--height", type=int, metavar="PX", help="Snapshot height")
    chart_group.add_argument("--quality", type=float, metavar="Q", help="Snapshot quality (0-1]")

    chart_group.add_argument(
        "--no-chart-metadata",
        action="store_true",
        help="Do not embed export metadata in chart snapshots",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=list(LOG_LEVELS),
        help="Logging level (default: LOG_LEVEL or INFO)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=list(LOG_FORMATS),
        help="Logging format (default: LOG_FORMAT or text)",
    )

    return parser


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_config(args: argparse.Namespace, base: ExportConfig) -> ExportConfig:
    """Overlay CLI flags on the environment configuration."""
    overrides: Dict[str, Any] = {}
    if args.output_dir:
        overrides["output_dir"] = args.output_dir
    if args.chart_type:
        overrides["chart_type"] = args.chart_type
    if args.width is not None:
        overrides["chart_width"] = args.width
    if args.height is not None:
        overrides["chart_height"] = args.height
    if args.quality is not None:
        overrides["chart_quality"] = args.quality
    if args.no_chart_metadata:
        overrides["chart_include_metadata"] = False
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.log_format:
        overrides["log_format"] = args.log_format
    return dataclasses.replace(base, **overrides)


def parse_filters(raw: Optional[str]) -> Dict[str, Any]:
    """Parse the --filters JSON object."""
    if not raw:
        return {}
    filters = json.loads(raw)
    if not isinstance(filters, dict):
        raise ValueError("--filters must be a JSON object")
    return filters


def _log_progress(event: ProgressEvent) -> None:
    logger.info(f"[{event.progress_percent:3d}%] {event.stage.value}: {event.message}")


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def run(args: argparse.Namespace, config: ExportConfig, filters: Dict[str, Any]) -> int:
    """
    Run one export.

    Returns:
        Exit code
    """
    try:
        records = load_records_from_file(args.input)

        chart_source = None
        if args.chart:
            chart_source = ChartSource(
                markup=Path(args.chart).read_text(encoding="utf-8"),
                chart_type=config.chart_type,
            )

        manager = DownloadManager(FileSink(config.output_dir))
        pipeline = create_export_pipeline(manager, config=config)
        result = pipeline.export(
            records,
            filters,
            args.format,
            on_progress=_log_progress,
            chart_source=chart_source,
            chart_options=config.chart_options(),
        )

    except ExportError as e:
        logger.error(f"Export failed: {e}")
        return EXIT_EXPORT_ERROR
    except (OSError, ValueError) as e:
        logger.error(f"Could not read input: {e}")
        return EXIT_EXPORT_ERROR

    print(f"Exported {result.payload.record_count} records to {result.location}")
    print(f"  Format:   {result.export_format.value}")
    print(f"  Size:     {result.payload.size_bytes} bytes")
    print(f"  SHA-256:  {result.payload.checksum}")
    print(f"  Duration: {result.total_duration_ms}ms")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args, ExportConfig.from_env())
        filters = parse_filters(args.filters)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(config.log_level, config.log_format)
    return run(args, config, filters)


# ============================================================
# MODULE EXECUTION
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
