"""
Multi-Dimensional Analysis Export Layer.

============================================================
PURPOSE
============================================================
Turn a batch of enriched analysis records into downloadable
artifacts with consistent, embedded metadata.

============================================================
CRITICAL CONSTRAINTS
============================================================
- Records are READ-ONLY input
- Metadata is computed once per export, before serialization
- Formatters do no I/O; only sinks write
- Every failure emits one "error" progress event and propagates

============================================================
EXPORT FORMATS
============================================================
1. CSV  - Single table + trailing '#' metadata block
2. JSON - Metadata, data and summary document
3. PDF  - Plain-text narrative report (surrogate)
4. XLSX - Multi-sheet CSV bundle (surrogate)
5. SVG  - Vector chart snapshot with metadata comment
6. PNG  - Raster snapshot notification (stub)

============================================================
USAGE
============================================================

from analysis_export import (
    ExportFormat,
    MemorySink,
    create_export_pipeline,
    load_records,
)

records = load_records(raw_items)
pipeline = create_export_pipeline(MemorySink())

result = pipeline.export(
    records,
    filters={"party": "APC"},
    export_format=ExportFormat.CSV,
    on_progress=print,
)

============================================================
"""

from .exceptions import (
    ChartSourceRequiredError,
    EmptyBatchError,
    ExportCancelledError,
    ExportError,
    NoVectorContentError,
    RecordValidationError,
    SinkDeliveryError,
    UnsupportedFormatError,
)
from .models import (
    CONFIDENCE_THRESHOLD,
    UNDEFINED_LABEL,
    ChartOptions,
    ChartSource,
    DataQuality,
    DemographicAttribute,
    DemographicProfile,
    EngagementProfile,
    EnrichedRecord,
    ExportFormat,
    ExportMetadata,
    ExportPayload,
    ExportStage,
    GeographicHierarchy,
    GeoLevel,
    ProgressEvent,
    SentimentProfile,
    TemporalProfile,
    TopicProfile,
)
from .metadata import MetadataCalculator, create_metadata_calculator
from .flattener import (
    CSV_HEADERS,
    DimensionFlattener,
    FlatRow,
    create_flattener,
    read_csv_rows,
)
from .base import BaseFormatter
from .formatters import (
    CsvFormatter,
    FormatterFactory,
    JsonFormatter,
    MultiSheetFormatter,
    create_formatter,
)
from .report import NarrativeReportFormatter
from .charts import PngFormatter, SvgFormatter
from .sinks import (
    BaseSink,
    DownloadItem,
    DownloadManager,
    DownloadStatus,
    FileSink,
    MemorySink,
)
from .pipeline import (
    CancellationToken,
    ExportPipeline,
    ExportResult,
    StageResult,
    create_export_pipeline,
)
from .config import ExportConfig
from .schemas import load_records, load_records_from_file


__all__ = [
    # Exceptions
    "ExportError",
    "EmptyBatchError",
    "UnsupportedFormatError",
    "ChartSourceRequiredError",
    "NoVectorContentError",
    "SinkDeliveryError",
    "ExportCancelledError",
    "RecordValidationError",
    # Models
    "CONFIDENCE_THRESHOLD",
    "UNDEFINED_LABEL",
    "ChartOptions",
    "ChartSource",
    "DataQuality",
    "DemographicAttribute",
    "DemographicProfile",
    "EngagementProfile",
    "EnrichedRecord",
    "ExportFormat",
    "ExportMetadata",
    "ExportPayload",
    "ExportStage",
    "GeographicHierarchy",
    "GeoLevel",
    "ProgressEvent",
    "SentimentProfile",
    "TemporalProfile",
    "TopicProfile",
    # Metadata / flattening
    "MetadataCalculator",
    "create_metadata_calculator",
    "CSV_HEADERS",
    "DimensionFlattener",
    "FlatRow",
    "create_flattener",
    "read_csv_rows",
    # Formatters
    "BaseFormatter",
    "CsvFormatter",
    "JsonFormatter",
    "MultiSheetFormatter",
    "NarrativeReportFormatter",
    "SvgFormatter",
    "PngFormatter",
    "FormatterFactory",
    "create_formatter",
    # Sinks
    "BaseSink",
    "FileSink",
    "MemorySink",
    "DownloadManager",
    "DownloadItem",
    "DownloadStatus",
    # Pipeline
    "CancellationToken",
    "ExportPipeline",
    "ExportResult",
    "StageResult",
    "create_export_pipeline",
    # Config / boundary
    "ExportConfig",
    "load_records",
    "load_records_from_file",
]
