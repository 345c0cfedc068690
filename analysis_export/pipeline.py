"""
Analysis Export - Pipeline.

============================================================
PURPOSE
============================================================
Orchestrate one export invocation:
1. Validate the request (format, batch, chart source)
2. Compute metadata and flatten records
3. Serialize with the format's formatter
4. Deliver the payload to the sink

============================================================
PIPELINE FLOW
============================================================

    Enriched Records + Filters
         |
         v
    [PREPARING]    0%   <- format, batch and chart checks
         |
         v
    [PROCESSING]  25%   <- MetadataCalculator, DimensionFlattener
         |
         v
    [GENERATING]  50%   <- Formatter
         |
         v
    [DOWNLOADING] 75%   <- Sink
         |
         v
    [COMPLETE]   100%

    Any failure -> [ERROR] 0%, then the exception is re-raised.

============================================================
FAILURE ISOLATION
============================================================
Records are read-only. A failed invocation never reaches the
sink, except a failure raised by the sink itself.

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union
import logging
import threading
import time

from .config import ExportConfig
from .exceptions import (
    ChartSourceRequiredError,
    EmptyBatchError,
    ExportCancelledError,
    SinkDeliveryError,
)
from .flattener import DimensionFlattener, create_flattener
from .formatters import FormatterFactory
from .metadata import MetadataCalculator, create_metadata_calculator
from .models import (
    ChartOptions,
    ChartSource,
    EnrichedRecord,
    ExportFormat,
    ExportMetadata,
    ExportPayload,
    ExportStage,
    ProgressEvent,
)
from .sinks import BaseSink


logger = logging.getLogger(__name__)


ProgressCallback = Callable[[ProgressEvent], None]


MESSAGE_PREPARING = "Preparing export data..."
MESSAGE_PROCESSING = "Processing multi-dimensional data..."
MESSAGE_DOWNLOADING = "Preparing download..."
MESSAGE_COMPLETE = "Export completed successfully"


# ============================================================
# CANCELLATION
# ============================================================

class CancellationToken:
    """
    Thread-safe cancellation flag.

    Honoured at stage boundaries only; a stage already running
    finishes before the pipeline notices.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


# ============================================================
# RESULTS
# ============================================================

@dataclass
class StageResult:
    """Result of a pipeline stage."""
    stage: ExportStage
    duration_ms: int
    record_count: int = 0


@dataclass
class ExportResult:
    """Result of a successful export invocation."""
    export_format: ExportFormat
    payload: ExportPayload
    metadata: ExportMetadata
    location: str

    stages: List[StageResult] = field(default_factory=list)

    # Timing
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    total_duration_ms: int = 0

    @property
    def filename(self) -> str:
        return self.payload.filename


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


# ============================================================
# EXPORT PIPELINE
# ============================================================

class ExportPipeline:
    """
    Runs exports through the fixed stage sequence.

    Instances hold no per-invocation state, so one pipeline may
    serve concurrent invocations from several threads.
    """

    def __init__(
        self,
        sink: BaseSink,
        config: Optional[ExportConfig] = None,
        calculator: Optional[MetadataCalculator] = None,
        flattener: Optional[DimensionFlattener] = None,
    ):
        self._sink = sink
        self._config = config or ExportConfig()
        self._calculator = calculator or create_metadata_calculator()
        self._flattener = flattener or create_flattener()

    @property
    def config(self) -> ExportConfig:
        return self._config

    def export(
        self,
        records: Sequence[EnrichedRecord],
        filters: Optional[Mapping[str, Any]],
        export_format: Union[ExportFormat, str],
        on_progress: Optional[ProgressCallback] = None,
        chart_source: Optional[ChartSource] = None,
        chart_options: Optional[ChartOptions] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ExportResult:
        """
        Export records in the requested format and deliver the payload.

        Emits one ProgressEvent per stage through on_progress. On any
        failure a single "error" event is emitted and the exception is
        re-raised unchanged; sink failures surface as SinkDeliveryError.
        """
        started_at = datetime.now(timezone.utc)
        run_start = time.monotonic()
        stages: List[StageResult] = []
        stage = ExportStage.PREPARING

        def emit(current: ExportStage, message: str) -> None:
            if on_progress is not None:
                on_progress(ProgressEvent.for_stage(current, message))

        try:
            # Stage 1: Preparing
            emit(stage, MESSAGE_PREPARING)
            stage_start = time.monotonic()
            resolved = ExportFormat.parse(export_format)
            if not records:
                raise EmptyBatchError()
            if resolved.is_chart and chart_source is None:
                raise ChartSourceRequiredError(resolved.value)
            formatter = FormatterFactory.create(
                resolved,
                chart_source=chart_source,
                chart_options=chart_options or self._config.chart_options(),
                export_version=self._config.export_version,
                json_indent=self._config.json_indent,
            )
            stages.append(StageResult(stage, _elapsed_ms(stage_start), len(records)))

            logger.info(f"Starting {resolved.value} export of {len(records)} records")

            # Stage 2: Processing
            stage = self._advance(ExportStage.PROCESSING, cancel_token)
            emit(stage, MESSAGE_PROCESSING)
            stage_start = time.monotonic()
            metadata = self._calculator.compute(records, filters)
            rows = self._flattener.flatten_all(records)
            stages.append(StageResult(stage, _elapsed_ms(stage_start), len(rows)))

            # Stage 3: Generating
            stage = self._advance(ExportStage.GENERATING, cancel_token)
            emit(stage, resolved.generating_message)
            stage_start = time.monotonic()
            payload = formatter.format_rows(rows, metadata)
            stages.append(StageResult(stage, _elapsed_ms(stage_start), payload.record_count))

            # Stage 4: Downloading
            stage = self._advance(ExportStage.DOWNLOADING, cancel_token)
            emit(stage, MESSAGE_DOWNLOADING)
            stage_start = time.monotonic()
            location = self._deliver(payload)
            stages.append(StageResult(stage, _elapsed_ms(stage_start), payload.record_count))

        except Exception as e:
            logger.error(f"Export failed during {stage.value}: {e}")
            try:
                emit(ExportStage.ERROR, f"Export failed: {e}")
            except Exception as callback_error:
                logger.error(f"Progress callback failed on error event: {callback_error}")
            raise

        total_duration = _elapsed_ms(run_start)
        logger.info(
            f"Export completed: {payload.filename}, {payload.size_bytes} bytes, "
            f"sha256={payload.checksum[:12]}, duration: {total_duration}ms"
        )

        # Delivered; a failing callback here propagates without an error event
        emit(ExportStage.COMPLETE, MESSAGE_COMPLETE)

        return ExportResult(
            export_format=resolved,
            payload=payload,
            metadata=metadata,
            location=location,
            stages=stages,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
            total_duration_ms=total_duration,
        )

    def _advance(
        self,
        next_stage: ExportStage,
        cancel_token: Optional[CancellationToken],
    ) -> ExportStage:
        if cancel_token is not None and cancel_token.is_cancelled:
            raise ExportCancelledError(next_stage.value)
        return next_stage

    def _deliver(self, payload: ExportPayload) -> str:
        try:
            return self._sink.deliver(payload)
        except Exception as e:
            raise SinkDeliveryError(payload.filename, e) from e


def create_export_pipeline(
    sink: BaseSink,
    config: Optional[ExportConfig] = None,
    calculator: Optional[MetadataCalculator] = None,
) -> ExportPipeline:
    """Create an export pipeline."""
    return ExportPipeline(sink=sink, config=config, calculator=calculator)
