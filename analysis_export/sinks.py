"""
Analysis Export - Sinks.

============================================================
PURPOSE
============================================================
Deliver serialized payloads outside the pipeline:
- FileSink writes each payload to an output directory
- MemorySink keeps payloads in order (tests, embedding)
- DownloadManager wraps another sink and tracks every
  delivery as a download item with status and progress

============================================================
DOWNLOAD LIFECYCLE
============================================================

    pending -> downloading -> completed
    pending -> downloading -> failed -> (retry) -> pending

Failed deliveries are recorded and the error is re-raised.

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging
import threading
import uuid

from .models import ExportPayload


logger = logging.getLogger(__name__)


# ============================================================
# SINK INTERFACE
# ============================================================

class BaseSink:
    """
    Abstract sink interface.

    Implementations perform the actual I/O and return a location
    string identifying where the payload ended up.
    """

    def deliver(self, payload: ExportPayload) -> str:
        """Deliver a payload; return its location."""
        raise NotImplementedError


class FileSink(BaseSink):
    """Writes payloads to <output_dir>/<filename>."""

    def __init__(self, output_dir: Union[str, Path] = "exports"):
        self._output_dir = Path(output_dir)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def deliver(self, payload: ExportPayload) -> str:
        self._output_dir.mkdir(parents=True, exist_ok=True)
        target = self._output_dir / payload.filename
        target.write_bytes(payload.content)
        logger.info(f"Wrote {payload.size_bytes} bytes to {target}")
        return str(target)


class MemorySink(BaseSink):
    """In-memory sink for testing."""

    def __init__(self):
        self._payloads: List[ExportPayload] = []
        self._lock = threading.Lock()

    @property
    def payloads(self) -> List[ExportPayload]:
        with self._lock:
            return list(self._payloads)

    @property
    def last(self) -> Optional[ExportPayload]:
        with self._lock:
            return self._payloads[-1] if self._payloads else None

    def deliver(self, payload: ExportPayload) -> str:
        with self._lock:
            self._payloads.append(payload)
            index = len(self._payloads) - 1
        return f"memory://{index}/{payload.filename}"


# ============================================================
# DOWNLOAD TRACKING
# ============================================================

class DownloadStatus(Enum):
    """Download item status."""
    PENDING = "pending"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    FAILED = "failed"


def format_size(size_bytes: int) -> str:
    """Human-readable byte size."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / (1024 * 1024):.1f} MB"


@dataclass
class DownloadItem:
    """One tracked delivery."""
    id: str
    filename: str
    format: str
    size_bytes: int
    status: DownloadStatus = DownloadStatus.PENDING
    progress: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    location: Optional[str] = None
    error: Optional[str] = None

    @property
    def size_label(self) -> str:
        return format_size(self.size_bytes)

    @property
    def is_active(self) -> bool:
        return self.status in (DownloadStatus.PENDING, DownloadStatus.DOWNLOADING)


@dataclass(frozen=True)
class DownloadStats:
    """Counts of tracked downloads by status."""
    total: int
    pending: int
    downloading: int
    completed: int
    failed: int

    @property
    def active(self) -> int:
        return self.pending + self.downloading


def _format_from_filename(filename: str) -> str:
    stem, _, extension = filename.rpartition(".")
    if stem.endswith(".xlsx"):
        return "xlsx"
    if stem.endswith(".png"):
        return "png"
    if filename.endswith("-report.txt"):
        return "pdf"
    return extension


class DownloadManager(BaseSink):
    """
    Tracks deliveries made through an inner sink.

    Items are kept newest first. A failed item keeps its payload so
    it can be retried without re-running the export.
    """

    def __init__(self, sink: BaseSink):
        self._sink = sink
        self._items: List[DownloadItem] = []
        self._payloads: Dict[str, ExportPayload] = {}
        self._lock = threading.Lock()

    # --------------------------------------------------------
    # SINK
    # --------------------------------------------------------

    def deliver(self, payload: ExportPayload) -> str:
        item = self._add(payload)
        return self._run(item.id)

    def retry(self, download_id: str) -> str:
        """
        Re-deliver a failed download.

        Raises:
            KeyError: unknown download id
            ValueError: the download has not failed
        """
        with self._lock:
            item = self._find(download_id)
            if item is None:
                raise KeyError(download_id)
            if item.status is not DownloadStatus.FAILED:
                raise ValueError(
                    f"Only failed downloads can be retried: {download_id} is {item.status.value}"
                )
            item.status = DownloadStatus.PENDING
            item.progress = 0
            item.error = None

        logger.info(f"Retrying download {download_id} ({item.filename})")
        return self._run(download_id)

    def _add(self, payload: ExportPayload) -> DownloadItem:
        item = DownloadItem(
            id=f"download_{uuid.uuid4().hex[:12]}",
            filename=payload.filename,
            format=_format_from_filename(payload.filename),
            size_bytes=payload.size_bytes,
        )
        with self._lock:
            self._items.insert(0, item)
            self._payloads[item.id] = payload
        return item

    def _run(self, download_id: str) -> str:
        with self._lock:
            item = self._find(download_id)
            payload = self._payloads[download_id]
            item.status = DownloadStatus.DOWNLOADING
            item.progress = 0

        try:
            location = self._sink.deliver(payload)
        except Exception as e:
            with self._lock:
                item.status = DownloadStatus.FAILED
                item.error = str(e)
            logger.warning(f"Download {download_id} failed: {e}")
            raise

        with self._lock:
            item.status = DownloadStatus.COMPLETED
            item.progress = 100
            item.location = location
            # Completed items no longer need their payload for retry
            self._payloads.pop(download_id, None)
        return location

    def _find(self, download_id: str) -> Optional[DownloadItem]:
        for item in self._items:
            if item.id == download_id:
                return item
        return None

    # --------------------------------------------------------
    # QUERIES
    # --------------------------------------------------------

    def get_download(self, download_id: str) -> Optional[DownloadItem]:
        with self._lock:
            return self._find(download_id)

    def get_downloads(self, status: Optional[DownloadStatus] = None) -> List[DownloadItem]:
        """Tracked downloads, newest first, optionally filtered by status."""
        with self._lock:
            if status is None:
                return list(self._items)
            return [item for item in self._items if item.status is status]

    def get_stats(self) -> DownloadStats:
        with self._lock:
            counts = {status: 0 for status in DownloadStatus}
            for item in self._items:
                counts[item.status] += 1
        return DownloadStats(
            total=sum(counts.values()),
            pending=counts[DownloadStatus.PENDING],
            downloading=counts[DownloadStatus.DOWNLOADING],
            completed=counts[DownloadStatus.COMPLETED],
            failed=counts[DownloadStatus.FAILED],
        )

    # --------------------------------------------------------
    # HOUSEKEEPING
    # --------------------------------------------------------

    def remove_download(self, download_id: str) -> bool:
        with self._lock:
            before = len(self._items)
            self._items = [item for item in self._items if item.id != download_id]
            self._payloads.pop(download_id, None)
            return len(self._items) < before

    def clear_completed(self) -> int:
        """Drop completed items; return how many were removed."""
        with self._lock:
            kept = [item for item in self._items if item.status is not DownloadStatus.COMPLETED]
            removed = len(self._items) - len(kept)
            self._items = kept
            return removed

    def clear_all(self) -> None:
        with self._lock:
            self._items = []
            self._payloads.clear()
