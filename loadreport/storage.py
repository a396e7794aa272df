"""Output files: directories, raw JSON results, PDF documents."""

import json
import logging
import re
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from .errors import ReportIOError, ResultFileError
from .models import MeasurementResult

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def sanitize_name(name: str) -> str:
    """Replace every character outside [a-zA-Z0-9] with '-'."""
    return _UNSAFE_CHARS.sub("-", name)


def ensure_directories(*paths: Path) -> None:
    """Create output directories up front so failures surface before testing.

    Raises:
        ReportIOError: If a directory cannot be created.
    """
    for path in paths:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ReportIOError(path, str(e)) from e


def report_path(output_dir: Path, name: str, stamp: int | None = None) -> Path:
    """``<sanitized name>-<epoch ms>.pdf`` inside output_dir."""
    return output_dir / f"{sanitize_name(name)}-{stamp or timestamp_ms()}.pdf"


def save_result_json(result: MeasurementResult, name: str, output_dir: Path) -> Path:
    """Write a raw result as pretty-printed JSON.

    Raises:
        ReportIOError: If the file cannot be written.
    """
    path = output_dir / f"{sanitize_name(name)}-{timestamp_ms()}.json"
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2, default=str)
    except OSError as e:
        raise ReportIOError(path, str(e)) from e
    logger.info("Results JSON saved: %s", path)
    return path


def load_result_json(path: Path) -> MeasurementResult:
    """Read a result saved by ``save_result_json``.

    Raises:
        ResultFileError: If the file cannot be read or is not a JSON object.
    """
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ResultFileError(path, str(e)) from e
    if not isinstance(raw, dict):
        raise ResultFileError(path, "expected a JSON object")
    return MeasurementResult.from_dict(raw)


def write_document(data: bytes, path: Path) -> Path:
    """Write finished PDF bytes; returns only once the file is closed.

    Raises:
        ReportIOError: If the destination cannot be opened or written.
    """
    try:
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        raise ReportIOError(path, str(e)) from e
    logger.info("PDF saved: %s", path)
    return path


@dataclass(frozen=True)
class ReportFile:
    """A generated report, as listed by the control surface."""

    name: str
    path: str
    created: datetime


def list_reports(reports_dir: Path, url_prefix: str = "/reports") -> list[ReportFile] | None:
    """PDF reports in reports_dir, newest first by creation time.

    Returns:
        None when the directory does not exist.
    """
    if not reports_dir.is_dir():
        return None

    files = [
        ReportFile(
            name=entry.name,
            path=f"{url_prefix}/{entry.name}",
            created=datetime.fromtimestamp(entry.stat().st_ctime, tz=UTC),
        )
        for entry in reports_dir.iterdir()
        if entry.is_file() and entry.suffix == ".pdf"
    ]
    return sorted(files, key=lambda f: f.created, reverse=True)
