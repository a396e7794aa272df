"""Exception taxonomy for load test runs and report rendering."""

from pathlib import Path


class LoadReportError(Exception):
    """Base class for all loadreport failures."""


class ConfigError(LoadReportError):
    """Configuration file is missing, unreadable, or invalid.

    Fatal: raised before any scenario is measured.
    """


class RenderError(LoadReportError):
    """Chart or document rendering failed.

    ``label`` names what was being rendered: a scenario, or a chart title.
    """

    def __init__(self, label: str, message: str) -> None:
        self.label = label
        super().__init__(f"Rendering failed for '{label}': {message}")


class ReportIOError(LoadReportError):
    """An output directory or file could not be created or written."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"Cannot write {self.path}: {message}")


class ResultFileError(LoadReportError):
    """A saved result file could not be read or decoded."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"Cannot read result {self.path}: {message}")
