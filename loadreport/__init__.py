"""Load test runner with PDF reporting and multi-scenario comparison."""

__version__ = "1.0.0"
