"""
Exception types raised by the ampliconplot library.

The library never exits the process itself. Every fatal condition is raised as
a subclass of `AmpliconPlotError` and converted to a message and exit code by
the CLI.
"""

from __future__ import annotations

from pathlib import Path


class AmpliconPlotError(Exception):
    """Base class for all fatal ampliconplot errors."""


class RendererUnavailableError(AmpliconPlotError):
    """The gnuplot executable is missing or older than the required version."""


class OutputError(AmpliconPlotError):
    """An output artifact could not be created."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot create output file {path}: {reason}")


class RenderError(AmpliconPlotError):
    """The renderer returned a failure for a script."""

    def __init__(self, script: Path, returncode: int, stderr: str = "") -> None:
        self.script = script
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"gnuplot failed on {script} (exit code {returncode}){detail}")


class CombinedOrderError(AmpliconPlotError):
    """Combined MEAN/STDDEV rows did not arrive as MEAN followed by STDDEV."""
