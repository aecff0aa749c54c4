"""Shared fixtures for the ampliconplot tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from ampliconplot.config import PlotConfig


class RecordingRenderer:
    """Renderer stand-in that records each script instead of running gnuplot."""

    def __init__(self) -> None:
        self.rendered: list[Path] = []
        self.contents: dict[Path, str] = {}

    def render(self, script: Path) -> None:
        self.rendered.append(script)
        self.contents[script] = script.read_text(encoding="utf8")


@pytest.fixture
def renderer() -> RecordingRenderer:
    """A fresh recording renderer."""
    return RecordingRenderer()


@pytest.fixture
def config(tmp_path: Path) -> PlotConfig:
    """Default configuration writing under a temporary directory."""
    return PlotConfig(prefix=tmp_path / "plots" / "run")


@pytest.fixture
def make_stream():
    """Build an ampliconstats line stream from a header and tab-joined records."""

    def _make(amplicons: int, files: int, *records: tuple) -> list[str]:
        lines = [
            "# Summary stats.",
            f"SS\tNumber of amplicons:\t{amplicons}",
            f"SS\tNumber of files:\t{files}",
            "SS\tEnd of summary",
        ]
        lines.extend("\t".join(str(field) for field in record) for record in records)
        return [f"{line}\n" for line in lines]

    return _make
