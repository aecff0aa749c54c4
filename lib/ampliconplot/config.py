"""
Run configuration for ampliconplot.

`PlotConfig` gathers every option the plotter recognizes. It is validated on
construction, so a bad image size or page size fails before any output file is
written.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .derived import DEFAULT_SMOOTHING

DEFAULT_PAGE_SIZE = 50

SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*[,x]\s*(\d+)\s*$")


class Layout(str, Enum):
    """Orientation of per-sample and combined graphs."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class ImageSize(BaseModel):
    """Pixel dimensions of a rendered image or graph panel."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)

    @classmethod
    def parse(cls, text: str) -> ImageSize:
        """Parse a size written as `W,H` or `WxH`."""
        match = SIZE_PATTERN.match(text)
        if match is None:
            msg = f"Invalid image size '{text}', expected WIDTH,HEIGHT"
            raise ValueError(msg)
        return cls(width=int(match[1]), height=int(match[2]))

    def __str__(self) -> str:
        return f"{self.width},{self.height}"


class PlotConfig(BaseModel):
    """Validated options for one plotting run."""

    model_config = ConfigDict(frozen=True)

    prefix: Path
    heatmap_size: ImageSize = ImageSize(width=1200, height=900)
    hgraph_size: ImageSize = ImageSize(width=1200, height=400)
    vgraph_size: ImageSize = ImageSize(width=500, height=1000)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    smoothing: float = Field(default=DEFAULT_SMOOTHING, ge=0)
    layout: Layout = Layout.HORIZONTAL
    gnuplot: str = "gnuplot"
    summary: bool = True

    @field_validator("heatmap_size", "hgraph_size", "vgraph_size", mode="before")
    @classmethod
    def parse_size(cls, value: object) -> object:
        """Accept sizes given as strings on the command line."""
        if isinstance(value, str):
            return ImageSize.parse(value)
        return value

    @property
    def graph_size(self) -> ImageSize:
        """Panel size for the configured layout."""
        return {
            Layout.HORIZONTAL: self.hgraph_size,
            Layout.VERTICAL: self.vgraph_size,
        }[self.layout]
