"""
ampliconplot: gnuplot charts from samtools ampliconstats output.

This package turns the tagged, tab-delimited statistics written by
`samtools ampliconstats` into paginated heatmaps, combined mean ± sd charts
and one multi-panel chart per sample, rendered with gnuplot.

Modules:
    records: Line classification, header parsing and amplicon spans
    derived: Mis-priming percentages, clipped logs and axis ceilings
    channels: Paginated heatmap channels
    combined: Combined (all-sample) metric charts
    samples: Per-sample buffers for the second pass
    templates: gnuplot script templates and layout lookup
    emitter: Script writing and rendering
    render: gnuplot subprocess renderer
    multiqc: MultiQC custom content summary table
    pipeline: The streaming driver
"""

from .config import ImageSize, Layout, PlotConfig
from .errors import (
    AmpliconPlotError,
    CombinedOrderError,
    OutputError,
    RenderError,
    RendererUnavailableError,
)
from .pipeline import AmpliconStatsPlotter, RunSummary
from .render import GnuplotRenderer, Renderer, check_gnuplot

__version__ = "0.1.0"

__all__ = [
    "AmpliconPlotError",
    "AmpliconStatsPlotter",
    "CombinedOrderError",
    "GnuplotRenderer",
    "ImageSize",
    "Layout",
    "OutputError",
    "PlotConfig",
    "RenderError",
    "Renderer",
    "RendererUnavailableError",
    "RunSummary",
    "check_gnuplot",
]
