# ruff: noqa: PLR0913, FBT002
"""
The 'plot' command for the ampliconplot CLI.

Reads samtools ampliconstats output from a file or standard input and writes
one gnuplot script per chart next to the rendered PNG image.

Note: We intentionally do NOT use `from __future__ import annotations` here
because Typer needs to introspect the type annotations at runtime.
"""

import sys
from pathlib import Path
from typing import Annotated

import typer
from ampliconplot import (
    AmpliconPlotError,
    AmpliconStatsPlotter,
    GnuplotRenderer,
    Layout,
    PlotConfig,
    check_gnuplot,
)
from ampliconplot.config import DEFAULT_PAGE_SIZE
from ampliconplot.derived import DEFAULT_SMOOTHING
from pydantic import ValidationError

from ampliconplot_cli.app import app
from ampliconplot_cli.utils import configure_logging, error, success

# =============================================================================
# Help Panel Names (for organizing --help output)
# =============================================================================

PANEL_IMAGES = "Image Sizes"
PANEL_CHARTS = "Chart Options"
PANEL_OUTPUT = "Output & Execution"


def _validation_message(exc: ValidationError) -> str:
    problems = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    ]
    return "Invalid options: " + "; ".join(problems)


@app.command("plot")
def plot_stats(
    prefix: Annotated[
        Path,
        typer.Argument(
            help="Output path prefix, e.g. [green]plots/run1[/green]. Missing directories are created.",
        ),
    ],
    input_file: Annotated[
        Path | None,
        typer.Argument(
            help="samtools ampliconstats output. Read from standard input if omitted or '-'.",
            show_default=False,
        ),
    ] = None,
    heatmap_size: Annotated[
        str,
        typer.Option(
            "--size-heatmap",
            help="Heatmap image size as WIDTH,HEIGHT.",
            rich_help_panel=PANEL_IMAGES,
        ),
    ] = "1200,900",
    hgraph_size: Annotated[
        str,
        typer.Option(
            "--size-hgraph",
            help="Graph panel size for the horizontal layout, as WIDTH,HEIGHT.",
            rich_help_panel=PANEL_IMAGES,
        ),
    ] = "1200,400",
    vgraph_size: Annotated[
        str,
        typer.Option(
            "--size-vgraph",
            help="Graph panel size for the vertical layout, as WIDTH,HEIGHT.",
            rich_help_panel=PANEL_IMAGES,
        ),
    ] = "500,1000",
    page_size: Annotated[
        int,
        typer.Option(
            "--page",
            "-p",
            min=1,
            help="Maximum number of samples per heatmap page.",
            rich_help_panel=PANEL_CHARTS,
        ),
    ] = DEFAULT_PAGE_SIZE,
    smoothing: Annotated[
        float,
        typer.Option(
            "--mispriming-smoothing",
            min=0.0,
            help="Pseudo-count added to mis-priming denominators to damp sparse amplicons.",
            rich_help_panel=PANEL_CHARTS,
        ),
    ] = DEFAULT_SMOOTHING,
    layout: Annotated[
        Layout,
        typer.Option(
            "--layout",
            "-l",
            help="Put amplicons along the x axis (horizontal) or the y axis (vertical).",
            rich_help_panel=PANEL_CHARTS,
        ),
    ] = Layout.HORIZONTAL,
    gnuplot: Annotated[
        str,
        typer.Option(
            "--gnuplot",
            help="gnuplot executable used to render the scripts.",
            rich_help_panel=PANEL_OUTPUT,
        ),
    ] = "gnuplot",
    summary: Annotated[
        bool,
        typer.Option(
            "--summary/--no-summary",
            help="Write a MultiQC custom content table of per-sample totals.",
            rich_help_panel=PANEL_OUTPUT,
        ),
    ] = True,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v, -vv, -vvv)",
            rich_help_panel=PANEL_OUTPUT,
        ),
    ] = 0,
) -> None:
    """
    [bold green]Plot[/bold green] samtools ampliconstats output.

    Produces paginated heatmaps per metric, combined mean ± sd charts and one
    multi-panel chart per sample. Every chart is written as a gnuplot script
    and rendered to PNG alongside it.

    [bold cyan]Examples:[/bold cyan]

    [green]$ samtools ampliconstats primers.bed *.bam | ampliconplot plot plots/run1[/green]

    [green]$ ampliconplot plot plots/run1 run1.astats --page 24 --layout vertical[/green]
    """
    configure_logging(verbose)

    try:
        config = PlotConfig(
            prefix=prefix,
            heatmap_size=heatmap_size,
            hgraph_size=hgraph_size,
            vgraph_size=vgraph_size,
            page_size=page_size,
            smoothing=smoothing,
            layout=layout,
            gnuplot=gnuplot,
            summary=summary,
        )
    except ValidationError as e:
        error(_validation_message(e))
        return

    from_stdin = input_file is None or str(input_file) == "-"
    if not from_stdin and not input_file.is_file():
        error(f"Input file not found: {input_file}")
        return

    try:
        check_gnuplot(config.gnuplot)
        plotter = AmpliconStatsPlotter(config, GnuplotRenderer(config.gnuplot))
        if from_stdin:
            result = plotter.run(sys.stdin)
        else:
            with input_file.open(encoding="utf8") as handle:
                result = plotter.run(handle)
    except AmpliconPlotError as e:
        error(str(e))
        return

    success(
        f"Rendered {len(result.heatmaps)} heatmap page(s), {len(result.combined)} combined "
        f"chart(s) and {len(result.samples)} sample chart set(s) with prefix {config.prefix}",
    )
