"""
gnuplot script emission.

The emitter owns output paths and template filling. Heatmap scripts are
written incrementally by the channel manager (header, rows, footer); combined
and per-sample scripts are written in one go. Every finished script is handed
to the renderer before the emitter returns.

Output paths follow `<prefix>-<chart-kind>[-<subkey>][-<page>].gp`, with the
rendered image at the same path ending in `.png`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from loguru import logger

from .channels import ChannelKey, Metric
from .derived import clipped_log10, log_axis_ceiling
from .errors import OutputError
from .samples import sample_slug
from .templates import (
    AMPLICON_COLOR,
    BAR_COLOR,
    BAR_PLOT,
    DATABLOCK,
    ERRORBAR_PLOT,
    GRAPH_SCRIPT,
    HEATMAP_FOOTER,
    HEATMAP_HEADER,
    HEATMAP_ROW,
    LAYOUTS,
    LINE_COLOR,
    LINE_PLOT,
    LOG_FORMAT,
    MEAN_LINE_PLOT,
    PANEL,
    SAMPLE_SCRIPT,
    SPAN_PLOT,
    TEMPLATE_COLOR,
    TEMPLATE_STATUS_COLOR,
    fmt,
    quote,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .config import PlotConfig
    from .records import AmpliconSpan, RunMetadata
    from .render import Renderer
    from .samples import MisprimingRow, SampleBuffer

SCRIPT_SUFFIX = ".gp"
IMAGE_SUFFIX = ".png"


@dataclass(frozen=True, slots=True)
class MetricStyle:
    """How one metric is labelled and scaled."""

    title: str
    value_label: str
    log_scale: bool
    value_range: str = "0:*"


METRIC_STYLES: dict[Metric, MetricStyle] = {
    Metric.READS: MetricStyle("Reads per amplicon", "Reads", log_scale=True),
    Metric.DEPTH: MetricStyle("Mean depth per amplicon", "Depth", log_scale=True),
    Metric.READ_PERCENT: MetricStyle(
        "Percentage of reads per amplicon",
        "% of reads",
        log_scale=False,
    ),
    Metric.COVERAGE: MetricStyle(
        "Percentage of amplicon covered",
        "% covered",
        log_scale=False,
        value_range="0:100",
    ),
    Metric.MISPRIMING: MetricStyle(
        "Mis-primed templates per amplicon",
        "% mis-primed",
        log_scale=False,
    ),
}


@dataclass(frozen=True, slots=True)
class AxisCeilings:
    """Shared log10 axis tops for per-sample read and depth panels."""

    reads: float = 1.0
    depth: float = 1.0


def image_path(script: Path) -> Path:
    """Rendered image location for a script."""
    return script.with_suffix(IMAGE_SUFFIX)


def _title(key: ChannelKey) -> str:
    style = METRIC_STYLES[key.metric]
    if key.depth is None:
        return style.title
    return f"{style.title} at depth >= {key.depth}"


def _rows(rows: Sequence[Sequence[float]]) -> str:
    return "".join("\t".join(fmt(value) for value in row) + "\n" for row in rows)


class TemplateEmitter:
    """Fill gnuplot templates, write the scripts and render them."""

    def __init__(
        self,
        config: PlotConfig,
        renderer: Renderer,
        metadata: RunMetadata,
    ) -> None:
        self.config = config
        self.renderer = renderer
        self.metadata = metadata
        self.layout = LAYOUTS[config.layout]
        self._slugs: set[str] = set()

    # -------------------------------------------------------------------------
    # Paths and files
    # -------------------------------------------------------------------------

    def script_path(
        self,
        kind: str,
        subkey: str | int | None = None,
        page: int | None = None,
    ) -> Path:
        parts = [f"{self.config.prefix}-{kind}"]
        if subkey is not None:
            parts.append(str(subkey))
        if page is not None:
            parts.append(str(page))
        return Path("-".join(parts) + SCRIPT_SUFFIX)

    def _open(self, path: Path) -> TextIO:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return path.open("w", encoding="utf8")
        except OSError as e:
            raise OutputError(path, e.strerror or str(e)) from e

    def _write_and_render(self, path: Path, text: str) -> Path:
        with self._open(path) as handle:
            handle.write(text)
        self.renderer.render(path)
        return path

    def _amplicon_range(self, count: int, template: str) -> str:
        if count <= 0:
            return ""
        return template.format(top=fmt(count + 0.5))

    # -------------------------------------------------------------------------
    # Heatmaps
    # -------------------------------------------------------------------------

    def open_heatmap(
        self,
        key: ChannelKey,
        page: int,
        expected_rows: int,
        total_pages: int,
    ) -> tuple[Path, TextIO]:
        """Create a heatmap page script and write everything up to its rows."""
        script = self.script_path(f"heatmap-{key.metric.value}", key.depth, page)
        style = METRIC_STYLES[key.metric]
        page_label = f"page {page} of {total_pages}" if total_pages else f"page {page}"
        size = self.config.heatmap_size

        handle = self._open(script)
        handle.write(
            HEATMAP_HEADER.format(
                width=size.width,
                height=size.height,
                image=quote(str(image_path(script))),
                title=quote(f"{_title(key)}, {page_label}"),
                amplicon_range=self._amplicon_range(
                    self.metadata.amplicon_count,
                    "set xrange [0.5:{top}]\n",
                ),
                row_top=fmt(expected_rows - 0.5),
                cbrange=style.value_range,
                cblabel=f"log10 {style.value_label}" if style.log_scale else style.value_label,
                cbformat=LOG_FORMAT.format(val_axis="cb") if style.log_scale else "",
            ),
        )
        return script, handle

    def write_heatmap_row(self, handle: TextIO, row: int, amplicon: int, value: float) -> None:
        handle.write(HEATMAP_ROW.format(row=row, amplicon=amplicon, value=fmt(value)))

    def close_heatmap(self, handle: TextIO, script: Path, labels: Sequence[str]) -> None:
        """Terminate the data block, add the plot command and render the page."""
        ytics = ", ".join(f'"{quote(label)}" {row}' for row, label in enumerate(labels))
        handle.write(HEATMAP_FOOTER.format(ytics=ytics))
        handle.close()
        self.renderer.render(script)

    # -------------------------------------------------------------------------
    # Combined charts
    # -------------------------------------------------------------------------

    def _graph(self, script: Path, datablocks: str, panel: str) -> Path:
        size = self.config.graph_size
        return self._write_and_render(
            script,
            GRAPH_SCRIPT.format(
                width=size.width,
                height=size.height,
                image=quote(str(image_path(script))),
                datablocks=datablocks,
                panel=panel,
            ),
        )

    def _panel(
        self,
        title: str,
        value_label: str,
        value_range: str,
        plots: Sequence[str],
        *,
        amplicons: int,
        log_scale: bool = False,
        key: str = "unset key",
    ) -> str:
        layout = self.layout
        return PANEL.format(
            title=quote(title),
            amp_axis=layout.amp_axis,
            val_axis=layout.val_axis,
            value_label=quote(f"log10 {value_label}" if log_scale else value_label),
            amplicon_range=self._amplicon_range(amplicons, layout.amplicon_range),
            value_range=value_range,
            value_format=LOG_FORMAT.format(val_axis=layout.val_axis) if log_scale else "",
            key=key,
            plots=", \\\n     ".join(plots),
        )

    def emit_combined_pair(
        self,
        key: ChannelKey,
        mean: Sequence[float],
        stddev: Sequence[float],
    ) -> Path:
        """Render a combined mean ± standard deviation chart for one metric."""
        style = METRIC_STYLES[key.metric]
        script = self.script_path(f"combined-{key.metric.value}", key.depth)

        rows = []
        for amplicon, (mu, sd) in enumerate(zip(mean, stddev, strict=True), start=1):
            low, high = max(mu - sd, 0.0), mu + sd
            if style.log_scale:
                mu, low, high = clipped_log10(mu), clipped_log10(low), clipped_log10(high)
            rows.append((amplicon, mu, low, high))

        value_range = style.value_range
        if style.log_scale:
            peak = max((m + s for m, s in zip(mean, stddev, strict=True)), default=0.0)
            value_range = f"0:{fmt(log_axis_ceiling(peak))}"

        layout = self.layout
        panel = self._panel(
            f"Combined {_title(key).lower()} (mean ± sd)",
            style.value_label,
            value_range,
            [
                ERRORBAR_PLOT.format(
                    block="combined",
                    using=layout.errorbar_using,
                    style=layout.errorbar_style,
                    color=BAR_COLOR,
                ),
                MEAN_LINE_PLOT.format(block="combined", using=layout.line_using, color=LINE_COLOR),
            ],
            amplicons=self.metadata.amplicon_count or len(rows),
            log_scale=style.log_scale,
            key="set key top right",
        )
        datablocks = DATABLOCK.format(name="combined", rows=_rows(rows))
        return self._graph(script, datablocks, panel)

    def emit_combined_mispriming(self, row: MisprimingRow) -> Path:
        """Render the combined mis-priming chart."""
        script = self.script_path("combined-mispriming")
        title = "Combined mis-primed templates per amplicon"
        if row.summary is not None:
            title = f"{title} ({fmt(row.summary)}% overall)"

        panel = self._panel(
            title,
            METRIC_STYLES[Metric.MISPRIMING].value_label,
            METRIC_STYLES[Metric.MISPRIMING].value_range,
            [
                BAR_PLOT.format(
                    block="mispriming",
                    using=self.layout.bar_using,
                    color=BAR_COLOR,
                    title="notitle",
                ),
            ],
            amplicons=self.metadata.amplicon_count or len(row.per_amplicon),
        )
        datablocks = DATABLOCK.format(name="mispriming", rows=_rows(row.per_amplicon))
        return self._graph(script, datablocks, panel)

    # -------------------------------------------------------------------------
    # Per-sample charts
    # -------------------------------------------------------------------------

    def emit_sample(
        self,
        sample: SampleBuffer,
        spans: Sequence[AmpliconSpan],
        ceilings: AxisCeilings,
    ) -> Path | None:
        """
        Render one multi-panel chart for a sample.

        Panels are drawn for whatever the sample has data for: reads, depth,
        coverage at each depth threshold, mis-priming and template coordinates.
        Returns None if the sample has nothing to draw.
        """
        layout = self.layout
        amplicons = self.metadata.amplicon_count
        datablocks: list[str] = []
        panels: list[str] = []

        log_panels = [
            (Metric.READS, sample.reads, ceilings.reads),
            (Metric.DEPTH, sample.depth, ceilings.depth),
        ]
        for metric, values, ceiling in log_panels:
            if not values:
                continue
            style = METRIC_STYLES[metric]
            rows = [(i, clipped_log10(v)) for i, v in enumerate(values, start=1)]
            datablocks.append(DATABLOCK.format(name=metric.value, rows=_rows(rows)))
            panels.append(
                self._panel(
                    style.title,
                    style.value_label,
                    f"0:{fmt(ceiling)}",
                    [
                        BAR_PLOT.format(
                            block=metric.value,
                            using=layout.bar_using,
                            color=BAR_COLOR,
                            title="notitle",
                        ),
                    ],
                    amplicons=amplicons or len(values),
                    log_scale=True,
                ),
            )

        if sample.coverage:
            plots = []
            for depth, values in sorted(sample.coverage.items()):
                block = f"coverage{depth}"
                rows = list(enumerate(values, start=1))
                datablocks.append(DATABLOCK.format(name=block, rows=_rows(rows)))
                plots.append(
                    LINE_PLOT.format(block=block, using=layout.line_using, title=f">= {depth}x"),
                )
            style = METRIC_STYLES[Metric.COVERAGE]
            panels.append(
                self._panel(
                    style.title,
                    style.value_label,
                    style.value_range,
                    plots,
                    amplicons=amplicons,
                    key="set key below horizontal",
                ),
            )

        if sample.mispriming:
            style = METRIC_STYLES[Metric.MISPRIMING]
            title = style.title
            if sample.mispriming.summary is not None:
                title = f"{title} ({fmt(sample.mispriming.summary)}% overall)"
            datablocks.append(
                DATABLOCK.format(name="mispriming", rows=_rows(sample.mispriming.per_amplicon)),
            )
            panels.append(
                self._panel(
                    title,
                    style.value_label,
                    style.value_range,
                    [
                        BAR_PLOT.format(
                            block="mispriming",
                            using=layout.bar_using,
                            color=BAR_COLOR,
                            title="notitle",
                        ),
                    ],
                    amplicons=amplicons,
                ),
            )

        if sample.templates:
            plots = []
            if spans:
                amplicon_rows = [(s.index, s.start, s.end) for s in spans]
                datablocks.append(DATABLOCK.format(name="amplicons", rows=_rows(amplicon_rows)))
                plots.append(
                    SPAN_PLOT.format(
                        block="amplicons",
                        using=layout.span_using,
                        width=6,
                        color=AMPLICON_COLOR,
                        title='title "amplicon"',
                    ),
                )
            template_rows = [(t.amplicon, t.start, t.end, t.status) for t in sample.templates]
            datablocks.append(DATABLOCK.format(name="templates", rows=_rows(template_rows)))
            plots.append(
                SPAN_PLOT.format(
                    block="templates",
                    using=f"{layout.template_using}:{TEMPLATE_STATUS_COLOR}",
                    width=1,
                    color=TEMPLATE_COLOR,
                    title="notitle",
                ),
            )
            panels.append(
                self._panel(
                    "Template coordinates",
                    "Reference position",
                    "*:*",
                    plots,
                    amplicons=amplicons,
                    key="set key below horizontal",
                ),
            )

        if not panels:
            logger.debug(f"Nothing to plot for sample {sample.sample_id}")
            return None

        slug = sample_slug(sample.sample_id, self._slugs)
        script = self.script_path("sample", slug)
        rows, cols = layout.grid(len(panels))
        size = self.config.graph_size
        return self._write_and_render(
            script,
            SAMPLE_SCRIPT.format(
                width=size.width * cols,
                height=size.height * rows,
                image=quote(str(image_path(script))),
                datablocks="".join(datablocks),
                rows=rows,
                cols=cols,
                title=quote(sample.sample_id),
                panels="".join(panels),
            ),
        )
