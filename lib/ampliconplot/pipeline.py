"""
Single-pass driver turning an ampliconstats stream into rendered charts.

The run has three phases:

1. Read the SS header for the amplicon and file counts.
2. Stream every remaining record once. Each record is classified and routed
   to the heatmap channels, the combined-metric accumulator and the per-sample
   buffers as applicable, updating the running maxima on the way.
3. At end of stream, close the open heatmap pages, finalize the combined
   charts, then draw one chart set per sample using the run-wide maxima.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from .channels import ChannelKey, Metric, PageRecord, PaginatedChannelManager
from .combined import CombinedAccumulator
from .derived import clipped_log10, log_axis_ceiling, misprime_percent, running_max
from .emitter import AxisCeilings, TemplateEmitter
from .multiqc import write_summary_tsv
from .records import AmpliconSpans, Record, RecordKind, RunMetadata, classify, read_header
from .samples import SampleAccumulator, parse_template_spans

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .config import PlotConfig
    from .render import Renderer

# Per-file and combined record kinds that carry one value per amplicon.
FILE_METRICS: dict[RecordKind, Metric] = {
    RecordKind.FILE_READS: Metric.READS,
    RecordKind.FILE_DEPTH: Metric.DEPTH,
    RecordKind.FILE_READ_PERCENT: Metric.READ_PERCENT,
    RecordKind.FILE_COVERAGE: Metric.COVERAGE,
}

COMBINED_METRICS: dict[RecordKind, Metric] = {
    RecordKind.COMBINED_READS: Metric.READS,
    RecordKind.COMBINED_DEPTH: Metric.DEPTH,
    RecordKind.COMBINED_READ_PERCENT: Metric.READ_PERCENT,
    RecordKind.COMBINED_COVERAGE: Metric.COVERAGE,
}

LOG_METRICS = {Metric.READS, Metric.DEPTH}


@dataclass(slots=True)
class RunSummary:
    """Everything a run produced."""

    metadata: RunMetadata
    heatmaps: list[PageRecord] = field(default_factory=list)
    combined: list[Path] = field(default_factory=list)
    samples: list[Path] = field(default_factory=list)
    summary_table: Path | None = None

    @property
    def scripts(self) -> list[Path]:
        """Every rendered script, in render order within each group."""
        return [page.script for page in self.heatmaps] + self.combined + self.samples


class AmpliconStatsPlotter:
    """Drive one plotting run over an ampliconstats stream."""

    def __init__(self, config: PlotConfig, renderer: Renderer) -> None:
        self.config = config
        self.renderer = renderer

    def run(self, lines: Iterable[str]) -> RunSummary:
        metadata, body = read_header(lines)

        emitter = TemplateEmitter(self.config, self.renderer, metadata)
        channels = PaginatedChannelManager(emitter, metadata, self.config.page_size)
        combined = CombinedAccumulator(emitter)
        samples = SampleAccumulator()
        spans = AmpliconSpans()
        maxima = {Metric.READS: 0.0, Metric.DEPTH: 0.0}

        for line in body:
            record = classify(line)
            if record is None:
                continue
            self._dispatch(record, channels, combined, samples, spans, maxima)

        channels.close_all()
        combined.finalize()

        # Second pass: per-sample charts with shared axis ceilings.
        samples.freeze()
        ceilings = AxisCeilings(
            reads=log_axis_ceiling(maxima[Metric.READS]),
            depth=log_axis_ceiling(maxima[Metric.DEPTH]),
        )
        amplicon_spans = spans.finalize()
        sample_scripts = []
        for sample in samples:
            script = emitter.emit_sample(sample, amplicon_spans, ceilings)
            if script is not None:
                sample_scripts.append(script)
        logger.info(f"Rendered chart sets for {len(sample_scripts)} sample(s)")

        summary_table = None
        if self.config.summary and len(samples):
            summary_table = write_summary_tsv(
                samples,
                Path(f"{self.config.prefix}-summary_mqc.tsv"),
            )
            logger.info(f"Wrote MultiQC summary table to {summary_table}")

        result = RunSummary(
            metadata=metadata,
            heatmaps=list(channels.pages),
            combined=list(combined.scripts),
            samples=sample_scripts,
            summary_table=summary_table,
        )
        logger.success(f"Done! Rendered {len(result.scripts)} chart(s) for {len(samples)} sample(s)")
        return result

    def _dispatch(  # noqa: PLR0913
        self,
        record: Record,
        channels: PaginatedChannelManager,
        combined: CombinedAccumulator,
        samples: SampleAccumulator,
        spans: AmpliconSpans,
        maxima: dict[Metric, float],
    ) -> None:
        kind = record.kind

        if kind is RecordKind.AMPLICON:
            spans.add(record)
            return

        if kind in FILE_METRICS:
            assert record.sample_id is not None
            metric = FILE_METRICS[kind]
            values = record.numbers()
            key = ChannelKey(metric, record.depth)

            if metric in LOG_METRICS:
                maxima[metric] = running_max(maxima[metric], values)
                cells = [(i, clipped_log10(v)) for i, v in enumerate(values, start=1)]
            else:
                cells = list(enumerate(values, start=1))
            channels.route(key, record.sample_id, cells)

            if metric is Metric.READS:
                samples.add_reads(record.sample_id, values)
            elif metric is Metric.DEPTH:
                samples.add_depth(record.sample_id, values)
            elif metric is Metric.COVERAGE:
                assert record.depth is not None
                samples.add_coverage(record.sample_id, record.depth, values)
            return

        if kind is RecordKind.FILE_AMPLICON:
            assert record.sample_id is not None
            amplicon, correct, double, unmatched = record.numbers()[:4]
            percent = misprime_percent(correct, double, unmatched, self.config.smoothing)
            samples.add_mispriming(record.sample_id, int(amplicon), percent)
            if amplicon > 0:
                channels.route(
                    ChannelKey(Metric.MISPRIMING),
                    record.sample_id,
                    [(int(amplicon), percent)],
                    extend=True,
                )
            return

        if kind is RecordKind.FILE_TEMPLATE_COORDS:
            assert record.sample_id is not None
            amplicon = int(record.fields[0])
            samples.add_templates(
                record.sample_id,
                amplicon,
                parse_template_spans(amplicon, record.fields[1:]),
            )
            return

        if kind in COMBINED_METRICS:
            key = ChannelKey(COMBINED_METRICS[kind], record.depth)
            combined.add_row(key, record.fields[0], record.numbers(1))
            return

        if kind is RecordKind.COMBINED_AMPLICON:
            amplicon, correct, double, unmatched = record.numbers()[:4]
            combined.add_mispriming(
                int(amplicon),
                misprime_percent(correct, double, unmatched, self.config.smoothing),
            )
