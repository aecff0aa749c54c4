"""Tests for gnuplot script emission."""

from __future__ import annotations

from pathlib import Path

import pytest
from ampliconplot.channels import ChannelKey, Metric
from ampliconplot.config import Layout, PlotConfig
from ampliconplot.emitter import AxisCeilings, TemplateEmitter, image_path
from ampliconplot.errors import OutputError
from ampliconplot.records import AmpliconSpan, RunMetadata
from ampliconplot.samples import MisprimingRow, SampleBuffer, TemplateSpan
from ampliconplot.templates import LAYOUTS, fmt, quote


@pytest.fixture
def emitter(config: PlotConfig, renderer) -> TemplateEmitter:
    return TemplateEmitter(config, renderer, RunMetadata(amplicon_count=3, file_count=2))


class TestFormatting:
    """Test number and string formatting helpers."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(3.0, "3"), (29903, "29903"), (1234567.0, "1234567"), (0.5, "0.5"), (1 / 3, "0.333333")],
    )
    def test_fmt(self, value: float, expected: str) -> None:
        assert fmt(value) == expected

    def test_quote(self) -> None:
        assert quote('a "b" \\c') == 'a \\"b\\" \\\\c'


class TestPaths:
    """Test output path construction."""

    def test_script_path(self, emitter: TemplateEmitter, config: PlotConfig) -> None:
        assert emitter.script_path("heatmap-coverage", 10, 2) == Path(
            f"{config.prefix}-heatmap-coverage-10-2.gp",
        )
        assert emitter.script_path("combined-reads") == Path(f"{config.prefix}-combined-reads.gp")

    def test_image_path(self) -> None:
        assert image_path(Path("out/run-heatmap-reads-1.gp")) == Path("out/run-heatmap-reads-1.png")

    def test_unwritable_prefix(self, tmp_path: Path, renderer) -> None:
        """A prefix under a regular file cannot be created."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        config = PlotConfig(prefix=blocker / "run")
        emitter = TemplateEmitter(config, renderer, RunMetadata())
        with pytest.raises(OutputError) as excinfo:
            emitter.emit_combined_mispriming(MisprimingRow(summary=1.0))
        assert excinfo.value.path == Path(f"{blocker / 'run'}-combined-mispriming.gp")
        assert renderer.rendered == []


class TestHeatmap:
    """Test incremental heatmap scripts."""

    def test_page_script(self, emitter: TemplateEmitter, renderer) -> None:
        key = ChannelKey(Metric.READS)
        script, handle = emitter.open_heatmap(key, 1, expected_rows=2, total_pages=1)
        emitter.write_heatmap_row(handle, 0, 1, 2.0)
        emitter.write_heatmap_row(handle, 1, 1, 0.5)
        emitter.close_heatmap(handle, script, ["s1.bam", 's"2'])

        assert handle.closed
        assert renderer.rendered == [script]
        content = renderer.contents[script]
        assert f'set output "{image_path(script)}"' in content
        assert "Reads per amplicon, page 1 of 1" in content
        assert "set xrange [0.5:3.5]" in content
        assert "set yrange [1.5:-0.5]" in content
        assert 'format "10^{%.0f}"' in content
        assert "$heatmap << EOD\n0\t1\t2\n1\t1\t0.5\nEOD\n" in content
        assert 'set ytics noenhanced ("s1.bam" 0, "s\\"2" 1)' in content
        assert content.rstrip().endswith("lc palette")

    def test_coverage_title_and_range(self, emitter: TemplateEmitter, renderer) -> None:
        key = ChannelKey(Metric.COVERAGE, 10)
        script, handle = emitter.open_heatmap(key, 2, expected_rows=6, total_pages=0)
        emitter.close_heatmap(handle, script, [])

        assert script.name.endswith("-heatmap-coverage-10-2.gp")
        content = renderer.contents[script]
        assert "at depth >= 10, page 2" in content
        assert "set cbrange [0:100]" in content
        assert "10^{" not in content

    def test_no_amplicon_count_omits_range(self, config: PlotConfig, renderer) -> None:
        emitter = TemplateEmitter(config, renderer, RunMetadata())
        script, handle = emitter.open_heatmap(ChannelKey(Metric.DEPTH), 1, 5, 0)
        emitter.close_heatmap(handle, script, [])
        assert "xrange" not in renderer.contents[script]


class TestCombined:
    """Test combined chart scripts."""

    def test_log_scaled_pair(self, emitter: TemplateEmitter, renderer) -> None:
        script = emitter.emit_combined_pair(ChannelKey(Metric.READS), [100.0, 10.0], [0.0, 0.0])

        assert script.name.endswith("-combined-reads.gp")
        content = renderer.contents[script]
        assert "$combined << EOD\n1\t2\t2\t2\n2\t1\t1\t1\nEOD\n" in content
        assert "set yrange [0:2]" in content
        assert "with yerrorbars" in content

    def test_linear_pair_clips_low_end(self, emitter: TemplateEmitter, renderer) -> None:
        script = emitter.emit_combined_pair(ChannelKey(Metric.COVERAGE, 1), [90.0], [20.0])

        assert script.name.endswith("-combined-coverage-1.gp")
        assert "1\t90\t70\t110\n" in renderer.contents[script]

        script = emitter.emit_combined_pair(ChannelKey(Metric.READ_PERCENT), [1.0], [2.0])
        assert "1\t1\t0\t3\n" in renderer.contents[script]

    def test_vertical_layout(self, tmp_path: Path, renderer) -> None:
        config = PlotConfig(prefix=tmp_path / "run", layout=Layout.VERTICAL)
        emitter = TemplateEmitter(config, renderer, RunMetadata(amplicon_count=2))
        script = emitter.emit_combined_pair(ChannelKey(Metric.DEPTH), [5.0, 50.0], [1.0, 1.0])

        content = renderer.contents[script]
        assert "with xerrorbars" in content
        assert "set yrange [2.5:0.5]" in content
        assert "set xrange [0:2]" in content
        assert "size 500,1000" in content

    def test_mispriming(self, emitter: TemplateEmitter, renderer) -> None:
        row = MisprimingRow(summary=1.25, per_amplicon=[(1, 0.5), (2, 3.0)])
        script = emitter.emit_combined_mispriming(row)

        content = renderer.contents[script]
        assert "(1.25% overall)" in content
        assert "$mispriming << EOD\n1\t0.5\n2\t3\nEOD\n" in content
        assert "with vectors nohead" in content


class TestSampleCharts:
    """Test per-sample multi-panel scripts."""

    def test_empty_sample_is_skipped(self, emitter: TemplateEmitter, renderer) -> None:
        assert emitter.emit_sample(SampleBuffer("s1"), [], AxisCeilings()) is None
        assert renderer.rendered == []

    def test_panels_stack_for_horizontal_layout(
        self,
        emitter: TemplateEmitter,
        renderer,
    ) -> None:
        sample = SampleBuffer("dir/s1.bam", reads=[100.0, 0.0, 10.0], depth=[5.0, 5.0, 5.0])
        script = emitter.emit_sample(sample, [], AxisCeilings(reads=4.0, depth=2.0))

        assert script is not None
        assert script.name.endswith("-sample-s1.gp")
        content = renderer.contents[script]
        assert "set multiplot layout 2,1" in content
        assert "size 1200,800" in content
        assert "$reads << EOD\n1\t2\n2\t0\n3\t1\nEOD\n" in content
        assert "set yrange [0:4]" in content
        assert "set yrange [0:2]" in content
        assert 'title "dir/s1.bam"' in content

    def test_all_panels(self, emitter: TemplateEmitter, renderer) -> None:
        sample = SampleBuffer(
            "s1",
            reads=[1.0],
            depth=[1.0],
            coverage={10: [50.0], 1: [100.0]},
            mispriming=MisprimingRow(summary=2.0, per_amplicon=[(1, 2.0)]),
            templates=[TemplateSpan(1, 30, 410, 5, 0), TemplateSpan(1, 35, 300, 1, 2)],
        )
        spans = [AmpliconSpan(index=1, start=25, end=420)]
        script = emitter.emit_sample(sample, spans, AxisCeilings())

        content = renderer.contents[script]
        assert "set multiplot layout 5,1" in content
        assert content.index("$coverage1 <<") < content.index("$coverage10 <<")
        assert 'title ">= 10x"' in content
        assert "(2% overall)" in content
        assert "$amplicons << EOD\n1\t25\t420\nEOD\n" in content
        assert "$templates << EOD\n1\t30\t410\t0\n1\t35\t300\t2\nEOD\n" in content
        assert "($4 == 0 ? 2 : 7)" in content

    def test_vertical_layout_puts_panels_side_by_side(self, tmp_path: Path, renderer) -> None:
        config = PlotConfig(prefix=tmp_path / "run", layout=Layout.VERTICAL)
        emitter = TemplateEmitter(config, renderer, RunMetadata(amplicon_count=1))
        sample = SampleBuffer("s1", reads=[1.0], depth=[1.0])
        script = emitter.emit_sample(sample, [], AxisCeilings())

        content = renderer.contents[script]
        assert "set multiplot layout 1,2" in content
        assert "size 1000,1000" in content
        assert "using (0):1:2:(0) with vectors" in content

    def test_slugs_unique_per_emitter(self, emitter: TemplateEmitter) -> None:
        first = emitter.emit_sample(SampleBuffer("a/s1.bam", reads=[1.0]), [], AxisCeilings())
        second = emitter.emit_sample(SampleBuffer("b/s1.bam", reads=[1.0]), [], AxisCeilings())
        assert first != second


class TestLayouts:
    """Test the layout lookup table."""

    def test_both_layouts_defined(self) -> None:
        assert set(LAYOUTS) == set(Layout)

    def test_axes_are_swapped(self) -> None:
        horizontal = LAYOUTS[Layout.HORIZONTAL]
        vertical = LAYOUTS[Layout.VERTICAL]
        assert (horizontal.amp_axis, horizontal.val_axis) == ("x", "y")
        assert (vertical.amp_axis, vertical.val_axis) == ("y", "x")

    def test_grid(self) -> None:
        assert LAYOUTS[Layout.HORIZONTAL].grid(3) == (3, 1)
        assert LAYOUTS[Layout.VERTICAL].grid(3) == (1, 3)
