"""Tests for per-sample buffering."""

import pytest
from ampliconplot.samples import (
    MisprimingRow,
    SampleAccumulator,
    TemplateSpan,
    parse_template_spans,
    sample_slug,
)


class TestSampleAccumulator:
    """Test buffering by sample."""

    def test_samples_kept_in_arrival_order(self) -> None:
        samples = SampleAccumulator()
        samples.add_reads("b", [1.0])
        samples.add_depth("a", [2.0])
        samples.add_reads("a", [3.0])
        assert [buffer.sample_id for buffer in samples] == ["b", "a"]
        assert len(samples) == 2

    def test_all_metrics_land_in_one_buffer(self) -> None:
        samples = SampleAccumulator()
        samples.add_reads("s1", [10.0, 20.0])
        samples.add_depth("s1", [5.0, 6.0])
        samples.add_coverage("s1", 1, [100.0, 100.0])
        samples.add_coverage("s1", 10, [90.0, 50.0])
        samples.add_mispriming("s1", 0, 1.5)
        samples.add_mispriming("s1", 1, 2.0)
        samples.add_templates("s1", 1, [TemplateSpan(1, 30, 410, 5, 0)])

        (buffer,) = list(samples)
        assert buffer.reads == [10.0, 20.0]
        assert buffer.depth == [5.0, 6.0]
        assert buffer.coverage == {1: [100.0, 100.0], 10: [90.0, 50.0]}
        assert buffer.mispriming.summary == 1.5
        assert buffer.mispriming.per_amplicon == [(1, 2.0)]
        assert buffer.templates == [TemplateSpan(1, 30, 410, 5, 0)]

    def test_repeated_sample_keeps_every_record(self) -> None:
        """A sample listed twice gets a second buffer instead of losing a row."""
        samples = SampleAccumulator()
        samples.add_reads("a.bam", [10.0, 20.0])
        samples.add_reads("a.bam", [30.0, 40.0])
        samples.add_depth("a.bam", [1.0, 2.0])
        samples.add_depth("a.bam", [3.0, 4.0])

        first, second = list(samples)
        assert (first.sample_id, second.sample_id) == ("a.bam", "a.bam")
        assert (first.reads, first.depth) == ([10.0, 20.0], [1.0, 2.0])
        assert (second.reads, second.depth) == ([30.0, 40.0], [3.0, 4.0])

    def test_repeated_mispriming_amplicon_starts_new_buffer(self) -> None:
        samples = SampleAccumulator()
        for _ in range(2):
            samples.add_mispriming("a", 0, 1.0)
            samples.add_mispriming("a", 1, 2.0)

        assert [buffer.mispriming.per_amplicon for buffer in samples] == [[(1, 2.0)], [(1, 2.0)]]

    def test_frozen_accumulator_rejects_additions(self) -> None:
        samples = SampleAccumulator()
        samples.add_reads("s1", [1.0])
        samples.freeze()
        with pytest.raises(AssertionError, match="frozen"):
            samples.add_reads("s2", [1.0])

    def test_summary_row(self) -> None:
        samples = SampleAccumulator()
        samples.add_reads("s1", [10.0, 30.0])
        samples.add_depth("s1", [4.0, 8.0])
        samples.add_mispriming("s1", 0, 0.5)
        (buffer,) = list(samples)
        assert buffer.summary_row() == {
            "Sample": "s1",
            "total_reads": 40.0,
            "mean_depth": 6.0,
            "mispriming_pct": 0.5,
        }


class TestMisprimingRow:
    """Test incremental mis-priming rows."""

    def test_empty_row_is_falsy(self) -> None:
        assert not MisprimingRow()

    def test_summary_only_is_truthy(self) -> None:
        row = MisprimingRow()
        row.add(0, 3.0)
        assert row
        assert row.per_amplicon == []

    def test_values_appended_in_arrival_order(self) -> None:
        row = MisprimingRow()
        for amplicon, value in [(0, 1.0), (2, 5.0), (1, 4.0)]:
            row.add(amplicon, value)
        assert row.summary == 1.0
        assert row.per_amplicon == [(2, 5.0), (1, 4.0)]


class TestTemplateSpans:
    """Test FTCOORD span parsing."""

    def test_parse(self) -> None:
        spans = parse_template_spans(3, ("30,410,95,0", "31,409,3,1"))
        assert spans == [
            TemplateSpan(amplicon=3, start=30, end=410, count=95, status=0),
            TemplateSpan(amplicon=3, start=31, end=409, count=3, status=1),
        ]

    def test_no_spans(self) -> None:
        assert parse_template_spans(1, ()) == []


class TestSampleSlug:
    """Test file-name-safe sample identifiers."""

    def test_strips_directory_and_extension(self) -> None:
        assert sample_slug("/data/run1/sample_01.bam", set()) == "sample_01"

    def test_replaces_unsafe_characters(self) -> None:
        assert sample_slug("sample 1:lane#2", set()) == "sample_1_lane_2"

    def test_unique_within_run(self) -> None:
        taken: set[str] = set()
        slugs = [sample_slug(name, taken) for name in ("a/s1.bam", "b/s1.bam", "s1.cram")]
        assert slugs == ["s1", "s1-2", "s1-3"]

    def test_empty_name_falls_back(self) -> None:
        assert sample_slug("###", set()) == "sample"
