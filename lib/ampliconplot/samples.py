"""
Per-sample buffers for the second emission pass.

Nothing is rendered while samples accumulate. Per-sample charts share axis
ceilings (the largest read count and depth seen in the whole run), which are
only known once the stream is exhausted.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import PurePath
from statistics import fmean
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True, slots=True)
class TemplateSpan:
    """One aligned template span reported for an amplicon."""

    amplicon: int
    start: int
    end: int
    count: int
    status: int


@dataclass(slots=True)
class MisprimingRow:
    """Summary mis-priming percentage plus per-amplicon values in arrival order."""

    summary: float | None = None
    per_amplicon: list[tuple[int, float]] = field(default_factory=list)

    def add(self, amplicon: int, percent: float) -> None:
        """Record the value for `amplicon`; amplicon 0 is the summary."""
        if amplicon == 0:
            self.summary = percent
        else:
            self.per_amplicon.append((amplicon, percent))

    def __bool__(self) -> bool:
        return self.summary is not None or bool(self.per_amplicon)


@dataclass(slots=True)
class SampleBuffer:
    """Every row needed to draw one sample's charts."""

    sample_id: str
    reads: list[float] = field(default_factory=list)
    depth: list[float] = field(default_factory=list)
    coverage: dict[int, list[float]] = field(default_factory=dict)
    mispriming: MisprimingRow = field(default_factory=MisprimingRow)
    templates: list[TemplateSpan] = field(default_factory=list)

    def summary_row(self) -> dict[str, object]:
        """Headline numbers for the sample, as used in the MultiQC table."""
        return {
            "Sample": self.sample_id,
            "total_reads": sum(self.reads),
            "mean_depth": fmean(self.depth) if self.depth else 0.0,
            "mispriming_pct": self.mispriming.summary,
        }


def parse_template_spans(amplicon: int, fields: tuple[str, ...]) -> list[TemplateSpan]:
    """Parse FTCOORD `start,end,count,status` fields for one amplicon."""
    spans = []
    for item in fields:
        start, end, count, status = (int(value) for value in item.split(","))
        spans.append(
            TemplateSpan(amplicon=amplicon, start=start, end=end, count=count, status=status),
        )
    return spans


class SampleAccumulator:
    """
    Buffers keyed by sample id, kept in the order samples first appear.

    Every record contributes exactly one row. When the same sample id shows
    up again for a row its buffer already holds (the same file listed twice,
    say), the record goes to a further buffer for that id, so the k-th record
    of a kind for a sample always lands in that sample's k-th buffer.

    Call `freeze()` before the second pass starts; adding to a frozen
    accumulator is a programming error.
    """

    def __init__(self) -> None:
        self._buffers: dict[tuple[str, int], SampleBuffer] = {}
        self._seen: Counter[tuple[str, str]] = Counter()
        self._frozen = False

    def buffer(self, sample_id: str, slot: str) -> SampleBuffer:
        """Buffer receiving the next `slot` row for `sample_id`."""
        assert not self._frozen, "Sample buffers are frozen once the second pass starts"
        occurrence = self._seen[sample_id, slot]
        self._seen[sample_id, slot] += 1

        key = (sample_id, occurrence)
        if key not in self._buffers:
            self._buffers[key] = SampleBuffer(sample_id=sample_id)
        return self._buffers[key]

    def add_reads(self, sample_id: str, values: list[float]) -> None:
        self.buffer(sample_id, "reads").reads = values

    def add_depth(self, sample_id: str, values: list[float]) -> None:
        self.buffer(sample_id, "depth").depth = values

    def add_coverage(self, sample_id: str, depth: int, values: list[float]) -> None:
        self.buffer(sample_id, f"coverage-{depth}").coverage[depth] = values

    def add_mispriming(self, sample_id: str, amplicon: int, percent: float) -> None:
        self.buffer(sample_id, f"mispriming-{amplicon}").mispriming.add(amplicon, percent)

    def add_templates(self, sample_id: str, amplicon: int, spans: list[TemplateSpan]) -> None:
        self.buffer(sample_id, f"templates-{amplicon}").templates.extend(spans)

    def freeze(self) -> None:
        self._frozen = True

    def __iter__(self) -> Iterator[SampleBuffer]:
        return iter(self._buffers.values())

    def __len__(self) -> int:
        return len(self._buffers)


SLUG_UNSAFE = re.compile(r"[^\w.+-]+")


def sample_slug(sample_id: str, taken: set[str]) -> str:
    """
    File-name-safe version of a sample id, unique among `taken`.

    Directory components and a trailing `.bam`/`.sam`/`.cram` extension are
    dropped. The returned slug is added to `taken`.
    """
    name = PurePath(sample_id).name or sample_id
    name = re.sub(r"\.(bam|sam|cram)$", "", name)
    base = SLUG_UNSAFE.sub("_", name).strip("_") or "sample"

    slug = base
    suffix = 2
    while slug in taken:
        slug = f"{base}-{suffix}"
        suffix += 1
    taken.add(slug)
    return slug
