"""
Record classification for samtools ampliconstats output.

Every line of an ampliconstats report starts with a tag naming the kind of
record it holds. This module turns raw lines into immutable `Record` objects,
reads the summary header that carries the amplicon and file counts, and folds
the AMPLICON coordinate records into one span per amplicon.

Example input:
    SS	Number of amplicons:	3
    SS	Number of files:	2
    SS	End of summary
    AMPLICON	1	30-54	385-410
    FREADS	sample1.bam	120	87	3
    CREADS	MEAN	110.5	80.0	2.5
    FPCOV-10	sample1.bam	100.00	98.50	12.00
"""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class RecordKind(str, Enum):
    """Record kinds the plotter knows how to route."""

    AMPLICON = "amplicon"
    FILE_READS = "file-reads"
    FILE_DEPTH = "file-depth"
    FILE_READ_PERCENT = "file-read-percent"
    FILE_COVERAGE = "file-coverage"
    FILE_AMPLICON = "file-amplicon"
    FILE_TEMPLATE_COORDS = "file-template-coords"
    COMBINED_READS = "combined-reads"
    COMBINED_DEPTH = "combined-depth"
    COMBINED_READ_PERCENT = "combined-read-percent"
    COMBINED_COVERAGE = "combined-coverage"
    COMBINED_AMPLICON = "combined-amplicon"


@dataclass(frozen=True, slots=True)
class RecordLayout:
    """Column expectations for one record kind."""

    min_fields: int
    has_sample: bool
    numeric_from: int | None


EXACT_TAGS: dict[str, RecordKind] = {
    "AMPLICON": RecordKind.AMPLICON,
    "FREADS": RecordKind.FILE_READS,
    "FDEPTH": RecordKind.FILE_DEPTH,
    "FRPERC": RecordKind.FILE_READ_PERCENT,
    "FAMP": RecordKind.FILE_AMPLICON,
    "FTCOORD": RecordKind.FILE_TEMPLATE_COORDS,
    "CREADS": RecordKind.COMBINED_READS,
    "CDEPTH": RecordKind.COMBINED_DEPTH,
    "CRPERC": RecordKind.COMBINED_READ_PERCENT,
    "CAMP": RecordKind.COMBINED_AMPLICON,
}

COVERAGE_TAG = re.compile(r"^(?P<scope>[FC])PCOV-(?P<depth>\d+)$")

# Field counts exclude the tag. `numeric_from` indexes the fields left after
# the sample id has been split off.
LAYOUTS: dict[RecordKind, RecordLayout] = {
    RecordKind.AMPLICON: RecordLayout(min_fields=3, has_sample=False, numeric_from=None),
    RecordKind.FILE_READS: RecordLayout(min_fields=2, has_sample=True, numeric_from=0),
    RecordKind.FILE_DEPTH: RecordLayout(min_fields=2, has_sample=True, numeric_from=0),
    RecordKind.FILE_READ_PERCENT: RecordLayout(min_fields=2, has_sample=True, numeric_from=0),
    RecordKind.FILE_COVERAGE: RecordLayout(min_fields=2, has_sample=True, numeric_from=0),
    RecordKind.FILE_AMPLICON: RecordLayout(min_fields=5, has_sample=True, numeric_from=0),
    RecordKind.FILE_TEMPLATE_COORDS: RecordLayout(min_fields=2, has_sample=True, numeric_from=None),
    RecordKind.COMBINED_READS: RecordLayout(min_fields=2, has_sample=False, numeric_from=1),
    RecordKind.COMBINED_DEPTH: RecordLayout(min_fields=2, has_sample=False, numeric_from=1),
    RecordKind.COMBINED_READ_PERCENT: RecordLayout(min_fields=2, has_sample=False, numeric_from=1),
    RecordKind.COMBINED_COVERAGE: RecordLayout(min_fields=2, has_sample=False, numeric_from=1),
    RecordKind.COMBINED_AMPLICON: RecordLayout(min_fields=4, has_sample=False, numeric_from=0),
}

HEADER_TAG = "SS"
HEADER_END = "End of summary"
AMPLICON_COUNT_LABEL = "Number of amplicons:"
FILE_COUNT_LABEL = "Number of files:"

RANGE_LIST = re.compile(r"^\d+-\d+(,\d+-\d+)*$")
TEMPLATE_SPAN = re.compile(r"^\d+,\d+,\d+,\d+$")


@dataclass(frozen=True, slots=True)
class Record:
    """A classified ampliconstats record."""

    tag: str
    kind: RecordKind
    sample_id: str | None
    fields: tuple[str, ...]
    depth: int | None = None

    def numbers(self, start: int = 0) -> list[float]:
        """Return the fields from `start` onwards as floats."""
        return [float(value) for value in self.fields[start:]]


@dataclass(frozen=True, slots=True)
class RunMetadata:
    """Amplicon and file counts read from the summary header."""

    amplicon_count: int = 0
    file_count: int = 0

    def __post_init__(self) -> None:
        """Validate counts on construction."""
        assert self.amplicon_count >= 0, f"Invalid amplicon count: {self.amplicon_count}"
        assert self.file_count >= 0, f"Invalid file count: {self.file_count}"


@dataclass(frozen=True, slots=True)
class AmpliconSpan:
    """Outermost primer coordinates of one amplicon."""

    index: int
    start: int
    end: int


def _resolve_tag(tag: str) -> tuple[RecordKind, int | None] | None:
    if tag in EXACT_TAGS:
        return EXACT_TAGS[tag], None

    match = COVERAGE_TAG.match(tag)
    if match is None:
        return None

    kind = RecordKind.FILE_COVERAGE if match["scope"] == "F" else RecordKind.COMBINED_COVERAGE
    return kind, int(match["depth"])


def _is_well_formed(kind: RecordKind, fields: list[str], layout: RecordLayout) -> bool:
    if layout.numeric_from is not None:
        try:
            [float(value) for value in fields[layout.numeric_from :]]
        except ValueError:
            return False
        return True

    if kind is RecordKind.AMPLICON:
        return fields[0].isdigit() and all(RANGE_LIST.match(f) for f in fields[1:3])

    # Template coordinates: amplicon index followed by start,end,count,status spans.
    return fields[0].isdigit() and all(TEMPLATE_SPAN.match(f) for f in fields[1:])


def classify(line: str) -> Record | None:
    """
    Parse one ampliconstats line into a `Record`.

    Blank lines, comments, unrecognized tags, records with too few fields and
    records whose numeric columns do not parse all give `None`. The input may
    carry record kinds that are irrelevant to plotting, so none of these are
    errors.
    """
    line = line.rstrip("\r\n")
    if not line or line.startswith("#"):
        return None

    tag, *fields = line.split("\t")
    resolved = _resolve_tag(tag)
    if resolved is None:
        return None
    kind, depth = resolved

    layout = LAYOUTS[kind]
    if len(fields) < layout.min_fields:
        logger.debug(f"Skipping short {tag} record with {len(fields)} field(s)")
        return None

    sample_id = None
    if layout.has_sample:
        sample_id, *fields = fields

    if not _is_well_formed(kind, fields, layout):
        logger.debug(f"Skipping malformed {tag} record for {sample_id or 'combined'} data")
        return None

    return Record(
        tag=tag,
        kind=kind,
        sample_id=sample_id,
        fields=tuple(fields),
        depth=depth,
    )


def read_header(lines: Iterable[str]) -> tuple[RunMetadata, Iterator[str]]:
    """
    Read the SS summary header from the start of the stream.

    Args:
        lines: The full ampliconstats line stream

    Returns:
        The run metadata and an iterator over the lines after the header. If a
        non-SS record shows up before the end marker, it is handed back as the
        first line of the returned iterator.
    """
    stream = iter(lines)
    counts = {AMPLICON_COUNT_LABEL: 0, FILE_COUNT_LABEL: 0}

    for line in stream:
        stripped = line.rstrip("\r\n")
        if not stripped or stripped.startswith("#"):
            continue

        fields = stripped.split("\t")
        if fields[0] != HEADER_TAG:
            logger.warning("Statistics header ended without an end-of-summary marker")
            stream = itertools.chain([line], stream)
            break

        if len(fields) >= 2 and fields[1] == HEADER_END:  # noqa: PLR2004
            break

        if len(fields) >= 3 and fields[1] in counts and fields[2].isdigit():  # noqa: PLR2004
            counts[fields[1]] = int(fields[2])

    metadata = RunMetadata(
        amplicon_count=counts[AMPLICON_COUNT_LABEL],
        file_count=counts[FILE_COUNT_LABEL],
    )
    logger.info(
        f"Run has {metadata.amplicon_count} amplicon(s) across {metadata.file_count} file(s)",
    )
    return metadata, stream


def _parse_ranges(ranges: str) -> list[tuple[int, int]]:
    pairs = []
    for item in ranges.split(","):
        start, end = item.split("-")
        pairs.append((int(start), int(end)))
    return pairs


class AmpliconSpans:
    """
    Incremental builder for amplicon spans.

    Each AMPLICON record lists one or more left primer ranges and one or more
    right primer ranges. The amplicon span runs from the smallest left start to
    the largest right end seen across all records for that index.
    """

    def __init__(self) -> None:
        self._bounds: dict[int, tuple[int, int]] = {}

    def add(self, record: Record) -> None:
        assert record.kind is RecordKind.AMPLICON, f"Not an AMPLICON record: {record.tag}"

        index = int(record.fields[0])
        left_start = min(start for start, _ in _parse_ranges(record.fields[1]))
        right_end = max(end for _, end in _parse_ranges(record.fields[2]))

        if index in self._bounds:
            start, end = self._bounds[index]
            left_start = min(start, left_start)
            right_end = max(end, right_end)
        self._bounds[index] = (left_start, right_end)

    def finalize(self) -> list[AmpliconSpan]:
        """Return one span per amplicon, ordered by amplicon index."""
        return [
            AmpliconSpan(index=index, start=start, end=end)
            for index, (start, end) in sorted(self._bounds.items())
        ]

    def __len__(self) -> int:
        return len(self._bounds)
