"""
Paginated heatmap channels.

Each per-sample metric (and each coverage depth threshold) feeds its own
heatmap channel. A channel writes one heatmap row per sample into an open
gnuplot script and starts a new page once the current page is full. Pages
are rendered as soon as they close, in increasing page order.

Page breaks follow one extra rule: a page is never closed if doing so would
leave exactly one sample for the next page. That sample is absorbed by the
current page instead, so 11 samples at 5 per page come out as pages of 5 and
6 rather than 5, 5 and 1.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, TextIO

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from .emitter import TemplateEmitter
    from .records import RunMetadata


class Metric(str, Enum):
    """Metric categories drawn as heatmaps and combined charts."""

    READS = "reads"
    DEPTH = "depth"
    READ_PERCENT = "read-percent"
    COVERAGE = "coverage"
    MISPRIMING = "mispriming"


class ChannelState(str, Enum):
    """Whether a channel currently has a page open."""

    CLOSED = "closed"
    OPEN = "open"


@dataclass(frozen=True, slots=True)
class ChannelKey:
    """Routing key: a metric plus, for coverage, the depth threshold."""

    metric: Metric
    depth: int | None = None

    @property
    def slug(self) -> str:
        """File-name fragment for this key, e.g. `reads` or `coverage-10`."""
        if self.depth is None:
            return self.metric.value
        return f"{self.metric.value}-{self.depth}"


@dataclass(slots=True)
class Channel:
    """Pagination state for one heatmap channel."""

    key: ChannelKey
    state: ChannelState = ChannelState.CLOSED
    page_index: int = 0
    rows_on_page: int = 0
    current_sample: str | None = None
    row_amplicons: set[int] = field(default_factory=set)
    labels: list[str] = field(default_factory=list)
    handle: TextIO | None = None
    script: Path | None = None


@dataclass(frozen=True, slots=True)
class PageRecord:
    """A rendered heatmap page."""

    key: ChannelKey
    page: int
    rows: int
    script: Path


def page_break_due(
    rows_on_page: int,
    page_size: int,
    total_samples: int,
    page_index: int,
) -> bool:
    """
    Decide whether the row just counted starts a new page.

    Args:
        rows_on_page: Rows on the current page, including the new one
        page_size: Maximum rows per page
        total_samples: Number of samples in the run (0 if unknown)
        page_index: 1-based index of the current page

    Returns:
        True if the current page is full and closing it would not leave a
        single sample behind for the next page.
    """
    return rows_on_page > page_size and total_samples - page_size * page_index != 1


def expected_page_rows(page_index: int, page_size: int, total_samples: int) -> int:
    """Number of rows page `page_index` will hold, or `page_size` if unknown."""
    if total_samples <= 0:
        return page_size

    remaining = total_samples - page_size * (page_index - 1)
    if remaining <= page_size:
        return max(remaining, 1)
    if remaining - page_size == 1:
        return page_size + 1
    return page_size


def page_count(page_size: int, total_samples: int) -> int:
    """Number of pages a full run produces, or 0 if the sample count is unknown."""
    if total_samples <= 0:
        return 0

    pages = 0
    remaining = total_samples
    while remaining > 0:
        pages += 1
        remaining -= expected_page_rows(pages, page_size, total_samples)
    return pages


class PaginatedChannelManager:
    """Owns every heatmap channel and decides when pages open and close."""

    def __init__(
        self,
        emitter: TemplateEmitter,
        metadata: RunMetadata,
        page_size: int,
    ) -> None:
        assert page_size >= 1, f"Invalid page size: {page_size}"
        self.emitter = emitter
        self.metadata = metadata
        self.page_size = page_size
        self.channels: dict[ChannelKey, Channel] = {}
        self.pages: list[PageRecord] = []

    def route(
        self,
        key: ChannelKey,
        sample_id: str,
        cells: Sequence[tuple[int, float]],
        *,
        extend: bool = False,
    ) -> None:
        """
        Write `cells` for `sample_id` to the channel for `key`.

        Every call starts a new heatmap row unless `extend` is set, the open
        row belongs to the same sample and none of `cells` is already on it.
        Per-amplicon records use `extend` to build one row across several
        records. The page break rule is evaluated whenever a row starts.
        """
        channel = self.channels.get(key)
        if channel is None:
            logger.debug(f"Opening heatmap channel {key.slug}")
            channel = Channel(key=key)
            self.channels[key] = channel

        if not (
            extend
            and channel.state is ChannelState.OPEN
            and sample_id == channel.current_sample
            and channel.row_amplicons.isdisjoint(amplicon for amplicon, _ in cells)
        ):
            self._start_row(channel, sample_id)

        assert channel.handle is not None
        row = channel.rows_on_page - 1
        for amplicon, value in cells:
            self.emitter.write_heatmap_row(channel.handle, row, amplicon, value)
            channel.row_amplicons.add(amplicon)

    def close_all(self) -> None:
        """Close and render every channel still holding an open page."""
        for channel in self.channels.values():
            if channel.state is ChannelState.OPEN:
                self._close_page(channel)

    def pages_for(self, key: ChannelKey) -> list[PageRecord]:
        """Rendered pages for one channel, in page order."""
        return [page for page in self.pages if page.key == key]

    def _start_row(self, channel: Channel, sample_id: str) -> None:
        if channel.state is ChannelState.CLOSED:
            self._open_page(channel, channel.page_index + 1)
        else:
            channel.rows_on_page += 1
            if page_break_due(
                channel.rows_on_page,
                self.page_size,
                self.metadata.file_count,
                channel.page_index,
            ):
                channel.rows_on_page -= 1
                self._close_page(channel)
                self._open_page(channel, channel.page_index + 1)

        channel.current_sample = sample_id
        channel.row_amplicons = set()
        channel.labels.append(sample_id)

    def _open_page(self, channel: Channel, page_index: int) -> None:
        total = self.metadata.file_count
        script, handle = self.emitter.open_heatmap(
            channel.key,
            page_index,
            expected_page_rows(page_index, self.page_size, total),
            page_count(self.page_size, total),
        )
        channel.state = ChannelState.OPEN
        channel.page_index = page_index
        channel.rows_on_page = 1
        channel.labels = []
        channel.handle = handle
        channel.script = script

    def _close_page(self, channel: Channel) -> None:
        assert channel.handle is not None
        assert channel.script is not None

        self.emitter.close_heatmap(channel.handle, channel.script, channel.labels)
        self.pages.append(
            PageRecord(
                key=channel.key,
                page=channel.page_index,
                rows=len(channel.labels),
                script=channel.script,
            ),
        )
        logger.info(
            f"Rendered {channel.key.slug} heatmap page {channel.page_index} "
            f"({len(channel.labels)} sample(s))",
        )

        channel.state = ChannelState.CLOSED
        channel.handle = None
        channel.script = None
        channel.current_sample = None
        channel.row_amplicons = set()
