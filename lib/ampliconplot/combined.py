"""
Combined (all-sample) metrics.

Combined metrics are drawn once per run, without pagination. Mean and
standard deviation arrive as two consecutive records; the chart is rendered as
soon as the STDDEV row completes the pair.

Upstream precondition: for every combined metric the MEAN row comes before its
STDDEV row. This is enforced rather than assumed. A STDDEV with no MEAN
waiting, a repeated MEAN, or a MEAN still waiting at the end of the stream all
raise `CombinedOrderError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from .errors import CombinedOrderError
from .samples import MisprimingRow

if TYPE_CHECKING:
    from pathlib import Path

    from .channels import ChannelKey
    from .emitter import TemplateEmitter

MEAN_LABEL = "MEAN"
STDDEV_LABEL = "STDDEV"


class CombinedAccumulator:
    """Buffers combined rows until each chart is complete, then renders it."""

    def __init__(self, emitter: TemplateEmitter) -> None:
        self.emitter = emitter
        self.pending: dict[ChannelKey, list[float]] = {}
        self.mispriming = MisprimingRow()
        self.scripts: list[Path] = []

    def add_row(self, key: ChannelKey, label: str, values: list[float]) -> Path | None:
        """
        Add a MEAN or STDDEV row for `key`.

        Returns:
            The rendered script path when this row completes a pair, else None.
        """
        if label == MEAN_LABEL:
            if key in self.pending:
                msg = f"Second MEAN row for combined {key.slug} before its STDDEV row"
                raise CombinedOrderError(msg)
            self.pending[key] = values
            return None

        if label == STDDEV_LABEL:
            mean = self.pending.pop(key, None)
            if mean is None:
                msg = f"STDDEV row for combined {key.slug} arrived without a preceding MEAN row"
                raise CombinedOrderError(msg)
            if len(mean) != len(values):
                msg = (
                    f"Combined {key.slug} MEAN row has {len(mean)} value(s) "
                    f"but its STDDEV row has {len(values)}"
                )
                raise CombinedOrderError(msg)
            script = self.emitter.emit_combined_pair(key, mean, values)
            self.scripts.append(script)
            logger.info(f"Rendered combined {key.slug} chart")
            return script

        msg = f"Unexpected combined row label '{label}' for {key.slug}"
        raise CombinedOrderError(msg)

    def add_mispriming(self, amplicon: int, percent: float) -> None:
        self.mispriming.add(amplicon, percent)

    def finalize(self) -> None:
        """Render the combined mis-priming chart and check nothing is left pending."""
        if self.pending:
            waiting = ", ".join(key.slug for key in self.pending)
            msg = f"Combined MEAN row(s) never followed by STDDEV: {waiting}"
            raise CombinedOrderError(msg)

        if self.mispriming:
            self.scripts.append(self.emitter.emit_combined_mispriming(self.mispriming))
            logger.info("Rendered combined mis-priming chart")
