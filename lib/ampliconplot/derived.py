"""
Derived values plotted from ampliconstats counts.

All functions here are pure and deterministic.
"""

from __future__ import annotations

from math import ceil, log10
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

DEFAULT_SMOOTHING = 100.0


def misprime_percent(
    correct: float,
    left_err: float,
    right_err: float,
    smoothing: float = DEFAULT_SMOOTHING,
) -> float:
    """
    Percentage of templates whose primers do not match their amplicon.

    The smoothing constant is added to the denominator so that amplicons with
    very few templates do not show up as 100% mis-primed on the strength of a
    handful of reads.

    Args:
        correct: Templates with both primers from this amplicon
        left_err: Templates with primers from a different amplicon
        right_err: Templates with a primer site matching no amplicon
        smoothing: Pseudo-count added to the denominator

    Returns:
        A percentage in [0, 100]. Zero when there is nothing to count.
    """
    assert smoothing >= 0, f"Smoothing must be non-negative: {smoothing}"

    errors = left_err + right_err
    denominator = correct + errors + smoothing
    if denominator <= 0:
        return 0.0
    return 100.0 * errors / denominator


def clipped_log10(value: float) -> float:
    """Return log10(value), or 0 for zero and negative values."""
    if value > 0:
        return log10(value)
    return 0.0


def running_max(current: float, candidates: Iterable[float]) -> float:
    """Fold `candidates` into the running maximum `current`."""
    return max(current, max(candidates, default=current))


def ceil_pow10(value: float) -> float:
    """Round `value` up to the next power of ten (1 for non-positive input)."""
    if value <= 0:
        return 1.0
    return 10.0 ** ceil(log10(value))


def log_axis_ceiling(value: float) -> float:
    """
    Top of a log10-scaled value axis able to hold `value`.

    This is the exponent of `ceil_pow10(value)`, kept at one decade or more so
    that an axis never collapses to zero height.
    """
    return max(1.0, clipped_log10(ceil_pow10(value)))
