"""
Equal-width and quantile histograms of elevation values.

All functions are synchronous and pure apart from logging.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from ..constants import (
    DEGENERATE_RANGE_FACTOR,
    DEGENERATE_RANGE_MIN,
    HISTOGRAM_TYPES,
    MAX_BINS,
    MIN_BINS,
    ErrorMessages,
    HistogramType,
)
from .errors import HistogramValidationError

logger = logging.getLogger(__name__)


@dataclass
class HistogramEntry:
    """One bin: [lower_bound, upper_bound) except the last, which is closed."""

    lower_bound: float
    upper_bound: float
    count: int
    percent: float


@dataclass
class HistogramStatistic:
    """Summary statistics accompanying a histogram."""

    no_value_count: int
    values_total: int
    no_value_percent: float = 0.0
    min_value_absolute: float = math.nan
    max_value_absolute: float = math.nan
    min_value_histogram: float = math.nan
    max_value_histogram: float = math.nan
    below_min_count: int = 0
    below_min_percent: float = 0.0
    above_max_count: int = 0
    above_max_percent: float = 0.0


@dataclass
class HistogramResult:
    """Statistic plus bins for one tile."""

    statistic: HistogramStatistic
    entries: list[HistogramEntry] = field(default_factory=list)


def parse_bound(text: str | float | None) -> float | None:
    """Parse an optional user range override; empty or None means unset."""
    if text is None:
        return None
    if isinstance(text, str):
        text = text.strip()
        if text == "":
            return None
    try:
        value = float(text)
    except (TypeError, ValueError) as e:
        raise HistogramValidationError(ErrorMessages.INVALID_BOUND.format(text)) from e
    if not math.isfinite(value):
        raise HistogramValidationError(ErrorMessages.INVALID_BOUND.format(text))
    return value


def normalize_histogram_type(mode: str) -> str:
    """Map 'standard' and 'equal_width' onto equal-width; validate the rest."""
    if mode not in HISTOGRAM_TYPES:
        raise HistogramValidationError(
            ErrorMessages.INVALID_HISTOGRAM_TYPE.format(mode, ", ".join(HISTOGRAM_TYPES))
        )
    if mode == HistogramType.QUANTILE:
        return HistogramType.QUANTILE
    return HistogramType.EQUAL_WIDTH


def validate_bin_count(bin_count: int) -> None:
    if not MIN_BINS <= bin_count <= MAX_BINS:
        raise HistogramValidationError(
            ErrorMessages.INVALID_BINS.format(MIN_BINS, MAX_BINS, bin_count)
        )


def _percent(count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return count / total * 100.0


def _expand_degenerate(lo: float, hi: float) -> tuple[float, float]:
    if lo != hi:
        return lo, hi
    adjustment = max(DEGENERATE_RANGE_FACTOR * abs(lo), DEGENERATE_RANGE_MIN)
    logger.warning(
        f"Histogram range is a single value {lo}; expanded to "
        f"[{lo - adjustment}, {hi + adjustment}]"
    )
    return lo - adjustment, hi + adjustment


def quantile_bounds(sorted_values: NDArray[np.float64], bin_count: int, hi: float) -> NDArray:
    """Nearest-rank upper bounds: sorted value at floor(n*(i+1)/k), clamped."""
    n = len(sorted_values)
    idx = np.floor(n * np.arange(1, bin_count + 1) / bin_count).astype(np.int64)
    idx = np.clip(idx, 0, n - 1)
    bounds = sorted_values[idx].astype(np.float64)
    bounds[-1] = hi
    return bounds


def equal_width_bounds(lo: float, hi: float, bin_count: int) -> NDArray:
    """Upper bounds lo + (i+1)*width, last forced to hi."""
    width = (hi - lo) / bin_count
    bounds = lo + np.arange(1, bin_count + 1, dtype=np.float64) * width
    bounds[-1] = hi
    return bounds


def compute_histogram(
    values: Sequence[float] | NDArray,
    missing_count: int,
    total_parsed: int,
    mode: str = HistogramType.STANDARD,
    bin_count: int = 10,
    user_min: float | None = None,
    user_max: float | None = None,
) -> tuple[HistogramStatistic, list[HistogramEntry]]:
    """
    Bin elevation values and compute summary statistics.

    Args:
        values: Valid elevations (missing pixels already removed)
        missing_count: Number of missing pixels removed from values
        total_parsed: Total pixels read, missing included
        mode: "standard"/"equal_width" or "quantile"
        bin_count: Number of bins (1..999)
        user_min: Optional lower range override
        user_max: Optional upper range override

    Returns:
        Tuple of (statistic, entries)

    Raises:
        HistogramValidationError: bad mode, bin count, or inverted range
    """
    mode = normalize_histogram_type(mode)
    validate_bin_count(bin_count)

    data = np.asarray(values, dtype=np.float64).ravel()
    stat = HistogramStatistic(no_value_count=missing_count, values_total=total_parsed)

    if data.size == 0:
        stat.no_value_percent = 100.0 if total_parsed > 0 else 0.0
        return stat, []

    stat.min_value_absolute = float(data.min())
    stat.max_value_absolute = float(data.max())
    stat.no_value_percent = _percent(missing_count, total_parsed)

    if user_min is not None and user_max is not None and user_min >= user_max:
        raise HistogramValidationError(ErrorMessages.INVERTED_USER_RANGE.format(user_min, user_max))

    if mode == HistogramType.QUANTILE:
        filter_min = stat.min_value_absolute if user_min is None else user_min
        filter_max = stat.max_value_absolute if user_max is None else user_max
        if filter_min >= filter_max:
            raise HistogramValidationError(
                ErrorMessages.INVERTED_FILTER_RANGE.format(filter_min, filter_max)
            )

        filtered = data[(data >= filter_min) & (data <= filter_max)]
        if filtered.size == 0:
            stat.min_value_histogram = filter_min
            stat.max_value_histogram = filter_max
            stat.below_min_count = int(np.count_nonzero(data < filter_min))
            stat.above_max_count = int(np.count_nonzero(data > filter_max))
            stat.below_min_percent = _percent(stat.below_min_count, total_parsed)
            stat.above_max_percent = _percent(stat.above_max_count, total_parsed)
            return stat, []

        filtered = np.sort(filtered)
        lo, hi = _expand_degenerate(float(filtered[0]), float(filtered[-1]))
        bounds = quantile_bounds(filtered, bin_count, hi)
    else:
        lo = stat.min_value_absolute if user_min is None else user_min
        hi = stat.max_value_absolute if user_max is None else user_max
        lo, hi = _expand_degenerate(lo, hi)
        if lo >= hi:
            raise HistogramValidationError(ErrorMessages.INVERTED_EFFECTIVE_RANGE.format(lo, hi))
        bounds = equal_width_bounds(lo, hi, bin_count)

    stat.min_value_histogram = lo
    stat.max_value_histogram = hi

    below = data < lo
    above = data > hi
    in_range = data[~below & ~above]

    # first bin whose upper bound exceeds the value; the maximum goes last
    bin_idx = np.searchsorted(bounds, in_range, side="right")
    bin_idx[in_range == hi] = bin_count - 1
    unplaced = bin_idx >= bin_count
    if np.any(unplaced):
        logger.warning(
            f"Histogram: {int(np.count_nonzero(unplaced))} in-range value(s) could not be "
            f"binned (range [{lo}, {hi}], e.g. {float(in_range[unplaced][0])})"
        )
    counts = np.bincount(bin_idx[~unplaced], minlength=bin_count)

    stat.below_min_count = int(np.count_nonzero(below))
    stat.above_max_count = int(np.count_nonzero(above))
    stat.below_min_percent = _percent(stat.below_min_count, total_parsed)
    stat.above_max_percent = _percent(stat.above_max_count, total_parsed)

    binned_total = int(counts.sum())
    entries = []
    lower = lo
    for i in range(bin_count):
        upper = hi if i == bin_count - 1 else float(bounds[i])
        entries.append(
            HistogramEntry(
                lower_bound=lower,
                upper_bound=upper,
                count=int(counts[i]),
                percent=_percent(int(counts[i]), binned_total),
            )
        )
        lower = float(bounds[i])

    return stat, entries
