from __future__ import annotations

import numpy as np
from scipy import stats

from .core import HistogramResult, ScalarResult
from .errors import PreconditionError

INTERPOLATIONS = ("linear", "lower", "higher", "midpoint", "nearest")


def _total(hist: HistogramResult) -> float:
    bins = np.asarray(hist.value, dtype=np.float64)
    total = float(np.sum(bins))
    if bins.size == 0 or total <= 0.0:
        raise PreconditionError("Histogram is empty: total count must be positive")
    return total


def _like(hist: HistogramResult, values: np.ndarray) -> HistogramResult:
    return HistogramResult(
        value=values,
        min_val=hist.min_val,
        max_val=hist.max_val,
        num_bins=hist.num_bins,
    )


def field_pdf(hist: HistogramResult) -> HistogramResult:
    total = _total(hist)
    return _like(hist, np.asarray(hist.value, dtype=np.float64) / total)


def field_cdf(hist: HistogramResult) -> HistogramResult:
    """Running sum of the pdf; the last bin is 1 up to rounding."""
    total = _total(hist)
    return _like(hist, np.cumsum(np.asarray(hist.value, dtype=np.float64) / total))


def field_entropy(hist: HistogramResult) -> ScalarResult:
    """Shannon entropy (natural log) of the binned distribution; empty bins add nothing."""
    _total(hist)
    return ScalarResult(value=float(stats.entropy(np.asarray(hist.value, dtype=np.float64))))


def quantile(cdf: HistogramResult, val: float, interpolation: str = "linear") -> ScalarResult:
    """Value below which a fraction ``val`` of a count histogram's mass lies.

    ``cdf`` must come from :func:`field_cdf`. The answer is found in the
    first bin whose cumulative value reaches ``val``; a ``val`` beyond the
    last cumulative value uses the last bin.
    """
    if interpolation not in INTERPOLATIONS:
        raise PreconditionError(
            f"Unknown interpolation '{interpolation}'; expected one of {', '.join(INTERPOLATIONS)}"
        )
    bins = np.asarray(cdf.value, dtype=np.float64)
    if bins.size == 0 or cdf.num_bins < 1:
        raise PreconditionError("Cannot take a quantile of an empty cdf")
    if not 0.0 <= val <= 1.0:
        raise PreconditionError(f"Quantile must lie in [0, 1]; got {val}")

    b = min(int(np.searchsorted(bins, val, side="left")), bins.size - 1)
    width = (cdf.max_val - cdf.min_val) / cdf.num_bins
    i = cdf.min_val + b * width
    j = i + width

    if interpolation == "lower":
        return ScalarResult(value=i)
    if interpolation == "higher":
        return ScalarResult(value=j)
    if interpolation == "midpoint":
        return ScalarResult(value=(i + j) / 2.0)
    if interpolation == "nearest":
        return ScalarResult(value=i if val - i < j - val else j)

    lo = bins[b - 1] if b > 0 else 0.0
    hi = bins[b]
    if hi - lo == 0.0:
        return ScalarResult(value=i)
    frac = min(max((val - lo) / (hi - lo), 0.0), 1.0)
    return ScalarResult(value=i + (j - i) * frac)


__all__ = [
    "INTERPOLATIONS",
    "field_pdf",
    "field_cdf",
    "field_entropy",
    "quantile",
]
