from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .errors import PreconditionError, SchemaError
from .mesh.schema import Domain


# ---- single-array primitives ----

def array_sum(values: np.ndarray) -> Tuple[float, int]:
    a = np.asarray(values)
    return float(np.sum(a, dtype=np.float64)), int(a.size)


def _arg_extremum(values: np.ndarray, *, maximum: bool, ignore_nan: bool) -> Optional[Tuple[float, int]]:
    a = np.asarray(values, dtype=np.float64).reshape(-1)
    if a.size == 0:
        return None
    if ignore_nan:
        if np.all(np.isnan(a)):
            return None
        idx = int(np.nanargmax(a) if maximum else np.nanargmin(a))
    else:
        idx = int(np.argmax(a) if maximum else np.argmin(a))
    return float(a[idx]), idx


def array_min(values: np.ndarray, *, ignore_nan: bool = True) -> Optional[Tuple[float, int]]:
    """Smallest value and its first index, or None when nothing qualifies."""
    return _arg_extremum(values, maximum=False, ignore_nan=ignore_nan)


def array_max(values: np.ndarray, *, ignore_nan: bool = True) -> Optional[Tuple[float, int]]:
    return _arg_extremum(values, maximum=True, ignore_nan=ignore_nan)


def check_bins(min_val: float, max_val: float, num_bins: int) -> None:
    if int(num_bins) < 1:
        raise PreconditionError(f"num_bins must be at least 1; got {num_bins}")
    if not (np.isfinite(min_val) and np.isfinite(max_val)) or max_val <= min_val:
        raise PreconditionError(f"Histogram range must satisfy min_val < max_val; got [{min_val}, {max_val}]")


def array_histogram(values: np.ndarray, min_val: float, max_val: float, num_bins: int) -> np.ndarray:
    """Per-bin counts over ``[min_val, max_val]``; values outside the range are dropped."""
    check_bins(min_val, max_val, num_bins)
    a = np.asarray(values, dtype=np.float64).reshape(-1)
    a = a[np.isfinite(a)]
    counts, _ = np.histogram(a, bins=int(num_bins), range=(float(min_val), float(max_val)))
    return counts.astype(np.float64)


def array_nan_count(values: np.ndarray) -> int:
    a = np.asarray(values)
    if not np.issubdtype(a.dtype, np.floating):
        return 0
    return int(np.count_nonzero(np.isnan(a)))


def array_inf_count(values: np.ndarray) -> int:
    a = np.asarray(values)
    if not np.issubdtype(a.dtype, np.floating):
        return 0
    return int(np.count_nonzero(np.isinf(a)))


# ---- one domain, one field ----

@dataclass(frozen=True, slots=True)
class LocalSum:
    value: float
    count: int


@dataclass(frozen=True, slots=True)
class LocalExtremum:
    value: float
    index: int  # position inside the domain's value array
    domain_index: int  # position of the domain in the worker's dataset
    domain_id: int


def _values(domain: Domain, field_name: str) -> np.ndarray:
    fld = domain.field(field_name)
    if fld is None:
        raise SchemaError(f"Domain {domain.domain_id} has no field '{field_name}'")
    if not fld.is_scalar:
        raise SchemaError(f"Field '{field_name}' on domain {domain.domain_id} has multiple components")
    return np.asarray(fld.values)


def local_sum(domain: Domain, field_name: str) -> LocalSum:
    value, count = array_sum(_values(domain, field_name))
    return LocalSum(value=value, count=count)


def local_min(
        domain: Domain, field_name: str, domain_index: int = 0, *, ignore_nan: bool = True
) -> Optional[LocalExtremum]:
    hit = array_min(_values(domain, field_name), ignore_nan=ignore_nan)
    if hit is None:
        return None
    return LocalExtremum(value=hit[0], index=hit[1], domain_index=domain_index, domain_id=domain.domain_id)


def local_max(
        domain: Domain, field_name: str, domain_index: int = 0, *, ignore_nan: bool = True
) -> Optional[LocalExtremum]:
    hit = array_max(_values(domain, field_name), ignore_nan=ignore_nan)
    if hit is None:
        return None
    return LocalExtremum(value=hit[0], index=hit[1], domain_index=domain_index, domain_id=domain.domain_id)


def local_histogram(domain: Domain, field_name: str, min_val: float, max_val: float, num_bins: int) -> np.ndarray:
    return array_histogram(_values(domain, field_name), min_val, max_val, num_bins)


def local_nan_count(domain: Domain, field_name: str) -> int:
    return array_nan_count(_values(domain, field_name))


def local_inf_count(domain: Domain, field_name: str) -> int:
    return array_inf_count(_values(domain, field_name))


__all__ = [
    "array_sum",
    "array_min",
    "array_max",
    "array_histogram",
    "array_nan_count",
    "array_inf_count",
    "check_bins",
    "LocalSum",
    "LocalExtremum",
    "local_sum",
    "local_min",
    "local_max",
    "local_histogram",
    "local_nan_count",
    "local_inf_count",
]
