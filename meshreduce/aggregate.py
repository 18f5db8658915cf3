from __future__ import annotations

from functools import partial
from typing import Callable, List, Optional

import numpy as np

from .config import ReductionOptions
from .core import ExtremumResult, HistogramResult, ScalarResult, SumResult, Transport
from .errors import PreconditionError
from .mesh.location import location
from .mesh.schema import Dataset
from .parallel import parallel_map
from .reductions import (
    LocalExtremum,
    check_bins,
    local_histogram,
    local_inf_count,
    local_max,
    local_min,
    local_nan_count,
    local_sum,
)
from .system import barrier, collective_guard
from .transport import LocalTransport
from .voting import ConsistencyVoter


class GlobalAggregator:
    """Reduce a named field over every domain on every worker.

    Within a worker the per-domain partials are combined in dataset order;
    across workers they go through the transport's collectives, so every
    worker returns the same answer.
    """

    def __init__(
            self,
            transport: Optional[Transport] = None,
            *,
            voter: Optional[ConsistencyVoter] = None,
            options: Optional[ReductionOptions] = None,
            rprint: Callable[[str], None] | None = None,
    ) -> None:
        self.transport: Transport = transport if transport is not None else LocalTransport()
        self.voter = voter if voter is not None else ConsistencyVoter(self.transport, rprint=rprint)
        self.options = options if options is not None else ReductionOptions()
        self._rprint = rprint

    def _enter(self, tag: str) -> None:
        if self._rprint is not None:
            self._rprint(tag)
        barrier(self.transport, tag, self._rprint, enabled=self.options.debug_barriers)

    def _map_domains(self, func, dataset: Dataset, field_name: str, *extra) -> List:
        args = [(dom, field_name, *extra) for _, dom in dataset.holding_field(field_name)]
        return parallel_map(func, args, self.options.n_jobs)

    # ---- sum / average ----

    def field_sum(self, dataset: Dataset, field_name: str) -> SumResult:
        self._enter(f"field_sum({field_name})")
        self.voter.field_type(dataset, field_name)

        value = 0.0
        count = 0
        with collective_guard(self.transport, f"field_sum({field_name})", self._rprint):
            for part in self._map_domains(local_sum, dataset, field_name):
                value += part.value
                count += part.count

        value = float(self.transport.allreduce_sum(value))
        count = int(self.transport.allreduce_sum(count))
        return SumResult(value=value, count=count)

    def field_avg(self, dataset: Dataset, field_name: str) -> ScalarResult:
        total = self.field_sum(dataset, field_name)
        if total.count == 0:
            raise PreconditionError(f"Cannot average field '{field_name}': no values on any worker")
        return ScalarResult(value=total.value / float(total.count))

    # ---- extrema with location ----

    def _extremum(self, dataset: Dataset, field_name: str, *, maximum: bool) -> ExtremumResult:
        tag = f"field_{'max' if maximum else 'min'}({field_name})"
        self._enter(tag)
        self.voter.field_type(dataset, field_name)
        association = self.voter.field_association(dataset, field_name)

        reducer = local_max if maximum else local_min
        reducer = partial(reducer, ignore_nan=self.options.ignore_nan_extrema)

        best: Optional[LocalExtremum] = None
        position: Optional[np.ndarray] = None
        with collective_guard(self.transport, tag, self._rprint):
            args = [(dom, field_name, i) for i, dom in dataset.holding_field(field_name)]
            for cand in parallel_map(reducer, args, self.options.n_jobs):
                if cand is None:
                    continue
                # Strict comparison: the earliest domain keeps a tie.
                if best is None or (cand.value > best.value if maximum else cand.value < best.value):
                    best = cand
            if best is not None:
                dom = dataset[best.domain_index]
                position = location(dom, best.index, association, dom.fields[field_name].topology)

        rank = self.transport.rank
        size = self.transport.size
        if best is None:
            # Locations >= size mark workers without a candidate; they lose every tie.
            key = (float("-inf") if maximum else float("inf"), size + rank)
        else:
            key = (best.value, rank)
        if maximum:
            value, winner = self.transport.allreduce_maxloc(key)
        else:
            value, winner = self.transport.allreduce_minloc(key)
        if winner >= size:
            raise PreconditionError(f"Field '{field_name}' has no values on any worker")

        payload = None
        if rank == winner:
            payload = (np.asarray(position, dtype=np.float64).tolist(), best.domain_id)
        pos, domain_id = self.transport.broadcast(payload, root=winner)
        return ExtremumResult(
            value=float(value),
            rank=int(winner),
            domain_id=int(domain_id),
            position=np.asarray(pos, dtype=np.float64),
        )

    def field_min(self, dataset: Dataset, field_name: str) -> ExtremumResult:
        return self._extremum(dataset, field_name, maximum=False)

    def field_max(self, dataset: Dataset, field_name: str) -> ExtremumResult:
        return self._extremum(dataset, field_name, maximum=True)

    # ---- histogram and data-quality counts ----

    def field_histogram(
            self,
            dataset: Dataset,
            field_name: str,
            min_val: float,
            max_val: float,
            num_bins: int,
    ) -> HistogramResult:
        check_bins(min_val, max_val, num_bins)
        self._enter(f"field_histogram({field_name})")
        self.voter.field_type(dataset, field_name)

        bins = np.zeros(int(num_bins), dtype=np.float64)
        with collective_guard(self.transport, f"field_histogram({field_name})", self._rprint):
            for part in self._map_domains(local_histogram, dataset, field_name, min_val, max_val, num_bins):
                bins += part

        bins = np.asarray(self.transport.allreduce_sum(bins), dtype=np.float64)
        return HistogramResult(
            value=bins,
            min_val=float(min_val),
            max_val=float(max_val),
            num_bins=int(num_bins),
        )

    def _count(self, dataset: Dataset, field_name: str, func, tag: str) -> ScalarResult:
        self._enter(f"{tag}({field_name})")
        total = 0
        with collective_guard(self.transport, f"{tag}({field_name})", self._rprint):
            total = sum(self._map_domains(func, dataset, field_name))
        return ScalarResult(value=float(self.transport.allreduce_sum(total)))

    def field_nan_count(self, dataset: Dataset, field_name: str) -> ScalarResult:
        return self._count(dataset, field_name, local_nan_count, "field_nan_count")

    def field_inf_count(self, dataset: Dataset, field_name: str) -> ScalarResult:
        return self._count(dataset, field_name, local_inf_count, "field_inf_count")


__all__ = ["GlobalAggregator"]
