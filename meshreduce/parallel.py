from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, List, Sequence


def parallel_map(func: Callable[..., Any], args_list: Sequence[tuple], n_jobs: int = 1) -> List[Any]:
    """Execute ``func(*args)`` for each args tuple, optionally on a thread pool.

    Each task reads one read-only domain and writes only its own result
    slot, so no locking is needed. Results keep the order of ``args_list``.
    """
    if n_jobs == 1 or len(args_list) <= 1:
        return [func(*args) for args in args_list]

    max_workers = os.cpu_count() if n_jobs == -1 else n_jobs
    results: List[Any] = [None] * len(args_list)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_idx = {executor.submit(func, *args): i for i, args in enumerate(args_list)}
        for future in as_completed(future_to_idx):
            results[future_to_idx[future]] = future.result()
    return results


__all__ = ["parallel_map"]
