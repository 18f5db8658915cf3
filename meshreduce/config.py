from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_flag(key: str, default: str = "0") -> bool:
    return os.environ.get(key, default) == "1"


@dataclass(frozen=True, slots=True)
class ReductionOptions:
    n_jobs: int = 1  # 1 = sequential, -1 = all cores, >1 = that many threads
    ignore_nan_extrema: bool = True
    debug_barriers: bool = field(default_factory=lambda: _env_flag("MESHREDUCE_DEBUG_BARRIERS"))

    def __post_init__(self) -> None:
        if self.n_jobs == 0 or self.n_jobs < -1:
            raise ValueError(f"n_jobs must be -1 or a positive integer; got {self.n_jobs}")

    @classmethod
    def from_env(cls) -> ReductionOptions:
        return cls(
            n_jobs=int(os.environ.get("MESHREDUCE_N_JOBS", "1")),
            debug_barriers=_env_flag("MESHREDUCE_DEBUG_BARRIERS"),
        )


__all__ = ["ReductionOptions"]
