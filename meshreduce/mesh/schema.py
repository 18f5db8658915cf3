from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..core import Association
from ..errors import SchemaError


def _as_dims(dims: Sequence[int]) -> Tuple[int, ...]:
    out = tuple(int(d) for d in dims)
    if len(out) not in (2, 3):
        raise SchemaError(f"dims must have 2 or 3 entries; got {out}")
    return out


@dataclass(frozen=True, slots=True)
class UniformCoordset:
    """Regular grid: ``origin + logical_index * spacing`` per axis."""

    dims: Tuple[int, ...]
    origin: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    spacing: Tuple[float, float, float] = (1.0, 1.0, 1.0)

    kind = "uniform"

    def __post_init__(self) -> None:
        object.__setattr__(self, "dims", _as_dims(self.dims))
        origin = tuple(float(v) for v in self.origin) + (0.0,) * (3 - len(self.origin))
        spacing = tuple(float(v) for v in self.spacing) + (1.0,) * (3 - len(self.spacing))
        object.__setattr__(self, "origin", origin[:3])
        object.__setattr__(self, "spacing", spacing[:3])

    @property
    def is_2d(self) -> bool:
        return len(self.dims) == 2

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(np.float64)


@dataclass(frozen=True, slots=True)
class RectilinearCoordset:
    """Axis-aligned non-uniform grid, one 1D array per axis."""

    x: np.ndarray
    y: np.ndarray
    z: Optional[np.ndarray] = None

    kind = "rectilinear"

    @property
    def is_2d(self) -> bool:
        return self.z is None

    @property
    def axes(self) -> Tuple[np.ndarray, ...]:
        return (self.x, self.y) if self.z is None else (self.x, self.y, self.z)

    @property
    def dims(self) -> Tuple[int, ...]:
        return tuple(int(np.asarray(a).size) for a in self.axes)

    @property
    def dtype(self) -> np.dtype:
        return np.asarray(self.x).dtype


@dataclass(frozen=True, slots=True)
class ExplicitCoordset:
    """One coordinate per vertex, addressed by vertex index."""

    x: np.ndarray
    y: np.ndarray
    z: Optional[np.ndarray] = None

    kind = "explicit"

    @property
    def is_2d(self) -> bool:
        return self.z is None

    @property
    def num_points(self) -> int:
        return int(np.asarray(self.x).size)

    @property
    def dtype(self) -> np.dtype:
        return np.asarray(self.x).dtype


Coordset = Union[UniformCoordset, RectilinearCoordset, ExplicitCoordset]


@dataclass(frozen=True, slots=True)
class Topology:
    kind: str
    coordset: str
    shape: Optional[str] = None
    connectivity: Optional[np.ndarray] = None
    dims: Optional[Tuple[int, ...]] = None  # element dims, structured only

    def __post_init__(self) -> None:
        if self.dims is not None:
            object.__setattr__(self, "dims", _as_dims(self.dims))
        if self.kind == "points" and self.shape is None:
            object.__setattr__(self, "shape", "point")


@dataclass(frozen=True, slots=True)
class Field:
    """Values per vertex or per element.

    Scalar fields hold a 1D array; multi-component fields hold one column
    per component, shape ``(n, ncomp)``.
    """

    association: Association
    topology: str
    values: np.ndarray

    @property
    def dtype(self) -> np.dtype:
        return np.asarray(self.values).dtype

    @property
    def is_scalar(self) -> bool:
        return np.asarray(self.values).ndim <= 1

    def __len__(self) -> int:
        return int(np.asarray(self.values).shape[0])


@dataclass(frozen=True, slots=True)
class State:
    domain_id: int
    cycle: Optional[int] = None
    time: Optional[float] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def get(self, name: str) -> Optional[Any]:
        if name in ("domain_id", "cycle", "time"):
            return getattr(self, name)
        return self.extra.get(name)

    def has(self, name: str) -> bool:
        return self.get(name) is not None


@dataclass(frozen=True, slots=True)
class Domain:
    """One worker-local mesh partition. Read-only to every query."""

    state: State
    coordsets: Mapping[str, Coordset] = field(default_factory=dict)
    topologies: Mapping[str, Topology] = field(default_factory=dict)
    fields: Mapping[str, Field] = field(default_factory=dict)

    @property
    def domain_id(self) -> int:
        return int(self.state.domain_id)

    def coordset(self, name: str) -> Optional[Coordset]:
        return self.coordsets.get(name)

    def topology(self, name: str) -> Optional[Topology]:
        return self.topologies.get(name)

    def field(self, name: str) -> Optional[Field]:
        return self.fields.get(name)

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def has_topology(self, name: str) -> bool:
        return name in self.topologies

    def topology_for(self, name: str = "") -> Tuple[str, Topology]:
        """Resolve a topology by name; an empty name picks the first one."""
        if not name:
            if not self.topologies:
                raise SchemaError(f"Domain {self.domain_id} has no topologies")
            name = next(iter(self.topologies))
        topo = self.topologies.get(name)
        if topo is None:
            raise SchemaError(f"Domain {self.domain_id} has no topology '{name}'")
        return name, topo

    def coordset_for(self, topo: Topology) -> Coordset:
        coords = self.coordsets.get(topo.coordset)
        if coords is None:
            raise SchemaError(f"Domain {self.domain_id} has no coordset '{topo.coordset}'")
        return coords


class Dataset(Sequence[Domain]):
    """Ordered domains held by one worker; may be empty."""

    def __init__(self, domains: Sequence[Domain] = ()) -> None:
        self._domains = tuple(domains)

    def __getitem__(self, index):
        return self._domains[index]

    def __len__(self) -> int:
        return len(self._domains)

    def __iter__(self) -> Iterator[Domain]:
        return iter(self._domains)

    def __repr__(self) -> str:
        return f"Dataset(domains={[d.domain_id for d in self._domains]})"

    def holding_field(self, name: str) -> Iterator[Tuple[int, Domain]]:
        for i, dom in enumerate(self._domains):
            if dom.has_field(name):
                yield i, dom

    def holding_topology(self, name: str) -> Iterator[Tuple[int, Domain]]:
        for i, dom in enumerate(self._domains):
            if dom.has_topology(name):
                yield i, dom


__all__ = [
    "UniformCoordset",
    "RectilinearCoordset",
    "ExplicitCoordset",
    "Coordset",
    "Topology",
    "Field",
    "State",
    "Domain",
    "Dataset",
]
