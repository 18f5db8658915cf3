from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

import numpy as np

from ..errors import SchemaError
from .schema import Domain, ExplicitCoordset, RectilinearCoordset, Topology, UniformCoordset

SHAPE_VERTEX_COUNTS: Dict[str, int] = {
    "tri": 3,
    "quad": 4,
    "tet": 4,
    "hex": 8,
    "point": 1,
}


def shape_vertex_count(shape: str) -> int:
    try:
        return SHAPE_VERTEX_COUNTS[shape]
    except KeyError:
        raise SchemaError(f"Unsupported element shape '{shape}'") from None


def logical_index_2d(linear: int, dims: Sequence[int]) -> Tuple[int, int]:
    # No bounds checking: caller guarantees 0 <= linear < dims[0] * dims[1].
    return linear % dims[0], linear // dims[0]


def logical_index_3d(linear: int, dims: Sequence[int]) -> Tuple[int, int, int]:
    return (
        linear % dims[0],
        (linear // dims[0]) % dims[1],
        linear // (dims[0] * dims[1]),
    )


def linear_index_2d(i: int, j: int, dims: Sequence[int]) -> int:
    return i + j * dims[0]


def linear_index_3d(i: int, j: int, k: int, dims: Sequence[int]) -> int:
    return i + j * dims[0] + k * dims[0] * dims[1]


def logical_index(linear: int, dims: Sequence[int]) -> Tuple[int, int, int]:
    """Logical (i, j, k) for a 2D or 3D dims tuple; k is 0 in 2D."""
    if len(dims) == 2:
        i, j = logical_index_2d(linear, dims)
        return i, j, 0
    return logical_index_3d(linear, dims)


def element_vertex_indices(topo: Topology, index: int) -> List[int]:
    """Vertex indices of one cell of an explicit-coordinate topology.

    Structured cells are walked bottom face then top face, each face as a
    counter-clockwise ring starting at the cell's lowest corner.
    """
    if topo.kind == "points":
        return [int(index)]

    if topo.kind == "unstructured":
        if topo.shape is None or topo.connectivity is None:
            raise SchemaError("Unstructured topology needs a shape and a connectivity array")
        n = shape_vertex_count(topo.shape)
        offset = int(index) * n
        return [int(v) for v in np.asarray(topo.connectivity)[offset:offset + n]]

    if topo.kind == "structured":
        if topo.dims is None:
            raise SchemaError("Structured topology needs element dims")
        cell_dims = topo.dims
        vx = cell_dims[0] + 1
        if len(cell_dims) == 2:
            ci, cj = logical_index_2d(int(index), cell_dims)
            v0 = cj * vx + ci
            return [v0, v0 + 1, v0 + 1 + vx, v0 + vx]

        vy = cell_dims[1] + 1
        ci, cj, ck = logical_index_3d(int(index), cell_dims)
        v0 = (ck * vy + cj) * vx + ci
        bottom = [v0, v0 + 1, v0 + 1 + vx, v0 + vx]
        return bottom + [v + vx * vy for v in bottom]

    raise SchemaError(f"Element vertex indices are not defined for topology type '{topo.kind}'")


def num_points(domain: Domain, topology_name: str) -> int:
    _, topo = domain.topology_for(topology_name)
    coords = domain.coordset_for(topo)
    if isinstance(coords, (UniformCoordset, RectilinearCoordset)):
        return int(np.prod(coords.dims))
    if isinstance(coords, ExplicitCoordset):
        return coords.num_points
    raise SchemaError(f"Unsupported coordset type '{getattr(coords, 'kind', type(coords).__name__)}'")


def num_cells(domain: Domain, topology_name: str) -> int:
    _, topo = domain.topology_for(topology_name)

    if topo.kind == "points":
        return num_points(domain, topology_name)

    if topo.kind == "unstructured":
        if topo.shape is None or topo.connectivity is None:
            raise SchemaError("Unstructured topology needs a shape and a connectivity array")
        return int(np.asarray(topo.connectivity).size) // shape_vertex_count(topo.shape)

    if topo.kind == "structured":
        if topo.dims is None:
            raise SchemaError("Structured topology needs element dims")
        return int(np.prod(topo.dims))

    if topo.kind in ("uniform", "rectilinear"):
        coords = domain.coordset_for(topo)
        if not isinstance(coords, (UniformCoordset, RectilinearCoordset)):
            raise SchemaError(f"Topology type '{topo.kind}' cannot use a '{coords.kind}' coordset")
        return int(np.prod([d - 1 for d in coords.dims]))

    raise SchemaError(f"Unsupported topology type '{topo.kind}'")


__all__ = [
    "SHAPE_VERTEX_COUNTS",
    "shape_vertex_count",
    "logical_index_2d",
    "logical_index_3d",
    "linear_index_2d",
    "linear_index_3d",
    "logical_index",
    "element_vertex_indices",
    "num_points",
    "num_cells",
]
