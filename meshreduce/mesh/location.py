from __future__ import annotations

import numpy as np

from ..errors import SchemaError
from .schema import Coordset, Domain, ExplicitCoordset, RectilinearCoordset, Topology, UniformCoordset
from .topology import element_vertex_indices, logical_index


def _uniform_vertex(coords: UniformCoordset, index: int) -> np.ndarray:
    ijk = np.asarray(logical_index(int(index), coords.dims), dtype=np.float64)
    return np.asarray(coords.origin) + ijk * np.asarray(coords.spacing)


def _uniform_element(coords: UniformCoordset, index: int) -> np.ndarray:
    """Cell centre of a uniform grid.

    On a 2D grid z stays at the origin's z; no half spacing is added along z
    even when the coordset carries a z spacing.
    """
    cell_dims = tuple(d - 1 for d in coords.dims)
    ijk = np.asarray(logical_index(int(index), cell_dims), dtype=np.float64)
    spacing = np.asarray(coords.spacing)
    half = 0.5 * spacing
    if coords.is_2d:
        half[2] = 0.0
    return np.asarray(coords.origin) + ijk * spacing + half


def _rectilinear_vertex(coords: RectilinearCoordset, index: int) -> np.ndarray:
    ijk = logical_index(int(index), coords.dims)
    out = np.zeros(3, dtype=np.float64)
    for axis, values in enumerate(coords.axes):
        out[axis] = np.asarray(values)[ijk[axis]]
    return out


def _rectilinear_element(coords: RectilinearCoordset, index: int) -> np.ndarray:
    cell_dims = tuple(d - 1 for d in coords.dims)
    ijk = logical_index(int(index), cell_dims)
    out = np.zeros(3, dtype=np.float64)
    for axis, values in enumerate(coords.axes):
        a = np.asarray(values, dtype=np.float64)
        out[axis] = (a[ijk[axis]] + a[ijk[axis] + 1]) * 0.5
    return out


def _explicit_vertex(coords: ExplicitCoordset, index: int) -> np.ndarray:
    out = np.zeros(3, dtype=np.float64)
    out[0] = np.asarray(coords.x)[index]
    out[1] = np.asarray(coords.y)[index]
    if coords.z is not None:
        out[2] = np.asarray(coords.z)[index]
    return out


def coordset_vertex(coords: Coordset, index: int) -> np.ndarray:
    if isinstance(coords, UniformCoordset):
        return _uniform_vertex(coords, index)
    if isinstance(coords, RectilinearCoordset):
        return _rectilinear_vertex(coords, index)
    if isinstance(coords, ExplicitCoordset):
        return _explicit_vertex(coords, index)
    raise SchemaError(f"Unsupported coordset type '{getattr(coords, 'kind', type(coords).__name__)}'")


def _cell_centroid(coords: Coordset, topo: Topology, index: int) -> np.ndarray:
    verts = element_vertex_indices(topo, index)
    if not verts:
        raise SchemaError(f"Element {index} has no vertices")
    acc = np.zeros(3, dtype=np.float64)
    for v in verts:
        acc += coordset_vertex(coords, v)
    return acc / float(len(verts))


def vertex_location(domain: Domain, index: int, topology_name: str = "") -> np.ndarray:
    """Physical position of vertex ``index`` as a length-3 float64 array."""
    _, topo = domain.topology_for(topology_name)
    if topo.kind not in ("uniform", "rectilinear", "structured", "unstructured", "points"):
        raise SchemaError(f"Unknown topology type '{topo.kind}'")
    return coordset_vertex(domain.coordset_for(topo), index)


def element_location(domain: Domain, index: int, topology_name: str = "") -> np.ndarray:
    """Centroid of element ``index`` as a length-3 float64 array."""
    _, topo = domain.topology_for(topology_name)
    coords = domain.coordset_for(topo)

    if topo.kind in ("structured", "unstructured", "points"):
        return _cell_centroid(coords, topo, index)

    if topo.kind in ("uniform", "rectilinear"):
        if isinstance(coords, UniformCoordset):
            return _uniform_element(coords, index)
        if isinstance(coords, RectilinearCoordset):
            return _rectilinear_element(coords, index)
        raise SchemaError(f"Topology type '{topo.kind}' cannot use a '{coords.kind}' coordset")

    raise SchemaError(f"Unknown topology type '{topo.kind}'")


def location(domain: Domain, index: int, association: str, topology_name: str = "") -> np.ndarray:
    if association == "vertex":
        return vertex_location(domain, index, topology_name)
    if association == "element":
        return element_location(domain, index, topology_name)
    raise SchemaError(f"Location for association '{association}' not implemented")


__all__ = [
    "coordset_vertex",
    "vertex_location",
    "element_location",
    "location",
]
