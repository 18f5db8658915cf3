from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

import numpy as np

from ..core import COORDSET_KINDS, TOPOLOGY_KINDS
from ..errors import SchemaError
from .schema import (
    Coordset,
    Dataset,
    Domain,
    ExplicitCoordset,
    Field,
    RectilinearCoordset,
    State,
    Topology,
    UniformCoordset,
)
from .topology import shape_vertex_count


def _require(node: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in node:
        raise SchemaError(f"Missing '{key}' in {where}")
    return node[key]


def _ijk(node: Mapping[str, Any], keys: tuple[str, str, str], where: str) -> tuple:
    out = [_require(node, keys[0], where), _require(node, keys[1], where)]
    if keys[2] in node:
        out.append(node[keys[2]])
    return tuple(out)


def _as_values(values: Any) -> np.ndarray:
    # Plain sequences carry no element type; they are read as float64.
    if isinstance(values, np.ndarray):
        return values.reshape(-1)
    return np.asarray(values, dtype=np.float64).reshape(-1)


def _axis_arrays(values: Mapping[str, Any], where: str) -> tuple[np.ndarray, np.ndarray, Optional[np.ndarray]]:
    x = _as_values(_require(values, "x", where))
    y = _as_values(_require(values, "y", where))
    z = _as_values(values["z"]) if "z" in values else None
    return x, y, z


def coordset_from_node(name: str, node: Mapping[str, Any]) -> Coordset:
    where = f"coordset '{name}'"
    kind = _require(node, "type", where)
    if kind not in COORDSET_KINDS:
        raise SchemaError(f"Unsupported coordset type '{kind}' for {where}")

    if kind == "uniform":
        dims = _ijk(_require(node, "dims", where), ("i", "j", "k"), where)
        origin = node.get("origin", {})
        spacing = node.get("spacing", {})
        return UniformCoordset(
            dims=dims,
            origin=(
                float(origin.get("x", 0.0)),
                float(origin.get("y", 0.0)),
                float(origin.get("z", 0.0)),
            ),
            spacing=(
                float(spacing.get("dx", 1.0)),
                float(spacing.get("dy", 1.0)),
                float(spacing.get("dz", 1.0)),
            ),
        )

    x, y, z = _axis_arrays(_require(node, "values", where), where)
    if kind == "rectilinear":
        return RectilinearCoordset(x=x, y=y, z=z)
    return ExplicitCoordset(x=x, y=y, z=z)


def topology_from_node(name: str, node: Mapping[str, Any]) -> Topology:
    where = f"topology '{name}'"
    kind = _require(node, "type", where)
    if kind not in TOPOLOGY_KINDS:
        raise SchemaError(f"Unsupported topology type '{kind}' for {where}")
    coordset = _require(node, "coordset", where)
    elements = node.get("elements", {})

    if kind == "unstructured":
        shape = _require(elements, "shape", where)
        shape_vertex_count(shape)
        conn = np.asarray(_require(elements, "connectivity", where), dtype=np.int64)
        return Topology(kind=kind, coordset=coordset, shape=shape, connectivity=conn)

    if kind == "structured":
        dims = _ijk(_require(elements, "dims", where), ("i", "j", "k"), where)
        shape = "quad" if len(dims) == 2 else "hex"
        return Topology(kind=kind, coordset=coordset, shape=shape, dims=dims)

    return Topology(kind=kind, coordset=coordset, shape=elements.get("shape"))


def _component_values(values: Mapping[str, Any], where: str) -> np.ndarray:
    # One column per named component, in the order given.
    columns = [_as_values(v) for v in values.values()]
    if not columns or len({c.size for c in columns}) != 1:
        raise SchemaError(f"Components of {where} must be non-empty and equally sized")
    return np.column_stack(columns)


def field_from_node(name: str, node: Mapping[str, Any]) -> Field:
    where = f"field '{name}'"
    association = _require(node, "association", where)
    if association not in ("vertex", "element"):
        raise SchemaError(f"Unsupported association '{association}' for {where}")
    values = _require(node, "values", where)
    if isinstance(values, Mapping):
        values = _component_values(values, where)
    else:
        values = _as_values(values)
    return Field(
        association=association,
        topology=_require(node, "topology", where),
        values=values,
    )


def state_from_node(node: Mapping[str, Any]) -> State:
    extra = {k: v for k, v in node.items() if k not in ("domain_id", "cycle", "time")}
    return State(
        domain_id=int(_require(node, "domain_id", "state")),
        cycle=node.get("cycle"),
        time=node.get("time"),
        extra=extra,
    )


def domain_from_node(node: Mapping[str, Any]) -> Domain:
    """Build a typed ``Domain`` from a blueprint-style nested mapping."""
    return Domain(
        state=state_from_node(_require(node, "state", "domain")),
        coordsets={k: coordset_from_node(k, v) for k, v in node.get("coordsets", {}).items()},
        topologies={k: topology_from_node(k, v) for k, v in node.get("topologies", {}).items()},
        fields={k: field_from_node(k, v) for k, v in node.get("fields", {}).items()},
    )


def dataset_from_nodes(nodes: Iterable[Mapping[str, Any]]) -> Dataset:
    return Dataset([domain_from_node(n) for n in nodes])


__all__ = [
    "coordset_from_node",
    "topology_from_node",
    "field_from_node",
    "state_from_node",
    "domain_from_node",
    "dataset_from_nodes",
]
