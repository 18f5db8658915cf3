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
from .topology import (
    SHAPE_VERTEX_COUNTS,
    element_vertex_indices,
    linear_index_2d,
    linear_index_3d,
    logical_index,
    logical_index_2d,
    logical_index_3d,
    num_cells,
    num_points,
    shape_vertex_count,
)
from .location import element_location, location, vertex_location
from .io import dataset_from_nodes, domain_from_node

__all__ = [
    "Coordset",
    "Dataset",
    "Domain",
    "ExplicitCoordset",
    "Field",
    "RectilinearCoordset",
    "State",
    "Topology",
    "UniformCoordset",
    "SHAPE_VERTEX_COUNTS",
    "element_vertex_indices",
    "linear_index_2d",
    "linear_index_3d",
    "logical_index",
    "logical_index_2d",
    "logical_index_3d",
    "num_cells",
    "num_points",
    "shape_vertex_count",
    "element_location",
    "location",
    "vertex_location",
    "dataset_from_nodes",
    "domain_from_node",
]
