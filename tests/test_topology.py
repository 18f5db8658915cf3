import itertools

import numpy as np
import pytest

from meshreduce import SchemaError, Topology
from meshreduce.mesh import (
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

from conftest import quad_domain, uniform_domain


def test_logical_index_3d_round_trip():
    dims = (4, 3, 5)
    for i, j, k in itertools.product(range(4), range(3), range(5)):
        linear = i + j * dims[0] + k * dims[0] * dims[1]
        assert logical_index_3d(linear, dims) == (i, j, k)
        assert linear_index_3d(i, j, k, dims) == linear


def test_logical_index_2d_round_trip():
    dims = (5, 2)
    for i, j in itertools.product(range(5), range(2)):
        linear = linear_index_2d(i, j, dims)
        assert linear == i + j * dims[0]
        assert logical_index_2d(linear, dims) == (i, j)


def test_logical_index_pads_k_in_2d():
    assert logical_index(7, (3, 3)) == (1, 2, 0)
    assert logical_index(7, (2, 2, 2)) == (1, 1, 1)


@pytest.mark.parametrize("shape,count", [("tri", 3), ("quad", 4), ("tet", 4), ("hex", 8), ("point", 1)])
def test_shape_vertex_count(shape, count):
    assert shape_vertex_count(shape) == count


def test_shape_vertex_count_rejects_unknown_shape():
    with pytest.raises(SchemaError, match="wedge"):
        shape_vertex_count("wedge")


def test_unstructured_element_indices_slice_connectivity():
    topo = Topology(kind="unstructured", coordset="c", shape="tri",
                    connectivity=np.array([0, 1, 2, 2, 1, 3]))
    assert element_vertex_indices(topo, 0) == [0, 1, 2]
    assert element_vertex_indices(topo, 1) == [2, 1, 3]


def test_structured_2d_element_indices_ring():
    # 3 x 2 cells -> 4 x 3 vertices
    topo = Topology(kind="structured", coordset="c", dims=(3, 2))
    assert element_vertex_indices(topo, 0) == [0, 1, 5, 4]
    # cell (1, 1)
    assert element_vertex_indices(topo, 4) == [5, 6, 10, 9]


def test_structured_3d_element_indices_bottom_then_top():
    topo = Topology(kind="structured", coordset="c", dims=(2, 2, 2))
    # 3 x 3 x 3 vertices, 9 per layer
    assert element_vertex_indices(topo, 0) == [0, 1, 4, 3, 9, 10, 13, 12]
    # cell (1, 1, 1)
    assert element_vertex_indices(topo, 7) == [13, 14, 17, 16, 22, 23, 26, 25]


def test_points_element_is_its_vertex():
    topo = Topology(kind="points", coordset="c")
    assert topo.shape == "point"
    assert element_vertex_indices(topo, 5) == [5]


def test_counts_for_uniform_topology():
    dom = uniform_domain(0, np.zeros(9), dims=(3, 3))
    assert num_points(dom, "mesh") == 9
    assert num_cells(dom, "mesh") == 4

    dom3 = uniform_domain(0, np.zeros(24), dims=(2, 3, 4))
    assert num_points(dom3, "") == 24
    assert num_cells(dom3, "") == 1 * 2 * 3


def test_counts_for_unstructured_topology():
    dom = quad_domain(0, [1.0, 2.0])
    assert num_points(dom, "mesh") == 6
    assert num_cells(dom, "mesh") == 2
