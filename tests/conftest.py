import numpy as np
import pytest

from meshreduce import (
    Dataset,
    Domain,
    ExplicitCoordset,
    Field,
    RectilinearCoordset,
    State,
    Topology,
    UniformCoordset,
)


def uniform_domain(domain_id, values, *, association="vertex", dims=(3, 3), origin=(0.0, 0.0, 0.0),
                   spacing=(1.0, 1.0, 1.0), field_name="f"):
    return Domain(
        state=State(domain_id=domain_id, cycle=100, time=0.5),
        coordsets={"coords": UniformCoordset(dims=dims, origin=origin, spacing=spacing)},
        topologies={"mesh": Topology(kind="uniform", coordset="coords")},
        fields={field_name: Field(association=association, topology="mesh", values=np.asarray(values))},
    )


def quad_domain(domain_id, values, *, association="element"):
    # Two unit quads side by side: x in [0, 2], y in [0, 1].
    coords = ExplicitCoordset(
        x=np.array([0.0, 1.0, 2.0, 0.0, 1.0, 2.0]),
        y=np.array([0.0, 0.0, 0.0, 1.0, 1.0, 1.0]),
    )
    topo = Topology(kind="unstructured", coordset="coords", shape="quad",
                    connectivity=np.array([0, 1, 4, 3, 1, 2, 5, 4]))
    return Domain(
        state=State(domain_id=domain_id),
        coordsets={"coords": coords},
        topologies={"mesh": topo},
        fields={"f": Field(association=association, topology="mesh", values=np.asarray(values))},
    )


@pytest.fixture
def two_domain_dataset():
    return Dataset([
        uniform_domain(0, np.arange(9, dtype=np.float64)),
        uniform_domain(1, np.array([9.0])),
    ])


@pytest.fixture
def rectilinear_coords():
    return RectilinearCoordset(
        x=np.array([0.0, 1.0, 3.0]),
        y=np.array([0.0, 2.0, 6.0]),
        z=np.array([-1.0, 1.0]),
    )
