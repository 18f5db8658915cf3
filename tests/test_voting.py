import numpy as np
import pytest

from meshreduce import (
    ConsistencyError,
    ConsistencyVoter,
    Dataset,
    Domain,
    ExplicitCoordset,
    Field,
    PreconditionError,
    RectilinearCoordset,
    SchemaError,
    State,
    ThreadGroup,
    Topology,
    UniformCoordset,
)

from conftest import quad_domain, uniform_domain


def _run(datasets, fn):
    group = ThreadGroup(len(datasets))
    return group.run(lambda t: fn(ConsistencyVoter(t), datasets[t.rank]))


def _capture(fn):
    def wrapped(voter, ds):
        try:
            return fn(voter, ds)
        except Exception as exc:  # collected so every worker's outcome can be inspected
            return type(exc)
    return wrapped


def test_someone_agrees_is_or_across_workers():
    group = ThreadGroup(3)
    assert group.run(lambda t: ConsistencyVoter(t).someone_agrees(t.rank == 2)) == [True] * 3
    assert group.run(lambda t: ConsistencyVoter(t).someone_agrees(False)) == [False] * 3


def test_single_worker_voting_degenerates_to_local(two_domain_dataset):
    voter = ConsistencyVoter()
    assert voter.someone_agrees(True)
    assert voter.has_field(two_domain_dataset, "f")
    assert not voter.has_field(two_domain_dataset, "g")
    assert voter.has_topology(two_domain_dataset, "mesh")
    assert voter.field_association(two_domain_dataset, "f") == "vertex"
    assert voter.field_type(two_domain_dataset, "f") == "double"
    assert voter.spatial_dims(two_domain_dataset, "mesh") == 2
    assert voter.coord_type(two_domain_dataset, "mesh") == "double"
    assert voter.field_topology(two_domain_dataset, "f") == "mesh"
    assert voter.state_var(two_domain_dataset, "cycle") == 100


def test_absent_field_defaults():
    voter = ConsistencyVoter()
    empty = Dataset()
    assert voter.field_association(empty, "f") is None
    assert voter.field_type(empty, "f") == "double"
    assert not voter.is_scalar_field(empty, "f")
    assert voter.field_topology(empty, "f") is None
    assert voter.spatial_dims(empty, "mesh") is None


def test_field_present_on_one_worker_is_seen_by_all():
    datasets = [Dataset(), Dataset([uniform_domain(0, np.zeros(9))])]
    assert _run(datasets, lambda v, ds: v.has_field(ds, "f")) == [True, True]
    assert _run(datasets, lambda v, ds: v.field_association(ds, "f")) == ["vertex", "vertex"]


def test_association_disagreement_across_workers():
    datasets = [
        Dataset([uniform_domain(0, np.zeros(9), association="vertex", field_name="x")]),
        Dataset([uniform_domain(1, np.zeros(4), association="element", field_name="x")]),
    ]
    outcomes = _run(datasets, _capture(lambda v, ds: v.field_association(ds, "x")))
    assert outcomes == [ConsistencyError, ConsistencyError]


def test_association_disagreement_inside_one_worker():
    ds = Dataset([
        uniform_domain(0, np.zeros(9), association="vertex"),
        uniform_domain(1, np.zeros(4), association="element"),
    ])
    with pytest.raises(ConsistencyError, match="'f'"):
        ConsistencyVoter().field_association(ds, "f")


def test_field_type_votes():
    float_ds = Dataset([uniform_domain(0, np.zeros(9, dtype=np.float32))])
    double_ds = Dataset([uniform_domain(1, np.zeros(9, dtype=np.float64))])
    assert _run([float_ds, Dataset()], lambda v, ds: v.field_type(ds, "f")) == ["float", "float"]
    assert _run([float_ds, double_ds], _capture(lambda v, ds: v.field_type(ds, "f"))) == [ConsistencyError] * 2


def test_field_type_rejects_integer_values_everywhere():
    int_ds = Dataset([uniform_domain(0, np.arange(9, dtype=np.int32))])
    outcomes = _run([Dataset(), int_ds], _capture(lambda v, ds: v.field_type(ds, "f")))
    assert outcomes == [SchemaError, SchemaError]
    with pytest.raises(SchemaError, match="int32"):
        ConsistencyVoter().field_type(int_ds, "f")


def test_spatial_dims_disagreement():
    ds2 = Dataset([uniform_domain(0, np.zeros(9), dims=(3, 3))])
    ds3 = Dataset([uniform_domain(1, np.zeros(8), dims=(2, 2, 2))])
    assert _run([ds3, Dataset()], lambda v, ds: v.spatial_dims(ds, "mesh")) == [3, 3]
    assert _run([ds2, ds3], _capture(lambda v, ds: v.spatial_dims(ds, "mesh"))) == [ConsistencyError] * 2


def _explicit_domain(domain_id, dtype):
    coords = ExplicitCoordset(x=np.zeros(3, dtype=dtype), y=np.zeros(3, dtype=dtype))
    return Domain(
        state=State(domain_id=domain_id),
        coordsets={"c": coords},
        topologies={"mesh": Topology("points", "c")},
    )


def test_coord_type_ignores_uniform_coordsets():
    mixed = Dataset([uniform_domain(0, np.zeros(9)), _explicit_domain(1, np.float32)])
    assert ConsistencyVoter().coord_type(mixed, "mesh") == "float"
    bad = Dataset([_explicit_domain(0, np.int64)])
    with pytest.raises(SchemaError, match="int64"):
        ConsistencyVoter().coord_type(bad, "mesh")
    split = [Dataset([_explicit_domain(0, np.float32)]), Dataset([_explicit_domain(1, np.float64)])]
    assert _run(split, _capture(lambda v, ds: v.coord_type(ds, "mesh"))) == [ConsistencyError] * 2


def test_field_topology_lowest_rank_wins():
    def domain_on(topo_name):
        return Domain(
            state=State(domain_id=0),
            coordsets={"c": UniformCoordset(dims=(2, 2))},
            topologies={topo_name: Topology("uniform", "c")},
            fields={"f": Field(association="vertex", topology=topo_name, values=np.zeros(4))},
        )

    datasets = [Dataset(), Dataset([domain_on("a")]), Dataset([domain_on("much_longer_name")])]
    assert _run(datasets, lambda v, ds: v.field_topology(ds, "f")) == ["a", "a", "a"]


def test_topology_types_counts_kinds_across_workers():
    rect = Domain(
        state=State(domain_id=5),
        coordsets={"c": RectilinearCoordset(x=np.zeros(2), y=np.zeros(2))},
        topologies={"mesh": Topology("rectilinear", "c")},
    )
    datasets = [
        Dataset([uniform_domain(0, np.zeros(9)), quad_domain(1, [0.0, 0.0])]),
        Dataset([uniform_domain(2, np.zeros(9)), rect]),
    ]
    counts = _run(datasets, lambda v, ds: v.topology_types(ds, "mesh"))
    assert counts[0] == counts[1] == {
        "points": 0, "uniform": 2, "rectilinear": 1, "structured": 0, "unstructured": 1,
    }


def test_state_var_comes_from_lowest_rank_holding_it():
    datasets = [Dataset(), Dataset([uniform_domain(4, np.zeros(9))]), Dataset([uniform_domain(9, np.zeros(9))])]
    assert _run(datasets, lambda v, ds: v.state_var(ds, "domain_id")) == [4, 4, 4]
    outcomes = _run(datasets, _capture(lambda v, ds: v.state_var(ds, "nope")))
    assert outcomes == [PreconditionError] * 3


def test_is_scalar_field_votes_across_workers():
    vel = Field(association="vertex", topology="mesh", values=np.zeros((9, 3)))
    vector_domain = Domain(
        state=State(domain_id=4),
        coordsets={"coords": UniformCoordset(dims=(3, 3))},
        topologies={"mesh": Topology(kind="uniform", coordset="coords")},
        fields={"f": vel},
    )
    scalar = [Dataset(), Dataset([uniform_domain(0, np.zeros(9))])]
    assert _run(scalar, lambda v, ds: v.is_scalar_field(ds, "f")) == [True, True]

    vector = [Dataset([vector_domain]), Dataset()]
    assert _run(vector, lambda v, ds: v.is_scalar_field(ds, "f")) == [False, False]

    mixed = [Dataset([vector_domain]), Dataset([uniform_domain(0, np.zeros(9))])]
    assert _run(mixed, _capture(lambda v, ds: v.is_scalar_field(ds, "f"))) == [ConsistencyError] * 2
