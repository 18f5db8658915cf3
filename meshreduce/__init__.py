from .errors import ConsistencyError, MeshReduceError, PreconditionError, SchemaError
from .core import (
    ExtremumResult,
    HistogramResult,
    ScalarResult,
    SumResult,
    Transport,
)
from .config import ReductionOptions
from .transport import LocalTransport, MPITransport, ThreadGroup, ThreadTransport
from .system import abort_on_exception, barrier, collective_guard, make_rank_logger
from .mesh import (
    Dataset,
    Domain,
    ExplicitCoordset,
    Field,
    RectilinearCoordset,
    State,
    Topology,
    UniformCoordset,
    dataset_from_nodes,
    domain_from_node,
    element_location,
    vertex_location,
)
from .voting import ConsistencyVoter
from .aggregate import GlobalAggregator
from .distribution import field_cdf, field_entropy, field_pdf, quantile

__version__ = "0.1.0"

__all__ = [
    "MeshReduceError",
    "SchemaError",
    "ConsistencyError",
    "PreconditionError",
    "Transport",
    "ExtremumResult",
    "HistogramResult",
    "ScalarResult",
    "SumResult",
    "ReductionOptions",
    "LocalTransport",
    "MPITransport",
    "ThreadGroup",
    "ThreadTransport",
    "abort_on_exception",
    "barrier",
    "collective_guard",
    "make_rank_logger",
    "Dataset",
    "Domain",
    "ExplicitCoordset",
    "Field",
    "RectilinearCoordset",
    "State",
    "Topology",
    "UniformCoordset",
    "dataset_from_nodes",
    "domain_from_node",
    "element_location",
    "vertex_location",
    "ConsistencyVoter",
    "GlobalAggregator",
    "field_cdf",
    "field_entropy",
    "field_pdf",
    "quantile",
]
