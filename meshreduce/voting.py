from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import numpy as np

from .core import TOPOLOGY_KINDS, Association, FieldType, Transport
from .errors import ConsistencyError, PreconditionError, SchemaError
from .mesh.schema import Dataset, UniformCoordset
from .system import collective_guard
from .transport import LocalTransport


class ConsistencyVoter:
    """Fleet-wide agreement on schema facts of a partitioned dataset.

    Every method is collective: all workers must call it, in the same
    order, with the same names, whether or not they hold any domain.
    """

    def __init__(
            self,
            transport: Optional[Transport] = None,
            *,
            rprint: Callable[[str], None] | None = None,
    ) -> None:
        self.transport: Transport = transport if transport is not None else LocalTransport()
        self._rprint = rprint

    def _log(self, msg: str) -> None:
        if self._rprint is not None:
            self._rprint(msg)

    def someone_agrees(self, local: bool) -> bool:
        """True iff at least one worker's local value is true."""
        return int(self.transport.allreduce_sum(1 if local else 0)) > 0

    def lowest_rank_with(self, local: bool) -> Optional[int]:
        """Lowest rank whose local value is true, or None when no worker has it."""
        flag, rank = self.transport.allreduce_minloc((0.0 if local else 1.0, self.transport.rank))
        return int(rank) if flag == 0.0 else None

    def has_field(self, dataset: Dataset, field_name: str) -> bool:
        return self.someone_agrees(any(d.has_field(field_name) for d in dataset))

    def has_topology(self, dataset: Dataset, topo_name: str) -> bool:
        return self.someone_agrees(any(d.has_topology(topo_name) for d in dataset))

    def is_scalar_field(self, dataset: Dataset, field_name: str) -> bool:
        """True when the field holds one value per entry rather than components.

        Each worker answers from the first domain holding the field; workers
        without it abstain.
        """
        local: Optional[bool] = None
        for _, dom in dataset.holding_field(field_name):
            local = dom.fields[field_name].is_scalar
            break

        scalar_vote = self.someone_agrees(local is True)
        vector_vote = self.someone_agrees(local is False)
        if scalar_vote and vector_vote:
            self._log(f"component disagreement for field '{field_name}'")
            raise ConsistencyError(
                f"There is disagreement about whether field '{field_name}' is scalar"
            )
        return scalar_vote

    def field_association(self, dataset: Dataset, field_name: str) -> Optional[Association]:
        seen = {fld.association for fld in (d.field(field_name) for d in dataset) if fld is not None}

        vertex_vote = self.someone_agrees("vertex" in seen)
        element_vote = self.someone_agrees("element" in seen)

        if vertex_vote and element_vote:
            self._log(f"association disagreement for field '{field_name}'")
            raise ConsistencyError(
                f"There is disagreement about the association of field '{field_name}': "
                "some domains use 'vertex', others 'element'"
            )
        if vertex_vote:
            return "vertex"
        if element_vote:
            return "element"
        return None

    def field_type(self, dataset: Dataset, field_name: str) -> FieldType:
        """Returns ``"float"`` when any worker holds float32 values, otherwise ``"double"``."""
        saw_float = False
        saw_double = False
        bad_type: Optional[str] = None
        for dom in dataset:
            fld = dom.field(field_name)
            if fld is None:
                continue
            if fld.dtype == np.float32:
                saw_float = True
            elif fld.dtype == np.float64:
                saw_double = True
            elif bad_type is None:
                bad_type = str(fld.dtype)

        bad_rank = self.lowest_rank_with(bad_type is not None)
        if bad_rank is not None:
            type_name = self.transport.broadcast(bad_type, root=bad_rank)
            raise SchemaError(
                f"Field '{field_name}' is neither float32 nor float64; type is '{type_name}' (rank {bad_rank})"
            )

        float_vote = self.someone_agrees(saw_float)
        double_vote = self.someone_agrees(saw_double)
        if float_vote and double_vote:
            self._log(f"type disagreement for field '{field_name}'")
            raise ConsistencyError(
                f"There is disagreement about the type of field '{field_name}': "
                "some domains hold float32 values, others float64"
            )
        return "float" if float_vote else "double"

    def spatial_dims(self, dataset: Dataset, topo_name: str) -> Optional[int]:
        saw_2d = False
        saw_3d = False
        with collective_guard(self.transport, f"spatial_dims({topo_name})", self._rprint):
            for _, dom in dataset.holding_topology(topo_name):
                coords = dom.coordset_for(dom.topologies[topo_name])
                if coords.is_2d:
                    saw_2d = True
                else:
                    saw_3d = True

        vote_3d = self.someone_agrees(saw_3d)
        vote_2d = self.someone_agrees(saw_2d)
        if vote_2d and vote_3d:
            self._log(f"spatial dims disagreement for topology '{topo_name}'")
            raise ConsistencyError(f"There is disagreement about the spatial dims of the topology '{topo_name}'")
        if vote_3d:
            return 3
        if vote_2d:
            return 2
        return None

    def coord_type(self, dataset: Dataset, topo_name: str) -> FieldType:
        # Uniform coordsets have no arrays and do not vote; with arrays
        # absent everywhere the answer is "double".
        saw_float = False
        saw_double = False
        bad_type: Optional[str] = None
        with collective_guard(self.transport, f"coord_type({topo_name})", self._rprint):
            for _, dom in dataset.holding_topology(topo_name):
                coords = dom.coordset_for(dom.topologies[topo_name])
                if isinstance(coords, UniformCoordset):
                    continue
                if coords.dtype == np.float32:
                    saw_float = True
                elif coords.dtype == np.float64:
                    saw_double = True
                elif bad_type is None:
                    bad_type = str(coords.dtype)

        bad_rank = self.lowest_rank_with(bad_type is not None)
        if bad_rank is not None:
            type_name = self.transport.broadcast(bad_type, root=bad_rank)
            raise SchemaError(
                f"Coords array from topology '{topo_name}' is neither float32 nor float64; "
                f"type is '{type_name}' (rank {bad_rank})"
            )

        float_vote = self.someone_agrees(saw_float)
        double_vote = self.someone_agrees(saw_double)
        if float_vote and double_vote:
            raise ConsistencyError(
                f"There is disagreement about the coordinate type of topology '{topo_name}'"
            )
        return "float" if float_vote else "double"

    def field_topology(self, dataset: Dataset, field_name: str) -> Optional[str]:
        """Topology a field is attached to, as seen by the lowest rank holding it."""
        local: Optional[str] = None
        for _, dom in dataset.holding_field(field_name):
            local = dom.fields[field_name].topology
            break

        root = self.lowest_rank_with(local is not None)
        if root is None:
            return None
        return self.transport.broadcast(local, root=root)

    def topology_types(self, dataset: Dataset, topo_name: str) -> Dict[str, int]:
        """Fleet-wide count of domains holding ``topo_name``, per topology kind."""
        counts = np.zeros(len(TOPOLOGY_KINDS), dtype=np.int64)
        for _, dom in dataset.holding_topology(topo_name):
            kind = dom.topologies[topo_name].kind
            if kind in TOPOLOGY_KINDS:
                counts[TOPOLOGY_KINDS.index(kind)] += 1
        counts = self.transport.allreduce_sum(counts)
        return {kind: int(c) for kind, c in zip(TOPOLOGY_KINDS, counts)}

    def state_var(self, dataset: Dataset, var_name: str) -> Any:
        local: Any = None
        for dom in dataset:
            if dom.state.has(var_name):
                local = dom.state.get(var_name)
                break

        root = self.lowest_rank_with(local is not None)
        if root is None:
            raise PreconditionError(f"Unable to retrieve state variable '{var_name}'")
        return self.transport.broadcast(local, root=root)


__all__ = ["ConsistencyVoter"]
