import numbers

import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Optional, Tuple

from .errors import InvalidTopology
from .parameters import DEFAULT_PARAMETERS, MetabolicType, OrganismType, TrophicParameters


@dataclass(frozen=True)
class Node:
    id: Hashable
    body_mass: float
    biomass: float
    organism_type: str
    metabolic_type: Optional[str] = None
    growth_rate: Optional[float] = None
    loss_rate: Optional[float] = None
    efficiency: Optional[float] = None


@dataclass(frozen=True)
class Edge:
    """Directed trophic link: `prey` is consumed by `predator`."""
    prey: Hashable
    predator: Hashable
    preference: float = 1.0


def _is_real(value) -> bool:
    return isinstance(value, numbers.Real) and bool(np.isfinite(value))


def _check_non_negative(value: float, what: str, node_id: Hashable) -> None:
    if not _is_real(value) or value < 0:
        raise ValueError(f"{what} of node {node_id!r} must be finite and non-negative, got {value!r}")


def _read_only(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


class NetworkModel:
    """
    Immutable trophic network: nodes with their per-node parameters and the
    directed prey -> predator edges between them.

    Loss rates and efficiencies are resolved once, at construction, from the
    keyed tables in `parameters` unless a node carries explicit overrides.
    All vectors follow the node order given at construction and matrices are
    indexed prey x predator.
    """

    def __init__(
        self,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        parameters: TrophicParameters = DEFAULT_PARAMETERS,
    ):
        self._nodes: Tuple[Node, ...] = tuple(nodes)
        self._edges: Tuple[Edge, ...] = tuple(edges)
        self._parameters = parameters

        self._index: Dict[Hashable, int] = {}
        for i, node in enumerate(self._nodes):
            if node.id in self._index:
                raise InvalidTopology(f"Duplicate node id {node.id!r}")
            self._index[node.id] = i

        n = len(self._nodes)
        loss = np.zeros(n)
        eff = np.zeros(n)
        growth = np.zeros(n)
        has_growth = np.zeros(n, dtype=bool)
        for i, node in enumerate(self._nodes):
            if not _is_real(node.body_mass) or node.body_mass <= 0:
                raise ValueError(f"Body mass of node {node.id!r} must be finite and positive, got {node.body_mass!r}")
            _check_non_negative(node.biomass, "Biomass", node.id)

            if node.organism_type not in OrganismType.ALL:
                raise ValueError(f"Unknown organism type {node.organism_type!r} for node {node.id!r}")
            if node.metabolic_type is not None and node.metabolic_type not in MetabolicType.ALL:
                raise ValueError(f"Unknown metabolic type {node.metabolic_type!r} for node {node.id!r}")

            if node.loss_rate is not None:
                _check_non_negative(node.loss_rate, "Loss rate", node.id)
                loss[i] = node.loss_rate
            elif node.metabolic_type is not None:
                loss[i] = parameters.loss_rate(node.metabolic_type, node.body_mass)

            if node.efficiency is not None:
                _check_non_negative(node.efficiency, "Efficiency", node.id)
                if node.efficiency > 1:
                    raise ValueError(f"Efficiency of node {node.id!r} must not exceed 1, got {node.efficiency}")
                eff[i] = node.efficiency
            else:
                eff[i] = parameters.efficiency(node.organism_type)

            if node.growth_rate is not None:
                if not _is_real(node.growth_rate) or node.growth_rate <= 0:
                    raise ValueError(f"Growth rate of node {node.id!r} must be finite and positive, got {node.growth_rate!r}")
                growth[i] = node.growth_rate
                has_growth[i] = True

        adjacency = np.zeros((n, n), dtype=bool)
        preferences = np.zeros((n, n))
        for edge in self._edges:
            for end in (edge.prey, edge.predator):
                if end not in self._index:
                    raise InvalidTopology(f"Edge {edge.prey!r} -> {edge.predator!r} references unknown node {end!r}")
            if edge.prey == edge.predator:
                raise InvalidTopology(f"Self-loop on node {edge.prey!r}")
            j, i = self._index[edge.prey], self._index[edge.predator]
            if adjacency[j, i]:
                raise InvalidTopology(f"Duplicate edge {edge.prey!r} -> {edge.predator!r}")
            if not _is_real(edge.preference) or edge.preference < 0:
                raise ValueError(
                    f"Preference of edge {edge.prey!r} -> {edge.predator!r} must be finite and non-negative, "
                    f"got {edge.preference!r}"
                )
            adjacency[j, i] = True
            preferences[j, i] = edge.preference

        self._biomass = _read_only(np.array([node.biomass for node in self._nodes], dtype=float))
        self._body_mass = _read_only(np.array([node.body_mass for node in self._nodes], dtype=float))
        self._loss_rate = _read_only(loss)
        self._efficiency = _read_only(eff)
        self._growth_rate = _read_only(growth)
        self._has_growth = _read_only(has_growth)
        self._adjacency = _read_only(adjacency)
        self._preferences = _read_only(preferences)

    @classmethod
    def from_frames(
        cls,
        nodes: pd.DataFrame,
        edges: pd.DataFrame,
        parameters: TrophicParameters = DEFAULT_PARAMETERS,
    ) -> "NetworkModel":
        """
        Build a network from tables keyed by node id.

        `nodes` is indexed by node id (or carries an `id` column) with columns
        body_mass, biomass, organism_type and optionally metabolic_type,
        growth_rate, loss_rate, efficiency (missing values mean unset).
        `edges` has columns prey, predator and optionally preference.
        """
        if "id" in nodes.columns:
            nodes = nodes.set_index("id")

        def optional(row, column):
            if column not in row.index or pd.isna(row[column]):
                return None
            return row[column]

        node_list = [
            Node(
                id=node_id,
                body_mass=float(row["body_mass"]),
                biomass=float(row["biomass"]),
                organism_type=row["organism_type"],
                metabolic_type=optional(row, "metabolic_type"),
                growth_rate=optional(row, "growth_rate"),
                loss_rate=optional(row, "loss_rate"),
                efficiency=optional(row, "efficiency"),
            )
            for node_id, row in nodes.iterrows()
        ]
        # column-wise so integer ids are not upcast alongside a float preference
        if "preference" in edges.columns:
            prefs = [1.0 if pd.isna(p) else float(p) for p in edges["preference"]]
        else:
            prefs = [1.0] * len(edges)
        edge_list = [
            Edge(prey=prey, predator=predator, preference=pref)
            for prey, predator, pref in zip(edges["prey"], edges["predator"], prefs)
        ]
        return cls(node_list, edge_list, parameters=parameters)

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return self._nodes

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self._edges

    @property
    def parameters(self) -> TrophicParameters:
        return self._parameters

    @property
    def ids(self) -> List[Hashable]:
        return [node.id for node in self._nodes]

    @property
    def num_nodes(self) -> int:
        return len(self._nodes)

    @property
    def biomass(self) -> np.ndarray:
        return self._biomass

    @property
    def body_mass(self) -> np.ndarray:
        return self._body_mass

    @property
    def loss_rate(self) -> np.ndarray:
        return self._loss_rate

    @property
    def efficiency(self) -> np.ndarray:
        return self._efficiency

    @property
    def growth_rate(self) -> np.ndarray:
        """Intrinsic growth rates; 0 where a node has no self-growth term."""
        return self._growth_rate

    @property
    def has_growth(self) -> np.ndarray:
        return self._has_growth

    @property
    def adjacency(self) -> np.ndarray:
        """Boolean prey x predator matrix."""
        return self._adjacency

    @property
    def preferences(self) -> np.ndarray:
        """Prey x predator preference weights, 0 where no edge exists."""
        return self._preferences

    @property
    def consumers(self) -> np.ndarray:
        """Indices of nodes with at least one prey edge."""
        return np.where(self._adjacency.any(axis=0))[0]

    def index_of(self, node_id: Hashable) -> int:
        try:
            return self._index[node_id]
        except KeyError:
            raise KeyError(f"Unknown node id {node_id!r}") from None

    def prey_of(self, node_id: Hashable) -> List[Hashable]:
        i = self.index_of(node_id)
        return [self._nodes[j].id for j in np.where(self._adjacency[:, i])[0]]

    def __repr__(self):
        return f"NetworkModel(nodes={self.num_nodes}, edges={len(self._edges)})"
