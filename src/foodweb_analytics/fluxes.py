import numpy as np
import pandas as pd
from typing import Hashable, Iterable

from .core import NetworkModel
from .errors import UnderdeterminedDemand


class EfficiencyLevel:
    PREDATOR = "pred"
    PREY = "prey"

    ALL = (PREDATOR, PREY)


class FluxMatrix:
    """
    Resolved energy flows, prey x predator, indexed by node id.
    F[j, i] is the flow from prey j to predator i per unit time.
    """

    def __init__(self, ids: Iterable[Hashable], values: np.ndarray):
        self._ids = list(ids)
        values = np.array(values, dtype=float)
        n = len(self._ids)
        if values.shape != (n, n):
            raise ValueError(f"Flux values must be shape ({n}, {n}), got {values.shape}")
        if not np.all(np.isfinite(values)) or np.any(values < 0):
            raise ValueError("Flux values must be finite and non-negative")
        if len(set(self._ids)) != n:
            raise ValueError("Flux matrix node ids must be unique")
        values.setflags(write=False)
        self._values = values
        self._index = {node_id: k for k, node_id in enumerate(self._ids)}

    @property
    def ids(self):
        return list(self._ids)

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def inflow(self) -> np.ndarray:
        """Column sums: total flux consumed by each node."""
        return self._values.sum(axis=0)

    @property
    def outflow(self) -> np.ndarray:
        """Row sums: total flux leaving each node to its consumers."""
        return self._values.sum(axis=1)

    def flux(self, prey: Hashable, predator: Hashable) -> float:
        return float(self._values[self._index[prey], self._index[predator]])

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self._values.copy(), index=list(self._ids), columns=list(self._ids))

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> "FluxMatrix":
        if list(frame.index) != list(frame.columns):
            raise ValueError("Flux table must have identical row and column node ids in the same order")
        return cls(list(frame.index), frame.to_numpy(dtype=float))

    def __repr__(self):
        return f"FluxMatrix(nodes={len(self._ids)}, total={self._values.sum():.6g})"


def _prey_weights(network: NetworkModel, biomass_preferences: bool) -> np.ndarray:
    """
    Unnormalised diet weights, prey x predator.
    w_ji = pref_ji * B_j (or pref_ji alone when prey biomass is ignored)
    """
    if biomass_preferences:
        return network.preferences * network.biomass[:, np.newaxis]
    return network.preferences.copy()


def calculate_demand(
    network: NetworkModel,
    efficiency_level: str = EfficiencyLevel.PREDATOR,
    biomass_preferences: bool = True,
) -> np.ndarray:
    """
    Total energy intake each consumer needs to balance its metabolic losses.

    "pred":  demand_i = L_i * B_i / e_i
    "prey":  demand_i = L_i * B_i / (sum_j w_ji e_j / sum_j w_ji)

    Nodes without prey edges have zero demand.
    """
    if efficiency_level not in EfficiencyLevel.ALL:
        raise ValueError(f"efficiency_level must be one of {EfficiencyLevel.ALL}, got {efficiency_level!r}")

    demand = np.zeros(network.num_nodes)
    weights = _prey_weights(network, biomass_preferences)
    for i in network.consumers:
        _, total = _allocate(network, i, weights, efficiency_level)
        demand[i] = total
    return demand


def _allocate(network: NetworkModel, i: int, weights: np.ndarray, efficiency_level: str):
    """Diet shares and total intake of consumer i. Raises if they are undefined."""
    node_id = network.nodes[i].id
    w = weights[:, i]
    w_sum = w.sum()
    if not w_sum > 0:
        raise UnderdeterminedDemand(
            f"Consumer {node_id!r} has prey edges but zero total weighted prey biomass",
            consumer=node_id,
        )
    shares = w / w_sum

    losses = network.loss_rate[i] * network.biomass[i]
    if efficiency_level == EfficiencyLevel.PREDATOR:
        eff = network.efficiency[i]
    else:
        eff = float(np.dot(shares, network.efficiency))

    if eff <= 0:
        if losses == 0:
            return shares, 0.0
        raise UnderdeterminedDemand(
            f"Consumer {node_id!r} cannot assimilate any energy (efficiency 0) to cover losses {losses:.6g}",
            consumer=node_id,
        )
    return shares, losses / eff


def resolve_fluxes(
    network: NetworkModel,
    efficiency_level: str = EfficiencyLevel.PREDATOR,
    biomass_preferences: bool = True,
) -> FluxMatrix:
    """
    Partitions each consumer's energy demand across its prey.

    F_ji = demand_i * w_ji / sum_k w_ki,   w_ji = pref_ji * B_j

    Every consumer is handled independently in a single pass, so cycles
    (omnivory loops) need no iteration. With efficiency_level="prey" the
    assimilated intake sum_j e_j F_ji equals L_i * B_i instead.

    Parameters
    ----------
    network : NetworkModel
        Topology and per-node parameters.
    efficiency_level : {"pred", "prey"}
        Whether assimilation efficiency belongs to the consumer or to the resource eaten.
    biomass_preferences : bool, default True
        If False, demand is split by edge preference alone, ignoring prey biomass.

    Returns
    -------
    FluxMatrix
    """
    if efficiency_level not in EfficiencyLevel.ALL:
        raise ValueError(f"efficiency_level must be one of {EfficiencyLevel.ALL}, got {efficiency_level!r}")

    weights = _prey_weights(network, biomass_preferences)
    F = np.zeros((network.num_nodes, network.num_nodes))
    for i in network.consumers:
        shares, demand = _allocate(network, i, weights, efficiency_level)
        F[:, i] = demand * shares

    return FluxMatrix(network.ids, F)
