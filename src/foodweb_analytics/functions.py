import numpy as np
from typing import Dict, NamedTuple

from .core import NetworkModel
from .fluxes import FluxMatrix
from .parameters import OrganismType


class FunctionIndices(NamedTuple):
    herbivory: float
    carnivory: float
    total: float

    def as_dict(self) -> Dict[str, float]:
        return dict(self._asdict())


def find_basal(flux: FluxMatrix) -> np.ndarray:
    """Boolean mask of nodes that consume nothing in the resolved flux graph."""
    return flux.inflow == 0


def aggregate_functions(flux: FluxMatrix) -> FunctionIndices:
    """
    Ecosystem-level functions from a resolved flux matrix.

    herbivory = sum of outgoing flux from basal nodes
    carnivory = sum of outgoing flux from non-basal nodes
    total     = sum of all fluxes
    """
    basal = find_basal(flux)
    outflow = flux.outflow
    return FunctionIndices(
        herbivory=float(outflow[basal].sum()),
        carnivory=float(outflow[~basal].sum()),
        total=float(flux.values.sum()),
    )


def flux_by_prey_type(flux: FluxMatrix, network: NetworkModel) -> Dict[str, float]:
    """Total flux leaving nodes of each organism type (plant, animal, detritus)."""
    if flux.ids != network.ids:
        raise ValueError("Flux matrix and network must share the same node ids in the same order")
    outflow = flux.outflow
    types = np.array([node.organism_type for node in network.nodes], dtype=object)
    return {o_type: float(outflow[types == o_type].sum()) for o_type in OrganismType.ALL}
