from .parameters import TrophicParameters, OrganismType, MetabolicType, DEFAULT_PARAMETERS
from .core import Node, Edge, NetworkModel
from .errors import (
    FoodwebError,
    InvalidTopology,
    UnderdeterminedDemand,
    NonConvergentEigensolve,
    StabilityBoundExhausted
)
from .fluxes import FluxMatrix, EfficiencyLevel, calculate_demand, resolve_fluxes
from .functions import FunctionIndices, find_basal, aggregate_functions, flux_by_prey_type
from .stability import Normalization, StabilityResult, calculate_jacobian, stability_value
from .search import SearchResult, find_stabilizing_multiplier
