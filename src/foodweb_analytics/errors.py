from typing import Hashable, Optional, Tuple


class FoodwebError(Exception):
    """Base class for failures raised by the flux and stability engine."""


class InvalidTopology(FoodwebError, ValueError):
    """An edge references an unknown node, a node id is repeated, or a self-loop is present."""


class UnderdeterminedDemand(FoodwebError, ValueError):
    """
    A consumer has declared prey edges but its demand cannot be partitioned
    (zero total weighted prey biomass, or zero assimilation efficiency).
    """

    def __init__(self, message: str, consumer: Optional[Hashable] = None):
        super().__init__(message)
        self.consumer = consumer


class NonConvergentEigensolve(FoodwebError, RuntimeError):
    """Eigen-decomposition of the community matrix failed numerically."""


class StabilityBoundExhausted(FoodwebError, RuntimeError):
    """
    No stabilising multiplier was found: either the upper bound is still
    unstable or the iteration budget ran out before the tolerance was met.
    """

    def __init__(self, message: str, bracket: Optional[Tuple[float, float]] = None):
        super().__init__(message)
        self.bracket = bracket
