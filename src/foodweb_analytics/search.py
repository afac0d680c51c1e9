import numpy as np
from typing import NamedTuple, Optional, Tuple, Union

from .core import NetworkModel
from .errors import StabilityBoundExhausted
from .fluxes import EfficiencyLevel, resolve_fluxes
from .stability import stability_value


class SearchResult(NamedTuple):
    multiplier: float
    value: float
    iterations: int
    bracket: Tuple[float, float]


def find_stabilizing_multiplier(
    network: NetworkModel,
    normalization: str,
    growth_rate: Optional[np.ndarray] = None,
    lower_bound: float = 0.0,
    upper_bound: float = 1.0,
    tolerance: float = 1e-6,
    max_iter: int = 200,
    efficiency_level: str = EfficiencyLevel.PREDATOR,
    verbose: bool = False,
    full_output: bool = False,
) -> Union[float, SearchResult]:
    """
    Smallest multiplier s of the self-loss term such that the network is stable.

    The community matrix is evaluated with loss rates s * L_i on its diagonal
    (see calculate_jacobian), while fluxes come from the unscaled network and
    are resolved once for the whole search.
    The stability value is ASSUMED to be monotonically non-increasing in s on
    [lower_bound, upper_bound]; under that assumption the crossing from
    unstable (>= 0) to stable (< 0) is located by bisection.

    Parameters
    ----------
    network : NetworkModel
    normalization : {"pred", "prey"}
        Passed to stability_value. Required.
    growth_rate : np.ndarray, optional
        Overrides the network's intrinsic growth rates.
    lower_bound, upper_bound : float
        Search bracket for s.
    tolerance : float
        Width of the final bracket.
    max_iter : int
        Maximum number of bisection steps.
    verbose : bool
        If True, prints progress of every bisection step.
    full_output : bool
        If True, return a SearchResult instead of the bare multiplier.

    Returns
    -------
    float or SearchResult
        The stable end of the final bracket. If lower_bound is already
        stable it is returned unchanged.

    Raises
    ------
    StabilityBoundExhausted
        If the network is not stable at upper_bound, or max_iter steps do not
        shrink the bracket below tolerance.
    """
    if not (np.isfinite(lower_bound) and np.isfinite(upper_bound)):
        raise ValueError(f"Bounds must be finite, got [{lower_bound}, {upper_bound}]")
    if lower_bound > upper_bound:
        raise ValueError(f"lower_bound must not exceed upper_bound, got [{lower_bound}, {upper_bound}]")
    if not tolerance > 0:
        raise ValueError(f"tolerance must be positive, got {tolerance}")
    if max_iter < 1:
        raise ValueError(f"max_iter must be at least 1, got {max_iter}")

    growth = network.growth_rate if growth_rate is None else growth_rate
    flux = resolve_fluxes(network, efficiency_level=efficiency_level)

    def metric(multiplier: float) -> float:
        return stability_value(
            flux,
            network.biomass,
            network.loss_rate * multiplier,
            network.efficiency,
            growth,
            normalization,
            efficiency_level=efficiency_level,
        )

    def result(multiplier, value, iterations, bracket):
        if full_output:
            return SearchResult(float(multiplier), float(value), iterations, (float(bracket[0]), float(bracket[1])))
        return float(multiplier)

    hi, lo = upper_bound, lower_bound
    value_hi = metric(hi)
    if value_hi >= 0:
        raise StabilityBoundExhausted(
            f"No stabilising multiplier within bound: stability value {value_hi:.3e} >= 0 at upper bound {hi}",
            bracket=(lo, hi),
        )

    value_lo = metric(lo)
    if verbose:
        print(f"[Bounds] lo={lo:.6g} metric={value_lo:.3e}, hi={hi:.6g} metric={value_hi:.3e}")
    if value_lo < 0:
        return result(lo, value_lo, 0, (lo, lo))

    it = 0
    while hi - lo >= tolerance:
        if it >= max_iter:
            raise StabilityBoundExhausted(
                f"Iteration budget of {max_iter} exhausted with bracket [{lo:.6g}, {hi:.6g}] "
                f"wider than tolerance {tolerance:.3e}",
                bracket=(lo, hi),
            )
        it += 1
        mid = 0.5 * (lo + hi)
        value_mid = metric(mid)
        if verbose:
            print(f"[Bisect {it}] m={mid:.6g}, metric={value_mid:.3e}, width={hi - lo:.3e}")
        if value_mid < 0:
            hi, value_hi = mid, value_mid
        else:
            lo = mid

    return result(hi, value_hi, it, (lo, hi))
