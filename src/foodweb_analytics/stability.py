import numpy as np
from scipy.linalg import LinAlgError, eigvals
from dataclasses import dataclass
from typing import Optional, Union

from .errors import NonConvergentEigensolve
from .fluxes import EfficiencyLevel, FluxMatrix


class Normalization:
    PREDATOR = "pred"
    PREY = "prey"

    ALL = (PREDATOR, PREY)


@dataclass
class StabilityResult:
    value: float
    eigenvalues: np.ndarray
    jacobian: np.ndarray

    @property
    def is_stable(self) -> bool:
        return self.value < 0


def _as_vector(values, n: int, name: str) -> np.ndarray:
    arr = np.asarray(values, dtype=float).reshape(-1)
    if arr.shape != (n,):
        raise ValueError(f"{name} must be shape ({n},), got {arr.shape}")
    return arr


def calculate_jacobian(
    flux: Union[FluxMatrix, np.ndarray],
    biomass: np.ndarray,
    loss_rate: np.ndarray,
    efficiency: np.ndarray,
    growth_rate: Optional[np.ndarray],
    normalization: str,
    efficiency_level: str = EfficiencyLevel.PREDATOR,
) -> np.ndarray:
    """
    Assembles the community matrix J at the flux equilibrium (per unit time).

    For every link prey j -> predator i with flux F = F_ji:
        J_ij =  e * F / B_n   (gain of the predator)
        J_ji =     -F / B_n   (loss of the prey)
    where B_n is the prey biomass (normalization="prey") or the predator
    biomass (normalization="pred") and e is the predator's efficiency, or the
    prey's when efficiency_level="prey".

    Diagonal:
        J_ii = -r_i - L_i
    r_i is the intrinsic growth rate (0 where unset; logistic self-regulation
    at equilibrium) and L_i the metabolic self-loss rate.

    A plain array flux is checked the same way a FluxMatrix is: square,
    finite and non-negative, or ValueError.
    """
    if normalization not in Normalization.ALL:
        raise ValueError(f"normalization must be explicitly one of {Normalization.ALL}, got {normalization!r}")
    if efficiency_level not in EfficiencyLevel.ALL:
        raise ValueError(f"efficiency_level must be one of {EfficiencyLevel.ALL}, got {efficiency_level!r}")

    if not isinstance(flux, FluxMatrix):
        F = np.asarray(flux, dtype=float)
        if F.ndim != 2:
            raise ValueError(f"Flux matrix must be square, got shape {F.shape}")
        flux = FluxMatrix(range(F.shape[0]), F)
    F = flux.values
    n = F.shape[0]

    biomass = _as_vector(biomass, n, "biomass")
    loss_rate = _as_vector(loss_rate, n, "loss_rate")
    efficiency = _as_vector(efficiency, n, "efficiency")
    if growth_rate is None:
        growth = np.zeros(n)
    else:
        growth = np.nan_to_num(_as_vector(growth_rate, n, "growth_rate"), nan=0.0)

    # Normalising biomass per link, prey x predator
    if normalization == Normalization.PREY:
        b_norm = np.repeat(biomass[:, np.newaxis], n, axis=1)
    else:
        b_norm = np.repeat(biomass[np.newaxis, :], n, axis=0)

    active = F > 0
    if np.any(active & (b_norm <= 0)):
        bad = np.argwhere(active & (b_norm <= 0))
        raise ValueError(f"Positive flux normalised by zero biomass at (prey, predator) indices {bad.tolist()}")

    per_unit = np.zeros_like(F)
    per_unit[active] = F[active] / b_norm[active]

    if efficiency_level == EfficiencyLevel.PREDATOR:
        gain = per_unit * efficiency[np.newaxis, :]
    else:
        gain = per_unit * efficiency[:, np.newaxis]

    # --- Off-Diagonals ---
    # gain is prey x predator, so its transpose lands on the predator rows
    J = gain.T - per_unit

    # --- Diagonals ---
    np.fill_diagonal(J, -growth - loss_rate)

    return J


def stability_value(
    flux: Union[FluxMatrix, np.ndarray],
    biomass: np.ndarray,
    loss_rate: np.ndarray,
    efficiency: np.ndarray,
    growth_rate: Optional[np.ndarray],
    normalization: str,
    efficiency_level: str = EfficiencyLevel.PREDATOR,
    full_output: bool = False,
) -> Union[float, StabilityResult]:
    """
    Maximum real part of the community matrix eigenvalues.

    A negative value means the equilibrium is locally asymptotically stable;
    the more negative, the more stable. Zero or positive means unstable.

    Parameters
    ----------
    flux : FluxMatrix or np.ndarray
        Resolved prey x predator fluxes.
    biomass, loss_rate, efficiency : np.ndarray
        Per-node vectors in the flux matrix order.
    growth_rate : np.ndarray or None
        Intrinsic growth rates; 0 or NaN where a node has no self-growth term.
    normalization : {"pred", "prey"}
        Biomass used to turn fluxes into per-unit interaction strengths. Required.
    efficiency_level : {"pred", "prey"}, default "pred"
    full_output : bool, default False
        If True, return a StabilityResult with the spectrum and the Jacobian.

    Raises
    ------
    NonConvergentEigensolve
        If the eigenvalue computation fails.
    """
    J = calculate_jacobian(flux, biomass, loss_rate, efficiency, growth_rate, normalization, efficiency_level)

    if J.size == 0:
        raise ValueError("Cannot evaluate stability of an empty network")
    if not np.all(np.isfinite(J)):
        raise NonConvergentEigensolve("Community matrix has non-finite entries")
    try:
        eigenvalues = eigvals(J)
    except LinAlgError as e:
        raise NonConvergentEigensolve(f"Eigenvalue computation did not converge: {e}") from e

    value = float(np.max(eigenvalues.real))

    if full_output:
        return StabilityResult(value=value, eigenvalues=eigenvalues, jacobian=J)
    return value
