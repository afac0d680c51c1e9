import numpy as np
from dataclasses import dataclass, field
from typing import Dict, Tuple


class OrganismType:
    ANIMAL = "animal"
    PLANT = "plant"
    DETRITUS = "detritus"

    ALL = (ANIMAL, PLANT, DETRITUS)


class MetabolicType:
    ECTO_VERT = "ecto.vert"
    ENDO_VERT = "endo.vert"
    INVERTEBRATE = "inv"

    ALL = (ECTO_VERT, ENDO_VERT, INVERTEBRATE)


def _default_metabolic_coefficients() -> Dict[str, Tuple[float, float]]:
    # (a, b) in loss = a * M^b; invertebrate and ectotherm intercepts from
    # Brose et al. (2006), endotherm scaled by the Yodzis & Innes (1992) ratio.
    return {
        MetabolicType.ECTO_VERT: (0.88, -0.25),
        MetabolicType.ENDO_VERT: (21.0, -0.25),
        MetabolicType.INVERTEBRATE: (0.314, -0.25),
    }


def _default_efficiencies() -> Dict[str, float]:
    # Lang et al. (2017)
    return {
        OrganismType.ANIMAL: 0.906,
        OrganismType.PLANT: 0.545,
        OrganismType.DETRITUS: 0.158,
    }


@dataclass(frozen=True)
class TrophicParameters:
    """
    Keyed coefficient tables used to derive per-node loss rates and
    assimilation efficiencies.

    metabolic_coefficients maps a metabolic type to the allometric pair (a, b)
    of lossRate = a * bodyMass ** b. efficiencies maps an organism type to the
    fraction of consumed energy that is assimilated.
    """
    metabolic_coefficients: Dict[str, Tuple[float, float]] = field(default_factory=_default_metabolic_coefficients)
    efficiencies: Dict[str, float] = field(default_factory=_default_efficiencies)

    def __post_init__(self):
        missing = [m for m in MetabolicType.ALL if m not in self.metabolic_coefficients]
        if missing:
            raise ValueError(f"Missing metabolic coefficients for types: {missing}")
        for m_type, pair in self.metabolic_coefficients.items():
            if len(pair) != 2 or not np.all(np.isfinite(pair)):
                raise ValueError(f"Metabolic coefficients for '{m_type}' must be a finite (a, b) pair, got {pair}")
            if pair[0] < 0:
                raise ValueError(f"Metabolic intercept for '{m_type}' must be non-negative, got {pair[0]}")

        missing = [o for o in OrganismType.ALL if o not in self.efficiencies]
        if missing:
            raise ValueError(f"Missing efficiencies for organism types: {missing}")
        for o_type, eff in self.efficiencies.items():
            if not np.isfinite(eff) or eff <= 0 or eff > 1:
                raise ValueError(f"Efficiency for '{o_type}' must lie in (0, 1], got {eff}")

    def loss_rate(self, metabolic_type: str, body_mass: float) -> float:
        if metabolic_type not in self.metabolic_coefficients:
            raise ValueError(f"Unknown metabolic type '{metabolic_type}'")
        a, b = self.metabolic_coefficients[metabolic_type]
        return float(a * body_mass ** b)

    def efficiency(self, organism_type: str) -> float:
        if organism_type not in self.efficiencies:
            raise ValueError(f"Unknown organism type '{organism_type}'")
        return float(self.efficiencies[organism_type])


DEFAULT_PARAMETERS = TrophicParameters()
