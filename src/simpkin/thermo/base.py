"""Base interface for thermodynamic state providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Sequence

import numpy as np

from simpkin.constants import R_GAS


class ThermoInterface(ABC):
    """Abstract base class for the phase a kinetics object evaluates against.

    Concentrations are in mol/m^3, chemical potentials in J/mol.
    """

    #: Equation-of-state tag. ``"ideal-gas"`` enables analytic derivatives of
    #: the molar density; anything else is differenced numerically.
    type: str = "abstract"

    @property
    @abstractmethod
    def species_names(self) -> Sequence[str]:
        pass

    @property
    def n_species(self) -> int:
        return len(self.species_names)

    def species_index(self, name: str) -> int | None:
        """Index of species ``name``, or ``None`` if the phase does not have it."""
        try:
            return list(self.species_names).index(name)
        except ValueError:
            return None

    @property
    @abstractmethod
    def temperature(self) -> float:
        pass

    @property
    @abstractmethod
    def pressure(self) -> float:
        pass

    @property
    def RT(self) -> float:
        return R_GAS * self.temperature

    @property
    @abstractmethod
    def molar_density(self) -> float:
        """Total concentration (mol/m^3)."""
        pass

    @abstractmethod
    def standard_concentration(self) -> float:
        """Reference concentration used to nondimensionalize equilibrium constants."""
        pass

    @abstractmethod
    def concentrations(self) -> np.ndarray:
        """Physical species concentrations (mol/m^3)."""
        pass

    def activity_concentrations(self) -> np.ndarray:
        """Concentrations entering the law of mass action."""
        return self.concentrations()

    @abstractmethod
    def standard_chem_potentials(self) -> np.ndarray:
        """Standard-state chemical potentials at the current T and P (J/mol)."""
        pass

    @abstractmethod
    def set_state_TP(self, temperature: float, pressure: float) -> None:
        pass

    @abstractmethod
    def set_state_TPX(
        self,
        temperature: float,
        pressure: float,
        mole_fractions: Mapping[str, float] | Sequence[float],
    ) -> None:
        pass
