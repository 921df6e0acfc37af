"""Ideal gas thermodynamics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

import numpy as np

from simpkin.constants import ONE_ATM, R_GAS, REFERENCE_TEMPERATURE
from simpkin.thermo.base import ThermoInterface


@dataclass(frozen=True)
class SpeciesProperties:
    heat_capacity: float  # J/mol/K (constant)
    heat_of_formation: float  # J/mol at 298.15 K
    standard_entropy: float = 0.0  # J/mol/K at 298.15 K and 1 atm


class IdealGasThermo(ThermoInterface):
    """Ideal gas mixture with constant-Cp species and ideal mixing."""

    type = "ideal-gas"

    def __init__(
        self,
        properties: Mapping[str, SpeciesProperties],
        temperature: float = REFERENCE_TEMPERATURE,
        pressure: float = ONE_ATM,
        mole_fractions: Mapping[str, float] | Sequence[float] | None = None,
        reference_pressure: float = ONE_ATM,
    ):
        if not properties:
            raise ValueError("IdealGasThermo requires at least one species")
        self.properties = dict(properties)
        self.reference_pressure = reference_pressure
        self._names = tuple(self.properties)
        self._cp = np.array([p.heat_capacity for p in self.properties.values()])
        self._h_form = np.array([p.heat_of_formation for p in self.properties.values()])
        self._s0 = np.array([p.standard_entropy for p in self.properties.values()])
        if mole_fractions is None:
            mole_fractions = np.eye(len(self._names))[0]
        self.set_state_TPX(temperature, pressure, mole_fractions)

    @property
    def species_names(self) -> Sequence[str]:
        return self._names

    @property
    def temperature(self) -> float:
        return self._temperature

    @property
    def pressure(self) -> float:
        return self._pressure

    @property
    def mole_fractions(self) -> np.ndarray:
        return self._mole_fractions.copy()

    @property
    def molar_density(self) -> float:
        return self._pressure / (R_GAS * self._temperature)

    def standard_concentration(self) -> float:
        return self._pressure / (R_GAS * self._temperature)

    def concentrations(self) -> np.ndarray:
        return self._mole_fractions * self.molar_density

    def standard_chem_potentials(self) -> np.ndarray:
        T = self._temperature
        enthalpy = self._h_form + self._cp * (T - REFERENCE_TEMPERATURE)
        entropy = self._s0 + self._cp * np.log(T / REFERENCE_TEMPERATURE)
        return enthalpy - T * entropy + R_GAS * T * np.log(self._pressure / self.reference_pressure)

    def set_state_TP(self, temperature: float, pressure: float) -> None:
        if temperature <= 0.0 or pressure <= 0.0:
            raise ValueError(f"Invalid state T={temperature}, P={pressure}")
        self._temperature = float(temperature)
        self._pressure = float(pressure)

    def set_state_TPX(
        self,
        temperature: float,
        pressure: float,
        mole_fractions: Mapping[str, float] | Sequence[float],
    ) -> None:
        if isinstance(mole_fractions, Mapping):
            unknown = set(mole_fractions) - set(self._names)
            if unknown:
                raise ValueError(f"Unknown species in composition: {sorted(unknown)}")
            x = np.array([mole_fractions.get(name, 0.0) for name in self._names], dtype=float)
        else:
            x = np.array(mole_fractions, dtype=float)
            if x.shape != (len(self._names),):
                raise ValueError(
                    f"Expected {len(self._names)} mole fractions, got shape {x.shape}"
                )
        total = x.sum()
        if total <= 0.0:
            raise ValueError("Mole fractions must sum to a positive value")
        self.set_state_TP(temperature, pressure)
        self._mole_fractions = x / total
