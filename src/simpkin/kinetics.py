"""Rate expressions."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from numpy.polynomial import chebyshev

from simpkin.constants import R_GAS
from simpkin.falloff import FalloffFunction, Lindemann


@dataclass(frozen=True)
class ArrheniusRate:
    """Modified Arrhenius expression ``k = A * T**b * exp(-Ea / (R * T))``.

    Activation energy is in J/mol.
    """

    pre_exponential: float
    temperature_exponent: float = 0.0
    activation_energy: float = 0.0

    def rate_constant(self, temperature: float) -> float:
        return self.evaluate(temperature, np.log(temperature))

    def evaluate(self, temperature: float, log_temperature: float) -> float:
        return self.pre_exponential * np.exp(
            self.temperature_exponent * log_temperature
            - self.activation_energy / (R_GAS * temperature)
        )

    def ddT(self, temperature: float) -> float:
        """Relative temperature derivative ``d ln(k) / dT``."""
        return (
            self.temperature_exponent + self.activation_energy / (R_GAS * temperature)
        ) / temperature


@dataclass(frozen=True)
class PlogRate:
    """Pressure-dependent Arrhenius rate, interpolated in ``ln(P)``.

    Several expressions given at the same pressure are summed. Outside the
    tabulated pressure range the expressions at the nearest end are used.
    """

    rates: Sequence[tuple[float, ArrheniusRate]]
    _log_pressures: tuple[float, ...] = field(init=False, repr=False, compare=False)
    _groups: tuple[tuple[ArrheniusRate, ...], ...] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.rates:
            raise ValueError("PlogRate requires at least one (pressure, rate) pair")
        grouped: dict[float, list[ArrheniusRate]] = {}
        for pressure, rate in self.rates:
            if pressure <= 0.0:
                raise ValueError(f"PlogRate pressures must be positive, got {pressure}")
            grouped.setdefault(float(pressure), []).append(rate)
        pressures = sorted(grouped)
        object.__setattr__(self, "_log_pressures", tuple(np.log(p) for p in pressures))
        object.__setattr__(self, "_groups", tuple(tuple(grouped[p]) for p in pressures))

    def _group_rate(self, index: int, temperature: float, log_temperature: float) -> float:
        return sum(r.evaluate(temperature, log_temperature) for r in self._groups[index])

    def evaluate(self, temperature: float, log_temperature: float, log_pressure: float) -> float:
        log_pressures = self._log_pressures
        if log_pressure <= log_pressures[0]:
            return self._group_rate(0, temperature, log_temperature)
        if log_pressure >= log_pressures[-1]:
            return self._group_rate(len(log_pressures) - 1, temperature, log_temperature)

        upper = bisect_right(log_pressures, log_pressure)
        lower = upper - 1
        log_k1 = np.log(self._group_rate(lower, temperature, log_temperature))
        log_k2 = np.log(self._group_rate(upper, temperature, log_temperature))
        fraction = (log_pressure - log_pressures[lower]) / (
            log_pressures[upper] - log_pressures[lower]
        )
        return np.exp(log_k1 + (log_k2 - log_k1) * fraction)


@dataclass(frozen=True)
class ChebyshevRate:
    """Chebyshev expansion of ``log10(k)`` in reduced ``1/T`` and ``log10(P)``.

    ``coefficients[t][p]`` multiplies ``T_t(T_reduced) * T_p(P_reduced)``.
    """

    temperature_range: tuple[float, float]
    pressure_range: tuple[float, float]
    coefficients: Sequence[Sequence[float]]
    _coefficients: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        coeffs = np.atleast_2d(np.asarray(self.coefficients, dtype=float))
        object.__setattr__(self, "_coefficients", coeffs)
        t_min, t_max = self.temperature_range
        p_min, p_max = self.pressure_range
        if not 0.0 < t_min < t_max:
            raise ValueError(f"Invalid Chebyshev temperature range {self.temperature_range}")
        if not 0.0 < p_min < p_max:
            raise ValueError(f"Invalid Chebyshev pressure range {self.pressure_range}")

    def reduced_temperature(self, temperature: float) -> float:
        t_min, t_max = self.temperature_range
        return (2.0 / temperature - 1.0 / t_min - 1.0 / t_max) / (1.0 / t_max - 1.0 / t_min)

    def reduced_pressure(self, log10_pressure: float) -> float:
        log_p_min = np.log10(self.pressure_range[0])
        log_p_max = np.log10(self.pressure_range[1])
        return (2.0 * log10_pressure - log_p_min - log_p_max) / (log_p_max - log_p_min)

    def evaluate(self, temperature: float, log10_pressure: float) -> float:
        log10_k = chebyshev.chebval2d(
            self.reduced_temperature(temperature),
            self.reduced_pressure(log10_pressure),
            self._coefficients,
        )
        return 10.0 ** log10_k


@dataclass(frozen=True)
class FalloffRate:
    """Low- and high-pressure-limit expressions joined by a blending curve."""

    low: ArrheniusRate
    high: ArrheniusRate
    falloff: FalloffFunction = field(default_factory=Lindemann)

    def limits(self, temperature: float, log_temperature: float) -> tuple[float, float]:
        return (
            self.low.evaluate(temperature, log_temperature),
            self.high.evaluate(temperature, log_temperature),
        )
