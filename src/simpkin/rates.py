"""Rate-law evaluators, one bucket per family of rate expressions.

Buckets hold the rate expressions of every reaction that uses them and keep
the last evaluated rate constants. ``update`` compares the state the bucket
depends on against the state it last saw (exact comparison) and only
re-evaluates when it differs, reporting whether anything changed.

Derivative hooks scale an input vector in place:

* ``process_ddT`` multiplies entry ``i`` by ``d ln(k_i) / dT``;
* ``process_ddM`` multiplies entry ``i`` by ``d ln(k_i) / d ln([M]_i)``, the
  logarithmic sensitivity to the collider concentration (zero for rates that
  do not depend on it).

Legacy evaluators keep the older per-family interface (``update(T, logT, out)``
and ``update_C``) and have no derivative hooks.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar

import numpy as np

from simpkin.falloff import blend, reduced_pressure
from simpkin.kinetics import ArrheniusRate, ChebyshevRate, FalloffRate, PlogRate

log = logging.getLogger(__name__)

RateT = TypeVar("RateT")


@dataclass
class RateSharedData:
    """Thermodynamic state shared by all buckets of one kinetics object."""

    temperature: float = 0.0
    log_temperature: float = 0.0
    pressure: float = 0.0
    log_pressure: float = 0.0
    log10_pressure: float = 0.0
    third_body_concentrations: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def update(
        self, temperature: float, pressure: float, third_body_concentrations: np.ndarray
    ) -> None:
        if temperature != self.temperature:
            self.temperature = temperature
            self.log_temperature = np.log(temperature)
        if pressure != self.pressure:
            self.pressure = pressure
            self.log_pressure = np.log(pressure)
            self.log10_pressure = np.log10(pressure)
        self.third_body_concentrations = third_body_concentrations


class MultiRate(ABC, Generic[RateT]):
    """Base class for buckets that support temperature and collider derivatives."""

    supports_jacobian: ClassVar[bool] = True
    name: ClassVar[str] = "multi-rate"

    def __init__(self) -> None:
        self._indices: list[int] = []
        self._rates: list[RateT] = []
        self._position: dict[int, int] = {}
        self._values = np.zeros(0)
        self._state_key: tuple[Any, ...] | None = None

    def __len__(self) -> int:
        return len(self._indices)

    def install(self, reaction_index: int, rate: RateT) -> None:
        if reaction_index in self._position:
            raise ValueError(f"Reaction {reaction_index} is already installed in {self.name}")
        self._position[reaction_index] = len(self._indices)
        self._indices.append(reaction_index)
        self._rates.append(rate)
        self._values = np.append(self._values, 0.0)
        self.invalidate()

    def replace(self, reaction_index: int, rate: RateT) -> None:
        self._rates[self._position[reaction_index]] = rate
        self.invalidate()

    def invalidate(self) -> None:
        self._state_key = None

    @abstractmethod
    def _key(self, shared: RateSharedData) -> tuple[Any, ...]:
        """State this bucket's rate constants depend on."""

    @abstractmethod
    def _evaluate(self, position: int, shared: RateSharedData, temperature: float) -> float:
        """Rate constant of one reaction at ``temperature`` and the shared state."""

    def update(self, shared: RateSharedData) -> bool:
        key = self._key(shared)
        if key == self._state_key:
            return False
        for position in range(len(self._indices)):
            self._values[position] = self._evaluate(position, shared, shared.temperature)
        self._state_key = key
        log.debug("%s: re-evaluated %d rate constants", self.name, len(self._indices))
        return True

    def get_rate_constants(self, kf: np.ndarray) -> None:
        kf[self._indices] = self._values

    def _ddT(self, position: int, shared: RateSharedData, rtol: float) -> float:
        k0 = self._values[position]
        if k0 == 0.0:
            return 0.0
        temperature = shared.temperature
        k1 = self._evaluate(position, shared, temperature * (1.0 + rtol))
        return (k1 / k0 - 1.0) / (rtol * temperature)

    def process_ddT(self, out: np.ndarray, shared: RateSharedData, rtol: float) -> None:
        for position, i in enumerate(self._indices):
            out[i] *= self._ddT(position, shared, rtol)

    def process_ddM(self, out: np.ndarray, shared: RateSharedData, rtol: float) -> None:
        out[self._indices] = 0.0


class ArrheniusBucket(MultiRate[ArrheniusRate]):
    name = "Arrhenius"

    def _key(self, shared: RateSharedData) -> tuple[Any, ...]:
        return (shared.temperature,)

    def _evaluate(self, position: int, shared: RateSharedData, temperature: float) -> float:
        return self._rates[position].evaluate(temperature, np.log(temperature))

    def _ddT(self, position: int, shared: RateSharedData, rtol: float) -> float:
        return self._rates[position].ddT(shared.temperature)


class PlogBucket(MultiRate[PlogRate]):
    name = "pressure-dependent-Arrhenius"

    def _key(self, shared: RateSharedData) -> tuple[Any, ...]:
        return (shared.temperature, shared.pressure)

    def _evaluate(self, position: int, shared: RateSharedData, temperature: float) -> float:
        return self._rates[position].evaluate(
            temperature, np.log(temperature), shared.log_pressure
        )


class ChebyshevBucket(MultiRate[ChebyshevRate]):
    name = "Chebyshev"

    def _key(self, shared: RateSharedData) -> tuple[Any, ...]:
        return (shared.temperature, shared.pressure)

    def _evaluate(self, position: int, shared: RateSharedData, temperature: float) -> float:
        return self._rates[position].evaluate(temperature, shared.log10_pressure)


class FalloffBucket(MultiRate[FalloffRate]):
    """Falloff and chemically-activated rates.

    Both share the reduced-pressure and blending machinery; falloff reactions
    scale the high-pressure limit, chemically-activated ones the low one.
    """

    name = "falloff"

    def __init__(self) -> None:
        super().__init__()
        self._chemically_activated: list[bool] = []

    def install(
        self, reaction_index: int, rate: FalloffRate, chemically_activated: bool = False
    ) -> None:
        super().install(reaction_index, rate)
        self._chemically_activated.append(chemically_activated)

    def _key(self, shared: RateSharedData) -> tuple[Any, ...]:
        concm = shared.third_body_concentrations
        return (shared.temperature, tuple(concm[i] for i in self._indices))

    def _rate(self, position: int, temperature: float, concm: float) -> float:
        rate = self._rates[position]
        k_low, k_high = rate.limits(temperature, np.log(temperature))
        pr = reduced_pressure(concm, k_low, k_high, self._indices[position])
        activated = self._chemically_activated[position]
        factor = blend(pr, rate.falloff.evaluate(temperature, pr), activated)
        return factor * (k_low if activated else k_high)

    def _evaluate(self, position: int, shared: RateSharedData, temperature: float) -> float:
        concm = shared.third_body_concentrations[self._indices[position]]
        return self._rate(position, temperature, concm)

    def process_ddM(self, out: np.ndarray, shared: RateSharedData, rtol: float) -> None:
        for position, i in enumerate(self._indices):
            k0 = self._values[position]
            concm = shared.third_body_concentrations[i]
            if k0 == 0.0 or concm <= 0.0:
                out[i] = 0.0
                continue
            k1 = self._rate(position, shared.temperature, concm * (1.0 + rtol))
            out[i] *= (k1 / k0 - 1.0) / rtol


class _LegacyRates(Generic[RateT]):
    """Per-family evaluator writing into a caller-owned vector by slot."""

    supports_jacobian: ClassVar[bool] = False

    def __init__(self) -> None:
        self._slots: list[int] = []
        self._rates: list[RateT] = []
        self._position: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._slots)

    def install(self, slot: int, rate: RateT) -> None:
        self._position[slot] = len(self._slots)
        self._slots.append(slot)
        self._rates.append(rate)

    def replace(self, slot: int, rate: RateT) -> None:
        self._rates[self._position[slot]] = rate


class LegacyArrheniusRates(_LegacyRates[ArrheniusRate]):
    def update(self, temperature: float, log_temperature: float, out: np.ndarray) -> bool:
        for slot, rate in zip(self._slots, self._rates):
            out[slot] = rate.evaluate(temperature, log_temperature)
        return bool(self._slots)


class LegacyPlogRates(_LegacyRates[PlogRate]):
    def __init__(self) -> None:
        super().__init__()
        self._log_pressure = 0.0

    def update_C(self, log_pressure: float) -> None:
        self._log_pressure = log_pressure

    def update(self, temperature: float, log_temperature: float, out: np.ndarray) -> bool:
        for slot, rate in zip(self._slots, self._rates):
            out[slot] = rate.evaluate(temperature, log_temperature, self._log_pressure)
        return bool(self._slots)


class LegacyChebyshevRates(_LegacyRates[ChebyshevRate]):
    def __init__(self) -> None:
        super().__init__()
        self._log10_pressure = 0.0

    def update_C(self, log10_pressure: float) -> None:
        self._log10_pressure = log10_pressure

    def update(self, temperature: float, log_temperature: float, out: np.ndarray) -> bool:
        for slot, rate in zip(self._slots, self._rates):
            out[slot] = rate.evaluate(temperature, self._log10_pressure)
        return bool(self._slots)
