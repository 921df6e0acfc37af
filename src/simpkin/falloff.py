"""Falloff blending curves and the reduced-pressure machinery.

A falloff reaction interpolates between its low-pressure limit ``k0`` and its
high-pressure limit ``kinf`` through the reduced pressure

    pr = [M] * k0 / kinf

and a broadening factor ``F(T, pr)`` supplied by one of the curves below.
Falloff reactions scale ``kinf`` by ``F * pr / (1 + pr)``; chemically
activated reactions scale ``k0`` by ``F / (1 + pr)``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from simpkin.constants import SMALL_NUMBER
from simpkin.errors import NumericalError

log = logging.getLogger(__name__)


class FalloffFunction(Protocol):
    name: str

    def update_temp(self, temperature: float) -> tuple[float, ...]:
        """Precompute the temperature-dependent terms of the curve."""
        ...

    def F(self, pr: float, work: tuple[float, ...]) -> float:
        """Broadening factor at reduced pressure ``pr``."""
        ...

    def evaluate(self, temperature: float, pr: float) -> float:
        ...


@dataclass(frozen=True)
class Lindemann:
    name: str = "Lindemann"

    def update_temp(self, temperature: float) -> tuple[float, ...]:
        return ()

    def F(self, pr: float, work: tuple[float, ...]) -> float:
        return 1.0

    def evaluate(self, temperature: float, pr: float) -> float:
        return 1.0


@dataclass(frozen=True)
class Troe:
    """Troe broadening, ``Fcent = (1-A) e^(-T/T3) + A e^(-T/T1) + e^(-T2/T)``."""

    A: float
    T3: float
    T1: float
    T2: float | None = None
    name: str = "Troe"

    def update_temp(self, temperature: float) -> tuple[float, ...]:
        f_cent = 0.0
        if abs(self.T3) > SMALL_NUMBER:
            f_cent += (1.0 - self.A) * np.exp(-temperature / self.T3)
        if abs(self.T1) > SMALL_NUMBER:
            f_cent += self.A * np.exp(-temperature / self.T1)
        if self.T2:
            f_cent += np.exp(-self.T2 / temperature)
        return (np.log10(max(f_cent, SMALL_NUMBER)),)

    def F(self, pr: float, work: tuple[float, ...]) -> float:
        log_f_cent = work[0]
        log_pr = np.log10(max(pr, SMALL_NUMBER))
        cc = -0.4 - 0.67 * log_f_cent
        nn = 0.75 - 1.27 * log_f_cent
        f1 = (log_pr + cc) / (nn - 0.14 * (log_pr + cc))
        return 10.0 ** (log_f_cent / (1.0 + f1 * f1))

    def evaluate(self, temperature: float, pr: float) -> float:
        return self.F(pr, self.update_temp(temperature))


@dataclass(frozen=True)
class SRI:
    """SRI broadening, ``F = d * (a e^(-b/T) + e^(-T/c))**X * T**e``."""

    a: float
    b: float
    c: float
    d: float = 1.0
    e: float = 0.0
    name: str = "SRI"

    def update_temp(self, temperature: float) -> tuple[float, ...]:
        base = self.a * np.exp(-self.b / temperature)
        if abs(self.c) > SMALL_NUMBER:
            base += np.exp(-temperature / self.c)
        return (base, self.d * temperature ** self.e)

    def F(self, pr: float, work: tuple[float, ...]) -> float:
        base, prefactor = work
        log_pr = np.log10(max(pr, SMALL_NUMBER))
        exponent = 1.0 / (1.0 + log_pr * log_pr)
        return prefactor * base ** exponent

    def evaluate(self, temperature: float, pr: float) -> float:
        return self.F(pr, self.update_temp(temperature))


def reduced_pressure(
    concm: float, k_low: float, k_high: float, reaction_index: int
) -> float:
    """Reduced pressure ``[M] * k0 / (kinf + eps)``, required to be finite."""
    pr = concm * k_low / (k_high + SMALL_NUMBER)
    if not np.isfinite(pr):
        raise NumericalError("pr", reaction_index, where="reduced_pressure")
    return pr


def blend(pr: float, falloff_factor: float, chemically_activated: bool) -> float:
    """Dimensionless factor applied to the scaling limit of a falloff reaction."""
    if chemically_activated:
        return falloff_factor / (1.0 + pr)
    return falloff_factor * pr / (1.0 + pr)


class FalloffMgr:
    """Blending curves for the legacy falloff subset, indexed by falloff slot."""

    def __init__(self) -> None:
        self._curves: list[FalloffFunction] = []
        self._chemically_activated: list[bool] = []
        self._work: list[tuple[float, ...]] = []
        self._temperature: float | None = None

    def __len__(self) -> int:
        return len(self._curves)

    def install(self, slot: int, curve: FalloffFunction, chemically_activated: bool) -> None:
        if slot != len(self._curves):
            raise IndexError(f"Falloff slot {slot} is not the next free slot ({len(self._curves)})")
        self._curves.append(curve)
        self._chemically_activated.append(chemically_activated)
        self._work.append(curve.update_temp(self._temperature) if self._temperature is not None else ())
        log.debug("Installed %s falloff curve in slot %d", curve.name, slot)

    def replace(self, slot: int, curve: FalloffFunction) -> None:
        self._curves[slot] = curve
        if self._temperature is not None:
            self._work[slot] = curve.update_temp(self._temperature)

    def curve_name(self, slot: int) -> str:
        return self._curves[slot].name

    def update_temp(self, temperature: float) -> None:
        self._temperature = temperature
        self._work = [curve.update_temp(temperature) for curve in self._curves]

    def pr_to_falloff(self, pr: np.ndarray) -> None:
        """Replace reduced pressures in ``pr`` by their blended factors."""
        for slot, curve in enumerate(self._curves):
            factor = curve.F(pr[slot], self._work[slot])
            pr[slot] = blend(pr[slot], factor, self._chemically_activated[slot])
