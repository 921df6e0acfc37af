"""Effective third-body (collider) concentrations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

import numpy as np
from scipy import sparse


@dataclass
class _Collider:
    reaction_index: int
    species: np.ndarray
    efficiencies: np.ndarray
    default_efficiency: float
    mass_action: bool

    def concentration(self, concentrations: np.ndarray, total: float) -> float:
        # sum(f_k c_k) + d (C - sum(c_k)) written as d C + sum((f_k - d) c_k)
        enhanced = self.default_efficiency * total
        if self.species.size:
            enhanced += float(
                np.dot(self.efficiencies - self.default_efficiency, concentrations[self.species])
            )
        return enhanced


class ThirdBodyCalc:
    """Effective collider concentration for a set of reactions.

    Each installed reaction owns one slot of the work buffer. Slots are never
    renumbered: replacing or removing a reaction leaves every other slot
    untouched, so work buffers sized by ``work_size`` stay valid.

    ``mass_action`` marks reactions whose rate of progress is multiplied by
    the collider concentration (three-body reactions). Falloff reactions use
    the concentration only through the reduced pressure.
    """

    def __init__(self, n_species: int) -> None:
        self.n_species = n_species
        self._slots: list[_Collider | None] = []
        self._slot_of: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._slot_of)

    def __contains__(self, reaction_index: int) -> bool:
        return reaction_index in self._slot_of

    @property
    def work_size(self) -> int:
        return len(self._slots)

    def slot(self, reaction_index: int) -> int:
        return self._slot_of[reaction_index]

    def install(
        self,
        reaction_index: int,
        efficiencies: Mapping[int, float],
        default_efficiency: float = 1.0,
        mass_action: bool = True,
    ) -> int:
        if reaction_index in self._slot_of:
            raise ValueError(f"Reaction {reaction_index} already has a third-body entry")
        slot = len(self._slots)
        self._slots.append(
            self._make_collider(reaction_index, efficiencies, default_efficiency, mass_action)
        )
        self._slot_of[reaction_index] = slot
        return slot

    def replace(
        self,
        reaction_index: int,
        efficiencies: Mapping[int, float],
        default_efficiency: float = 1.0,
    ) -> None:
        slot = self._slot_of[reaction_index]
        mass_action = self._slots[slot].mass_action
        self._slots[slot] = self._make_collider(
            reaction_index, efficiencies, default_efficiency, mass_action
        )

    def remove(self, reaction_index: int) -> None:
        slot = self._slot_of.pop(reaction_index)
        self._slots[slot] = None

    def _make_collider(
        self,
        reaction_index: int,
        efficiencies: Mapping[int, float],
        default_efficiency: float,
        mass_action: bool,
    ) -> _Collider:
        species = sorted(efficiencies)
        for k in species:
            if not 0 <= k < self.n_species:
                raise IndexError(f"Species index {k} out of range for {self.n_species} species")
        return _Collider(
            reaction_index=reaction_index,
            species=np.array(species, dtype=int),
            efficiencies=np.array([efficiencies[k] for k in species], dtype=float),
            default_efficiency=float(default_efficiency),
            mass_action=mass_action,
        )

    def _active(self) -> Iterable[tuple[int, _Collider]]:
        for slot, collider in enumerate(self._slots):
            if collider is not None:
                yield slot, collider

    def update(self, concentrations: np.ndarray, total: float, work: np.ndarray) -> None:
        """Compute the collider concentration of every installed reaction."""
        for slot, collider in self._active():
            work[slot] = collider.concentration(concentrations, total)

    def update_subset(
        self,
        reaction_indices: Iterable[int],
        concentrations: np.ndarray,
        total: float,
        work: np.ndarray,
    ) -> None:
        """Compute collider concentrations for the given reactions only."""
        for reaction_index in reaction_indices:
            slot = self._slot_of[reaction_index]
            work[slot] = self._slots[slot].concentration(concentrations, total)

    def copy(self, work: np.ndarray, concm: np.ndarray) -> None:
        """Scatter slot-indexed ``work`` into reaction-indexed ``concm``."""
        for slot, collider in self._active():
            concm[collider.reaction_index] = work[slot]

    def multiply(self, values: np.ndarray, concm: np.ndarray) -> None:
        for _, collider in self._active():
            if collider.mass_action:
                values[collider.reaction_index] *= concm[collider.reaction_index]

    def scale_order(self, values: np.ndarray, out: np.ndarray) -> None:
        """Add the collider's reaction order (one) times ``values`` to ``out``."""
        for _, collider in self._active():
            if collider.mass_action:
                out[collider.reaction_index] += values[collider.reaction_index]

    def jacobian(self, rates: np.ndarray) -> sparse.csr_matrix:
        """Sparse ``d(rates_i [M]_i) / dc_k`` holding ``rates_i`` fixed."""
        rows: list[int] = []
        cols: list[int] = []
        data: list[float] = []
        all_species = np.arange(self.n_species)
        for _, collider in self._active():
            if not collider.mass_action:
                continue
            i = collider.reaction_index
            efficiency = np.full(self.n_species, collider.default_efficiency)
            efficiency[collider.species] = collider.efficiencies
            nonzero = efficiency != 0.0
            rows.extend([i] * int(nonzero.sum()))
            cols.extend(all_species[nonzero].tolist())
            data.extend((rates[i] * efficiency[nonzero]).tolist())
        return sparse.csr_matrix(
            (data, (rows, cols)), shape=(len(rates), self.n_species)
        )
