"""Stoichiometric bookkeeping for concentration-power products."""

from __future__ import annotations

from typing import Mapping

import numpy as np
from scipy import sparse


class StoichManager:
    """Per-reaction species orders for one side of the reaction set.

    Rates are multiplied by ``prod_k c_k ** order_k`` for the species of each
    reaction. Reactions without an entry are left untouched.
    """

    def __init__(self, n_species: int) -> None:
        self.n_species = n_species
        self._species: dict[int, np.ndarray] = {}
        self._orders: dict[int, np.ndarray] = {}
        self._total_order: dict[int, float] = {}

    def __len__(self) -> int:
        return len(self._species)

    def add(self, reaction_index: int, orders: Mapping[int, float]) -> None:
        species = sorted(k for k, order in orders.items() if order != 0.0)
        self._species[reaction_index] = np.array(species, dtype=int)
        self._orders[reaction_index] = np.array([orders[k] for k in species], dtype=float)
        self._total_order[reaction_index] = float(sum(orders[k] for k in species))

    def orders(self, reaction_index: int) -> dict[int, float]:
        return dict(
            zip(
                self._species[reaction_index].tolist(),
                self._orders[reaction_index].tolist(),
            )
        )

    def multiply(self, concentrations: np.ndarray, out: np.ndarray) -> None:
        for i, species in self._species.items():
            if species.size:
                out[i] *= np.prod(np.power(concentrations[species], self._orders[i]))

    def scale(self, values: np.ndarray, out: np.ndarray, factor: float = 1.0) -> None:
        """Set ``out[i] = values[i] * total_order_i * factor``."""
        for i, total in self._total_order.items():
            out[i] = values[i] * total * factor

    def jacobian(self, concentrations: np.ndarray, rates: np.ndarray) -> sparse.csr_matrix:
        """Sparse ``d(rates_i prod_k c_k ** order_k) / dc_j`` holding ``rates_i`` fixed."""
        rows: list[int] = []
        cols: list[int] = []
        data: list[float] = []
        with np.errstate(divide="ignore", invalid="ignore"):
            for i, species in self._species.items():
                if not species.size or rates[i] == 0.0:
                    continue
                orders = self._orders[i]
                conc = concentrations[species]
                powers = np.power(conc, orders)
                for j, k in enumerate(species):
                    others = np.prod(np.delete(powers, j))
                    if orders[j] == 1.0:
                        derivative = others
                    else:
                        derivative = orders[j] * np.power(conc[j], orders[j] - 1.0) * others
                    rows.append(i)
                    cols.append(int(k))
                    data.append(rates[i] * derivative)
        return sparse.csr_matrix(
            (data, (rows, cols)), shape=(len(rates), self.n_species)
        )
