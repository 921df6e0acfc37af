"""Data structures for species and reactions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Union

from simpkin.kinetics import ArrheniusRate, ChebyshevRate, FalloffRate, PlogRate

RateExpression = Union[ArrheniusRate, PlogRate, ChebyshevRate, FalloffRate]


class ReactionType(str, Enum):
    ELEMENTARY = "elementary"
    THREE_BODY = "three-body"
    FALLOFF = "falloff"
    CHEMICALLY_ACTIVATED = "chemically-activated"
    PLOG = "pressure-dependent-Arrhenius"
    CHEBYSHEV = "Chebyshev"

    @property
    def uses_third_body(self) -> bool:
        return self in _THIRD_BODY_TYPES

    @property
    def is_falloff(self) -> bool:
        return self in (ReactionType.FALLOFF, ReactionType.CHEMICALLY_ACTIVATED)


_THIRD_BODY_TYPES = frozenset(
    {ReactionType.THREE_BODY, ReactionType.FALLOFF, ReactionType.CHEMICALLY_ACTIVATED}
)


@dataclass(frozen=True)
class ThirdBody:
    """Collision partner efficiencies for a reaction.

    Species missing from ``efficiencies`` contribute with ``default_efficiency``.
    """

    efficiencies: Mapping[str, float] = field(default_factory=dict)
    default_efficiency: float = 1.0


@dataclass(frozen=True)
class Reaction:
    """A single gas-phase reaction.

    Attributes:
        equation: Human readable label, e.g. ``"H + O2 + M <=> HO2 + M"``.
        reactants: Reactant stoichiometric coefficients (third body excluded).
        products: Product stoichiometric coefficients (third body excluded).
        rate: Rate expression matching ``reaction_type``.
        reaction_type: Type tag, one of the ``ReactionType`` values.
        reversible: Whether a reverse rate is derived from thermochemistry.
        third_body: Collider efficiencies for three-body and falloff types.
        orders: Optional non-stoichiometric forward reaction orders.
        legacy: Install through the legacy per-family evaluators. These
            reactions evaluate normally but do not support derivatives.
    """

    equation: str
    reactants: Mapping[str, float]
    products: Mapping[str, float]
    rate: RateExpression
    reaction_type: str = ReactionType.ELEMENTARY.value
    reversible: bool = True
    third_body: ThirdBody | None = None
    orders: Mapping[str, float] | None = None
    legacy: bool = False

    @property
    def delta_n(self) -> float:
        """Net change in moles, products minus reactants."""
        return float(sum(self.products.values()) - sum(self.reactants.values()))
