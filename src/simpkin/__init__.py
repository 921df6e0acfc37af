"""SimpKin gas-phase kinetics core."""

from simpkin.errors import (
    ConfigurationError,
    LegacyRateError,
    NumericalError,
    SimpKinError,
)
from simpkin.falloff import SRI, Lindemann, Troe
from simpkin.gas_kinetics import GasKinetics
from simpkin.kinetics import ArrheniusRate, ChebyshevRate, FalloffRate, PlogRate
from simpkin.models import Reaction, ReactionType, ThirdBody
from simpkin.settings import JacobianSettings
from simpkin.thermo import IdealGasThermo, SpeciesProperties

__all__ = [
    "GasKinetics",
    "Reaction",
    "ReactionType",
    "ThirdBody",
    "ArrheniusRate",
    "PlogRate",
    "ChebyshevRate",
    "FalloffRate",
    "Lindemann",
    "Troe",
    "SRI",
    "IdealGasThermo",
    "SpeciesProperties",
    "JacobianSettings",
    "SimpKinError",
    "NumericalError",
    "ConfigurationError",
    "LegacyRateError",
]
