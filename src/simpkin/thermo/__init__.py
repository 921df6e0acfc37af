from .base import ThermoInterface
from .ideal import IdealGasThermo, SpeciesProperties

__all__ = ["ThermoInterface", "IdealGasThermo", "SpeciesProperties"]
