"""Options controlling derivative evaluation."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

from simpkin.errors import ConfigurationError


@dataclass
class JacobianSettings:
    """Option bag for the Jacobian assembler.

    Attributes:
        constant_pressure: Include the change of concentrations with
            temperature at fixed pressure in temperature derivatives.
        mole_fraction_scaling: Scale concentration derivatives by the molar
            density, i.e. differentiate with respect to mole fractions.
        skip_third_body_derivative: Omit the collider-sensitivity term from
            concentration derivatives.
        skip_falloff_derivative: Omit the falloff/third-body cross term. Only
            ``True`` is supported.
        relative_temperature_step: Relative step for finite-difference
            temperature derivatives.
    """

    constant_pressure: bool = True
    mole_fraction_scaling: bool = True
    skip_third_body_derivative: bool = False
    skip_falloff_derivative: bool = True
    relative_temperature_step: float = 1e-6

    @staticmethod
    def _attribute(key: str) -> str:
        return key.replace("-", "_")

    def to_mapping(self) -> dict[str, Any]:
        return {self._key(f.name): getattr(self, f.name) for f in fields(self)}

    @staticmethod
    def _key(name: str) -> str:
        return name.replace("_", "-")

    def update(self, options: Mapping[str, Any]) -> None:
        """Apply ``options``; an empty mapping restores every default.

        The whole mapping is validated before anything is assigned, so a
        rejected mapping leaves the settings unchanged.
        """
        if not options:
            for f in fields(self):
                setattr(self, f.name, f.default)
            return

        known = {self._key(f.name) for f in fields(self)}
        unknown = sorted(str(key) for key in options if key not in known)
        if unknown:
            raise ConfigurationError(f"Unknown Jacobian setting(s): {', '.join(unknown)}")

        step = self.relative_temperature_step
        if "relative-temperature-step" in options:
            step = float(options["relative-temperature-step"])
            if not step > 0.0:
                raise ConfigurationError(
                    f"relative-temperature-step must be positive, got {step}"
                )

        for key in ("constant-pressure", "mole-fraction-scaling", "skip-third-body-derivative"):
            if key in options:
                setattr(self, self._attribute(key), bool(options[key]))
        self.relative_temperature_step = step

        if "skip-falloff-derivative" in options and not options["skip-falloff-derivative"]:
            self.skip_falloff_derivative = True
            raise NotImplementedError(
                "Derivative term related to reaction rate dependence on third bodies "
                "is not implemented."
            )
