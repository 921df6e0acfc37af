"""Command-line entrypoints for SimpKin."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Dict

import numpy as np
import typer

from simpkin.errors import SimpKinError
from simpkin.falloff import SRI, Lindemann, Troe
from simpkin.gas_kinetics import GasKinetics
from simpkin.kinetics import ArrheniusRate, ChebyshevRate, FalloffRate, PlogRate
from simpkin.models import Reaction, ReactionType, ThirdBody
from simpkin.thermo import IdealGasThermo, SpeciesProperties

app = typer.Typer(add_completion=False)


def _parse_arrhenius(data: Dict[str, Any]) -> ArrheniusRate:
    return ArrheniusRate(
        pre_exponential=float(data["A"]),
        temperature_exponent=float(data.get("b", 0.0)),
        activation_energy=float(data.get("Ea", 0.0)),
    )


def _parse_falloff_curve(data: Dict[str, Any] | None) -> Any:
    if not data:
        return Lindemann()
    f_type = data.get("type", "Lindemann").lower()
    if f_type == "lindemann":
        return Lindemann()
    elif f_type == "troe":
        t2 = data.get("T2")
        return Troe(
            A=float(data["A"]),
            T3=float(data["T3"]),
            T1=float(data["T1"]),
            T2=float(t2) if t2 is not None else None,
        )
    elif f_type == "sri":
        return SRI(
            a=float(data["a"]),
            b=float(data["b"]),
            c=float(data["c"]),
            d=float(data.get("d", 1.0)),
            e=float(data.get("e", 0.0)),
        )
    else:
        raise ValueError(f"Unknown falloff type: {f_type}")


def _parse_rate(r_type: str, data: Dict[str, Any]) -> Any:
    if r_type in (ReactionType.ELEMENTARY.value, ReactionType.THREE_BODY.value):
        return _parse_arrhenius(data)
    elif r_type in (ReactionType.FALLOFF.value, ReactionType.CHEMICALLY_ACTIVATED.value):
        return FalloffRate(
            low=_parse_arrhenius(data["low"]),
            high=_parse_arrhenius(data["high"]),
            falloff=_parse_falloff_curve(data.get("falloff")),
        )
    elif r_type == ReactionType.PLOG.value:
        return PlogRate(
            rates=[(float(p["P"]), _parse_arrhenius(p)) for p in data["rates"]]
        )
    elif r_type == ReactionType.CHEBYSHEV.value:
        return ChebyshevRate(
            temperature_range=tuple(data["temperature_range"]),
            pressure_range=tuple(data["pressure_range"]),
            coefficients=data["coefficients"],
        )
    # unknown tags are rejected by GasKinetics.add_reaction
    return _parse_arrhenius(data)


def _parse_reaction(data: Dict[str, Any]) -> Reaction:
    r_type = data.get("type", ReactionType.ELEMENTARY.value)
    third_body = None
    if "efficiencies" in data or "default_efficiency" in data:
        third_body = ThirdBody(
            efficiencies={k: float(v) for k, v in data.get("efficiencies", {}).items()},
            default_efficiency=float(data.get("default_efficiency", 1.0)),
        )
    return Reaction(
        equation=data.get("equation", ""),
        reactants=data["reactants"],
        products=data["products"],
        rate=_parse_rate(r_type, data),
        reaction_type=r_type,
        reversible=bool(data.get("reversible", True)),
        third_body=third_body,
        orders=data.get("orders"),
        legacy=bool(data.get("legacy", False)),
    )


def _parse_thermo(data: Dict[str, Any]) -> IdealGasThermo:
    props = {}
    for name, p in data.get("species", {}).items():
        props[name] = SpeciesProperties(
            heat_capacity=float(p["cp"]),
            heat_of_formation=float(p["h_form"]),
            standard_entropy=float(p.get("s0", 0.0)),
        )
    return IdealGasThermo(props)


def build_kinetics(config: Dict[str, Any]) -> GasKinetics:
    """Build a kinetics object from a parsed JSON configuration."""
    thermo = _parse_thermo(config["thermo"])
    state = config.get("state", {})
    thermo.set_state_TPX(
        float(state.get("T", thermo.temperature)),
        float(state.get("P", thermo.pressure)),
        state.get("X", thermo.mole_fractions),
    )
    kinetics = GasKinetics(
        thermo,
        legacy_rate_constants=bool(config.get("legacy_rate_constants", False)),
        jacobian_settings=config.get("jacobian"),
    )
    for reaction in config.get("reactions", []):
        kinetics.add_reaction(_parse_reaction(reaction))
    return kinetics


@app.command()
def check(
    config_file: Annotated[
        Path, typer.Argument(help="Path to JSON mechanism and state file.")
    ],
) -> None:
    """Install every reaction and list the resulting reaction set."""
    with open(config_file, "r") as f:
        config = json.load(f)

    try:
        kinetics = build_kinetics(config)
    except (SimpKinError, ValueError, NotImplementedError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)

    for i in range(kinetics.n_reactions):
        arrow = "<=>" if kinetics.is_reversible(i) else "=>"
        typer.echo(
            f"{i:4d}  {kinetics.reaction_type(i).value:<30} {arrow:<3}  "
            f"{kinetics.reaction_equation(i)}"
        )
    typer.echo(
        f"{kinetics.n_reactions} reactions, {kinetics.n_species} species"
    )


@app.command()
def evaluate(
    config_file: Annotated[
        Path, typer.Argument(help="Path to JSON mechanism and state file.")
    ],
    output: Annotated[
        Path | None, typer.Option(help="Path to save output JSON.")
    ] = None,
    jacobian: Annotated[
        bool, typer.Option(help="Include temperature derivatives.")
    ] = False,
    verbose: Annotated[bool, typer.Option(help="Enable debug logging.")] = False,
) -> None:
    """Evaluate rate constants and rates of progress at the configured state."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    with open(config_file, "r") as f:
        config = json.load(f)

    try:
        kinetics = build_kinetics(config)
        data: Dict[str, Any] = {
            "equations": [
                kinetics.reaction_equation(i) for i in range(kinetics.n_reactions)
            ],
            "kf": kinetics.get_fwd_rate_constants().tolist(),
            "Kc": kinetics.get_equilibrium_constants().tolist(),
            "concm": kinetics.get_third_body_concentrations().tolist(),
            "ropf": kinetics.get_fwd_rates_of_progress().tolist(),
            "ropr": kinetics.get_rev_rates_of_progress().tolist(),
            "ropnet": kinetics.get_net_rates_of_progress().tolist(),
        }
        if jacobian:
            data["ddT"] = {
                "kf": kinetics.fwd_rate_constants_ddT().tolist(),
                "ropf": kinetics.fwd_rates_of_progress_ddT().tolist(),
                "ropr": kinetics.rev_rates_of_progress_ddT().tolist(),
                "ropnet": kinetics.net_rates_of_progress_ddT().tolist(),
            }
            data["ddC"] = {
                "ropnet": np.asarray(
                    kinetics.net_rates_of_progress_ddC().todense()
                ).tolist(),
            }
    except (SimpKinError, ValueError, NotImplementedError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)

    json_output = json.dumps(data, indent=2)
    typer.echo(json_output)

    if output:
        with open(output, "w") as f:
            f.write(json_output)
