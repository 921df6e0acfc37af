"""Homogeneous kinetics in ideal and non-ideal gases.

``GasKinetics`` evaluates, for an ordered set of reactions, forward rate
constants, reverse-rate multipliers derived from equilibrium constants,
effective third-body concentrations and rates of progress, and assembles
their derivatives with respect to temperature and concentrations.

Results are cached against the thermodynamic state: rate constants are
recomputed only when temperature or pressure differ (exact comparison) from
the last evaluation, and concentration-dependent quantities only when the
concentrations differ. Adding or modifying a reaction invalidates every
cached quantity.

Reactions flagged ``legacy`` are evaluated by the per-family legacy
evaluators. They take part in every rate query, but derivative queries fail
with ``LegacyRateError`` while any of them is installed.
"""

from __future__ import annotations

import logging
import warnings
import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import numpy as np
from scipy import sparse

from simpkin.constants import BIG_NUMBER, CACHE_INVALIDATION_OFFSET
from simpkin.errors import ConfigurationError, LegacyRateError, NumericalError
from simpkin.falloff import FalloffMgr, reduced_pressure
from simpkin.kinetics import ArrheniusRate, ChebyshevRate, FalloffRate, PlogRate
from simpkin.models import Reaction, ReactionType, ThirdBody
from simpkin.rates import (
    ArrheniusBucket,
    ChebyshevBucket,
    FalloffBucket,
    LegacyArrheniusRates,
    LegacyChebyshevRates,
    LegacyPlogRates,
    MultiRate,
    PlogBucket,
    RateSharedData,
)
from simpkin.settings import JacobianSettings
from simpkin.stoich import StoichManager
from simpkin.thermo import ThermoInterface
from simpkin.thirdbody import ThirdBodyCalc

log = logging.getLogger(__name__)

_RATE_TYPES: dict[ReactionType, type] = {
    ReactionType.ELEMENTARY: ArrheniusRate,
    ReactionType.THREE_BODY: ArrheniusRate,
    ReactionType.FALLOFF: FalloffRate,
    ReactionType.CHEMICALLY_ACTIVATED: FalloffRate,
    ReactionType.PLOG: PlogRate,
    ReactionType.CHEBYSHEV: ChebyshevRate,
}

_BUCKETS: dict[ReactionType, type[MultiRate]] = {
    ReactionType.ELEMENTARY: ArrheniusBucket,
    ReactionType.THREE_BODY: ArrheniusBucket,
    ReactionType.FALLOFF: FalloffBucket,
    ReactionType.CHEMICALLY_ACTIVATED: FalloffBucket,
    ReactionType.PLOG: PlogBucket,
    ReactionType.CHEBYSHEV: ChebyshevBucket,
}


@dataclass(frozen=True)
class _ReactionRecord:
    """What the kinetics object keeps about reaction ``i``."""

    equation: str
    reaction_type: ReactionType
    reversible: bool
    legacy: bool
    supports_jacobian: bool
    delta_n: float
    reactants: tuple[tuple[str, float], ...]
    products: tuple[tuple[str, float], ...]
    orders: tuple[tuple[str, float], ...] | None = None


def _sorted_orders(reaction: Reaction) -> tuple[tuple[str, float], ...] | None:
    if reaction.orders is None:
        return None
    return tuple(sorted(reaction.orders.items()))


# Installs reaction i and returns the evaluator that owns its rate constant.
_Installer = Callable[[int, Reaction, ReactionType], Any]


class GasKinetics:
    """Rate-of-progress and Jacobian evaluation for a gas-phase reaction set.

    Args:
        thermo: Thermodynamic state provider the rates are evaluated against.
        legacy_rate_constants: When true, ``get_fwd_rate_constants`` folds the
            third-body concentration into the reported rate constants of
            three-body reactions and emits a ``DeprecationWarning``.
        jacobian_settings: Initial Jacobian options, see ``JacobianSettings``.
    """

    def __init__(
        self,
        thermo: ThermoInterface,
        legacy_rate_constants: bool = False,
        jacobian_settings: Mapping[str, Any] | None = None,
    ) -> None:
        self.thermo = thermo
        self.legacy_rate_constants = legacy_rate_constants
        self._settings = JacobianSettings()
        if jacobian_settings:
            self.set_jacobian_settings(jacobian_settings)

        n_species = thermo.n_species
        self._records: list[_ReactionRecord] = []
        self._reactant_stoich = StoichManager(n_species)
        self._rev_product_stoich = StoichManager(n_species)
        self._net_stoich = np.zeros((0, n_species))
        self._dn = np.zeros(0)
        self._revindex: list[int] = []
        self._irrev: list[int] = []
        self._perturb = np.zeros(0)

        # Rate evaluators with derivative support
        self._bulk_rates: dict[type[MultiRate], MultiRate] = {}
        self._shared = RateSharedData()
        self._multi_concm = ThirdBodyCalc(n_species)
        self._concm_multi_values = np.zeros(0)

        # Legacy per-family evaluators
        self._rates = LegacyArrheniusRates()
        self._3b_concm = ThirdBodyCalc(n_species)
        self._concm_3b_values = np.zeros(0)
        self._falloff_low_rates = LegacyArrheniusRates()
        self._falloff_high_rates = LegacyArrheniusRates()
        self._rfn_low = np.zeros(0)
        self._rfn_high = np.zeros(0)
        self._fallindx: list[int] = []
        self._rfallindx: dict[int, int] = {}
        self._falloff_activated: list[bool] = []
        self._falloff_concm = ThirdBodyCalc(n_species)
        self._concm_falloff_values = np.zeros(0)
        self._falloffn = FalloffMgr()
        self._plog_rates = LegacyPlogRates()
        self._cheb_rates = LegacyChebyshevRates()

        self._legacy_installers: dict[ReactionType, _Installer] = {
            ReactionType.ELEMENTARY: self._add_elementary_reaction,
            ReactionType.THREE_BODY: self._add_three_body_reaction,
            ReactionType.FALLOFF: self._add_falloff_reaction,
            ReactionType.CHEMICALLY_ACTIVATED: self._add_falloff_reaction,
            ReactionType.PLOG: self._add_plog_reaction,
            ReactionType.CHEBYSHEV: self._add_chebyshev_reaction,
        }

        # Cached evaluation state
        self._temp = 0.0
        self._pres = 0.0
        self._log_stand_conc = 0.0
        self._conc_pres: float | None = None
        self._phys_conc = np.zeros(n_species)
        self._act_conc = np.zeros(n_species)
        self._ctot = 0.0
        self._rfn = np.zeros(0)
        self._rkcn = np.zeros(0)
        self._concm = np.zeros(0)
        self._kf = np.zeros(0)
        self._ropf = np.zeros(0)
        self._ropr = np.zeros(0)
        self._ropnet = np.zeros(0)
        self._pr = np.zeros(0)
        self._rbuf0 = np.zeros(0)
        self._rbuf1 = np.zeros(0)
        self._rbuf2 = np.zeros(0)
        self._rop_ok = False

    # ------------------------------------------------------------------
    # Reaction set

    @property
    def n_reactions(self) -> int:
        return len(self._records)

    @property
    def n_species(self) -> int:
        return self.thermo.n_species

    def reaction_type(self, i: int) -> ReactionType:
        return self._records[i].reaction_type

    def reaction_equation(self, i: int) -> str:
        return self._records[i].equation

    def is_reversible(self, i: int) -> bool:
        return self._records[i].reversible

    def delta_n(self, i: int) -> float:
        return self._records[i].delta_n

    def multiplier(self, i: int) -> float:
        return float(self._perturb[i])

    def set_multiplier(self, i: int, factor: float) -> None:
        """Scale the forward rate constant of reaction ``i`` by ``factor``."""
        self._perturb[i] = factor
        self._rop_ok = False

    @staticmethod
    def _resolve_type(reaction: Reaction) -> ReactionType:
        try:
            rtype = ReactionType(reaction.reaction_type)
        except ValueError:
            raise ConfigurationError(
                f"Unknown reaction type specified: '{reaction.reaction_type}'"
            ) from None
        expected = _RATE_TYPES[rtype]
        if not isinstance(reaction.rate, expected):
            raise ConfigurationError(
                f"Reaction '{reaction.equation}' of type '{rtype.value}' requires a "
                f"{expected.__name__}, got {type(reaction.rate).__name__}"
            )
        return rtype

    def _species_orders(self, species: Mapping[str, float], equation: str) -> dict[int, float]:
        orders: dict[int, float] = {}
        for name, value in species.items():
            k = self.thermo.species_index(name)
            if k is None:
                raise ConfigurationError(f"Reaction '{equation}' contains undeclared species '{name}'")
            orders[k] = orders.get(k, 0.0) + float(value)
        return orders

    def _efficiencies(self, third_body: ThirdBody) -> dict[int, float]:
        efficiencies: dict[int, float] = {}
        for name, value in third_body.efficiencies.items():
            k = self.thermo.species_index(name)
            if k is None:
                log.debug("Skipping third-body efficiency for unknown species '%s'", name)
                continue
            efficiencies[k] = float(value)
        return efficiencies

    def add_reaction(self, reaction: Reaction) -> int:
        """Install ``reaction`` and return its index."""
        rtype = self._resolve_type(reaction)
        reactants = self._species_orders(reaction.reactants, reaction.equation)
        products = self._species_orders(reaction.products, reaction.equation)
        orders = (
            self._species_orders(reaction.orders, reaction.equation)
            if reaction.orders is not None
            else reactants
        )

        i = self.n_reactions
        installer = self._legacy_installers[rtype] if reaction.legacy else self._install_bulk_rate

        self._reactant_stoich.add(i, orders)
        self._rev_product_stoich.add(i, products)
        row = np.zeros(self.n_species)
        for k, nu in reactants.items():
            row[k] -= nu
        for k, nu in products.items():
            row[k] += nu
        self._net_stoich = np.vstack([self._net_stoich, row])
        self._dn = np.append(self._dn, reaction.delta_n)
        if reaction.reversible:
            self._revindex.append(i)
        else:
            self._irrev.append(i)
        self._perturb = np.append(self._perturb, 1.0)
        self._resize_reactions(i + 1)
        evaluator = installer(i, reaction, rtype)

        self._records.append(
            _ReactionRecord(
                equation=reaction.equation,
                reaction_type=rtype,
                reversible=reaction.reversible,
                legacy=reaction.legacy,
                supports_jacobian=evaluator.supports_jacobian,
                delta_n=reaction.delta_n,
                reactants=tuple(sorted(reaction.reactants.items())),
                products=tuple(sorted(reaction.products.items())),
                orders=_sorted_orders(reaction),
            )
        )
        self.invalidate_cache()
        log.debug(
            "Added %s reaction %d '%s'%s",
            rtype.value,
            i,
            reaction.equation,
            " (legacy)" if reaction.legacy else "",
        )
        return i

    def _resize_reactions(self, n: int) -> None:
        for name in (
            "_rfn", "_rkcn", "_concm", "_kf", "_ropf", "_ropr", "_ropnet",
            "_rbuf0", "_rbuf1", "_rbuf2",
        ):
            old = getattr(self, name)
            new = np.zeros(n)
            new[: old.size] = old
            setattr(self, name, new)

    def _install_bulk_rate(self, i: int, reaction: Reaction, rtype: ReactionType) -> MultiRate:
        bucket_type = _BUCKETS[rtype]
        bucket = self._bulk_rates.get(bucket_type)
        if bucket is None:
            bucket = self._bulk_rates[bucket_type] = bucket_type()
        if rtype.is_falloff:
            bucket.install(
                i, reaction.rate,
                chemically_activated=rtype is ReactionType.CHEMICALLY_ACTIVATED,
            )
        else:
            bucket.install(i, reaction.rate)

        if rtype.uses_third_body:
            third_body = reaction.third_body or ThirdBody()
            self._multi_concm.install(
                i,
                self._efficiencies(third_body),
                third_body.default_efficiency,
                mass_action=rtype is ReactionType.THREE_BODY,
            )
            self._concm_multi_values = np.zeros(self._multi_concm.work_size)
        return bucket

    def _add_elementary_reaction(self, i: int, reaction: Reaction, rtype: ReactionType) -> LegacyArrheniusRates:
        self._rates.install(i, reaction.rate)
        return self._rates

    def _add_three_body_reaction(self, i: int, reaction: Reaction, rtype: ReactionType) -> LegacyArrheniusRates:
        self._rates.install(i, reaction.rate)
        third_body = reaction.third_body or ThirdBody()
        self._3b_concm.install(i, self._efficiencies(third_body), third_body.default_efficiency)
        self._concm_3b_values = np.zeros(self._3b_concm.work_size)
        return self._rates

    def _add_falloff_reaction(self, i: int, reaction: Reaction, rtype: ReactionType) -> LegacyArrheniusRates:
        # install high and low rate calculators and extend their value vectors
        nfall = len(self._fallindx)
        rate: FalloffRate = reaction.rate
        self._falloff_high_rates.install(nfall, rate.high)
        self._rfn_high = np.append(self._rfn_high, 0.0)
        self._falloff_low_rates.install(nfall, rate.low)
        self._rfn_low = np.append(self._rfn_low, 0.0)
        self._pr = np.append(self._pr, 0.0)

        self._fallindx.append(i)
        self._rfallindx[i] = nfall
        activated = rtype is ReactionType.CHEMICALLY_ACTIVATED
        self._falloff_activated.append(activated)

        third_body = reaction.third_body or ThirdBody()
        self._falloff_concm.install(
            i, self._efficiencies(third_body), third_body.default_efficiency, mass_action=False
        )
        self._concm_falloff_values = np.zeros(self._falloff_concm.work_size)
        self._falloffn.install(nfall, rate.falloff, activated)
        return self._falloff_high_rates

    def _add_plog_reaction(self, i: int, reaction: Reaction, rtype: ReactionType) -> LegacyPlogRates:
        self._plog_rates.install(i, reaction.rate)
        return self._plog_rates

    def _add_chebyshev_reaction(self, i: int, reaction: Reaction, rtype: ReactionType) -> LegacyChebyshevRates:
        self._cheb_rates.install(i, reaction.rate)
        return self._cheb_rates

    def modify_reaction(self, i: int, reaction: Reaction) -> None:
        """Replace the rate expression and efficiencies of reaction ``i``.

        The replacement must have the same type, construction path,
        reversibility, stoichiometry and reaction orders as the installed
        reaction.
        """
        rtype = self._resolve_type(reaction)
        record = self._records[i]
        if rtype is not record.reaction_type or reaction.legacy != record.legacy:
            raise ConfigurationError(
                f"Reaction {i}: cannot replace '{record.reaction_type.value}'"
                f"{' (legacy)' if record.legacy else ''} reaction with "
                f"'{rtype.value}'{' (legacy)' if reaction.legacy else ''} reaction"
            )
        if (
            reaction.reversible != record.reversible
            or tuple(sorted(reaction.reactants.items())) != record.reactants
            or tuple(sorted(reaction.products.items())) != record.products
            or _sorted_orders(reaction) != record.orders
        ):
            raise ConfigurationError(
                f"Reaction {i}: replacement '{reaction.equation}' changes the "
                f"stoichiometry, reaction orders or reversibility of '{record.equation}'"
            )

        third_body = reaction.third_body or ThirdBody()
        if not reaction.legacy:
            self._bulk_rates[_BUCKETS[rtype]].replace(i, reaction.rate)
            if rtype.uses_third_body:
                self._multi_concm.replace(
                    i, self._efficiencies(third_body), third_body.default_efficiency
                )
        elif rtype in (ReactionType.ELEMENTARY, ReactionType.THREE_BODY):
            self._rates.replace(i, reaction.rate)
            if rtype is ReactionType.THREE_BODY:
                self._3b_concm.replace(
                    i, self._efficiencies(third_body), third_body.default_efficiency
                )
        elif rtype.is_falloff:
            ifall = self._rfallindx[i]
            self._falloff_high_rates.replace(ifall, reaction.rate.high)
            self._falloff_low_rates.replace(ifall, reaction.rate.low)
            self._falloffn.replace(ifall, reaction.rate.falloff)
            self._falloff_concm.replace(
                i, self._efficiencies(third_body), third_body.default_efficiency
            )
        elif rtype is ReactionType.PLOG:
            self._plog_rates.replace(i, reaction.rate)
        else:
            self._cheb_rates.replace(i, reaction.rate)

        self._records[i] = dataclasses.replace(record, equation=reaction.equation)
        self.invalidate_cache()

    def invalidate_cache(self) -> None:
        """Force recomputation of every cached quantity on the next query."""
        self._temp += CACHE_INVALIDATION_OFFSET
        self._pres += CACHE_INVALIDATION_OFFSET
        self._conc_pres = None
        self._rop_ok = False
        for bucket in self._bulk_rates.values():
            bucket.invalidate()

    # ------------------------------------------------------------------
    # State-dependent updates

    def _update_rates_C(self) -> None:
        phys_conc = self.thermo.concentrations()
        act_conc = self.thermo.activity_concentrations()
        ctot = self.thermo.molar_density
        pressure = self.thermo.pressure
        if (
            pressure == self._conc_pres
            and ctot == self._ctot
            and np.array_equal(phys_conc, self._phys_conc)
            and np.array_equal(act_conc, self._act_conc)
        ):
            return

        self._phys_conc[:] = phys_conc
        self._act_conc[:] = act_conc
        self._ctot = ctot
        self._conc_pres = pressure

        # third bodies interacting with the derivative-capable buckets
        if self._concm_multi_values.size:
            self._multi_concm.update(phys_conc, ctot, self._concm_multi_values)
            self._multi_concm.copy(self._concm_multi_values, self._concm)

        # three-body reactions (legacy)
        if self._concm_3b_values.size:
            self._3b_concm.update(phys_conc, ctot, self._concm_3b_values)
            self._3b_concm.copy(self._concm_3b_values, self._concm)

        # falloff reactions (legacy)
        if self._concm_falloff_values.size:
            self._falloff_concm.update(phys_conc, ctot, self._concm_falloff_values)
            self._falloff_concm.copy(self._concm_falloff_values, self._concm)

        if len(self._plog_rates):
            self._plog_rates.update_C(np.log(pressure))
        if len(self._cheb_rates):
            self._cheb_rates.update_C(np.log10(pressure))

        self._rop_ok = False

    def _update_rates_T(self) -> None:
        T = self.thermo.temperature
        P = self.thermo.pressure
        self._log_stand_conc = np.log(self.thermo.standard_concentration())
        logT = np.log(T)

        if T != self._temp:
            if len(self._rates):
                self._rates.update(T, logT, self._rfn)
            if self._fallindx:
                self._falloff_low_rates.update(T, logT, self._rfn_low)
                self._falloff_high_rates.update(T, logT, self._rfn_high)
            if len(self._falloffn):
                self._falloffn.update_temp(T)
            self._rop_ok = False

        self._shared.update(T, P, self._concm)
        for bucket in self._bulk_rates.values():
            if bucket.update(self._shared):
                bucket.get_rate_constants(self._rfn)
                self._rop_ok = False

        if T != self._temp or P != self._pres:
            self._update_kc()
            self._rop_ok = False
            if len(self._plog_rates):
                self._plog_rates.update(T, logT, self._rfn)
            if len(self._cheb_rates):
                self._cheb_rates.update(T, logT, self._rfn)

        self._pres = P
        self._temp = T

    def _reaction_delta(self, values: np.ndarray) -> np.ndarray:
        return self._net_stoich @ values

    def _update_kc(self) -> None:
        delta_g = self._reaction_delta(self.thermo.standard_chem_potentials())
        self._rkcn.fill(0.0)
        rev = np.array(self._revindex, dtype=int)
        if rev.size:
            rrt = 1.0 / self.thermo.RT
            with np.errstate(over="ignore"):
                self._rkcn[rev] = np.minimum(
                    np.exp(delta_g[rev] * rrt - self._dn[rev] * self._log_stand_conc),
                    BIG_NUMBER,
                )
        self._rkcn[self._irrev] = 0.0

    # ------------------------------------------------------------------
    # Rate-of-progress assembly

    def _process_fwd_rate_coefficients(self, out: np.ndarray) -> None:
        self._update_rates_C()
        self._update_rates_T()
        out[:] = self._rfn
        if self._fallindx:
            self._process_falloff_reactions(out)
        out *= self._perturb

    def _process_falloff_reactions(self, out: np.ndarray) -> None:
        pr = self._pr
        for slot, i in enumerate(self._fallindx):
            pr[slot] = reduced_pressure(
                self._concm[i], self._rfn_low[slot], self._rfn_high[slot], i
            )

        self._falloffn.pr_to_falloff(pr)

        for slot, i in enumerate(self._fallindx):
            if self._falloff_activated[slot]:
                pr[slot] *= self._rfn_low[slot]
            else:
                pr[slot] *= self._rfn_high[slot]
            out[i] = pr[slot]

    def _process_third_bodies(self, rop: np.ndarray) -> None:
        # multiply rop by the enhanced third-body concentration
        self._3b_concm.multiply(rop, self._concm)
        self._multi_concm.multiply(rop, self._concm)

    def _process_equilibrium_constants(self, rop: np.ndarray) -> None:
        rop *= self._rkcn

    @staticmethod
    def _check_finite(name: str, values: np.ndarray) -> None:
        bad = np.flatnonzero(~np.isfinite(values))
        if bad.size:
            raise NumericalError(name, int(bad[0]), where="GasKinetics.update_rop")

    def update_rop(self) -> None:
        """Bring forward, reverse and net rates of progress up to date."""
        self._update_rates_C()
        self._update_rates_T()
        if self._rop_ok:
            return

        self._process_fwd_rate_coefficients(self._kf)
        self._ropf[:] = self._kf
        self._process_third_bodies(self._ropf)
        self._ropr[:] = self._ropf

        # multiply ropf by concentration products
        self._reactant_stoich.multiply(self._act_conc, self._ropf)

        # for reversible reactions, multiply ropr by concentration products
        self._process_equilibrium_constants(self._ropr)
        self._rev_product_stoich.multiply(self._act_conc, self._ropr)
        np.subtract(self._ropf, self._ropr, out=self._ropnet)

        self._check_finite("kf", self._kf)
        self._check_finite("ropf", self._ropf)
        self._check_finite("ropr", self._ropr)
        self._rop_ok = True

    # ------------------------------------------------------------------
    # Queries

    def get_fwd_rate_constants(self) -> np.ndarray:
        """Forward rate constants, including falloff and multipliers.

        Third-body concentrations are folded in only when
        ``legacy_rate_constants`` is set.
        """
        kfwd = self._rbuf0
        self._process_fwd_rate_coefficients(kfwd)
        if self.legacy_rate_constants:
            warnings.warn(
                "Forward rate constants that include third-body concentrations are "
                "deprecated; set legacy_rate_constants=False to exclude them.",
                DeprecationWarning,
                stacklevel=2,
            )
            self._process_third_bodies(kfwd)
        return kfwd.copy()

    def get_rev_rate_constants(self, include_irreversible: bool = False) -> np.ndarray:
        """Reverse rate constants; zero for irreversible reactions unless requested."""
        krev = self._rbuf0
        self._process_fwd_rate_coefficients(krev)
        if include_irreversible:
            krev /= self.get_equilibrium_constants()
        else:
            self._process_equilibrium_constants(krev)
        return krev.copy()

    def get_equilibrium_constants(self) -> np.ndarray:
        """Concentration-based equilibrium constants of all reactions."""
        self._update_rates_T()
        delta_g = self._reaction_delta(self.thermo.standard_chem_potentials())
        rrt = 1.0 / self.thermo.RT
        kc = np.exp(-delta_g * rrt + self._dn * self._log_stand_conc)

        # force an update of T-dependent properties so that the reverse-rate
        # multipliers are recomputed before they are used next
        self._temp = 0.0
        return kc

    def get_third_body_concentrations(self) -> np.ndarray:
        self.update_rop()
        return self._concm.copy()

    def get_fwd_rates_of_progress(self) -> np.ndarray:
        self.update_rop()
        return self._ropf.copy()

    def get_rev_rates_of_progress(self) -> np.ndarray:
        self.update_rop()
        return self._ropr.copy()

    def get_net_rates_of_progress(self) -> np.ndarray:
        self.update_rop()
        return self._ropnet.copy()

    def net_production_rates(self) -> np.ndarray:
        """Net molar production rate of every species (mol/m^3/s)."""
        self.update_rop()
        return self._net_stoich.T @ self._ropnet

    # ------------------------------------------------------------------
    # Jacobian settings

    def get_jacobian_settings(self) -> dict[str, Any]:
        return self._settings.to_mapping()

    def set_jacobian_settings(self, settings: Mapping[str, Any]) -> None:
        self._settings.update(settings)

    # ------------------------------------------------------------------
    # Temperature derivatives

    def _check_legacy_rates(self, name: str) -> None:
        legacy = [i for i, r in enumerate(self._records) if not r.supports_jacobian]
        if legacy:
            raise LegacyRateError(
                f"GasKinetics.{name}: not supported for reactions installed through "
                f"the legacy path (reaction indices {legacy})."
            )

    def _process_rate_constants_ddT(self, out: np.ndarray) -> None:
        rtol = self._settings.relative_temperature_step
        for bucket in self._bulk_rates.values():
            bucket.process_ddT(out, self._shared, rtol)

    def _process_rate_constants_ddM(self, out: np.ndarray) -> None:
        rtol = self._settings.relative_temperature_step
        for bucket in self._bulk_rates.values():
            bucket.process_ddM(out, self._shared, rtol)

    def _process_concentrations_ddT(self, rop: np.ndarray) -> None:
        """Multiply ``rop`` by ``d ln(C_total) / dT`` at constant pressure."""
        T = self.thermo.temperature
        if self.thermo.type == "ideal-gas":
            # d(C_total)/dT = -C_total / T
            dlnctot_dT = -1.0 / T
        else:
            P = self.thermo.pressure
            rtol = self._settings.relative_temperature_step
            try:
                self.thermo.set_state_TP(T * (1.0 + rtol), P)
                ctot1 = self.thermo.molar_density
            finally:
                self.thermo.set_state_TP(T, P)
            ctot0 = self.thermo.molar_density
            dlnctot_dT = (ctot1 - ctot0) / (T * rtol * ctot0)
        rop *= dlnctot_dT

    def _process_equilibrium_constants_ddT(self, drkcn: np.ndarray) -> None:
        T = self.thermo.temperature
        P = self.thermo.pressure
        rtol = self._settings.relative_temperature_step
        dTinv = 1.0 / (rtol * T)

        try:
            self.thermo.set_state_TP(T * (1.0 + rtol), P)
            kc1 = self.get_equilibrium_constants()
        finally:
            self.thermo.set_state_TP(T, P)
        kc0 = self.get_equilibrium_constants()

        with np.errstate(divide="ignore", invalid="ignore"):
            drkcn *= (kc0 - kc1) * dTinv
            drkcn /= kc0  # scaled derivative
        drkcn[self._irrev] = 0.0

    def fwd_rate_constants_ddT(self) -> np.ndarray:
        """Derivative of forward rate constants with respect to temperature."""
        self._check_legacy_rates("fwd_rate_constants_ddT")
        self.update_rop()

        dkf = self._kf.copy()
        self._process_rate_constants_ddT(dkf)

        # rate constants that depend on third-body colliders
        if self._settings.constant_pressure:
            dkf_m = self._rbuf2
            dkf_m[:] = self._kf
            self._process_rate_constants_ddM(dkf_m)
            self._process_concentrations_ddT(dkf_m)
            dkf += dkf_m
        return dkf

    def fwd_rates_of_progress_ddT(self) -> np.ndarray:
        """Derivative of forward rates of progress with respect to temperature."""
        self._check_legacy_rates("fwd_rates_of_progress_ddT")
        self.update_rop()

        drop = self._ropf.copy()
        self._process_rate_constants_ddT(drop)

        if self._settings.constant_pressure:
            drop_c = self._rbuf1
            drop_c.fill(0.0)
            self._reactant_stoich.scale(self._ropf, drop_c)

            # reaction rates that depend on third-body colliders
            drop_m = self._rbuf2
            drop_m[:] = self._ropf
            self._process_rate_constants_ddM(drop_m)

            # third body in the law of mass action
            self._multi_concm.scale_order(self._ropf, drop_m)
            drop_c += drop_m

            self._process_concentrations_ddT(drop_c)
            drop += drop_c
        return drop

    def rev_rates_of_progress_ddT(self) -> np.ndarray:
        """Derivative of reverse rates of progress with respect to temperature."""
        self._check_legacy_rates("rev_rates_of_progress_ddT")
        self.update_rop()
        ropr = self._ropr.copy()

        # reverse rop times scaled rate constant derivative
        drop = ropr.copy()
        self._process_rate_constants_ddT(drop)

        # reverse rop times scaled inverse equilibrium constant derivative
        drop_kc = ropr.copy()
        self._process_equilibrium_constants_ddT(drop_kc)
        drop += drop_kc

        if self._settings.constant_pressure:
            self.update_rop()
            drop_c = self._rbuf1
            drop_c.fill(0.0)
            self._rev_product_stoich.scale(ropr, drop_c)

            drop_m = self._rbuf2
            drop_m[:] = ropr
            self._process_rate_constants_ddM(drop_m)
            self._multi_concm.scale_order(ropr, drop_m)
            drop_c += drop_m

            self._process_concentrations_ddT(drop_c)
            drop += drop_c
        return drop

    def net_rates_of_progress_ddT(self) -> np.ndarray:
        """Derivative of net rates of progress with respect to temperature."""
        self._check_legacy_rates("net_rates_of_progress_ddT")
        return self.fwd_rates_of_progress_ddT() - self.rev_rates_of_progress_ddT()

    # ------------------------------------------------------------------
    # Concentration derivatives

    def _scale_concentrations(self, rates: np.ndarray) -> None:
        rates *= self.thermo.molar_density

    def _third_body_jacobian(self, stoich: StoichManager, rates: np.ndarray) -> sparse.csr_matrix:
        rop_3b = self._rbuf2
        rop_3b[:] = rates
        stoich.multiply(self._act_conc, rop_3b)
        return self._multi_concm.jacobian(rop_3b)

    def _rop_ddC(self, stoich: StoichManager, rates: np.ndarray) -> sparse.csr_matrix:
        rop_stoich = self._rbuf1
        rop_stoich[:] = rates
        self._process_third_bodies(rop_stoich)
        jac = stoich.jacobian(self._act_conc, rop_stoich)
        if not self._settings.skip_third_body_derivative and len(self._multi_concm):
            jac = jac + self._third_body_jacobian(stoich, rates)
        return jac

    def _fwd_rate_coefficients_for_ddC(self) -> np.ndarray:
        rates = self._rbuf0
        self._process_fwd_rate_coefficients(rates)
        if self._settings.mole_fraction_scaling:
            self._scale_concentrations(rates)
        return rates

    def fwd_rates_of_progress_ddC(self) -> sparse.csr_matrix:
        """Sparse derivatives of forward rates of progress w.r.t. concentrations."""
        self._check_legacy_rates("fwd_rates_of_progress_ddC")
        rates = self._fwd_rate_coefficients_for_ddC()
        return self._rop_ddC(self._reactant_stoich, rates).tocsr()

    def rev_rates_of_progress_ddC(self) -> sparse.csr_matrix:
        """Sparse derivatives of reverse rates of progress w.r.t. concentrations."""
        self._check_legacy_rates("rev_rates_of_progress_ddC")
        rates = self._fwd_rate_coefficients_for_ddC()
        self._process_equilibrium_constants(rates)
        return self._rop_ddC(self._rev_product_stoich, rates).tocsr()

    def net_rates_of_progress_ddC(self) -> sparse.csr_matrix:
        """Sparse derivatives of net rates of progress w.r.t. concentrations."""
        self._check_legacy_rates("net_rates_of_progress_ddC")
        rates = self._fwd_rate_coefficients_for_ddC()
        jac = self._rop_ddC(self._reactant_stoich, rates)
        self._process_equilibrium_constants(rates)
        jac = jac - self._rop_ddC(self._rev_product_stoich, rates)
        return jac.tocsr()

