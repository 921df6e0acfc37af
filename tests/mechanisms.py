"""Reaction sets shared by the kinetics and Jacobian tests."""
import numpy as np
from simpkin.constants import ONE_ATM, R_GAS
from simpkin.falloff import SRI, Troe
from simpkin.kinetics import ArrheniusRate, ChebyshevRate, FalloffRate, PlogRate
from simpkin.models import Reaction, ThirdBody
from simpkin.thermo import IdealGasThermo, SpeciesProperties

PROPS = {
    "A": SpeciesProperties(30.0, 100000.0, 120.0),
    "B": SpeciesProperties(30.0, 50000.0, 130.0),
    "AB": SpeciesProperties(30.0, -20000.0, 200.0),
    "N2": SpeciesProperties(30.0, 0.0, 190.0),
}
X0 = {"A": 0.1, "B": 0.2, "AB": 0.3, "N2": 0.4}


def make_thermo(T=1000.0, P=ONE_ATM):
    return IdealGasThermo(PROPS, T, P, X0)


def elementary(legacy=False, A=2.0e3):
    return Reaction(
        equation="A + B => AB",
        reactants={"A": 1.0, "B": 1.0},
        products={"AB": 1.0},
        rate=ArrheniusRate(A, 0.0, 10000.0),
        reversible=False,
        legacy=legacy,
    )


def three_body(legacy=False):
    return Reaction(
        equation="AB + M <=> A + B + M",
        reactants={"AB": 1.0},
        products={"A": 1.0, "B": 1.0},
        rate=ArrheniusRate(3.0e8, -1.0, 200000.0),
        reaction_type="three-body",
        third_body=ThirdBody({"N2": 2.0}),
        legacy=legacy,
    )


def falloff(low, high, curve=None, activated=False, legacy=False, reversible=False):
    rate = FalloffRate(ArrheniusRate(low), ArrheniusRate(high))
    if curve is not None:
        rate = FalloffRate(rate.low, rate.high, curve)
    return Reaction(
        equation="A + B (+M) <=> AB (+M)",
        reactants={"A": 1.0, "B": 1.0},
        products={"AB": 1.0},
        rate=rate,
        reaction_type="chemically-activated" if activated else "falloff",
        reversible=reversible,
        legacy=legacy,
    )


def full_mechanism(legacy=False):
    return [
        elementary(legacy),
        three_body(legacy),
        Reaction(
            equation="A + B (+M) <=> AB (+M)",
            reactants={"A": 1.0, "B": 1.0},
            products={"AB": 1.0},
            rate=FalloffRate(
                ArrheniusRate(1.0e4, -0.5, 5000.0),
                ArrheniusRate(2.0e3, 0.3, 20000.0),
                Troe(0.6, 150.0, 900.0, 4000.0),
            ),
            reaction_type="falloff",
            third_body=ThirdBody({"N2": 1.5, "AB": 3.0}),
            legacy=legacy,
        ),
        Reaction(
            equation="A + B (+M) <=> AB (+M)",
            reactants={"A": 1.0, "B": 1.0},
            products={"AB": 1.0},
            rate=FalloffRate(
                ArrheniusRate(5.0e2, 0.0, 1000.0),
                ArrheniusRate(1.0e5, 0.0, 30000.0),
                SRI(0.5, 200.0, 800.0),
            ),
            reaction_type="chemically-activated",
            legacy=legacy,
        ),
        Reaction(
            equation="AB <=> A + B",
            reactants={"AB": 1.0},
            products={"A": 1.0, "B": 1.0},
            rate=PlogRate(
                [
                    (1.0e4, ArrheniusRate(1.0e10, 0.0, 150000.0)),
                    (1.0e6, ArrheniusRate(4.0e11, -0.2, 160000.0)),
                ]
            ),
            reaction_type="pressure-dependent-Arrhenius",
            legacy=legacy,
        ),
        Reaction(
            equation="AB <=> A + B",
            reactants={"AB": 1.0},
            products={"A": 1.0, "B": 1.0},
            rate=ChebyshevRate(
                (300.0, 3000.0), (1.0e3, 1.0e7), [[8.0, 0.5], [-1.0, 0.1], [0.2, 0.0]]
            ),
            reaction_type="Chebyshev",
            legacy=legacy,
        ),
    ]


def kc_expected(thermo, delta, dn):
    mu = thermo.standard_chem_potentials()
    names = list(thermo.species_names)
    dg = sum(nu * mu[names.index(k)] for k, nu in delta.items())
    return np.exp(-dg / (R_GAS * thermo.temperature)) * thermo.standard_concentration() ** dn


